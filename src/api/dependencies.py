from typing import Annotated, Optional, cast

from fastapi import Cookie, Depends, Path, Request

from src.api.container import AppContainer
from src.core.accounts.errors import AuthenticationRequiredError
from src.core.accounts.service import AccountService
from src.core.accounts.sessions import SESSION_COOKIE_NAME, SessionManager
from src.core.proposals.policy import (
    Actor,
    AdminCapability,
    PublicSignerCapability,
    capability_for,
)
from src.core.proposals.service import ProposalService

ProposalIdPath = Annotated[
    int,
    Path(description="Proposal identifier.", examples=[1]),
]


def get_container(request: Request) -> AppContainer:
    return request.app.state.container


def get_proposal_service(
    container: AppContainer = Depends(get_container),
) -> ProposalService:
    return container.proposals


def get_account_service(
    container: AppContainer = Depends(get_container),
) -> AccountService:
    return container.accounts


def get_session_manager(
    container: AppContainer = Depends(get_container),
) -> SessionManager:
    return container.sessions


def get_session_token(
    session_token: Annotated[Optional[str], Cookie(alias=SESSION_COOKIE_NAME)] = None,
) -> Optional[str]:
    return session_token


def require_user_id(
    session_token: Optional[str] = Depends(get_session_token),
    sessions: SessionManager = Depends(get_session_manager),
    accounts: AccountService = Depends(get_account_service),
) -> int:
    user_id = sessions.resolve(session_token)
    if user_id is None:
        raise AuthenticationRequiredError("AUTHENTICATION_REQUIRED")
    # A session can outlive its user row (e.g. a wiped store); treat that as logged out.
    return accounts.get_profile(user_id=user_id).id


def require_admin(
    user_id: int = Depends(require_user_id),
    service: ProposalService = Depends(get_proposal_service),
) -> AdminCapability:
    return cast(AdminCapability, capability_for(Actor.admin(user_id), service))


def public_signer(
    proposal_id: ProposalIdPath,
    service: ProposalService = Depends(get_proposal_service),
) -> PublicSignerCapability:
    return cast(PublicSignerCapability, capability_for(Actor.public_signer(proposal_id), service))
