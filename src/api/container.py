import logging
from dataclasses import dataclass

from src.api.config import AppSettings, build_proposal_repository, build_user_repository
from src.core.accounts.service import AccountService
from src.core.accounts.sessions import SessionManager
from src.core.proposals.service import ProposalService

logger = logging.getLogger(__name__)


@dataclass
class AppContainer:
    """Process-wide collaborators, built once at startup and shared by reference."""

    settings: AppSettings
    proposals: ProposalService
    accounts: AccountService
    sessions: SessionManager


def build_container(settings: AppSettings) -> AppContainer:
    container = AppContainer(
        settings=settings,
        proposals=ProposalService(repository=build_proposal_repository(settings)),
        accounts=AccountService(repository=build_user_repository(settings)),
        sessions=SessionManager(
            secret=settings.session_secret,
            ttl_seconds=settings.session_ttl_seconds,
        ),
    )
    logger.info(
        "container.built",
        extra={"extra_fields": {"store_backend": settings.store_backend}},
    )
    return container
