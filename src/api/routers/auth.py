from typing import Optional

from fastapi import APIRouter, Depends, Response, status
from pydantic import BaseModel, Field

from src.api.container import AppContainer
from src.api.dependencies import (
    get_account_service,
    get_container,
    get_session_manager,
    get_session_token,
    require_user_id,
)
from src.core.accounts.models import AuthResponse, LoginRequest, SignupRequest, UserProfile
from src.core.accounts.service import AccountService
from src.core.accounts.sessions import SESSION_COOKIE_NAME, SessionManager

router = APIRouter(prefix="/api/auth", tags=["Auth"])


class LogoutResponse(BaseModel):
    message: str = Field(examples=["Logged out successfully"])


def _set_session_cookie(
    response: Response, *, token: str, container: AppContainer
) -> None:
    response.set_cookie(
        key=SESSION_COOKIE_NAME,
        value=token,
        max_age=container.sessions.ttl_seconds,
        httponly=True,
        samesite="lax",
        secure=container.settings.session_cookie_secure,
    )


def _start_session(response: Response, user: UserProfile, container: AppContainer) -> None:
    token = container.sessions.open_session(user_id=user.id)
    _set_session_cookie(response, token=token, container=container)


@router.post(
    "/signup",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create Admin Account",
    description="Registers an admin account and starts a session for it.",
)
def signup(
    payload: SignupRequest,
    response: Response,
    accounts: AccountService = Depends(get_account_service),
    container: AppContainer = Depends(get_container),
) -> AuthResponse:
    user = accounts.signup(payload=payload)
    _start_session(response, user, container)
    return AuthResponse(user=user)


@router.post(
    "/login",
    response_model=AuthResponse,
    status_code=status.HTTP_200_OK,
    summary="Log In",
)
def login(
    payload: LoginRequest,
    response: Response,
    accounts: AccountService = Depends(get_account_service),
    container: AppContainer = Depends(get_container),
) -> AuthResponse:
    user = accounts.authenticate(payload=payload)
    _start_session(response, user, container)
    return AuthResponse(user=user)


@router.post(
    "/logout",
    response_model=LogoutResponse,
    status_code=status.HTTP_200_OK,
    summary="Log Out",
    description="Destroys the server-side session and clears the session cookie.",
)
def logout(
    response: Response,
    session_token: Optional[str] = Depends(get_session_token),
    sessions: SessionManager = Depends(get_session_manager),
) -> LogoutResponse:
    sessions.close_session(session_token)
    response.delete_cookie(key=SESSION_COOKIE_NAME)
    return LogoutResponse(message="Logged out successfully")


@router.get(
    "/me",
    response_model=AuthResponse,
    status_code=status.HTTP_200_OK,
    summary="Get Current User",
)
def current_user(
    user_id: int = Depends(require_user_id),
    accounts: AccountService = Depends(get_account_service),
) -> AuthResponse:
    return AuthResponse(user=accounts.get_profile(user_id=user_id))
