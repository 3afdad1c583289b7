from src.core.accounts.errors import (
    AccountAlreadyExistsError,
    AccountError,
    AccountValidationError,
    AuthenticationRequiredError,
    InvalidCredentialsError,
)
from src.core.accounts.models import (
    AuthResponse,
    LoginRequest,
    SignupRequest,
    UserProfile,
    UserRecord,
)
from src.core.accounts.repository import UserRepository
from src.core.accounts.service import AccountService
from src.core.accounts.sessions import SESSION_COOKIE_NAME, SessionManager

__all__ = [
    "SESSION_COOKIE_NAME",
    "AccountAlreadyExistsError",
    "AccountError",
    "AccountService",
    "AccountValidationError",
    "AuthResponse",
    "AuthenticationRequiredError",
    "InvalidCredentialsError",
    "LoginRequest",
    "SessionManager",
    "SignupRequest",
    "UserProfile",
    "UserRecord",
    "UserRepository",
]
