import logging
from datetime import datetime, timezone
from typing import Callable, Optional

from src.core.accounts.errors import (
    AccountAlreadyExistsError,
    AccountValidationError,
    AuthenticationRequiredError,
    InvalidCredentialsError,
)
from src.core.accounts.models import LoginRequest, SignupRequest, UserProfile, UserRecord
from src.core.accounts.passwords import hash_password, pwd_ctx, verify_password
from src.core.accounts.repository import UserRepository

logger = logging.getLogger(__name__)


class AccountService:
    def __init__(
        self,
        *,
        repository: UserRepository,
        clock: Optional[Callable[[], datetime]] = None,
    ) -> None:
        self._repository = repository
        self._clock = clock or (lambda: datetime.now(timezone.utc))

    def signup(self, *, payload: SignupRequest) -> UserProfile:
        email = normalize_email(payload.email)
        if not payload.password.strip():
            raise AccountValidationError("PASSWORD_REQUIRED", field="password")
        if self._repository.get_user_by_email(email=email) is not None:
            raise AccountAlreadyExistsError("ACCOUNT_ALREADY_EXISTS")
        user = self._repository.create_user(
            email=email,
            password_hash=hash_password(payload.password),
            first_name=payload.first_name,
            last_name=payload.last_name,
            created_at=self._clock(),
        )
        if user is None:
            # Lost a race against a concurrent signup for the same email.
            raise AccountAlreadyExistsError("ACCOUNT_ALREADY_EXISTS")
        logger.info("account.signup", extra={"extra_fields": {"user_id": user.id}})
        return to_user_profile(user)

    def authenticate(self, *, payload: LoginRequest) -> UserProfile:
        email = normalize_email(payload.email)
        user = self._repository.get_user_by_email(email=email)
        if user is None:
            pwd_ctx.dummy_verify()
            self._log_failed_login(reason="unknown_email")
            raise InvalidCredentialsError("INVALID_CREDENTIALS")
        if not verify_password(payload.password, user.password_hash):
            self._log_failed_login(reason="wrong_password", user_id=user.id)
            raise InvalidCredentialsError("INVALID_CREDENTIALS")
        return to_user_profile(user)

    def get_profile(self, *, user_id: Optional[int]) -> UserProfile:
        if user_id is None:
            raise AuthenticationRequiredError("AUTHENTICATION_REQUIRED")
        user = self._repository.get_user(user_id=user_id)
        if user is None:
            raise AuthenticationRequiredError("AUTHENTICATION_REQUIRED")
        return to_user_profile(user)

    def _log_failed_login(self, *, reason: str, user_id: Optional[int] = None) -> None:
        logger.warning(
            "account.login_failed",
            extra={"extra_fields": {"reason": reason, "user_id": user_id}},
        )


def normalize_email(email: str) -> str:
    normalized = email.strip().lower()
    if not normalized:
        raise AccountValidationError("EMAIL_REQUIRED", field="email")
    return normalized


def to_user_profile(user: UserRecord) -> UserProfile:
    return UserProfile(
        id=user.id,
        email=user.email,
        first_name=user.first_name,
        last_name=user.last_name,
    )
