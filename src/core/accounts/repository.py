from datetime import datetime
from typing import Optional, Protocol

from src.core.accounts.models import UserRecord


class UserRepository(Protocol):
    def get_user(self, *, user_id: int) -> Optional[UserRecord]: ...

    def get_user_by_email(self, *, email: str) -> Optional[UserRecord]: ...

    def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        first_name: Optional[str],
        last_name: Optional[str],
        created_at: datetime,
    ) -> Optional[UserRecord]:
        """Insert a user; returns None when the email is already registered."""
        ...
