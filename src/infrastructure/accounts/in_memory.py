from datetime import datetime
from threading import Lock
from typing import Optional

from src.core.accounts.models import UserRecord
from src.core.accounts.repository import UserRepository


class InMemoryUserRepository(UserRepository):
    def __init__(self) -> None:
        self._lock = Lock()
        self._users: dict[int, UserRecord] = {}
        self._next_user_id = 1

    def get_user(self, *, user_id: int) -> Optional[UserRecord]:
        with self._lock:
            user = self._users.get(user_id)
            return user.model_copy() if user is not None else None

    def get_user_by_email(self, *, email: str) -> Optional[UserRecord]:
        with self._lock:
            for user in self._users.values():
                if user.email == email:
                    return user.model_copy()
        return None

    def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        first_name: Optional[str],
        last_name: Optional[str],
        created_at: datetime,
    ) -> Optional[UserRecord]:
        with self._lock:
            if any(user.email == email for user in self._users.values()):
                return None
            user = UserRecord(
                id=self._next_user_id,
                email=email,
                password_hash=password_hash,
                first_name=first_name,
                last_name=last_name,
                created_at=created_at,
            )
            self._users[user.id] = user
            self._next_user_id += 1
            return user.model_copy()
