import sqlite3
from contextlib import closing
from datetime import datetime
from pathlib import Path
from threading import Lock
from typing import Optional

from src.core.accounts.models import UserRecord
from src.core.accounts.repository import UserRepository

_USER_SELECT_COLUMNS = "id, email, password_hash, first_name, last_name, created_at"


class SqliteUserRepository(UserRepository):
    def __init__(self, *, database_path: str) -> None:
        self._lock = Lock()
        self._database_path = database_path
        self._init_db()

    def get_user(self, *, user_id: int) -> Optional[UserRecord]:
        with closing(self._connect()) as connection:
            row = connection.execute(
                f"SELECT {_USER_SELECT_COLUMNS} FROM users WHERE id = ?", (user_id,)
            ).fetchone()
        return _to_user(row)

    def get_user_by_email(self, *, email: str) -> Optional[UserRecord]:
        with closing(self._connect()) as connection:
            row = connection.execute(
                f"SELECT {_USER_SELECT_COLUMNS} FROM users WHERE email = ?", (email,)
            ).fetchone()
        return _to_user(row)

    def create_user(
        self,
        *,
        email: str,
        password_hash: str,
        first_name: Optional[str],
        last_name: Optional[str],
        created_at: datetime,
    ) -> Optional[UserRecord]:
        with self._lock, closing(self._connect()) as connection:
            try:
                cursor = connection.execute(
                    """
                    INSERT INTO users (email, password_hash, first_name, last_name, created_at)
                    VALUES (?, ?, ?, ?, ?)
                    """,
                    (email, password_hash, first_name, last_name, created_at.isoformat()),
                )
            except sqlite3.IntegrityError:
                return None
            connection.commit()
            user_id = int(cursor.lastrowid)
        return self.get_user(user_id=user_id)

    def _connect(self) -> sqlite3.Connection:
        connection = sqlite3.connect(self._database_path)
        connection.row_factory = sqlite3.Row
        return connection

    def _init_db(self) -> None:
        Path(self._database_path).parent.mkdir(parents=True, exist_ok=True)
        with closing(self._connect()) as connection:
            connection.executescript(
                """
                CREATE TABLE IF NOT EXISTS users (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    email TEXT NOT NULL UNIQUE,
                    password_hash TEXT NOT NULL,
                    first_name TEXT NULL,
                    last_name TEXT NULL,
                    created_at TEXT NOT NULL
                );
                """
            )
            connection.commit()


def _to_user(row) -> Optional[UserRecord]:
    if row is None:
        return None
    return UserRecord(
        id=int(row["id"]),
        email=row["email"],
        password_hash=row["password_hash"],
        first_name=row["first_name"],
        last_name=row["last_name"],
        created_at=datetime.fromisoformat(row["created_at"]),
    )
