from contextlib import closing
from datetime import datetime
from importlib.util import find_spec
from typing import Optional

from src.core.accounts.models import UserRecord
from src.core.accounts.repository import UserRepository
from src.infrastructure.postgres_migrations import (
    AGREEMENTS_NAMESPACE,
    apply_postgres_migrations,
)

_USER_SELECT_COLUMNS = "id, email, password_hash, first_name, last_name, created_at"


class PostgresUserRepository(UserRepository):
    def __init__(self, *, dsn: str) -> None:
        if not dsn:
            raise RuntimeError("AGREEMENT_POSTGRES_DSN_REQUIRED")
        if find_spec("psycopg") is None:
            raise RuntimeError("AGREEMENT_POSTGRES_DRIVER_MISSING")
        self._dsn = dsn
        self._init_db()

    def get_user(self, *, user_id: int) -> Optional[UserRecord]:
        with closing(self._connect()) as connection:
            row = connection.execute(
                f"SELECT {_USER_SELECT_COLUMNS} FROM users WHERE id = %s", (user_id,)
            ).fetchone()
        return _to_user(row)

    def get_user_by_email(self, *, email: str) -> Optional[UserRecord]:
        with closing(self._connect()) as connection:
            row = connection.execute(
                f"SELECT {_USER_SELECT_COLUMNS} FROM users WHERE email = %s", (email,)
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
        query = f"""
            INSERT INTO users (email, password_hash, first_name, last_name, created_at)
            VALUES (%s, %s, %s, %s, %s)
            ON CONFLICT (email) DO NOTHING
            RETURNING {_USER_SELECT_COLUMNS}
        """
        with closing(self._connect()) as connection:
            row = connection.execute(
                query,
                (email, password_hash, first_name, last_name, created_at.isoformat()),
            ).fetchone()
            connection.commit()
        return _to_user(row)

    def _connect(self):
        psycopg, dict_row = _import_psycopg()
        return psycopg.connect(self._dsn, row_factory=dict_row)

    def _init_db(self) -> None:
        with closing(self._connect()) as connection:
            apply_postgres_migrations(connection=connection, namespace=AGREEMENTS_NAMESPACE)


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


def _import_psycopg():
    import psycopg
    from psycopg.rows import dict_row

    return psycopg, dict_row
