"""
Forward-only PostgreSQL schema migrations.

Migrations are ``postgres_migrations/<namespace>/<version>_<name>.sql`` files
next to this module. Each applied file is recorded in ``schema_migrations``
with its checksum; editing an applied file is an error, never a re-apply.
"""

from __future__ import annotations

import hashlib
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

AGREEMENTS_NAMESPACE = "agreements"
_MIGRATIONS_ROOT = Path(__file__).with_name("postgres_migrations")


@dataclass(frozen=True)
class PostgresMigration:
    version: str
    sql_path: Path
    checksum: str

    def read_sql(self) -> str:
        return self.sql_path.read_text(encoding="utf-8")


def load_migrations(*, namespace: str) -> list[PostgresMigration]:
    namespace_path = _MIGRATIONS_ROOT / namespace
    if not namespace_path.is_dir():
        raise RuntimeError(f"POSTGRES_MIGRATIONS_NAMESPACE_NOT_FOUND:{namespace}")
    migrations: list[PostgresMigration] = []
    for sql_path in sorted(namespace_path.glob("*.sql")):
        version = sql_path.stem.split("_", maxsplit=1)[0]
        checksum = hashlib.sha256(sql_path.read_bytes()).hexdigest()
        migrations.append(PostgresMigration(version=version, sql_path=sql_path, checksum=checksum))
    return migrations


def apply_postgres_migrations(*, connection: Any, namespace: str) -> list[str]:
    """Apply pending migrations under an advisory lock; returns the versions applied."""
    lock_key = _migration_lock_key(namespace=namespace)
    connection.execute("SELECT pg_advisory_lock(%s::bigint)", (lock_key,))
    try:
        applied = _apply_pending(connection=connection, namespace=namespace)
    except Exception:
        connection.rollback()
        raise
    finally:
        connection.execute("SELECT pg_advisory_unlock(%s::bigint)", (lock_key,))
    return applied


def pending_migrations(*, connection: Any, namespace: str) -> list[PostgresMigration]:
    _ensure_migrations_table(connection)
    applied = _applied_checksums(connection=connection, namespace=namespace)
    return _verify_and_select_pending(
        namespace=namespace,
        migrations=load_migrations(namespace=namespace),
        applied=applied,
    )


def _apply_pending(*, connection: Any, namespace: str) -> list[str]:
    pending = pending_migrations(connection=connection, namespace=namespace)
    for migration in pending:
        _execute_sql_statements(connection=connection, sql=migration.read_sql())
        connection.execute(
            """
            INSERT INTO schema_migrations (
                version,
                namespace,
                checksum,
                applied_at
            ) VALUES (%s, %s, %s, %s)
            """,
            (
                f"{namespace}:{migration.version}",
                namespace,
                migration.checksum,
                datetime.now(timezone.utc).isoformat(),
            ),
        )
    connection.commit()
    return [migration.version for migration in pending]


def _ensure_migrations_table(connection: Any) -> None:
    connection.execute(
        """
        CREATE TABLE IF NOT EXISTS schema_migrations (
            version TEXT PRIMARY KEY,
            namespace TEXT NOT NULL,
            checksum TEXT NOT NULL,
            applied_at TEXT NOT NULL
        )
        """
    )


def _applied_checksums(*, connection: Any, namespace: str) -> dict[str, str]:
    rows = connection.execute(
        """
        SELECT version, checksum
        FROM schema_migrations
        WHERE namespace = %s
        ORDER BY version ASC
        """,
        (namespace,),
    ).fetchall()
    prefix = f"{namespace}:"
    applied: dict[str, str] = {}
    for row in rows:
        stored_version = str(row["version"])
        version = stored_version.removeprefix(prefix)
        applied[version] = str(row["checksum"])
    return applied


def _verify_and_select_pending(
    *,
    namespace: str,
    migrations: list[PostgresMigration],
    applied: dict[str, str],
) -> list[PostgresMigration]:
    pending: list[PostgresMigration] = []
    for migration in migrations:
        existing_checksum = applied.get(migration.version)
        if existing_checksum is None:
            pending.append(migration)
        elif existing_checksum != migration.checksum:
            raise RuntimeError(
                f"POSTGRES_MIGRATION_CHECKSUM_MISMATCH:{namespace}:{migration.version}"
            )
    return pending


def _execute_sql_statements(*, connection: Any, sql: str) -> None:
    # Migration files hold plain DDL only; no statement embeds a literal semicolon.
    for statement in sql.split(";"):
        normalized = statement.strip()
        if normalized:
            connection.execute(normalized)


def _migration_lock_key(*, namespace: str) -> int:
    digest = hashlib.sha256(namespace.encode("utf-8")).digest()[:8]
    return int.from_bytes(digest, byteorder="big", signed=True)
