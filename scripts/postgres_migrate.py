import argparse
import os
import sys
from importlib.util import find_spec
from pathlib import Path

_REPO_ROOT = Path(__file__).resolve().parents[1]
if str(_REPO_ROOT) not in sys.path:
    sys.path.insert(0, str(_REPO_ROOT))


def main(argv: list[str] | None = None) -> int:
    parser = argparse.ArgumentParser(
        description="Apply forward-only PostgreSQL migrations for the agreements store."
    )
    parser.add_argument(
        "--dsn",
        default=os.getenv("AGREEMENT_POSTGRES_DSN", "").strip(),
        help="PostgreSQL DSN (defaults to AGREEMENT_POSTGRES_DSN).",
    )
    parser.add_argument(
        "--dry-run",
        action="store_true",
        help="List pending migrations without applying them.",
    )
    args = parser.parse_args(argv)

    if not args.dsn:
        raise RuntimeError("POSTGRES_MIGRATION_DSN_REQUIRED")
    if find_spec("psycopg") is None:
        raise RuntimeError("POSTGRES_MIGRATION_DRIVER_MISSING")
    import psycopg
    from psycopg.rows import dict_row

    from src.infrastructure.postgres_migrations import (
        AGREEMENTS_NAMESPACE,
        apply_postgres_migrations,
        pending_migrations,
    )

    with psycopg.connect(args.dsn, row_factory=dict_row) as connection:
        if args.dry_run:
            pending = pending_migrations(connection=connection, namespace=AGREEMENTS_NAMESPACE)
            for migration in pending:
                print(f"Pending {migration.version} {migration.sql_path.name}")
            if not pending:
                print(f"No pending migrations for namespace={AGREEMENTS_NAMESPACE}")
            return 0
        applied = apply_postgres_migrations(connection=connection, namespace=AGREEMENTS_NAMESPACE)
    print(
        f"Applied {len(applied)} migration(s) for namespace={AGREEMENTS_NAMESPACE}"
        + (f": {', '.join(applied)}" if applied else "")
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
