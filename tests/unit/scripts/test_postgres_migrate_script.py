import pytest

import scripts.postgres_migrate as migrate_script
from tests.postgres_fakes import FakePostgresConnection


class _ContextConnection(FakePostgresConnection):
    def __enter__(self):
        return self

    def __exit__(self, *exc_info):
        return None


def test_migrate_requires_dsn():
    with pytest.raises(RuntimeError, match="POSTGRES_MIGRATION_DSN_REQUIRED"):
        migrate_script.main([])


def test_migrate_dsn_defaults_to_environment(monkeypatch):
    monkeypatch.setenv("AGREEMENT_POSTGRES_DSN", "postgresql://db/agreements")
    monkeypatch.setattr(migrate_script, "find_spec", lambda _name: None)

    with pytest.raises(RuntimeError, match="POSTGRES_MIGRATION_DRIVER_MISSING"):
        migrate_script.main([])


def test_migrate_requires_driver(monkeypatch):
    monkeypatch.setattr(migrate_script, "find_spec", lambda _name: None)

    with pytest.raises(RuntimeError, match="POSTGRES_MIGRATION_DRIVER_MISSING"):
        migrate_script.main(["--dsn", "postgresql://db/agreements"])


def test_migrate_dry_run_then_apply(monkeypatch, capsys):
    psycopg = pytest.importorskip("psycopg")
    connection = _ContextConnection()
    monkeypatch.setattr(psycopg, "connect", lambda *_args, **_kwargs: connection)

    assert migrate_script.main(["--dsn", "postgresql://db/agreements", "--dry-run"]) == 0
    assert "Pending 0001 0001_proposals_and_users.sql" in capsys.readouterr().out
    assert connection.schema_migrations == {}

    assert migrate_script.main(["--dsn", "postgresql://db/agreements"]) == 0
    assert "Applied 1 migration(s) for namespace=agreements: 0001" in capsys.readouterr().out
    assert set(connection.schema_migrations) == {"agreements:0001"}

    assert migrate_script.main(["--dsn", "postgresql://db/agreements", "--dry-run"]) == 0
    assert "No pending migrations for namespace=agreements" in capsys.readouterr().out
