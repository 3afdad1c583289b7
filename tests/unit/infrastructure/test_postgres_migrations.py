import pytest

from src.infrastructure import postgres_migrations
from src.infrastructure.postgres_migrations import (
    AGREEMENTS_NAMESPACE,
    apply_postgres_migrations,
    load_migrations,
    pending_migrations,
)
from tests.postgres_fakes import FakePostgresConnection


def test_agreements_namespace_ships_ordered_migrations():
    migrations = load_migrations(namespace=AGREEMENTS_NAMESPACE)

    assert [migration.version for migration in migrations] == ["0001"]
    assert "CREATE TABLE IF NOT EXISTS users" in migrations[0].read_sql()
    assert len(migrations[0].checksum) == 64


def test_unknown_namespace_is_rejected():
    with pytest.raises(RuntimeError, match="POSTGRES_MIGRATIONS_NAMESPACE_NOT_FOUND:nope"):
        load_migrations(namespace="nope")


def test_apply_records_versions_and_is_idempotent():
    connection = FakePostgresConnection()

    assert apply_postgres_migrations(connection=connection, namespace=AGREEMENTS_NAMESPACE) == [
        "0001"
    ]
    assert apply_postgres_migrations(connection=connection, namespace=AGREEMENTS_NAMESPACE) == []
    assert pending_migrations(connection=connection, namespace=AGREEMENTS_NAMESPACE) == []


def test_checksum_mismatch_aborts_and_rolls_back():
    connection = FakePostgresConnection()
    connection.schema_migrations["agreements:0001"] = {
        "namespace": AGREEMENTS_NAMESPACE,
        "checksum": "edited",
    }

    with pytest.raises(RuntimeError, match="POSTGRES_MIGRATION_CHECKSUM_MISMATCH:agreements:0001"):
        apply_postgres_migrations(connection=connection, namespace=AGREEMENTS_NAMESPACE)
    assert connection.rollbacks == 1


def test_lock_key_is_stable_per_namespace():
    key = postgres_migrations._migration_lock_key(namespace=AGREEMENTS_NAMESPACE)

    assert key == postgres_migrations._migration_lock_key(namespace=AGREEMENTS_NAMESPACE)
    assert key != postgres_migrations._migration_lock_key(namespace="other")
