"""
FILE: tests/conftest.py
Shared fixtures for the agreements test suite.
"""

from datetime import datetime, timezone
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

from src.api.config import AppSettings
from src.api.container import build_container
from src.api.main import create_app
from src.core.proposals.service import ProposalService
from src.infrastructure.proposals import InMemoryProposalRepository
from tests.factories import FakeClock, signup_admin

_RUNTIME_ENV_VARS = (
    "AGREEMENT_STORE_BACKEND",
    "AGREEMENT_SQLITE_PATH",
    "AGREEMENT_POSTGRES_DSN",
    "AGREEMENT_SEED_DEMO",
    "APP_PERSISTENCE_PROFILE",
    "SESSION_SECRET",
    "SESSION_TTL_SECONDS",
    "SESSION_COOKIE_SECURE",
)


def _has_marker(item: pytest.Item, name: str) -> bool:
    return item.get_closest_marker(name) is not None


def pytest_collection_modifyitems(items: list[pytest.Item]) -> None:
    for item in items:
        if _has_marker(item, "unit") or _has_marker(item, "integration"):
            continue

        path = Path(str(item.fspath)).as_posix().lower()
        if "/tests/integration/" in path or "_integration.py" in path:
            item.add_marker(pytest.mark.integration)
            continue
        item.add_marker(pytest.mark.unit)


@pytest.fixture(autouse=True)
def clean_runtime_env(monkeypatch: pytest.MonkeyPatch):
    """Keep developer shell settings from leaking into app construction."""
    for name in _RUNTIME_ENV_VARS:
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock(datetime(2026, 3, 1, 9, 0, tzinfo=timezone.utc))


@pytest.fixture
def proposal_service(clock: FakeClock) -> ProposalService:
    return ProposalService(repository=InMemoryProposalRepository(), clock=clock)


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(session_secret="test-session-secret")


@pytest.fixture
def client(settings: AppSettings):
    app = create_app(container=build_container(settings))
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def admin_client(client: TestClient) -> TestClient:
    signup_admin(client)
    return client


@pytest.fixture
def public_client(client: TestClient):
    """A second client on the same app that never carries the admin session cookie."""
    with TestClient(client.app) as anonymous:
        yield anonymous
