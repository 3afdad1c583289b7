"""
Runtime configuration for the agreements service.

Settings are read from the environment once, when the application is built,
and handed to the container; nothing else in the service reads ``os.environ``
except the log formatter.
"""

import warnings
from dataclasses import dataclass
from typing import cast

from src.api.routers.runtime_utils import env_flag, env_int, env_str
from src.core.accounts.repository import UserRepository
from src.core.accounts.sessions import DEFAULT_SESSION_TTL_SECONDS
from src.core.proposals.repository import ProposalRepository
from src.infrastructure.accounts import (
    InMemoryUserRepository,
    PostgresUserRepository,
    SqliteUserRepository,
)
from src.infrastructure.proposals import (
    InMemoryProposalRepository,
    PostgresProposalRepository,
    SqliteProposalRepository,
)

DEFAULT_SESSION_SECRET = "fallback-secret-change-me"
DEFAULT_SQLITE_PATH = ".data/agreements.sqlite"
STORE_BACKENDS = ("IN_MEMORY", "SQLITE", "POSTGRES")


@dataclass(frozen=True)
class AppSettings:
    store_backend: str = "IN_MEMORY"
    sqlite_path: str = DEFAULT_SQLITE_PATH
    postgres_dsn: str = ""
    session_secret: str = DEFAULT_SESSION_SECRET
    session_ttl_seconds: int = DEFAULT_SESSION_TTL_SECONDS
    session_cookie_secure: bool = False
    seed_demo: bool = False
    persistence_profile: str = "LOCAL"


def agreement_store_backend_name() -> str:
    backend = env_str("AGREEMENT_STORE_BACKEND", "IN_MEMORY").upper()
    if backend in STORE_BACKENDS:
        return backend
    warnings.warn(
        f"AGREEMENT_STORE_BACKEND={backend!r} is not recognised; falling back to IN_MEMORY.",
        RuntimeWarning,
        stacklevel=2,
    )
    return "IN_MEMORY"


def agreement_postgres_dsn() -> str:
    return env_str("AGREEMENT_POSTGRES_DSN", "")


def app_persistence_profile_name() -> str:
    profile = env_str("APP_PERSISTENCE_PROFILE", "LOCAL").upper()
    return "PRODUCTION" if profile == "PRODUCTION" else "LOCAL"


def load_settings() -> AppSettings:
    return AppSettings(
        store_backend=agreement_store_backend_name(),
        sqlite_path=env_str("AGREEMENT_SQLITE_PATH", DEFAULT_SQLITE_PATH) or DEFAULT_SQLITE_PATH,
        postgres_dsn=agreement_postgres_dsn(),
        session_secret=env_str("SESSION_SECRET", DEFAULT_SESSION_SECRET)
        or DEFAULT_SESSION_SECRET,
        session_ttl_seconds=env_int("SESSION_TTL_SECONDS", DEFAULT_SESSION_TTL_SECONDS),
        session_cookie_secure=env_flag("SESSION_COOKIE_SECURE", False),
        seed_demo=env_flag("AGREEMENT_SEED_DEMO", False),
        persistence_profile=app_persistence_profile_name(),
    )


def _postgres_connection_exception_types() -> tuple[type[BaseException], ...]:
    types: list[type[BaseException]] = [
        ConnectionError,
        OSError,
        TimeoutError,
        TypeError,
        ValueError,
    ]
    try:
        import psycopg
    except ImportError:
        pass
    else:
        types.append(psycopg.Error)
    return tuple(types)


def _require_postgres_dsn(settings: AppSettings) -> str:
    if not settings.postgres_dsn:
        raise RuntimeError("AGREEMENT_POSTGRES_DSN_REQUIRED")
    return settings.postgres_dsn


def build_proposal_repository(settings: AppSettings) -> ProposalRepository:
    if settings.store_backend == "POSTGRES":
        dsn = _require_postgres_dsn(settings)
        try:
            return cast(ProposalRepository, PostgresProposalRepository(dsn=dsn))
        except RuntimeError:
            raise
        except _postgres_connection_exception_types() as exc:
            raise RuntimeError("AGREEMENT_POSTGRES_CONNECTION_FAILED") from exc
    if settings.store_backend == "SQLITE":
        return cast(
            ProposalRepository, SqliteProposalRepository(database_path=settings.sqlite_path)
        )
    return cast(ProposalRepository, InMemoryProposalRepository())


def build_user_repository(settings: AppSettings) -> UserRepository:
    if settings.store_backend == "POSTGRES":
        dsn = _require_postgres_dsn(settings)
        try:
            return cast(UserRepository, PostgresUserRepository(dsn=dsn))
        except RuntimeError:
            raise
        except _postgres_connection_exception_types() as exc:
            raise RuntimeError("AGREEMENT_POSTGRES_CONNECTION_FAILED") from exc
    if settings.store_backend == "SQLITE":
        return cast(UserRepository, SqliteUserRepository(database_path=settings.sqlite_path))
    return cast(UserRepository, InMemoryUserRepository())
