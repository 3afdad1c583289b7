from src.api.config import DEFAULT_SESSION_SECRET, AppSettings

_PRODUCTION_PROFILE = "PRODUCTION"


def validate_persistence_profile_guardrails(settings: AppSettings) -> None:
    if settings.persistence_profile != _PRODUCTION_PROFILE:
        return
    if settings.store_backend != "POSTGRES":
        raise RuntimeError("PERSISTENCE_PROFILE_REQUIRES_AGREEMENT_POSTGRES")
    if not settings.postgres_dsn:
        raise RuntimeError("PERSISTENCE_PROFILE_REQUIRES_AGREEMENT_POSTGRES_DSN")
    if settings.session_secret == DEFAULT_SESSION_SECRET:
        raise RuntimeError("PERSISTENCE_PROFILE_REQUIRES_SESSION_SECRET")
