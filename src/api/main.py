"""
FILE: src/api/main.py
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from src.api.config import AppSettings, load_settings
from src.api.container import AppContainer, build_container
from src.api.http_errors import register_error_handlers
from src.api.observability import setup_observability
from src.api.persistence_profile import validate_persistence_profile_guardrails
from src.api.routers.auth import router as auth_router
from src.api.routers.proposals import router as proposals_router
from src.api.routers.public_proposals import router as public_proposals_router

logger = logging.getLogger(__name__)


def _startup(app: FastAPI) -> AppContainer:
    container: Optional[AppContainer] = getattr(app.state, "container", None)
    if container is None:
        settings: AppSettings = app.state.settings
        validate_persistence_profile_guardrails(settings)
        container = build_container(settings)
        app.state.container = container
    if container.settings.seed_demo:
        container.proposals.seed_demo_proposal()
    logger.info(
        "service.started",
        extra={
            "extra_fields": {
                "store_backend": container.settings.store_backend,
                "persistence_profile": container.settings.persistence_profile,
            }
        },
    )
    return container


def create_app(
    settings: Optional[AppSettings] = None,
    *,
    container: Optional[AppContainer] = None,
) -> FastAPI:
    """Build the service.

    A prebuilt ``container`` is used as-is; otherwise settings are resolved
    (from the environment when not given) and the container is built during
    startup, after the persistence-profile guardrails pass.
    """

    @asynccontextmanager
    async def _app_lifespan(app: FastAPI):
        _startup(app)
        yield

    app = FastAPI(
        title="Noviq Service Agreements API",
        version="0.1.0",
        description=(
            "Create, share and e-sign client service agreements.\n\n"
            "Admin endpoints require a session cookie from `/api/auth/login`; "
            "`/api/public/proposals/{id}` is the unauthenticated client link."
        ),
        openapi_tags=[
            {"name": "Auth", "description": "Admin account and session endpoints."},
            {"name": "Proposals", "description": "Admin proposal management."},
            {
                "name": "Public Proposals",
                "description": "Client review, payment adjustment and signing.",
            },
            {"name": "Health", "description": "Liveness and readiness probes."},
        ],
        lifespan=_app_lifespan,
    )
    app.state.settings = container.settings if container is not None else settings
    if app.state.settings is None:
        app.state.settings = load_settings()
    app.state.container = container

    setup_observability(app)
    register_error_handlers(app)

    app.include_router(auth_router)
    app.include_router(proposals_router)
    app.include_router(public_proposals_router)

    @app.get("/health", tags=["Health"], summary="Health")
    def health() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/health/live", tags=["Health"], summary="Liveness")
    def health_live() -> dict[str, str]:
        return {"status": "live"}

    @app.get("/health/ready", tags=["Health"], summary="Readiness")
    def health_ready(request: Request):
        if getattr(request.app.state, "container", None) is None:
            return JSONResponse(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
                content={"status": "not_ready"},
            )
        return {"status": "ready"}

    return app


app = create_app()
