"""Maps domain exceptions onto HTTP responses shaped ``{"message", "field"?}``."""

import logging
from typing import Any, Optional

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.core.accounts.errors import (
    AccountAlreadyExistsError,
    AccountError,
    AccountValidationError,
    AuthenticationRequiredError,
    InvalidCredentialsError,
)
from src.core.proposals.errors import (
    InvalidSignatureRoleError,
    ProposalAccessDeniedError,
    ProposalError,
    ProposalLockedError,
    ProposalNotFoundError,
    ProposalTransitionError,
    ProposalValidationError,
)

logger = logging.getLogger(__name__)

_PROPOSAL_ERROR_STATUS: tuple[tuple[type[ProposalError], int], ...] = (
    (ProposalNotFoundError, status.HTTP_404_NOT_FOUND),
    (ProposalValidationError, status.HTTP_400_BAD_REQUEST),
    (InvalidSignatureRoleError, status.HTTP_400_BAD_REQUEST),
    (ProposalAccessDeniedError, status.HTTP_403_FORBIDDEN),
    (ProposalLockedError, status.HTTP_423_LOCKED),
    (ProposalTransitionError, status.HTTP_409_CONFLICT),
)

_ACCOUNT_ERROR_STATUS: tuple[tuple[type[AccountError], int], ...] = (
    (AccountValidationError, status.HTTP_400_BAD_REQUEST),
    (AccountAlreadyExistsError, status.HTTP_409_CONFLICT),
    (InvalidCredentialsError, status.HTTP_401_UNAUTHORIZED),
    (AuthenticationRequiredError, status.HTTP_401_UNAUTHORIZED),
)


def error_body(message: str, *, field: Optional[str] = None) -> dict[str, Any]:
    body: dict[str, Any] = {"message": message}
    if field is not None:
        body["field"] = field
    return body


def proposal_error_status(exc: ProposalError) -> int:
    for error_type, status_code in _PROPOSAL_ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def account_error_status(exc: AccountError) -> int:
    for error_type, status_code in _ACCOUNT_ERROR_STATUS:
        if isinstance(exc, error_type):
            return status_code
    return status.HTTP_500_INTERNAL_SERVER_ERROR


def _validation_field(loc: tuple[Any, ...]) -> Optional[str]:
    parts = [str(part) for part in loc if part not in {"body", "path", "query", "cookie"}]
    return ".".join(parts) or None


def register_error_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def _request_validation_error(
        _request: Request, exc: RequestValidationError
    ) -> JSONResponse:
        errors = exc.errors()
        first = errors[0] if errors else {"msg": "Invalid request", "loc": ()}
        return JSONResponse(
            status_code=status.HTTP_400_BAD_REQUEST,
            content=error_body(
                str(first.get("msg", "Invalid request")),
                field=_validation_field(tuple(first.get("loc", ()))),
            ),
        )

    @app.exception_handler(ProposalError)
    async def _proposal_error(_request: Request, exc: ProposalError) -> JSONResponse:
        field = exc.field if isinstance(exc, ProposalValidationError) else None
        return JSONResponse(
            status_code=proposal_error_status(exc),
            content=error_body(str(exc), field=field),
        )

    @app.exception_handler(AccountError)
    async def _account_error(_request: Request, exc: AccountError) -> JSONResponse:
        field = exc.field if isinstance(exc, AccountValidationError) else None
        return JSONResponse(
            status_code=account_error_status(exc),
            content=error_body(str(exc), field=field),
        )

    @app.exception_handler(Exception)
    async def _unhandled_exception(request: Request, exc: Exception) -> JSONResponse:
        logger.exception(
            "Unhandled exception while serving request",
            exc_info=exc,
            extra={"extra_fields": {"endpoint": request.url.path}},
        )
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content=error_body("Internal server error"),
        )
