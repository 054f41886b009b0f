"""FastAPI application exposing contact identification over HTTP.

Only this module maps domain errors to status codes. Every failure body has
the same ``{"error": ...}`` shape; internal details stay in the logs.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from logging import getLogger
from typing import TYPE_CHECKING

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from identipy.adapters.sqlalchemy.unit_of_work import (
    SqlAlchemyContactUnitOfWork,
    StartupError,
    is_started,
    shutdown,
    startup,
)
from identipy.app import build_reconciler, identify_contact
from identipy.domain.errors import (
    ConflictError,
    IntegrityViolation,
    StoreUnavailable,
    ValidationError,
)
from identipy.ui.schemas import ErrorResponse, HealthResponse, IdentifyPayload, IdentifyResponse

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from identipy.domain.reconciliation import IdentityReconciler

log = getLogger(__name__)

INTERNAL_ERROR = "Internal server error"
UNAVAILABLE_ERROR = "Service temporarily unavailable"
INVALID_BODY_ERROR = "Request body must be a JSON object with email and/or phoneNumber strings"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content=ErrorResponse(error=message).model_dump())


def create_app(
    *,
    reconciler: IdentityReconciler | None = None,
    manage_storage: bool = True,
) -> FastAPI:
    """Build the HTTP application.

    With ``manage_storage`` the SQLAlchemy store is started in the lifespan and
    disposed at shutdown. Pass ``False`` when the caller owns that lifecycle:
    the app then never starts the store itself and refuses to start unless
    the store is already running or a ``reconciler`` is given.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        if manage_storage and not is_started():
            startup()
        if reconciler is None and not is_started():
            raise StartupError(
                "Contact store is not started; start it or pass a reconciler "
                "when manage_storage is False"
            )
        app.state.reconciler = reconciler or build_reconciler(
            unit_of_work_factory=SqlAlchemyContactUnitOfWork
        )
        log.info("identipy API ready")
        try:
            yield
        finally:
            if manage_storage:
                shutdown()
            log.info("identipy API stopped")

    app = FastAPI(title="identipy", lifespan=lifespan)
    _register_exception_handlers(app)

    @app.post("/identify", response_model=IdentifyResponse)
    def identify(payload: IdentifyPayload, request: Request) -> IdentifyResponse:
        summary = identify_contact(
            email=payload.email,
            phone=payload.phone_number,
            reconciler=request.app.state.reconciler,
        )
        return IdentifyResponse.from_summary(summary)

    @app.get("/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(status="ok" if is_started() else "starting")

    return app


def _register_exception_handlers(app: FastAPI) -> None:
    @app.exception_handler(RequestValidationError)
    async def invalid_body(_request: Request, exc: RequestValidationError) -> JSONResponse:
        log.info("Rejected malformed identify request: %s", exc.errors())
        return _error(status.HTTP_400_BAD_REQUEST, INVALID_BODY_ERROR)

    @app.exception_handler(ValidationError)
    async def missing_contact_info(_request: Request, exc: ValidationError) -> JSONResponse:
        return _error(status.HTTP_400_BAD_REQUEST, str(exc))

    @app.exception_handler(ConflictError)
    async def unresolved_conflict(_request: Request, exc: ConflictError) -> JSONResponse:
        log.warning("Identify request failed after conflict retries: %s", exc)
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, UNAVAILABLE_ERROR)

    @app.exception_handler(StoreUnavailable)
    async def store_unavailable(_request: Request, exc: StoreUnavailable) -> JSONResponse:
        log.error("Contact store unavailable: %s", exc)
        return _error(status.HTTP_503_SERVICE_UNAVAILABLE, UNAVAILABLE_ERROR)

    @app.exception_handler(IntegrityViolation)
    async def integrity_violation(_request: Request, exc: IntegrityViolation) -> JSONResponse:
        log.error("Contact graph integrity violation", exc_info=exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR)

    @app.exception_handler(Exception)
    async def unexpected(_request: Request, exc: Exception) -> JSONResponse:
        log.error("Unexpected error while handling request", exc_info=exc)
        return _error(status.HTTP_500_INTERNAL_SERVER_ERROR, INTERNAL_ERROR)
