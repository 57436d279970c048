"""FastAPI app factory with health endpoint and typed error handling.

``create_app`` wires explicitly constructed dependencies (settings, identity
verifier, session factory) onto ``app.state``; tests pass their own.
"""
from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timezone

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker
from starlette.exceptions import HTTPException as StarletteHTTPException

from .auth import IdentityVerifier, SupabaseIdentityVerifier
from .config import Settings, get_settings
from .db import build_engine, build_session_factory
from .errors import AppError, ErrorKind, PersistenceError
from .logging_config import setup_logging
from .routes import ROUTERS
from .schemas import ErrorResponse, HealthResponse

logger = logging.getLogger(__name__)

STATUS_BY_KIND: dict[ErrorKind, int] = {
    ErrorKind.UNAUTHORIZED: status.HTTP_401_UNAUTHORIZED,
    ErrorKind.VALIDATION: status.HTTP_400_BAD_REQUEST,
    ErrorKind.INVALID_STATE: status.HTTP_400_BAD_REQUEST,
    ErrorKind.NOT_FOUND: status.HTTP_404_NOT_FOUND,
    ErrorKind.PERSISTENCE: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _error_response(status_code: int, body: ErrorResponse, headers: dict[str, str] | None = None) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content=body.model_dump(mode="json", exclude_none=True),
        headers=headers,
    )


def register_exception_handlers(app: FastAPI) -> None:
    """Render every failure as ``{"error", "message"?, "details"?}``."""

    @app.exception_handler(AppError)
    async def app_error_handler(request: Request, exc: AppError):
        status_code = STATUS_BY_KIND[exc.kind]
        if isinstance(exc, PersistenceError):
            logger.error(
                f"Persistence error on {request.method} {request.url.path}: {exc.cause}",
                extra={"operation": exc.operation, "entity_id": exc.entity_id},
            )
        else:
            logger.debug(f"{exc.kind.value} on {request.method} {request.url.path}: {exc.message}")

        headers = {"WWW-Authenticate": "Bearer"} if exc.kind is ErrorKind.UNAUTHORIZED else None
        return _error_response(
            status_code,
            ErrorResponse(error=exc.kind.value, message=exc.message, details=exc.details),
            headers,
        )

    @app.exception_handler(RequestValidationError)
    async def request_validation_handler(request: Request, exc: RequestValidationError):
        details = [
            {"loc": list(error.get("loc", ())), "msg": error.get("msg"), "type": error.get("type")}
            for error in exc.errors()
        ]
        return _error_response(
            status.HTTP_400_BAD_REQUEST,
            ErrorResponse(error=ErrorKind.VALIDATION.value, message="Invalid request data", details=details),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_error_handler(request: Request, exc: StarletteHTTPException):
        return _error_response(
            exc.status_code,
            ErrorResponse(error="http_error", message=str(exc.detail)),
            getattr(exc, "headers", None),
        )

    @app.exception_handler(Exception)
    async def unexpected_error_handler(request: Request, exc: Exception):
        logger.error(f"Unexpected error on {request.method} {request.url.path}: {exc}", exc_info=exc)
        return _error_response(
            status.HTTP_500_INTERNAL_SERVER_ERROR,
            ErrorResponse(error="internal_error", message="An unexpected error occurred"),
        )


def create_app(
    settings: Settings | None = None,
    *,
    verifier: IdentityVerifier | None = None,
    session_factory: async_sessionmaker[AsyncSession] | None = None,
) -> FastAPI:
    """Build the application.

    Args:
        settings: Validated settings; loaded from the environment when omitted
        verifier: Identity verifier; defaults to the Supabase-backed one
        session_factory: Async session factory; defaults to one bound to ``settings.db``

    Returns:
        Configured FastAPI application
    """
    settings = settings or get_settings()

    engine = None
    if session_factory is None:
        engine = build_engine(settings.db)
        session_factory = build_session_factory(engine)
    if verifier is None:
        verifier = SupabaseIdentityVerifier(settings.auth)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Lifespan context manager for startup/shutdown logic."""
        # Startup
        setup_logging(settings.logging)
        logger.info(f"{settings.app_name} v{settings.version} starting ({settings.environment.value})")

        yield

        # Shutdown
        logger.info("Application shutting down")
        aclose = getattr(verifier, "aclose", None)
        if aclose is not None:
            await aclose()
        if engine is not None:
            await engine.dispose()

    app = FastAPI(
        title=settings.app_name,
        version=settings.version,
        description="Task candidate triage feed and task management API",
        lifespan=lifespan,
    )
    app.state.settings = settings
    app.state.verifier = verifier
    app.state.session_factory = session_factory

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials="*" not in settings.cors_origins,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_exception_handlers(app)

    @app.get("/health", response_model=HealthResponse, tags=["health"])
    async def health() -> HealthResponse:
        """Liveness probe; does not touch the store."""
        return HealthResponse(
            status="ok",
            timestamp=datetime.now(timezone.utc),
            version=settings.version,
        )

    for router in ROUTERS:
        app.include_router(router)

    return app
