"""FastAPI application initialization."""

from contextlib import asynccontextmanager
from datetime import datetime, timezone
from uuid import uuid4

from dotenv import load_dotenv

# Load environment variables before anything else
load_dotenv()

import structlog
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from authserver import database
from authserver.api.accounts import router as accounts_router
from authserver.api.auth import router as auth_router
from authserver.api.middleware import CorrelationIdMiddleware
from authserver.api.roles import router as roles_router
from authserver.api.tokens import router as tokens_router
from authserver.api.user_roles import router as user_roles_router
from authserver.api.users import router as users_router
from authserver.config import get_settings
from authserver.exceptions import (
    ConflictError,
    InvalidSortParameterError,
    MissingCapabilityError,
)
from authserver.services.logging_service import configure_logging

logger = structlog.get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the pool and migrate the schema; close the pool on shutdown.

    A missing database does not stop startup. ``/health`` then reports the
    database as unhealthy, and every route under ``/accounts``, ``/auth``, ``/tokens``,
    ``/users``, ``/roles`` and ``/user-roles`` fails until it is reachable.
    """
    settings = get_settings()
    configure_logging(settings.log_level, json_output=settings.log_json)

    try:
        await database.init_database()
        applied = await database.run_migrations()
        logger.info("database_initialized", migrations=applied)
    except Exception as e:
        logger.warning(
            "database_initialization_failed",
            error=str(e),
            note="Registration, login and user, role and token administration are unavailable",
        )

    logger.info(
        "application_started",
        log_level=settings.log_level,
        email_enabled=settings.email_enabled,
    )

    yield

    await database.close_database()
    logger.info("application_shutdown")


app = FastAPI(
    title="Authorization Server",
    description="Account lifecycle, JWT issuance and token management",
    version="0.1.0",
    lifespan=lifespan,
)


def _correlation_id(request: Request) -> str:
    return getattr(request.state, "correlation_id", None) or str(uuid4())


def _error(status_code: int, error: str, detail: str, correlation_id: str) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "detail": detail,
            "correlation_id": correlation_id,
        },
        headers={"X-Correlation-Id": correlation_id},
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Report the first invalid field as a 400 with the correlation id."""
    correlation_id = _correlation_id(request)

    errors = exc.errors()
    if errors:
        first_error = errors[0]
        field = ".".join(str(loc) for loc in first_error.get("loc", ["unknown"]))
        message = first_error.get("msg", "Validation failed")
        detail = f"Field '{field}': {message}"
    else:
        detail = "Request validation failed"

    logger.warning("validation_error", correlation_id=correlation_id, detail=detail)
    return _error(400, "Validation error", detail, correlation_id)


@app.exception_handler(InvalidSortParameterError)
async def invalid_sort_handler(
    request: Request, exc: InvalidSortParameterError
) -> JSONResponse:
    correlation_id = _correlation_id(request)
    logger.warning(
        "invalid_sort_parameter", correlation_id=correlation_id, detail=str(exc)
    )
    return _error(400, "Invalid sort parameter", str(exc), correlation_id)


@app.exception_handler(ConflictError)
async def conflict_handler(request: Request, exc: ConflictError) -> JSONResponse:
    correlation_id = _correlation_id(request)
    logger.warning("conflict", correlation_id=correlation_id, detail=str(exc))
    return _error(409, "Conflict", str(exc), correlation_id)


@app.exception_handler(MissingCapabilityError)
async def missing_capability_handler(
    request: Request, exc: MissingCapabilityError
) -> JSONResponse:
    correlation_id = _correlation_id(request)
    logger.error(
        "missing_capability", correlation_id=correlation_id, detail=str(exc)
    )
    return _error(500, "Server misconfiguration", str(exc), correlation_id)


@app.get("/health")
async def health_check() -> dict:
    """Liveness plus whether accounts can be registered.

    ``database`` is "healthy" only when the pool answers and the default role
    granted to new accounts is seeded.
    """
    db_healthy = await database.health_check()
    return {
        "status": "healthy",
        "timestamp": datetime.now(timezone.utc).isoformat(),
        "database": "healthy" if db_healthy else "unhealthy",
    }


app.add_middleware(CorrelationIdMiddleware)

app.include_router(accounts_router)
app.include_router(auth_router)
app.include_router(tokens_router)
app.include_router(users_router)
app.include_router(roles_router)
app.include_router(user_roles_router)
