# src/gipfladder/main.py

"""Main FastAPI application for GIPF Ladder."""

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from .api import match, player, ranking
from .db.session import engine
from .exceptions import (
    ConcurrentUpdateError,
    ConflictError,
    GipfLadderError,
    RatingEngineError,
    ResourceNotFoundError,
    StorageError,
    ValidationError,
)
from .middleware.logging import RequestLoggingMiddleware

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """FastAPI lifespan context manager for startup and shutdown events."""
    yield
    # Shutdown: Dispose of database connections gracefully
    await engine.dispose()


app = FastAPI(title="GIPF Ladder API", lifespan=lifespan)

# Add middleware (order matters - first added = outermost)
app.add_middleware(RequestLoggingMiddleware)


def _error_response(status_code: int, exc: GipfLadderError) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"detail": exc.message, "error_type": type(exc).__name__},
    )


# =============================================================================
# Global Exception Handlers
# =============================================================================


@app.exception_handler(RequestValidationError)
async def request_validation_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """Malformed request body or parameters -> 422.

    The rejected input is left out of the response: it may not be valid JSON
    (a non-finite number, for one).
    """
    errors = [
        {key: value for key, value in error.items() if key not in ("input", "ctx")}
        for error in exc.errors()
    ]
    logger.warning("Request validation failed: %d error(s)", len(errors))
    return JSONResponse(status_code=422, content={"detail": jsonable_encoder(errors)})


@app.exception_handler(ResourceNotFoundError)
async def resource_not_found_handler(
    request: Request, exc: ResourceNotFoundError
) -> JSONResponse:
    """Handle all resource not found errors -> 404."""
    logger.warning("Resource not found: %s", exc.message, extra=exc.details)
    return _error_response(404, exc)


@app.exception_handler(ValidationError)
async def validation_error_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """Handle all validation errors -> 422."""
    logger.warning("Validation error: %s", exc.message, extra=exc.details)
    return _error_response(422, exc)


@app.exception_handler(ConflictError)
async def conflict_error_handler(request: Request, exc: ConflictError) -> JSONResponse:
    """Handle uniqueness violations -> 409."""
    logger.warning("Conflict: %s", exc.message, extra=exc.details)
    return _error_response(409, exc)


@app.exception_handler(ConcurrentUpdateError)
async def concurrent_update_handler(
    request: Request, exc: ConcurrentUpdateError
) -> JSONResponse:
    """A row changed under the request; the caller may retry -> 409."""
    logger.warning("Concurrent update: %s", exc.message, extra=exc.details)
    return _error_response(409, exc)


@app.exception_handler(StorageError)
async def storage_error_handler(request: Request, exc: StorageError) -> JSONResponse:
    """Backing store unavailable or failing -> 503."""
    logger.error("Storage error: %s", exc.message, extra=exc.details, exc_info=exc)
    return JSONResponse(
        status_code=503,
        content={
            "detail": "The database is unavailable",
            "error_type": type(exc).__name__,
        },
    )


@app.exception_handler(RatingEngineError)
async def rating_engine_error_handler(
    request: Request, exc: RatingEngineError
) -> JSONResponse:
    """Handle rating engine errors -> 500."""
    logger.error(
        "Rating engine error: %s", exc.message, extra=exc.details, exc_info=exc
    )
    return JSONResponse(
        status_code=500,
        content={
            "detail": "Rating calculation failed",
            "error_type": type(exc).__name__,
        },
    )


@app.exception_handler(GipfLadderError)
async def gipfladder_error_handler(
    request: Request, exc: GipfLadderError
) -> JSONResponse:
    """Catch-all for any other GIPF Ladder errors -> 500."""
    logger.error("GIPF Ladder error: %s", exc.message, extra=exc.details, exc_info=exc)
    return _error_response(500, exc)


# Include routers into the main application
app.include_router(player.router)
app.include_router(match.router)
app.include_router(ranking.router)


@app.get("/health", tags=["Health"])
async def health_check() -> dict[str, str]:
    """Health check endpoint for monitoring."""
    return {"status": "healthy"}
