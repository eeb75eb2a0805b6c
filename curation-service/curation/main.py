"""
Main FastAPI application for the place curation service.

Features:
1. REST API for places, suggestions and edit history (/api/v1)
2. Structured logging with correlation tracking
3. Liveness and storage readiness checks
"""
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
import uuid
import time

from curation.config import settings
from curation.core.database import db_manager
from curation.core.logger import setup_logging
from curation.services.curation_service import CurationService
from curation.services.field_path import InvalidPathError, PathConflictError
from curation.services.place_persistence import (
    PlaceCorruptedError,
    PlaceNotFoundError,
    build_persistence,
)
from curation.services.record_mutator import RecordMutator
from curation.services.resolution_policy import ResolutionPolicy
from curation.services.suggestion_store import (
    SuggestionAlreadyResolvedError,
    SuggestionNotFoundError,
)
from curation.utils.logging import get_logger, log_context

from curation.api.v1 import health, places

logger = get_logger(__name__)


def build_service() -> CurationService:
    """Wire the curation service from settings."""
    persistence = build_persistence(settings, db_manager=db_manager)
    mutator = RecordMutator(
        policy=ResolutionPolicy.from_settings(settings),
        strict=settings.strict_resolution,
    )
    return CurationService(persistence, mutator)


# ============================================================================
# EXCEPTION HANDLERS
# ============================================================================

def _error_response(request: Request, status_code: int, error: str, exc: Exception) -> JSONResponse:
    logger.warning(
        "app.exception.handled",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__,
            "status_code": status_code,
        },
    )
    return JSONResponse(
        status_code=status_code,
        content={
            "error": error,
            "message": str(exc),
            "correlation_id": request.headers.get("X-Correlation-ID", "unknown"),
        },
    )


async def invalid_path_handler(request: Request, exc: InvalidPathError):
    return _error_response(request, 422, "invalid_field_path", exc)


async def path_conflict_handler(request: Request, exc: PathConflictError):
    return _error_response(request, 422, "field_path_conflict", exc)


async def place_not_found_handler(request: Request, exc: PlaceNotFoundError):
    return _error_response(request, status.HTTP_404_NOT_FOUND, "place_not_found", exc)


async def place_corrupted_handler(request: Request, exc: PlaceCorruptedError):
    return _error_response(request, status.HTTP_500_INTERNAL_SERVER_ERROR, "place_corrupted", exc)


async def suggestion_not_found_handler(request: Request, exc: SuggestionNotFoundError):
    return _error_response(request, status.HTTP_404_NOT_FOUND, "suggestion_not_found", exc)


async def suggestion_resolved_handler(request: Request, exc: SuggestionAlreadyResolvedError):
    return _error_response(request, status.HTTP_409_CONFLICT, "suggestion_already_resolved", exc)


async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler with structured logging"""

    logger.error(
        "app.exception.unhandled",
        extra={
            "path": request.url.path,
            "method": request.method,
            "exception_type": type(exc).__name__
        },
        exc_info=exc
    )

    return JSONResponse(
        status_code=500,
        content={
            "error": "internal_server_error",
            "message": "An unexpected error occurred. Please try again later.",
            "correlation_id": request.headers.get("X-Correlation-ID", "unknown")
        }
    )


# ============================================================================
# APPLICATION FACTORY
# ============================================================================

def create_app(service: Optional[CurationService] = None) -> FastAPI:
    """
    Build the FastAPI application.

    Args:
        service: Pre-wired curation service (tests). When omitted the
            lifespan builds one from settings and owns its backends.
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        owns_service = service is None

        with log_context(correlation_id=str(uuid.uuid4())):
            if owns_service:
                setup_logging()

            logger.info(
                "app.startup.started",
                extra={
                    "service": settings.app_name,
                    "version": settings.app_version,
                    "storage_backend": settings.storage_backend,
                    "debug": settings.debug
                }
            )

            if owns_service and settings.storage_backend == "postgres":
                try:
                    await db_manager.connect()
                    logger.info("app.startup.postgresql.connected")
                except Exception as e:
                    logger.error("app.startup.postgresql.failed", exc_info=e)
                    raise

            app.state.curation_service = service or build_service()
            logger.info("app.startup.completed", extra={"status": "ready"})

        yield

        with log_context(correlation_id=str(uuid.uuid4())):
            logger.info("app.shutdown.started")

            outcomes = await app.state.curation_service.drain()
            failed = [o.place_id for o in outcomes if not o.succeeded]
            logger.info(
                "app.shutdown.saves.drained",
                extra={"saves": len(outcomes), "failed": failed}
            )

            if owns_service and db_manager.is_connected:
                await db_manager.disconnect()
                logger.info("app.shutdown.postgresql.disconnected")

            logger.info("app.shutdown.completed")

    app = FastAPI(
        title=settings.app_name,
        version=settings.app_version,
        description="Collaborative field suggestions and edit history for Place documents",
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
    )

    if service is not None:
        # Routes are usable even when the lifespan is not run
        app.state.curation_service = service

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.middleware("http")
    async def logging_middleware(request: Request, call_next):
        """Log all HTTP requests with correlation tracking"""

        correlation_id = request.headers.get("X-Correlation-ID") or str(uuid.uuid4())
        start_time = time.time()

        with log_context(correlation_id=correlation_id):
            logger.info(
                "http.request.received",
                extra={
                    "path": request.url.path,
                    "method": request.method,
                    "client_ip": request.client.host if request.client else None,
                }
            )

            try:
                response = await call_next(request)
            except Exception as e:
                logger.error(
                    "http.request.failed",
                    extra={
                        "path": request.url.path,
                        "method": request.method,
                        "duration_ms": (time.time() - start_time) * 1000
                    },
                    exc_info=e
                )
                raise

            logger.performance(
                "http.request.completed",
                duration_ms=(time.time() - start_time) * 1000,
                extra={
                    "status_code": response.status_code,
                    "path": request.url.path,
                    "method": request.method
                }
            )

            response.headers["X-Correlation-ID"] = correlation_id
            return response

    app.add_exception_handler(InvalidPathError, invalid_path_handler)
    app.add_exception_handler(PathConflictError, path_conflict_handler)
    app.add_exception_handler(PlaceNotFoundError, place_not_found_handler)
    app.add_exception_handler(PlaceCorruptedError, place_corrupted_handler)
    app.add_exception_handler(SuggestionNotFoundError, suggestion_not_found_handler)
    app.add_exception_handler(SuggestionAlreadyResolvedError, suggestion_resolved_handler)
    app.add_exception_handler(Exception, global_exception_handler)

    app.include_router(health.router, tags=["Health"])
    app.include_router(places.router, prefix="/api/v1", tags=["Places"])

    @app.get("/")
    async def root():
        """Root endpoint with service info"""
        return {
            "service": settings.app_name,
            "version": settings.app_version,
            "status": "running",
            "docs": "/docs",
            "health": {
                "liveness": "/health",
                "readiness": "/health/ready"
            }
        }

    return app


app = create_app()


# ============================================================================
# DEVELOPMENT SERVER
# ============================================================================

if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "curation.main:app",
        host="0.0.0.0",
        port=8000,
        reload=settings.debug,
        log_level=settings.log_level.lower(),
    )
