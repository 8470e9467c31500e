"""Document Review Service - Main FastAPI Application

This module creates and configures the main FastAPI application, including:
- API routers (auth, applications, users, activity logs)
- Middleware (request ID correlation, CORS)
- Exception handlers
- Health and metrics endpoints
"""

import logging
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy.exc import SQLAlchemyError

from . import __version__
from .applications.router import router as applications_router
from .audit.router import router as activity_logs_router
from .auth.router import router as auth_router
from .config import get_settings
from .observability.logging_config import configure_logging
from .observability.middleware import RequestIDMiddleware
from .observability.router import router as observability_router
from .users.router import router as users_router

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    settings = get_settings()
    logger.info("Document review API starting up...")
    logger.info(f"Environment: {settings.ENVIRONMENT}")

    yield

    logger.info("Document review API shutting down...")


async def validation_exception_handler(
    request: Request,
    exc: RequestValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors with field-level details."""
    logger.warning(f"Validation error on {request.method} {request.url.path}")
    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "validation_error",
            "message": "Request validation failed",
            "details": exc.errors(),
        },
    )


async def database_exception_handler(
    request: Request,
    exc: SQLAlchemyError
) -> JSONResponse:
    """Handle database errors.

    Logs the full error but returns a generic message to prevent
    information leakage.
    """
    logger.error(
        f"Database error on {request.method} {request.url.path}",
        exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "database_error",
            "message": "A database error occurred. Please try again later.",
        },
    )


async def generic_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    logger.error(
        f"Unhandled exception on {request.method} {request.url.path}",
        exc_info=exc
    )
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "internal_error",
            "message": "An unexpected error occurred. Please try again later.",
        },
    )


def create_app() -> FastAPI:
    """Application factory.

    Configures logging from settings, then builds the FastAPI instance with
    middleware, exception handlers and routers.
    """
    settings = get_settings()
    configure_logging(level=settings.LOG_LEVEL, json_format=settings.LOG_JSON)

    is_production = settings.ENVIRONMENT == "production"
    application = FastAPI(
        title="Document Review API",
        description="Two-stage document review and sealing service",
        version=__version__,
        docs_url=None if is_production else "/docs",
        redoc_url=None if is_production else "/redoc",
        openapi_url=None if is_production else "/openapi.json",
        lifespan=lifespan,
    )

    # Request ID Middleware (must be first for proper correlation)
    application.add_middleware(RequestIDMiddleware)
    application.add_middleware(
        CORSMiddleware,
        allow_origins=[origin.strip() for origin in settings.CORS_ORIGINS.split(",") if origin.strip()],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
        expose_headers=["X-Request-ID"],
    )

    application.add_exception_handler(RequestValidationError, validation_exception_handler)
    application.add_exception_handler(SQLAlchemyError, database_exception_handler)
    application.add_exception_handler(Exception, generic_exception_handler)

    # Observability (health, metrics)
    application.include_router(observability_router)

    application.include_router(auth_router, prefix="/api/v1")
    application.include_router(applications_router, prefix="/api/v1")
    application.include_router(users_router, prefix="/api/v1")
    application.include_router(activity_logs_router, prefix="/api/v1")

    @application.get("/", include_in_schema=False)
    async def root() -> dict[str, Any]:
        return {
            "name": "Document Review API",
            "version": __version__,
            "status": "running",
        }

    return application


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "docreview.main:app",
        host="0.0.0.0",
        port=8000,
        reload=get_settings().ENVIRONMENT == "development",
        log_level=get_settings().LOG_LEVEL.lower(),
    )
