"""
FastAPI application entry point for the Call Time backend.

This module initializes the FastAPI application with:
- Signed cookie sessions (when SESSION_SECRET_KEY is configured)
- CORS middleware for the frontend
- Exception handlers for consistent error responses
- Logging configuration

Environment Variables:
    CALLTIME_DB_URL: Database URL (default: local SQLite file)
    CALLTIME_ENV: Environment (production/development, default: development)
    CALLTIME_LOG_LEVEL: Log level (DEBUG/INFO/WARNING/ERROR/CRITICAL, default: INFO)
    SESSION_SECRET_KEY: Secret for signing session cookies
"""

from contextlib import asynccontextmanager
from typing import Dict, Any

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse
from fastapi.middleware.cors import CORSMiddleware
from pydantic import ValidationError
from sqlalchemy.exc import SQLAlchemyError
from starlette.middleware.sessions import SessionMiddleware

from backend.src.config.settings import get_settings
from backend.src.config.session import get_session_settings
from backend.src.db.database import dispose_engine
from backend.src.utils.logging_config import init_logging, get_logger


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events:
    - Startup: Log configuration warnings
    - Shutdown: Dispose database connections

    Args:
        app: FastAPI application instance

    Yields:
        Control to the application
    """
    logger = get_logger("api")
    logger.info("Starting Call Time backend application")

    if not get_session_settings().is_configured:
        logger.warning("SESSION_SECRET_KEY is not set; sign-in sessions are disabled")

    yield

    logger.info("Shutting down Call Time backend application")
    dispose_engine()


# Initialize logging before creating app
init_logging()

app = FastAPI(
    title="Call Time API",
    description="Backend API for scheduling rehearsals and shows within groups.",
    version="1.0.0",
    lifespan=lifespan,
    docs_url="/docs",
    redoc_url="/redoc",
    openapi_url="/openapi.json",
)


app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().cors_origins_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

_session_settings = get_session_settings()
if _session_settings.is_configured:
    app.add_middleware(
        SessionMiddleware,
        secret_key=_session_settings.session_secret_key,
        session_cookie=_session_settings.session_cookie_name,
        max_age=_session_settings.session_max_age,
        same_site=_session_settings.session_same_site,
        https_only=_session_settings.session_https_only,
    )


# Exception handlers


@app.exception_handler(ValidationError)
async def validation_exception_handler(
    request: Request, exc: ValidationError
) -> JSONResponse:
    """Handle Pydantic validation errors."""
    logger = get_logger("api")
    logger.warning(
        "Validation error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "errors": exc.errors(),
        }
    )

    return JSONResponse(
        status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
        content={
            "error": "Validation Error",
            "message": "Request validation failed",
            "details": exc.errors(),
        }
    )


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(
    request: Request, exc: SQLAlchemyError
) -> JSONResponse:
    """
    Handle SQLAlchemy database errors.

    Services roll back before re-raising, so this only shapes the response.
    """
    logger = get_logger("db")
    logger.error(
        "Database error",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error": str(exc),
        }
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Database Error",
            "message": "An error occurred while accessing the database. "
                       "Please try again later.",
        }
    )


@app.exception_handler(Exception)
async def generic_exception_handler(
    request: Request, exc: Exception
) -> JSONResponse:
    """Handle all other unhandled exceptions."""
    logger = get_logger("api")
    logger.error(
        "Unhandled exception",
        extra={
            "path": request.url.path,
            "method": request.method,
            "error_type": type(exc).__name__,
            "error": str(exc),
        },
        exc_info=True,
    )

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error": "Internal Server Error",
            "message": "An unexpected error occurred. Please try again later.",
        }
    )


@app.get("/health", tags=["Health"])
async def health_check() -> Dict[str, Any]:
    """Health check endpoint."""
    return {
        "status": "healthy",
        "service": "calltime-backend",
        "version": "1.0.0",
    }


# API routers
from backend.src.api import account

app.include_router(account.router, prefix="/api")
