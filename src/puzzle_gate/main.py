# src/puzzle_gate/main.py
"""Main entry point for the Puzzle Gate application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError

from puzzle_gate.api.v1 import (
    admin_answers_router,
    admin_qr_router,
    answers_router,
    auth_router,
    captcha_router,
    minigames_router,
    progress_router,
    sessions_router,
    users_router,
)
from puzzle_gate.api.v1.dependencies import SessionDep
from puzzle_gate.core.i18n import get_locale_from_header, t
from puzzle_gate.core.logging import configure_logging
from puzzle_gate.core.settings import settings
from puzzle_gate.middleware import RequestLoggingMiddleware

logger = logging.getLogger(__name__)

configure_logging()

# Initialize FastAPI app
app = FastAPI(
    title="Puzzle Gate API",
    description="Phone OTP sign-in and QR-gated minigame access",
    version=settings.app_version,
)

# Add CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=settings.cors_allow_credentials,
    allow_methods=settings.cors_allow_methods,
    allow_headers=settings.cors_allow_headers,
)

# Add GZip middleware for compression
app.add_middleware(GZipMiddleware)
app.add_middleware(RequestLoggingMiddleware)

# Include API routers
app.include_router(auth_router, prefix="/api/v1")
app.include_router(minigames_router, prefix="/api/v1")
app.include_router(captcha_router, prefix="/api/v1")
app.include_router(users_router, prefix="/api/v1")
app.include_router(answers_router, prefix="/api/v1")
app.include_router(progress_router, prefix="/api/v1")
app.include_router(sessions_router, prefix="/api/v1")
app.include_router(admin_qr_router, prefix="/api/v1")
app.include_router(admin_answers_router, prefix="/api/v1")


def _internal_error(request: Request, exc: Exception) -> JSONResponse:
    locale = get_locale_from_header(request.headers.get("accept-language"))
    content: dict[str, object] = {"success": False, "detail": t("errors.internal_error", locale)}
    if settings.debug:
        content["error"] = f"{type(exc).__name__}: {exc}"
    return JSONResponse(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, content=content)


@app.exception_handler(SQLAlchemyError)
async def database_exception_handler(request: Request, exc: SQLAlchemyError) -> JSONResponse:
    logger.error("Database error on %s %s", request.method, request.url.path, exc_info=exc)
    return _internal_error(request, exc)


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.error("Unhandled error on %s %s", request.method, request.url.path, exc_info=exc)
    return _internal_error(request, exc)


@app.get("/health")
def health_check(db: SessionDep) -> dict[str, str]:
    """Health check endpoint to verify the service and its database are reachable."""
    try:
        db.execute(text("SELECT 1"))
        database = "healthy"
    except SQLAlchemyError as exc:
        logger.warning("Health check database query failed: %s", exc)
        database = "unhealthy"
    return {
        "status": "ok" if database == "healthy" else "degraded",
        "database": database,
        "version": settings.app_version,
    }


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Phone OTP sign-in and QR-gated minigame access",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("puzzle_gate.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
