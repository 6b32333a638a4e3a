"""Main entry point for the Townsquare application."""

from __future__ import annotations

import logging

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.middleware.gzip import GZipMiddleware
from fastapi.responses import JSONResponse

from townsquare.api.v1 import (
    channels_router,
    comments_router,
    feed_router,
    locations_router,
    notifications_router,
    posts_router,
    users_router,
    votes_router,
)
from townsquare.core.errors import TownsquareError
from townsquare.core.log import configure_logging
from townsquare.core.settings import settings
from townsquare.schemas.common import ErrorResponse

logger = logging.getLogger(__name__)

configure_logging()

# Initialize FastAPI app
app = FastAPI(
    title="Townsquare API",
    description="Location-based community boards",
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

# Include API routers
app.include_router(users_router, prefix="/api/v1")
app.include_router(locations_router, prefix="/api/v1")
app.include_router(channels_router, prefix="/api/v1")
app.include_router(posts_router, prefix="/api/v1")
app.include_router(comments_router, prefix="/api/v1")
app.include_router(votes_router, prefix="/api/v1")
app.include_router(feed_router, prefix="/api/v1")
app.include_router(notifications_router, prefix="/api/v1")


@app.exception_handler(TownsquareError)
async def handle_domain_error(request: Request, exc: TownsquareError) -> JSONResponse:
    """Render a domain failure as ``{"detail", "code"}``; causes are logged only."""
    if exc.status_code >= status.HTTP_500_INTERNAL_SERVER_ERROR:
        logger.error(
            "%s on %s %s: %s",
            exc.code,
            request.method,
            request.url.path,
            repr(exc.__cause__) if exc.__cause__ else exc.message,
        )
    else:
        logger.info("%s on %s %s: %s", exc.code, request.method, request.url.path, exc.message)
    headers = {"Retry-After": "1"} if exc.retryable else None
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(detail=exc.message, code=exc.code).model_dump(),
        headers=headers,
    )


@app.get("/health")
async def health_check() -> dict[str, str]:
    """Health check endpoint to verify the service is running."""
    return {"status": "ok"}


@app.get("/")
async def root() -> dict[str, str]:
    """Root endpoint with basic information about the API."""
    return {
        "name": settings.app_name,
        "version": settings.app_version,
        "description": "Location-based community boards",
        "docs": "/docs",
        "redoc": "/redoc",
    }


if __name__ == "__main__":
    import uvicorn
    uvicorn.run("townsquare.main:app", host="0.0.0.0", port=8000, reload=settings.debug)
