"""
FastAPI application for the Citizenly API.

Provides legislative sync/cron, the personalized legislative feed,
constituent polls, notifications and session auth.

Responsibility: Main API application setup and configuration
"""

# Load .env BEFORE importing settings (critical for pydantic-settings)
from dotenv import load_dotenv
load_dotenv('.env', override=True)

from datetime import datetime
from typing import Dict, Type

from fastapi import FastAPI, Request, status
from starlette.exceptions import HTTPException
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from sqlalchemy import text
import logging

from src.cache.legislative_cache import legislative_cache
from src.config import settings
from src.db.session import db
from src.exceptions import (
    AuthenticationError,
    CitizenlyError,
    ConfigurationError,
    ConflictError,
    LegiScanAPIError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitExceededError,
    SyncAlreadyRunningError,
    ValidationError,
)
from api.middleware import BearerTokenMiddleware

# Configure logging
logging.basicConfig(
    level=settings.app.log_level.upper(),
    format='%(asctime)s - %(name)s - %(levelname)s - %(message)s'
)

logger = logging.getLogger(__name__)

# Create FastAPI app
app = FastAPI(
    title=f"{settings.app.app_name} API",
    description="Legislative tracking and constituent polling API",
    version=settings.app.app_version,
    docs_url="/docs",
    redoc_url="/redoc"
)

logger.info(f"CORS Origins configured: {settings.app.cors_origins}")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.app.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "PUT", "DELETE", "OPTIONS", "PATCH"],
    allow_headers=["*", "Authorization"],
    max_age=3600,  # Cache preflight for 1 hour
)

app.add_middleware(BearerTokenMiddleware)


@app.on_event("startup")
async def startup_event():
    """Initialize services on startup"""
    logger.info(f"Starting {settings.app.app_name} API...")
    logger.info(f"Environment: {settings.app.environment}")
    logger.info(f"Debug mode: {settings.app.debug}")
    try:
        await db.initialize()
    except Exception as e:
        logger.error(f"Database initialization failed: {e}")


@app.on_event("shutdown")
async def shutdown_event():
    """Cleanup on shutdown"""
    logger.info(f"Shutting down {settings.app.app_name} API...")
    await legislative_cache.close()
    await db.close()


@app.get("/")
async def root():
    """Root endpoint - API information."""
    return {
        "name": f"{settings.app.app_name} API",
        "version": settings.app.app_version,
        "status": "operational",
        "endpoints": {
            "legislative_sync": "/api/v1/legislative/sync",
            "cron": "/api/v1/cron/sync-bills",
            "feed": "/api/v1/legislative/feed",
            "interests": "/api/v1/legislative/interests",
            "polls": "/api/v1/polls",
            "notifications": "/api/v1/notifications",
            "auth": "/api/v1/auth",
            "docs": "/docs"
        }
    }


async def check_database() -> bool:
    """True when a trivial query succeeds."""
    try:
        if not db.is_initialized:
            await db.initialize()
        async with db.session() as session:
            await session.execute(text("SELECT 1"))
        return True
    except Exception as e:
        logger.error(f"Database health check failed: {e}")
        return False


@app.get("/health")
async def health_check():
    """Health check endpoint for monitoring."""
    database_ok = await check_database()
    cache_ok = await legislative_cache.health_check()

    body = {
        "status": "healthy" if database_ok else "unhealthy",
        "timestamp": datetime.utcnow().isoformat(),
        "version": settings.app.app_version,
        "environment": settings.app.environment.value,
        "database": {"status": "connected" if database_ok else "disconnected"},
        "services": {"cache": "connected" if cache_ok else "unavailable"},
    }
    if not database_ok:
        return JSONResponse(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, content=body)
    return body


# MARK: - Exception handlers

ERROR_STATUS: Dict[Type[CitizenlyError], int] = {
    ValidationError: status.HTTP_400_BAD_REQUEST,
    AuthenticationError: status.HTTP_401_UNAUTHORIZED,
    PermissionDeniedError: status.HTTP_403_FORBIDDEN,
    NotFoundError: status.HTTP_404_NOT_FOUND,
    ConflictError: status.HTTP_409_CONFLICT,
    SyncAlreadyRunningError: status.HTTP_409_CONFLICT,
    RateLimitExceededError: status.HTTP_429_TOO_MANY_REQUESTS,
    LegiScanAPIError: status.HTTP_502_BAD_GATEWAY,
    ConfigurationError: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


@app.exception_handler(CitizenlyError)
async def domain_exception_handler(request: Request, exc: CitizenlyError):
    """Map domain errors to status codes with an ``{"error": message}`` body."""
    status_code = next(
        (code for error_type, code in ERROR_STATUS.items() if isinstance(exc, error_type)),
        status.HTTP_500_INTERNAL_SERVER_ERROR
    )

    content = {"error": str(exc)}
    headers = None

    if isinstance(exc, ValidationError) and exc.field:
        content["field"] = exc.field
    if isinstance(exc, RateLimitExceededError):
        headers = {"Retry-After": str(exc.retry_after)}
    if status_code >= 500:
        logger.error(f"{type(exc).__name__} on {request.url.path}: {exc}")

    return JSONResponse(status_code=status_code, content=content, headers=headers)


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"error": exc.detail},
        headers=getattr(exc, "headers", None)
    )


@app.exception_handler(Exception)
async def global_exception_handler(request, exc):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {str(exc)}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "error": "Internal server error",
            "detail": str(exc) if settings.app.debug else "An unexpected error occurred"
        }
    )


# Import and include routers
from api.v1.endpoints import (
    auth,
    cron,
    legislative_feed,
    legislative_sync,
    notifications,
    polls,
)

for module in (legislative_sync, cron, legislative_feed, auth, polls, notifications):
    app.include_router(module.router, prefix="/api/v1")


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "api.main:app",
        host=settings.app.api_host,
        port=settings.app.api_port,
        reload=settings.app.debug
    )
