"""FastAPI application entry point."""

from contextlib import asynccontextmanager
from typing import AsyncGenerator

import structlog
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded
from starlette.middleware.sessions import SessionMiddleware

from app.api.pages import router as pages_router
from app.api.v1.router import router as v1_router
from app.core.config import get_settings
from app.core.database import close_db
from app.core.errors import AppError, app_error_handler
from app.core.middleware import RouteGuardMiddleware, SecurityHeadersMiddleware
from app.core.observability import (
    RequestIDMiddleware,
    RequestLoggingMiddleware,
    setup_observability,
)
from app.core.rate_limit import limiter

settings = get_settings()

# Get logger (will be configured by setup_observability)
logger = structlog.get_logger()


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Starting Newsdesk API", version=settings.app_version)
    yield
    logger.info("Shutting down Newsdesk API")
    await close_db()
    logger.info("Database connections closed")


app = FastAPI(
    title=settings.app_name,
    version=settings.app_version,
    description="News aggregation backend: OAuth sign-in, bookmarks and summaries",
    lifespan=lifespan,
)

# Set up observability (logging, tracing, metrics, Sentry)
setup_observability(app)

# Error handlers
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)
app.add_exception_handler(AppError, app_error_handler)

# Middleware stack (first added = innermost)

# Edge layer of the route guard, runs just before routing
app.add_middleware(RouteGuardMiddleware, protected_routes=settings.protected_routes)

app.add_middleware(RequestLoggingMiddleware)
app.add_middleware(RequestIDMiddleware)

app.add_middleware(
    SecurityHeadersMiddleware,
    enable_hsts=not settings.debug,  # Enable HSTS in production
)

# Session middleware (required for OAuth state storage)
app.add_middleware(
    SessionMiddleware,
    secret_key=settings.secret_key,
    session_cookie="newsdesk_oauth",
    max_age=3600,  # 1 hour for OAuth flow
    same_site="lax",
    https_only=not settings.debug,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_credentials=True,
    allow_methods=["GET", "POST", "DELETE", "OPTIONS"],
    allow_headers=["*"],
    expose_headers=["X-Request-ID"],
)

# Include routers
app.include_router(v1_router)
app.include_router(pages_router)


@app.get("/", include_in_schema=False)
async def root() -> dict[str, str]:
    """Root endpoint."""
    return {"message": "Welcome to Newsdesk API", "version": settings.app_version}
