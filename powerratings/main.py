"""
Main FastAPI application for the College Basketball Power Ratings API.
"""
from contextlib import asynccontextmanager
from pathlib import Path
from typing import AsyncGenerator

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from slowapi import Limiter, _rate_limit_exceeded_handler
from slowapi.util import get_remote_address
from slowapi.errors import RateLimitExceeded
from prometheus_fastapi_instrumentator import Instrumentator

from powerratings.core.config import settings
from powerratings.core.circuit_breaker import get_all_breaker_states
from powerratings.core.logging import configure_logging, get_logger
from powerratings.core.middleware import CorrelationIdMiddleware
from powerratings.api.dependencies import close_providers
from powerratings.api.routes import backfill, overrides, ratings

# Load environment variables from .env file
from dotenv import load_dotenv
env_path = Path(__file__).parent.parent / ".env"
load_dotenv(dotenv_path=env_path)

configure_logging(level=settings.LOG_LEVEL, json_output=settings.LOG_JSON)
logger = get_logger(__name__)


def get_rate_limit_key(request: Request) -> str:
    """
    Get the rate limit key for a request.

    Uses IP address, with fallback to X-Forwarded-For for proxied requests.
    """
    forwarded = request.headers.get("X-Forwarded-For")
    if forwarded:
        return forwarded.split(",")[0].strip()
    return get_remote_address(request)


limiter = Limiter(
    key_func=get_rate_limit_key,
    default_limits=["60/minute"],
    storage_uri=settings.REDIS_URL if settings.RATE_LIMIT_STORAGE == "redis" else "memory://",
    enabled=settings.RATE_LIMIT_ENABLED
)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator:
    """Application lifespan events."""
    logger.info(f"Starting {settings.APP_NAME} v{settings.APP_VERSION}")
    # Tables are created by scripts/init_database.py, not on startup
    logger.info("Application started")

    yield

    await close_providers()
    logger.info("Shutting down application")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    description="Market-adjusted college basketball power ratings and spread projections",
    lifespan=lifespan
)
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)

# Correlation IDs must be set before CORS handling
app.add_middleware(CorrelationIdMiddleware)

# Instrument before routes are included
instrumentator = Instrumentator()
instrumentator.instrument(app).expose(app, endpoint="/metrics", include_in_schema=False)
logger.info("Prometheus metrics initialized at /metrics")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.CORS_ORIGINS,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

# API v1 - all routes are mounted under /api/v1/ratings
app.include_router(ratings.router, prefix="/api/v1")
app.include_router(overrides.router, prefix="/api/v1")
app.include_router(backfill.router, prefix="/api/v1")


@app.get("/")
@limiter.limit("60/minute")
async def root(request: Request):
    """Root endpoint with API information."""
    return {
        "name": settings.APP_NAME,
        "version": settings.APP_VERSION,
        "status": "running",
        "season": settings.RATINGS_SEASON,
        "endpoints": {
            "api_version": "v1",
            "ratings": "/api/v1/ratings",
            "calculate": "/api/v1/ratings/calculate",
            "projection": "/api/v1/ratings/projection",
            "snapshots": "/api/v1/ratings/snapshots",
            "overrides": "/api/v1/ratings/overrides",
            "backfill_opening": "/api/v1/ratings/backfill-opening",
            "docs": "/docs",
            "health": "/health",
            "metrics": "/metrics"
        }
    }


@app.get("/health")
@limiter.limit("120/minute")
async def health_check(request: Request):
    """Health check endpoint, including circuit breaker states."""
    breakers = get_all_breaker_states()
    status = "healthy" if all(state == "closed" for state in breakers.values()) else "degraded"
    return {
        "status": status,
        "version": settings.APP_VERSION,
        "circuit_breakers": breakers
    }


@app.exception_handler(Exception)
async def global_exception_handler(request: Request, exc: Exception):
    """Global exception handler."""
    logger.error(f"Unhandled exception: {exc}")
    return JSONResponse(
        status_code=500,
        content={"error": "Internal server error", "detail": str(exc)}
    )


if __name__ == "__main__":
    import uvicorn
    uvicorn.run(
        "powerratings.main:app",
        host=settings.HOST,
        port=settings.PORT,
        reload=settings.DEBUG
    )
