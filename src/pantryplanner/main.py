"""FastAPI application entry point."""

import uuid
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from pantryplanner.config import get_settings
from pantryplanner.database import async_engine, create_tables
from pantryplanner.ingest.connectors.base import (
    ConfigurationError,
    ProviderError,
    ProviderTimeoutError,
    RateLimitError,
)
from pantryplanner.logging_config import LoggingContext, configure_logging, get_logger
from pantryplanner.routers import (
    interactions_router,
    meal_plans_router,
    recipes_router,
    swipe_router,
)

# Configure logging on module load
configure_logging(get_settings().log_level)
logger = get_logger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan handler for startup and shutdown events."""
    logger.info("Starting Pantry Planner API")

    # Create database tables if they don't exist
    await create_tables()
    logger.info("Database tables initialized")

    if not get_settings().has_provider_key:
        logger.warning("No recipe search API key configured, serving from cache only")

    yield

    logger.info("Shutting down Pantry Planner API")
    await async_engine.dispose()


app = FastAPI(
    title="Pantry Planner API",
    description="Recipe matching and weekly meal planning around a shared food pantry",
    version="0.1.0",
    lifespan=lifespan,
)

# CORS middleware
app.add_middleware(
    CORSMiddleware,
    allow_origins=get_settings().allowed_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.middleware("http")
async def request_context(request: Request, call_next):
    """Tag every log line of a request with its request id."""
    request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex[:12]
    with LoggingContext(request_id=request_id):
        response = await call_next(request)
    response.headers["X-Request-ID"] = request_id
    return response


@app.exception_handler(ProviderError)
async def provider_error_handler(request: Request, exc: ProviderError) -> JSONResponse:
    """Report recipe provider failures as retryable gateway errors."""
    headers = {}
    if isinstance(exc, ProviderTimeoutError):
        status_code = status.HTTP_504_GATEWAY_TIMEOUT
    elif isinstance(exc, RateLimitError):
        status_code = status.HTTP_503_SERVICE_UNAVAILABLE
        if exc.retry_after:
            headers["Retry-After"] = str(exc.retry_after)
    else:
        status_code = status.HTTP_502_BAD_GATEWAY

    logger.warning(f"Provider error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status_code,
        content={"detail": str(exc), "retryable": exc.retryable},
        headers=headers,
    )


@app.exception_handler(ConfigurationError)
async def configuration_error_handler(request: Request, exc: ConfigurationError) -> JSONResponse:
    logger.error(f"Configuration error on {request.url.path}: {exc}")
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"detail": str(exc)},
    )


# Include routers
app.include_router(recipes_router)
app.include_router(swipe_router)
app.include_router(meal_plans_router)
app.include_router(interactions_router)


@app.get("/health")
async def health_check() -> dict:
    """Basic health check endpoint."""
    return {"status": "ok", "service": "pantryplanner-api"}


@app.get("/")
async def root() -> dict:
    """Root endpoint with API information."""
    return {
        "name": "Pantry Planner API",
        "version": "0.1.0",
        "docs": "/docs",
        "health": "/health",
    }
