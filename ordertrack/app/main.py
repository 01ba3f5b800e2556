"""
FastAPI Application Entry Point.

This is the main application file for the Order Tracking service.
"""

from contextlib import asynccontextmanager
from fastapi import FastAPI
from starlette.exceptions import HTTPException
from fastapi.exceptions import RequestValidationError
from ordertrack.app.core.config import settings
from ordertrack.app.core.observability import ObservabilityMiddleware, configure_logging
from ordertrack.app.api.v1.router import router as api_v1_router
from ordertrack.app.db.session import engine, Base
from ordertrack.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)

# Import models to ensure they are registered with Base
from ordertrack.app.models.order import Order
from ordertrack.app.models.tracking_event import TrackingEvent
from ordertrack.app.models.location_sample import LocationSample

configure_logging(settings.debug)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    1. Creates database tables on startup.
    2. Disposes the engine on shutdown.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    await engine.dispose()

# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Order lifecycle management and live delivery tracking",
    lifespan=lifespan,
)

app.add_middleware(ObservabilityMiddleware)

# Register global exception handlers
app.add_exception_handler(AppException, app_exception_handler)
app.add_exception_handler(HTTPException, http_exception_handler)
app.add_exception_handler(RequestValidationError, validation_exception_handler)
app.add_exception_handler(Exception, generic_exception_handler)


@app.get("/health", tags=["Health"])
async def health_check():
    """
    Health check endpoint.

    Returns:
        dict: Status and application information
    """
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
    }


# Include API router
app.include_router(api_v1_router, prefix=settings.api_prefix)


@app.get("/", tags=["Root"])
async def root():
    """
    Root endpoint.

    Returns:
        dict: Welcome message and API documentation links
    """
    return {
        "message": "Welcome to the Order Tracking API",
        "docs": "/docs",
        "health": "/health",
    }
