"""
FastAPI Application Entry Point.

This is the main application file for the Trips Web Backend.
"""

import logging
from contextlib import asynccontextmanager

import httpx
from fastapi import FastAPI, HTTPException
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware

from trips_backend.app.core.config import settings
from trips_backend.app.api.v1.router import router as api_v1_router
from trips_backend.app.core.observability import ObservabilityMiddleware, configure_logging
from trips_backend.app.core.exceptions import (
    AppException,
    app_exception_handler,
    http_exception_handler,
    validation_exception_handler,
    generic_exception_handler
)
from trips_backend.app.services.cache import ExpiringStore
from trips_backend.app.services.trip_index import TripIndex

configure_logging(settings.log_level)
logger = logging.getLogger("trips")


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Lifespan context manager for application startup/shutdown.

    Opens the shared upstream HTTP client on startup and closes it on shutdown.
    """
    app.state.http_client = httpx.AsyncClient(timeout=settings.upstream_timeout_seconds)
    logger.info("Starting %s on port %d", settings.app_name, settings.port)
    yield
    await app.state.http_client.aclose()


# Initialize FastAPI application
app = FastAPI(
    title=settings.app_name,
    version=settings.api_version,
    debug=settings.debug,
    description="Web3 login and trip map backend for connected vehicles",
    lifespan=lifespan,
)

# Process-lifetime state shared by all requests
app.state.session_store = ExpiringStore[str](default_ttl=settings.session_ttl_seconds)
app.state.privilege_store = ExpiringStore[str](default_ttl=settings.privilege_ttl_seconds)
app.state.jwks_cache = ExpiringStore[dict](default_ttl=settings.jwks_cache_seconds)
app.state.trip_index = TripIndex()

app.add_middleware(ObservabilityMiddleware, session_cookie_name=settings.session_cookie_name)
app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins,
    allow_methods=["GET", "POST", "HEAD", "PUT", "DELETE", "PATCH"],
    allow_headers=["Accept", "Content-Type", "Content-Length", "Authorization"],
    allow_credentials=True,
)

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
    app.state.session_store.purge_expired()
    app.state.privilege_store.purge_expired()
    return {
        "status": "healthy",
        "app_name": settings.app_name,
        "version": settings.api_version,
        "sessions": len(app.state.session_store),
        "indexed_trips": len(app.state.trip_index),
    }


app.include_router(api_v1_router)


@app.get("/", tags=["Root"])
async def root():
    return {
        "message": "Welcome to the Trips Web Backend API",
        "docs": "/docs",
        "health": "/health",
    }


def run() -> None:
    """Console entry point: serve the app with uvicorn."""
    import uvicorn

    uvicorn.run(app, host="0.0.0.0", port=settings.port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    run()
