# =============================================================================
# app/main.py - FastAPI Application Entry Point
# =============================================================================
# This is the main entry point for the Property Weather API.
# It configures the FastAPI application with middleware, routers, and handlers.
#
# Usage:
#   uvicorn app.main:app --reload
# =============================================================================

import logging
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from app.config import Settings, settings as default_settings
from app.exceptions import (
    PropertyWeatherException,
    property_weather_exception_handler,
    validation_exception_handler,
)
from app.rate_limit import FixedWindowRateLimiter, RateLimitMiddleware
from app.routers import health, properties
from core.services.property_service import PropertyService
from lib.supabase_client import PropertyRepository, create_supabase_client
from lib.weather_client import WeatherClient

# Configure logging
logging.basicConfig(
    level=logging.DEBUG if default_settings.DEBUG else default_settings.LOG_LEVEL,
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)
logger = logging.getLogger(__name__)

API_VERSION = "1.0.0"


def create_app(
    settings: Settings | None = None,
    *,
    property_service: PropertyService | None = None,
    property_repository: PropertyRepository | None = None,
) -> FastAPI:
    """
    Build the FastAPI application.

    When property_service / property_repository are given (tests), they are
    used as-is; otherwise the lifespan builds them from settings and tears
    the weather client down on shutdown.
    """
    settings = settings or default_settings

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """
        Application lifespan handler.

        - Startup: Build the store and weather client, wire the service
        - Shutdown: Close the weather client's connection pool
        """
        logger.info(f"Starting Property Weather API in {settings.ENVIRONMENT} mode")

        weather_client = None
        if getattr(app.state, "property_service", None) is None:
            repository = PropertyRepository(
                create_supabase_client(settings),
                table=settings.PROPERTIES_TABLE,
            )
            weather_client = WeatherClient.from_settings(settings)
            app.state.property_repository = repository
            app.state.property_service = PropertyService(repository, weather_client)

        yield

        logger.info("Shutting down Property Weather API")
        if weather_client is not None:
            weather_client.close()

    app = FastAPI(
        title="Property Weather API",
        description=(
            "Manage property records. Each property is enriched at creation "
            "with the current weather and coordinates for its address."
        ),
        version=API_VERSION,
        docs_url="/docs",
        redoc_url="/redoc",
        lifespan=lifespan,
        openapi_tags=[
            {
                "name": "Properties",
                "description": "Create, list, fetch and delete properties",
            },
            {
                "name": "Health",
                "description": "API health and liveness checks",
            },
        ],
    )

    app.state.settings = settings
    app.state.property_service = property_service
    app.state.property_repository = property_repository or (
        property_service.repository if property_service else None
    )

    # =========================================================================
    # Middleware
    # =========================================================================

    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins_list if settings.is_production else ["*"],
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    if settings.RATE_LIMIT_MAX > 0:
        app.add_middleware(
            RateLimitMiddleware,
            limiter=FixedWindowRateLimiter(
                max_requests=settings.RATE_LIMIT_MAX,
                window_seconds=settings.RATE_LIMIT_WINDOW_SECONDS,
            ),
        )

    # =========================================================================
    # Exception Handlers
    # =========================================================================

    app.add_exception_handler(PropertyWeatherException, property_weather_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)

    @app.exception_handler(Exception)
    async def handle_general_exception(request: Request, exc: Exception):
        """Handle unexpected exceptions."""
        logger.exception(f"Unexpected error on {request.method} {request.url.path}: {exc}")
        return JSONResponse(
            status_code=500,
            content={
                "detail": "An unexpected error occurred",
                "code": "INTERNAL_ERROR",
            }
        )

    # =========================================================================
    # Routers
    # =========================================================================

    app.include_router(
        health.router,
        prefix="/api/v1",
        tags=["Health"]
    )

    app.include_router(
        properties.router,
        prefix="/api/v1/properties",
        tags=["Properties"]
    )

    @app.get("/", tags=["Root"])
    async def root():
        """
        Root endpoint - returns API info.
        """
        return {
            "name": "Property Weather API",
            "version": API_VERSION,
            "docs": "/docs",
            "health": "/api/v1/health",
        }

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "app.main:app",
        host=default_settings.API_HOST,
        port=default_settings.API_PORT,
        reload=default_settings.is_development,
    )
