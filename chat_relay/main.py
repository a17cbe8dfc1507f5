"""
FastAPI application entry point.

Initializes FastAPI app, registers routers, adds middleware, and configures lifespan.

Dependencies: fastapi, chat_relay.api, chat_relay.observability, chat_relay.configs
System role: Application initialization and configuration
"""

from contextlib import asynccontextmanager
import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from chat_relay import __version__
from chat_relay.api import api_router
from chat_relay.api.deps.dependencies import get_service_cache
from chat_relay.api.routers import realtime_router
from chat_relay.boundary.db.create_tables import create_all_tables
from chat_relay.configs import get_settings
from chat_relay.observability.logger import configure_logging
from chat_relay.observability.middleware import (
    CorrelationMiddleware,
    RequestLoggingMiddleware,
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """
    Application lifespan context manager.

    Handles startup and shutdown events. The service cache is pre-warmed so
    the first handshake does not pay for engine creation.
    """
    settings = get_settings()

    # Startup
    configure_logging(settings.log_level)
    logger.info("Application startup: logging configured")

    cache = get_service_cache()
    try:
        if settings.relay.create_tables:
            await create_all_tables(cache.engine)
            logger.info("Database tables ensured")

        # Trigger property access to load instances
        _ = cache.session_factory
        _ = cache.connection_service
        logger.info("Service cache pre-warmed")
    except Exception as e:
        logger.exception(
            "Failed to initialize application resources",
            extra={"error": str(e)},
        )
        raise

    yield

    # Shutdown
    await cache.dispose()
    logger.info("Application shutdown: service cache cleared")


def create_app() -> FastAPI:
    """
    Create and configure FastAPI application.

    Returns:
        FastAPI: Configured application instance
    """
    app = FastAPI(
        title="Chat Relay",
        description="Realtime direct-message relay with offline mailbox and presence",
        version=__version__,
        lifespan=lifespan,
    )

    # Add observability middleware (added first = last to execute)
    app.add_middleware(CorrelationMiddleware)
    app.add_middleware(RequestLoggingMiddleware)

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_credentials=False,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    # Register API routes
    app.include_router(api_router, prefix="/api/v1")

    # Realtime socket lives at the root
    app.include_router(realtime_router)

    return app


app = create_app()


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "chat_relay.main:app",
        host="0.0.0.0",
        port=8000,
    )
