"""FastAPI application factory for the ride dispatch service."""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING, Any

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from slowapi.errors import RateLimitExceeded
from starlette.responses import Response

from api.errors import dispatch_error_handler
from api.rate_limit import limiter, rate_limit_exceeded_handler
from api.routes import drivers, platform, rides
from api.websocket import NotificationRelay
from api.websocket import manager as connection_manager
from api.websocket import router as websocket_router
from core.exceptions import DispatchError
from metrics import render_latest
from settings import get_settings

if TYPE_CHECKING:
    from engine import DispatchEngine

logger = logging.getLogger(__name__)


def create_app(engine: DispatchEngine) -> FastAPI:
    """Create FastAPI application with injected dependencies.

    Args:
        engine: DispatchEngine instance shared by all routes
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> Any:
        """Manage application startup and shutdown."""
        relay = NotificationRelay(engine.notifications, connection_manager)
        app.state.relay = relay

        await relay.start()
        logger.info("Notification relay started")
        yield
        await relay.stop()

    app = FastAPI(
        title="Ride Dispatch API",
        version="1.0.0",
        description="Driver registration, ride matching, lifecycle and settlement",
        lifespan=lifespan,
    )

    app.state.limiter = limiter
    app.add_exception_handler(RateLimitExceeded, rate_limit_exceeded_handler)
    app.add_exception_handler(DispatchError, dispatch_error_handler)

    # Set core dependencies immediately (not in lifespan) so they're available for testing
    app.state.engine = engine
    app.state.connection_manager = connection_manager

    settings = get_settings()
    origins = settings.cors.origins.split(",")

    app.add_middleware(
        CORSMiddleware,
        allow_origins=origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.include_router(drivers.router, prefix="/drivers", tags=["drivers"])
    app.include_router(rides.router, prefix="/rides", tags=["rides"])
    app.include_router(rides.requesters_router, prefix="/requesters", tags=["rides"])
    app.include_router(platform.router, tags=["platform"])
    app.include_router(websocket_router)

    @app.get("/health")
    async def health_check() -> dict[str, Any]:
        """Health check endpoint for monitoring (unauthenticated for infrastructure)."""
        return {
            "status": "healthy",
            "drivers": engine.registry.count(),
            "rides": engine.ledger.count(),
        }

    @app.get("/metrics", include_in_schema=False)
    async def prometheus_metrics() -> Response:
        return Response(content=render_latest(), media_type="text/plain; version=0.0.4")

    return app
