"""
Ride Dispatch Service - Entry Point

Builds the dispatch engine, attaches notification fan-out and serves the
FastAPI API with uvicorn.
"""

import logging
import os

import uvicorn

from api.app import create_app
from engine import build_engine
from events.bus import NotificationBus
from redis_client.publisher import RedisPublisher
from settings import Settings, get_settings

logger = logging.getLogger(__name__)


def attach_redis_publisher(
    settings: Settings, notifications: NotificationBus
) -> RedisPublisher | None:
    """Subscribe a RedisPublisher to the notification bus when Redis is enabled."""
    if not settings.redis.enabled:
        logger.info("Redis fan-out disabled")
        return None

    publisher = RedisPublisher(
        {
            "host": settings.redis.host,
            "port": settings.redis.port,
            "db": settings.redis.db,
            "password": settings.redis.password,
            "socket_timeout": settings.redis.socket_timeout,
        }
    )
    notifications.subscribe(publisher)
    logger.info(
        f"Publishing notifications to Redis at {settings.redis.host}:{settings.redis.port}"
    )
    return publisher


def main() -> None:
    """Main entry point - initializes and runs the service."""
    from dispatch_logging import setup_logging

    settings = get_settings()

    # LOG_FORMAT env var takes precedence, then settings.dispatch.log_format
    log_format = os.environ.get("LOG_FORMAT") or settings.dispatch.log_format
    setup_logging(
        level=settings.dispatch.log_level,
        json_output=log_format == "json",
        environment=settings.dispatch.environment,
    )

    logger.info("Starting ride dispatch service...")

    engine = build_engine(settings)
    publisher = attach_redis_publisher(settings, engine.notifications)
    app = create_app(engine)

    logger.info(
        f"Platform owner {settings.dispatch.platform_owner}, "
        f"fee {settings.dispatch.fee_basis_points} basis points"
    )

    try:
        uvicorn.run(
            app,
            host=settings.api.host,
            port=settings.api.port,
            log_level=settings.dispatch.log_level.lower(),
        )
    finally:
        if publisher:
            publisher.close()


if __name__ == "__main__":
    main()
