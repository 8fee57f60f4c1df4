import logging
import queue
import threading
from typing import Any

import redis
from redis.exceptions import ConnectionError, TimeoutError

from events.schemas import Notification
from pubsub.channels import ALL_CHANNELS, channel_for

logger = logging.getLogger(__name__)

DEFAULT_SOCKET_TIMEOUT = 2.0
DEFAULT_MAX_PENDING = 10_000


class RedisPublisher:
    """Redis publisher for notification fan-out.

    Registered as a NotificationBus subscriber. The bus delivers while the
    core holds its locks, so ``__call__`` only queues the message; a worker
    thread talks to Redis. Publishing failures are logged and never reach the
    operation that emitted the notification.
    """

    def __init__(
        self,
        config: dict[str, Any],
        client: "redis.Redis | None" = None,
        max_pending: int = DEFAULT_MAX_PENDING,
    ):
        self.config = config
        timeout = config.get("socket_timeout", DEFAULT_SOCKET_TIMEOUT)
        self._client = client or redis.Redis(
            host=config["host"],
            port=config["port"],
            db=config.get("db", 0),
            password=config.get("password") or None,
            decode_responses=True,
            socket_timeout=timeout,
            socket_connect_timeout=timeout,
        )
        self._pending: queue.Queue[tuple[str, str] | None] = queue.Queue(maxsize=max_pending)
        self._closed = False
        self._thread = threading.Thread(target=self._run, name="redis-publisher", daemon=True)
        self._thread.start()

    def publish_sync(self, channel: str, message: str) -> None:
        self._validate(channel)
        try:
            self._client.publish(channel, message)
        except (ConnectionError, TimeoutError) as e:
            logger.error(f"Failed to publish to channel {channel}: {e}")

    def enqueue(self, channel: str, message: str) -> None:
        """Queue a message for the worker thread; drops it when the queue is full."""
        self._validate(channel)
        try:
            self._pending.put_nowait((channel, message))
        except queue.Full:
            logger.warning(f"Redis publish queue full, dropping message for {channel}")

    def __call__(self, notification: Notification) -> None:
        self.enqueue(channel_for(notification), notification.model_dump_json())

    def flush(self) -> None:
        """Block until every queued message has been handed to Redis."""
        self._pending.join()

    def close(self) -> None:
        if self._closed:
            return
        self._closed = True
        self._pending.put(None)
        self._thread.join(timeout=5.0)
        self._client.close()

    def _run(self) -> None:
        while True:
            item = self._pending.get()
            try:
                if item is None:
                    return
                self.publish_sync(*item)
            except Exception:
                logger.exception("Redis publisher worker error")
            finally:
                self._pending.task_done()

    @staticmethod
    def _validate(channel: str) -> None:
        if channel not in ALL_CHANNELS:
            raise ValueError(
                f"Channel '{channel}' is not a valid channel. Valid channels: {ALL_CHANNELS}"
            )
