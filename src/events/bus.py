"""In-process notification bus.

Notifications are numbered and delivered in a single global order. The bus
keeps a bounded history so late subscribers (websocket clients, the
/notifications route) can catch up.
"""

import logging
import threading
from collections import deque
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any, TypeVar

from core.correlation import get_current_correlation_id
from events.schemas import Notification

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=Notification)

Subscriber = Callable[[Notification], None]


class NotificationBus:
    """Ordered publish/subscribe for core notifications.

    Thread-safe: sequence assignment, history append and subscriber delivery
    happen under one lock, so every subscriber observes the same order.
    """

    def __init__(self, history_size: int = 1000) -> None:
        self._lock = threading.RLock()
        self._sequence = 0
        self._history: deque[Notification] = deque(maxlen=history_size)
        self._subscribers: list[Subscriber] = []

    def publish(
        self,
        event_class: type[T],
        *,
        correlation_id: str | None = None,
        **fields: Any,
    ) -> T:
        """Create, record and deliver one notification.

        Args:
            event_class: Notification subclass to instantiate
            correlation_id: Defaults to the correlation id of the current context
            **fields: Event payload fields

        Returns:
            The published notification
        """
        with self._lock:
            self._sequence += 1
            event = event_class(
                sequence=self._sequence,
                timestamp=datetime.now(UTC).isoformat(),
                correlation_id=correlation_id or get_current_correlation_id(),
                **fields,
            )
            self._history.append(event)
            for subscriber in list(self._subscribers):
                try:
                    subscriber(event)
                except Exception:
                    event_type = getattr(event, "event_type", event_class.__name__)
                    logger.exception(f"Notification subscriber failed for {event_type}")
            return event

    def subscribe(self, subscriber: Subscriber) -> Callable[[], None]:
        """Register a subscriber; returns a callable that unsubscribes it."""
        with self._lock:
            self._subscribers.append(subscriber)

        def unsubscribe() -> None:
            with self._lock:
                if subscriber in self._subscribers:
                    self._subscribers.remove(subscriber)

        return unsubscribe

    def recent(self, after_sequence: int = 0, limit: int | None = None) -> list[Notification]:
        """Notifications with sequence greater than ``after_sequence``, oldest first."""
        with self._lock:
            events = [e for e in self._history if e.sequence > after_sequence]
        if limit is not None:
            events = events[:limit]
        return events

    @property
    def last_sequence(self) -> int:
        with self._lock:
            return self._sequence

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)
