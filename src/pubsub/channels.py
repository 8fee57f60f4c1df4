"""Pub/sub channel definitions for notification fan-out."""

from events.schemas import Notification

# Channel names
CHANNEL_DRIVER_UPDATES = "driver-updates"
CHANNEL_RIDE_UPDATES = "ride-updates"

ALL_CHANNELS = [
    CHANNEL_DRIVER_UPDATES,
    CHANNEL_RIDE_UPDATES,
]


def channel_for(notification: Notification) -> str:
    """Channel a notification is published on, chosen by its event type prefix."""
    event_type: str = notification.event_type  # type: ignore[attr-defined]
    if event_type.startswith("driver."):
        return CHANNEL_DRIVER_UPDATES
    return CHANNEL_RIDE_UPDATES
