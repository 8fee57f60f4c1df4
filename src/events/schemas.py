from typing import Literal
from uuid import UUID, uuid4

from pydantic import BaseModel, Field

from geo.location import Location


class Notification(BaseModel):
    """Fields shared by every notification emitted by the core."""

    event_id: UUID = Field(default_factory=uuid4)
    sequence: int = Field(ge=1, description="Global emission order, assigned by the bus")
    timestamp: str
    correlation_id: str | None = Field(
        default=None, description="Primary correlation ID (e.g., ride-7)"
    )


class DriverRegistered(Notification):
    """New driver registered"""

    event_type: Literal["driver.registered"] = "driver.registered"
    driver_id: int
    owner: str
    name: str


class DriverLocationUpdated(Notification):
    """Driver moved"""

    event_type: Literal["driver.location_updated"] = "driver.location_updated"
    driver_id: int
    location: Location


class RideRequested(Notification):
    """Ride request submitted with escrowed fare"""

    event_type: Literal["ride.requested"] = "ride.requested"
    ride_id: int
    requester: str
    pickup: Location


class RideMatched(Notification):
    """Ride assigned to the nearest available driver"""

    event_type: Literal["ride.matched"] = "ride.matched"
    ride_id: int
    driver_id: int
    fare: int


class RideCompleted(Notification):
    """Ride completed and settled"""

    event_type: Literal["ride.completed"] = "ride.completed"
    ride_id: int
    fare: int
    platform_fee: int
    driver_payment: int


class RideCancelled(Notification):
    """Ride cancelled by its requester and refunded"""

    event_type: Literal["ride.cancelled"] = "ride.cancelled"
    ride_id: int
    refund: int
