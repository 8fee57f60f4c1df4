"""Driver record model."""

from datetime import UTC, datetime

from pydantic import BaseModel, Field

from geo.location import Location

DEFAULT_RATING = 4500


class Driver(BaseModel):
    """Registered service provider.

    Created only by DriverRegistry.register and never deleted. The owner
    identity is the only caller allowed to move the driver or toggle its
    availability.
    """

    driver_id: int = Field(gt=0)
    owner: str = Field(min_length=1)
    name: str
    rating: int = Field(default=DEFAULT_RATING, ge=0)
    vehicle_model: str
    license_plate: str
    location: Location
    available: bool = True
    registered_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
