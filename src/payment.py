from datetime import UTC, datetime
from typing import Self

from pydantic import BaseModel, Field, model_validator

BASIS_POINTS_DENOMINATOR = 10_000


def split_fare(fare: int, fee_basis_points: int) -> tuple[int, int]:
    """Return (platform_fee, driver_payment) for a fare.

    The fee is floored; the driver receives the remainder so the two parts
    always add back up to the fare.
    """
    platform_fee = fare * fee_basis_points // BASIS_POINTS_DENOMINATOR
    return platform_fee, fare - platform_fee


class Settlement(BaseModel):
    """Fee split recorded for a completed ride."""

    ride_id: int = Field(gt=0)
    driver_id: int = Field(gt=0)
    driver_owner: str
    fare: int = Field(gt=0)
    fee_basis_points: int = Field(ge=0, le=BASIS_POINTS_DENOMINATOR)
    platform_fee: int = 0
    driver_payment: int = 0
    settled_at: datetime = Field(default_factory=lambda: datetime.now(UTC))

    @model_validator(mode="after")
    def calculate_breakdown(self) -> Self:
        self.platform_fee, self.driver_payment = split_fare(self.fare, self.fee_basis_points)
        return self
