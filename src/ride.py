"""Ride state machine and models."""

from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, Field

from core.exceptions import InvalidStateError
from geo.location import Location

NO_DRIVER = 0


class RideStatus(str, Enum):
    """Ride lifecycle states."""

    REQUESTED = "requested"
    MATCHED = "matched"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


VALID_TRANSITIONS: dict[RideStatus, set[RideStatus]] = {
    RideStatus.REQUESTED: {RideStatus.MATCHED, RideStatus.CANCELLED},
    RideStatus.MATCHED: {RideStatus.IN_PROGRESS, RideStatus.CANCELLED},
    RideStatus.IN_PROGRESS: {RideStatus.COMPLETED},
    RideStatus.COMPLETED: set(),
    RideStatus.CANCELLED: set(),
}

TERMINAL_STATES = frozenset({RideStatus.COMPLETED, RideStatus.CANCELLED})
ASSIGNED_STATES = frozenset({RideStatus.MATCHED, RideStatus.IN_PROGRESS, RideStatus.COMPLETED})


class RideRequest(BaseModel):
    """Ride with state machine logic.

    ``assigned_driver_id`` is non-zero exactly while the status is one of
    ASSIGNED_STATES.
    """

    ride_id: int = Field(gt=0)
    requester: str = Field(min_length=1)
    pickup: Location
    destination: Location
    fare: int = Field(gt=0)
    status: RideStatus = Field(default=RideStatus.REQUESTED)
    assigned_driver_id: int = Field(default=NO_DRIVER, ge=0)
    created_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    matched_at: datetime | None = None
    started_at: datetime | None = None
    completed_at: datetime | None = None
    cancelled_at: datetime | None = None

    def can_transition_to(self, new_status: RideStatus) -> bool:
        return new_status in VALID_TRANSITIONS[self.status]

    def ensure_transition(self, new_status: RideStatus) -> None:
        """Raise InvalidStateError unless ``new_status`` is a legal next state."""
        if self.status in TERMINAL_STATES:
            raise InvalidStateError(
                f"Ride {self.ride_id} is in terminal state {self.status.value}",
                {"ride_id": self.ride_id, "status": self.status.value},
            )
        if not self.can_transition_to(new_status):
            raise InvalidStateError(
                f"Invalid transition from {self.status.value} to {new_status.value}",
                {"ride_id": self.ride_id, "status": self.status.value},
            )

    def transition_to(self, new_status: RideStatus) -> None:
        """Transition to a new state with validation."""
        self.ensure_transition(new_status)
        now = datetime.now(UTC)
        self.status = new_status

        if new_status == RideStatus.IN_PROGRESS:
            self.started_at = now
        elif new_status == RideStatus.COMPLETED:
            self.completed_at = now
        elif new_status == RideStatus.CANCELLED:
            self.cancelled_at = now
            self.assigned_driver_id = NO_DRIVER

    def assign_driver(self, driver_id: int) -> None:
        """Record the matched driver and move to MATCHED."""
        if driver_id == NO_DRIVER:
            raise ValueError("Cannot assign the absent driver id")
        self.ensure_transition(RideStatus.MATCHED)
        self.assigned_driver_id = driver_id
        self.status = RideStatus.MATCHED
        self.matched_at = datetime.now(UTC)
