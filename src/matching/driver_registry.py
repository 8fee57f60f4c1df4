import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import NamedTuple

from core.access import Operation, authorize
from core.correlation import with_correlation
from core.exceptions import NotFoundError
from driver import Driver
from events.bus import NotificationBus
from events.schemas import DriverLocationUpdated, DriverRegistered
from geo.location import Location
from metrics.prometheus_exporter import dispatch_drivers_registered_total

logger = logging.getLogger(__name__)


class DriverPosition(NamedTuple):
    driver_id: int
    location: Location
    available: bool


class DriverRegistry:
    """Owns driver records and their availability.

    Records live in an arena (a list in registration order plus an id to
    index map); the registry is their only mutator and hands out copies.

    Thread-safe: All methods are protected by a re-entrant lock. Compound
    operations elsewhere (matching) hold ``locked()`` across a scan and the
    decision that depends on it.
    """

    def __init__(self, notifications: NotificationBus) -> None:
        self._lock = threading.RLock()
        self._notifications = notifications
        self._drivers: list[Driver] = []
        self._index: dict[int, int] = {}
        self._next_id = 1
        self._ride_history: dict[int, list[int]] = {}

    @contextmanager
    def locked(self) -> Iterator[None]:
        with self._lock:
            yield

    def register(
        self,
        owner: str,
        name: str,
        vehicle_model: str,
        license_plate: str,
        location: Location,
    ) -> int:
        authorize(Operation.REGISTER_DRIVER, owner)
        with self._lock:
            driver_id = self._next_id
            record = Driver(
                driver_id=driver_id,
                owner=owner,
                name=name,
                vehicle_model=vehicle_model,
                license_plate=license_plate,
                location=Location(*location),
            )
            self._index[driver_id] = len(self._drivers)
            self._drivers.append(record)
            self._ride_history[driver_id] = []
            self._next_id += 1

            with with_correlation(f"driver-{driver_id}", caller=owner):
                self._notifications.publish(
                    DriverRegistered, driver_id=driver_id, owner=owner, name=name
                )
                logger.info(f"Registered driver {driver_id} ({name}, {license_plate})")

        dispatch_drivers_registered_total.inc()
        return driver_id

    def update_location(self, driver_id: int, owner: str, location: Location) -> None:
        with self._lock:
            record = self._get_record(driver_id)
            authorize(Operation.UPDATE_DRIVER_LOCATION, owner, driver=record)

            record.location = Location(*location)
            with with_correlation(f"driver-{driver_id}", caller=owner):
                self._notifications.publish(
                    DriverLocationUpdated, driver_id=driver_id, location=record.location
                )
                logger.debug(f"Driver {driver_id} moved to {record.location}")

    def set_availability(self, driver_id: int, owner: str, available: bool) -> None:
        with self._lock:
            record = self._get_record(driver_id)
            authorize(Operation.SET_DRIVER_AVAILABILITY, owner, driver=record)

            record.available = available
            logger.info(
                f"Driver {driver_id} is now {'available' if available else 'unavailable'}"
            )

    def get(self, driver_id: int) -> Driver:
        with self._lock:
            return self._get_record(driver_id).model_copy()

    def count(self) -> int:
        with self._lock:
            return len(self._drivers)

    def list_drivers(self, available_only: bool = False) -> list[Driver]:
        with self._lock:
            return [
                record.model_copy()
                for record in self._drivers
                if record.available or not available_only
            ]

    def snapshot(self) -> list[DriverPosition]:
        """Positions of all drivers in registration (id) order."""
        with self._lock:
            return [
                DriverPosition(record.driver_id, record.location, record.available)
                for record in self._drivers
            ]

    def record_ride(self, driver_id: int, ride_id: int) -> None:
        with self._lock:
            self._get_record(driver_id)
            self._ride_history[driver_id].append(ride_id)

    def ride_history(self, driver_id: int) -> list[int]:
        with self._lock:
            self._get_record(driver_id)
            return list(self._ride_history[driver_id])

    def _get_record(self, driver_id: int) -> Driver:
        """Live record for ``driver_id``. Must be called under _lock."""
        index = self._index.get(driver_id)
        if index is None:
            raise NotFoundError(f"Driver {driver_id} not found", {"driver_id": driver_id})
        return self._drivers[index]
