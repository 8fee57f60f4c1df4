"""Nearest-available-driver selection."""

import logging

from core.access import Operation, authorize
from core.correlation import with_correlation
from core.exceptions import NoAvailableDriverError
from events.bus import NotificationBus
from events.schemas import RideMatched
from geo.location import Location, squared_distance
from ledger.ride_ledger import RideLedger
from matching.driver_registry import DriverPosition, DriverRegistry
from metrics.prometheus_exporter import dispatch_match_failures_total, record_ride_transition
from ride import NO_DRIVER, RideStatus

logger = logging.getLogger(__name__)


def nearest_available(pickup: Location, positions: list[DriverPosition]) -> int:
    """Id of the available driver closest to ``pickup``, or NO_DRIVER.

    Positions are scanned in id order and only a strictly smaller distance
    replaces the current best, so ties keep the earliest-registered driver.
    """
    best_id = NO_DRIVER
    best_distance: int | None = None
    for position in positions:
        if not position.available:
            continue
        distance = squared_distance(pickup, position.location)
        if best_distance is None or distance < best_distance:
            best_id = position.driver_id
            best_distance = distance
    return best_id


class MatchingEngine:
    """Assigns requested rides to the nearest available driver.

    The availability scan and the assignment run while holding the ledger
    lock and then the registry lock, so no location or availability change
    can land between the decision and the write.

    Matching does not mark the assigned driver unavailable. A driver stays
    eligible for further rides until its owner toggles availability.
    """

    def __init__(
        self,
        registry: DriverRegistry,
        ledger: RideLedger,
        notifications: NotificationBus,
    ) -> None:
        self._registry = registry
        self._ledger = ledger
        self._notifications = notifications

    def find_nearest_available(self, ride_id: int) -> int:
        """Driver id nearest to the ride's pickup, 0 if none is available.

        Raises:
            NotFoundError: ride does not exist
            InvalidStateError: ride is not REQUESTED
        """
        with self._ledger.locked(), self._registry.locked():
            return self._find_nearest_locked(ride_id)

    def match(self, ride_id: int, caller: str) -> int:
        """Assign the nearest available driver and move the ride to MATCHED.

        Raises:
            NoAvailableDriverError: no driver is available; ride stays REQUESTED
        """
        authorize(Operation.MATCH_RIDE, caller)

        with (
            self._ledger.locked(),
            self._registry.locked(),
            with_correlation(f"ride-{ride_id}", caller=caller),
        ):
            driver_id = self._find_nearest_locked(ride_id)
            if driver_id == NO_DRIVER:
                dispatch_match_failures_total.inc()
                logger.info(f"No available driver for ride {ride_id}")
                raise NoAvailableDriverError(
                    f"No available driver for ride {ride_id}", {"ride_id": ride_id}
                )

            record = self._ledger.get_for_update(ride_id)
            record.assign_driver(driver_id)
            self._registry.record_ride(driver_id, ride_id)

            self._notifications.publish(
                RideMatched, ride_id=ride_id, driver_id=driver_id, fare=record.fare
            )
            logger.info(f"Ride {ride_id} matched to driver {driver_id}")

        record_ride_transition(RideStatus.MATCHED.value)
        return driver_id

    def _find_nearest_locked(self, ride_id: int) -> int:
        record = self._ledger.get_for_update(ride_id)
        record.ensure_transition(RideStatus.MATCHED)
        return nearest_available(record.pickup, self._registry.snapshot())
