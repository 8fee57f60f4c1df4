import logging
import threading
from collections.abc import Iterator
from contextlib import contextmanager

from core.access import Operation, authorize
from core.correlation import with_correlation
from core.exceptions import InvalidAmountError, NotFoundError, TransferFailureError
from events.bus import NotificationBus
from events.schemas import RideCancelled, RideRequested
from geo.location import Location
from ledger.funds import ESCROW_ACCOUNT, FundsLedger
from matching.driver_registry import DriverRegistry
from metrics.prometheus_exporter import record_ride_transition, record_transfer_failure
from ride import NO_DRIVER, RideRequest, RideStatus

logger = logging.getLogger(__name__)


class RideLedger:
    """Owns ride records and drives them through the lifecycle state machine.

    Thread-safe: every read-modify-write of a ride happens under one
    re-entrant lock. Components that transition rides on the ledger's behalf
    (matching, settlement) take ``locked()`` first and the registry lock
    second, never the other way round.
    """

    def __init__(
        self,
        registry: DriverRegistry,
        funds: FundsLedger,
        notifications: NotificationBus,
    ) -> None:
        self._lock = threading.RLock()
        self._registry = registry
        self._funds = funds
        self._notifications = notifications
        self._rides: list[RideRequest] = []
        self._index: dict[int, int] = {}
        self._next_id = 1
        self._requester_rides: dict[str, list[int]] = {}

    @contextmanager
    def locked(self) -> Iterator[None]:
        with self._lock:
            yield

    def create(
        self,
        requester: str,
        pickup: Location,
        destination: Location,
        fare: int,
    ) -> int:
        """Escrow ``fare`` from the requester and record a REQUESTED ride.

        Raises:
            InvalidAmountError: fare is not positive
            TransferFailureError: the escrow transfer failed; nothing is recorded
        """
        authorize(Operation.REQUEST_RIDE, requester)
        if fare <= 0:
            raise InvalidAmountError(
                f"Fare must be positive, got {fare}", {"requester": requester, "fare": fare}
            )

        with self._lock:
            ride_id = self._next_id
            record = RideRequest(
                ride_id=ride_id,
                requester=requester,
                pickup=Location(*pickup),
                destination=Location(*destination),
                fare=fare,
            )

            with with_correlation(f"ride-{ride_id}", caller=requester):
                try:
                    self._funds.transfer(requester, ESCROW_ACCOUNT, fare)
                except TransferFailureError:
                    record_transfer_failure("escrow")
                    logger.warning(f"Escrow of {fare} from {requester} failed")
                    raise

                self._index[ride_id] = len(self._rides)
                self._rides.append(record)
                self._requester_rides.setdefault(requester, []).append(ride_id)
                self._next_id += 1

                self._notifications.publish(
                    RideRequested, ride_id=ride_id, requester=requester, pickup=record.pickup
                )
                logger.info(f"Ride {ride_id} requested with fare {fare}")

        record_ride_transition(RideStatus.REQUESTED.value)
        return ride_id

    def cancel(self, ride_id: int, caller: str) -> None:
        """Refund the escrowed fare and cancel the ride.

        The refund and the status change form one unit: if the refund fails
        the ride keeps its current status.
        """
        with self._lock, with_correlation(f"ride-{ride_id}", caller=caller):
            record = self.get_for_update(ride_id)
            authorize(Operation.CANCEL_RIDE, caller, ride=record)
            record.ensure_transition(RideStatus.CANCELLED)

            try:
                self._funds.transfer(ESCROW_ACCOUNT, record.requester, record.fare)
            except TransferFailureError:
                record_transfer_failure("refund")
                logger.warning(f"Refund of {record.fare} for ride {ride_id} failed")
                raise

            previous = record.status
            record.transition_to(RideStatus.CANCELLED)
            self._notifications.publish(RideCancelled, ride_id=ride_id, refund=record.fare)
            logger.info(f"Ride {ride_id} cancelled from {previous.value}, refunded {record.fare}")

        record_ride_transition(RideStatus.CANCELLED.value)

    def start(self, ride_id: int, caller: str) -> None:
        with self._lock, with_correlation(f"ride-{ride_id}", caller=caller):
            record = self.get_for_update(ride_id)
            assigned = (
                self._registry.get(record.assigned_driver_id)
                if record.assigned_driver_id != NO_DRIVER
                else None
            )
            authorize(Operation.START_RIDE, caller, assigned_driver=assigned)

            record.transition_to(RideStatus.IN_PROGRESS)
            logger.info(f"Ride {ride_id} started by driver {record.assigned_driver_id}")

        record_ride_transition(RideStatus.IN_PROGRESS.value)

    def get(self, ride_id: int) -> RideRequest:
        with self._lock:
            return self.get_for_update(ride_id).model_copy()

    def count(self) -> int:
        with self._lock:
            return len(self._rides)

    def rides_for_requester(self, requester: str) -> list[int]:
        with self._lock:
            return list(self._requester_rides.get(requester, []))

    def get_for_update(self, ride_id: int) -> RideRequest:
        """Live record for ``ride_id``.

        Must be called inside ``locked()``; the caller owns the record until
        it releases the lock.
        """
        with self._lock:
            index = self._index.get(ride_id)
            if index is None:
                raise NotFoundError(f"Ride {ride_id} not found", {"ride_id": ride_id})
            return self._rides[index]
