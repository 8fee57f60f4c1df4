"""Fee computation and fund settlement for completed rides."""

import logging
import threading

from core.access import Operation, authorize
from core.correlation import with_correlation
from core.exceptions import (
    InvalidAmountError,
    NotFoundError,
    TransferFailureError,
    UnauthorizedError,
)
from events.bus import NotificationBus
from events.schemas import RideCompleted
from ledger.funds import ESCROW_ACCOUNT, FundsLedger, Transfer, apply_transfers
from ledger.ride_ledger import RideLedger
from matching.driver_registry import DriverRegistry
from metrics.prometheus_exporter import (
    dispatch_fee_basis_points,
    record_settlement,
    record_transfer_failure,
)
from payment import Settlement
from ride import NO_DRIVER, RideStatus
from settings import MAX_FEE_BASIS_POINTS

logger = logging.getLogger(__name__)


class SettlementService:
    """Completes rides by splitting the escrowed fare between driver and platform.

    Both payouts and the COMPLETED transition are one unit. Transfers run
    first under the ledger lock; if either fails the applied leg is reversed
    and the ride stays IN_PROGRESS.
    """

    def __init__(
        self,
        ledger: RideLedger,
        registry: DriverRegistry,
        funds: FundsLedger,
        notifications: NotificationBus,
        platform_owner: str,
        fee_basis_points: int = 0,
    ) -> None:
        if not 0 <= fee_basis_points <= MAX_FEE_BASIS_POINTS:
            raise InvalidAmountError(
                f"Fee must be between 0 and {MAX_FEE_BASIS_POINTS} basis points",
                {"fee_basis_points": fee_basis_points},
            )
        self._ledger = ledger
        self._registry = registry
        self._funds = funds
        self._notifications = notifications
        self._platform_owner = platform_owner
        self._fee_lock = threading.Lock()
        self._fee_basis_points = fee_basis_points
        self._settlements: dict[int, Settlement] = {}
        dispatch_fee_basis_points.set(fee_basis_points)

    @property
    def platform_owner(self) -> str:
        return self._platform_owner

    @property
    def fee_basis_points(self) -> int:
        with self._fee_lock:
            return self._fee_basis_points

    def set_fee_basis_points(self, value: int, caller: str) -> None:
        authorize(Operation.SET_FEE, caller, platform_owner=self._platform_owner)
        if not 0 <= value <= MAX_FEE_BASIS_POINTS:
            raise InvalidAmountError(
                f"Fee must be between 0 and {MAX_FEE_BASIS_POINTS} basis points, got {value}",
                {"fee_basis_points": value},
            )
        with self._fee_lock:
            previous = self._fee_basis_points
            self._fee_basis_points = value
        dispatch_fee_basis_points.set(value)
        logger.info(f"Platform fee changed from {previous} to {value} basis points")

    def complete(self, ride_id: int, caller: str) -> Settlement:
        """Pay out an in-progress ride and mark it COMPLETED.

        Raises:
            NotFoundError: ride does not exist
            UnauthorizedError: caller is not the assigned driver's owner
            InvalidStateError: ride is not IN_PROGRESS
            TransferFailureError: a payout failed; nothing changed
        """
        with self._ledger.locked(), with_correlation(f"ride-{ride_id}", caller=caller):
            record = self._ledger.get_for_update(ride_id)
            if record.assigned_driver_id == NO_DRIVER:
                raise UnauthorizedError(
                    f"Ride {ride_id} has no assigned driver",
                    {"operation": Operation.COMPLETE_RIDE.value},
                )
            assigned = self._registry.get(record.assigned_driver_id)
            authorize(Operation.COMPLETE_RIDE, caller, assigned_driver=assigned)
            record.ensure_transition(RideStatus.COMPLETED)

            settlement = Settlement(
                ride_id=ride_id,
                driver_id=assigned.driver_id,
                driver_owner=assigned.owner,
                fare=record.fare,
                fee_basis_points=self.fee_basis_points,
            )

            try:
                apply_transfers(
                    self._funds,
                    [
                        Transfer(ESCROW_ACCOUNT, assigned.owner, settlement.driver_payment),
                        Transfer(ESCROW_ACCOUNT, self._platform_owner, settlement.platform_fee),
                    ],
                )
            except TransferFailureError:
                record_transfer_failure("settlement")
                logger.warning(f"Settlement of ride {ride_id} failed, ride left in progress")
                raise

            record.transition_to(RideStatus.COMPLETED)
            self._settlements[ride_id] = settlement
            self._notifications.publish(
                RideCompleted,
                ride_id=ride_id,
                fare=settlement.fare,
                platform_fee=settlement.platform_fee,
                driver_payment=settlement.driver_payment,
            )
            logger.info(
                f"Ride {ride_id} completed: driver {assigned.driver_id} paid "
                f"{settlement.driver_payment}, platform fee {settlement.platform_fee}"
            )

        record_settlement(settlement.platform_fee)
        return settlement

    def get_settlement(self, ride_id: int) -> Settlement:
        with self._ledger.locked():
            settlement = self._settlements.get(ride_id)
        if settlement is None:
            raise NotFoundError(
                f"No settlement recorded for ride {ride_id}", {"ride_id": ride_id}
            )
        return settlement.model_copy()
