"""Dispatch engine: wires the core components together.

The engine owns one instance of each component and is the object the API
and the entry point hold on to. It adds no behaviour of its own beyond
composition and account funding.
"""

import logging
from typing import TYPE_CHECKING

from core.access import RESERVED_IDENTITIES
from core.exceptions import UnauthorizedError
from events.bus import NotificationBus
from ledger.funds import InMemoryFundsLedger
from ledger.ride_ledger import RideLedger
from matching.driver_registry import DriverRegistry
from matching.matching_engine import MatchingEngine
from matching.path_cost import PathCostEstimator
from settlement.settlement_service import SettlementService

if TYPE_CHECKING:
    from settings import Settings

logger = logging.getLogger(__name__)


class DispatchEngine:
    """Ride dispatch core.

    Components:
        notifications: ordered notification bus
        funds: account balances and transfers (escrow, payouts, refunds)
        registry: driver records
        ledger: ride records and lifecycle
        matching: nearest available driver assignment
        path_cost: bounded driver-to-driver path cost queries
        settlement: fee split and completion
    """

    def __init__(
        self,
        platform_owner: str,
        fee_basis_points: int = 0,
        funds: InMemoryFundsLedger | None = None,
        notification_history: int = 1000,
    ) -> None:
        self.notifications = NotificationBus(history_size=notification_history)
        self.funds = funds or InMemoryFundsLedger()
        self.registry = DriverRegistry(self.notifications)
        self.ledger = RideLedger(self.registry, self.funds, self.notifications)
        self.matching = MatchingEngine(self.registry, self.ledger, self.notifications)
        self.path_cost = PathCostEstimator(self.registry)
        self.settlement = SettlementService(
            self.ledger,
            self.registry,
            self.funds,
            self.notifications,
            platform_owner=platform_owner,
            fee_basis_points=fee_basis_points,
        )

    def deposit(self, account: str, amount: int) -> int:
        """Credit ``account`` and return its new balance."""
        if account in RESERVED_IDENTITIES:
            raise UnauthorizedError(f"{account} is a reserved account", {"account": account})
        balance = self.funds.deposit(account, amount)
        logger.info(f"Deposited {amount} to {account}")
        return balance

    def balance_of(self, account: str) -> int:
        return self.funds.balance_of(account)


def build_engine(settings: "Settings", funds: InMemoryFundsLedger | None = None) -> DispatchEngine:
    """Create a DispatchEngine from validated settings."""
    return DispatchEngine(
        platform_owner=settings.dispatch.platform_owner,
        fee_basis_points=settings.dispatch.fee_basis_points,
        funds=funds,
        notification_history=settings.dispatch.notification_history,
    )
