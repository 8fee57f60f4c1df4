"""Fund movement capability.

The core never touches balances directly. It asks a FundsLedger to move an
amount between two account identities, and treats any failure as a failure
of the whole operation.
"""

import logging
import threading
from collections.abc import Iterable
from typing import NamedTuple, Protocol

from core.access import ESCROW_ACCOUNT
from core.exceptions import InvalidAmountError, TransferFailureError

logger = logging.getLogger(__name__)

__all__ = ["ESCROW_ACCOUNT", "FundsLedger", "InMemoryFundsLedger", "Transfer", "apply_transfers"]


class FundsLedger(Protocol):
    def transfer(self, source: str, destination: str, amount: int) -> None:
        """Move ``amount`` from ``source`` to ``destination``.

        Raises:
            TransferFailureError: if the movement could not complete. No
                balance changes in that case.
        """
        ...


class Transfer(NamedTuple):
    source: str
    destination: str
    amount: int


class InMemoryFundsLedger:
    """Integer balances keyed by account identity.

    Thread-safe: all balance reads and writes hold one lock.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._balances: dict[str, int] = {}

    def deposit(self, account: str, amount: int) -> int:
        if amount <= 0:
            raise InvalidAmountError(
                f"Deposit amount must be positive, got {amount}", {"account": account}
            )
        with self._lock:
            self._balances[account] = self._balances.get(account, 0) + amount
            return self._balances[account]

    def balance_of(self, account: str) -> int:
        with self._lock:
            return self._balances.get(account, 0)

    def transfer(self, source: str, destination: str, amount: int) -> None:
        if amount <= 0:
            raise TransferFailureError(
                f"Transfer amount must be positive, got {amount}",
                {"source": source, "destination": destination},
            )
        if source == destination:
            raise TransferFailureError(
                f"Transfer source and destination are both {source}",
                {"source": source, "destination": destination, "amount": amount},
            )
        with self._lock:
            available = self._balances.get(source, 0)
            if available < amount:
                raise TransferFailureError(
                    f"Insufficient balance in {source}: {available} < {amount}",
                    {"source": source, "destination": destination, "amount": amount},
                )
            self._balances[source] = available - amount
            self._balances[destination] = self._balances.get(destination, 0) + amount

    def snapshot(self) -> dict[str, int]:
        with self._lock:
            return dict(self._balances)


def apply_transfers(funds: FundsLedger, transfers: Iterable[Transfer]) -> None:
    """Apply several transfers as one unit.

    Zero-amount legs are skipped. If a leg fails, the legs already applied
    are reversed in reverse order and the original failure is re-raised.

    Example:
        apply_transfers(funds, [
            Transfer(ESCROW_ACCOUNT, driver_owner, 975),
            Transfer(ESCROW_ACCOUNT, platform_owner, 25),
        ])
    """
    applied: list[Transfer] = []
    try:
        for leg in transfers:
            if leg.amount == 0:
                continue
            funds.transfer(leg.source, leg.destination, leg.amount)
            applied.append(leg)
    except TransferFailureError:
        for leg in reversed(applied):
            try:
                funds.transfer(leg.destination, leg.source, leg.amount)
            except TransferFailureError:
                logger.critical(
                    f"Failed to reverse transfer of {leg.amount} "
                    f"from {leg.source} to {leg.destination}"
                )
                raise
        raise
