"""
Balance Ledger and Time Sources

In-process implementations of the two host-platform collaborators:
BalanceLedger moves value between accounts (BalanceTransferPort) and the
time sources supply the current unix timestamp (TimeSource).
"""

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

from .protocols import TransferFailedError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LedgerEntry:
    """One applied value movement"""
    source: Optional[str]
    destination: str
    amount: int


class BalanceLedger:
    """
    Account balances with atomic transfers

    Accounts are plain string ids. A transfer that would overdraw its
    source fails with TransferFailedError and changes nothing.
    """

    def __init__(self, balances: Optional[Dict[str, int]] = None):
        self._balances: Dict[str, int] = dict(balances or {})
        self._lock = asyncio.Lock()
        self.entries: List[LedgerEntry] = []

    async def balance_of(self, account: str) -> int:
        return self._balances.get(account, 0)

    async def deposit(self, account: str, amount: int) -> int:
        """Fund an account from outside the ledger"""
        if amount <= 0:
            raise TransferFailedError(f"Deposit amount must be positive, got {amount}")
        async with self._lock:
            self._balances[account] = self._balances.get(account, 0) + amount
            self.entries.append(LedgerEntry(None, account, amount))
            return self._balances[account]

    async def transfer(self, source: str, destination: str, amount: int) -> None:
        if amount <= 0:
            raise TransferFailedError(f"Transfer amount must be positive, got {amount}")
        if source == destination:
            raise TransferFailedError("Source and destination are the same account")

        async with self._lock:
            available = self._balances.get(source, 0)
            if available < amount:
                raise TransferFailedError(
                    f"Account {source} holds {available}, cannot send {amount}"
                )
            self._balances[source] = available - amount
            self._balances[destination] = self._balances.get(destination, 0) + amount
            self.entries.append(LedgerEntry(source, destination, amount))

        logger.debug(f"Transferred {amount} from {source} to {destination}")

    def total_supply(self) -> int:
        return sum(self._balances.values())


class SystemTimeSource:
    """Wall clock in unix seconds, never moving backwards"""

    def __init__(self):
        self._last = 0

    def now(self) -> int:
        self._last = max(self._last, int(time.time()))
        return self._last


class ManualTimeSource:
    """Clock driven by the caller, for tests and simulations"""

    def __init__(self, start: int = 1_700_000_000):
        self._now = start

    def now(self) -> int:
        return self._now

    def set(self, timestamp: int) -> None:
        if timestamp < self._now:
            raise ValueError(f"Time cannot move backwards ({timestamp} < {self._now})")
        self._now = timestamp

    def advance(self, seconds: int) -> int:
        self.set(self._now + seconds)
        return self._now


__all__ = ["LedgerEntry", "BalanceLedger", "SystemTimeSource", "ManualTimeSource"]
