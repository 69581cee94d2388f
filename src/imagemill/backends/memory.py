"""In-memory backends for tests and local shells."""

import threading
import uuid
from typing import Any

from imagemill.backends.base import CreditLedger, PersistenceAdapter
from imagemill.exceptions import (
    InsufficientCreditsError,
    LedgerUnavailableError,
    PersistenceError,
)
from imagemill.logging_config import get_logger
from imagemill.models import TransformDescriptor

logger = get_logger(__name__)


class InMemoryLedger(CreditLedger):
    """Credit ledger backed by a dict.

    Records every successful deduction for verification in tests.

    Example:
        ledger = InMemoryLedger({"user-1": 10})
        ledger.deduct("user-1", 10)
        assert ledger.deductions == [("user-1", 10)]
    """

    name = "memory"

    def __init__(
        self,
        balances: dict[str, int] | None = None,
        available: bool = True,
    ):
        """Initialize the ledger.

        Args:
            balances: Starting balance per account (unknown accounts hold 0)
            available: If False, every call raises LedgerUnavailableError
        """
        self.balances: dict[str, int] = dict(balances or {})
        self.available = available
        self.deductions: list[tuple[str, int]] = []
        self._lock = threading.Lock()

    def _check_available(self, account_id: str) -> None:
        if not self.available:
            raise LedgerUnavailableError(
                "Credit ledger is unavailable",
                context={"account": account_id},
            )

    def balance(self, account_id: str) -> int:
        self._check_available(account_id)
        with self._lock:
            return self.balances.get(account_id, 0)

    def deduct(self, account_id: str, amount: int) -> int:
        if amount < 0:
            raise ValueError(f"Deduction must be non-negative, got {amount}")
        self._check_available(account_id)
        with self._lock:
            current = self.balances.get(account_id, 0)
            if current < amount:
                raise InsufficientCreditsError(
                    "Insufficient credits",
                    balance=current,
                    fee=amount,
                    context={"account": account_id},
                )
            self.balances[account_id] = current - amount
            self.deductions.append((account_id, amount))
            new_balance = self.balances[account_id]

        logger.debug("Deducted %d credit(s) from %s, balance now %d", amount, account_id, new_balance)
        return new_balance

    def top_up(self, account_id: str, amount: int) -> int:
        """Add credits to an account and return the new balance."""
        with self._lock:
            self.balances[account_id] = self.balances.get(account_id, 0) + amount
            return self.balances[account_id]


class InMemoryStore(PersistenceAdapter):
    """Persistence adapter that keeps records in a dict.

    Example:
        store = InMemoryStore()
        record_id = store.save(descriptor)
        assert store.records[record_id]["publicId"] == descriptor.public_id
    """

    name = "memory"

    def __init__(self, fail_on_save: bool = False):
        """Initialize the store.

        Args:
            fail_on_save: If True, save() raises PersistenceError
        """
        self.fail_on_save = fail_on_save
        self.records: dict[str, dict[str, Any]] = {}
        self.save_calls: list[TransformDescriptor] = []
        self._lock = threading.Lock()

    def save(self, descriptor: TransformDescriptor) -> str:
        self.save_calls.append(descriptor)
        if self.fail_on_save:
            raise PersistenceError(
                "Failed to store transformation",
                context={"public_id": descriptor.public_id},
            )

        record_id = descriptor.record_id or uuid.uuid4().hex
        record = descriptor.to_record()
        record["_id"] = record_id
        with self._lock:
            self.records[record_id] = record
        return record_id

    def reset(self) -> None:
        """Clear stored records and recorded calls."""
        with self._lock:
            self.records.clear()
        self.save_calls.clear()
