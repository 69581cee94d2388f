"""Abstract contracts for the collaborators a TransformController talks to."""

from abc import ABC, abstractmethod
from typing import Any

from imagemill.models import TransformDescriptor


class CreditLedger(ABC):
    """Abstract base class for credit ledgers.

    The ledger owns each account's balance. A deduction must be atomic
    from the caller's point of view: it either lowers the balance by the
    full amount or raises without touching it.

    Example:
        ledger = get_ledger("memory")
        new_balance = ledger.deduct("user-1", 1)
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier (e.g., 'memory')."""

    @abstractmethod
    def balance(self, account_id: str) -> int:
        """Return the current balance of an account.

        Raises:
            LedgerUnavailableError: If the ledger cannot be reached
        """

    @abstractmethod
    def deduct(self, account_id: str, amount: int) -> int:
        """Deduct `amount` credits.

        Args:
            account_id: Account to charge
            amount: Non-negative number of credits

        Returns:
            The new balance

        Raises:
            InsufficientCreditsError: If the balance is below `amount`
            LedgerUnavailableError: If the ledger cannot be reached
        """


class TransformURLBuilder(ABC):
    """Turns an accumulated config into an opaque derived-asset locator."""

    @abstractmethod
    def build(
        self,
        public_id: str,
        width: int,
        height: int,
        config: dict[str, Any],
    ) -> str:
        """Build the locator string. Must not mutate `config`."""


class PersistenceAdapter(ABC):
    """Stores finalized transform descriptors."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Backend identifier (e.g., 'memory')."""

    @abstractmethod
    def save(self, descriptor: TransformDescriptor) -> str:
        """Store a descriptor.

        A descriptor carrying `record_id` updates that record; otherwise a
        new record is created.

        Returns:
            The stored record's identifier

        Raises:
            PersistenceError: If the descriptor cannot be stored
        """
