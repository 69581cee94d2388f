"""Unified exception hierarchy for imagemill.

All imagemill exceptions inherit from ImageMillError, enabling:
- Catching all imagemill errors with `except ImageMillError`
- Error context preservation via the `context` attribute
- Causality chains via `raise ... from e` patterns

Merge type conflicts (a parameter bag on one side, a scalar on the other)
are not errors: the newer value wins. See imagemill.transforms.merge.
"""

from typing import Any


class ImageMillError(Exception):
    """Base exception for all imagemill errors.

    Args:
        message: Human-readable error description
        context: Optional dict of contextual information (account, type, etc.)
    """

    def __init__(self, message: str, context: dict[str, Any] | None = None):
        super().__init__(message)
        self.context = context or {}

    def __str__(self) -> str:
        base = super().__str__()
        if self.context:
            details = ", ".join(f"{k}={v}" for k, v in self.context.items())
            return f"{base} [{details}]"
        return base


class ConfigError(ImageMillError):
    """Raised when configuration is invalid or cannot be loaded.

    Args:
        message: Human-readable error description
        field: Name of the offending field (if applicable)
        suggestion: Suggested fix (if applicable)
        context: Optional dict of contextual information
    """

    def __init__(
        self,
        message: str,
        field: str | None = None,
        suggestion: str | None = None,
        context: dict[str, Any] | None = None,
    ):
        self.message = message
        self.field = field
        self.suggestion = suggestion
        super().__init__(message, context)

    def __str__(self) -> str:
        parts = []
        if self.field:
            parts.append(f"In field '{self.field}'")
        parts.append(super().__str__())
        if self.suggestion:
            parts.append(f"Suggestion: {self.suggestion}")
        return "\n".join(parts)


class TransformError(ImageMillError):
    """Raised when a transformation cannot be staged, applied or saved."""


class InsufficientCreditsError(TransformError):
    """Raised when the credit balance does not cover the apply fee.

    No state is mutated when this is raised; retry once the balance is topped up.
    """

    def __init__(
        self,
        message: str,
        balance: int | None = None,
        fee: int | None = None,
        context: dict[str, Any] | None = None,
    ):
        self.balance = balance
        self.fee = fee
        ctx = dict(context or {})
        if balance is not None:
            ctx.setdefault("balance", balance)
        if fee is not None:
            ctx.setdefault("fee", fee)
        super().__init__(message, ctx)


class CommitInProgressError(TransformError):
    """Raised when apply or save is invoked while the same action is in flight."""


class NoStagedDirectiveError(TransformError):
    """Raised when apply is invoked with nothing staged."""


class NothingToSaveError(TransformError):
    """Raised when save is invoked before any directive was committed."""


class ControllerClosedError(TransformError):
    """Raised when a torn-down controller receives an operation."""


class LedgerUnavailableError(ImageMillError):
    """Raised when the credit ledger cannot be reached."""


class PersistenceError(ImageMillError):
    """Raised when a transform descriptor cannot be stored."""
