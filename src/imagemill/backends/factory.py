"""Factory functions for backend selection."""

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from imagemill.backends.base import CreditLedger, PersistenceAdapter, TransformURLBuilder
    from imagemill.config import Settings


def get_ledger(name: str) -> "CreditLedger":
    """Get a credit ledger backend by name.

    Args:
        name: Backend name ('memory')

    Returns:
        CreditLedger instance

    Raises:
        ValueError: If backend name is not recognized
    """
    backends = {
        "memory": _get_memory_ledger,
    }

    if name not in backends:
        available = ", ".join(sorted(backends.keys()))
        raise ValueError(f"Unknown ledger backend: '{name}'. Available: {available}")

    return backends[name]()


def get_store(name: str) -> "PersistenceAdapter":
    """Get a persistence backend by name.

    Args:
        name: Backend name ('memory')

    Returns:
        PersistenceAdapter instance

    Raises:
        ValueError: If backend name is not recognized
    """
    backends = {
        "memory": _get_memory_store,
    }

    if name not in backends:
        available = ", ".join(sorted(backends.keys()))
        raise ValueError(f"Unknown persistence backend: '{name}'. Available: {available}")

    return backends[name]()


def get_url_builder(settings: "Settings") -> "TransformURLBuilder":
    """Get the delivery URL builder configured by `settings`."""
    from imagemill.backends.delivery import DeliveryURLBuilder
    return DeliveryURLBuilder(settings.cloud_name, settings.delivery_base_url)


def _get_memory_ledger() -> "CreditLedger":
    from imagemill.backends.memory import InMemoryLedger
    return InMemoryLedger()


def _get_memory_store() -> "PersistenceAdapter":
    from imagemill.backends.memory import InMemoryStore
    return InMemoryStore()
