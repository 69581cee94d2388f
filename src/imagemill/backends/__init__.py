"""Backends for the collaborators a TransformController depends on."""

from imagemill.backends.base import CreditLedger, PersistenceAdapter, TransformURLBuilder
from imagemill.backends.delivery import DeliveryURLBuilder
from imagemill.backends.factory import get_ledger, get_store, get_url_builder
from imagemill.backends.memory import InMemoryLedger, InMemoryStore

__all__ = [
    "CreditLedger",
    "PersistenceAdapter",
    "TransformURLBuilder",
    "DeliveryURLBuilder",
    "InMemoryLedger",
    "InMemoryStore",
    "get_ledger",
    "get_store",
    "get_url_builder",
]
