"""
Storage module for the run ledger.

Records what each build created so teardown, or a later process, can find it.
Uses SQLite for simplicity and correctness.
"""

from .ledger import ResourceRecord, RunLedger, RunRecord
from .namespaces import HandshakeNamespace, ResourceNamespace, RunNamespace
from .sqlite import SQLiteLedger

__all__ = [
    "RunLedger",
    "SQLiteLedger",
    "RunRecord",
    "ResourceRecord",
    "RunNamespace",
    "ResourceNamespace",
    "HandshakeNamespace",
]
