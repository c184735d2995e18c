"""
Storage Services Package

Provides abstract interfaces and concrete implementations for data storage.
Currently implements a JSON file ledger and a JSON-lines audit log.
"""

from billsplit.services.storage.interface import (
    AuditStorageInterface,
    LedgerStorageInterface,
    NotFoundError,
    PersistenceError,
    StorageError,
)
from billsplit.services.storage.json_file import (
    JsonFileLedgerStorage,
    JsonLinesAuditStorage,
)

__all__ = [
    # Interfaces
    "AuditStorageInterface",
    "LedgerStorageInterface",
    # Exceptions
    "NotFoundError",
    "PersistenceError",
    "StorageError",
    # JSON file implementation
    "JsonFileLedgerStorage",
    "JsonLinesAuditStorage",
]
