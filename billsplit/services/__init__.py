"""Services package."""

from billsplit.services.storage import (
    AuditStorageInterface,
    JsonFileLedgerStorage,
    JsonLinesAuditStorage,
    LedgerStorageInterface,
    NotFoundError,
    PersistenceError,
    StorageError,
)
from billsplit.services.voice import (
    ContactsProvider,
    FallbackTranscriber,
    LedgerContactsProvider,
    LoggingSpeechOutput,
    SpeechOutput,
    StaticContactsProvider,
    Transcriber,
    TranscriptionFailedError,
)

__all__ = [
    # Storage services
    "AuditStorageInterface",
    "JsonFileLedgerStorage",
    "JsonLinesAuditStorage",
    "LedgerStorageInterface",
    "NotFoundError",
    "PersistenceError",
    "StorageError",
    # Voice services
    "ContactsProvider",
    "FallbackTranscriber",
    "LedgerContactsProvider",
    "LoggingSpeechOutput",
    "SpeechOutput",
    "StaticContactsProvider",
    "Transcriber",
    "TranscriptionFailedError",
]
