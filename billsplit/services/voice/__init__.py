"""
Voice Services Package

Transcription, speech output and contact directory collaborators.
"""

from billsplit.services.voice.interface import (
    ContactsProvider,
    SpeechOutput,
    Transcriber,
    TranscriptionFailedError,
)
from billsplit.services.voice.providers import (
    FallbackTranscriber,
    LedgerContactsProvider,
    LoggingSpeechOutput,
    StaticContactsProvider,
)

__all__ = [
    # Interfaces
    "ContactsProvider",
    "SpeechOutput",
    "Transcriber",
    "TranscriptionFailedError",
    # Implementations
    "FallbackTranscriber",
    "LedgerContactsProvider",
    "LoggingSpeechOutput",
    "StaticContactsProvider",
]
