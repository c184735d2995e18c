"""
Voice and contacts collaborator interfaces.

Speech recognition, speech synthesis and the device contact directory
are outside the dialogue core. The conversation flow only needs these
three small contracts.
"""

from abc import ABC, abstractmethod
from typing import Optional

from billsplit.parsing.errors import TranscriptionFailedError


class Transcriber(ABC):
    """Audio -> transcript."""

    @abstractmethod
    async def transcribe(self, audio_path: str) -> Optional[str]:
        """
        Transcribe one recording.

        Returns:
            The transcript, or None if nothing usable was recognized
        """
        pass


class SpeechOutput(ABC):
    """Message -> speech. Fire and forget."""

    @abstractmethod
    def speak(self, message: str) -> None:
        pass


class ContactsProvider(ABC):
    """Flat list of contact display names."""

    @abstractmethod
    async def list_contacts(self) -> list[str]:
        pass


__all__ = [
    "ContactsProvider",
    "SpeechOutput",
    "Transcriber",
    "TranscriptionFailedError",
]
