"""
Collaborator implementations that need no device APIs.
"""

from typing import Iterable, Optional

import structlog

from billsplit.models.ledger import OWNER_ID
from billsplit.services.storage.interface import LedgerStorageInterface
from billsplit.services.voice.interface import (
    ContactsProvider,
    SpeechOutput,
    Transcriber,
)

logger = structlog.get_logger(__name__)


class FallbackTranscriber(Transcriber):
    """
    Try a primary recognizer, then a fallback one.

    The primary result wins when it is non-blank.
    """

    def __init__(self, primary: Transcriber, fallback: Transcriber):
        self._primary = primary
        self._fallback = fallback

    async def transcribe(self, audio_path: str) -> Optional[str]:
        text = await self._primary.transcribe(audio_path)
        if text and text.strip():
            return text.strip()

        logger.info("transcription_fallback", audio=audio_path)
        text = await self._fallback.transcribe(audio_path)
        if text and text.strip():
            return text.strip()
        return None


class LoggingSpeechOutput(SpeechOutput):
    """Records spoken replies in the structured log instead of a speaker."""

    def __init__(self, locale: str = "en-US", rate: float = 0.5):
        self._locale = locale
        self._rate = rate
        self.spoken: list[str] = []

    def speak(self, message: str) -> None:
        text = (message or "").strip()
        if not text:
            return
        self.spoken.append(text)
        logger.info("speech_output", message=text, locale=self._locale, rate=self._rate)


class StaticContactsProvider(ContactsProvider):
    """A fixed list of names, e.g. from configuration."""

    def __init__(self, names: Iterable[str] = ()):
        self._names = [name.strip() for name in names if name and name.strip()]

    async def list_contacts(self) -> list[str]:
        return list(self._names)


class LedgerContactsProvider(ContactsProvider):
    """
    Everyone already in the ledger plus another provider's names.

    De-duplicated case-insensitively; ledger spelling wins.
    """

    def __init__(
        self,
        ledger: LedgerStorageInterface,
        extra: Optional[ContactsProvider] = None,
    ):
        self._ledger = ledger
        self._extra = extra

    async def list_contacts(self) -> list[str]:
        names = [
            person.name for person in await self._ledger.list_people()
            if person.id != OWNER_ID
        ]
        if self._extra is not None:
            names.extend(await self._extra.list_contacts())

        seen: set[str] = set()
        contacts = []
        for name in names:
            key = name.lower()
            if key in seen:
                continue
            seen.add(key)
            contacts.append(name)
        return contacts
