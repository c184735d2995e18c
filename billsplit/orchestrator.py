"""
Main Orchestrator for BillSplit Voice

Ties the dialogue core to its collaborators and defines the end-to-end
turn:

    (audio ->) transcript -> DialogueManager -> ledger / reply -> speech

DESIGN DECISION: The orchestrator enforces the boundaries:
- The dialogue manager never performs I/O; only this module touches
  the ledger, the speaker and the audit log
- Turns for one conversation are serialized
- Every turn is audited
"""

import asyncio
import tempfile
from typing import Optional
from uuid import UUID

import structlog
from pydantic import BaseModel

from billsplit.audit import AuditLogger, create_correlation_id
from billsplit.config import get_settings
from billsplit.dialogue import ConversationSession, DialogueManager
from billsplit.dialogue.prompts import RESTART_PROMPT, TRANSCRIPTION_RETRY
from billsplit.models.responses import (
    Added,
    Ask,
    ConversationResponse,
    Info,
    Settle,
)
from billsplit.parsing.amounts import format_currency
from billsplit.services.storage import (
    JsonFileLedgerStorage,
    JsonLinesAuditStorage,
    LedgerStorageInterface,
    StorageError,
)
from billsplit.services.voice import (
    ContactsProvider,
    LedgerContactsProvider,
    LoggingSpeechOutput,
    SpeechOutput,
    StaticContactsProvider,
    Transcriber,
    TranscriptionFailedError,
)

logger = structlog.get_logger(__name__)


class TurnResult(BaseModel):
    """What one turn did."""

    transcript: Optional[str] = None
    response: ConversationResponse
    reply: str
    ledger_mutated: bool = False


class ConversationFlow:
    """
    One conversation: a session, a dialogue manager and the collaborators.

    Flow per turn:
    1. Gather contacts (ledger people + contact provider)
    2. Interpret the utterance
    3. Added -> write the entry; Settle -> settle in the ledger
    4. Speak the reply
    5. Audit the turn
    """

    def __init__(
        self,
        ledger: LedgerStorageInterface,
        manager: Optional[DialogueManager] = None,
        contacts: Optional[ContactsProvider] = None,
        speech: Optional[SpeechOutput] = None,
        transcriber: Optional[Transcriber] = None,
        audit_logger: Optional[AuditLogger] = None,
        session: Optional[ConversationSession] = None,
    ):
        self._ledger = ledger
        self._manager = manager or DialogueManager(
            max_utterance_length=get_settings().app.max_utterance_length,
        )
        self._contacts = contacts or LedgerContactsProvider(ledger)
        self._speech = speech
        self._transcriber = transcriber
        self._audit_logger = audit_logger
        self._session = session or ConversationSession(session_id=create_correlation_id())
        self._lock = asyncio.Lock()

    @property
    def session(self) -> ConversationSession:
        return self._session

    @property
    def ledger(self) -> LedgerStorageInterface:
        return self._ledger

    @property
    def manager(self) -> DialogueManager:
        return self._manager

    @property
    def correlation_id(self) -> UUID:
        return self._session.session_id

    def reset(self) -> None:
        """Start a fresh conversation."""
        self._session = ConversationSession(session_id=create_correlation_id())

    def new_conversation(self) -> "ConversationFlow":
        """A separate conversation sharing this flow's collaborators."""
        return ConversationFlow(
            ledger=self._ledger,
            manager=self._manager,
            contacts=self._contacts,
            speech=self._speech,
            transcriber=self._transcriber,
            audit_logger=self._audit_logger,
        )

    async def handle_audio(self, audio_path: str) -> TurnResult:
        """
        Transcribe a recording and handle it as an utterance.

        A failed transcription asks the user to repeat and leaves the
        session untouched.
        """
        try:
            if self._transcriber is None:
                raise TranscriptionFailedError("No transcriber configured.")
            transcript = await self._transcriber.transcribe(audio_path)
            if not transcript or not transcript.strip():
                raise TranscriptionFailedError()
        except TranscriptionFailedError as e:
            logger.info("transcription_failed", audio=audio_path, error=str(e))
            if self._audit_logger:
                await self._audit_logger.log_transcription_failed(
                    audio_ref=audio_path,
                    correlation_id=self.correlation_id,
                )
            response = Ask(question=TRANSCRIPTION_RETRY)
            self._speak(response.question)
            return TurnResult(response=response, reply=response.question)
        except Exception as e:
            logger.error("transcriber_failed", audio=audio_path, error=str(e))
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="transcriber",
                    error_message=str(e),
                    details={"audio": audio_path},
                    correlation_id=self.correlation_id,
                )
            raise

        return await self.handle_utterance(transcript)

    async def handle_utterance(self, text: str) -> TurnResult:
        """Run one turn. Turns are serialized per conversation."""
        async with self._lock:
            return await self._run_turn(text)

    async def settle_next(self) -> TurnResult:
        """Settle the next open balance, abandoning any pending question."""
        async with self._lock:
            self._session.reset()
            return await self._run_turn("settle up")

    async def _run_turn(self, text: str) -> TurnResult:
        correlation_id = self.correlation_id
        if self._audit_logger:
            await self._audit_logger.log_utterance(text, correlation_id)

        known_contacts = await self._contacts.list_contacts()
        try:
            response = self._manager.handle_utterance(self._session, text, known_contacts)
        except Exception as e:
            logger.error("dialogue_failed", error=str(e))
            if self._audit_logger:
                await self._audit_logger.log_error(
                    error_type="dialogue",
                    error_message=str(e),
                    details={"transcript": text},
                    correlation_id=correlation_id,
                )
            raise

        reply = response.text
        ledger_mutated = False

        if isinstance(response, Added):
            ledger_mutated = await self._save_entry(response, correlation_id)
            if not ledger_mutated:
                reply = "I couldn't save that. Please try again."
        elif isinstance(response, Settle):
            try:
                reply = await self._ledger.settle(response.target_name)
                ledger_mutated = reply.startswith("Paid:")
            except StorageError as e:
                logger.error("settle_failed", error=str(e))
                if self._audit_logger:
                    await self._audit_logger.log_save_failed(
                        error_message=str(e),
                        details={"target_name": response.target_name},
                        correlation_id=correlation_id,
                    )
                reply = "I couldn't update the ledger. Please try again."
            else:
                if self._audit_logger:
                    await self._audit_logger.log_settlement(
                        target_name=response.target_name,
                        message=reply,
                        correlation_id=correlation_id,
                    )

        await self._audit_response(response, correlation_id)
        self._speak(reply)

        return TurnResult(
            transcript=text,
            response=response,
            reply=reply,
            ledger_mutated=ledger_mutated,
        )

    async def _save_entry(self, response: Added, correlation_id: UUID) -> bool:
        command = response.command
        if self._audit_logger:
            await self._audit_logger.log_route_decided(
                route=command.decision.route.value,
                reason_tags=command.decision.reason_tags,
                complexity_score=command.decision.complexity_score,
                correlation_id=correlation_id,
            )

        try:
            entry = await self._ledger.add_parsed_entry(
                creditor_name=command.creditor_name,
                debtor_name=command.debtor_name,
                amount=command.amount,
                note=command.note,
            )
        except StorageError as e:
            logger.error("save_failed", error=str(e))
            if self._audit_logger:
                await self._audit_logger.log_save_failed(
                    error_message=str(e),
                    details={
                        "creditor": command.creditor_name,
                        "debtor": command.debtor_name,
                        "amount": str(command.amount),
                    },
                    correlation_id=correlation_id,
                )
            return False

        if entry is None:
            return False

        if self._audit_logger:
            await self._audit_logger.log_entry_saved(
                entry_id=entry.id,
                debtor=command.debtor_name,
                creditor=command.creditor_name,
                amount=str(command.amount),
                correlation_id=correlation_id,
            )
        return True

    async def _audit_response(
        self,
        response: ConversationResponse,
        correlation_id: UUID,
    ) -> None:
        if not self._audit_logger:
            return

        pending = self._session.pending_disambiguation
        if isinstance(response, Ask) and pending is not None:
            await self._audit_logger.log_disambiguation(
                slot=pending.slot.value,
                raw_name=pending.raw_name,
                options=pending.options,
                correlation_id=correlation_id,
            )
        elif isinstance(response, Ask):
            await self._audit_logger.log_clarification(
                question=response.question,
                clarification_turns=self._session.clarification_turns,
                correlation_id=correlation_id,
            )
        elif isinstance(response, Info) and response.message == RESTART_PROMPT:
            await self._audit_logger.log_conversation_reset(
                reason="clarification_cap",
                correlation_id=correlation_id,
            )
        elif isinstance(response, Info) and "Consensus:" in response.message:
            await self._audit_logger.log_consensus(
                summary=response.message,
                correlation_id=correlation_id,
            )

    def _speak(self, reply: str) -> None:
        if self._speech is not None and reply:
            self._speech.speak(reply)

    # Ledger views for front ends

    async def ledger_summary(self) -> dict[str, list[tuple[str, str]]]:
        """{"owes_me": [(name, "$N")...], "i_owe": [...]}"""
        owes_me = await self._ledger.owes_me()
        i_owe = await self._ledger.i_owe()
        return {
            "owes_me": [(b.person.name, format_currency(b.amount)) for b in owes_me],
            "i_owe": [(b.person.name, format_currency(b.amount)) for b in i_owe],
        }


def create_app_components(
    use_storage: bool = True,
) -> tuple[ConversationFlow, Optional[LedgerStorageInterface]]:
    """
    Factory function to create all application components.

    Args:
        use_storage: Whether to use the file-backed ledger and audit log.
                    Set to False for an in-memory-style temporary ledger
                    with local-only logging.

    Returns:
        (conversation_flow, ledger_storage)
    """
    settings = get_settings()

    if use_storage:
        ledger = JsonFileLedgerStorage()
        audit_logger = AuditLogger(JsonLinesAuditStorage())
    else:
        ledger = JsonFileLedgerStorage(
            file_path=f"{tempfile.mkdtemp(prefix='billsplit-')}/ledger.json",
        )
        audit_logger = AuditLogger()  # Local-only logging

    voice = settings.voice
    speech = (
        LoggingSpeechOutput(locale=voice.locale, rate=voice.speech_rate)
        if voice.speak_responses
        else None
    )

    contacts = LedgerContactsProvider(
        ledger,
        extra=StaticContactsProvider(settings.app.known_contacts_list),
    )

    flow = ConversationFlow(
        ledger=ledger,
        contacts=contacts,
        speech=speech,
        audit_logger=audit_logger,
    )
    return flow, ledger
