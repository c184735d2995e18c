"""
Audit Logger

Every turn of a conversation and every ledger change is logged.
This provides:
1. Traceability from a ledger entry back to the sentence behind it
2. Visibility into which grammar tier handled what
3. A history the user can inspect

The audit logger:
- Is async so it fits the conversation flow
- Gracefully handles failures (doesn't crash the app if logging fails)
- Supports correlation IDs (one per conversation session)
"""

from typing import Optional
from uuid import UUID, uuid4

import structlog

from billsplit.models.audit import AuditEvent, AuditEventBuilder
from billsplit.services.storage import AuditStorageInterface


# Configure structlog for local logging
structlog.configure(
    processors=[
        structlog.stdlib.filter_by_level,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.stdlib.PositionalArgumentsFormatter(),
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        structlog.processors.UnicodeDecoder(),
        structlog.processors.JSONRenderer()
    ],
    wrapper_class=structlog.stdlib.BoundLogger,
    context_class=dict,
    logger_factory=structlog.stdlib.LoggerFactory(),
    cache_logger_on_first_use=True,
)


class AuditLogger:
    """
    Central audit logging service.

    Logs events both to:
    1. Structured local log (for debugging)
    2. Audit storage, when configured (for persistence)
    """

    def __init__(
        self,
        storage: Optional[AuditStorageInterface] = None,
    ):
        """
        Initialize audit logger.

        Args:
            storage: Storage backend for persistence.
                    If None, only logs locally.
        """
        self._storage = storage
        self._logger = structlog.get_logger()

    async def log(self, event: AuditEvent) -> bool:
        """
        Log an audit event.

        Always logs locally. Persists to storage if available.

        Returns True if storage write succeeded (or no storage configured).
        """
        log_dict = event.to_log_dict()

        if event.severity.value in ("error", "critical"):
            self._logger.error("audit_event", **log_dict)
        elif event.severity.value == "warning":
            self._logger.warning("audit_event", **log_dict)
        elif event.severity.value == "debug":
            self._logger.debug("audit_event", **log_dict)
        else:
            self._logger.info("audit_event", **log_dict)

        if self._storage:
            try:
                return await self._storage.append_event(event)
            except Exception as e:
                # Log failure but don't raise
                self._logger.error(
                    "audit_storage_failed",
                    error=str(e),
                    event_id=str(event.event_id),
                )
                return False

        return True

    async def log_utterance(self, transcript: str, correlation_id: UUID) -> None:
        """Log an incoming utterance."""
        await self.log(AuditEventBuilder.utterance_received(
            transcript=transcript,
            correlation_id=correlation_id,
        ))

    async def log_transcription_failed(self, audio_ref: str, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.transcription_failed(
            audio_ref=audio_ref,
            correlation_id=correlation_id,
        ))

    async def log_route_decided(
        self,
        route: str,
        reason_tags: list[str],
        complexity_score: int,
        correlation_id: UUID,
    ) -> None:
        """Log which grammar tier produced a command."""
        await self.log(AuditEventBuilder.route_decided(
            route=route,
            reason_tags=reason_tags,
            complexity_score=complexity_score,
            correlation_id=correlation_id,
        ))

    async def log_clarification(
        self,
        question: str,
        clarification_turns: int,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.clarification_asked(
            question=question,
            clarification_turns=clarification_turns,
            correlation_id=correlation_id,
        ))

    async def log_disambiguation(
        self,
        slot: str,
        raw_name: str,
        options: list[str],
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.disambiguation_requested(
            slot=slot,
            raw_name=raw_name,
            options=options,
            correlation_id=correlation_id,
        ))

    async def log_consensus(self, summary: str, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.consensus_summarized(
            summary=summary,
            correlation_id=correlation_id,
        ))

    async def log_conversation_reset(self, reason: str, correlation_id: UUID) -> None:
        await self.log(AuditEventBuilder.conversation_reset(
            reason=reason,
            correlation_id=correlation_id,
        ))

    async def log_entry_saved(
        self,
        entry_id: UUID,
        debtor: str,
        creditor: str,
        amount: str,
        correlation_id: UUID,
    ) -> None:
        """Log a ledger entry write."""
        await self.log(AuditEventBuilder.entry_saved(
            entry_id=entry_id,
            debtor=debtor,
            creditor=creditor,
            amount=amount,
            correlation_id=correlation_id,
        ))

    async def log_settlement(
        self,
        target_name: Optional[str],
        message: str,
        correlation_id: UUID,
    ) -> None:
        await self.log(AuditEventBuilder.settlement_completed(
            target_name=target_name,
            message=message,
            correlation_id=correlation_id,
        ))

    async def log_save_failed(
        self,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        await self.log(AuditEventBuilder.save_failed(
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))

    async def log_error(
        self,
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None,
    ) -> None:
        """Log an error."""
        await self.log(AuditEventBuilder.system_error(
            error_type=error_type,
            error_message=error_message,
            details=details,
            correlation_id=correlation_id,
        ))


def create_correlation_id() -> UUID:
    """
    Create a new correlation ID for tracking related events.

    Use this at the start of a new conversation and pass it
    through every turn of it.
    """
    return uuid4()
