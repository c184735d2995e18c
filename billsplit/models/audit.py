"""
Audit Models for BillSplit Voice

Every turn of a conversation and every ledger mutation is logged.
This provides:
1. Traceability from a ledger entry back to the sentence that created it
2. Routing observability (which grammar tier handled what, and why)
3. Debugging information when a conversation goes sideways

Audit logs are append-only.
"""

import json
from datetime import datetime
from enum import Enum
from typing import Any, Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, Field


class AuditEventType(str, Enum):
    """Types of events we audit."""
    # Input
    UTTERANCE_RECEIVED = "utterance_received"
    TRANSCRIPTION_FAILED = "transcription_failed"

    # Understanding
    ROUTE_DECIDED = "route_decided"
    PARSE_FAILED = "parse_failed"

    # Dialogue
    CLARIFICATION_ASKED = "clarification_asked"
    DISAMBIGUATION_REQUESTED = "disambiguation_requested"
    CONSENSUS_SUMMARIZED = "consensus_summarized"
    CONVERSATION_RESET = "conversation_reset"

    # Ledger
    ENTRY_SAVED = "entry_saved"
    SETTLEMENT_COMPLETED = "settlement_completed"
    SAVE_FAILED = "save_failed"

    # System events
    SYSTEM_ERROR = "system_error"


class AuditSeverity(str, Enum):
    """Severity level for audit events."""
    DEBUG = "debug"
    INFO = "info"
    WARNING = "warning"
    ERROR = "error"
    CRITICAL = "critical"


class AuditEvent(BaseModel):
    """
    A single audit event.

    Every significant action creates one of these.
    """

    # Identity
    event_id: UUID = Field(
        default_factory=uuid4,
        description="Unique event identifier"
    )
    timestamp: datetime = Field(
        default_factory=datetime.utcnow,
        description="When the event occurred (UTC)"
    )

    # Event classification
    event_type: AuditEventType = Field(
        ...,
        description="Type of event"
    )
    severity: AuditSeverity = Field(
        default=AuditSeverity.INFO,
        description="Event severity"
    )

    # Context - what entity is this about?
    entity_type: Optional[str] = Field(
        default=None,
        description="Type of entity (e.g., 'entry', 'session', 'utterance')"
    )
    entity_id: Optional[UUID] = Field(
        default=None,
        description="ID of the entity this event relates to"
    )

    # Correlation - one conversation session
    correlation_id: Optional[UUID] = Field(
        default=None,
        description="ID to correlate related events (e.g., all turns of one conversation)"
    )

    description: str = Field(
        ...,
        max_length=500,
        description="Human-readable description of what happened"
    )
    details: dict[str, Any] = Field(
        default_factory=dict,
        description="Additional event-specific data"
    )

    error_code: Optional[str] = None
    error_message: Optional[str] = None

    is_user_action: bool = Field(
        default=False,
        description="Was this triggered by something the user said?"
    )

    def to_log_dict(self) -> dict:
        """Convert to a dictionary suitable for structured logging."""
        return {
            "event_id": str(self.event_id),
            "timestamp": self.timestamp.isoformat(),
            "event_type": self.event_type.value,
            "severity": self.severity.value,
            "entity_type": self.entity_type,
            "entity_id": str(self.entity_id) if self.entity_id else None,
            "correlation_id": str(self.correlation_id) if self.correlation_id else None,
            "description": self.description,
            "details": self.details,
            "error_code": self.error_code,
            "error_message": self.error_message,
            "is_user_action": self.is_user_action,
        }

    def to_json_line(self) -> str:
        """Serialize as one line of the JSON-lines audit log."""
        return json.dumps(self.to_log_dict(), default=str)


class AuditEventBuilder:
    """
    Helper class to build audit events with common patterns.

    Usage:
        event = AuditEventBuilder.utterance_received(text, session_id)
        event = AuditEventBuilder.entry_saved(entry_id, "Alice", "me", "12.50", session_id)
    """

    @staticmethod
    def utterance_received(
        transcript: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.UTTERANCE_RECEIVED,
            entity_type="utterance",
            correlation_id=correlation_id,
            description=f"Utterance received ({len(transcript)} chars)",
            details={
                "transcript": transcript,
            },
            is_user_action=True,
        )

    @staticmethod
    def transcription_failed(
        audio_ref: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.TRANSCRIPTION_FAILED,
            severity=AuditSeverity.WARNING,
            entity_type="audio",
            correlation_id=correlation_id,
            description="No transcript could be obtained from audio",
            details={
                "audio": audio_ref,
            },
            error_code="transcription_failed",
        )

    @staticmethod
    def route_decided(
        route: str,
        reason_tags: list[str],
        complexity_score: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ROUTE_DECIDED,
            entity_type="utterance",
            correlation_id=correlation_id,
            description=f"Parsed via {route} (complexity {complexity_score})",
            details={
                "route": route,
                "reason_tags": reason_tags,
                "complexity_score": complexity_score,
            },
        )

    @staticmethod
    def parse_failed(
        reason_tags: list[str],
        complexity_score: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.PARSE_FAILED,
            severity=AuditSeverity.DEBUG,
            entity_type="utterance",
            correlation_id=correlation_id,
            description="Sentence did not match any grammar tier",
            details={
                "reason_tags": reason_tags,
                "complexity_score": complexity_score,
            },
            error_code="parse_failed",
        )

    @staticmethod
    def clarification_asked(
        question: str,
        clarification_turns: int,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CLARIFICATION_ASKED,
            entity_type="session",
            entity_id=correlation_id,
            correlation_id=correlation_id,
            description=f"Asked: {question}",
            details={
                "question": question,
                "clarification_turns": clarification_turns,
            },
        )

    @staticmethod
    def disambiguation_requested(
        slot: str,
        raw_name: str,
        options: list[str],
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.DISAMBIGUATION_REQUESTED,
            entity_type="session",
            entity_id=correlation_id,
            correlation_id=correlation_id,
            description=f"Name '{raw_name}' is ambiguous for the {slot}",
            details={
                "slot": slot,
                "raw_name": raw_name,
                "options": options,
            },
        )

    @staticmethod
    def consensus_summarized(
        summary: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONSENSUS_SUMMARIZED,
            entity_type="session",
            entity_id=correlation_id,
            correlation_id=correlation_id,
            description="Net balances summarized without ledger mutation",
            details={
                "summary": summary,
            },
        )

    @staticmethod
    def conversation_reset(
        reason: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.CONVERSATION_RESET,
            severity=AuditSeverity.WARNING,
            entity_type="session",
            entity_id=correlation_id,
            correlation_id=correlation_id,
            description=f"Conversation reset: {reason}",
            details={
                "reason": reason,
            },
        )

    @staticmethod
    def entry_saved(
        entry_id: UUID,
        debtor: str,
        creditor: str,
        amount: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.ENTRY_SAVED,
            entity_type="entry",
            entity_id=entry_id,
            correlation_id=correlation_id,
            description=f"Entry saved: {debtor} owes {creditor} ${amount}",
            details={
                "debtor": debtor,
                "creditor": creditor,
                "amount": amount,
            },
            is_user_action=True,
        )

    @staticmethod
    def settlement_completed(
        target_name: Optional[str],
        message: str,
        correlation_id: UUID
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SETTLEMENT_COMPLETED,
            entity_type="settlement",
            correlation_id=correlation_id,
            description=message,
            details={
                "target_name": target_name or "auto",
            },
            is_user_action=True,
        )

    @staticmethod
    def save_failed(
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SAVE_FAILED,
            severity=AuditSeverity.ERROR,
            entity_type="entry",
            correlation_id=correlation_id,
            description="Ledger write failed",
            error_message=error_message,
            details=details or {},
        )

    @staticmethod
    def system_error(
        error_type: str,
        error_message: str,
        details: Optional[dict] = None,
        correlation_id: Optional[UUID] = None
    ) -> AuditEvent:
        return AuditEvent(
            event_type=AuditEventType.SYSTEM_ERROR,
            severity=AuditSeverity.ERROR,
            description=f"System error: {error_type}",
            error_message=error_message,
            details=details or {},
            correlation_id=correlation_id,
        )
