"""
Data Models Package

This package contains all Pydantic models used in BillSplit Voice.
All data flowing through the system must conform to these schemas.
"""

from billsplit.models.command import (
    ME,
    BalanceCommand,
    DisambiguationSlot,
    Draft,
    MissingSlot,
    ParsedCommand,
    ParseRoute,
    PendingDisambiguation,
    RouteDecision,
)
from billsplit.models.responses import (
    Added,
    Ask,
    ConversationResponse,
    Info,
    Settle,
)
from billsplit.models.ledger import (
    OWNER_ID,
    LedgerEntry,
    LedgerSnapshot,
    Person,
    PersonBalance,
)
from billsplit.models.audit import (
    AuditEvent,
    AuditEventBuilder,
    AuditEventType,
    AuditSeverity,
)

__all__ = [
    # Command models
    "ME",
    "BalanceCommand",
    "DisambiguationSlot",
    "Draft",
    "MissingSlot",
    "ParsedCommand",
    "ParseRoute",
    "PendingDisambiguation",
    "RouteDecision",
    # Responses
    "Added",
    "Ask",
    "ConversationResponse",
    "Info",
    "Settle",
    # Ledger models
    "OWNER_ID",
    "LedgerEntry",
    "LedgerSnapshot",
    "Person",
    "PersonBalance",
    # Audit models
    "AuditEvent",
    "AuditEventBuilder",
    "AuditEventType",
    "AuditSeverity",
]
