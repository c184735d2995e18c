"""
Conversation session state.

One ConversationSession per logical conversation. The dialogue manager
is the only writer; callers own the value and must serialize turns.
"""

from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field

from billsplit.models.command import Draft, PendingDisambiguation

MAX_CLARIFICATION_TURNS = 3


class ConversationSession(BaseModel):
    """
    Mutable per-conversation state.

    States:
    - Idle: no pending draft, no pending disambiguation
    - AwaitingSlotFill: pending_draft set and incomplete
    - AwaitingDisambiguation: pending_disambiguation set
    """
    model_config = ConfigDict(validate_assignment=True)

    session_id: UUID = Field(default_factory=uuid4)
    pending_draft: Optional[Draft] = None
    pending_disambiguation: Optional[PendingDisambiguation] = None
    clarification_turns: int = Field(
        default=0,
        ge=0,
        le=MAX_CLARIFICATION_TURNS,
        description="Consecutive slot-filling questions asked"
    )
    last_mentioned_person: Optional[str] = Field(
        default=None,
        description="Counterparty that him/her/them refer to"
    )

    @property
    def is_idle(self) -> bool:
        return self.pending_draft is None and self.pending_disambiguation is None

    def reset(self) -> None:
        """Clear pending state. The pronoun memo survives."""
        self.pending_draft = None
        self.pending_disambiguation = None
        self.clarification_turns = 0
