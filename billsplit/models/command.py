"""
Core Command Models for BillSplit Voice

These models define the data flowing from a transcript to a ledger
mutation:

    transcript -> RouteDecision + ParsedCommand -> ledger entry

A Draft is the in-progress, possibly incomplete version of a command
that the dialogue manager fills over several turns.

Amounts are Decimal end to end. ParsedCommand quantizes to cents.
"""

from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional

from pydantic import (
    BaseModel,
    ConfigDict,
    Field,
    field_validator,
    model_validator,
)

CENTS = Decimal("0.01")

# Literal used for the ledger owner in every command
ME = "me"


# =============================================================================
# ENUMS
# =============================================================================

class ParseRoute(str, Enum):
    """Which grammar tier produced a successful parse."""
    ON_DEVICE = "on-device"
    CLOUD_FALLBACK = "cloud-fallback"


class MissingSlot(str, Enum):
    """
    Slots a Draft may still be missing.

    Declaration order is the priority order used when asking.
    """
    AMOUNT = "amount"
    DEBTOR = "debtor"
    CREDITOR = "creditor"


class DisambiguationSlot(str, Enum):
    """What an ambiguous name will be used for once resolved."""
    DEBTOR = "debtor"
    CREDITOR = "creditor"
    SETTLE_TARGET = "settle_target"

    @property
    def role(self) -> str:
        """Spoken description of the slot."""
        if self is DisambiguationSlot.SETTLE_TARGET:
            return "person to settle with"
        return self.value


# =============================================================================
# ROUTING
# =============================================================================

class RouteDecision(BaseModel):
    """
    How a transcript was routed.

    reason_tags are ordered, e.g.
    ["on_device_parse_failed", "complexity_triggered", "cloud_fallback_success"].
    """
    model_config = ConfigDict(frozen=True)

    route: ParseRoute
    reason_tags: list[str] = Field(default_factory=list)
    complexity_score: int = Field(
        default=0,
        ge=0,
        description="Heuristic complexity score of the transcript"
    )


# =============================================================================
# COMMANDS
# =============================================================================

class ParsedCommand(BaseModel):
    """
    A validated bill command, ready for the ledger.

    INVARIANTS:
    - amount > 0
    - creditor and debtor differ (case-insensitive)
    """
    model_config = ConfigDict(str_strip_whitespace=True, frozen=True)

    creditor_name: str = Field(
        ...,
        min_length=1,
        description="Who is owed the money ('me' for the ledger owner)"
    )
    debtor_name: str = Field(
        ...,
        min_length=1,
        description="Who owes the money ('me' for the ledger owner)"
    )
    amount: Decimal = Field(
        ...,
        gt=0,
        description="Amount owed, in dollars"
    )
    note: str = Field(
        default="",
        description="Free-form note (what the money was for)"
    )
    decision: RouteDecision
    transcript: str = Field(
        default="",
        description="Sentence the command was parsed from"
    )

    @field_validator('amount')
    @classmethod
    def quantize_amount(cls, v: Decimal) -> Decimal:
        """Store amounts with exactly two decimal places."""
        try:
            return v.quantize(CENTS)
        except InvalidOperation:
            raise ValueError("Amount is too large")

    @model_validator(mode='after')
    def validate_parties(self) -> 'ParsedCommand':
        """Creditor and debtor must be different people."""
        if self.creditor_name.lower() == self.debtor_name.lower():
            raise ValueError("Creditor and debtor cannot be the same person")
        return self


class Draft(BaseModel):
    """
    An in-progress bill command.

    Every slot is optional. The draft is complete once creditor,
    debtor and amount are all present; the note never blocks.
    """

    creditor_name: Optional[str] = None
    debtor_name: Optional[str] = None
    amount: Optional[Decimal] = None
    note: Optional[str] = None

    @property
    def is_complete(self) -> bool:
        return (
            self.creditor_name is not None
            and self.debtor_name is not None
            and self.amount is not None
        )

    def missing_slots(self) -> list[MissingSlot]:
        """Missing slots in priority order: amount, debtor, creditor."""
        missing = []
        if self.amount is None:
            missing.append(MissingSlot.AMOUNT)
        if self.debtor_name is None:
            missing.append(MissingSlot.DEBTOR)
        if self.creditor_name is None:
            missing.append(MissingSlot.CREDITOR)
        return missing

    def merge(self, update: 'Draft') -> None:
        """Fill empty slots from another draft. Present slots are never overwritten."""
        if self.creditor_name is None and update.creditor_name:
            self.creditor_name = update.creditor_name
        if self.debtor_name is None and update.debtor_name:
            self.debtor_name = update.debtor_name
        if self.amount is None and update.amount is not None:
            self.amount = update.amount
        if self.note is None and update.note:
            self.note = update.note


class PendingDisambiguation(BaseModel):
    """A paused turn waiting for the user to pick one of the ranked names."""

    draft: Optional[Draft] = None
    slot: DisambiguationSlot
    raw_name: str
    options: list[str] = Field(
        ...,
        min_length=1,
        max_length=3,
        description="Ranked candidate names, best first"
    )


class BalanceCommand(BaseModel):
    """
    One balance clause of a composite utterance.

    Several clauses feed a consensus summary; a lone clause the grammar
    could not parse becomes a ParsedCommand.
    """

    creditor_name: str
    debtor_name: str
    amount: Decimal = Field(..., ge=0)
    note: str = ""
