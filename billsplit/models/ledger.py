"""
Ledger Models for BillSplit Voice

The ledger is a flat list of entries "debtor owes creditor amount".
People are referenced by ID; the ledger owner is a fixed person.
"""

from datetime import datetime
from decimal import Decimal
from typing import Optional
from uuid import UUID, uuid4

from pydantic import BaseModel, ConfigDict, Field, model_validator

# Stable ID of the ledger owner, shared by every snapshot
OWNER_ID = UUID("c0c7b3e2-2a6a-4c7a-a653-e8a2a92d52b0")


class Person(BaseModel):
    """Someone who appears in the ledger."""
    model_config = ConfigDict(str_strip_whitespace=True)

    id: UUID = Field(default_factory=uuid4)
    name: str = Field(
        ...,
        min_length=1,
        max_length=200,
        description="Display name"
    )
    phone_number: Optional[str] = Field(
        default=None,
        max_length=40
    )


class LedgerEntry(BaseModel):
    """
    A single debt: debtor owes creditor amount.

    Entries are immutable once written. Settling removes them.
    """
    model_config = ConfigDict(frozen=True)

    id: UUID = Field(default_factory=uuid4)
    creditor_id: UUID
    debtor_id: UUID
    amount: Decimal = Field(
        ...,
        gt=0,
        decimal_places=2,
        description="Amount in dollars"
    )
    note: str = Field(default="", max_length=1000)
    created_at: datetime = Field(default_factory=datetime.utcnow)

    @model_validator(mode='after')
    def validate_parties(self) -> 'LedgerEntry':
        if self.creditor_id == self.debtor_id:
            raise ValueError("Payer and debtor cannot be the same person")
        return self


class PersonBalance(BaseModel):
    """Total owed between the owner and one person, in one direction."""

    person: Person
    amount: Decimal


class LedgerSnapshot(BaseModel):
    """Serialized form of the whole ledger."""

    people: list[Person] = Field(default_factory=list)
    entries: list[LedgerEntry] = Field(default_factory=list)
