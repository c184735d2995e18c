"""
Abstract Storage Interface

The dialogue core never touches storage. The conversation flow talks to
these interfaces, so the JSON-file ledger can be swapped for a database
or an in-memory fake in tests.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import Optional
from uuid import UUID

from billsplit.models.audit import AuditEvent
from billsplit.models.ledger import LedgerEntry, Person, PersonBalance


class LedgerStorageInterface(ABC):
    """
    Abstract interface for the debt ledger.

    Names are display names; "me" (any case) is the ledger owner.
    """

    @abstractmethod
    async def add_parsed_entry(
        self,
        creditor_name: str,
        debtor_name: str,
        amount: Decimal,
        note: str = "",
    ) -> Optional[LedgerEntry]:
        """
        Record "debtor owes creditor amount".

        Unknown people are created. Returns the new entry, or None when
        creditor and debtor are the same person.

        Raises:
            PersistenceError: If the ledger cannot be written
        """
        pass

    @abstractmethod
    async def settle(self, target_name: Optional[str] = None) -> str:
        """
        Settle all balances with a person and describe the result.

        An empty target settles automatically: first a debt the owner
        owes, else a debt owed to the owner.
        """
        pass

    @abstractmethod
    async def settle_person(self, person_id: UUID) -> str:
        """Remove every entry between the owner and one person."""
        pass

    @abstractmethod
    async def list_people(self) -> list[Person]:
        """All people, owner first."""
        pass

    @abstractmethod
    async def list_entries(self) -> list[LedgerEntry]:
        """All entries, newest first."""
        pass

    @abstractmethod
    async def owes_me(self) -> list[PersonBalance]:
        """Per-person totals owed to the owner, largest first."""
        pass

    @abstractmethod
    async def i_owe(self) -> list[PersonBalance]:
        """Per-person totals the owner owes, largest first."""
        pass


class AuditStorageInterface(ABC):
    """
    Abstract interface for audit log storage.

    Audit logs are append-only - we never delete or modify them.
    """

    @abstractmethod
    async def append_event(self, event: AuditEvent) -> bool:
        """
        Append an audit event to the log.

        Returns:
            True if logged successfully
        """
        pass

    @abstractmethod
    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        """Events of one conversation, in chronological order."""
        pass

    @abstractmethod
    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        """The most recent events, newest first."""
        pass


class StorageError(Exception):
    """Base exception for storage operations."""
    pass


class NotFoundError(StorageError):
    """Entity not found in storage."""
    pass


class PersistenceError(StorageError):
    """Could not write to the storage backend."""
    pass
