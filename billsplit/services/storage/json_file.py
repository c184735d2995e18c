"""
JSON File Storage Implementation

The ledger is one JSON document {people, entries}, rewritten atomically
(temp file + rename) on every change. The audit log is a JSON-lines file
that is only ever appended to.

TRADEOFFS:
- The whole ledger is loaded and rewritten per operation (fine for a
  personal ledger of a few thousand entries)
- No cross-process locking; one app instance owns the file
"""

import json
import os
import tempfile
from decimal import Decimal
from pathlib import Path
from typing import Optional
from uuid import UUID

import structlog
from pydantic import ValidationError

from billsplit.config import get_settings
from billsplit.models.audit import AuditEvent
from billsplit.models.command import CENTS, ME
from billsplit.models.ledger import (
    OWNER_ID,
    LedgerEntry,
    LedgerSnapshot,
    Person,
    PersonBalance,
)
from billsplit.parsing.amounts import format_currency
from billsplit.services.storage.interface import (
    AuditStorageInterface,
    LedgerStorageInterface,
    NotFoundError,
    PersistenceError,
)

logger = structlog.get_logger(__name__)


def _atomic_write(path: Path, content: str) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    fd, tmp_name = tempfile.mkstemp(dir=path.parent, prefix=f".{path.name}.", suffix=".tmp")
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            handle.write(content)
        os.replace(tmp_name, path)
    except OSError:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise


class JsonFileLedgerStorage(LedgerStorageInterface):
    """
    File-backed ledger.

    The owner is a fixed person (OWNER_ID) that always exists; the name
    "me" in any case refers to it.
    """

    def __init__(self, file_path: Optional[str] = None, owner_name: Optional[str] = None):
        settings = get_settings().ledger
        self._path = Path(file_path or settings.file_path).expanduser()
        self._owner = Person(id=OWNER_ID, name=owner_name or settings.owner_name)

    @property
    def path(self) -> Path:
        return self._path

    # -------------------------------------------------------------------------
    # Persistence
    # -------------------------------------------------------------------------

    def _load(self) -> LedgerSnapshot:
        """Read the snapshot; a missing or corrupt file is an empty ledger."""
        snapshot = LedgerSnapshot()
        if self._path.exists():
            try:
                snapshot = LedgerSnapshot.model_validate_json(
                    self._path.read_text(encoding="utf-8")
                )
            except (OSError, ValidationError) as e:
                logger.warning("ledger_load_failed", path=str(self._path), error=str(e))
                snapshot = LedgerSnapshot()

        people = [p for p in snapshot.people if p.id != OWNER_ID]
        return LedgerSnapshot(people=[self._owner, *people], entries=snapshot.entries)

    def _save(self, snapshot: LedgerSnapshot) -> None:
        try:
            _atomic_write(self._path, snapshot.model_dump_json(indent=2))
        except OSError as e:
            raise PersistenceError(f"Failed to write ledger {self._path}: {e}")

    # -------------------------------------------------------------------------
    # Helpers
    # -------------------------------------------------------------------------

    @staticmethod
    def _find_person(snapshot: LedgerSnapshot, name: str) -> Optional[Person]:
        if name.strip().lower() == ME:
            return snapshot.people[0]
        wanted = name.strip().lower()
        for person in snapshot.people:
            if person.name.lower() == wanted:
                return person
        return None

    def _get_or_create(self, snapshot: LedgerSnapshot, name: str) -> Person:
        person = self._find_person(snapshot, name)
        if person is None:
            person = Person(name=name.strip())
            snapshot.people.append(person)
        return person

    @staticmethod
    def _totals(
        snapshot: LedgerSnapshot,
        owner_is_creditor: bool,
    ) -> list[PersonBalance]:
        by_person: dict[UUID, Decimal] = {}
        for entry in snapshot.entries:
            if owner_is_creditor and entry.creditor_id == OWNER_ID:
                other = entry.debtor_id
            elif not owner_is_creditor and entry.debtor_id == OWNER_ID:
                other = entry.creditor_id
            else:
                continue
            by_person[other] = by_person.get(other, Decimal("0")) + entry.amount

        people = {person.id: person for person in snapshot.people}
        balances = [
            PersonBalance(person=people[person_id], amount=amount)
            for person_id, amount in by_person.items()
            if person_id in people
        ]
        balances.sort(key=lambda b: b.amount, reverse=True)
        return balances

    # -------------------------------------------------------------------------
    # LedgerStorageInterface
    # -------------------------------------------------------------------------

    async def add_parsed_entry(
        self,
        creditor_name: str,
        debtor_name: str,
        amount: Decimal,
        note: str = "",
    ) -> Optional[LedgerEntry]:
        snapshot = self._load()
        creditor = self._get_or_create(snapshot, creditor_name)
        debtor = self._get_or_create(snapshot, debtor_name)

        if creditor.id == debtor.id:
            logger.info("ledger_entry_ignored", reason="same_person", name=creditor.name)
            return None

        entry = LedgerEntry(
            creditor_id=creditor.id,
            debtor_id=debtor.id,
            amount=Decimal(amount).quantize(CENTS),
            note=note,
        )
        snapshot.entries.insert(0, entry)
        self._save(snapshot)

        logger.info(
            "ledger_entry_added",
            entry_id=str(entry.id),
            creditor=creditor.name,
            debtor=debtor.name,
            amount=str(entry.amount),
        )
        return entry

    async def settle(self, target_name: Optional[str] = None) -> str:
        snapshot = self._load()

        name = (target_name or "").strip()
        if name and name.lower() != ME:
            person = self._find_person(snapshot, name)
            if person is None:
                return f"No open balance found for {name}."
            return await self.settle_person(person.id)

        i_owe = self._totals(snapshot, owner_is_creditor=False)
        if i_owe:
            return await self.settle_person(i_owe[0].person.id)

        owes_me = self._totals(snapshot, owner_is_creditor=True)
        if owes_me:
            return await self.settle_person(owes_me[0].person.id)

        return "No balances to settle right now."

    async def settle_person(self, person_id: UUID) -> str:
        snapshot = self._load()
        person = next((p for p in snapshot.people if p.id == person_id), None)
        if person is None:
            raise NotFoundError(f"Person not found: {person_id}")

        related = [
            entry for entry in snapshot.entries
            if {entry.creditor_id, entry.debtor_id} == {OWNER_ID, person_id}
        ]
        if not related:
            return f"No open balance found for {person.name}."

        paid = sum((e.amount for e in related if e.debtor_id == OWNER_ID), Decimal("0"))
        received = sum((e.amount for e in related if e.creditor_id == OWNER_ID), Decimal("0"))

        related_ids = {entry.id for entry in related}
        snapshot.entries = [e for e in snapshot.entries if e.id not in related_ids]
        self._save(snapshot)

        net = paid - received
        logger.info(
            "ledger_settled",
            person=person.name,
            removed_entries=len(related),
            net=str(net),
        )
        if net > 0:
            return f"Paid: settled with {person.name}. Net paid {format_currency(net)}."
        if net < 0:
            return f"Paid: settled with {person.name}. Net received {format_currency(-net)}."
        return f"Paid: settled all balances with {person.name}."

    async def list_people(self) -> list[Person]:
        return self._load().people

    async def list_entries(self) -> list[LedgerEntry]:
        return self._load().entries

    async def owes_me(self) -> list[PersonBalance]:
        return self._totals(self._load(), owner_is_creditor=True)

    async def i_owe(self) -> list[PersonBalance]:
        return self._totals(self._load(), owner_is_creditor=False)


class JsonLinesAuditStorage(AuditStorageInterface):
    """
    Append-only audit log, one JSON object per line.
    """

    def __init__(self, file_path: Optional[str] = None):
        self._path = Path(file_path or get_settings().ledger.audit_log_path).expanduser()

    def _read_events(self) -> list[AuditEvent]:
        if not self._path.exists():
            return []

        events = []
        with self._path.open(encoding="utf-8") as handle:
            for line in handle:
                if not line.strip():
                    continue
                try:
                    events.append(AuditEvent.model_validate(json.loads(line)))
                except ValueError:
                    # Partial or corrupt line
                    continue
        return events

    async def append_event(self, event: AuditEvent) -> bool:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            with self._path.open("a", encoding="utf-8") as handle:
                handle.write(event.to_json_line() + "\n")
            return True
        except OSError as e:
            # Audit logging must not break the main flow
            logger.warning("audit_append_failed", path=str(self._path), error=str(e))
            return False

    async def get_events_by_correlation_id(
        self,
        correlation_id: UUID,
    ) -> list[AuditEvent]:
        events = [e for e in self._read_events() if e.correlation_id == correlation_id]
        events.sort(key=lambda e: e.timestamp)
        return events

    async def get_recent_events(
        self,
        limit: int = 100,
    ) -> list[AuditEvent]:
        events = self._read_events()
        events.sort(key=lambda e: e.timestamp, reverse=True)
        return events[:limit]
