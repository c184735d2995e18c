"""
Tests for the JSON ledger, the audit log and settings.
"""

import asyncio
from decimal import Decimal
from uuid import uuid4

import pytest

from billsplit.config import get_settings, validate_all_settings
from billsplit.models.audit import AuditEventBuilder
from billsplit.models.ledger import OWNER_ID
from billsplit.services.storage import (
    JsonFileLedgerStorage,
    JsonLinesAuditStorage,
    NotFoundError,
)
from billsplit.services.voice import LedgerContactsProvider, StaticContactsProvider


@pytest.fixture
def ledger(tmp_path):
    return JsonFileLedgerStorage(file_path=str(tmp_path / "ledger.json"), owner_name="Sam")


class TestJsonFileLedgerStorage:
    """Tests for the file-backed ledger."""

    def test_empty_ledger_has_owner(self, ledger):
        """Test the owner exists before any entry."""
        people = asyncio.run(ledger.list_people())
        assert [p.id for p in people] == [OWNER_ID]
        assert people[0].name == "Sam"
        assert asyncio.run(ledger.list_entries()) == []

    def test_add_entry_creates_people(self, ledger):
        """Test unknown names become people and 'me' is the owner."""
        entry = asyncio.run(ledger.add_parsed_entry("me", "Alice", Decimal("12.5"), "lunch"))

        assert entry.creditor_id == OWNER_ID
        assert entry.amount == Decimal("12.50")
        names = [p.name for p in asyncio.run(ledger.list_people())]
        assert names == ["Sam", "Alice"]

    def test_people_match_case_insensitively(self, ledger):
        """Test one person per name regardless of case."""
        asyncio.run(ledger.add_parsed_entry("me", "alice", Decimal("1")))
        asyncio.run(ledger.add_parsed_entry("me", "Alice", Decimal("2")))

        people = asyncio.run(ledger.list_people())
        assert len(people) == 2

        balances = asyncio.run(ledger.owes_me())
        assert balances[0].amount == Decimal("3")

    def test_same_person_entry_ignored(self, ledger):
        """Test an entry between one person and themself is not written."""
        assert asyncio.run(ledger.add_parsed_entry("Me", "me", Decimal("5"))) is None
        assert asyncio.run(ledger.list_entries()) == []

    def test_entries_newest_first(self, ledger):
        """Test new entries are inserted at the front."""
        asyncio.run(ledger.add_parsed_entry("me", "Alice", Decimal("1"), "first"))
        asyncio.run(ledger.add_parsed_entry("me", "Alice", Decimal("2"), "second"))

        entries = asyncio.run(ledger.list_entries())
        assert [e.note for e in entries] == ["second", "first"]

    def test_balances(self, ledger):
        """Test owes_me and i_owe totals, largest first."""
        asyncio.run(ledger.add_parsed_entry("me", "Alice", Decimal("10")))
        asyncio.run(ledger.add_parsed_entry("me", "Carol", Decimal("25")))
        asyncio.run(ledger.add_parsed_entry("Bob", "me", Decimal("20")))
        asyncio.run(ledger.add_parsed_entry("Bob", "Alice", Decimal("99")))

        owes_me = asyncio.run(ledger.owes_me())
        assert [(b.person.name, b.amount) for b in owes_me] == [
            ("Carol", Decimal("25")),
            ("Alice", Decimal("10")),
        ]
        i_owe = asyncio.run(ledger.i_owe())
        assert [(b.person.name, b.amount) for b in i_owe] == [("Bob", Decimal("20"))]

    def test_persists_across_instances(self, tmp_path):
        """Test a second storage on the same file sees the entries."""
        path = str(tmp_path / "ledger.json")
        asyncio.run(JsonFileLedgerStorage(file_path=path).add_parsed_entry(
            "me", "Alice", Decimal("4")
        ))

        reopened = JsonFileLedgerStorage(file_path=path)
        assert len(asyncio.run(reopened.list_entries())) == 1

    def test_corrupt_file_is_empty_ledger(self, tmp_path):
        """Test unreadable JSON does not raise."""
        path = tmp_path / "ledger.json"
        path.write_text("{not json", encoding="utf-8")

        storage = JsonFileLedgerStorage(file_path=str(path))
        assert asyncio.run(storage.list_entries()) == []

    def test_settle_named_person(self, ledger):
        """Test settling removes every entry with that person."""
        asyncio.run(ledger.add_parsed_entry("me", "Alice", Decimal("12.50")))
        asyncio.run(ledger.add_parsed_entry("Bob", "me", Decimal("3")))

        message = asyncio.run(ledger.settle("alice"))

        assert message == "Paid: settled with Alice. Net received $12.50."
        assert asyncio.run(ledger.owes_me()) == []
        assert len(asyncio.run(ledger.i_owe())) == 1

    def test_settle_automatic_prefers_my_debts(self, ledger):
        """Test an automatic settlement pays what the owner owes first."""
        asyncio.run(ledger.add_parsed_entry("me", "Alice", Decimal("10")))
        asyncio.run(ledger.add_parsed_entry("Bob", "me", Decimal("20")))

        assert asyncio.run(ledger.settle()) == "Paid: settled with Bob. Net paid $20.00."
        assert asyncio.run(ledger.settle()) == "Paid: settled with Alice. Net received $10.00."
        assert asyncio.run(ledger.settle()) == "No balances to settle right now."

    def test_settle_even_balance(self, ledger):
        """Test equal debts both ways."""
        asyncio.run(ledger.add_parsed_entry("me", "Alice", Decimal("5")))
        asyncio.run(ledger.add_parsed_entry("Alice", "me", Decimal("5")))

        assert asyncio.run(ledger.settle("Alice")) == "Paid: settled all balances with Alice."

    def test_settle_unknown_or_unrelated(self, ledger):
        """Test nothing changes when there is nothing to settle."""
        asyncio.run(ledger.add_parsed_entry("Alice", "Bob", Decimal("5")))

        assert asyncio.run(ledger.settle("Zed")) == "No open balance found for Zed."
        assert asyncio.run(ledger.settle("Bob")) == "No open balance found for Bob."
        assert len(asyncio.run(ledger.list_entries())) == 1

    def test_settle_person_unknown_id(self, ledger):
        """Test an unknown person id raises."""
        with pytest.raises(NotFoundError):
            asyncio.run(ledger.settle_person(uuid4()))


class TestJsonLinesAuditStorage:
    """Tests for the append-only audit log."""

    def test_append_and_query(self, tmp_path):
        """Test events come back by correlation id and recency."""
        storage = JsonLinesAuditStorage(file_path=str(tmp_path / "audit.jsonl"))
        correlation_id = uuid4()

        first = AuditEventBuilder.utterance_received("Alice owes me 5", correlation_id)
        second = AuditEventBuilder.conversation_reset("clarification_cap", uuid4())
        assert asyncio.run(storage.append_event(first)) is True
        assert asyncio.run(storage.append_event(second)) is True

        events = asyncio.run(storage.get_events_by_correlation_id(correlation_id))
        assert [e.event_id for e in events] == [first.event_id]

        recent = asyncio.run(storage.get_recent_events(limit=1))
        assert len(recent) == 1

    def test_corrupt_lines_skipped(self, tmp_path):
        """Test a truncated line does not hide the others."""
        path = tmp_path / "audit.jsonl"
        storage = JsonLinesAuditStorage(file_path=str(path))
        event = AuditEventBuilder.utterance_received("I owe Bob 20", uuid4())
        asyncio.run(storage.append_event(event))

        with path.open("a", encoding="utf-8") as handle:
            handle.write('{"event_id": "broken\n')

        assert len(asyncio.run(storage.get_recent_events())) == 1


class TestContactsProviders:
    """Tests for contact lists."""

    def test_ledger_contacts_exclude_owner(self, ledger):
        """Test the owner is never offered as a contact."""
        asyncio.run(ledger.add_parsed_entry("me", "Alice", Decimal("1")))
        provider = LedgerContactsProvider(
            ledger,
            extra=StaticContactsProvider(["alice", "Bob", " "]),
        )

        assert asyncio.run(provider.list_contacts()) == ["Alice", "Bob"]


class TestSettings:
    """Tests for environment-driven settings."""

    def test_defaults(self):
        """Test default values."""
        settings = get_settings()
        assert settings.app.max_utterance_length == 10_000
        assert settings.voice.locale == "en-US"

    def test_environment_override(self, monkeypatch):
        """Test prefixed environment variables."""
        monkeypatch.setenv("LEDGER_OWNER_NAME", "Sam")
        settings = get_settings()

        assert settings.ledger.owner_name == "Sam"

    def test_known_contacts_list(self, monkeypatch):
        """Test the comma-separated contact list."""
        monkeypatch.setenv("KNOWN_CONTACTS", "Alice Smith, Bob ,")
        assert get_settings().app.known_contacts_list == ["Alice Smith", "Bob"]

    def test_invalid_section_reported(self, monkeypatch):
        """Test validation reports the failing section."""
        monkeypatch.setenv("VOICE_SPEECH_RATE", "2")
        status = validate_all_settings()

        assert status["ledger"] is True
        assert status["voice"] is False
        assert "voice_error" in status


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
