"""
Tests for the routing pipeline and entity resolver.
"""

import pytest
from decimal import Decimal

from billsplit.models.command import ME, ParseRoute
from billsplit.parsing.errors import (
    CommandValidationError,
    FailureKind,
    ParseFailedError,
)
from billsplit.parsing.routing import RoutingPipeline
from billsplit.resolution import EntityResolver, ResolutionStatus, select_option


LONG_THIRD_PARTY = (
    "okay so after the long weekend trip with everyone we finally worked "
    "out the receipts, bob owes alice 31 for dinner"
)


class TestRoutingPipeline:
    """Tests for strict-first parsing with gated fallback."""

    def setup_method(self):
        self.pipeline = RoutingPipeline()

    def test_simple_command_stays_on_device(self):
        """Test a short command is parsed locally."""
        command = self.pipeline.parse("Alice owes me 12.50 for lunch")

        assert command.decision.route == ParseRoute.ON_DEVICE
        assert command.decision.reason_tags == ["on_device_success", "low_complexity"]
        assert command.decision.complexity_score == 7
        assert command.debtor_name == "Alice"
        assert command.creditor_name == ME
        assert self.pipeline.last_route == ParseRoute.ON_DEVICE

    def test_complex_command_still_local(self):
        """Test a long sentence the strict grammar handles is tagged complex."""
        command = self.pipeline.parse(
            "alice owes me 12 for the dinner and drinks and taxi and tickets and snacks"
        )
        assert command.decision.route == ParseRoute.ON_DEVICE
        assert command.decision.reason_tags == [
            "on_device_success",
            "complex_but_local_success",
        ]

    def test_long_third_party_uses_fallback(self):
        """Test the permissive tier picks up a long clause-heavy utterance."""
        command = self.pipeline.parse(LONG_THIRD_PARTY)

        assert command.decision.route == ParseRoute.CLOUD_FALLBACK
        assert command.decision.reason_tags == [
            "on_device_parse_failed",
            "complexity_triggered",
            "cloud_fallback_success",
        ]
        assert command.decision.complexity_score == 27
        assert command.debtor_name == "Bob"
        assert command.creditor_name == "Alice"
        assert command.amount == Decimal("31.00")
        assert command.note == "dinner"

    def test_gate_needs_clause_punctuation(self):
        """Test the same utterance without a comma is not retried."""
        with pytest.raises(ParseFailedError) as exc_info:
            self.pipeline.parse(LONG_THIRD_PARTY.replace(",", ""))

        assert exc_info.value.reason_tags == [
            "on_device_parse_failed",
            "fallback_not_triggered",
        ]
        assert exc_info.value.complexity_score == 25
        assert self.pipeline.last_route is None

    def test_short_third_party_fails(self):
        """Test short third-party debts never reach the permissive tier."""
        with pytest.raises(ParseFailedError):
            self.pipeline.parse("Bob owes Alice 31")

    def test_unparseable_text(self):
        """Test the failure kind of unparseable input."""
        with pytest.raises(ParseFailedError) as exc_info:
            self.pipeline.parse("hello there")
        assert exc_info.value.kind == FailureKind.PARSE_FAILED

    def test_zero_amount_is_invalid(self):
        """Test a matched command with a zero amount fails validation."""
        with pytest.raises(CommandValidationError):
            self.pipeline.parse("Alice owes me 0")

    def test_same_parties_is_invalid(self):
        """Test 'me owe me' fails validation."""
        with pytest.raises(CommandValidationError):
            self.pipeline.parse("me owe me 5")


class TestEntityResolver:
    """Tests for contact resolution."""

    def setup_method(self):
        self.resolver = EntityResolver()

    def test_ambiguous_prefix(self):
        """Test a short prefix offers both close contacts."""
        result = self.resolver.resolve("ali", ["Alice Smith", "Alicia Nunez"])

        assert result.status == ResolutionStatus.AMBIGUOUS
        assert result.options == ["Alice Smith", "Alicia Nunez"]
        assert [c.score for c in result.candidates] == [70, 70]

    def test_exact_match_ignores_case(self):
        """Test exact matches keep the contact's casing."""
        result = self.resolver.resolve("alice smith", ["Alice Smith", "Bob"])
        assert result.is_resolved
        assert result.name == "Alice Smith"

    def test_first_name_is_still_ambiguous(self):
        """Test a first-name match is offered, not assumed."""
        result = self.resolver.resolve("alice", ["Alice Smith", "Bob"])
        assert result.status == ResolutionStatus.AMBIGUOUS
        assert result.options == ["Alice Smith"]
        assert result.candidates[0].score == 90

    def test_multi_word_prefix_score(self):
        """Test '<query> ' prefixes score 85."""
        result = self.resolver.resolve("mary ann", ["Mary Ann Lee"])
        assert result.candidates[0].score == 85

    def test_first_token_inside_query(self):
        """Test the weakest fuzzy score."""
        result = self.resolver.resolve("bobby", ["Bob Smith"])
        assert result.candidates[0].score == 55

    def test_owner(self):
        """Test 'me' always resolves to the owner."""
        result = self.resolver.resolve("Me", ["Alice"])
        assert result.name == ME

    def test_no_contacts_accepts_name(self):
        """Test names are accepted verbatim without a contact list."""
        result = self.resolver.resolve("bob", [])
        assert result.is_resolved
        assert result.name == "Bob"

    def test_owner_is_not_a_contact(self):
        """Test 'me' in the contact list does not count as a contact."""
        result = self.resolver.resolve("bob", ["me", "  "])
        assert result.name == "Bob"

    def test_pronoun_uses_last_mentioned(self):
        """Test him/her/them resolve to the remembered person."""
        result = self.resolver.resolve("her", ["Alice"], last_mentioned="Alice")
        assert result.name == "Alice"

        result = self.resolver.resolve("them", ["Alice"])
        assert result.status == ResolutionStatus.NOT_FOUND

    def test_not_found(self):
        """Test an unrelated name."""
        result = self.resolver.resolve("zed", ["Alice"])
        assert result.status == ResolutionStatus.NOT_FOUND
        assert result.candidates == []

    def test_candidates_capped_and_deduplicated(self):
        """Test at most three distinct candidates come back."""
        result = self.resolver.resolve("al", ["Al A", "Al B", "Al C", "Al D", "al a"])
        assert result.options == ["Al A", "Al B", "Al C"]


class TestSelectOption:
    """Tests for disambiguation replies."""

    OPTIONS = ["Alice Smith", "Alicia Nunez"]

    def test_number(self):
        """Test 1-based indexes."""
        assert select_option("2", self.OPTIONS) == "Alicia Nunez"
        assert select_option("5", self.OPTIONS) is None

    def test_confirmation_needs_single_option(self):
        """Test 'yes' only confirms a single offer."""
        assert select_option("yes", ["Alice Smith"]) == "Alice Smith"
        assert select_option("yes", self.OPTIONS) is None

    def test_exact_and_partial_names(self):
        """Test exact names and unique substrings."""
        assert select_option("Alice Smith", self.OPTIONS) == "Alice Smith"
        assert select_option("alicia", self.OPTIONS) == "Alicia Nunez"
        assert select_option("ali", self.OPTIONS) is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
