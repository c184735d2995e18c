"""
Tests for the parsing layer: complexity scoring, amounts, names and grammar.
"""

import pytest
from decimal import Decimal

from billsplit.models.command import ME
from billsplit.parsing.amounts import (
    format_currency,
    parse_flexible_amount,
    parse_numeric_amount,
    parse_word_amount,
)
from billsplit.parsing.complexity import ComplexityScorer
from billsplit.parsing.grammar import PermissiveGrammarParser, StrictGrammarParser
from billsplit.parsing.names import (
    is_likely_person_name,
    normalize_person,
    normalize_text,
    trim_name_capture,
)


class TestComplexityScorer:
    """Tests for the complexity heuristic."""

    def setup_method(self):
        self.scorer = ComplexityScorer()

    def test_simple_sentence_score(self):
        """Test a plain command scores its word count."""
        assert self.scorer.score("Alice owes me 12.50 for lunch") == 7

    def test_conjunctions_count_as_substrings(self):
        """Test 'and' inside another word still counts."""
        assert self.scorer.conjunction_hits("brand") == 1
        assert self.scorer.score("brand") == 1 + 4

    def test_punctuation_weight(self):
        """Test each of , ; : adds two."""
        assert self.scorer.punctuation_count("a, b; c:") == 3
        assert self.scorer.score("a, b; c:") == 3 + 6

    def test_empty_text_scores_zero(self):
        """Test the score is never negative."""
        assert self.scorer.score("") == 0
        assert self.scorer.score("!!!") == 0

    def test_score_grows_with_punctuation_and_conjunctions(self):
        """Test adding punctuation or conjunctions never lowers the score."""
        base = "alice owes me ten"
        assert self.scorer.score(base + ",") > self.scorer.score(base)
        assert self.scorer.score(base + " and then") > self.scorer.score(base)

    def test_threshold(self):
        """Test cloud eligibility starts at 26."""
        assert self.scorer.should_use_cloud("word " * 26) is True
        assert self.scorer.should_use_cloud("word " * 25) is False


class TestAmountExtractor:
    """Tests for numeric and spelled-out amounts."""

    def test_numeric_with_currency_marker(self):
        """Test $, US$ and usd prefixes."""
        assert parse_flexible_amount("owes me $12.50") == Decimal("12.50")
        assert parse_flexible_amount("US$15 for cab") == Decimal("15")
        assert parse_flexible_amount("usd 7") == Decimal("7")

    def test_numeric_zero_is_returned(self):
        """Test the numeric path returns zero as found."""
        assert parse_numeric_amount("owes me 0") == Decimal("0")

    def test_numeric_wins_over_words(self):
        """Test digits are preferred over number words."""
        assert parse_flexible_amount("twenty or 5") == Decimal("5")

    def test_spelled_out_tens_and_units(self):
        """Test twenty five."""
        assert parse_word_amount("twenty five") == Decimal("25")

    def test_spelled_out_hundreds(self):
        """Test hundred multiplies and hyphens split words."""
        assert parse_word_amount("two hundred") == Decimal("200")
        assert parse_word_amount("three hundred forty-two") == Decimal("342")

    def test_spelled_out_thousands(self):
        """Test thousand flushes into the total."""
        assert parse_word_amount("one thousand fifty") == Decimal("1050")

    def test_spelled_out_stops_at_first_other_word(self):
        """Test parsing stops once a non-number word follows a number."""
        assert parse_word_amount("bob owes me twenty dollars and five") == Decimal("20")

    def test_spelled_out_requires_positive_value(self):
        """Test zero and bare multipliers give nothing."""
        assert parse_word_amount("zero") is None
        assert parse_word_amount("hundred") is None

    def test_no_amount(self):
        """Test text without numbers."""
        assert parse_flexible_amount("nothing here") is None
        assert parse_flexible_amount("") is None

    def test_amount_too_large_for_cents(self):
        """Test a number too long to hold in cents is no amount."""
        assert parse_numeric_amount("1" * 30) is None
        assert parse_flexible_amount("owes me " + "9" * 40) is None

    def test_format_currency(self):
        """Test dollar formatting with grouping."""
        assert format_currency(Decimal("1234.5")) == "$1,234.50"


class TestNames:
    """Tests for name normalization and plausibility."""

    def test_normalize_person(self):
        """Test title-casing and owner mapping."""
        assert normalize_person("  alice   smith ") == "Alice Smith"
        assert normalize_person("I") == ME
        assert normalize_person("ME") == ME

    def test_normalize_text(self):
        """Test trimming, collapsing and lower-casing."""
        assert normalize_text("  Alice   OWES me ") == "alice owes me"

    def test_plausible_names(self):
        """Test names that should pass."""
        assert is_likely_person_name("me") is True
        assert is_likely_person_name("Mary-Jane") is True
        assert is_likely_person_name("O'Brien") is True
        assert is_likely_person_name("alice smith") is True

    def test_implausible_names(self):
        """Test fillers, long names and short tokens are rejected."""
        assert is_likely_person_name("okay") is False
        assert is_likely_person_name("thank you") is False
        assert is_likely_person_name("x") is False
        assert is_likely_person_name("anne marie louise jones") is False
        assert is_likely_person_name("abcdefghijklmnopqrstuvwxyz") is False
        assert is_likely_person_name("r2d2") is False
        assert is_likely_person_name("hello there") is False
        assert is_likely_person_name("okay bob") is False

    def test_trim_name_capture(self):
        """Test amount words are cut off a loose capture."""
        assert trim_name_capture("bob 20 for lunch") == "bob"
        assert trim_name_capture("me twenty five") == "me"
        assert trim_name_capture("$5") == ""


class TestGrammarParser:
    """Tests for the strict and permissive grammars."""

    def setup_method(self):
        self.strict = StrictGrammarParser()
        self.permissive = PermissiveGrammarParser()

    def test_owes_me(self):
        """Test '<debtor> owes me <amount> for <note>'."""
        match = self.strict.parse("Alice owes me 12.50 for lunch")
        assert match is not None
        assert match.pattern == "owes_me"
        assert match.creditor_name == ME
        assert match.debtor_name == "Alice"
        assert match.amount == Decimal("12.50")
        assert match.note == "lunch"

    def test_i_owe(self):
        """Test '(i|me) owe <creditor> <amount>'."""
        match = self.strict.parse("I owe Bob 20")
        assert match is not None
        assert match.creditor_name == "Bob"
        assert match.debtor_name == ME
        assert match.amount == Decimal("20")
        assert match.note == ""

    def test_paid_for(self):
        """Test '<creditor> paid <amount> for <debtor> for <note>'."""
        match = self.strict.parse("Bob paid $30 for Alice for pizza")
        assert match is not None
        assert match.pattern == "paid_for"
        assert match.creditor_name == "Bob"
        assert match.debtor_name == "Alice"
        assert match.note == "pizza"

    def test_currency_word(self):
        """Test usd before the amount."""
        match = self.strict.parse("alice owes me usd 7")
        assert match is not None
        assert match.amount == Decimal("7")

    def test_third_party_only_permissive(self):
        """Test third-party debts need the permissive grammar."""
        assert self.strict.parse("Bob owes Alice 31 for dinner") is None

        match = self.permissive.parse("Bob owes Alice 31 for dinner")
        assert match is not None
        assert match.pattern == "third_party"
        assert match.debtor_name == "Bob"
        assert match.creditor_name == "Alice"

    def test_permissive_ignores_leading_text(self):
        """Test the third-party pattern matches after a comma."""
        match = self.permissive.parse("after the trip, bob owes alice 31")
        assert match is not None
        assert match.debtor_name == "Bob"
        assert match.creditor_name == "Alice"
        assert match.amount == Decimal("31")

    def test_filler_names_rejected(self):
        """Test blocked words never become names."""
        assert self.strict.parse("okay owes me 5") is None
        assert self.strict.parse("hello owes me 5") is None
        assert self.strict.parse("okay bob owes me 10") is None
        assert self.strict.parse("hello there owes me 10") is None

    def test_first_matching_pattern_decides(self):
        """Test a rejected capture is not retried against later patterns."""
        assert self.permissive.parse("okay so bob owes me 10") is None
        assert self.permissive.parse("Alice owes me " + "1" * 30) is None

    def test_long_names_rejected(self):
        """Test more than three name tokens is not a name."""
        assert self.strict.parse("anne marie louise jones owes me 5") is None

    def test_no_match_returns_none(self):
        """Test malformed input returns None instead of raising."""
        assert self.strict.parse("") is None
        assert self.strict.parse("what's the weather") is None
        assert self.permissive.parse("owes owes owes") is None


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
