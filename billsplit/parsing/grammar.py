"""
Ordered pattern grammar for bill sentences.

Each pattern extracts (creditor, debtor, amount, note) from normalized
text. Patterns are tried in a fixed order and the first match wins:

    owes_me       "<debtor> owes me <amount> [for <note>]"
    i_owe         "(i|me) owe <creditor> <amount> [for <note>]"
    third_party   "... <debtor> owes <creditor> <amount> [for <note>]"  (permissive only)
    paid_for      "<creditor> paid <amount> for <debtor> [for <note>]"

The first pattern whose regex matches decides the result: if its names
fail the plausibility filter or its amount is unusable, the sentence has
no parse and later patterns are not tried. Parsers never raise; no match
returns None.
"""

import re
from decimal import Decimal
from typing import Callable, NamedTuple, Optional

from pydantic import BaseModel, ConfigDict

from billsplit.models.command import ME
from billsplit.parsing.amounts import AMOUNT_PATTERN, to_decimal
from billsplit.parsing.names import (
    is_likely_person_name,
    normalize_person,
    normalize_text,
)

_NAME = r"([a-z ]+?)"
_NOTE = r"(?:\s+for\s+(.+))?"


class GrammarMatch(BaseModel):
    """Slots extracted by one grammar pattern."""
    model_config = ConfigDict(frozen=True)

    pattern: str
    creditor_name: str
    debtor_name: str
    amount: Decimal
    note: str = ""


class GrammarPattern(NamedTuple):
    name: str
    regex: re.Pattern
    # match -> (creditor, debtor, amount, note)
    extract: Callable[[re.Match], tuple[str, str, Optional[str], Optional[str]]]


OWES_ME = GrammarPattern(
    name="owes_me",
    regex=re.compile(rf"^{_NAME}\s+owes\s+me\s+{AMOUNT_PATTERN}{_NOTE}$", re.IGNORECASE),
    extract=lambda m: (ME, m.group(1), m.group(2), m.group(3)),
)

I_OWE = GrammarPattern(
    name="i_owe",
    regex=re.compile(rf"^(?:i|me)\s+owe\s+{_NAME}\s+{AMOUNT_PATTERN}{_NOTE}$", re.IGNORECASE),
    extract=lambda m: (m.group(1), ME, m.group(2), m.group(3)),
)

THIRD_PARTY = GrammarPattern(
    name="third_party",
    regex=re.compile(
        rf"^.*?{_NAME}\s+owes\s+{_NAME}\s+{AMOUNT_PATTERN}{_NOTE}$", re.IGNORECASE
    ),
    extract=lambda m: (m.group(2), m.group(1), m.group(3), m.group(4)),
)

PAID_FOR = GrammarPattern(
    name="paid_for",
    regex=re.compile(
        rf"^{_NAME}\s+paid\s+{AMOUNT_PATTERN}\s+for\s+{_NAME}{_NOTE}$", re.IGNORECASE
    ),
    extract=lambda m: (m.group(1), m.group(3), m.group(2), m.group(4)),
)


class GrammarParser:
    """
    Tries an ordered list of patterns against a sentence.

    Subclasses only choose the pattern list.
    """

    patterns: tuple[GrammarPattern, ...] = ()

    def parse(self, text: str) -> Optional[GrammarMatch]:
        normalized = normalize_text(text)
        if not normalized:
            return None

        for pattern in self.patterns:
            match = pattern.regex.match(normalized)
            if match is not None:
                return self._build(pattern, match)
        return None

    def _build(self, pattern: GrammarPattern, match: re.Match) -> Optional[GrammarMatch]:
        creditor, debtor, raw_amount, note = pattern.extract(match)
        creditor = creditor.strip()
        debtor = debtor.strip()

        if not (is_likely_person_name(creditor) and is_likely_person_name(debtor)):
            return None

        amount = to_decimal(raw_amount)
        if amount is None:
            return None

        return GrammarMatch(
            pattern=pattern.name,
            creditor_name=normalize_person(creditor),
            debtor_name=normalize_person(debtor),
            amount=amount,
            note=(note or "").strip(),
        )


class StrictGrammarParser(GrammarParser):
    """On-device tier: only sentences that mention the owner or a payment."""

    patterns = (OWES_ME, I_OWE, PAID_FOR)


class PermissiveGrammarParser(GrammarParser):
    """Fallback tier: also accepts third-party debts anywhere in the sentence."""

    patterns = (OWES_ME, I_OWE, THIRD_PARTY, PAID_FOR)
