"""
Loose slot extraction for turns the grammar cannot parse.

These helpers are forgiving on purpose: a fragment such as "owes me 10",
"Alice" or "twenty" should still fill something in the running draft.
"""

import re
from typing import Optional

from billsplit.models.command import ME, Draft
from billsplit.parsing.amounts import parse_flexible_amount
from billsplit.parsing.names import (
    PRONOUNS,
    SELF_WORDS,
    is_likely_person_name,
    normalize_person,
    normalize_text,
    trim_name_capture,
)

ACK_WORDS = frozenset({
    "ok", "okay", "k", "sure", "yes", "yep", "yeah", "alright", "got it",
})
REJECT_WORDS = frozenset({"no", "nope", "nah", "wrong"})
AUTO_SETTLE_PHRASES = frozenset({
    "paid", "mark paid", "settle", "settle up", "done settling",
})

_OWES = re.compile(r"^(?:(.+?)\s+)?owes\b(.*)$")
_I_OWE = re.compile(r"^(?:i|me)\s+owe\b(.*)$")
_PAID = re.compile(r"^(.+?)\s+paid\b(.*)$")
_FOR = re.compile(r"\s*\bfor\b\s*")

_SETTLE_WITH = re.compile(
    r"^(?:settle up|mark paid|paid|settle)(?:\s+(?:with|to|for))?\s+([a-z][a-z '\-]+)$"
)
_PAY = re.compile(r"^pay\s+([a-z][a-z '\-]+)$")


def _plain(text: str) -> str:
    return normalize_text(text).strip(" .!?")


def is_acknowledgement(text: str) -> bool:
    return _plain(text) in ACK_WORDS


def is_rejection(text: str) -> bool:
    return _plain(text) in REJECT_WORDS


def _name_or_none(raw: Optional[str]) -> Optional[str]:
    if not raw:
        return None
    name = trim_name_capture(raw)
    if not name or not is_likely_person_name(name):
        return None
    return normalize_person(name)


def extract_draft(text: str) -> Draft:
    """
    Whatever slots a fragment carries.

        "<X> owes (me|<Y>) [amount] [for <note>]"
        "(i|me) owe <X> [amount] [for <note>]"
        "<X> paid [amount] [for <Y>] [for <note>]"

    Anything else contributes at most an amount.
    """
    value = _plain(text)

    match = _OWES.match(value)
    if match is not None:
        head, _, note = match.group(2).strip().partition(" for ")
        return Draft(
            debtor_name=_name_or_none(match.group(1)),
            creditor_name=_name_or_none(head),
            amount=parse_flexible_amount(head),
            note=note.strip() or None,
        )

    match = _I_OWE.match(value)
    if match is not None:
        head, _, note = match.group(1).strip().partition(" for ")
        return Draft(
            debtor_name=ME,
            creditor_name=_name_or_none(head),
            amount=parse_flexible_amount(head),
            note=note.strip() or None,
        )

    match = _PAID.match(value)
    if match is not None:
        parts = _FOR.split(match.group(2).strip())
        return Draft(
            creditor_name=_name_or_none(match.group(1)),
            amount=parse_flexible_amount(parts[0]),
            debtor_name=_name_or_none(parts[1]) if len(parts) > 1 else None,
            note=" for ".join(parts[2:]).strip() or None,
        )

    return Draft(amount=parse_flexible_amount(value))


def parse_single_person(text: str, last_mentioned: Optional[str] = None) -> Optional[str]:
    """A bare name reply ("Alice", "me", "him"), or None."""
    value = _plain(text)
    if value in SELF_WORDS:
        return ME
    if value in PRONOUNS:
        return last_mentioned
    if value in ACK_WORDS or value in REJECT_WORDS:
        return None
    if not is_likely_person_name(value):
        return None
    return normalize_person(value)


def parse_settle_target(text: str) -> Optional[str]:
    """
    Settlement intent.

    Returns None when the text is not a settlement, "" for an automatic
    settlement, or the spoken target name.
    """
    value = _plain(text)
    if value in AUTO_SETTLE_PHRASES:
        return ""

    for pattern in (_SETTLE_WITH, _PAY):
        match = pattern.match(value)
        if match is not None:
            return match.group(1).strip()
    return None
