"""
Person-name helpers shared by the grammar, the resolver and the dialogue.
"""

import re

from billsplit.models.command import ME
from billsplit.parsing.amounts import TENS, UNITS

# Filler words that a loose grammar capture can mistake for a name
BLOCKED_WORDS = frozenset({
    "hi", "hello", "there", "yeah", "okay", "ok", "know", "that",
    "just", "please", "want", "with", "for", "thanks", "thank you",
})

SELF_WORDS = frozenset({"i", "me"})
PRONOUNS = frozenset({"him", "her", "them"})

MAX_NAME_LENGTH = 24
MAX_NAME_TOKENS = 3

_TOKEN_PATTERN = re.compile(r"^[a-z'\-]{2,}$")
_WHITESPACE = re.compile(r"\s+")


def collapse_whitespace(text: str) -> str:
    return _WHITESPACE.sub(" ", text).strip()


def normalize_text(text: str) -> str:
    """Trim, collapse internal whitespace, lower-case."""
    return collapse_whitespace(text).lower()


def normalize_person(raw: str) -> str:
    """
    Canonical form of a spoken name.

    "i" and "me" become "me"; anything else is title-cased token by token,
    so "  alice   smith " becomes "Alice Smith".
    """
    cleaned = collapse_whitespace(raw)
    if cleaned.lower() in SELF_WORDS:
        return ME
    return " ".join(token.capitalize() for token in cleaned.split(" ") if token)


def is_likely_person_name(raw: str) -> bool:
    """
    Plausibility filter for a captured name.

    "me" and "i" always pass. Otherwise the name must not be or contain a
    filler word, must be at most 24 characters and 3 tokens, and every
    token must be 2+ characters of letters, apostrophes or hyphens.
    """
    value = normalize_text(raw)
    if value in SELF_WORDS:
        return True
    if not value or value in BLOCKED_WORDS:
        return False
    if len(value) > MAX_NAME_LENGTH:
        return False

    tokens = value.split(" ")
    if len(tokens) > MAX_NAME_TOKENS:
        return False
    if any(token in BLOCKED_WORDS for token in tokens):
        return False
    return all(_TOKEN_PATTERN.match(token) for token in tokens)


_AMOUNT_WORDS = frozenset(UNITS) | frozenset(TENS) | {
    "hundred", "thousand", "dollar", "dollars", "bucks", "usd", "for",
}


def trim_name_capture(raw: str) -> str:
    """
    Cut a loose name capture at the first amount-like token.

    "bob 20 for lunch" -> "bob", "me twenty five" -> "me".
    """
    kept = []
    for token in collapse_whitespace(raw).split(" "):
        word = token.lower().strip(".,;:!?")
        if not word or word in _AMOUNT_WORDS or any(c.isdigit() or c == "$" for c in word):
            break
        kept.append(word)
    return " ".join(kept)
