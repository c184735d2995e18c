"""
Entity Resolver

Maps a spoken name onto the known contact list.

Resolution order:
1. "i" / "me" -> the ledger owner
2. him / her / them -> the last person mentioned in the conversation
3. No contacts at all -> the name is accepted verbatim
4. Exact case-insensitive match -> resolved
5. Fuzzy ranking -> up to three ambiguous candidates, or not found

Fuzzy scores:
    100  equal
     90  contact's first token equals the query
     85  contact starts with "<query> "
     70  either string contains the other
     55  query contains the contact's first token
"""

from enum import Enum
from typing import Iterable, Optional

from pydantic import BaseModel, Field

from billsplit.models.command import ME
from billsplit.parsing.names import PRONOUNS, collapse_whitespace, normalize_person

MAX_CANDIDATES = 3
CONFIRM_WORDS = frozenset({"yes", "y", "yeah", "yep", "ok", "okay", "correct"})


class ResolutionStatus(str, Enum):
    RESOLVED = "resolved"
    AMBIGUOUS = "ambiguous"
    NOT_FOUND = "not_found"


class CandidateMatch(BaseModel):
    """A contact that fuzzily matches a query."""

    name: str
    score: int = Field(..., ge=0, le=100)


class NameResolution(BaseModel):
    """Outcome of resolving one raw name."""

    status: ResolutionStatus
    query: str = Field(default="", description="Normalized form of the raw name")
    name: Optional[str] = Field(
        default=None,
        description="Resolved display name (RESOLVED only)"
    )
    candidates: list[CandidateMatch] = Field(default_factory=list)

    @property
    def is_resolved(self) -> bool:
        return self.status == ResolutionStatus.RESOLVED

    @property
    def options(self) -> list[str]:
        """Candidate names, best first."""
        return [candidate.name for candidate in self.candidates]


def score_candidate(query: str, contact: str) -> int:
    """Fuzzy score of one contact against a lower-cased query."""
    name = contact.lower()
    first_token = name.split(" ")[0]

    if name == query:
        return 100
    if first_token == query:
        return 90
    if name.startswith(query + " "):
        return 85
    if query in name or name in query:
        return 70
    if first_token and first_token in query:
        return 55
    return 0


def clean_contacts(known_contacts: Iterable[str]) -> list[str]:
    """Trim contact names; drop blanks and the owner."""
    cleaned = []
    for contact in known_contacts:
        name = collapse_whitespace(contact or "")
        if name and name.lower() != ME:
            cleaned.append(name)
    return cleaned


class EntityResolver:
    """Stateless name resolution against a caller-supplied contact list."""

    def resolve(
        self,
        raw_name: str,
        known_contacts: Iterable[str],
        last_mentioned: Optional[str] = None,
    ) -> NameResolution:
        query = normalize_person(raw_name)

        if query.lower() in PRONOUNS:
            if not last_mentioned:
                return NameResolution(status=ResolutionStatus.NOT_FOUND, query=query)
            query = last_mentioned

        if not query:
            return NameResolution(status=ResolutionStatus.NOT_FOUND, query=query)

        if query == ME:
            return NameResolution(status=ResolutionStatus.RESOLVED, query=query, name=ME)

        contacts = clean_contacts(known_contacts)
        if not contacts:
            return NameResolution(status=ResolutionStatus.RESOLVED, query=query, name=query)

        lowered = query.lower()
        for contact in contacts:
            if contact.lower() == lowered:
                return NameResolution(status=ResolutionStatus.RESOLVED, query=query, name=contact)

        candidates = self.rank(lowered, contacts)
        if candidates:
            return NameResolution(
                status=ResolutionStatus.AMBIGUOUS,
                query=query,
                candidates=candidates,
            )
        return NameResolution(status=ResolutionStatus.NOT_FOUND, query=query)

    def rank(self, query: str, contacts: list[str]) -> list[CandidateMatch]:
        """Top candidates: score descending, then name, de-duplicated."""
        scored = [
            CandidateMatch(name=contact, score=score)
            for contact in contacts
            if (score := score_candidate(query, contact)) > 0
        ]
        scored.sort(key=lambda c: (-c.score, c.name.lower()))

        seen: set[str] = set()
        ranked = []
        for candidate in scored:
            key = candidate.name.lower()
            if key in seen:
                continue
            seen.add(key)
            ranked.append(candidate)
            if len(ranked) == MAX_CANDIDATES:
                break
        return ranked


def select_option(reply: str, options: list[str]) -> Optional[str]:
    """
    Match a disambiguation reply against the offered names.

    Accepts, in order: a confirmation word when only one option was
    offered, a 1-based index, an exact name, or a substring that
    identifies exactly one option.
    """
    text = collapse_whitespace(reply).lower().rstrip(".!?")
    if not text or not options:
        return None

    if len(options) == 1 and text in CONFIRM_WORDS:
        return options[0]

    if text.isdigit():
        index = int(text)
        if 1 <= index <= len(options):
            return options[index - 1]
        return None

    for option in options:
        if option.lower() == text:
            return option

    matches = [
        option for option in options
        if text in option.lower() or option.lower() in text
    ]
    if len(matches) == 1:
        return matches[0]
    return None
