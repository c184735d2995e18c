"""Name resolution package."""

from billsplit.resolution.resolver import (
    CandidateMatch,
    EntityResolver,
    NameResolution,
    ResolutionStatus,
    select_option,
)

__all__ = [
    "CandidateMatch",
    "EntityResolver",
    "NameResolution",
    "ResolutionStatus",
    "select_option",
]
