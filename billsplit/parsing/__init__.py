"""
Parsing Package

Deterministic text understanding: complexity scoring, amount extraction,
the two-tier grammar and the routing pipeline that chooses between them.
"""

from billsplit.parsing.amounts import (
    format_currency,
    parse_flexible_amount,
    parse_numeric_amount,
    parse_word_amount,
)
from billsplit.parsing.complexity import ComplexityScorer
from billsplit.parsing.errors import (
    CommandValidationError,
    FailureKind,
    ParseFailedError,
    TranscriptionFailedError,
    VoicePipelineError,
)
from billsplit.parsing.grammar import (
    GrammarMatch,
    GrammarParser,
    PermissiveGrammarParser,
    StrictGrammarParser,
)
from billsplit.parsing.names import (
    BLOCKED_WORDS,
    is_likely_person_name,
    normalize_person,
    normalize_text,
)
from billsplit.parsing.routing import RoutingPipeline

__all__ = [
    # Amounts
    "format_currency",
    "parse_flexible_amount",
    "parse_numeric_amount",
    "parse_word_amount",
    # Scoring
    "ComplexityScorer",
    # Errors
    "CommandValidationError",
    "FailureKind",
    "ParseFailedError",
    "TranscriptionFailedError",
    "VoicePipelineError",
    # Grammar
    "GrammarMatch",
    "GrammarParser",
    "PermissiveGrammarParser",
    "StrictGrammarParser",
    # Names
    "BLOCKED_WORDS",
    "is_likely_person_name",
    "normalize_person",
    "normalize_text",
    # Routing
    "RoutingPipeline",
]
