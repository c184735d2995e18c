"""
Routing Pipeline

transcript -> complexity score -> strict parse -> (gated) permissive parse

The strict tier always runs first. The permissive tier only runs when
the strict tier failed AND the sentence looks like a long, clause-heavy
utterance:

    score >= 26 AND words >= 20 AND (',' or ';' in text)

Every successful parse carries a RouteDecision with ordered reason tags.
The pipeline remembers the last decision for callers that want to show
or log it.
"""

from typing import Optional

import structlog
from pydantic import ValidationError

from billsplit.models.command import ParsedCommand, ParseRoute, RouteDecision
from billsplit.parsing.complexity import ComplexityScorer
from billsplit.parsing.errors import CommandValidationError, ParseFailedError
from billsplit.parsing.grammar import (
    GrammarMatch,
    GrammarParser,
    PermissiveGrammarParser,
    StrictGrammarParser,
)
from billsplit.parsing.names import collapse_whitespace

logger = structlog.get_logger(__name__)

FALLBACK_MIN_WORDS = 20
CLAUSE_MARKS = (",", ";")

# Reason tags
ON_DEVICE_SUCCESS = "on_device_success"
COMPLEX_BUT_LOCAL_SUCCESS = "complex_but_local_success"
LOW_COMPLEXITY = "low_complexity"
ON_DEVICE_PARSE_FAILED = "on_device_parse_failed"
COMPLEXITY_TRIGGERED = "complexity_triggered"
CLOUD_FALLBACK_SUCCESS = "cloud_fallback_success"
FALLBACK_NOT_TRIGGERED = "fallback_not_triggered"


class RoutingPipeline:
    """
    Two-tier parser with complexity-gated fallback.

    Not thread-safe: last_route / last_reason_tags / last_complexity_score
    are overwritten by every call.
    """

    def __init__(
        self,
        scorer: Optional[ComplexityScorer] = None,
        strict: Optional[GrammarParser] = None,
        permissive: Optional[GrammarParser] = None,
    ):
        self._scorer = scorer or ComplexityScorer()
        self._strict = strict or StrictGrammarParser()
        self._permissive = permissive or PermissiveGrammarParser()

        self.last_route: Optional[ParseRoute] = None
        self.last_reason_tags: list[str] = []
        self.last_complexity_score: int = 0

    @property
    def scorer(self) -> ComplexityScorer:
        return self._scorer

    def should_fallback(self, text: str, score: int) -> bool:
        """Gate for the permissive tier."""
        return (
            score >= self._scorer.THRESHOLD
            and self._scorer.word_count(text) >= FALLBACK_MIN_WORDS
            and any(mark in text for mark in CLAUSE_MARKS)
        )

    def parse(self, transcript: str) -> ParsedCommand:
        """
        Parse a transcript into a validated command.

        Raises:
            ParseFailedError: No tier matched (or the fallback gate stayed shut)
            CommandValidationError: A tier matched but the command is invalid
        """
        text = collapse_whitespace(transcript)
        score = self._scorer.score(text)
        self.last_complexity_score = score

        match = self._strict.parse(text)
        if match is not None:
            tags = [
                ON_DEVICE_SUCCESS,
                COMPLEX_BUT_LOCAL_SUCCESS if score >= self._scorer.THRESHOLD else LOW_COMPLEXITY,
            ]
            return self._accept(match, ParseRoute.ON_DEVICE, tags, score, text)

        if self.should_fallback(text, score):
            match = self._permissive.parse(text)
            if match is not None:
                tags = [ON_DEVICE_PARSE_FAILED, COMPLEXITY_TRIGGERED, CLOUD_FALLBACK_SUCCESS]
                return self._accept(match, ParseRoute.CLOUD_FALLBACK, tags, score, text)

        tags = [ON_DEVICE_PARSE_FAILED, FALLBACK_NOT_TRIGGERED]
        self.last_route = None
        self.last_reason_tags = tags
        logger.debug("parse_failed", reason_tags=tags, complexity_score=score)
        raise ParseFailedError(reason_tags=tags, complexity_score=score)

    def _accept(
        self,
        match: GrammarMatch,
        route: ParseRoute,
        tags: list[str],
        score: int,
        transcript: str,
    ) -> ParsedCommand:
        self.last_route = route
        self.last_reason_tags = tags
        logger.debug(
            "route_decided",
            route=route.value,
            pattern=match.pattern,
            reason_tags=tags,
            complexity_score=score,
        )

        try:
            return ParsedCommand(
                creditor_name=match.creditor_name,
                debtor_name=match.debtor_name,
                amount=match.amount,
                note=match.note,
                decision=RouteDecision(
                    route=route,
                    reason_tags=tags,
                    complexity_score=score,
                ),
                transcript=transcript,
            )
        except ValidationError as e:
            raise CommandValidationError(
                f"Parsed command is invalid: {e.errors()[0]['msg']}"
            ) from e
