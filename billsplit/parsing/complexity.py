"""
Complexity scoring for transcripts.

    score = words + 4 * conjunction_hits + 2 * punctuation

Conjunctions are counted as substrings, so "band" or "thence" also count.
The score only gates cloud-fallback eligibility; it never rejects input.
"""

import re

# Maximal runs of letters or digits
_WORD_PATTERN = re.compile(r"[^\W_]+")

CONJUNCTIONS = ("and", "then", "after", "also", "while")
PUNCTUATION = ",;:"


class ComplexityScorer:
    """Pure, stateless utterance complexity heuristic."""

    THRESHOLD = 26
    CONJUNCTION_WEIGHT = 4
    PUNCTUATION_WEIGHT = 2

    def word_count(self, text: str) -> int:
        return len(_WORD_PATTERN.findall(text))

    def conjunction_hits(self, text: str) -> int:
        lower = text.lower()
        return sum(lower.count(token) for token in CONJUNCTIONS)

    def punctuation_count(self, text: str) -> int:
        return sum(1 for char in text if char in PUNCTUATION)

    def score(self, text: str) -> int:
        """Score a sentence. Always >= 0."""
        return (
            self.word_count(text)
            + self.CONJUNCTION_WEIGHT * self.conjunction_hits(text)
            + self.PUNCTUATION_WEIGHT * self.punctuation_count(text)
        )

    def should_use_cloud(self, text: str) -> bool:
        return self.score(text) >= self.THRESHOLD
