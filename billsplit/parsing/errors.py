"""
Failure taxonomy for the voice-to-ledger pipeline.

Every failure here is recoverable inside a conversation. Nothing in the
parsing or resolution layer is fatal.
"""

from enum import Enum
from typing import Optional


class FailureKind(str, Enum):
    """Closed set of failure kinds."""
    TRANSCRIPTION_FAILED = "transcription_failed"  # No transcript; caller re-prompts
    PARSE_FAILED = "parse_failed"                  # No grammar tier matched
    VALIDATION_FAILED = "validation_failed"        # Matched, but not a valid command
    AMBIGUOUS_NAME = "ambiguous_name"              # Several contacts fit a name
    NAME_NOT_FOUND = "name_not_found"              # No contact fits a name


class VoicePipelineError(Exception):
    """Base exception for the voice pipeline."""

    kind: FailureKind = FailureKind.PARSE_FAILED

    def __init__(self, message: str, kind: Optional[FailureKind] = None):
        if kind is not None:
            self.kind = kind
        super().__init__(message)


class TranscriptionFailedError(VoicePipelineError):
    """No transcript could be obtained from audio."""

    kind = FailureKind.TRANSCRIPTION_FAILED

    def __init__(self, message: str = "Could not transcribe audio."):
        super().__init__(message)


class ParseFailedError(VoicePipelineError):
    """Neither grammar tier matched the sentence."""

    kind = FailureKind.PARSE_FAILED

    def __init__(
        self,
        reason_tags: list[str],
        complexity_score: int,
        message: str = "Could not parse the sentence into a bill command.",
    ):
        self.reason_tags = reason_tags
        self.complexity_score = complexity_score
        super().__init__(message)


class CommandValidationError(VoicePipelineError):
    """A grammar matched, but the command breaks an invariant (amount, parties)."""

    kind = FailureKind.VALIDATION_FAILED
