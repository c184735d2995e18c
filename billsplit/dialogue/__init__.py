"""
Dialogue Package

Multi-turn conversation handling: session state, composite utterances,
slot filling and the DialogueManager that ties them together.
"""

from billsplit.dialogue.composite import (
    extract_balances,
    is_consensus_request,
    net_balances,
    summarize,
)
from billsplit.dialogue.manager import DialogueManager
from billsplit.dialogue.session import MAX_CLARIFICATION_TURNS, ConversationSession

__all__ = [
    "extract_balances",
    "is_consensus_request",
    "net_balances",
    "summarize",
    "DialogueManager",
    "MAX_CLARIFICATION_TURNS",
    "ConversationSession",
]
