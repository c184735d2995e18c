"""
Composite (multi-clause) utterances.

"Alice owes me 10, and I owe Bob 5, net it out" is split into clauses,
each clause with an amount becomes a BalanceCommand, and the commands can
be folded into a per-person net balance for a consensus summary.

Nothing here touches the ledger or the session; the manager decides what
to do with the extracted balances.
"""

import re
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, Field

from billsplit.models.command import ME, BalanceCommand
from billsplit.parsing.amounts import parse_flexible_amount
from billsplit.parsing.names import (
    PRONOUNS,
    is_likely_person_name,
    normalize_person,
    normalize_text,
    trim_name_capture,
)
from billsplit.dialogue.prompts import balance_line

_CONSENSUS = re.compile(r"\b(?:consensus|net|settle up)\b", re.IGNORECASE)
_CLAUSE_SPLIT = re.compile(r"[;,]|\b(?:and|but|then|while|so)\b", re.IGNORECASE)
_FILLERS = re.compile(r"^(?:(?:uh|um|well|okay|ok|like)\b[\s,]*)+", re.IGNORECASE)

_OWES_ME = re.compile(r"^([a-z][a-z '\-]{1,40}?)\s+owes\s+me\b")
_I_OWE = re.compile(
    r"\b(?:i|me)(?:\s+(?:also|still|just))?\s+owe\s+(him|her|them|[a-z][a-z '\-]{1,40})\b"
)


class CompositeExtraction(BaseModel):
    """Balances found in one utterance, plus the running pronoun memo."""

    commands: list[BalanceCommand] = Field(default_factory=list)
    last_mentioned: Optional[str] = None


def is_consensus_request(text: str) -> bool:
    return _CONSENSUS.search(text) is not None


def split_clauses(text: str) -> list[str]:
    """Split on , ; and clause conjunctions; drop leading fillers and blanks."""
    clauses = []
    for part in _CLAUSE_SPLIT.split(normalize_text(text)):
        clause = _FILLERS.sub("", part.strip()).strip()
        if clause:
            clauses.append(clause)
    return clauses


def _counterparty(raw: str, memo: Optional[str]) -> Optional[str]:
    name = trim_name_capture(raw)
    if name in PRONOUNS:
        return memo
    if not name or not is_likely_person_name(name):
        return None
    return normalize_person(name)


def extract_balances(text: str, last_mentioned: Optional[str] = None) -> CompositeExtraction:
    """
    Pull every "<X> owes me <amt>" / "I owe <X> <amt>" clause out of an utterance.

    Pronouns resolve to the most recent counterparty, starting from
    last_mentioned. Clauses without an amount or a usable name are skipped.
    """
    memo = last_mentioned
    commands = []

    for clause in split_clauses(text):
        amount = parse_flexible_amount(clause)
        if amount is None:
            continue
        note = clause.partition(" for ")[2].strip()

        match = _OWES_ME.search(clause)
        if match is not None:
            name = _counterparty(match.group(1), memo)
            if name is None or name == ME:
                continue
            commands.append(BalanceCommand(
                creditor_name=ME, debtor_name=name, amount=amount, note=note
            ))
            memo = name
            continue

        match = _I_OWE.search(clause)
        if match is not None:
            name = _counterparty(match.group(1), memo)
            if name is None or name == ME:
                continue
            commands.append(BalanceCommand(
                creditor_name=name, debtor_name=ME, amount=amount, note=note
            ))
            memo = name

    return CompositeExtraction(commands=commands, last_mentioned=memo)


def counterparty_of(command: BalanceCommand) -> str:
    if command.creditor_name == ME:
        return command.debtor_name
    return command.creditor_name


def net_balances(commands: list[BalanceCommand]) -> dict[str, Decimal]:
    """
    Signed net per counterparty.

    Positive: the counterparty owes the owner. Negative: the owner owes them.
    Keys keep the first spelling seen; matching is case-insensitive.
    """
    display: dict[str, str] = {}
    totals: dict[str, Decimal] = {}

    for command in commands:
        name = counterparty_of(command)
        key = name.lower()
        display.setdefault(key, name)
        signed = command.amount if command.creditor_name == ME else -command.amount
        totals[key] = totals.get(key, Decimal("0")) + signed

    return {display[key]: total for key, total in totals.items()}


def summarize(commands: list[BalanceCommand]) -> str:
    """'Consensus: Alice owes you $10.00. You owe Bob $5.00.'"""
    nets = net_balances(commands)
    lines = [balance_line(name, nets[name]) for name in sorted(nets, key=str.lower)]
    return "Consensus: " + ". ".join(lines) + "."
