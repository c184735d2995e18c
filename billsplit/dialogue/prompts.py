"""
Texts the dialogue manager speaks.

Kept in one place so the front end, the tests and the manager agree on
the exact wording.
"""

from decimal import Decimal

from billsplit.models.command import DisambiguationSlot, MissingSlot
from billsplit.parsing.amounts import format_currency

GENERIC_PROMPT = "Tell me who owes whom and how much."
RESTART_PROMPT = "I still need missing details. Let's restart. Say: Alice owes me 12.50 for lunch."
TRANSCRIPTION_RETRY = "I couldn't transcribe that clearly. Please say it again."
ASK_OTHER_NAME = "Okay, please say the contact name you want instead."
CONSENSUS_ONE_SIDE = "I only caught one side of that. Tell me the other amount too."
CONSENSUS_NO_AMOUNTS = "I heard a consensus question but missed the amounts. Please repeat both sides."
MULTIPLE_BALANCES_PREFIX = "I heard multiple balances. "

SLOT_QUESTIONS = {
    MissingSlot.AMOUNT: "How much is it?",
    MissingSlot.DEBTOR: "Who owes the money?",
    MissingSlot.CREDITOR: "Who should receive the money?",
}


def slot_question(slot: MissingSlot) -> str:
    return SLOT_QUESTIONS[slot]


def acknowledged_question(slot: MissingSlot) -> str:
    return f"Got it. {SLOT_QUESTIONS[slot]}"


def numbered(options: list[str]) -> str:
    return ", ".join(f"{index}. {option}" for index, option in enumerate(options, start=1))


def disambiguation_question(
    raw_name: str,
    options: list[str],
    slot: DisambiguationSlot,
) -> str:
    """Question for a name that matched several contacts (or one, fuzzily)."""
    if len(options) == 1:
        return (
            f"I couldn't find an exact contact match for '{raw_name}'. "
            f"Best match is {options[0]}. Say yes to confirm or say another name."
        )
    return (
        f"I couldn't find an exact contact match for '{raw_name}' as the {slot.role}. "
        f"Best matches: {numbered(options)}. Say the name or number."
    )


def not_found_question(raw_name: str, slot: DisambiguationSlot) -> str:
    return (
        f"I couldn't find a contact named '{raw_name}' for the {slot.role}. "
        "Please say the exact contact name."
    )


def composite_ambiguous_question(raw_name: str, options: list[str]) -> str:
    return (
        f"I couldn't find an exact contact match for '{raw_name}'. "
        f"Best matches: {numbered(options)}. Please repeat with one of these names."
    )


def composite_not_found_question(raw_name: str) -> str:
    return (
        f"I couldn't find a contact named '{raw_name}'. "
        "Please repeat with the exact contact name."
    )


def added_message(debtor: str, creditor: str, amount: Decimal) -> str:
    return f"Added {debtor} owes {creditor} {format_currency(amount)}."


def balance_line(counterparty: str, net: Decimal) -> str:
    """One consensus line; net > 0 means the counterparty owes the owner."""
    if net > 0:
        return f"{counterparty} owes you {format_currency(net)}"
    if net < 0:
        return f"You owe {counterparty} {format_currency(-net)}"
    return f"You and {counterparty} are settled up"
