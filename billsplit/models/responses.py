"""
Conversation responses.

Every turn of the dialogue manager produces exactly one of these.
The `kind` field is the discriminator.
"""

from typing import Annotated, Literal, Optional, Union

from pydantic import BaseModel, Field

from billsplit.models.command import ParsedCommand


class Added(BaseModel):
    """A command was finalized and should be written to the ledger."""

    kind: Literal["added"] = "added"
    command: ParsedCommand
    message: str

    @property
    def text(self) -> str:
        return self.message


class Ask(BaseModel):
    """A clarifying question for the user."""

    kind: Literal["ask"] = "ask"
    question: str

    @property
    def text(self) -> str:
        return self.question


class Info(BaseModel):
    """An informational reply. Nothing is written to the ledger."""

    kind: Literal["info"] = "info"
    message: str

    @property
    def text(self) -> str:
        return self.message


class Settle(BaseModel):
    """
    Settle balances with a person.

    target_name None means "auto": the ledger picks the balance to settle.
    The spoken reply comes from the ledger collaborator.
    """

    kind: Literal["settle"] = "settle"
    target_name: Optional[str] = None

    @property
    def text(self) -> str:
        return ""


ConversationResponse = Annotated[
    Union[Added, Ask, Info, Settle],
    Field(discriminator="kind"),
]
