"""
Dialogue Manager

Turns one utterance plus one ConversationSession into exactly one response:

    Added   a validated command for the ledger
    Ask     a clarifying question
    Info    an informational reply (no ledger change)
    Settle  settle balances with a person (or automatically)

Per-turn precedence, first applicable rule wins:

1. Pending disambiguation: interpret the reply as a choice
2. Composite balances: one or more "X owes me N" / "I owe X N" clauses
3. Bare acknowledgement: ask for the next missing slot
4. Settlement intent
5. Full-sentence parse through the routing pipeline
6. Partial slot merge into the running draft

Slot-filling questions count toward a cap of 3; the next one resets the
session with a restart prompt. Disambiguation and not-found questions do
not count.

The manager is synchronous and not reentrant for a session. Callers
serialize turns (see ConversationFlow).
"""

from typing import Iterable, Optional

import structlog
from pydantic import ValidationError

from billsplit.dialogue import prompts
from billsplit.dialogue.composite import (
    counterparty_of,
    extract_balances,
    is_consensus_request,
    summarize,
)
from billsplit.dialogue.session import MAX_CLARIFICATION_TURNS, ConversationSession
from billsplit.dialogue.slots import (
    extract_draft,
    is_acknowledgement,
    is_rejection,
    parse_settle_target,
    parse_single_person,
)
from billsplit.models.command import (
    ME,
    BalanceCommand,
    DisambiguationSlot,
    Draft,
    ParsedCommand,
    ParseRoute,
    PendingDisambiguation,
    RouteDecision,
)
from billsplit.models.responses import Added, Ask, ConversationResponse, Info, Settle
from billsplit.parsing.errors import VoicePipelineError
from billsplit.parsing.names import collapse_whitespace, is_likely_person_name
from billsplit.parsing.routing import RoutingPipeline
from billsplit.resolution.resolver import (
    EntityResolver,
    ResolutionStatus,
    clean_contacts,
    select_option,
)

logger = structlog.get_logger(__name__)

DEFAULT_MAX_UTTERANCE_LENGTH = 10_000

LOCAL_MULTI_CLAUSE_TAGS = ["local_multi_clause_parse"]
SLOT_FILL_TAGS = ["slot_fill_local_validation", "cloud_fallback_avoided"]

_DRAFT_SLOTS = (
    (DisambiguationSlot.DEBTOR, "debtor_name"),
    (DisambiguationSlot.CREDITOR, "creditor_name"),
)


class DialogueManager:
    """
    Stateless rules over caller-owned session state.

    One manager can serve many sessions; all per-conversation state
    lives in the ConversationSession passed to each call.
    """

    def __init__(
        self,
        pipeline: Optional[RoutingPipeline] = None,
        resolver: Optional[EntityResolver] = None,
        max_utterance_length: int = DEFAULT_MAX_UTTERANCE_LENGTH,
    ):
        self._pipeline = pipeline or RoutingPipeline()
        self._resolver = resolver or EntityResolver()
        self._max_utterance_length = max_utterance_length

    @property
    def pipeline(self) -> RoutingPipeline:
        return self._pipeline

    # =========================================================================
    # ENTRY POINT
    # =========================================================================

    def handle_utterance(
        self,
        session: ConversationSession,
        utterance: str,
        known_contacts: Iterable[str] = (),
    ) -> ConversationResponse:
        """Interpret one utterance. Never raises for malformed input."""
        text = collapse_whitespace(utterance or "")
        if not text:
            return Ask(question=prompts.GENERIC_PROMPT)

        if len(text) > self._max_utterance_length:
            logger.warning(
                "utterance_truncated",
                length=len(text),
                max_length=self._max_utterance_length,
            )
            text = text[:self._max_utterance_length]

        contacts = clean_contacts(known_contacts)

        if session.pending_disambiguation is not None:
            return self._handle_disambiguation_reply(session, text, contacts)

        response = self._handle_composite(session, text, contacts)
        if response is not None:
            return response

        if is_acknowledgement(text):
            return self._acknowledge(session)

        response = self._handle_settlement(session, text, contacts)
        if response is not None:
            return response

        response = self._handle_direct_parse(session, text, contacts)
        if response is not None:
            return response

        return self._merge_partial(session, text, contacts)

    # =========================================================================
    # RULES
    # =========================================================================

    def _handle_disambiguation_reply(
        self,
        session: ConversationSession,
        text: str,
        contacts: list[str],
    ) -> ConversationResponse:
        pending = session.pending_disambiguation

        if is_rejection(text) and len(pending.options) == 1:
            return Ask(question=prompts.ASK_OTHER_NAME)

        choice = select_option(text, pending.options)
        if choice is None:
            choice = self._custom_choice(session, text, contacts, pending.slot)
        if choice is None:
            return Ask(question=prompts.disambiguation_question(
                pending.raw_name, pending.options, pending.slot
            ))

        session.pending_disambiguation = None

        if pending.slot == DisambiguationSlot.SETTLE_TARGET:
            session.reset()
            return Settle(target_name=choice)

        draft = pending.draft.model_copy() if pending.draft else Draft()
        if pending.slot == DisambiguationSlot.DEBTOR:
            draft.debtor_name = choice
        else:
            draft.creditor_name = choice

        if draft.is_complete:
            return self._finalize_draft(session, draft, contacts)
        return self._next_clarification(session, draft, increment=False)

    def _custom_choice(
        self,
        session: ConversationSession,
        text: str,
        contacts: list[str],
        slot: DisambiguationSlot,
    ) -> Optional[str]:
        """A reply naming a different contact that resolves exactly."""
        if not is_likely_person_name(text):
            return None
        resolution = self._resolver.resolve(text, contacts, session.last_mentioned_person)
        if not resolution.is_resolved:
            return None
        if resolution.name == ME and slot == DisambiguationSlot.SETTLE_TARGET:
            return None
        return resolution.name

    def _handle_composite(
        self,
        session: ConversationSession,
        text: str,
        contacts: list[str],
    ) -> Optional[ConversationResponse]:
        consensus = is_consensus_request(text)
        extraction = extract_balances(text, session.last_mentioned_person)
        commands = extraction.commands

        if consensus and len(commands) < 2 and "owe" in text.lower():
            if commands:
                return Ask(question=prompts.CONSENSUS_ONE_SIDE)
            return Ask(question=prompts.CONSENSUS_NO_AMOUNTS)

        if not commands:
            return None

        if not consensus and len(commands) == 1:
            response = self._handle_direct_parse(session, text, contacts)
            if response is not None:
                return response

        resolved = []
        for command in commands:
            updates = {}
            for attr in ("creditor_name", "debtor_name"):
                name = getattr(command, attr)
                if name == ME:
                    continue
                resolution = self._resolver.resolve(name, contacts, session.last_mentioned_person)
                if resolution.status == ResolutionStatus.AMBIGUOUS:
                    return Ask(question=prompts.composite_ambiguous_question(
                        resolution.query, resolution.options
                    ))
                if resolution.status == ResolutionStatus.NOT_FOUND:
                    return Ask(question=prompts.composite_not_found_question(resolution.query))
                updates[attr] = resolution.name
            resolved.append(command.model_copy(update=updates))

        session.last_mentioned_person = counterparty_of(resolved[-1])

        if consensus or len(resolved) > 1:
            summary = summarize(resolved)
            if not consensus:
                summary = prompts.MULTIPLE_BALANCES_PREFIX + summary
            return Info(message=summary)

        return self._add_balance(session, resolved[0], text)

    def _add_balance(
        self,
        session: ConversationSession,
        balance: BalanceCommand,
        text: str,
    ) -> Optional[ConversationResponse]:
        decision = RouteDecision(
            route=ParseRoute.ON_DEVICE,
            reason_tags=list(LOCAL_MULTI_CLAUSE_TAGS),
            complexity_score=self._pipeline.scorer.score(text),
        )
        try:
            command = ParsedCommand(
                creditor_name=balance.creditor_name,
                debtor_name=balance.debtor_name,
                amount=balance.amount,
                note=balance.note,
                decision=decision,
                transcript=text,
            )
        except ValidationError:
            return None
        return self._finalize(session, command)

    def _acknowledge(self, session: ConversationSession) -> ConversationResponse:
        draft = session.pending_draft
        if draft is None or draft.is_complete:
            return Ask(question=prompts.GENERIC_PROMPT)
        return Ask(question=prompts.acknowledged_question(draft.missing_slots()[0]))

    def _handle_settlement(
        self,
        session: ConversationSession,
        text: str,
        contacts: list[str],
    ) -> Optional[ConversationResponse]:
        target = parse_settle_target(text)
        if target is None:
            return None

        session.reset()
        if not target:
            return Settle(target_name=None)

        resolution = self._resolver.resolve(target, contacts, session.last_mentioned_person)
        if resolution.is_resolved:
            if resolution.name == ME:
                return Settle(target_name=None)
            return Settle(target_name=resolution.name)

        slot = DisambiguationSlot.SETTLE_TARGET
        if resolution.status == ResolutionStatus.AMBIGUOUS:
            session.pending_disambiguation = PendingDisambiguation(
                slot=slot,
                raw_name=resolution.query,
                options=resolution.options,
            )
            return Ask(question=prompts.disambiguation_question(
                resolution.query, resolution.options, slot
            ))
        return Ask(question=prompts.not_found_question(resolution.query, slot))

    def _handle_direct_parse(
        self,
        session: ConversationSession,
        text: str,
        contacts: list[str],
    ) -> Optional[ConversationResponse]:
        try:
            command = self._pipeline.parse(text)
        except VoicePipelineError as e:
            logger.debug("direct_parse_skipped", kind=e.kind.value, error=str(e))
            return None

        if not (
            is_likely_person_name(command.creditor_name)
            and is_likely_person_name(command.debtor_name)
        ):
            return None

        draft = Draft(
            creditor_name=command.creditor_name,
            debtor_name=command.debtor_name,
            amount=command.amount,
            note=command.note or None,
        )
        return self._finalize_draft(
            session,
            draft,
            contacts,
            decision=command.decision,
            transcript=command.transcript,
        )

    def _merge_partial(
        self,
        session: ConversationSession,
        text: str,
        contacts: list[str],
    ) -> ConversationResponse:
        draft = session.pending_draft.model_copy() if session.pending_draft else Draft()

        update = extract_draft(text)
        if update.model_dump(exclude_none=True):
            draft.merge(update)
        else:
            name = parse_single_person(text, session.last_mentioned_person)
            if name is not None:
                if draft.debtor_name is None:
                    draft.debtor_name = name
                elif draft.creditor_name is None:
                    draft.creditor_name = name

        if draft.is_complete:
            return self._finalize_draft(session, draft, contacts)
        return self._next_clarification(session, draft)

    # =========================================================================
    # SLOT FILLING
    # =========================================================================

    def _next_clarification(
        self,
        session: ConversationSession,
        draft: Draft,
        increment: bool = True,
    ) -> ConversationResponse:
        """Ask for the highest-priority missing slot, enforcing the cap."""
        if increment:
            turns = session.clarification_turns + 1
            if turns > MAX_CLARIFICATION_TURNS:
                session.reset()
                logger.debug("session_reset", reason="clarification_cap", turns=turns)
                return Info(message=prompts.RESTART_PROMPT)
            session.clarification_turns = turns

        session.pending_draft = draft
        return Ask(question=prompts.slot_question(draft.missing_slots()[0]))

    def _resolve_draft_names(
        self,
        session: ConversationSession,
        draft: Draft,
        contacts: list[str],
    ) -> Optional[ConversationResponse]:
        """
        Resolve both names in place.

        Returns a question when a name is ambiguous (the draft moves into a
        pending disambiguation) or unknown (the slot is cleared so the next
        bare name fills it). Neither counts as a clarification turn.
        """
        for slot, attr in _DRAFT_SLOTS:
            raw = getattr(draft, attr)
            if raw is None:
                continue

            resolution = self._resolver.resolve(raw, contacts, session.last_mentioned_person)
            if resolution.is_resolved:
                setattr(draft, attr, resolution.name)
                continue

            if resolution.status == ResolutionStatus.AMBIGUOUS:
                session.pending_draft = None
                session.pending_disambiguation = PendingDisambiguation(
                    draft=draft.model_copy(),
                    slot=slot,
                    raw_name=resolution.query,
                    options=resolution.options,
                )
                return Ask(question=prompts.disambiguation_question(
                    resolution.query, resolution.options, slot
                ))

            setattr(draft, attr, None)
            session.pending_draft = draft
            return Ask(question=prompts.not_found_question(resolution.query, slot))

        return None

    def _finalize_draft(
        self,
        session: ConversationSession,
        draft: Draft,
        contacts: list[str],
        decision: Optional[RouteDecision] = None,
        transcript: Optional[str] = None,
    ) -> ConversationResponse:
        if draft.amount is not None and draft.amount <= 0:
            draft.amount = None
            return self._next_clarification(session, draft)

        question = self._resolve_draft_names(session, draft, contacts)
        if question is not None:
            return question

        canonical = self._canonical_sentence(draft)
        if decision is None:
            decision = self._slot_fill_decision(canonical)

        try:
            command = ParsedCommand(
                creditor_name=draft.creditor_name,
                debtor_name=draft.debtor_name,
                amount=draft.amount,
                note=draft.note or "",
                decision=decision,
                transcript=transcript or canonical,
            )
        except ValidationError:
            # Both names resolved to the same person
            draft.creditor_name = None
            return self._next_clarification(session, draft)

        return self._finalize(session, command)

    @staticmethod
    def _canonical_sentence(draft: Draft) -> str:
        sentence = f"{draft.debtor_name} owes {draft.creditor_name} {draft.amount}"
        if draft.note:
            sentence += f" for {draft.note}"
        return sentence

    def _slot_fill_decision(self, canonical: str) -> RouteDecision:
        """Route decision for a command assembled over several turns."""
        try:
            return self._pipeline.parse(canonical).decision
        except VoicePipelineError:
            return RouteDecision(
                route=ParseRoute.ON_DEVICE,
                reason_tags=list(SLOT_FILL_TAGS),
                complexity_score=self._pipeline.scorer.score(canonical),
            )

    def _finalize(self, session: ConversationSession, command: ParsedCommand) -> Added:
        if command.creditor_name.lower() == ME:
            counterparty = command.debtor_name
        elif command.debtor_name.lower() == ME:
            counterparty = command.creditor_name
        else:
            counterparty = command.debtor_name

        session.reset()
        session.last_mentioned_person = counterparty
        logger.debug(
            "command_finalized",
            route=command.decision.route.value,
            reason_tags=command.decision.reason_tags,
        )
        return Added(
            command=command,
            message=prompts.added_message(
                command.debtor_name, command.creditor_name, command.amount
            ),
        )
