"""
One conversation turn: extract parameters, reconcile session state, re-score when asked or when
the deal changed, then get a reply from the LLM collaborator (or a fallback).
"""
from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional, Sequence

from config import settings
from schemas.chat import ParameterChangeSet
from schemas.lender import LenderCatalog, MatchResultSchema
from services.errors import ChatSessionBusyError, CollaboratorError
from services.matching_engine import ScoringConfig, run_match
from services.normalizer import normalize_profile
from services.parameter_extractor import detect_parameter_changes, is_recommendation_request
from services.session import SessionState, apply_changes_to_profile
from services.validation import CHAT_REQUIRED_FIELDS, missing_fields_message

logger = logging.getLogger(__name__)

ReplyFn = Callable[[str, list[dict[str, str]], dict[str, Any]], Awaitable[str]]


def fallback_reply(message: str) -> str:
    return (
        f'I received your message: "{message}". The chat feature is currently using a simplified '
        "fallback mode. Please check back later for full AI-powered responses."
    )


@dataclass
class ChatTurn:
    reply: str
    change_set: ParameterChangeSet
    matches: Optional[list[MatchResultSchema]] = None
    requires_more_info: bool = False
    missing_fields: list[str] = field(default_factory=list)
    fallback: bool = False

    @property
    def is_hypothetical(self) -> bool:
        return self.change_set.is_hypothetical


class ChatSession:
    """
    Holds one conversation: the persisted form snapshot (camelCase keys), session state and history.
    At most one exchange may be pending; a second send() while one is in flight raises ChatSessionBusyError.
    """

    def __init__(
        self,
        catalog: LenderCatalog,
        form_snapshot: Optional[dict[str, Any]] = None,
        state: Optional[SessionState] = None,
        history: Optional[Sequence[dict[str, str]]] = None,
        reply_fn: Optional[ReplyFn] = None,
        *,
        required: Sequence[str] = CHAT_REQUIRED_FIELDS,
        limit: Optional[int] = None,
        config: Optional[ScoringConfig] = None,
        history_limit: Optional[int] = None,
        property_insights: Optional[dict[str, Any]] = None,
    ):
        self.catalog = catalog
        self.form_snapshot: dict[str, Any] = dict(form_snapshot or {})
        self.state = state or SessionState()
        self.history: list[dict[str, str]] = [dict(h) for h in history or []]
        self.reply_fn = reply_fn
        self.required = tuple(required)
        self.limit = limit
        self.config = config
        self.history_limit = history_limit if history_limit is not None else settings.conversation_history_limit
        self.property_insights = property_insights
        self.matches: Optional[list[MatchResultSchema]] = None
        self._pending = False

    @property
    def is_pending(self) -> bool:
        return self._pending

    async def send(self, message: str) -> Optional[ChatTurn]:
        if self._pending:
            raise ChatSessionBusyError("A chat exchange is already pending")
        if not message or not message.strip():
            return None
        self._pending = True
        try:
            return await self._exchange(message.strip())
        finally:
            self._pending = False

    def reset(self) -> None:
        self.history = []
        self.state.clear()
        self.matches = None
        self._pending = False
        logger.info("Conversation history and session state cleared")

    async def _exchange(self, message: str) -> ChatTurn:
        current_credit = normalize_profile(self.form_snapshot).credit_score
        change_set = detect_parameter_changes(message, current_credit)

        if change_set.has_changes and not change_set.is_hypothetical:
            self.form_snapshot = apply_changes_to_profile(self.form_snapshot, change_set)
            self.state.apply(change_set)
        # Hypothetical values live only in this scoring input
        scoring_input = apply_changes_to_profile(self.form_snapshot, change_set)

        turn = ChatTurn(reply="", change_set=change_set)
        if change_set.has_changes or is_recommendation_request(message):
            outcome = run_match(self.catalog, scoring_input, self.required, self.limit, self.config)
            turn.requires_more_info = outcome.requires_more_info
            turn.missing_fields = outcome.missing_fields
            if not outcome.requires_more_info:
                turn.matches = outcome.matches
                self.matches = outcome.matches

        context = {
            "form_data": scoring_input,
            "lender_matches": [m.model_dump(by_alias=True) for m in self.matches or []],
            "conversation_changes": self.state.conversation_context(),
            "property_insights": self.property_insights,
        }
        turn.reply, turn.fallback = await self._reply(message, context, turn.missing_fields)

        self.history.extend(
            [{"role": "user", "content": message}, {"role": "assistant", "content": turn.reply}]
        )
        if len(self.history) > self.history_limit:
            self.history = self.history[-self.history_limit:]
        return turn

    async def _reply(self, message: str, context: dict[str, Any], missing: list[str]) -> tuple[str, bool]:
        if self.reply_fn is not None:
            try:
                return await self.reply_fn(message, list(self.history), context), False
            except CollaboratorError as e:
                logger.warning("Chat reply collaborator failed, using fallback: %s", e)
        if missing:
            return missing_fields_message(missing), True
        return fallback_reply(message), True
