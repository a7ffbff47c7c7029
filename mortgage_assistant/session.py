"""Per-visitor chat session — drives the mortgage conversation turn by turn.

Each chat widget session gets a ChatSession that:
  1. Owns one ConversationState (step, collected fields, transcript)
  2. Serializes turns so a session never has two in flight
  3. Offers each utterance to the assistant gateway when one is configured
  4. Falls back to the rule-based engine when the gateway fails or its
     reply does not reconcile with what the engine would accept
  5. Returns the reply contract (TurnReply) after each utterance
"""

from __future__ import annotations

import asyncio
import logging
import secrets
import time
from typing import Any, Optional

from mortgage_assistant.assistants.base import (
    AssistantFailure,
    AssistantGateway,
    AssistantSuccess,
    DisabledGateway,
)
from mortgage_assistant.config import settings
from mortgage_assistant.engine import ConversationEngine
from mortgage_assistant.i18n import resolve_locale
from mortgage_assistant.models.conversation import ConversationState, Stage, TurnReply

log = logging.getLogger("mortgage_assistant.session")


# ── Session registry ─────────────────────────────────────────────

_active_sessions: dict[str, "ChatSession"] = {}


def register_session(session: "ChatSession") -> str:
    """Register a session and return its unique ID.

    Sessions idle for longer than ``settings.session_idle_seconds`` are
    dropped first.
    """
    evict_idle_sessions()
    session_id = secrets.token_urlsafe(18)
    session._session_id = session_id
    session._started_at = time.time()
    session._last_activity = session._started_at
    _active_sessions[session_id] = session
    log.info("Session registered: %s", session_id)
    return session_id


def evict_idle_sessions(now: float | None = None) -> int:
    """Unregister sessions with no turn within the idle window. Returns the count."""
    now = time.time() if now is None else now
    cutoff = now - settings.session_idle_seconds
    idle = [sid for sid, s in _active_sessions.items() if s.last_activity < cutoff]
    for sid in idle:
        del _active_sessions[sid]
    if idle:
        log.info("Evicted %d idle session(s)", len(idle))
    return len(idle)


def unregister_session(session_id: str) -> bool:
    """Remove a session from the registry. Returns False if it was unknown."""
    removed = _active_sessions.pop(session_id, None)
    if removed is not None:
        log.info("Session unregistered: %s", session_id)
    return removed is not None


def get_active_sessions() -> dict[str, "ChatSession"]:
    """Return all active sessions."""
    return _active_sessions


def get_session(session_id: str) -> "ChatSession | None":
    """Look up a session by ID."""
    return _active_sessions.get(session_id)


# ── Turn orchestration ───────────────────────────────────────────

async def run_turn(
    engine: ConversationEngine,
    gateway: AssistantGateway,
    state: ConversationState,
    text: str,
    locale: str,
) -> TurnReply:
    """Process one utterance against ``state``.

    The engine's plan is computed first and decides every transition.
    The gateway, when configured, may only replace the reply text, and
    only when its reply reconciles with the engine's plan.
    """
    plan = engine.plan(state, text, locale)

    if not gateway.is_configured or plan.recovered:
        return engine.apply(state, plan, text)

    result = await gateway.enhance(text, state, locale)

    if isinstance(result, AssistantFailure):
        log.warning("Assistant unavailable at step %s, using engine reply: %s",
                    plan.stage, result.reason)
        return engine.apply(state, plan, text)

    if isinstance(result, AssistantSuccess) and engine.reconcile(state, plan, result.proposed_value):
        return engine.apply(state, plan, text, reply_text=result.reply_text, source="assistant")

    log.warning("Assistant reply at step %s did not reconcile (proposed=%s, expected=%s)",
                plan.stage, getattr(result, "proposed_value", None), plan.updates or None)
    return engine.apply(state, plan, text)


class ChatSession:
    """One visitor's mortgage conversation.

    Typical lifecycle::

        session = ChatSession(gateway=my_gateway, locale="es")
        sid = register_session(session)

        welcome = session.opening()
        # → shown when the widget opens

        reply = await session.handle_utterance("hola")
        # → reply.response_text, reply.next_step, reply.collected_fields
    """

    def __init__(
        self,
        engine: ConversationEngine | None = None,
        gateway: AssistantGateway | None = None,
        locale: str | None = None,
    ) -> None:
        self._engine = engine or ConversationEngine()
        self._gateway = gateway or DisabledGateway()
        self._locale = resolve_locale(locale or settings.default_locale)

        # Registry metadata (set by register_session)
        self._session_id: str = ""
        self._started_at: float = 0.0
        self._last_activity: float = time.time()

        self._state = ConversationState()
        self._lock = asyncio.Lock()

    # ── Public API ────────────────────────────────────────────

    @property
    def session_id(self) -> str:
        return self._session_id

    @property
    def state(self) -> ConversationState:
        return self._state

    @property
    def current_step(self) -> Stage:
        return self._state.step

    @property
    def locale(self) -> str:
        return self._locale

    @property
    def last_activity(self) -> float:
        return self._last_activity

    def opening(self) -> str:
        """Welcome message for a freshly opened chat."""
        return self._engine.opening(self._locale)

    async def handle_utterance(self, text: str, locale: Optional[str] = None) -> TurnReply:
        """Process one visitor utterance and return the reply contract."""
        async with self._lock:
            self._last_activity = time.time()
            if locale:
                self._locale = resolve_locale(locale)

            reply = await run_turn(self._engine, self._gateway, self._state, text, self._locale)
            log.info("Session %s turn: step=%s source=%s",
                     self._session_id or "-", reply.next_step.value, reply.source)
            return reply

    def to_dict(self, detail: bool = False) -> dict[str, Any]:
        """Serialize session state for the API.

        With detail=False: summary suitable for listing.
        With detail=True: adds the breakdown and the recent transcript.
        """
        d: dict[str, Any] = {
            "session_id": self._session_id,
            "current_step": self._state.step.value,
            "locale": self._locale,
            "started_at": self._started_at,
            "last_activity": self._last_activity,
            "assistant_enabled": self._gateway.is_configured,
            "collected_fields": self._state.collected_fields().model_dump(),
        }
        if detail:
            d["breakdown"] = (
                self._state.breakdown.model_dump() if self._state.breakdown else None
            )
            d["message_count"] = len(self._state.history)
            d["recent_messages"] = [
                entry.model_dump(mode="json") for entry in self._state.history[-6:]
            ]
        return d
