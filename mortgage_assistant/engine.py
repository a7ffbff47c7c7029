"""Rule-based conversation engine for the mortgage chat.

The engine is the system of record for every turn. Given a
ConversationState and one utterance it:
  1. Classifies the utterance into an intent (keyword sets, then a
     numeric pattern)
  2. Looks up the current stage in the workflow definition
  3. For input stages: parses the number and checks the stage bounds
  4. For choice stages: routes the intent through the stage transitions
  5. Returns a TurnPlan; ``apply`` writes it into the state

``plan`` never touches the state, so the session orchestrator can ask
"what would the engine do with this input?" before deciding whether to
trust an assistant reply.
"""

from __future__ import annotations

import logging
import math
import re
from dataclasses import dataclass, field
from typing import Optional

from mortgage_assistant.calculator import calculate_breakdown
from mortgage_assistant.i18n import format_breakdown, get_response
from mortgage_assistant.models.breakdown import MortgageBreakdown
from mortgage_assistant.models.conversation import ConversationState, Stage, TurnReply
from mortgage_assistant.workflows.mortgage_calculator import WORKFLOW_DEF as _DEFAULT_WORKFLOW
from mortgage_assistant.workflows.schema import StageDef, WorkflowDef

log = logging.getLogger("mortgage_assistant.engine")

NUMBER_INPUT = "number_input"
UNKNOWN = "unknown"
AFFIRMATIVE = "affirmative"

# Declaration order matters: the first category with a matching keyword wins.
INTENT_KEYWORDS: dict[str, tuple[str, ...]] = {
    "greeting": ("hi", "hello", "hey", "start", "begin"),
    "calculation": ("calculate", "mortgage", "payment", "emi", "monthly"),
    "property_price": ("price", "cost", "home price", "property value"),
    "down_payment": ("down payment", "downpayment", "deposit", "initial payment"),
    "interest_rate": ("rate", "interest", "apr", "percentage"),
    "loan_term": ("years", "term", "duration", "length"),
    "help": ("help", "support", "assist", "guide"),
    "goodbye": ("bye", "goodbye", "exit", "end", "stop"),
    "recalculate": ("recalculate", "again", "new", "restart"),
    "download": ("download", "breakdown", "report", "summary"),
}

AFFIRMATIVE_KEYWORDS = ("yes", "yeah", "yep", "sure", "sí", "oui")

_CURRENCY_NUMBER = re.compile(r"\$?\d{1,3}(,\d{3})*(\.\d{2})?")
_PERCENTAGE = re.compile(r"\d+%")
_YEARS = re.compile(r"\d+\s*years?")

_NUMBER_NOISE = re.compile(r"[$,%]")
_LEADING_FLOAT = re.compile(r"^\s*([+-]?(?:\d+\.?\d*|\.\d+)(?:[eE][+-]?\d+)?)")
_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")
_NUMBER_IN_TEXT = re.compile(r"\$?\d{1,3}(?:,\d{3})+(?:\.\d+)?%?|\$?\d+(?:\.\d+)?%?")


# ── Text understanding ───────────────────────────────────────────

def classify_intent(text: str) -> str:
    """Coarse intent of an utterance: a keyword category, number_input or unknown."""
    lowered = text.lower()

    for intent, keywords in INTENT_KEYWORDS.items():
        if any(keyword in lowered for keyword in keywords):
            return intent

    if _CURRENCY_NUMBER.search(text) or _PERCENTAGE.search(text) or _YEARS.search(text):
        return NUMBER_INPUT

    return UNKNOWN


def is_affirmative(text: str) -> bool:
    lowered = text.lower()
    return any(word in lowered for word in AFFIRMATIVE_KEYWORDS)


def extract_number(text: str) -> Optional[float]:
    """Parse the leading number once currency symbols, percent signs and
    thousands separators are removed. ``"$400,000"`` -> 400000.0."""
    match = _LEADING_FLOAT.match(_NUMBER_NOISE.sub("", text))
    if not match:
        return None
    return float(match.group(1))


def extract_integer(text: str) -> Optional[int]:
    """Leading whole number of the raw text. ``"30 years"`` -> 30."""
    match = _LEADING_INT.match(text)
    if not match:
        return None
    return int(match.group(1))


def extract_numbers(text: str) -> list[float]:
    """Every number mentioned in a free-text reply, in order."""
    numbers = []
    for match in _NUMBER_IN_TEXT.finditer(text):
        value = extract_number(match.group(0))
        if value is not None:
            numbers.append(value)
    return numbers


# ── Turn plans ───────────────────────────────────────────────────

@dataclass
class TurnPlan:
    """The engine's decision for one utterance, not yet applied."""

    intent: str
    stage: str
    next_step: Stage
    reply_text: str
    updates: dict[str, float] = field(default_factory=dict)
    reset: bool = False
    breakdown: Optional[MortgageBreakdown] = None
    recovered: bool = False  # state held an unknown step

    @property
    def advances(self) -> bool:
        return bool(self.updates)


class ConversationEngine:
    """Deterministic step machine over a WorkflowDef."""

    def __init__(self, workflow: WorkflowDef | None = None) -> None:
        self._workflow = workflow or _DEFAULT_WORKFLOW

    @property
    def workflow(self) -> WorkflowDef:
        return self._workflow

    def _get_stage(self, stage_id: str) -> StageDef | None:
        return self._workflow.states.get(stage_id)

    # ── Public API ────────────────────────────────────────────

    def opening(self, locale: str | None) -> str:
        """Welcome message shown when the chat opens."""
        return get_response(self._workflow.opening_key, locale)

    def process(self, state: ConversationState, text: str, locale: str | None) -> TurnReply:
        """Plan and apply one turn."""
        return self.apply(state, self.plan(state, text, locale), text)

    def plan(self, state: ConversationState, text: str, locale: str | None) -> TurnPlan:
        """Decide the reply and transition for ``text`` without mutating ``state``."""
        intent = classify_intent(text)
        step_id = state.step.value if isinstance(state.step, Stage) else str(state.step)
        stage = self._get_stage(step_id)

        if stage is None:
            log.error("Conversation in unknown step %r, resetting to %s",
                      step_id, self._workflow.initial_state)
            return TurnPlan(
                intent=intent,
                stage=step_id,
                next_step=Stage(self._workflow.initial_state),
                reply_text=get_response(self._workflow.fallback_key, locale),
                reset=True,
                recovered=True,
            )

        if stage.step_type == "input":
            return self._plan_input(stage, state, text, intent, locale)
        return self._plan_choice(stage, text, intent, locale)

    def apply(
        self,
        state: ConversationState,
        plan: TurnPlan,
        user_text: str,
        reply_text: str | None = None,
        source: str = "engine",
    ) -> TurnReply:
        """Write a plan into the state and record both sides of the turn."""
        reply = reply_text or plan.reply_text
        previous = state.step

        if plan.reset:
            state.reset()
        for name, value in plan.updates.items():
            setattr(state, name, value)
        if plan.breakdown is not None:
            state.breakdown = plan.breakdown
        state.step = plan.next_step

        state.add_message("user", user_text)
        state.add_message("assistant", reply)

        if previous != state.step:
            log.info("Chat advance: %s → %s (intent: %s)",
                     getattr(previous, "value", previous), state.step.value, plan.intent)

        return TurnReply(
            response_text=reply,
            next_step=state.step,
            collected_fields=state.collected_fields(),
            breakdown=state.breakdown,
            source=source,
        )

    # ── Validation ────────────────────────────────────────────

    def parse_answer(self, stage: StageDef, text: str) -> Optional[float]:
        if stage.parse == "int":
            value = extract_integer(text)
        else:
            value = extract_number(text)
        return value

    def within_bounds(self, stage: StageDef, value: float, state: ConversationState) -> bool:
        """Check a candidate value against the stage limits."""
        if value is None or not math.isfinite(value):
            return False

        if stage.min_value is not None:
            if value < stage.min_value or (value == stage.min_value and not stage.min_inclusive):
                return False

        if stage.max_value is not None:
            if value > stage.max_value or (value == stage.max_value and not stage.max_inclusive):
                return False

        if stage.max_field:
            ceiling = getattr(state, stage.max_field, None)
            if ceiling is None or value >= ceiling:
                return False

        return True

    def reconcile(self, state: ConversationState, plan: TurnPlan, proposed: Optional[float]) -> bool:
        """Whether an assistant reply may stand in for the engine's reply.

        A turn that stores a value is only reconciled when the assistant
        names the same in-bounds value; turns that store nothing always
        reconcile because the step follows the engine either way.
        """
        if plan.recovered:
            return False
        if not plan.advances:
            return True
        if proposed is None:
            return False

        stage = self._get_stage(plan.stage)
        if stage is None or not self.within_bounds(stage, proposed, state):
            return False

        expected = plan.updates[stage.field]
        return math.isclose(proposed, expected, rel_tol=1e-9, abs_tol=1e-6)

    # ── Internal: stage handling ──────────────────────────────

    def _plan_input(
        self,
        stage: StageDef,
        state: ConversationState,
        text: str,
        intent: str,
        locale: str | None,
    ) -> TurnPlan:
        current = Stage(stage.id)

        if intent == NUMBER_INPUT:
            value = self.parse_answer(stage, text)
            if value is not None and self.within_bounds(stage, value, state):
                return self._advance(stage, state, value, intent, locale)
            reply_key = stage.invalid_key
        elif intent == "help":
            reply_key = stage.help_key
        else:
            reply_key = stage.invalid_key

        return TurnPlan(
            intent=intent,
            stage=stage.id,
            next_step=current,
            reply_text=get_response(reply_key, locale),
        )

    def _advance(
        self,
        stage: StageDef,
        state: ConversationState,
        value: float,
        intent: str,
        locale: str | None,
    ) -> TurnPlan:
        next_stage = self._get_stage(stage.next_stage)
        breakdown = None

        if stage.handler == "calculate":
            fields = state.model_dump(include={"property_price", "down_payment", "interest_rate"})
            if any(v is None for v in fields.values()):
                log.error("Stage %s reached without collected fields: %s", stage.id, fields)
                return TurnPlan(
                    intent=intent,
                    stage=stage.id,
                    next_step=Stage(self._workflow.initial_state),
                    reply_text=get_response(self._workflow.fallback_key, locale),
                    reset=True,
                    recovered=True,
                )
            breakdown = calculate_breakdown(
                fields["property_price"], fields["down_payment"], fields["interest_rate"], int(value),
            )
            reply = format_breakdown(breakdown, locale)
        else:
            reply = get_response(next_stage.prompt_key, locale)

        return TurnPlan(
            intent=intent,
            stage=stage.id,
            next_step=Stage(next_stage.id),
            reply_text=reply,
            updates={stage.field: value},
            breakdown=breakdown,
        )

    def _plan_choice(
        self,
        stage: StageDef,
        text: str,
        intent: str,
        locale: str | None,
    ) -> TurnPlan:
        candidates = [intent]
        if is_affirmative(text):
            candidates.append(AFFIRMATIVE)

        matched = next((c for c in candidates if c in stage.transitions), "*")
        target = stage.transitions.get(matched, "")
        next_id, reply_key = self._resolve_target(target, stage)

        return TurnPlan(
            intent=intent,
            stage=stage.id,
            next_step=Stage(next_id),
            reply_text=get_response(reply_key, locale),
            reset=matched in stage.reset_intents,
        )

    def _resolve_target(self, target: str, stage: StageDef) -> tuple[str, str]:
        """Parse a transition target.

        - "stageId"           → ("stageId", that stage's prompt key)
        - "stageId:reply_key" → ("stageId", "reply_key")
        - ""                  → (current stage, workflow fallback key)
        """
        if not target:
            return stage.id, self._workflow.fallback_key

        if ":" in target:
            stage_id, reply_key = target.split(":", 1)
            return stage_id, reply_key

        target_stage = self._get_stage(target)
        prompt_key = target_stage.prompt_key if target_stage else ""
        return target, prompt_key or self._workflow.fallback_key
