"""Pydantic models tracking one visitor's mortgage conversation."""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum
from typing import Literal, Optional

from pydantic import BaseModel, Field

from .breakdown import MortgageBreakdown


class Stage(str, Enum):
    """Named points in the conversation, in happy-path order."""

    GREETING = "greeting"
    PROPERTY_PRICE = "property_price"
    DOWN_PAYMENT = "down_payment"
    INTEREST_RATE = "interest_rate"
    LOAN_TERM = "loan_term"
    RESULTS = "results"
    SUPPORT = "support"


COLLECTED_FIELDS = ("property_price", "down_payment", "interest_rate", "loan_term_years")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class HistoryEntry(BaseModel):
    """One line of the transcript."""

    role: Literal["user", "assistant"]
    content: str
    timestamp: datetime = Field(default_factory=_utcnow)


class CollectedFields(BaseModel):
    property_price: Optional[float] = None
    down_payment: Optional[float] = None
    interest_rate: Optional[float] = None
    loan_term_years: Optional[int] = None


class ConversationState(BaseModel):
    """Mutable state for a single chat session.

    Loan fields are populated one at a time, in stage order, as each
    answer validates. ``history`` only grows; it is context for the
    assistant gateway and is never read by the rule-based engine.
    """

    step: Stage = Stage.GREETING

    property_price: Optional[float] = None
    down_payment: Optional[float] = None
    interest_rate: Optional[float] = None
    loan_term_years: Optional[int] = None

    # Set when the loan term validates, cleared on reset
    breakdown: Optional[MortgageBreakdown] = None

    history: list[HistoryEntry] = []

    def collected_fields(self) -> CollectedFields:
        return CollectedFields(**{name: getattr(self, name) for name in COLLECTED_FIELDS})

    def add_message(self, role: Literal["user", "assistant"], content: str) -> HistoryEntry:
        entry = HistoryEntry(role=role, content=content)
        self.history.append(entry)
        return entry

    def reset(self) -> None:
        """Clear the collected loan fields and return to the first stage."""
        for name in COLLECTED_FIELDS:
            setattr(self, name, None)
        self.breakdown = None
        self.step = Stage.GREETING


class TurnReply(BaseModel):
    """What the caller gets back for every utterance."""

    response_text: str
    next_step: Stage
    collected_fields: CollectedFields
    breakdown: Optional[MortgageBreakdown] = None
    source: Literal["engine", "assistant"] = "engine"
