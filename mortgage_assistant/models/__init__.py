"""Data models for the mortgage assistant."""

from .breakdown import MonthlyCostRequest, MonthlyCostResponse, MortgageBreakdown
from .conversation import (
    CollectedFields,
    ConversationState,
    HistoryEntry,
    Stage,
    TurnReply,
)

__all__ = [
    "CollectedFields",
    "ConversationState",
    "HistoryEntry",
    "MonthlyCostRequest",
    "MonthlyCostResponse",
    "MortgageBreakdown",
    "Stage",
    "TurnReply",
]
