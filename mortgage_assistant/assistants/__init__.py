"""Assistant gateway abstractions and implementations."""

from .base import (
    AssistantFailure,
    AssistantGateway,
    AssistantResult,
    AssistantSuccess,
    DisabledGateway,
)

__all__ = [
    "AssistantFailure",
    "AssistantGateway",
    "AssistantResult",
    "AssistantSuccess",
    "DisabledGateway",
]
