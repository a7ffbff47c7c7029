"""Abstract base class for assistant gateways.

An assistant gateway turns a visitor utterance into a natural-language
reply using a hosted language model. It never raises: every outcome is
an AssistantSuccess or an AssistantFailure, and the session falls back
to the rule-based engine on failure.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Union

from mortgage_assistant.models.conversation import ConversationState


@dataclass(frozen=True)
class AssistantSuccess:
    """A usable reply from the language model."""

    reply_text: str
    proposed_value: Optional[float] = None  # first number named in the reply


@dataclass(frozen=True)
class AssistantFailure:
    """The gateway could not produce a reply for this turn."""

    reason: str


AssistantResult = Union[AssistantSuccess, AssistantFailure]


class AssistantGateway(ABC):
    """Abstract language-model backend."""

    @property
    @abstractmethod
    def is_configured(self) -> bool:
        """True when credentials are present and the gateway may be called."""

    @abstractmethod
    async def enhance(
        self, user_text: str, state: ConversationState, locale: str
    ) -> AssistantResult:
        """Ask the model for a reply to ``user_text``.

        Args:
            user_text: The new utterance.
            state: Current conversation, read-only for the gateway.
            locale: Supported locale code ("en", "es", "fr").

        Returns:
            AssistantSuccess with the reply, or AssistantFailure with a
            short reason for the logs.
        """


class DisabledGateway(AssistantGateway):
    """Stand-in used when no language model is configured."""

    @property
    def is_configured(self) -> bool:
        return False

    async def enhance(
        self, user_text: str, state: ConversationState, locale: str
    ) -> AssistantResult:
        return AssistantFailure("assistant gateway not configured")
