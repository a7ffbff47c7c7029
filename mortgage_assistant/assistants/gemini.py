"""Gemini assistant gateway.

Calls the Gemini ``generateContent`` endpoint once per turn with a
localized system instruction, the collected loan fields, the running
transcript and the new utterance. Any transport error, timeout, HTTP
error status or unexpected body shape becomes an AssistantFailure.
"""

from __future__ import annotations

import logging
from typing import Any, Optional

import httpx

from mortgage_assistant.engine import extract_numbers
from mortgage_assistant.i18n import LANGUAGE_NAMES, resolve_locale
from mortgage_assistant.models.conversation import ConversationState, HistoryEntry

from .base import AssistantFailure, AssistantGateway, AssistantResult, AssistantSuccess

log = logging.getLogger("mortgage_assistant.assistants.gemini")

DEFAULT_BASE_URL = "https://generativelanguage.googleapis.com/v1beta"

GENERATION_CONFIG = {
    "temperature": 0.7,
    "topK": 40,
    "topP": 0.95,
    "maxOutputTokens": 1024,
}

SAFETY_SETTINGS = [
    {"category": category, "threshold": "BLOCK_MEDIUM_AND_ABOVE"}
    for category in (
        "HARM_CATEGORY_HARASSMENT",
        "HARM_CATEGORY_HATE_SPEECH",
        "HARM_CATEGORY_SEXUALLY_EXPLICIT",
        "HARM_CATEGORY_DANGEROUS_CONTENT",
    )
]

SYSTEM_PROMPTS = {
    "en": (
        "You are a helpful mortgage assistant. Your role is to help users calculate "
        "their mortgage payments by collecting the necessary information step by step.\n\n"
        "Key responsibilities:\n"
        "1. Greet users warmly and explain your purpose\n"
        "2. Collect property price, down payment, interest rate, and loan term\n"
        "3. Calculate mortgage payments accurately\n"
        "4. Provide detailed breakdowns of costs\n"
        "5. Offer to recalculate or connect to human support\n"
        "6. Handle errors gracefully with helpful guidance\n\n"
        "Conversation flow:\n"
        "- greeting → property_price → down_payment → interest_rate → loan_term → results\n\n"
        "When you accept an answer, repeat the number the user gave before asking the "
        "next question. Be conversational, helpful, and always validate inputs before "
        "proceeding. If user input is unclear, ask for clarification."
    ),
    "es": (
        "Eres un asistente hipotecario útil. Tu función es ayudar a los usuarios a calcular "
        "sus pagos hipotecarios recopilando la información necesaria paso a paso.\n\n"
        "Responsabilidades principales:\n"
        "1. Saluda a los usuarios cálidamente y explica tu propósito\n"
        "2. Recopila precio de la propiedad, pago inicial, tasa de interés y plazo del préstamo\n"
        "3. Calcula los pagos hipotecarios con precisión\n"
        "4. Proporciona desgloses detallados de costos\n"
        "5. Ofrece recalcular o conectar con soporte humano\n"
        "6. Maneja errores con gracia y orientación útil\n\n"
        "Flujo de conversación:\n"
        "- greeting → property_price → down_payment → interest_rate → loan_term → results\n\n"
        "Cuando aceptes una respuesta, repite el número que dio el usuario antes de hacer "
        "la siguiente pregunta. Sé conversacional, útil y siempre valida las entradas antes "
        "de proceder. Si la entrada del usuario no está clara, pide aclaración."
    ),
    "fr": (
        "Vous êtes un assistant hypothécaire utile. Votre rôle est d'aider les utilisateurs "
        "à calculer leurs paiements hypothécaires en recueillant les informations nécessaires "
        "étape par étape.\n\n"
        "Responsabilités principales :\n"
        "1. Saluez chaleureusement les utilisateurs et expliquez votre objectif\n"
        "2. Recueillez le prix de la propriété, l'acompte, le taux d'intérêt et la durée du prêt\n"
        "3. Calculez les paiements hypothécaires avec précision\n"
        "4. Fournissez des répartitions détaillées des coûts\n"
        "5. Offrez de recalculer ou de connecter avec le support humain\n"
        "6. Gérez les erreurs avec grâce et orientation utile\n\n"
        "Flux de conversation :\n"
        "- greeting → property_price → down_payment → interest_rate → loan_term → results\n\n"
        "Lorsque vous acceptez une réponse, répétez le nombre donné par l'utilisateur avant "
        "de poser la question suivante. Soyez conversationnel, utile et validez toujours les "
        "entrées avant de procéder. Si l'entrée n'est pas claire, demandez des éclaircissements."
    ),
}


class GeminiGateway(AssistantGateway):
    """AssistantGateway backed by the Gemini REST API."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
        base_url: str = DEFAULT_BASE_URL,
        timeout: float = 8.0,
        history_limit: int = 30,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self._api_key = api_key
        self._model = model
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._history_limit = history_limit
        self._transport = transport

    @property
    def is_configured(self) -> bool:
        return bool(self._api_key)

    @property
    def endpoint(self) -> str:
        return f"{self._base_url}/models/{self._model}:generateContent"

    # ------------------------------------------------------------------
    # AssistantGateway interface
    # ------------------------------------------------------------------

    async def enhance(
        self, user_text: str, state: ConversationState, locale: str
    ) -> AssistantResult:
        if not self.is_configured:
            return AssistantFailure("Gemini API key not configured")

        payload = self.build_payload(self.build_prompt(user_text, state, locale))

        try:
            async with httpx.AsyncClient(timeout=self._timeout, transport=self._transport) as client:
                resp = await client.post(
                    self.endpoint,
                    params={"key": self._api_key},
                    json=payload,
                )
                resp.raise_for_status()
                data = resp.json()
        except httpx.TimeoutException:
            return AssistantFailure(f"Gemini request timed out after {self._timeout}s")
        except httpx.HTTPStatusError as exc:
            return AssistantFailure(f"Gemini API error (status {exc.response.status_code})")
        except httpx.HTTPError as exc:
            return AssistantFailure(f"Gemini request failed: {exc.__class__.__name__}")
        except ValueError:
            return AssistantFailure("Gemini returned a non-JSON body")

        text = self._extract_text(data)
        if not text:
            return AssistantFailure("Invalid response format from Gemini API")

        numbers = extract_numbers(text)
        log.debug("Gemini reply (%d chars, numbers=%s)", len(text), numbers[:3])
        return AssistantSuccess(
            reply_text=text,
            proposed_value=numbers[0] if numbers else None,
        )

    # ------------------------------------------------------------------
    # Prompt building
    # ------------------------------------------------------------------

    def build_prompt(self, user_text: str, state: ConversationState, locale: str) -> str:
        locale = resolve_locale(locale)
        history = state.history[-self._history_limit:] if self._history_limit else []

        return (
            f"{SYSTEM_PROMPTS[locale]}\n\n"
            f"Current conversation step: {state.step.value}\n"
            "User data collected so far:\n"
            f"- Property Price: {_or_missing(state.property_price)}\n"
            f"- Down Payment: {_or_missing(state.down_payment)}\n"
            f"- Interest Rate: {_or_missing(state.interest_rate)}\n"
            f"- Loan Term: {_or_missing(state.loan_term_years)}\n\n"
            "Conversation History:\n"
            f"{format_history(history)}\n\n"
            f'User Input: "{user_text}"\n\n'
            f"Please respond in {LANGUAGE_NAMES[locale]} and follow the conversation flow. "
            "Be helpful, friendly, and guide the user through the mortgage calculation process."
        )

    @staticmethod
    def build_payload(prompt: str) -> dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": prompt}]}],
            "generationConfig": GENERATION_CONFIG,
            "safetySettings": SAFETY_SETTINGS,
        }

    @staticmethod
    def _extract_text(data: Any) -> str:
        """Pull the first candidate's text out of a generateContent body."""
        try:
            parts = data["candidates"][0]["content"]["parts"]
            return "".join(part.get("text", "") for part in parts).strip()
        except (KeyError, IndexError, TypeError, AttributeError):
            return ""


def format_history(history: list[HistoryEntry]) -> str:
    if not history:
        return "No previous conversation."
    return "\n".join(
        f"{'User' if entry.role == 'user' else 'Assistant'}: {entry.content}"
        for entry in history
    )


def _or_missing(value: Optional[float]) -> str:
    if value is None:
        return "Not provided"
    return str(int(value)) if float(value).is_integer() else str(value)
