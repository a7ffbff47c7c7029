"""Application configuration via environment variables."""

from __future__ import annotations

import logging

from pydantic_settings import BaseSettings

log = logging.getLogger("mortgage_assistant.config")

SUPPORTED_LOCALES = ("en", "es", "fr")


class Settings(BaseSettings):
    # Assistant gateway (Gemini). An empty key disables the gateway entirely.
    gemini_api_key: str = ""
    gemini_model: str = "gemini-1.5-flash"
    gemini_base_url: str = "https://generativelanguage.googleapis.com/v1beta"
    gateway_timeout_seconds: float = 8.0

    # Conversation
    default_locale: str = "en"
    history_limit: int = 30  # entries sent to the gateway as context
    session_idle_seconds: int = 1800  # idle chats are dropped after this

    # Admin auth
    admin_api_key: str = ""

    # Server
    host: str = "127.0.0.1"
    port: int = 8080
    debug: bool = False

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    @property
    def gateway_enabled(self) -> bool:
        return bool(self.gemini_api_key)

    def validate_startup(self) -> list[str]:
        """Validate configuration at startup. Returns warnings, raises on errors."""
        warnings: list[str] = []
        _placeholders = {"your-gemini-api-key", "AIza..."}

        if self.default_locale not in SUPPORTED_LOCALES:
            raise ValueError(
                f"DEFAULT_LOCALE={self.default_locale!r} is not supported. "
                f"Use one of: {', '.join(SUPPORTED_LOCALES)}."
            )

        if self.gateway_timeout_seconds <= 0:
            raise ValueError("GATEWAY_TIMEOUT_SECONDS must be positive.")

        if self.history_limit < 0:
            raise ValueError("HISTORY_LIMIT cannot be negative.")

        if self.session_idle_seconds <= 0:
            raise ValueError("SESSION_IDLE_SECONDS must be positive.")

        if self.gemini_api_key in _placeholders:
            raise ValueError(
                "GEMINI_API_KEY is still a placeholder. "
                "Set a real key in .env or leave it empty to disable the assistant."
            )

        if not self.gemini_api_key:
            warnings.append(
                "GEMINI_API_KEY not set. Chat replies come from the rule-based engine only."
            )

        # Admin API key: warn if unset
        if not self.admin_api_key:
            if self.debug:
                warnings.append(
                    "ADMIN_API_KEY not set. Admin APIs are open (DEBUG=true)."
                )
            else:
                warnings.append(
                    "ADMIN_API_KEY not set. Admin APIs are locked in production. "
                    "Set ADMIN_API_KEY in .env to enable admin access."
                )

        return warnings


settings = Settings()
