"""FastAPI application — HTTP endpoints for the mortgage chat widget.

Endpoints:

  GET    /health                               Health check
  POST   /api/chat/sessions                    Open a chat, returns the welcome message
  POST   /api/chat/sessions/{id}/messages      Send one utterance, returns the reply contract
  GET    /api/chat/sessions/{id}               Session snapshot
  GET    /api/chat/sessions/{id}/breakdown     Payment breakdown once results are in
  DELETE /api/chat/sessions/{id}               End a chat
  GET    /api/chat/sessions                    List active chats (admin)
  POST   /api/calculate                        Standalone monthly cost estimate
"""

from __future__ import annotations

# Load .env into os.environ before settings-dependent code runs.
from dotenv import load_dotenv
load_dotenv()

import logging
import time

logging.basicConfig(
    level=logging.INFO,
    format="%(asctime)s %(name)-20s %(levelname)-7s %(message)s",
)

from fastapi import Depends, FastAPI
from fastapi.responses import JSONResponse

from mortgage_assistant import __version__
from mortgage_assistant.assistants.base import AssistantGateway, DisabledGateway
from mortgage_assistant.assistants.gemini import GeminiGateway
from mortgage_assistant.auth import require_admin_token
from mortgage_assistant.calculator import estimate_monthly_costs
from mortgage_assistant.config import settings
from mortgage_assistant.models.api import ChatMessageRequest, StartChatRequest, StartChatResponse
from mortgage_assistant.models.breakdown import (
    MonthlyCostRequest,
    MonthlyCostResponse,
    MortgageBreakdown,
)
from mortgage_assistant.models.conversation import TurnReply
from mortgage_assistant.session import (
    ChatSession,
    get_active_sessions,
    get_session,
    register_session,
    unregister_session,
)

log = logging.getLogger("mortgage_assistant.app")

_START_TIME = time.time()


def _session_not_found() -> JSONResponse:
    return JSONResponse({"error": "Session not found"}, status_code=404)


def create_app() -> FastAPI:
    """Create and configure the FastAPI application."""
    for warning in settings.validate_startup():
        log.warning(warning)

    app = FastAPI(
        title="Mortgage Assistant",
        description="Chat assistant that collects loan details and estimates mortgage payments",
        version=__version__,
    )

    # ── Health check ───────────────────────────────────────────

    @app.get("/health")
    async def health() -> JSONResponse:
        """Lightweight health check — confirms the event loop is responsive."""
        uptime = round(time.time() - _START_TIME, 1)
        return JSONResponse({
            "status": "ok",
            "uptime": uptime,
            "assistant_enabled": settings.gateway_enabled,
        })

    # ── Chat sessions ──────────────────────────────────────────

    @app.post("/api/chat/sessions", response_model=StartChatResponse)
    async def start_chat(body: StartChatRequest | None = None):
        """Open a chat session and return its welcome message."""
        session = _create_session(locale=body.locale if body else None)
        sid = register_session(session)
        return StartChatResponse(
            session_id=sid,
            response_text=session.opening(),
            next_step=session.current_step,
            locale=session.locale,
        )

    @app.post("/api/chat/sessions/{session_id}/messages", response_model=TurnReply)
    async def send_message(session_id: str, body: ChatMessageRequest):
        """Feed one visitor utterance through the conversation."""
        session = get_session(session_id)
        if not session:
            return _session_not_found()
        return await session.handle_utterance(body.text, locale=body.locale)

    @app.get("/api/chat/sessions/{session_id}")
    async def get_chat(session_id: str):
        """Return the detailed state of a single session."""
        session = get_session(session_id)
        if not session:
            return _session_not_found()
        return JSONResponse(session.to_dict(detail=True))

    @app.get("/api/chat/sessions/{session_id}/breakdown", response_model=MortgageBreakdown)
    async def get_breakdown(session_id: str):
        """Return the payment breakdown computed for this session."""
        session = get_session(session_id)
        if not session:
            return _session_not_found()
        if session.state.breakdown is None:
            return JSONResponse(
                {"error": "No breakdown yet. Finish the loan questions first."},
                status_code=404,
            )
        return session.state.breakdown

    @app.delete("/api/chat/sessions/{session_id}")
    async def end_chat(session_id: str):
        """End a chat session."""
        if not unregister_session(session_id):
            return _session_not_found()
        return JSONResponse({"ended": True})

    @app.get("/api/chat/sessions", dependencies=[Depends(require_admin_token)])
    async def list_chats():
        """Return a summary of all active chat sessions."""
        sessions = get_active_sessions()
        return JSONResponse({
            "sessions": [s.to_dict() for s in sessions.values()],
            "count": len(sessions),
        })

    # ── Standalone calculator ──────────────────────────────────

    @app.post("/api/calculate", response_model=MonthlyCostResponse)
    async def calculate(req: MonthlyCostRequest) -> MonthlyCostResponse:
        """Estimate the monthly payment including tax, insurance, HOA and utilities."""
        return estimate_monthly_costs(req)

    return app


# ── Helper functions ──────────────────────────────────────────────

def _create_gateway() -> AssistantGateway:
    """Build the assistant gateway from settings; disabled without an API key."""
    if not settings.gateway_enabled:
        return DisabledGateway()
    return GeminiGateway(
        api_key=settings.gemini_api_key,
        model=settings.gemini_model,
        base_url=settings.gemini_base_url,
        timeout=settings.gateway_timeout_seconds,
        history_limit=settings.history_limit,
    )


def _create_session(locale: str | None = None) -> ChatSession:
    """Create a ChatSession with the configured assistant gateway."""
    return ChatSession(gateway=_create_gateway(), locale=locale)


# ── Module-level app instance for uvicorn ──────────────────────

app = create_app()


if __name__ == "__main__":
    import uvicorn

    log_config = uvicorn.config.LOGGING_CONFIG
    log_config["formatters"]["default"]["fmt"] = (
        "%(asctime)s %(name)-12s %(levelname)-8s %(message)s"
    )

    uvicorn.run(
        "mortgage_assistant.app:app",
        host=settings.host,
        port=settings.port,
        reload=settings.debug,
        log_config=log_config,
    )
