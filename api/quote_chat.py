# api/quote_chat.py
from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse, PlainTextResponse
from pydantic import BaseModel
from typing import Any, Dict, Optional
import logging
import time

from api.state_migration import client_response, client_state, migrate_state
from catalog.search import search_catalog
from core.dispatcher import dispatch
from core.models import State, UserSettings, create_initial_context
from core.services import QuoteServices
from telemetry.logger import log_event
from tradecraft.store import load_tradecraft_doc

logger = logging.getLogger(__name__)

router = APIRouter()

CORS_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "authorization, x-client-info, apikey, content-type",
    "Access-Control-Allow-Methods": "POST, OPTIONS",
}

FALLBACK_MESSAGE = "Sorry, I hit a snag. Let's try that again."


# ----------------------------
# Request models
# ----------------------------
class QuoteChatRequest(BaseModel):
    userMessage: Optional[str] = ""
    # {phase, context} or the legacy flat shape; migrated before dispatch
    state: Optional[Dict[str, Any]] = None
    userSettings: Optional[UserSettings] = None


# ----------------------------
# Helpers: consistent responses
# ----------------------------
def fallback_response() -> Dict[str, Any]:
    return {
        "message": FALLBACK_MESSAGE,
        "quickReplies": ["Start over"],
        "state": client_state(State.GREETING, create_initial_context(), False),
    }


def json_response(payload: Dict[str, Any]) -> JSONResponse:
    # Always 200: the chat UI only knows how to render a message
    return JSONResponse(payload, status_code=200, headers=CORS_HEADERS)


def get_services() -> QuoteServices:
    return QuoteServices(load_tradecraft=load_tradecraft_doc, search_products=search_catalog)


def _msg_meta(msg: str) -> Dict[str, Any]:
    return {
        "len": len(msg or ""),
        "has_digits": any(ch.isdigit() for ch in (msg or "")),
        "structured": (msg or "").startswith(("CONFIRM_CHECKLIST:", "ADD_SELECTED:")),
    }


# ----------------------------
# Routes
# ----------------------------
@router.options("/quote-agent")
async def quote_agent_preflight():
    return PlainTextResponse("ok", headers=CORS_HEADERS)


@router.post("/quote-agent")
async def quote_agent(req: QuoteChatRequest, services: QuoteServices = Depends(get_services)):
    """
    Front door:
    - Stateless: everything needed for the turn arrives in the request
    - Always returns a renderable payload with HTTP 200
    - Telemetry is meta-only
    """
    msg = (req.userMessage or "").strip()
    t0 = time.time()

    log_event("quote_chat_received", {"msg_meta": _msg_meta(msg)})

    try:
        phase, context = migrate_state(req.state)
        settings = req.userSettings or UserSettings()
        logger.info("[quote-agent] phase=%s message=%r", phase.value, msg[:50])

        result = await dispatch(phase, msg, context, settings, services)
        out = client_response(result)

        log_event(
            "quote_chat_responded",
            {
                "from_phase": phase.value,
                "quick_replies_count": len(out["quickReplies"]),
                "display_type": (out.get("display") or {}).get("type"),
                "clarify_attempts": result.context.clarify_attempts,
                "latency_ms": int((time.time() - t0) * 1000),
            },
            phase=result.state.value,
        )
        return json_response(out)

    except Exception as e:
        logger.exception("[quote-agent] turn failed")
        log_event("quote_chat_error", {"error_code": "INTERNAL", "detail": repr(e)})
        return json_response(fallback_response())
