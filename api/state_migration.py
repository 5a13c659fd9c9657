# api/state_migration.py
"""
Request/response shapes shared with older app builds.

Old clients send a flat state (quoteItems, laborHours, ... at the top level)
and read the same flat fields back. Current clients send {phase, context}.
"""
from __future__ import annotations

from typing import Any, Dict, List, Optional, Tuple

from core.models import AgentResponse, Context, State, create_initial_context

# Context fields copied verbatim from a legacy flat state
LEGACY_CONTEXT_FIELDS = (
    "quoteItems",
    "quoteName",
    "clientName",
    "laborHours",
    "laborRate",
    "markupPercent",
    "scopingQuestions",
    "currentQuestionIndex",
    "scopingAnswers",
    "pendingChecklist",
    "pendingProducts",
    "messages",
)

# Context fields mirrored flat into every response
MIRRORED_FIELDS = LEGACY_CONTEXT_FIELDS


def _coerce_phase(value: Any) -> Optional[State]:
    try:
        return State(str(value))
    except ValueError:
        return None


def _infer_legacy_phase(raw: Dict[str, Any]) -> State:
    phase = raw.get("phase")
    if phase:
        state = _coerce_phase(phase)
        # a legacy client never parks in clarify
        if state is not None and state is not State.CLARIFY:
            return state
        return State.GREETING
    if raw.get("isComplete"):
        return State.DONE
    if raw.get("quoteItems"):
        if raw.get("markupPercent") is not None:
            return State.REVIEW
        if raw.get("laborHours") is not None:
            return State.MARKUP
        return State.LABOR
    return State.GREETING


def _legacy_messages(raw_messages: Any) -> List[Dict[str, str]]:
    """
    v1 transcripts mix plain strings with content-block lists (text,
    tool_use, tool_result). Keep the text, drop turns that carry none.
    """
    out: List[Dict[str, str]] = []
    for msg in raw_messages if isinstance(raw_messages, list) else []:
        if not isinstance(msg, dict) or msg.get("role") not in ("user", "assistant"):
            continue
        content = msg.get("content")
        if isinstance(content, list):
            content = "\n".join(
                block["text"]
                for block in content
                if isinstance(block, dict) and block.get("type") == "text" and isinstance(block.get("text"), str)
            )
        if isinstance(content, str) and content.strip():
            out.append({"role": msg["role"], "content": content})
    return out


def migrate_state(raw: Optional[Dict[str, Any]]) -> Tuple[State, Context]:
    """Any accepted request state -> (phase, context). Raises on an invalid current-shape context."""
    if not raw:
        return State.GREETING, create_initial_context()

    if raw.get("phase") and isinstance(raw.get("context"), dict):
        phase = _coerce_phase(raw["phase"]) or State.GREETING
        return phase, Context.model_validate(raw["context"])

    legacy = {k: raw[k] for k in LEGACY_CONTEXT_FIELDS if raw.get(k) is not None}
    if "messages" in legacy:
        legacy["messages"] = _legacy_messages(legacy["messages"])
    legacy["clarifyAttempts"] = 0
    return _infer_legacy_phase(raw), Context.model_validate(legacy)


def client_state(phase: State, context: Context, is_complete: bool) -> Dict[str, Any]:
    wire = context.to_wire()
    out: Dict[str, Any] = {"phase": phase.value, "context": wire}
    for key in MIRRORED_FIELDS:
        if key in wire:
            out[key] = wire[key]
    out["isComplete"] = is_complete
    return out


def client_response(result: AgentResponse) -> Dict[str, Any]:
    out: Dict[str, Any] = {
        "message": result.message,
        "quickReplies": list(result.quick_replies),
    }
    if result.display is not None:
        out["display"] = result.display.model_dump(mode="json", by_alias=True, exclude_none=True)
    out["state"] = client_state(result.state, result.context, result.is_complete)
    return out
