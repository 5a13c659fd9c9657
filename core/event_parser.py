# core/event_parser.py
"""
Free text -> exactly one typed Event.

Deterministic pattern rules only. parse_event never raises on odd input:
anything it cannot place becomes Unclear(original_input).
"""
from __future__ import annotations

import json
import logging
import re
from typing import Awaitable, Callable, Dict, List, Optional

from pydantic import ValidationError

from core.events import (
    AddProducts,
    AnswerScoping,
    ConfirmChecklist,
    Event,
    Finalize,
    GoBack,
    SelectJob,
    SetLabor,
    SetMarkup,
    SkipChecklist,
    SkipProducts,
    Start,
    StartNew,
    Unclear,
    selections_from_products,
)
from core.models import Context, ProductSelection, State, UserSettings
from core.services import QuoteServices
from settings import DEFAULT_LABOR_RATE

logger = logging.getLogger(__name__)

# -------------------------------------------------------------------
# Vocabulary
# -------------------------------------------------------------------
RESTART_RE = re.compile(r"^(start new|new quote|start over|start fresh|start new quote)$")
SKIP_CHECKLIST_RE = re.compile(r"^(skip|no materials|none)$")
CONFIRM_ALL_RE = re.compile(r"^(confirm|yes|looks good|continue)$")
SKIP_PRODUCTS_RE = re.compile(r"^(skip(\s+(products|these|materials))?|no products|none|done)$")
ADD_ALL_RE = re.compile(r"^add all( products| to quote)?$")
FINALIZE_RE = re.compile(r"^(yes[,\s]*)?(finalize|confirm|done|looks good|save|ready)$")
DONE_RESTART_RE = re.compile(r"^(new|start|another)$")
GO_BACK_RE = re.compile(r"^(go back|back)$")

HOURS_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*(?:hours?|hrs?|h)?$")
DAYS_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*days?$")
NO_MARKUP_RE = re.compile(r"^(no markup|none|skip|0%?)$")
PERCENT_RE = re.compile(r"^(\d+(?:\.\d+)?)\s*%?(?:\s*percent)?$")

CONFIRM_CHECKLIST_PREFIX = "CONFIRM_CHECKLIST:"
ADD_SELECTED_PREFIX = "ADD_SELECTED:"

HOURS_PER_DAY = 8

# Exact phrases first, then keyword containment.
JOB_TYPE_PATTERNS: Dict[str, str] = {
    "panel upgrade": "panel_upgrade",
    "panel": "panel_upgrade",
    "200 amp": "panel_upgrade",
    "200a": "panel_upgrade",
    "ev charger": "ev_charger",
    "ev charger install": "ev_charger",
    "charger": "ev_charger",
    "recessed lighting": "recessed_lighting",
    "recessed lights": "recessed_lighting",
    "can lights": "recessed_lighting",
    "pot lights": "recessed_lighting",
    "outlet": "outlet_circuit",
    "new outlet": "outlet_circuit",
    "add outlet": "outlet_circuit",
    "circuit": "outlet_circuit",
    "ceiling fan": "ceiling_fan",
    "fan": "ceiling_fan",
    "smoke detector": "smoke_detectors",
    "smoke detectors": "smoke_detectors",
    "smoke alarm": "smoke_detectors",
    "co detector": "smoke_detectors",
    "range": "range_dryer_circuit",
    "dryer": "range_dryer_circuit",
    "dryer outlet": "range_dryer_circuit",
    "range outlet": "range_dryer_circuit",
    "240v": "range_dryer_circuit",
}

# Order matters: more specific families before generic words like "outlet".
JOB_TYPE_KEYWORDS = [
    ("ev_charger", ("ev charger", "electric vehicle", "tesla charger", "car charger", "level 2 charger", "nema 14-50")),
    ("panel_upgrade", ("sub-panel", "subpanel", "200 amp", "200a", "upgrade panel", "service upgrade", "main panel", "breaker box", "fuse box", "panel")),
    ("recessed_lighting", ("recessed", "can lights", "pot lights", "downlights")),
    ("ceiling_fan", ("ceiling fan", "fan install", "fan installation")),
    ("smoke_detectors", ("smoke detector", "smoke alarm", "co detector", "carbon monoxide")),
    ("range_dryer_circuit", ("dryer", "stove", "oven", "240v outlet", "240 volt", "50 amp outlet", "30 amp outlet")),
    ("outlet_circuit", ("outlet", "receptacle", "dedicated circuit", "circuit")),
]


def normalize(text: str) -> str:
    return (text or "").strip().lower()


def match_job_type(text: str) -> Optional[str]:
    low = normalize(text)
    if not low:
        return None
    exact = JOB_TYPE_PATTERNS.get(low)
    if exact:
        return exact
    for job_type, keywords in JOB_TYPE_KEYWORDS:
        if any(k in low for k in keywords):
            return job_type
    return None


def match_quick_reply(text: str, quick_replies: List[str]) -> Optional[str]:
    """
    Exact match first, then containment either way
    ("under 25" -> "Under 25 ft", "garage wall please" -> "Garage wall").
    """
    low = normalize(text)
    if not low:
        return None
    for reply in quick_replies:
        if reply.lower() == low:
            return reply
    for reply in quick_replies:
        reply_low = reply.lower()
        if reply_low in low or low in reply_low:
            return reply
    return None


def parse_hours(text: str) -> Optional[float]:
    low = normalize(text)
    m = HOURS_RE.match(low)
    if m:
        return float(m.group(1))
    m = DAYS_RE.match(low)
    if m:
        return float(m.group(1)) * HOURS_PER_DAY
    if "half day" in low:
        return 4.0
    if "full day" in low:
        return 8.0
    return None


def parse_percent(text: str) -> Optional[float]:
    low = normalize(text)
    if NO_MARKUP_RE.match(low):
        return 0.0
    m = PERCENT_RE.match(low)
    if m:
        return float(m.group(1))
    return None


def _json_payload(raw: str, prefix: str):
    try:
        return json.loads(raw[len(prefix):])
    except ValueError:
        return None


# -------------------------------------------------------------------
# Per-state parsers
# -------------------------------------------------------------------
StateParser = Callable[[str, Context, UserSettings, QuoteServices], Awaitable[Event]]


async def _parse_greeting(text: str, ctx: Context, settings: UserSettings, services: QuoteServices) -> Event:
    return Start()


async def _parse_job_selection(text: str, ctx: Context, settings: UserSettings, services: QuoteServices) -> Event:
    job_type = match_job_type(text)
    if job_type:
        tradecraft = await services.load_tradecraft(job_type)
        if tradecraft is not None:
            return SelectJob(job_type=job_type, tradecraft=tradecraft)
        logger.info("[FSM] Recognized job type %s but no tradecraft doc is available", job_type)
    return Unclear(original_input=text)


async def _parse_scoping(text: str, ctx: Context, settings: UserSettings, services: QuoteServices) -> Event:
    questions = ctx.scoping_questions or []
    if ctx.current_question_index >= len(questions):
        return Unclear(original_input=text)
    question = questions[ctx.current_question_index]
    matched = match_quick_reply(text, question.quick_replies)
    if matched:
        return AnswerScoping(question_id=question.id, answer=matched)
    return Unclear(original_input=text)


async def _parse_checklist(text: str, ctx: Context, settings: UserSettings, services: QuoteServices) -> Event:
    low = normalize(text)
    raw = text.strip()
    if SKIP_CHECKLIST_RE.match(low):
        return SkipChecklist()
    if raw.startswith(CONFIRM_CHECKLIST_PREFIX):
        categories = _json_payload(raw, CONFIRM_CHECKLIST_PREFIX)
        if isinstance(categories, list) and all(isinstance(c, str) for c in categories):
            return ConfirmChecklist(categories=tuple(categories))
        return Unclear(original_input=text)
    if CONFIRM_ALL_RE.match(low) and ctx.pending_checklist:
        categories = list(dict.fromkeys(item.category for item in ctx.pending_checklist))
        return ConfirmChecklist(categories=tuple(categories))
    return Unclear(original_input=text)


async def _parse_products(text: str, ctx: Context, settings: UserSettings, services: QuoteServices) -> Event:
    low = normalize(text)
    raw = text.strip()
    if SKIP_PRODUCTS_RE.match(low):
        return SkipProducts()
    if raw.startswith(ADD_SELECTED_PREFIX):
        payload = _json_payload(raw, ADD_SELECTED_PREFIX)
        if not isinstance(payload, list):
            return Unclear(original_input=text)
        try:
            selections = tuple(ProductSelection.model_validate(p) for p in payload)
        except ValidationError:
            return Unclear(original_input=text)
        return AddProducts(products=selections)
    if ADD_ALL_RE.match(low) and ctx.pending_products:
        return AddProducts(products=selections_from_products(ctx.pending_products))
    return Unclear(original_input=text)


async def _parse_labor(text: str, ctx: Context, settings: UserSettings, services: QuoteServices) -> Event:
    hours = parse_hours(text)
    if hours is None:
        return Unclear(original_input=text)
    rate = settings.default_labor_rate or DEFAULT_LABOR_RATE
    return SetLabor(hours=hours, rate=rate)


async def _parse_markup(text: str, ctx: Context, settings: UserSettings, services: QuoteServices) -> Event:
    percent = parse_percent(text)
    if percent is None:
        return Unclear(original_input=text)
    return SetMarkup(percent=percent)


async def _parse_review(text: str, ctx: Context, settings: UserSettings, services: QuoteServices) -> Event:
    low = normalize(text)
    if low == "yes" or FINALIZE_RE.match(low):
        return Finalize()
    return Unclear(original_input=text)


async def _parse_done(text: str, ctx: Context, settings: UserSettings, services: QuoteServices) -> Event:
    if DONE_RESTART_RE.match(normalize(text)):
        return StartNew()
    return Unclear(original_input=text)


STATE_PARSERS: Dict[State, StateParser] = {
    State.GREETING: _parse_greeting,
    State.JOB_SELECTION: _parse_job_selection,
    State.SCOPING: _parse_scoping,
    State.CHECKLIST: _parse_checklist,
    State.PRODUCTS: _parse_products,
    State.LABOR: _parse_labor,
    State.MARKUP: _parse_markup,
    State.REVIEW: _parse_review,
    State.DONE: _parse_done,
}

if set(STATE_PARSERS) != set(State) - {State.CLARIFY}:
    raise RuntimeError("Every productive state needs a parser")


def _state_to_parse(state: State, ctx: Context) -> Optional[State]:
    """
    Follow clarify back to the interrupted state. Bounded: each state is
    visited at most once, so a clarify that points at clarify ends here.
    """
    seen = set()
    while state is State.CLARIFY:
        seen.add(state)
        previous = ctx.previous_state
        if previous is None or previous in seen:
            return None
        state = previous
    return state


async def parse_event(
    state: State,
    text: str,
    context: Context,
    settings: UserSettings,
    services: QuoteServices,
) -> Event:
    text = text or ""
    low = normalize(text)

    # Global commands win in every state
    if RESTART_RE.match(low):
        return StartNew()

    if state is State.CLARIFY and GO_BACK_RE.match(low):
        return GoBack()

    target = _state_to_parse(state, context)
    if target is None:
        return Unclear(original_input=text)
    return await STATE_PARSERS[target](text, context, settings, services)
