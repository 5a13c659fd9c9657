# core/responses.py
"""
Pure (state, context, event, settings) -> what the user sees.

Handlers never call back into dispatch. When a state has nothing to show
(no questions left, empty checklist, no products) the handler returns the
next logical state itself along with a transitional message.
"""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, Dict, List, Optional

from core.events import AnswerScoping, Event
from core.models import Context, DisplayData, State, UserSettings
from core.totals import quote_breakdown
from settings import CLARIFY_ESCALATE_AFTER, DEFAULT_LABOR_RATE, DEFAULT_MARKUP_PERCENT

JOB_QUICK_REPLIES = ["Panel upgrade", "EV charger", "Recessed lighting", "New outlet", "Something else"]
LABOR_QUICK_REPLIES = ["4 hours", "8 hours", "16 hours", "Custom"]
MARKUP_QUICK_REPLIES = ["10%", "15%", "20%", "25%", "No markup"]
REVIEW_QUICK_REPLIES = ["Yes, finalize", "Make changes"]
DONE_QUICK_REPLIES = ["Start new quote"]
PRODUCTS_QUICK_REPLIES = ["Add all", "Skip products"]
CHECKLIST_QUICK_REPLIES = ["Looks good", "Skip"]
ESCALATION_QUICK_REPLIES = ["Start over", "Go back"]

CLARIFY_MESSAGES: Dict[State, str] = {
    State.GREETING: "Would you like to start a new quote?",
    State.JOB_SELECTION: "I didn't catch that job type. Could you pick from the options or describe it differently?",
    State.SCOPING: "I didn't recognize that answer. Could you pick from the options above?",
    State.CHECKLIST: "Would you like to confirm the materials, or skip this step?",
    State.PRODUCTS: "Would you like to add these products, or skip?",
    State.LABOR: "I need a number of hours. How many hours do you estimate for this job?",
    State.MARKUP: "I need a percentage. What markup would you like to apply?",
    State.REVIEW: "Would you like to finalize this quote, or make changes?",
    State.DONE: "Would you like to start a new quote?",
    State.CLARIFY: "I'm not sure what you mean. Could you try again?",
}

ESCALATION_MESSAGE = (
    "I'm having trouble understanding. Let's try a different approach - what would you like to do?"
)


@dataclass(frozen=True)
class StateReply:
    state: State
    message: str
    quick_replies: List[str] = field(default_factory=list)
    display: Optional[DisplayData] = None
    is_complete: bool = False


Handler = Callable[[Context, Event, UserSettings], StateReply]


def _labor_rate(settings: UserSettings) -> float:
    return settings.default_labor_rate or DEFAULT_LABOR_RATE


def _money(value: float) -> str:
    return f"${value:,.2f}"


def _number(value: float) -> str:
    return f"{value:g}"


# -------------------------------------------------------------------
# Handlers
# -------------------------------------------------------------------
def _greeting(ctx: Context, event: Event, settings: UserSettings) -> StateReply:
    return StateReply(
        State.GREETING,
        "Hey! I'm your quoting assistant. What kind of job are we working on?",
        list(JOB_QUICK_REPLIES),
    )


def _job_selection(ctx: Context, event: Event, settings: UserSettings) -> StateReply:
    return StateReply(State.JOB_SELECTION, "What kind of job are we quoting today?", list(JOB_QUICK_REPLIES))


def _scoping(ctx: Context, event: Event, settings: UserSettings) -> StateReply:
    questions = ctx.scoping_questions or []
    if ctx.current_question_index >= len(questions):
        # Nothing left to ask: show the checklist step directly
        nxt = _checklist(ctx, event, settings)
        return StateReply(
            nxt.state,
            f"Let's move on to materials. {nxt.message}",
            nxt.quick_replies,
            nxt.display,
        )

    question = questions[ctx.current_question_index]
    if ctx.current_question_index == 0:
        title = ctx.tradecraft.title if ctx.tradecraft else "Got it"
        prefix = f"{title}! "
    elif isinstance(event, AnswerScoping):
        prefix = f"{event.answer}, got it. "
    else:
        prefix = ""
    return StateReply(State.SCOPING, f"{prefix}{question.question}", list(question.quick_replies))


def _checklist(ctx: Context, event: Event, settings: UserSettings) -> StateReply:
    if not ctx.pending_checklist:
        return StateReply(
            State.LABOR,
            f"No materials checklist for this job. Let's set up labor. "
            f"How many hours? (at {_money(_labor_rate(settings))}/hr)",
            list(LABOR_QUICK_REPLIES),
        )
    return StateReply(
        State.CHECKLIST,
        "Here's what you'll typically need. Uncheck anything you already have:",
        list(CHECKLIST_QUICK_REPLIES),
        DisplayData(type="checklist", checklist=ctx.pending_checklist),
    )


def _products(ctx: Context, event: Event, settings: UserSettings) -> StateReply:
    if not ctx.pending_products:
        return StateReply(
            State.LABOR,
            "I couldn't find any matching products in the catalog. You can add custom items "
            "when you edit the quote. Let's move on to labor.",
            list(LABOR_QUICK_REPLIES),
        )
    return StateReply(
        State.PRODUCTS,
        f"Found {len(ctx.pending_products)} products. Select what you need:",
        list(PRODUCTS_QUICK_REPLIES),
        DisplayData(type="products", products=ctx.pending_products),
    )


def _labor(ctx: Context, event: Event, settings: UserSettings) -> StateReply:
    display = None
    if ctx.quote_items:
        display = DisplayData(
            type="added",
            added_items=[{"name": i.name, "qty": i.qty} for i in ctx.quote_items],
        )
    return StateReply(
        State.LABOR,
        f"How many labor hours for this job? (at {_money(_labor_rate(settings))}/hr)",
        list(LABOR_QUICK_REPLIES),
        display,
    )


def _markup(ctx: Context, event: Event, settings: UserSettings) -> StateReply:
    usual = settings.default_markup_percent
    if usual is None:
        usual = DEFAULT_MARKUP_PERCENT
    return StateReply(
        State.MARKUP,
        f"What markup percentage? (you usually use {_number(usual)}%)",
        list(MARKUP_QUICK_REPLIES),
    )


def _review(ctx: Context, event: Event, settings: UserSettings) -> StateReply:
    summary = quote_breakdown(ctx)
    summary["items"] = [
        {"name": i.name, "qty": i.qty, "unitPrice": i.unit_price, "lineTotal": round(i.unit_price * i.qty, 2)}
        for i in ctx.quote_items
    ]
    return StateReply(
        State.REVIEW,
        f"Quote ready! Total: {_money(summary['total'])}. Ready to finalize?",
        list(REVIEW_QUICK_REPLIES),
        DisplayData(type="summary", summary=summary),
    )


def _done(ctx: Context, event: Event, settings: UserSettings) -> StateReply:
    return StateReply(
        State.DONE,
        "Quote saved! You can edit it anytime from the quotes list.",
        list(DONE_QUICK_REPLIES),
        is_complete=True,
    )


def quick_replies_for(state: State, ctx: Context) -> List[str]:
    if state is State.JOB_SELECTION or state is State.GREETING:
        return list(JOB_QUICK_REPLIES)
    if state is State.SCOPING:
        questions = ctx.scoping_questions or []
        if ctx.current_question_index < len(questions):
            return list(questions[ctx.current_question_index].quick_replies)
        return []
    if state is State.CHECKLIST:
        return list(CHECKLIST_QUICK_REPLIES)
    if state is State.PRODUCTS:
        return list(PRODUCTS_QUICK_REPLIES)
    if state is State.LABOR:
        return list(LABOR_QUICK_REPLIES)
    if state is State.MARKUP:
        return list(MARKUP_QUICK_REPLIES)
    if state is State.REVIEW:
        return list(REVIEW_QUICK_REPLIES)
    if state is State.DONE:
        return list(DONE_QUICK_REPLIES)
    return []


def _clarify(ctx: Context, event: Event, settings: UserSettings) -> StateReply:
    if ctx.clarify_attempts >= CLARIFY_ESCALATE_AFTER:
        return StateReply(State.CLARIFY, ESCALATION_MESSAGE, list(ESCALATION_QUICK_REPLIES))

    previous = ctx.previous_state or State.JOB_SELECTION
    display = None
    # Keep the checklist / product picker on screen while we re-ask
    if previous is State.CHECKLIST and ctx.pending_checklist:
        display = DisplayData(type="checklist", checklist=ctx.pending_checklist)
    elif previous is State.PRODUCTS and ctx.pending_products:
        display = DisplayData(type="products", products=ctx.pending_products)
    return StateReply(
        State.CLARIFY,
        CLARIFY_MESSAGES[previous],
        quick_replies_for(previous, ctx),
        display,
    )


HANDLERS: Dict[State, Handler] = {
    State.GREETING: _greeting,
    State.JOB_SELECTION: _job_selection,
    State.SCOPING: _scoping,
    State.CHECKLIST: _checklist,
    State.PRODUCTS: _products,
    State.LABOR: _labor,
    State.MARKUP: _markup,
    State.REVIEW: _review,
    State.DONE: _done,
    State.CLARIFY: _clarify,
}

if set(HANDLERS) != set(State):
    raise RuntimeError("Every state needs a response handler")


def generate_response(state: State, context: Context, event: Event, settings: UserSettings) -> StateReply:
    return HANDLERS[state](context, event, settings)
