# core/state_machine.py
"""
Transition table for the quote conversation.

Every legal state change is a row in TRANSITIONS. Guards and actions are
pure functions of (context, event). When several rows share the same
(from, event) pair, the FIRST row whose guard passes wins, so row order is
part of the contract (see tests/test_state_machine.py).
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Iterable, Optional, Union

from core.events import (
    AddProducts,
    AnswerScoping,
    ConfirmChecklist,
    Event,
    EventKind,
    SelectJob,
    SetLabor,
    SetMarkup,
)
from core.models import Context, QuoteItem, State, create_initial_context

ANY_STATE = "*"
PREVIOUS_STATE = "previous"  # resolved from context.previous_state

Guard = Callable[[Context, Event], bool]
Action = Callable[[Context, Event], Context]


@dataclass(frozen=True)
class Transition:
    from_state: Union[State, str]
    event: EventKind
    to: Union[State, str]
    guard: Optional[Guard] = None
    action: Optional[Action] = None

    def matches(self, from_states: Iterable[Union[State, str]], context: Context, event: Event) -> bool:
        if self.from_state not in from_states:
            return False
        if self.event is not event.kind:
            return False
        return self.guard is None or self.guard(context, event)


# -------------------------------------------------------------------
# Guards
# -------------------------------------------------------------------
def has_more_scoping_questions(ctx: Context, _event: Event = None) -> bool:
    if not ctx.scoping_questions:
        return False
    return ctx.current_question_index < len(ctx.scoping_questions) - 1


def no_more_scoping_questions(ctx: Context, _event: Event = None) -> bool:
    if not ctx.scoping_questions:
        return True
    return ctx.current_question_index >= len(ctx.scoping_questions) - 1


def has_checklist(ctx: Context, _event: Event = None) -> bool:
    checklist = ctx.tradecraft.materials_checklist if ctx.tradecraft else None
    return bool(checklist and checklist.items)


def last_question_with_checklist(ctx: Context, event: Event) -> bool:
    return no_more_scoping_questions(ctx) and has_checklist(ctx)


def last_question_without_checklist(ctx: Context, event: Event) -> bool:
    return no_more_scoping_questions(ctx) and not has_checklist(ctx)


# -------------------------------------------------------------------
# Actions
# -------------------------------------------------------------------
def load_tradecraft(ctx: Context, event: Event) -> Context:
    if not isinstance(event, SelectJob):
        return ctx
    doc = event.tradecraft
    items = doc.materials_checklist.items if doc.materials_checklist else None
    return ctx.model_copy(
        update={
            "tradecraft": doc,
            "scoping_questions": doc.scoping_questions,
            "current_question_index": 0,
            "scoping_answers": {},
            "pending_checklist": list(items) if items else None,
            "confirmed_categories": None,
            "pending_products": None,
        }
    )


def record_scoping_answer(ctx: Context, event: Event) -> Context:
    if not isinstance(event, AnswerScoping):
        return ctx
    total = len(ctx.scoping_questions or [])
    return ctx.model_copy(
        update={
            "scoping_answers": {**ctx.scoping_answers, event.question_id: event.answer},
            "current_question_index": min(ctx.current_question_index + 1, total),
        }
    )


def confirm_checklist(ctx: Context, event: Event) -> Context:
    if not isinstance(event, ConfirmChecklist):
        return ctx
    # pending_checklist stays: its search terms drive the product lookup
    return ctx.model_copy(update={"confirmed_categories": list(event.categories)})


def add_products(ctx: Context, event: Event) -> Context:
    if not isinstance(event, AddProducts):
        return ctx
    new_items = [
        QuoteItem(product_id=p.id, name=p.name, unit_price=p.price, qty=p.qty, unit=p.unit)
        for p in event.products
    ]
    return ctx.model_copy(
        update={
            "quote_items": [*ctx.quote_items, *new_items],
            "pending_products": None,
        }
    )


def clear_products(ctx: Context, _event: Event) -> Context:
    return ctx.model_copy(update={"pending_products": None})


def set_labor(ctx: Context, event: Event) -> Context:
    if not isinstance(event, SetLabor):
        return ctx
    return ctx.model_copy(update={"labor_hours": event.hours, "labor_rate": event.rate})


def set_markup(ctx: Context, event: Event) -> Context:
    if not isinstance(event, SetMarkup):
        return ctx
    return ctx.model_copy(update={"markup_percent": event.percent})


def count_clarify_attempt(ctx: Context, _event: Event) -> Context:
    # previous_state is filled in by the dispatcher, which knows where we came from
    return ctx.model_copy(update={"clarify_attempts": ctx.clarify_attempts + 1})


def reset_context(_ctx: Context, _event: Event) -> Context:
    return create_initial_context()


# -------------------------------------------------------------------
# The table
# -------------------------------------------------------------------
TRANSITIONS = [
    # greeting
    Transition(State.GREETING, EventKind.START, State.JOB_SELECTION),

    # job selection
    Transition(State.JOB_SELECTION, EventKind.SELECT_JOB, State.SCOPING, action=load_tradecraft),
    Transition(State.JOB_SELECTION, EventKind.UNCLEAR, State.CLARIFY, action=count_clarify_attempt),

    # scoping: stay while questions remain, then checklist, else straight to labor
    Transition(
        State.SCOPING, EventKind.ANSWER_SCOPING, State.SCOPING,
        guard=has_more_scoping_questions, action=record_scoping_answer,
    ),
    Transition(
        State.SCOPING, EventKind.ANSWER_SCOPING, State.CHECKLIST,
        guard=last_question_with_checklist, action=record_scoping_answer,
    ),
    Transition(
        State.SCOPING, EventKind.ANSWER_SCOPING, State.LABOR,
        guard=last_question_without_checklist, action=record_scoping_answer,
    ),
    Transition(State.SCOPING, EventKind.UNCLEAR, State.CLARIFY, action=count_clarify_attempt),

    # checklist
    Transition(State.CHECKLIST, EventKind.CONFIRM_CHECKLIST, State.PRODUCTS, action=confirm_checklist),
    Transition(State.CHECKLIST, EventKind.SKIP_CHECKLIST, State.LABOR),

    # products
    Transition(State.PRODUCTS, EventKind.ADD_PRODUCTS, State.LABOR, action=add_products),
    Transition(State.PRODUCTS, EventKind.SKIP_PRODUCTS, State.LABOR, action=clear_products),

    # labor
    Transition(State.LABOR, EventKind.SET_LABOR, State.MARKUP, action=set_labor),
    Transition(State.LABOR, EventKind.UNCLEAR, State.CLARIFY, action=count_clarify_attempt),

    # markup
    Transition(State.MARKUP, EventKind.SET_MARKUP, State.REVIEW, action=set_markup),
    Transition(State.MARKUP, EventKind.UNCLEAR, State.CLARIFY, action=count_clarify_attempt),

    # review
    Transition(State.REVIEW, EventKind.FINALIZE, State.DONE),

    # done
    Transition(State.DONE, EventKind.START_NEW, State.GREETING, action=reset_context),

    # clarify: answers that parse for the interrupted state match that state's rows
    Transition(State.CLARIFY, EventKind.GO_BACK, PREVIOUS_STATE),

    # global
    Transition(ANY_STATE, EventKind.START_NEW, State.GREETING, action=reset_context),
]


def interrupted_state(current: State, context: Context) -> State:
    """The productive state a clarify turn belongs to."""
    if current is not State.CLARIFY:
        return current
    previous = context.previous_state
    if previous is None or previous is State.CLARIFY:
        return State.JOB_SELECTION
    return previous


def find_transition(current: State, event: Event, context: Context) -> Optional[Transition]:
    """First row (in declaration order) that matches; None is a normal outcome."""
    from_states = {current, ANY_STATE}
    if current is State.CLARIFY:
        from_states.add(interrupted_state(current, context))
    for rule in TRANSITIONS:
        if rule.matches(from_states, context, event):
            return rule
    return None


def resolve_target(rule: Transition, context: Context) -> State:
    if rule.to == PREVIOUS_STATE:
        return interrupted_state(State.CLARIFY, context)
    return State(rule.to)
