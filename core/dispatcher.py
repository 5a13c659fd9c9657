# core/dispatcher.py
from __future__ import annotations

import logging

from catalog.enrichment import search_products_for_categories
from core.event_parser import parse_event
from core.models import AgentResponse, Context, Message, State, UserSettings
from core.responses import generate_response
from core.services import QuoteServices
from core.state_machine import (
    count_clarify_attempt,
    find_transition,
    interrupted_state,
    resolve_target,
)

logger = logging.getLogger(__name__)


def _enter_clarify(ctx: Context, current: State, original: Context) -> Context:
    return ctx.model_copy(update={"previous_state": interrupted_state(current, original)})


def _leave_clarify(ctx: Context) -> Context:
    return ctx.model_copy(update={"previous_state": None, "clarify_attempts": 0})


async def _enter_products(ctx: Context, services: QuoteServices) -> Context:
    """Entry side effect for the products state: one catalog pass, then drop the checklist."""
    if not (ctx.confirmed_categories and ctx.pending_checklist):
        return ctx.model_copy(update={"pending_checklist": None})
    job_type = ctx.tradecraft.job_type if ctx.tradecraft else None
    products = await search_products_for_categories(
        services.search_products,
        ctx.pending_checklist,
        ctx.confirmed_categories,
        job_type,
    )
    return ctx.model_copy(update={"pending_products": products, "pending_checklist": None})


async def dispatch(
    current_state: State,
    user_input: str,
    context: Context,
    settings: UserSettings,
    services: QuoteServices,
) -> AgentResponse:
    """
    One turn of the conversation:
      parse -> first matching transition (or clarify) -> entry effects
      -> response -> transcript.
    Nothing is stored here; the caller sends state + context back next turn.
    """
    user_input = user_input or ""
    logger.info("[FSM] state=%s input=%r", current_state.value, user_input[:50])

    event = await parse_event(current_state, user_input, context, settings, services)
    logger.info("[FSM] event=%s", event.kind.value)

    rule = find_transition(current_state, event, context)
    if rule is not None:
        next_state = resolve_target(rule, context)
        next_context = rule.action(context, event) if rule.action else context
        logger.info("[FSM] transition %s -> %s", current_state.value, next_state.value)

        if next_state is State.CLARIFY:
            next_context = _enter_clarify(next_context, current_state, context)
        elif current_state is State.CLARIFY:
            next_context = _leave_clarify(next_context)
    else:
        logger.info(
            "[FSM] no transition for %s + %s, going to clarify", current_state.value, event.kind.value
        )
        next_state = State.CLARIFY
        next_context = _enter_clarify(count_clarify_attempt(context, event), current_state, context)

    if next_state is State.PRODUCTS:
        next_context = await _enter_products(next_context, services)

    reply = generate_response(next_state, next_context, event, settings)
    if reply.state is not next_state:
        logger.info("[FSM] %s had nothing to show, moved on to %s", next_state.value, reply.state.value)

    final_context = next_context.model_copy(
        update={
            "messages": [
                *next_context.messages,
                Message(role="user", content=user_input),
                Message(role="assistant", content=reply.message),
            ]
        }
    )

    return AgentResponse(
        message=reply.message,
        quick_replies=reply.quick_replies,
        display=reply.display,
        context=final_context,
        state=reply.state,
        is_complete=reply.is_complete,
    )
