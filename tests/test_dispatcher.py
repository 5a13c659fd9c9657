from __future__ import annotations

import unittest

from core.dispatcher import dispatch
from core.models import Context, Product, QuoteItem, State, UserSettings, create_initial_context
from core.responses import ESCALATION_MESSAGE, ESCALATION_QUICK_REPLIES
from fakes import FakeCatalog, make_doc, make_services


class DispatchTestCase(unittest.IsolatedAsyncioTestCase):
    def setUp(self) -> None:
        self.catalog = FakeCatalog(
            rows_by_term={
                "200 amp panel": [
                    {"id": "p-panel", "name": "200A Load Center", "unit": "ea", "unit_price": 189.0},
                    {"id": "p-panel-2", "name": "200A Panel Kit", "unit_price": 249.0},
                ],
                "main breaker load center": [
                    {"id": "p-panel", "name": "200A Load Center", "unit": "ea", "unit_price": 189.0},
                ],
                "single pole breaker": [
                    {"id": "p-breaker", "name": "15A Breaker", "unit": "ea", "unit_price": 8.5},
                ],
            }
        )
        self.services = make_services(catalog=self.catalog)
        self.settings = UserSettings()

    async def turn(self, state: State, text: str, ctx: Context, settings: UserSettings = None):
        return await dispatch(state, text, ctx, settings or self.settings, self.services)

    async def select_panel_job(self):
        first = await self.turn(State.GREETING, "", create_initial_context())
        return await self.turn(first.state, "panel upgrade", first.context)


class TestHappyPath(DispatchTestCase):
    async def test_greeting_ping_moves_to_job_selection(self) -> None:
        result = await self.turn(State.GREETING, "", create_initial_context())
        self.assertIs(result.state, State.JOB_SELECTION)
        self.assertIn("Panel upgrade", result.quick_replies)
        self.assertEqual([m.role for m in result.context.messages], ["user", "assistant"])

    async def test_panel_upgrade_asks_first_scoping_question(self) -> None:
        result = await self.select_panel_job()
        self.assertIs(result.state, State.SCOPING)
        self.assertIn("What's the existing service size?", result.message)
        self.assertTrue(result.message.startswith("Panel Upgrade!"))
        self.assertEqual(result.quick_replies, ["60A", "100A", "150A", "Not sure"])

    async def test_scoping_answer_moves_to_next_question(self) -> None:
        scoping = await self.select_panel_job()
        result = await self.turn(scoping.state, "100A", scoping.context)
        self.assertIs(result.state, State.SCOPING)
        self.assertEqual(result.message, "100A, got it. Where is the panel located?")
        self.assertEqual(result.context.scoping_answers, {"current_service": "100A"})

    async def test_last_answer_shows_checklist(self) -> None:
        scoping = await self.select_panel_job()
        second = await self.turn(scoping.state, "100A", scoping.context)
        result = await self.turn(second.state, "Garage", second.context)
        self.assertIs(result.state, State.CHECKLIST)
        self.assertEqual(result.display.type, "checklist")
        self.assertEqual([i.category for i in result.display.checklist], ["panel", "breakers"])

    async def test_last_answer_without_checklist_goes_to_labor(self) -> None:
        self.services = make_services(docs={"panel_upgrade": make_doc(materials_checklist=None)})
        scoping = await self.select_panel_job()
        second = await self.turn(scoping.state, "100A", scoping.context)
        result = await self.turn(second.state, "Garage", second.context)
        self.assertIs(result.state, State.LABOR)

    async def test_job_without_questions_goes_straight_to_checklist(self) -> None:
        self.services = make_services(docs={"panel_upgrade": make_doc(scoping_questions=None)})
        result = await self.select_panel_job()
        self.assertIs(result.state, State.CHECKLIST)
        self.assertTrue(result.message.startswith("Let's move on to materials."))

    async def test_confirmed_checklist_enriches_products(self) -> None:
        scoping = await self.select_panel_job()
        second = await self.turn(scoping.state, "100A", scoping.context)
        checklist = await self.turn(second.state, "Garage", second.context)
        result = await self.turn(checklist.state, 'CONFIRM_CHECKLIST:["panel"]', checklist.context)

        self.assertIs(result.state, State.PRODUCTS)
        self.assertEqual([p.id for p in result.display.products], ["p-panel", "p-panel-2"])
        self.assertIsNone(result.context.pending_checklist)
        # two terms per item, two results per term, electrical only
        self.assertEqual(
            self.catalog.calls,
            [("200 amp panel", 2, "electrical"), ("main breaker load center", 2, "electrical")],
        )

    async def test_no_products_found_moves_to_labor(self) -> None:
        self.catalog.rows_by_term = {}
        scoping = await self.select_panel_job()
        second = await self.turn(scoping.state, "100A", scoping.context)
        checklist = await self.turn(second.state, "Garage", second.context)
        result = await self.turn(checklist.state, "looks good", checklist.context)
        self.assertIs(result.state, State.LABOR)
        self.assertIn("couldn't find any matching products", result.message)

    async def test_empty_confirmation_drops_checklist(self) -> None:
        scoping = await self.select_panel_job()
        second = await self.turn(scoping.state, "100A", scoping.context)
        checklist = await self.turn(second.state, "Garage", second.context)
        result = await self.turn(checklist.state, "CONFIRM_CHECKLIST:[]", checklist.context)

        self.assertIs(result.state, State.LABOR)
        self.assertIsNone(result.context.pending_checklist)
        self.assertEqual(self.catalog.calls, [])
        later = await self.turn(result.state, "4 hours", result.context)
        self.assertIsNone(later.context.pending_checklist)

    async def test_add_all_then_labor_markup_review_done(self) -> None:
        ctx = Context(
            pending_products=[
                Product(id="p-panel", name="200A Load Center", price=100.0, suggested_qty=1),
            ]
        )
        labor = await self.turn(State.PRODUCTS, "add all", ctx)
        self.assertIs(labor.state, State.LABOR)
        self.assertEqual(labor.display.type, "added")

        markup = await self.turn(labor.state, "1 hour", labor.context)
        self.assertIs(markup.state, State.MARKUP)
        self.assertEqual(markup.context.labor_rate, 50)

        review = await self.turn(markup.state, "20%", markup.context)
        self.assertIs(review.state, State.REVIEW)
        self.assertEqual(review.display.summary["total"], 170.0)
        self.assertIn("$170.00", review.message)

        done = await self.turn(review.state, "Yes, finalize", review.context)
        self.assertIs(done.state, State.DONE)
        self.assertTrue(done.is_complete)

        again = await self.turn(done.state, "Start new quote", done.context)
        self.assertIs(again.state, State.GREETING)
        self.assertEqual(again.context.quote_items, [])
        self.assertEqual(len(again.context.messages), 2)

    async def test_done_only_leaves_on_start_new(self) -> None:
        ctx = Context(quote_items=[QuoteItem(product_id="p", name="x", unit_price=1, qty=1)])
        result = await self.turn(State.DONE, "what now", ctx)
        self.assertIs(result.state, State.CLARIFY)
        self.assertIs(result.context.previous_state, State.DONE)


class TestClarify(DispatchTestCase):
    async def test_eight_hours_moves_to_markup(self) -> None:
        result = await self.turn(State.LABOR, "8 hours", Context())
        self.assertIs(result.state, State.MARKUP)
        self.assertEqual(result.context.labor_hours, 8)

    async def test_banana_in_labor_enters_clarify(self) -> None:
        result = await self.turn(State.LABOR, "banana", Context())
        self.assertIs(result.state, State.CLARIFY)
        self.assertIs(result.context.previous_state, State.LABOR)
        self.assertEqual(result.context.clarify_attempts, 1)
        self.assertIn("hours", result.message)

    async def test_attempts_increase_then_escalate(self) -> None:
        first = await self.turn(State.LABOR, "banana", Context())
        second = await self.turn(first.state, "banana", first.context)
        third = await self.turn(second.state, "banana", second.context)

        self.assertEqual(
            [r.context.clarify_attempts for r in (first, second, third)],
            [1, 2, 3],
        )
        self.assertIs(third.context.previous_state, State.LABOR)
        self.assertNotEqual(first.message, ESCALATION_MESSAGE)
        self.assertEqual(second.message, first.message)
        self.assertEqual(third.message, ESCALATION_MESSAGE)
        self.assertEqual(third.quick_replies, ESCALATION_QUICK_REPLIES)

    async def test_unmatched_state_without_unclear_row_still_counts(self) -> None:
        checklist_ctx = Context(pending_checklist=make_doc().materials_checklist.items)
        first = await self.turn(State.CHECKLIST, "hmm", checklist_ctx)
        second = await self.turn(first.state, "hmm", first.context)
        self.assertIs(second.state, State.CLARIFY)
        self.assertEqual(second.context.clarify_attempts, 2)
        self.assertIs(second.context.previous_state, State.CHECKLIST)
        self.assertEqual(second.display.type, "checklist")

    async def test_valid_answer_leaves_clarify_and_resets(self) -> None:
        first = await self.turn(State.LABOR, "banana", Context())
        second = await self.turn(first.state, "6 hours", first.context)
        self.assertIs(second.state, State.MARKUP)
        self.assertEqual(second.context.clarify_attempts, 0)
        self.assertIsNone(second.context.previous_state)
        self.assertEqual(second.context.labor_hours, 6)

    async def test_go_back_returns_to_interrupted_state(self) -> None:
        state, ctx = State.MARKUP, Context()
        for _ in range(3):
            result = await self.turn(state, "??", ctx)
            state, ctx = result.state, result.context
        self.assertEqual(result.message, ESCALATION_MESSAGE)

        back = await self.turn(state, "Go back", ctx)
        self.assertIs(back.state, State.MARKUP)
        self.assertEqual(back.context.clarify_attempts, 0)
        self.assertIn("markup", back.message.lower())

    async def test_start_over_from_escalation(self) -> None:
        ctx = Context(previous_state=State.LABOR, clarify_attempts=3, labor_rate=40)
        result = await self.turn(State.CLARIFY, "Start over", ctx)
        self.assertIs(result.state, State.GREETING)
        self.assertEqual(result.context.clarify_attempts, 0)
        self.assertIsNone(result.context.labor_rate)

    async def test_clarify_chain_terminates(self) -> None:
        ctx = Context(previous_state=State.CLARIFY, clarify_attempts=1)
        result = await self.turn(State.CLARIFY, "8 hours", ctx)
        self.assertIs(result.state, State.CLARIFY)
        self.assertEqual(result.context.clarify_attempts, 2)
        self.assertIs(result.context.previous_state, State.JOB_SELECTION)

    async def test_dispatch_does_not_mutate_input_context(self) -> None:
        ctx = Context(labor_rate=55)
        await self.turn(State.LABOR, "banana", ctx)
        self.assertEqual(ctx, Context(labor_rate=55))


if __name__ == "__main__":
    unittest.main()
