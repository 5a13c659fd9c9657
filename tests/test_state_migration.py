from __future__ import annotations

import unittest

from api.state_migration import client_response, client_state, migrate_state
from core.dispatcher import dispatch
from core.models import Context, State, UserSettings
from fakes import make_services

LEGACY_ITEMS = [{"productId": "p1", "name": "Panel", "unitPrice": 100.0, "qty": 1}]


class TestMigrateState(unittest.TestCase):
    def test_absent_state_is_fresh_greeting(self) -> None:
        self.assertEqual(migrate_state(None), (State.GREETING, Context()))
        self.assertEqual(migrate_state({}), (State.GREETING, Context()))

    def test_current_shape_is_used_as_is(self) -> None:
        phase, ctx = migrate_state(
            {"phase": "clarify", "context": {"previousState": "labor", "clarifyAttempts": 2}}
        )
        self.assertIs(phase, State.CLARIFY)
        self.assertIs(ctx.previous_state, State.LABOR)
        self.assertEqual(ctx.clarify_attempts, 2)

    def test_unknown_phase_falls_back_to_greeting(self) -> None:
        phase, _ = migrate_state({"phase": "dancing", "context": {}})
        self.assertIs(phase, State.GREETING)

    def test_legacy_phase_inference(self) -> None:
        cases = [
            ({"isComplete": True, "quoteItems": LEGACY_ITEMS}, State.DONE),
            ({"quoteItems": LEGACY_ITEMS, "laborHours": 2, "markupPercent": 15}, State.REVIEW),
            ({"quoteItems": LEGACY_ITEMS, "laborHours": 2}, State.MARKUP),
            ({"quoteItems": LEGACY_ITEMS}, State.LABOR),
            ({"laborHours": 2}, State.GREETING),
            ({"phase": "products", "pendingProducts": []}, State.PRODUCTS),
            ({"phase": "clarify"}, State.GREETING),
        ]
        for raw, expected in cases:
            self.assertIs(migrate_state(raw)[0], expected, raw)

    def test_legacy_tool_transcript_keeps_quote(self) -> None:
        raw = {
            "quoteItems": LEGACY_ITEMS,
            "laborHours": 8,
            "messages": [
                {"role": "user", "content": "panel upgrade"},
                {
                    "role": "assistant",
                    "content": [
                        {"type": "text", "text": "Let me look that up."},
                        {"type": "tool_use", "id": "tu_1", "name": "search_products", "input": {"query": "panel"}},
                    ],
                },
                {"role": "user", "content": [{"type": "tool_result", "tool_use_id": "tu_1", "content": "[]"}]},
                {"role": "assistant", "content": "How many hours?"},
                {"role": "system", "content": "ignored"},
            ],
        }
        phase, ctx = migrate_state(raw)
        self.assertIs(phase, State.MARKUP)
        self.assertEqual(len(ctx.quote_items), 1)
        self.assertEqual(ctx.labor_hours, 8)
        self.assertEqual(
            [(m.role, m.content) for m in ctx.messages],
            [
                ("user", "panel upgrade"),
                ("assistant", "Let me look that up."),
                ("assistant", "How many hours?"),
            ],
        )

    def test_legacy_fields_become_context(self) -> None:
        _, ctx = migrate_state(
            {"quoteItems": LEGACY_ITEMS, "laborHours": 3, "laborRate": 75, "clientName": "Dana", "junk": 1}
        )
        self.assertEqual(ctx.quote_items[0].product_id, "p1")
        self.assertEqual(ctx.labor_hours, 3)
        self.assertEqual(ctx.labor_rate, 75)
        self.assertEqual(ctx.client_name, "Dana")
        self.assertEqual(ctx.clarify_attempts, 0)


class TestClientShapes(unittest.TestCase):
    def test_client_state_mirrors_context_fields(self) -> None:
        ctx = Context(labor_hours=4, quote_name="Smith panel")
        out = client_state(State.MARKUP, ctx, False)
        self.assertEqual(out["phase"], "markup")
        self.assertEqual(out["context"]["laborHours"], 4)
        self.assertEqual(out["laborHours"], 4)
        self.assertEqual(out["quoteName"], "Smith panel")
        self.assertNotIn("markupPercent", out)
        self.assertFalse(out["isComplete"])


class TestLegacyRoundTrip(unittest.IsolatedAsyncioTestCase):
    async def _dispatch(self, raw, text):
        phase, ctx = migrate_state(raw)
        return await dispatch(phase, text, ctx, UserSettings(), make_services())

    async def test_legacy_and_current_shapes_agree(self) -> None:
        legacy = {"quoteItems": LEGACY_ITEMS, "laborHours": 1, "laborRate": 50}
        current = {
            "phase": "markup",
            "context": {"quoteItems": LEGACY_ITEMS, "laborHours": 1, "laborRate": 50},
        }
        for text in ("20%", "banana", "start over"):
            from_legacy = await self._dispatch(legacy, text)
            from_current = await self._dispatch(current, text)
            self.assertIs(from_legacy.state, from_current.state, text)
            self.assertEqual(from_legacy.context, from_current.context, text)

    async def test_response_round_trips_through_next_request(self) -> None:
        first = await self._dispatch(None, "")
        wire = client_response(first)
        self.assertEqual(wire["state"]["phase"], "job_selection")
        second = await self._dispatch(wire["state"], "panel upgrade")
        self.assertIs(second.state, State.SCOPING)
        self.assertEqual(len(second.context.messages), 4)


if __name__ == "__main__":
    unittest.main()
