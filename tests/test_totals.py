from __future__ import annotations

import unittest

from core.models import Context, QuoteItem
from core.totals import calculate_total, labor_total, materials_subtotal, quote_breakdown


def _ctx(**kw) -> Context:
    return Context(**kw)


class TestQuoteTotals(unittest.TestCase):
    def test_markup_applies_to_materials_only(self) -> None:
        ctx = _ctx(
            quote_items=[QuoteItem(product_id="p1", name="Panel", unit_price=100, qty=1)],
            labor_hours=1,
            labor_rate=50,
            markup_percent=20,
        )
        self.assertAlmostEqual(calculate_total(ctx), 170.0)

    def test_labor_only_quote_ignores_markup(self) -> None:
        ctx = _ctx(labor_hours=2, labor_rate=50, markup_percent=50)
        self.assertAlmostEqual(calculate_total(ctx), 100.0)

    def test_subtotal_multiplies_qty(self) -> None:
        ctx = _ctx(
            quote_items=[
                QuoteItem(product_id="p1", name="Breaker", unit_price=12.5, qty=4),
                QuoteItem(product_id="p2", name="Wire", unit_price=2, qty=10, unit="ft"),
            ]
        )
        self.assertAlmostEqual(materials_subtotal(ctx), 70.0)
        self.assertEqual(labor_total(ctx), 0)

    def test_empty_context_totals_zero(self) -> None:
        self.assertEqual(calculate_total(Context()), 0)

    def test_breakdown_rounds_to_cents(self) -> None:
        ctx = _ctx(
            quote_items=[QuoteItem(product_id="p1", name="Box", unit_price=3.333, qty=3)],
            labor_hours=1.5,
            labor_rate=85,
            markup_percent=15,
        )
        summary = quote_breakdown(ctx)
        self.assertEqual(summary["materials"], 10.0)
        self.assertEqual(summary["markup"], 1.5)
        self.assertEqual(summary["labor"], 127.5)
        self.assertEqual(summary["total"], 139.0)
        self.assertEqual(summary["markupPercent"], 15)


if __name__ == "__main__":
    unittest.main()
