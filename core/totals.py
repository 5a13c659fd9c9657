# core/totals.py
from __future__ import annotations

from typing import Dict

from core.models import Context


def materials_subtotal(context: Context) -> float:
    return sum(item.unit_price * item.qty for item in context.quote_items)


def labor_total(context: Context) -> float:
    return (context.labor_hours or 0) * (context.labor_rate or 0)


def calculate_total(context: Context) -> float:
    """
    Materials + markup + labor.

    Markup applies to the materials subtotal only. Labor is never marked up.
    """
    materials = materials_subtotal(context)
    markup = materials * ((context.markup_percent or 0) / 100)
    return materials + markup + labor_total(context)


def quote_breakdown(context: Context) -> Dict[str, float]:
    materials = materials_subtotal(context)
    markup = materials * ((context.markup_percent or 0) / 100)
    labor = labor_total(context)
    return {
        "materials": round(materials, 2),
        "markupPercent": context.markup_percent or 0,
        "markup": round(markup, 2),
        "laborHours": context.labor_hours or 0,
        "laborRate": context.labor_rate or 0,
        "labor": round(labor, 2),
        "total": round(calculate_total(context), 2),
    }
