# catalog/enrichment.py
from __future__ import annotations

import logging
from typing import Any, Dict, List, Optional

from core.models import ChecklistItem, Product
from core.services import ProductSearch
from settings import RESULTS_PER_TERM, SEARCH_TERMS_PER_ITEM

logger = logging.getLogger(__name__)

# Job type -> catalog category (partial match on the catalog side).
# Keeps an electrical job from surfacing plumbing fixtures.
TRADE_CATEGORY_FILTERS: Dict[str, str] = {
    "panel_upgrade": "electrical",
    "ev_charger": "electrical",
    "recessed_lighting": "electrical",
    "outlet_circuit": "electrical",
    "ceiling_fan": "electrical",
    "smoke_detectors": "electrical",
    "range_dryer_circuit": "electrical",
    "water_heater": "plumbing",
    "faucet_install": "plumbing",
}


def category_filter_for_job(job_type: Optional[str]) -> Optional[str]:
    if not job_type:
        return None
    return TRADE_CATEGORY_FILTERS.get(job_type)


def _to_product(row: Dict[str, Any], item: ChecklistItem) -> Optional[Product]:
    product_id = row.get("id")
    if product_id is None:
        return None
    try:
        price = float(row.get("unit_price") or 0)
    except (TypeError, ValueError):
        price = 0.0
    return Product(
        id=str(product_id),
        name=str(row.get("name") or ""),
        price=price,
        unit=str(row.get("unit") or "ea"),
        suggested_qty=item.default_qty,
    )


async def search_products_for_categories(
    search: ProductSearch,
    checklist: List[ChecklistItem],
    confirmed_categories: List[str],
    job_type: Optional[str] = None,
    *,
    terms_per_item: int = SEARCH_TERMS_PER_ITEM,
    results_per_term: int = RESULTS_PER_TERM,
) -> List[Product]:
    """
    A few catalog queries per confirmed checklist item, deduplicated by
    product id in first-seen order. One failing term never stops the rest.
    """
    category_filter = category_filter_for_job(job_type)
    confirmed = set(confirmed_categories)
    products: List[Product] = []
    seen_ids = set()

    logger.info("[enrich] categories=%s filter=%s", sorted(confirmed), category_filter)

    for item in checklist:
        if item.category not in confirmed:
            continue
        for term in item.search_terms[:terms_per_item]:
            try:
                rows = await search(term, results_per_term, category_filter)
            except Exception as e:
                logger.warning("[enrich] search failed for term=%r: %s", term, e)
                continue

            for row in rows or []:
                product = _to_product(row, item)
                if product is None or product.id in seen_ids:
                    continue
                seen_ids.add(product.id)
                products.append(product)

    logger.info("[enrich] found %d products", len(products))
    return products
