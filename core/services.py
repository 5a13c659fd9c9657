# core/services.py
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, List, Optional

from core.models import TradecraftDoc

TradecraftLoader = Callable[[str], Awaitable[Optional[TradecraftDoc]]]
# (search_query, result_limit, category_filter) -> raw catalog rows
ProductSearch = Callable[[str, int, Optional[str]], Awaitable[List[Dict[str, Any]]]]


@dataclass(frozen=True)
class QuoteServices:
    """
    External collaborators the engine awaits. Passed into every dispatch
    call so nothing lives at module level.
    """

    load_tradecraft: TradecraftLoader
    search_products: ProductSearch
