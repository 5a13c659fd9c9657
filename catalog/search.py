# catalog/search.py
from __future__ import annotations

import asyncio
import logging
import random
from typing import Any, Dict, List, Optional

import httpx

from settings import CATALOG_API_KEY, CATALOG_TIMEOUT_SECONDS, CATALOG_URL

logger = logging.getLogger(__name__)

SEARCH_RPC_PATH = "/rest/v1/rpc/search_products"


def _headers(api_key: str) -> Dict[str, str]:
    headers = {"Content-Type": "application/json"}
    if api_key:
        headers["apikey"] = api_key
        headers["Authorization"] = f"Bearer {api_key}"
    return headers


async def _post_with_backoff(
    client: httpx.AsyncClient,
    url: str,
    payload: Dict[str, Any],
    tries: int = 3,
    base_delay: float = 0.5,
) -> Any:
    delay = base_delay
    for attempt in range(tries):
        resp = await client.post(url, json=payload)

        if resp.status_code < 400:
            return resp.json()

        if resp.status_code == 429:
            retry_after = resp.headers.get("Retry-After")
            try:
                wait_s = float(retry_after) if retry_after else delay + random.uniform(0, 0.25)
            except ValueError:
                wait_s = delay + random.uniform(0, 0.25)

            logger.info("[catalog] 429, sleeping %.1fs (attempt %d/%d)", wait_s, attempt + 1, tries)
            await asyncio.sleep(wait_s)
            delay *= 2
            continue

        resp.raise_for_status()

    raise RuntimeError("Catalog search rate-limited (429) after retries")


async def search_catalog(
    search_query: str,
    result_limit: int = 2,
    category_filter: Optional[str] = None,
    *,
    base_url: str = CATALOG_URL,
    api_key: str = CATALOG_API_KEY,
    timeout: float = CATALOG_TIMEOUT_SECONDS,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[Dict[str, Any]]:
    """
    Full-text product search. Returns raw rows:
      {id, name, unit, unit_price, category_id?, retailer?, rank?}
    HTTP failures propagate; the enrichment loop decides what to skip.
    """
    query = (search_query or "").strip()
    if not query:
        return []
    if not base_url:
        logger.info("[catalog] CATALOG_URL not configured; skipping search for %r", query)
        return []

    payload = {
        "search_query": query,
        "result_limit": result_limit,
        "category_filter": category_filter,
    }

    async with httpx.AsyncClient(
        timeout=timeout, headers=_headers(api_key), transport=transport
    ) as client:
        data = await _post_with_backoff(client, f"{base_url}{SEARCH_RPC_PATH}", payload)

    if not isinstance(data, list):
        logger.warning("[catalog] unexpected search response shape: %s", type(data).__name__)
        return []
    return [row for row in data if isinstance(row, dict)][:result_limit]
