"""
CLOB REST snapshot of current best asks. Public endpoints only, no auth.
"""

from __future__ import annotations

import logging
from concurrent.futures import ThreadPoolExecutor

from py_clob_client.client import ClobClient
from py_clob_client.clob_types import BookParams
from py_clob_client.exceptions import PolyApiException

from book.models import parse_price

logger = logging.getLogger(__name__)

BOOK_BATCH_SIZE = 50


def build_public_client(clob_host: str) -> ClobClient:
    """Unauthenticated client: order-book reads need no wallet."""
    return ClobClient(host=clob_host)


def best_ask_from_levels(levels: list) -> float | None:
    """Lowest parseable ask price. The REST API does not guarantee level order."""
    prices = [p for p in (parse_price(getattr(lvl, "price", None)) for lvl in levels or []) if p is not None]
    return min(prices) if prices else None


def get_best_asks(
    client: ClobClient,
    token_ids: list[str],
    max_workers: int = 8,
) -> dict[str, float]:
    """
    Best ask per token, fetched in parallel BOOK_BATCH_SIZE chunks.
    Tokens with an empty ask side, and chunks whose request fails, are
    left out of the result.
    """
    if not token_ids:
        return {}

    chunks = [token_ids[i:i + BOOK_BATCH_SIZE] for i in range(0, len(token_ids), BOOK_BATCH_SIZE)]

    def _fetch_chunk(chunk: list[str]) -> dict[str, float]:
        params = [BookParams(token_id=tid) for tid in chunk]
        try:
            raws = client.get_order_books(params)
        except PolyApiException as e:
            logger.warning("Order book fetch failed for %d tokens: %s", len(chunk), e)
            return {}
        result: dict[str, float] = {}
        for raw in raws or []:
            ask = best_ask_from_levels(raw.asks)
            if ask is not None:
                result[raw.asset_id] = ask
        return result

    result: dict[str, float] = {}
    with ThreadPoolExecutor(max_workers=max_workers) as executor:
        futures = [executor.submit(_fetch_chunk, chunk) for chunk in chunks]
        for future in futures:
            result.update(future.result())
    return result
