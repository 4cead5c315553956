"""
Seed the ask view from full order-book snapshots.
"""

from __future__ import annotations

import logging

from book.ask_state import AskState
from book.models import BookMessage, parse_price

logger = logging.getLogger(__name__)


def best_ask_from_book(message: BookMessage) -> float | None:
    """
    Best (lowest) ask of a snapshot, or None.

    Snapshot asks arrive sorted highest to lowest, so the best ask is the
    last level.
    """
    if not message.asks:
        return None
    return parse_price(message.asks[-1].price)


def seed_from_book(message: BookMessage, state: AskState) -> float | None:
    """Write the snapshot's best ask into ``state``. Silent; returns the seeded price."""
    if not message.asset_id:
        return None
    price = best_ask_from_book(message)
    if price is None:
        return None
    state.set(message.asset_id, price)
    logger.debug("Seeded %s best ask %.4f from book", message.asset_id, price)
    return price
