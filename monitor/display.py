"""
Console output for the ask monitor.

Pure formatting functions plus thin print_* wrappers that emit through
logging. All data arrives via arguments.
"""

from __future__ import annotations

import logging

from book.models import PairedUpdate, PairSide
from client.gamma import EventMarket
from monitor.logger import PRICE_LOGGER

logger = logging.getLogger(__name__)
price_logger = logging.getLogger(PRICE_LOGGER)

PLACEHOLDER = "\u2014"  # —
ARB_MARKER = "\u2190 ARB"  # ← ARB
CANCEL_LABEL = "CANCEL"

_RULE = "=" * 82
_VERT_SEP = "|"
_MAX_NAME_LEN = 20


def _truncate(text: str, length: int = _MAX_NAME_LEN) -> str:
    """Truncate text to *length* chars, appending ellipsis if trimmed."""
    if len(text) <= length:
        return text
    return text[: length - 1] + "\u2026"


def format_price(value: float | None) -> str:
    """Two decimals, or the placeholder when unknown."""
    if value is None:
        return PLACEHOLDER
    return f"{value:.2f}"


def format_size(size: str) -> str:
    """A size of exactly "0" means the order was cancelled."""
    return CANCEL_LABEL if size == "0" else size


def _format_side(side: PairSide) -> str:
    return f"{side.side:<4} {_truncate(side.name):<20} ask={format_price(side.ask):<5}"


def format_paired_update(update: PairedUpdate) -> str:
    """One line: both sides, their sum, order size and the arb marker if flagged."""
    line = (
        f"  {_format_side(update.a)}  {_VERT_SEP}  {_format_side(update.b)}  {_VERT_SEP}  "
        f"sum={format_price(update.total)}  size={format_size(update.size)}"
    )
    if update.is_arb:
        line += f" {ARB_MARKER}"
    return line


def print_paired_update(update: PairedUpdate) -> None:
    price_logger.info("%s", format_paired_update(update), extra={"arb": update.is_arb})


def print_event_summary(
    title: str,
    end_date: str,
    tags: list[str],
    markets: list[EventMarket],
    asks: dict[str, float],
) -> None:
    """
    Emit the startup block for one event: header, tags, then every outcome
    of every market with its current REST best ask.
    """
    logger.info("EVENT: %s %s EndDate: %s", title, _VERT_SEP, end_date)
    logger.info(_RULE)
    logger.info("  Tags: %s", ", ".join(tags))
    for market in markets:
        logger.info("  Market: %s", market.question)
        for token_id, outcome in zip(market.token_ids, market.outcomes):
            logger.info("    %s %s Ask: %s", outcome, _VERT_SEP, format_price(asks.get(token_id)))
