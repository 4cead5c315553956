"""
Data models for the live ask monitor. Pure data, no behavior.

Feed messages are decoded once, at the classifier boundary, into one of the
frozen message types below (a tagged union over ``event_type``).
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Union


@dataclass(frozen=True)
class Token:
    id: str
    display_name: str


@dataclass(frozen=True)
class AskLevel:
    price: str | None
    size: str | None


@dataclass(frozen=True)
class PriceChangeRecord:
    asset_id: str
    side: str | None
    size: str | None
    best_ask: str | None


@dataclass(frozen=True)
class BookMessage:
    """Full order-book snapshot. ``asks`` is sorted highest to lowest price."""
    asset_id: str
    asks: tuple[AskLevel, ...]


@dataclass(frozen=True)
class PriceChangeMessage:
    """One matching/cancellation event, one record per affected token."""
    records: tuple[PriceChangeRecord, ...]


@dataclass(frozen=True)
class LastTradePriceMessage:
    asset_id: str


@dataclass(frozen=True)
class AckMessage:
    """Message without a discriminator (e.g. subscription confirmation)."""
    payload: dict = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class UnknownMessage:
    event_type: str
    payload: dict = field(default_factory=dict, compare=False)


@dataclass(frozen=True)
class MalformedMessage:
    raw: str
    reason: str


FeedMessage = Union[
    BookMessage,
    PriceChangeMessage,
    LastTradePriceMessage,
    AckMessage,
    UnknownMessage,
    MalformedMessage,
]


@dataclass(frozen=True)
class PairSide:
    side: str
    name: str
    ask: float | None


@dataclass(frozen=True)
class PairedUpdate:
    """Derived view of a two-record price change, ready for rendering."""
    a: PairSide
    b: PairSide
    size: str
    total: float | None
    is_arb: bool


def subscription_message(token_ids: list[str]) -> dict:
    """Market-channel subscription payload for ``token_ids``."""
    return {"assets_ids": list(token_ids), "type": "market"}


def parse_price(value: object) -> float | None:
    """
    Parse a string-encoded decimal price.

    Returns None for anything absent, non-string, non-numeric or non-finite.
    The feed is best-effort, so "no price" is a normal outcome here.
    """
    if not isinstance(value, str):
        return None
    try:
        price = float(value)
    except ValueError:
        return None
    if not math.isfinite(price):
        return None
    return price
