"""
Feed message classification and dispatch.

classify() decodes a raw text frame into typed messages without raising.
FeedHandler routes each decoded message to the book seeder or the price-change
reconciler, both of which mutate the connection's AskState.
"""

from __future__ import annotations

import json
import logging
from typing import Callable

from book.ask_state import AskState
from book.models import (
    AckMessage,
    AskLevel,
    BookMessage,
    FeedMessage,
    LastTradePriceMessage,
    MalformedMessage,
    PairedUpdate,
    PriceChangeMessage,
    PriceChangeRecord,
    UnknownMessage,
)
from book.reconciler import reconcile
from book.seeder import seed_from_book

logger = logging.getLogger(__name__)

EVENT_BOOK = "book"
EVENT_PRICE_CHANGE = "price_change"
EVENT_LAST_TRADE_PRICE = "last_trade_price"

_LOG_PAYLOAD_CHARS = 200


def _str_or_none(value: object) -> str | None:
    return value if isinstance(value, str) else None


def _decode_book(event: dict) -> BookMessage:
    raw_asks = event.get("asks")
    levels: list[AskLevel] = []
    if isinstance(raw_asks, list):
        for level in raw_asks:
            if isinstance(level, dict):
                levels.append(AskLevel(
                    price=_str_or_none(level.get("price")),
                    size=_str_or_none(level.get("size")),
                ))
            else:
                levels.append(AskLevel(price=None, size=None))
    return BookMessage(
        asset_id=_str_or_none(event.get("asset_id")) or "",
        asks=tuple(levels),
    )


def _decode_price_change(event: dict) -> PriceChangeMessage:
    raw_changes = event.get("price_changes")
    records: list[PriceChangeRecord] = []
    if isinstance(raw_changes, list):
        for change in raw_changes:
            if not isinstance(change, dict):
                change = {}
            records.append(PriceChangeRecord(
                asset_id=_str_or_none(change.get("asset_id")) or "",
                side=_str_or_none(change.get("side")),
                size=_str_or_none(change.get("size")),
                best_ask=_str_or_none(change.get("best_ask")),
            ))
    return PriceChangeMessage(records=tuple(records))


def classify_event(event: object) -> FeedMessage:
    """Decode one already-parsed JSON value by its ``event_type``."""
    if not isinstance(event, dict):
        return MalformedMessage(raw=json.dumps(event), reason="expected a JSON object")

    event_type = event.get("event_type")
    if not isinstance(event_type, str) or not event_type:
        return AckMessage(payload=event)
    if event_type == EVENT_PRICE_CHANGE:
        return _decode_price_change(event)
    if event_type == EVENT_BOOK:
        return _decode_book(event)
    if event_type == EVENT_LAST_TRADE_PRICE:
        return LastTradePriceMessage(asset_id=_str_or_none(event.get("asset_id")) or "")
    return UnknownMessage(event_type=event_type, payload=event)


def classify(raw: str) -> list[FeedMessage]:
    """
    Decode a raw text frame. Never raises.

    A JSON array is treated as a batch and every element is decoded on its
    own; the feed sends the subscribe-time book snapshots this way. Nesting
    deep enough to exhaust the decoder's recursion limit is malformed too.
    """
    try:
        data = json.loads(raw)
    except (ValueError, TypeError) as e:
        return [MalformedMessage(raw=raw, reason=str(e))]
    except RecursionError:
        return [MalformedMessage(raw=raw, reason="nesting too deep")]

    if isinstance(data, list):
        return [classify_event(event) for event in data]
    if isinstance(data, dict):
        return [classify_event(data)]
    return [MalformedMessage(raw=raw, reason="expected a JSON object or array")]


class FeedHandler:
    """
    Routes decoded feed messages into an AskState.

    Rendered paired updates go to ``on_update``. The handler does no I/O of
    its own apart from logging.
    """

    def __init__(
        self,
        state: AskState,
        names: dict[str, str],
        on_update: Callable[[PairedUpdate], None] | None = None,
    ) -> None:
        self.state = state
        self._names = names
        self._on_update = on_update
        self.messages_handled = 0
        self.malformed_count = 0

    def handle_text(self, raw: str) -> list[PairedUpdate]:
        """Classify and apply one text frame. Returns the updates it produced."""
        updates: list[PairedUpdate] = []
        for message in classify(raw):
            update = self.dispatch(message)
            if update is not None:
                updates.append(update)
        return updates

    def dispatch(self, message: FeedMessage) -> PairedUpdate | None:
        self.messages_handled += 1

        if isinstance(message, PriceChangeMessage):
            update = reconcile(message, self.state, self._names)
            if update is not None and self._on_update is not None:
                self._on_update(update)
            return update

        if isinstance(message, BookMessage):
            seed_from_book(message, self.state)
        elif isinstance(message, MalformedMessage):
            self.malformed_count += 1
            logger.warning(
                "Unparseable feed message (%s): %s",
                message.reason, message.raw[:_LOG_PAYLOAD_CHARS],
            )
        elif isinstance(message, UnknownMessage):
            logger.info("Unhandled event_type: %s", message.event_type)
        elif isinstance(message, LastTradePriceMessage):
            # On-chain settlement notice; the ask view is driven by price_change.
            logger.debug("Ignoring last_trade_price for %s", message.asset_id or "?")
        # Acks carry no state.
        return None
