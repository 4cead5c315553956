"""
Price-change reconciliation for paired (binary) markets.

Every price_change message updates the ask view for all tokens it carries.
Messages with at least two records additionally yield a PairedUpdate for the
first two tokens, read back from the view so that a side without a fresh
best_ask still shows its last known value.
"""

from __future__ import annotations

from book.ask_state import AskState
from book.models import PairedUpdate, PairSide, PriceChangeMessage, parse_price

# Two-outcome asks summing below this leave room for fees plus margin
# under the 1.00 payout.
ARB_THRESHOLD = 0.98

_FALLBACK_NAMES = ("Token A", "Token B")
_UNKNOWN = "?"


def apply_price_changes(message: PriceChangeMessage, state: AskState) -> int:
    """Store every parseable best_ask in ``message``. Returns the number written."""
    written = 0
    for record in message.records:
        if not record.asset_id:
            continue
        ask = parse_price(record.best_ask)
        if ask is None:
            continue
        state.set(record.asset_id, ask)
        written += 1
    return written


def is_arbitrage(total: float | None) -> bool:
    return total is not None and total < ARB_THRESHOLD


def reconcile(
    message: PriceChangeMessage,
    state: AskState,
    names: dict[str, str],
) -> PairedUpdate | None:
    """
    Apply ``message`` to ``state`` and derive the paired view.

    Returns None when the message has fewer than two records; the state is
    still updated in that case.
    """
    apply_price_changes(message, state)

    if len(message.records) < 2:
        return None

    rec_a, rec_b = message.records[0], message.records[1]
    ask_a, ask_b = state.get_pair(rec_a.asset_id, rec_b.asset_id)

    total = None
    if ask_a is not None and ask_b is not None:
        total = ask_a + ask_b

    return PairedUpdate(
        a=PairSide(
            side=rec_a.side or _UNKNOWN,
            name=names.get(rec_a.asset_id, _FALLBACK_NAMES[0]),
            ask=ask_a,
        ),
        b=PairSide(
            side=rec_b.side or _UNKNOWN,
            name=names.get(rec_b.asset_id, _FALLBACK_NAMES[1]),
            ask=ask_b,
        ),
        size=rec_a.size if rec_a.size is not None else _UNKNOWN,
        total=total,
        is_arb=is_arbitrage(total),
    )
