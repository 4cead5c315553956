"""
Unit tests for monitor/display.py -- paired update lines and event summaries.
"""

from __future__ import annotations

import logging

from book.models import PairedUpdate, PairSide
from client.gamma import EventMarket
from monitor.display import (
    ARB_MARKER,
    PLACEHOLDER,
    _truncate,
    format_paired_update,
    format_price,
    format_size,
    print_event_summary,
    print_paired_update,
)
from monitor.logger import PRICE_LOGGER


def _update(ask_a=0.52, ask_b=0.44, size="100", is_arb=None):
    total = ask_a + ask_b if ask_a is not None and ask_b is not None else None
    if is_arb is None:
        is_arb = total is not None and total < 0.98
    return PairedUpdate(
        a=PairSide(side="BUY", name="Lakers", ask=ask_a),
        b=PairSide(side="SELL", name="Celtics", ask=ask_b),
        size=size,
        total=total,
        is_arb=is_arb,
    )


class TestFormatHelpers:
    def test_price_two_decimals(self):
        assert format_price(0.5) == "0.50"
        assert format_price(0.456) == "0.46"

    def test_price_placeholder(self):
        assert format_price(None) == PLACEHOLDER == "—"

    def test_size_cancel(self):
        assert format_size("0") == "CANCEL"

    def test_size_verbatim(self):
        assert format_size("0.0") == "0.0"
        assert format_size("125.5") == "125.5"

    def test_truncate(self):
        assert _truncate("short") == "short"
        long = "x" * 30
        assert len(_truncate(long)) == 20
        assert _truncate(long).endswith("…")


class TestFormatPairedUpdate:
    def test_single_line(self):
        assert "\n" not in format_paired_update(_update())

    def test_arb_line(self):
        line = format_paired_update(_update(0.52, 0.44))
        assert "BUY" in line and "Lakers" in line and "ask=0.52" in line
        assert "SELL" in line and "Celtics" in line and "ask=0.44" in line
        assert "sum=0.96" in line
        assert "size=100" in line
        assert line.endswith(ARB_MARKER)

    def test_no_arb_line(self):
        line = format_paired_update(_update(0.55, 0.48))
        assert "sum=1.03" in line
        assert ARB_MARKER not in line

    def test_cancel_size(self):
        assert "size=CANCEL" in format_paired_update(_update(size="0"))

    def test_unknown_asks(self):
        line = format_paired_update(_update(ask_a=None, ask_b=0.44))
        assert f"ask={PLACEHOLDER}" in line
        assert f"sum={PLACEHOLDER}" in line
        assert ARB_MARKER not in line

    def test_side_a_before_side_b(self):
        line = format_paired_update(_update())
        assert line.index("Lakers") < line.index("Celtics")


class TestPrintFunctions:
    def test_print_paired_update_logs_line(self, caplog):
        caplog.set_level(logging.INFO)
        update = _update()
        print_paired_update(update)
        assert format_paired_update(update) in caplog.text

    def test_paired_update_on_price_logger_with_arb_flag(self, caplog):
        caplog.set_level(logging.INFO)
        print_paired_update(_update(ask_a=0.52, ask_b=0.44))
        print_paired_update(_update(ask_a=0.55, ask_b=0.48))
        assert [r.name for r in caplog.records] == [PRICE_LOGGER, PRICE_LOGGER]
        assert [r.arb for r in caplog.records] == [True, False]

    def test_event_summary(self, caplog):
        caplog.set_level(logging.INFO)
        markets = [EventMarket(
            question="Lakers vs. Celtics",
            token_ids=("tok_a", "tok_b"),
            outcomes=("Lakers", "Celtics"),
        )]
        print_event_summary(
            "NBA: Lakers vs. Celtics",
            "March 05, 2026 07:30 PM HST",
            ["100639:Games"],
            markets,
            {"tok_a": 0.52},
        )
        text = caplog.text
        assert "EVENT: NBA: Lakers vs. Celtics" in text
        assert "Tags: 100639:Games" in text
        assert "Market: Lakers vs. Celtics" in text
        assert "Lakers | Ask: 0.52" in text
        assert f"Celtics | Ask: {PLACEHOLDER}" in text
