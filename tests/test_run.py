"""
Unit tests for run.py -- argument parsing, discovery wiring and startup.
"""

from __future__ import annotations

import argparse
import json
from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest

import run
from book.models import Token
from config import Config


class TestParseTokenArg:
    def test_id_and_name(self):
        assert run.parse_token_arg("123:Lakers") == Token("123", "Lakers")

    def test_name_may_contain_colons(self):
        assert run.parse_token_arg("123:Over 2:30") == Token("123", "Over 2:30")

    def test_id_only(self):
        assert run.parse_token_arg("123") == Token("123", "123")

    def test_missing_id(self):
        with pytest.raises(argparse.ArgumentTypeError):
            run.parse_token_arg(":Lakers")


class TestParseArgs:
    def test_defaults(self):
        args = run.parse_args([])
        assert args.tokens == []
        assert args.tags == []
        assert args.hours is None
        assert args.no_summary is False
        assert args.json_log is None

    def test_repeatable(self):
        args = run.parse_args(["--token", "1:A", "--token", "2:B", "--tag", "745", "--hours", "6"])
        assert args.tokens == [Token("1", "A"), Token("2", "B")]
        assert args.tags == ["745"]
        assert args.hours == 6


class TestDiscoverTokens:
    def _event(self):
        end = datetime.now(timezone.utc) + timedelta(hours=2)
        return {
            "id": "e1",
            "title": "Lakers vs. Celtics",
            "endDate": end.strftime("%Y-%m-%dT%H:%M:%SZ"),
            "tags": [{"id": "100639", "label": "Games"}],
            "markets": [{
                "question": "Lakers vs. Celtics",
                "sportsMarketType": "moneyline",
                "clobTokenIds": json.dumps(["t1", "t2"]),
                "outcomes": json.dumps(["Lakers", "Celtics"]),
            }],
        }

    def test_tokens_from_game_events(self):
        event = self._event()
        with patch("run.fetch_all_tags", return_value=[event, event]) as fetch, \
                patch("run.build_public_client") as build, \
                patch("run.get_best_asks", return_value={"t1": 0.52}) as asks, \
                patch("run.print_event_summary") as summary:
            tokens = run.discover_tokens(Config(_env_file=None), ["100639"], 24)

        assert tokens == [Token("t1", "Lakers"), Token("t2", "Celtics")]
        fetch.assert_called_once()
        build.assert_called_once()
        asks.assert_called_once()
        assert asks.call_args.args[1] == ["t1", "t2"]
        summary.assert_called_once()

    def test_no_summary_skips_rest_books(self):
        with patch("run.fetch_all_tags", return_value=[self._event()]), \
                patch("run.build_public_client") as build, \
                patch("run.print_event_summary") as summary:
            tokens = run.discover_tokens(Config(_env_file=None), ["100639"], 24, show_summary=False)

        assert len(tokens) == 2
        build.assert_not_called()
        summary.assert_not_called()

    def test_nothing_found(self):
        with patch("run.fetch_all_tags", return_value=[]), \
                patch("run.build_public_client") as build:
            assert run.discover_tokens(Config(_env_file=None), [], 24) == []
        build.assert_not_called()


class TestMain:
    def test_cli_tokens_skip_discovery(self, tmp_path):
        supervisor = MagicMock()
        with patch("run.setup_logging", return_value=str(tmp_path / "x.log")), \
                patch("run.load_config", return_value=Config(_env_file=None)), \
                patch("run.discover_tokens") as discover, \
                patch("run.FeedSupervisor", return_value=supervisor) as sup_cls, \
                patch("run.asyncio.run") as arun:
            run.main(["--token", "t1:Lakers", "--token", "t2:Celtics"])

        discover.assert_not_called()
        kwargs = sup_cls.call_args.kwargs
        assert kwargs["tokens"] == [Token("t1", "Lakers"), Token("t2", "Celtics")]
        assert kwargs["reconnect_delay"] == 5.0
        arun.assert_called_once()

    def test_keyboard_interrupt_exits_cleanly(self, tmp_path):
        def _interrupt(coro):
            coro.close()
            raise KeyboardInterrupt

        with patch("run.setup_logging", return_value=str(tmp_path / "x.log")), \
                patch("run.load_config", return_value=Config(_env_file=None)), \
                patch("run.asyncio.run", side_effect=_interrupt):
            run.main(["--token", "t1"])

    def test_tag_flag_overrides_config(self, tmp_path):
        with patch("run.setup_logging", return_value=str(tmp_path / "x.log")), \
                patch("run.load_config", return_value=Config(_env_file=None, tag_ids=["1"])), \
                patch("run.discover_tokens", return_value=[]) as discover, \
                patch("run.FeedSupervisor"), \
                patch("run.asyncio.run"):
            run.main(["--tag", "745", "--hours", "3", "--no-summary"])

        args = discover.call_args.args
        assert args[1] == ["745"]
        assert args[2] == 3
        assert discover.call_args.kwargs["show_summary"] is False

    def test_connector_uses_configured_frame_limit(self, tmp_path):
        cfg = Config(_env_file=None, ws_max_frame_bytes=1024 * 1024, ws_open_timeout_sec=4.0)
        with patch("run.setup_logging", return_value=str(tmp_path / "x.log")), \
                patch("run.load_config", return_value=cfg), \
                patch("run.FeedSupervisor") as sup_cls, \
                patch("run.open_websocket") as open_ws, \
                patch("run.asyncio.run"):
            run.main(["--token", "t1"])
            sup_cls.call_args.kwargs["connector"]("wss://fake")

        open_ws.assert_called_once_with("wss://fake", open_timeout=4.0, max_size=1024 * 1024)

    def test_invalid_config_exits(self, tmp_path, monkeypatch, capsys):
        monkeypatch.setenv("DISPLAY_TIMEZONE", "Mars/Olympus")
        with patch("run.setup_logging") as setup, pytest.raises(SystemExit) as exc:
            run.main(["--token", "t1"])
        assert exc.value.code == 1
        assert "Invalid configuration" in capsys.readouterr().err
        setup.assert_not_called()
