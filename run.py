#!/usr/bin/env python3
"""
Polymarket live ask monitor.

  1. Discover game events in the look-ahead window (or take --token pairs)
  2. Print each event's markets with current REST best asks
  3. Stream the CLOB market channel, printing paired ask updates and
     flagging two-outcome sums below the arbitrage threshold
  4. Reconnect forever on disconnect

Usage:
  uv run python run.py                          # discover via TAG_IDS from env/.env
  uv run python run.py --tag 745 --hours 6      # discover for specific tags
  uv run python run.py --token 1234:Lakers --token 5678:Celtics
"""

from __future__ import annotations

import argparse
import asyncio
import logging
import sys

from pydantic import ValidationError

from book.models import Token
from client.clob import build_public_client, get_best_asks
from client.gamma import (
    dedupe_events,
    event_tags,
    extract_markets,
    fetch_all_tags,
    filter_game_events,
    format_end_date,
    now_and_window,
    tokens_for_markets,
)
from client.ws import FeedSupervisor, open_websocket
from config import Config, load_config
from monitor.display import print_event_summary
from monitor.logger import setup_logging

logger = logging.getLogger(__name__)


def parse_token_arg(value: str) -> Token:
    """Parse "TOKEN_ID[:NAME]". Without a name the id doubles as display name."""
    token_id, _, name = value.partition(":")
    token_id = token_id.strip()
    if not token_id:
        raise argparse.ArgumentTypeError(f"missing token id in {value!r}")
    return Token(id=token_id, display_name=name.strip() or token_id)


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Polymarket live ask monitor")
    parser.add_argument(
        "--token", dest="tokens", action="append", type=parse_token_arg, default=[],
        metavar="ID[:NAME]", help="Monitor this token (repeatable). Skips discovery",
    )
    parser.add_argument(
        "--tag", dest="tags", action="append", default=[],
        metavar="TAG_ID", help="Gamma tag to search (repeatable). Overrides TAG_IDS",
    )
    parser.add_argument("--hours", type=int, default=None, help="Look-ahead window in hours (default: HOURS_WINDOW)")
    parser.add_argument("--no-summary", action="store_true", help="Skip the REST order-book summary per event")
    parser.add_argument("--json-log", type=str, default=None, help="Path to JSON log file for machine-readable output")
    return parser.parse_args(argv)


def discover_tokens(cfg: Config, tag_ids: list[str], hours: int, show_summary: bool = True) -> list[Token]:
    """Game events in the window -> ordered (token id, outcome) pairs for the feed."""
    now, window_end, now_str = now_and_window(hours)
    logger.info("Fetching events for %d tag(s), window %dh...", len(tag_ids), hours)
    events = dedupe_events(fetch_all_tags(
        cfg.gamma_host,
        tag_ids,
        now_str,
        limit=cfg.events_per_tag,
        timeout=cfg.request_timeout_sec,
    ))
    games = filter_game_events(events, now, window_end, cfg.game_tag_id)
    logger.info("Found %d game events in window", len(games))

    tokens: list[Token] = []
    found = []
    for event in games:
        markets = extract_markets(event, cfg.sports_market_type)
        if not markets:
            logger.debug("Event %s has no %s markets", event.get("id"), cfg.sports_market_type)
            continue
        tokens.extend(tokens_for_markets(markets))
        found.append((event, markets))

    if show_summary and found:
        client = build_public_client(cfg.clob_host)
        asks = get_best_asks(client, [t.id for t in tokens], max_workers=cfg.book_fetch_workers)
        for event, markets in found:
            print_event_summary(
                str(event.get("title", "")),
                format_end_date(str(event.get("endDate", "")), cfg.display_timezone),
                event_tags(event),
                markets,
                asks,
            )

    return tokens


def main(argv: list[str] | None = None) -> None:
    args = parse_args(argv)
    try:
        cfg = load_config()
    except ValidationError as e:
        print(f"Invalid configuration: {e}", file=sys.stderr)
        sys.exit(1)

    log_file_path = setup_logging(cfg.log_level, json_log_file=args.json_log)
    logger.info("Polymarket live ask monitor")
    logger.info("  Log file: %s", log_file_path)

    if args.tokens:
        tokens = list(args.tokens)
    else:
        tag_ids = args.tags or list(cfg.tag_ids)
        if not tag_ids:
            logger.warning("No tags configured (set TAG_IDS or pass --tag); nothing to discover")
        hours = args.hours if args.hours is not None else cfg.hours_window
        tokens = discover_tokens(cfg, tag_ids, hours, show_summary=not args.no_summary)

    if not tokens:
        logger.warning("No tokens to monitor; subscribing with an empty token set")
    logger.info("Monitoring %d token(s), streaming live prices (Ctrl+C to stop)", len(tokens))

    supervisor = FeedSupervisor(
        url=cfg.ws_market_url,
        tokens=tokens,
        reconnect_delay=cfg.reconnect_delay_sec,
        connector=lambda url: open_websocket(
            url,
            open_timeout=cfg.ws_open_timeout_sec,
            max_size=cfg.ws_max_frame_bytes,
        ),
    )
    try:
        asyncio.run(supervisor.run())
    except KeyboardInterrupt:
        logger.info(
            "Stopped after %d connection(s), %d error(s)",
            supervisor.connect_count, supervisor.error_count,
        )


if __name__ == "__main__":
    main()
