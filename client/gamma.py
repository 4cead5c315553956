"""
Gamma API client for game discovery. Pure REST, no SDK dependency.

Turns a set of tag ids into time-windowed game events and the
(token_id, outcome) pairs the live feed subscribes to.
"""

from __future__ import annotations

import json
import logging
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from zoneinfo import ZoneInfo

import httpx

from book.models import Token

logger = logging.getLogger(__name__)

_TIMEOUT = 30.0
_MAX_TAG_WORKERS = 16


@dataclass(frozen=True)
class EventMarket:
    question: str
    token_ids: tuple[str, ...]
    outcomes: tuple[str, ...]


def now_and_window(hours: int) -> tuple[datetime, datetime, str]:
    """Current UTC time, the end of the look-ahead window, and now as a query string."""
    now = datetime.now(timezone.utc)
    return now, now + timedelta(hours=hours), now.strftime("%Y-%m-%dT%H:%M:%SZ")


def fetch_events_for_tag(
    client: httpx.Client,
    gamma_host: str,
    tag_id: str,
    end_date_min: str,
    limit: int = 50,
) -> list[dict]:
    """Open events for one tag ending after ``end_date_min``. Logs and returns [] on failure."""
    params = {
        "limit": limit,
        "end_date_min": end_date_min,
        "closed": "false",
        "tag_id": tag_id,
    }
    try:
        resp = client.get(f"{gamma_host}/events", params=params)
        resp.raise_for_status()
        events = resp.json()
    except httpx.HTTPError as e:
        logger.warning("Failed to fetch events for tag %s: %s", tag_id, e)
        return []
    except ValueError as e:
        logger.warning("Failed to parse events for tag %s: %s", tag_id, e)
        return []
    if not isinstance(events, list):
        logger.warning("Unexpected events payload for tag %s: %s", tag_id, type(events).__name__)
        return []
    return events


def fetch_all_tags(
    gamma_host: str,
    tag_ids: list[str],
    end_date_min: str,
    limit: int = 50,
    timeout: float = _TIMEOUT,
) -> list[dict]:
    """Fetch every tag concurrently. Results are flattened in tag order."""
    if not tag_ids:
        return []

    workers = min(len(tag_ids), _MAX_TAG_WORKERS)
    with httpx.Client(timeout=timeout) as client:
        with ThreadPoolExecutor(max_workers=workers) as executor:
            futures = [
                executor.submit(fetch_events_for_tag, client, gamma_host, tag_id, end_date_min, limit)
                for tag_id in tag_ids
            ]
            results = [future.result() for future in futures]
    return [event for events in results for event in events]


def dedupe_events(events: list[dict]) -> list[dict]:
    """Drop repeated events (same id under several tags). First occurrence wins."""
    seen: set[str] = set()
    unique = []
    for event in events:
        event_id = str(event.get("id", ""))
        if event_id in seen:
            continue
        seen.add(event_id)
        unique.append(event)
    return unique


def _parse_iso(value: object) -> datetime | None:
    if not isinstance(value, str) or not value:
        return None
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


def _has_tag(event: dict, tag_id: str) -> bool:
    tags = event.get("tags") or []
    return any(str(t.get("id")) == tag_id for t in tags if isinstance(t, dict))


def filter_game_events(
    events: list[dict],
    now: datetime,
    window_end: datetime,
    game_tag_id: str,
) -> list[dict]:
    """Game-tagged events whose endDate falls in (now, window_end]."""
    games = []
    for event in events:
        if not _has_tag(event, game_tag_id):
            continue
        end_date = _parse_iso(event.get("endDate"))
        if end_date is not None and now < end_date <= window_end:
            games.append(event)
    return games


def _json_list(raw: object) -> list[str]:
    # Gamma encodes these arrays as JSON strings, but lists show up too
    if isinstance(raw, str):
        try:
            raw = json.loads(raw)
        except json.JSONDecodeError:
            return []
    if not isinstance(raw, list):
        return []
    return [str(v) for v in raw]


def extract_markets(event: dict, market_type: str = "moneyline") -> list[EventMarket]:
    """Markets of ``market_type`` in an event, with their token ids and outcome names."""
    markets = event.get("markets")
    if not isinstance(markets, list):
        return []

    result = []
    for market in markets:
        if not isinstance(market, dict) or market.get("sportsMarketType") != market_type:
            continue
        question = market.get("question")
        if not isinstance(question, str):
            continue
        result.append(EventMarket(
            question=question,
            token_ids=tuple(_json_list(market.get("clobTokenIds"))),
            outcomes=tuple(_json_list(market.get("outcomes"))),
        ))
    return result


def tokens_for_markets(markets: list[EventMarket]) -> list[Token]:
    """Ordered (token id, outcome name) pairs. Unpaired trailing ids are dropped."""
    return [
        Token(id=token_id, display_name=outcome)
        for market in markets
        for token_id, outcome in zip(market.token_ids, market.outcomes)
    ]


def event_tags(event: dict) -> list[str]:
    """Event tags rendered as "id:label"."""
    tags = event.get("tags") or []
    return [
        f"{t['id']}:{t['label']}"
        for t in tags
        if isinstance(t, dict) and t.get("id") is not None and t.get("label") is not None
    ]


def format_end_date(value: str, tz_name: str = "Pacific/Honolulu") -> str:
    """Render an ISO end date in ``tz_name``, e.g. "March 05, 2026 07:30 PM HST"."""
    parsed = _parse_iso(value)
    if parsed is None:
        return value
    local = parsed.astimezone(ZoneInfo(tz_name))
    return local.strftime("%B %d, %Y %I:%M %p %Z")
