"""
Logging for the monitor.

Console lines are tagged with the emitting component ([WS], [FEED], [PX]...).
Paired price lines are the monitor's output rather than diagnostics: they go
to the ``monitor.prices`` logger and reach the console whatever LOG_LEVEL
says, with arbitrage lines highlighted. Everything also lands in a verbose
file log under logs/, and optionally in an ndjson file.
"""

from __future__ import annotations

import json
import logging
import os
import sys
import time
from datetime import datetime, timezone

PRICE_LOGGER = "monitor.prices"

# ANSI color codes
_RESET = "\033[0m"
_DIM = "\033[2m"
_RED = "\033[31m"
_ARB = "\033[1;32m"
_YELLOW = "\033[33m"
_CYAN = "\033[36m"

# levelno -> (color, short name)
_LEVELS = {
    logging.DEBUG: (_DIM, "DBG"),
    logging.INFO: (_CYAN, "INF"),
    logging.WARNING: (_YELLOW, "WRN"),
    logging.ERROR: (_RED, "ERR"),
    logging.CRITICAL: (_RED, "CRT"),
}

# Logger name -> short console tag
_COMPONENT_TAGS = {
    "client.ws": "WS",
    "client.gamma": "GAMMA",
    "client.clob": "CLOB",
    "book.classifier": "FEED",
    "book.seeder": "FEED",
    PRICE_LOGGER: "PX",
    "run": "MAIN",
    "__main__": "MAIN",
}

_NOISY_LOGGERS = ("websockets", "httpx", "httpcore", "py_clob_client")


def component_tag(logger_name: str) -> str:
    """Console tag for a logger name; empty for event summaries and unknown loggers."""
    return _COMPONENT_TAGS.get(logger_name, "")


class ConsoleFilter(logging.Filter):
    """Lets through records at or above ``level``, plus every price line."""

    def __init__(self, level: int):
        super().__init__()
        self.level = level

    def filter(self, record: logging.LogRecord) -> bool:
        return record.levelno >= self.level or record.name == PRICE_LOGGER


class ConsoleFormatter(logging.Formatter):
    """``HH:MM:SS LVL [TAG] message``. Price lines flagged ``arb`` are highlighted."""

    def __init__(self, use_color: bool = True):
        super().__init__()
        self._use_color = use_color and _supports_color()

    def format(self, record: logging.LogRecord) -> str:
        ts = time.strftime("%H:%M:%S", time.localtime(record.created))
        color, short = _LEVELS.get(record.levelno, ("", record.levelname[:3]))
        tag = component_tag(record.name)
        msg = f"[{tag}] {record.getMessage()}" if tag else record.getMessage()
        if record.exc_info and record.exc_info[1]:
            msg += f"\n     {record.exc_info[1]}"

        if not self._use_color:
            return f"{ts} {short} {msg}"
        if getattr(record, "arb", False):
            msg = f"{_ARB}{msg}{_RESET}"
        return f"{_DIM}{ts}{_RESET} {color}{short}{_RESET} {msg}"


class JSONFormatter(logging.Formatter):
    """Single-line JSON for machine consumption. Price lines carry an ``arb`` flag."""

    def format(self, record: logging.LogRecord) -> str:
        entry = {
            "ts": time.strftime("%Y-%m-%dT%H:%M:%S", time.gmtime(record.created)),
            "level": record.levelname,
            "logger": record.name,
            "msg": record.getMessage(),
        }
        if hasattr(record, "arb"):
            entry["arb"] = bool(record.arb)
        if record.exc_info and record.exc_info[1]:
            entry["exception"] = str(record.exc_info[1])
        return json.dumps(entry, separators=(",", ":"), ensure_ascii=False)


def _verbose_log_path(log_dir: str | None) -> str:
    if log_dir is None:
        log_dir = os.path.join(os.path.dirname(os.path.dirname(os.path.abspath(__file__))), "logs")
    os.makedirs(log_dir, exist_ok=True)
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    return os.path.join(log_dir, f"monitor_{timestamp}.log")


def setup_logging(
    level: str = "INFO",
    json_log_file: str | None = None,
    log_dir: str | None = None,
) -> str:
    """
    Configure the root logger and return the verbose log file path.

    ``level`` gates diagnostics on the console only. The file log always gets
    DEBUG, and price lines always reach the console.
    """
    root = logging.getLogger()
    root.setLevel(logging.DEBUG)
    for handler in root.handlers[:]:
        root.removeHandler(handler)

    console = logging.StreamHandler(sys.stderr)
    console.addFilter(ConsoleFilter(getattr(logging, level.upper(), logging.INFO)))
    console.setFormatter(ConsoleFormatter())
    root.addHandler(console)

    log_path = _verbose_log_path(log_dir)
    verbose_handler = logging.FileHandler(log_path, mode="a", encoding="utf-8")
    verbose_handler.setFormatter(logging.Formatter(
        fmt="%(asctime)s.%(msecs)03d %(levelname)-8s %(name)s:%(lineno)d - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    ))
    root.addHandler(verbose_handler)

    if json_log_file:
        fh = logging.FileHandler(json_log_file, mode="a", encoding="utf-8")
        fh.setFormatter(JSONFormatter())
        root.addHandler(fh)

    logging.getLogger(PRICE_LOGGER).setLevel(logging.INFO)
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    return log_path


def _supports_color() -> bool:
    if os.environ.get("NO_COLOR"):
        return False
    if os.environ.get("FORCE_COLOR"):
        return True
    return hasattr(sys.stderr, "isatty") and sys.stderr.isatty()
