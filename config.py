"""
Configuration loaded from environment variables and .env. Fail-fast on invalid values.
"""

from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic_settings import BaseSettings
from pydantic import Field, field_validator


class Config(BaseSettings):
    model_config = {"env_file": ".env", "env_file_encoding": "utf-8", "frozen": True, "extra": "ignore"}

    # API endpoints
    ws_market_url: str = "wss://ws-subscriptions-clob.polymarket.com/ws/market"
    gamma_host: str = "https://gamma-api.polymarket.com"
    clob_host: str = "https://clob.polymarket.com"

    # Feed connection. The reconnect delay is constant: no backoff, no cap.
    reconnect_delay_sec: float = Field(default=5.0, gt=0)
    ws_open_timeout_sec: float = Field(default=10.0, gt=0)
    ws_max_frame_bytes: int = Field(default=4 * 1024 * 1024, ge=64 * 1024)

    # Discovery. TAG_IDS is a JSON list in the environment, e.g. ["745","100350"]
    tag_ids: list[str] = Field(default_factory=list)
    # Gamma tag marking an event as a live game
    game_tag_id: str = "100639"
    sports_market_type: str = "moneyline"
    hours_window: int = Field(default=24, ge=1)
    events_per_tag: int = Field(default=50, ge=1, le=500)
    request_timeout_sec: float = Field(default=30.0, gt=0)
    book_fetch_workers: int = Field(default=8, ge=1, le=32)

    # Output
    display_timezone: str = "Pacific/Honolulu"
    log_level: str = "INFO"

    @field_validator("display_timezone")
    @classmethod
    def known_timezone(cls, v: str) -> str:
        """Reject names the tz database doesn't know, before discovery needs them."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"unknown timezone {v!r}") from e
        return v


def load_config() -> Config:
    """Load and validate config from environment. Raises ValidationError on bad values."""
    return Config()
