"""Runtime configuration read from environment variables.

- STOCK_URL               : source page or API endpoint (default https://rpilocator.com/)
- SOURCE_MODE             : "html" (default) or "json"
- WATCHED_SKUS            : "*" (default) or comma-separated SKU prefixes, case-insensitive
- POLL_INTERVAL           : seconds between cycles (default 60)
- POLL_JITTER             : max random extra seconds per wait (default 5)
- RETENTION_HOURS         : how long sent alerts stay editable (default 24)
- SWEEP_INTERVAL          : seconds between expiry sweeps while waiting (default 60)
- FETCH_TIMEOUT           : seconds (default 15)
- FETCH_RETRIES           : retry attempts (default 2 additional tries)
- TELEGRAM_BOT_TOKEN, TELEGRAM_CHAT_ID (required), TELEGRAM_ADMIN_CHAT_ID (optional)
- USE_DIRECT_PRODUCT_LINK : "1" to link vendor product pages instead of the source page
- AVAILABLE_MIRROR_FILE   : optional path of a JSON mirror of in-stock listings
- LOG_LEVEL               : logging level (default INFO)
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from fetcher import DEFAULT_URL
from stock_checker import InterestFilter


def _number(env: Mapping[str, str], name: str, default: str, cast=float):
    raw = env.get(name, default)
    try:
        value = cast(raw)
    except ValueError:
        raise ValueError(f"{name} must be a number, got {raw!r}") from None
    if value < 0:
        raise ValueError(f"{name} must not be negative, got {raw!r}")
    return value


@dataclass(frozen=True)
class MonitorConfig:
    telegram_token: str
    chat_id: str
    admin_chat_id: Optional[str] = None
    stock_url: str = DEFAULT_URL
    source_mode: str = "html"
    watched_skus: str = "*"
    poll_interval: float = 60.0
    poll_jitter: float = 5.0
    retention: float = 24 * 60 * 60
    sweep_interval: float = 60.0
    fetch_timeout: float = 15.0
    fetch_retries: int = 2
    use_direct_link: bool = False
    mirror_file: Optional[Path] = None

    @property
    def interest(self) -> InterestFilter:
        return InterestFilter.from_string(self.watched_skus)

    @classmethod
    def from_env(cls, env: Mapping[str, str] | None = None) -> "MonitorConfig":
        env = os.environ if env is None else env
        token = env.get("TELEGRAM_BOT_TOKEN")
        chat_id = env.get("TELEGRAM_CHAT_ID")
        if not token:
            raise SystemExit("TELEGRAM_BOT_TOKEN not set")
        if not chat_id:
            raise SystemExit("TELEGRAM_CHAT_ID not set")
        mirror = env.get("AVAILABLE_MIRROR_FILE")
        return cls(
            telegram_token=token,
            chat_id=chat_id,
            admin_chat_id=env.get("TELEGRAM_ADMIN_CHAT_ID") or None,
            stock_url=env.get("STOCK_URL", DEFAULT_URL),
            source_mode=env.get("SOURCE_MODE", "html").lower(),
            watched_skus=env.get("WATCHED_SKUS", "*"),
            poll_interval=_number(env, "POLL_INTERVAL", "60"),
            poll_jitter=_number(env, "POLL_JITTER", "5"),
            retention=_number(env, "RETENTION_HOURS", "24") * 60 * 60,
            sweep_interval=max(1.0, _number(env, "SWEEP_INTERVAL", "60")),
            fetch_timeout=_number(env, "FETCH_TIMEOUT", "15"),
            fetch_retries=_number(env, "FETCH_RETRIES", "2", cast=int),
            use_direct_link=env.get("USE_DIRECT_PRODUCT_LINK") == "1",
            mirror_file=Path(mirror) if mirror else None,
        )


__all__ = ["MonitorConfig"]
