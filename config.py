"""
config.py — Runtime settings
=============================
Process settings come from the environment; the feed list and poll period
come from a JSON file read once at startup:

    {"feeds": ["https://example.com/rss.xml", ...], "period": 5}

Optional keys: "fetch_timeout" (seconds) and "max_workers".
"""

import json
import os
from dataclasses import dataclass
from typing import Optional, Tuple


class ConfigError(Exception):
    """Configuration file is missing, unreadable or invalid."""


@dataclass(frozen=True)
class FeedConfig:
    feeds: Tuple[str, ...]
    period: int
    fetch_timeout: Optional[float] = None
    max_workers: Optional[int] = None


@dataclass(frozen=True)
class Settings:
    config_path: str = "config.json"
    db_path: str = "./rss.db"
    static_dir: str = "./static"
    host: str = "0.0.0.0"
    port: int = 8080
    log_level: str = "INFO"

    @classmethod
    def from_env(cls) -> "Settings":
        return cls(
            config_path=os.getenv("RSS_CONFIG", "config.json"),
            db_path=os.getenv("RSS_DB_PATH", "./rss.db"),
            static_dir=os.getenv("RSS_STATIC_DIR", "./static"),
            host=os.getenv("HOST", "0.0.0.0"),
            port=int(os.getenv("PORT", "8080")),
            log_level=os.getenv("LOG_LEVEL", "INFO").upper(),
        )


def _is_int(value) -> bool:
    return isinstance(value, int) and not isinstance(value, bool)


def parse_config(data) -> FeedConfig:
    if not isinstance(data, dict):
        raise ConfigError("config must be a JSON object")

    feeds = data.get("feeds")
    if not isinstance(feeds, list) or not all(isinstance(f, str) for f in feeds):
        raise ConfigError("'feeds' must be a list of URL strings")

    period = data.get("period")
    if not _is_int(period):
        raise ConfigError("'period' must be an integer number of minutes")
    if period <= 0:
        raise ConfigError(f"'period' must be positive, got {period}")

    fetch_timeout = data.get("fetch_timeout")
    if fetch_timeout is not None:
        if isinstance(fetch_timeout, bool) or not isinstance(fetch_timeout, (int, float)) or fetch_timeout <= 0:
            raise ConfigError("'fetch_timeout' must be a positive number of seconds")
        fetch_timeout = float(fetch_timeout)

    max_workers = data.get("max_workers")
    if max_workers is not None and (not _is_int(max_workers) or max_workers <= 0):
        raise ConfigError("'max_workers' must be a positive integer")

    return FeedConfig(
        feeds=tuple(feeds),
        period=period,
        fetch_timeout=fetch_timeout,
        max_workers=max_workers,
    )


def load_config(path: str) -> FeedConfig:
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except OSError as e:
        raise ConfigError(f"Cannot read config file {path}: {e}") from e
    except json.JSONDecodeError as e:
        raise ConfigError(f"Invalid JSON in {path}: {e}") from e
    return parse_config(data)
