"""
Core Module - Configuration.

============================================================
RESPONSIBILITY
============================================================
Loads service settings from the environment (and a local .env).

- Feed sources and aggregation caps
- Fetch timeout and refresh schedule
- Database URL and API surface settings
- Logging level and format

============================================================
USAGE
============================================================
settings = load_settings()
aggregator = NewsAggregator(settings.aggregator_config(), ...)

============================================================
"""

import json
import os
from dataclasses import dataclass
from typing import Mapping, Optional, Tuple

from dotenv import load_dotenv

from core.exceptions import InvalidConfigError
from news_ingestion.types import (
    DEFAULT_FEED_SOURCES,
    DEFAULT_FETCH_TIMEOUT_SECONDS,
    DEFAULT_MAX_ARTICLES,
    DEFAULT_PER_SOURCE_LIMIT,
    DEFAULT_REFRESH_INTERVAL_SECONDS,
    SOURCE_NAME_MAX_LENGTH,
    URL_MAX_LENGTH,
    AggregatorConfig,
    FeedClientConfig,
    FeedSource,
    RefreshServiceConfig,
)


DEFAULT_DATABASE_URL = "sqlite:///data/news.db"
DEFAULT_SAMPLE_URL_PREFIX = "https://example.com"
DEFAULT_API_MAX_LIMIT = 100

_ON_VALUES = {"1", "true", "yes", "y", "on"}
_OFF_VALUES = {"0", "false", "no", "n", "off", ""}


@dataclass(frozen=True)
class ApiConfig:
    """HTTP surface settings."""
    host: str = "0.0.0.0"
    port: int = 5000
    sample_url_prefix: str = DEFAULT_SAMPLE_URL_PREFIX
    default_limit: int = DEFAULT_MAX_ARTICLES
    max_limit: int = DEFAULT_API_MAX_LIMIT


@dataclass(frozen=True)
class Settings:
    """Resolved service settings."""

    database_url: str = DEFAULT_DATABASE_URL
    feed_sources: Tuple[FeedSource, ...] = DEFAULT_FEED_SOURCES
    fetch_timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS
    per_source_limit: int = DEFAULT_PER_SOURCE_LIMIT
    max_articles: int = DEFAULT_MAX_ARTICLES
    refresh_interval_seconds: float = DEFAULT_REFRESH_INTERVAL_SECONDS
    refresh_on_startup: bool = False
    sample_url_prefix: str = DEFAULT_SAMPLE_URL_PREFIX
    scheduler_enabled: bool = True
    api_max_limit: int = DEFAULT_API_MAX_LIMIT
    log_level: str = "INFO"
    log_format: str = "text"
    host: str = "0.0.0.0"
    port: int = 5000

    def feed_client_config(self) -> FeedClientConfig:
        return FeedClientConfig(timeout_seconds=self.fetch_timeout_seconds)

    def aggregator_config(self) -> AggregatorConfig:
        return AggregatorConfig(
            sources=self.feed_sources,
            per_source_limit=self.per_source_limit,
            max_articles=self.max_articles,
        )

    def refresh_config(self) -> RefreshServiceConfig:
        return RefreshServiceConfig(
            refresh_interval_seconds=self.refresh_interval_seconds,
            refresh_on_startup=self.refresh_on_startup,
        )

    def api_config(self) -> ApiConfig:
        return ApiConfig(
            host=self.host,
            port=self.port,
            sample_url_prefix=self.sample_url_prefix,
            default_limit=min(self.max_articles, self.api_max_limit),
            max_limit=self.api_max_limit,
        )


# =============================================================
# PARSERS
# =============================================================

def _get_positive_int(env: Mapping[str, str], key: str, default: int) -> int:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = int(raw)
    except ValueError:
        raise InvalidConfigError(key, raw, "expected an integer")
    if value <= 0:
        raise InvalidConfigError(key, raw, "must be greater than zero")
    return value


def _get_positive_float(env: Mapping[str, str], key: str, default: float) -> float:
    raw = env.get(key)
    if raw is None or raw.strip() == "":
        return default
    try:
        value = float(raw)
    except ValueError:
        raise InvalidConfigError(key, raw, "expected a number")
    if value <= 0:
        raise InvalidConfigError(key, raw, "must be greater than zero")
    return value


def _get_bool(env: Mapping[str, str], key: str, default: bool) -> bool:
    raw = env.get(key)
    if raw is None:
        return default
    value = raw.strip().lower()
    if value in _ON_VALUES:
        return True
    if value in _OFF_VALUES:
        return False
    raise InvalidConfigError(key, raw, "expected a boolean")


def parse_feed_sources(raw: Optional[str]) -> Tuple[FeedSource, ...]:
    """
    Parse the NEWS_FEEDS value.

    Expected: a JSON list of objects with "name" and "url".
    An unset or blank value yields the default sources.
    """
    if raw is None or raw.strip() == "":
        return DEFAULT_FEED_SOURCES

    try:
        data = json.loads(raw)
    except json.JSONDecodeError as e:
        raise InvalidConfigError("NEWS_FEEDS", raw, f"not valid JSON ({e.msg})")

    if not isinstance(data, list) or not data:
        raise InvalidConfigError("NEWS_FEEDS", raw, "expected a non-empty JSON list")

    sources = []
    for entry in data:
        if not isinstance(entry, dict):
            raise InvalidConfigError("NEWS_FEEDS", entry, "each feed must be an object")
        name = str(entry.get("name") or "").strip()
        url = str(entry.get("url") or "").strip()
        if not name or not url:
            raise InvalidConfigError("NEWS_FEEDS", entry, "each feed needs a name and a url")
        if not url.startswith(("http://", "https://")):
            raise InvalidConfigError("NEWS_FEEDS", url, "feed url must be http(s)")
        if len(name) > SOURCE_NAME_MAX_LENGTH:
            raise InvalidConfigError(
                "NEWS_FEEDS", name, f"feed name longer than {SOURCE_NAME_MAX_LENGTH} characters"
            )
        if len(url) > URL_MAX_LENGTH:
            raise InvalidConfigError(
                "NEWS_FEEDS", url, f"feed url longer than {URL_MAX_LENGTH} characters"
            )
        sources.append(FeedSource(name=name, url=url))
    return tuple(sources)


def load_settings(env: Optional[Mapping[str, str]] = None) -> Settings:
    """
    Build Settings from an environment mapping.

    Args:
        env: Mapping to read from; defaults to os.environ after loading .env

    Raises:
        InvalidConfigError: If a value is present but unusable
    """
    if env is None:
        load_dotenv()
        env = os.environ

    log_format = (env.get("LOG_FORMAT") or "text").strip().lower()
    if log_format not in ("text", "json"):
        raise InvalidConfigError("LOG_FORMAT", log_format, "expected 'text' or 'json'")

    return Settings(
        database_url=env.get("DATABASE_URL") or DEFAULT_DATABASE_URL,
        feed_sources=parse_feed_sources(env.get("NEWS_FEEDS")),
        fetch_timeout_seconds=_get_positive_float(
            env, "NEWS_FETCH_TIMEOUT_SECONDS", DEFAULT_FETCH_TIMEOUT_SECONDS
        ),
        per_source_limit=_get_positive_int(env, "NEWS_PER_SOURCE_LIMIT", DEFAULT_PER_SOURCE_LIMIT),
        max_articles=_get_positive_int(env, "NEWS_MAX_ARTICLES", DEFAULT_MAX_ARTICLES),
        refresh_interval_seconds=_get_positive_float(
            env, "NEWS_REFRESH_INTERVAL_SECONDS", DEFAULT_REFRESH_INTERVAL_SECONDS
        ),
        refresh_on_startup=_get_bool(env, "NEWS_REFRESH_ON_STARTUP", False),
        sample_url_prefix=env.get("NEWS_SAMPLE_URL_PREFIX") or DEFAULT_SAMPLE_URL_PREFIX,
        scheduler_enabled=_get_bool(env, "NEWS_SCHEDULER_ENABLED", True),
        api_max_limit=_get_positive_int(env, "NEWS_API_MAX_LIMIT", DEFAULT_API_MAX_LIMIT),
        log_level=(env.get("LOG_LEVEL") or "INFO").upper(),
        log_format=log_format,
        host=env.get("HOST") or "0.0.0.0",
        port=_get_positive_int(env, "PORT", 5000),
    )
