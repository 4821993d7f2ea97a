"""
News Ingestion Package.

============================================================
PURPOSE
============================================================
Fetches health news from syndication feeds, normalizes the
items into Articles and produces one bounded, ordered batch
per run.

- collectors: feed fetching and parsing
- normalizers: raw item to Article mapping
- aggregator: per-source caps, ordering, overall cap
- writer: replace-all persistence of a batch
- refresh_service: serialized, scheduled and on-demand runs

============================================================
"""

from news_ingestion.types import (
    AggregationResult,
    Article,
    FeedSource,
    IngestionError,
    IngestionStatus,
    RefreshResult,
    RefreshTrigger,
    SourceResult,
)


__all__ = [
    "AggregationResult",
    "Article",
    "FeedSource",
    "IngestionError",
    "IngestionStatus",
    "RefreshResult",
    "RefreshTrigger",
    "SourceResult",
]
