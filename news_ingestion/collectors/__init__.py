"""
News Ingestion - Collectors Package.

One collector per configured feed source.
"""

from news_ingestion.collectors.base import BaseCollector
from news_ingestion.collectors.feed_client import (
    FeedClient,
    entry_to_raw_item,
    html_to_text,
    parse_feed_document,
)


__all__ = [
    "BaseCollector",
    "FeedClient",
    "entry_to_raw_item",
    "html_to_text",
    "parse_feed_document",
]
