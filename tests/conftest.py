"""
Shared fixtures for the news service tests.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

import pytest

from database.engine import configure_database, create_all_tables, get_session_factory, reset_engine
from news_ingestion.collectors.base import BaseCollector
from news_ingestion.types import Article, FeedSource, RawFeedItem


BASE_TIME = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)


class StubCollector(BaseCollector):
    """Collector returning canned raw items, or raising a canned error."""

    def __init__(
        self,
        source: FeedSource,
        items: Optional[List[RawFeedItem]] = None,
        error: Optional[BaseException] = None,
    ) -> None:
        super().__init__(source)
        self._items = items or []
        self._error = error
        self.calls = 0

    async def fetch_items(self) -> List[RawFeedItem]:
        self.calls += 1
        if self._error is not None:
            raise self._error
        return list(self._items)


def make_raw_item(
    title: Optional[str] = "Story",
    link: Optional[str] = "https://news.test/story",
    published: Optional[datetime] = BASE_TIME,
    **extra: Any,
) -> Dict[str, Any]:
    item: Dict[str, Any] = {"title": title, "link": link}
    if published is not None:
        item["published"] = published.strftime("%a, %d %b %Y %H:%M:%S +0000")
    item.update(extra)
    return item


def make_article(
    title: str = "Story",
    source_url: str = "https://news.test/story",
    published_at: datetime = BASE_TIME,
    source_name: str = "Test Feed",
    **extra: Any,
) -> Article:
    return Article(
        title=title,
        source_url=source_url,
        source_name=source_name,
        published_at=published_at,
        **extra,
    )


def hours_ago(hours: float) -> datetime:
    return BASE_TIME - timedelta(hours=hours)


@pytest.fixture
def database_url(tmp_path) -> str:
    return f"sqlite:///{tmp_path / 'news.db'}"


@pytest.fixture
def session_factory(database_url):
    """Process-wide engine bound to a fresh file-backed SQLite database."""
    configure_database(database_url)
    create_all_tables()
    yield get_session_factory()
    reset_engine()
