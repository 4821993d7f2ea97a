"""
Tests for the news HTTP API.

Tests cover:
- Latest-news listing (ordering, limit, sample-row exclusion)
- Single article lookup and 404
- On-demand refresh: success, skip and failure
- Sample-row cleanup and the health endpoint
"""

from unittest.mock import AsyncMock

import pytest
from fastapi.testclient import TestClient

from api.main import create_app
from conftest import StubCollector, hours_ago, make_article, make_raw_item
from core.config import Settings
from database.engine import reset_engine
from news_ingestion.aggregator import NewsAggregator
from news_ingestion.refresh_service import NewsRefreshService
from news_ingestion.types import AggregatorConfig, FeedSource, FetchError, StorageError
from news_ingestion.writer import NewsWriter


FEED = FeedSource("Live", "https://live.test/rss")


@pytest.fixture
def feed_items():
    return [
        make_raw_item(f"fresh {i}", f"https://live.test/{i}", hours_ago(i))
        for i in range(3)
    ]


@pytest.fixture
def app(database_url, feed_items):
    settings = Settings(database_url=database_url, scheduler_enabled=False)

    def factory(source):
        if not feed_items:
            return StubCollector(source, error=FetchError("down", source=source.name))
        return StubCollector(source, items=feed_items)

    aggregator = NewsAggregator(AggregatorConfig(sources=(FEED,)), collector_factory=factory)
    service = NewsRefreshService(aggregator, NewsWriter())
    yield create_app(settings, refresh_service=service)
    reset_engine()


@pytest.fixture
def client(app):
    with TestClient(app) as test_client:
        yield test_client


@pytest.fixture
def seeded(client):
    NewsWriter().write_sync([
        make_article(title="newest", source_url="https://news.test/1", published_at=hours_ago(0),
                     image_url="https://img.test/1.jpg"),
        make_article(title="sample", source_url="https://example.com/sample", published_at=hours_ago(1)),
        make_article(title="older", source_url="https://news.test/2", published_at=hours_ago(3)),
    ])
    return client


# =============================================================
# TEST: Listing
# =============================================================

class TestListNews:
    """GET /api/news"""

    def test_empty_store(self, client):
        response = client.get("/api/news")
        assert response.status_code == 200
        assert response.json() == []

    def test_newest_first_without_sample_rows(self, seeded):
        response = seeded.get("/api/news")

        assert response.status_code == 200
        body = response.json()
        assert [a["title"] for a in body] == ["newest", "older"]

    def test_camel_case_fields(self, seeded):
        article = seeded.get("/api/news").json()[0]

        assert article["imageUrl"] == "https://img.test/1.jpg"
        assert article["sourceUrl"] == "https://news.test/1"
        assert article["sourceName"] == "Test Feed"
        assert article["isActive"] is True
        assert "publishedAt" in article and "createdAt" in article

    def test_limit(self, seeded):
        body = seeded.get("/api/news", params={"limit": 1}).json()
        assert [a["title"] for a in body] == ["newest"]

    @pytest.mark.parametrize("limit", [0, 101, "abc"])
    def test_invalid_limit(self, client, limit):
        assert client.get("/api/news", params={"limit": limit}).status_code == 422


# =============================================================
# TEST: Single article
# =============================================================

class TestGetArticle:
    """GET /api/news/{id}"""

    def test_found(self, seeded):
        article_id = seeded.get("/api/news").json()[0]["id"]

        response = seeded.get(f"/api/news/{article_id}")

        assert response.status_code == 200
        assert response.json()["title"] == "newest"

    def test_not_found(self, client):
        response = client.get("/api/news/999999")
        assert response.status_code == 404
        assert response.json() == {"detail": "Article not found"}


# =============================================================
# TEST: Refresh
# =============================================================

class TestRefreshEndpoint:
    """POST /api/news/refresh"""

    def test_refresh_replaces_stored_articles(self, seeded):
        response = seeded.post("/api/news/refresh")

        assert response.status_code == 200
        assert response.json()["message"] == "News updated successfully"
        assert response.json()["count"] == 3
        titles = [a["title"] for a in seeded.get("/api/news").json()]
        assert titles == ["fresh 0", "fresh 1", "fresh 2"]

    def test_refresh_with_nothing_fetched_keeps_articles(self, seeded, feed_items):
        feed_items.clear()

        response = seeded.post("/api/news/refresh")

        assert response.status_code == 200
        assert response.json()["count"] == 0
        assert response.json()["status"] == "skipped"
        assert response.json()["failedSources"] == ["Live"]
        assert [a["title"] for a in seeded.get("/api/news").json()] == ["newest", "older"]

    def test_refresh_failure_returns_500(self, app, seeded):
        app.state.refresh_service._writer.write = AsyncMock(
            side_effect=StorageError("locked", source="news_articles")
        )

        response = seeded.post("/api/news/refresh")

        assert response.status_code == 500
        assert response.json() == {"detail": "Failed to update news database"}
        assert [a["title"] for a in seeded.get("/api/news").json()] == ["newest", "older"]


# =============================================================
# TEST: Admin and health
# =============================================================

class TestAdminAndHealth:
    """POST /api/news/clear-static and GET /health"""

    def test_clear_static(self, seeded):
        response = seeded.post("/api/news/clear-static")

        assert response.status_code == 200
        assert response.json()["deleted"] == 1
        assert seeded.post("/api/news/clear-static").json()["deleted"] == 0

    def test_health(self, seeded):
        seeded.post("/api/news/refresh")

        response = seeded.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "ok"
        assert body["database"] == "ok"
        assert body["articles"] == 3
        assert body["refresh"]["metrics"]["total_runs"] == 1


# =============================================================
# TEST: Configured limit cap
# =============================================================

class TestConfiguredLimit:
    """The listing limit is capped by NEWS_API_MAX_LIMIT."""

    @pytest.fixture
    def capped_client(self, database_url):
        settings = Settings(database_url=database_url, scheduler_enabled=False, api_max_limit=2)
        service = NewsRefreshService(
            NewsAggregator(AggregatorConfig(sources=(FEED,)),
                           collector_factory=lambda source: StubCollector(source, items=[])),
            NewsWriter(),
        )
        with TestClient(create_app(settings, refresh_service=service)) as test_client:
            NewsWriter().write_sync([
                make_article(title=f"story {i}", source_url=f"https://news.test/{i}",
                             published_at=hours_ago(i))
                for i in range(3)
            ])
            yield test_client
        reset_engine()

    def test_limit_above_cap_rejected(self, capped_client):
        response = capped_client.get("/api/news", params={"limit": 3})

        assert response.status_code == 422
        assert response.json() == {"detail": "limit must be at most 2"}

    def test_default_limit_follows_cap(self, capped_client):
        body = capped_client.get("/api/news").json()
        assert [a["title"] for a in body] == ["story 0", "story 1"]
