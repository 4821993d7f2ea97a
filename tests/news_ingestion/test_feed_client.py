"""
Tests for the feed client.

Tests cover:
- Feed document parsing into raw items
- Parse errors for non-feed documents
- HTTP fetch against a local aiohttp server
- Timeout, status and network failures as failed SourceResults
"""

import asyncio
import logging
from datetime import datetime, timezone

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from news_ingestion.collectors import FeedClient, html_to_text, parse_feed_document
from news_ingestion.normalizers import normalize_item
from news_ingestion.types import (
    FeedClientConfig,
    FeedSource,
    FetchError,
    IngestionStatus,
    ParseError,
)


NOW = datetime(2024, 5, 10, 8, 30, tzinfo=timezone.utc)

RSS_DOCUMENT = b"""<?xml version="1.0" encoding="UTF-8"?>
<rss version="2.0"
     xmlns:media="http://search.yahoo.com/mrss/"
     xmlns:content="http://purl.org/rss/1.0/modules/content/">
  <channel>
    <title>Health</title>
    <link>https://news.test/</link>
    <description>Health news</description>
    <item>
      <title>Sleep and the heart</title>
      <link>https://news.test/sleep</link>
      <description>&lt;p&gt;New &lt;b&gt;study&lt;/b&gt; on sleep.&lt;/p&gt;</description>
      <pubDate>Tue, 02 Jan 2024 10:00:00 GMT</pubDate>
      <media:thumbnail url="https://img.test/sleep-thumb.jpg" width="240" height="135"/>
    </item>
    <item>
      <title>Vitamin D</title>
      <link>https://news.test/vitamin-d</link>
      <description>Short summary</description>
      <content:encoded><![CDATA[<p>Long body</p><img src="https://img.test/inline.jpg">]]></content:encoded>
      <pubDate>Mon, 01 Jan 2024 09:00:00 GMT</pubDate>
    </item>
    <item>
      <title>Podcast episode</title>
      <link>https://news.test/podcast</link>
      <enclosure url="https://cdn.test/episode.mp3" type="audio/mpeg" length="1000"/>
    </item>
  </channel>
</rss>
"""

UNESCAPED_AMPERSAND = b"""<?xml version="1.0"?>
<rss version="2.0"><channel><title>Kitchen</title><link>https://k.test/</link>
<description>food</description>
<item><title>Fish & chips</title><link>https://k.test/fish</link></item>
</channel></rss>
"""

EMPTY_CHANNEL = b"""<?xml version="1.0"?>
<rss version="2.0"><channel><title>Quiet</title><link>https://q.test/</link>
<description>none</description></channel></rss>
"""


def _many_items(count: int) -> bytes:
    items = "".join(
        f"<item><title>Item {i}</title><link>https://news.test/{i}</link></item>"
        for i in range(count)
    )
    return (
        '<?xml version="1.0"?><rss version="2.0"><channel><title>Many</title>'
        f"<link>https://news.test/</link><description>d</description>{items}</channel></rss>"
    ).encode()


# =============================================================
# TEST: Parsing
# =============================================================

class TestParseFeedDocument:
    """Feed documents become raw items with canonical keys."""

    def test_items_in_document_order(self):
        items = parse_feed_document(RSS_DOCUMENT, "Health")
        assert [item["title"] for item in items] == [
            "Sleep and the heart",
            "Vitamin D",
            "Podcast episode",
        ]
        assert items[0]["link"] == "https://news.test/sleep"

    def test_media_thumbnail_becomes_image(self):
        raw = parse_feed_document(RSS_DOCUMENT, "Health")[0]
        article = normalize_item(raw, "Health", NOW).article
        assert article.image_url == "https://img.test/sleep-thumb.jpg"
        assert article.published_at == datetime(2024, 1, 2, 10, 0, tzinfo=timezone.utc)

    def test_content_encoded_and_snippet(self):
        raw = parse_feed_document(RSS_DOCUMENT, "Health")[1]
        assert "Long body" in raw["content_encoded"]
        assert raw["content_snippet"] == "Long body"

        article = normalize_item(raw, "Health", NOW).article
        assert article.image_url == "https://img.test/inline.jpg"
        assert article.description == "Long body"

    def test_audio_enclosure_gives_no_image(self):
        raw = parse_feed_document(RSS_DOCUMENT, "Health")[2]
        assert raw["enclosure"]["type"] == "audio/mpeg"
        article = normalize_item(raw, "Health", NOW).article
        assert article.image_url is None
        assert article.published_at == NOW

    def test_empty_channel_gives_no_items(self):
        assert parse_feed_document(EMPTY_CHANNEL, "Quiet") == []

    def test_non_feed_document_raises(self):
        with pytest.raises(ParseError) as exc_info:
            parse_feed_document(b"this is not a feed at all", "Broken")
        assert exc_info.value.source == "Broken"

    def test_malformed_feed_with_entries_is_kept_and_logged(self, caplog):
        with caplog.at_level(logging.WARNING, logger="news_ingestion.collectors.feed_client"):
            items = parse_feed_document(UNESCAPED_AMPERSAND, "Kitchen")

        assert [item["link"] for item in items] == ["https://k.test/fish"]
        warnings = [r for r in caplog.records if r.levelno == logging.WARNING]
        assert len(warnings) == 1
        assert "Kitchen" in warnings[0].getMessage()

    def test_well_formed_feed_logs_no_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="news_ingestion.collectors.feed_client"):
            parse_feed_document(RSS_DOCUMENT, "Health")

        assert not [r for r in caplog.records if r.levelno == logging.WARNING]

    def test_html_to_text(self):
        assert html_to_text("<p>Hello <b>there</b></p>\n<p>again</p>") == "Hello there again"
        assert html_to_text("") is None
        assert html_to_text(None) is None


# =============================================================
# TEST: HTTP fetch
# =============================================================

def _feed_app(body: bytes = RSS_DOCUMENT, status: int = 200, delay: float = 0.0) -> web.Application:
    async def handler(request: web.Request) -> web.Response:
        if delay:
            await asyncio.sleep(delay)
        return web.Response(body=body, status=status, content_type="application/rss+xml")

    app = web.Application()
    app.router.add_get("/feed", handler)
    return app


class TestFeedClientFetch:
    """FeedClient against a local HTTP server."""

    @pytest.mark.asyncio
    async def test_collect_success(self):
        async with TestServer(_feed_app()) as server:
            client = FeedClient(FeedSource("Local", str(server.make_url("/feed"))))
            result = await client.collect(limit=5, now=NOW)

        assert result.status == IngestionStatus.SUCCESS
        assert result.items_fetched == 3
        assert len(result.articles) == 3
        assert all(a.source_name == "Local" for a in result.articles)

    @pytest.mark.asyncio
    async def test_collect_takes_first_items_only(self):
        async with TestServer(_feed_app(body=_many_items(12))) as server:
            client = FeedClient(FeedSource("Many", str(server.make_url("/feed"))))
            result = await client.collect(limit=5, now=NOW)

        assert result.items_fetched == 12
        assert [a.title for a in result.articles] == [f"Item {i}" for i in range(5)]

    @pytest.mark.asyncio
    async def test_http_error_status(self):
        async with TestServer(_feed_app(status=500)) as server:
            client = FeedClient(FeedSource("Down", str(server.make_url("/feed"))))
            with pytest.raises(FetchError) as exc_info:
                await client.fetch_document()
            result = await client.collect(limit=5, now=NOW)

        assert exc_info.value.details["status_code"] == 500
        assert result.status == IngestionStatus.FAILED
        assert result.articles == []
        assert isinstance(result.error, FetchError)

    @pytest.mark.asyncio
    async def test_timeout_is_a_fetch_error(self):
        async with TestServer(_feed_app(delay=1.0)) as server:
            client = FeedClient(
                FeedSource("Slow", str(server.make_url("/feed"))),
                FeedClientConfig(timeout_seconds=0.1),
            )
            result = await client.collect(limit=5, now=NOW)

        assert result.status == IngestionStatus.FAILED
        assert isinstance(result.error, FetchError)
        assert "timeout" in str(result.error).lower()

    @pytest.mark.asyncio
    async def test_unreachable_host(self):
        client = FeedClient(
            FeedSource("Nowhere", "http://127.0.0.1:1/feed"),
            FeedClientConfig(timeout_seconds=2.0),
        )
        result = await client.collect(limit=5, now=NOW)

        assert result.status == IngestionStatus.FAILED
        assert result.error.source == "Nowhere"

    @pytest.mark.asyncio
    async def test_malformed_document_fails_source(self):
        async with TestServer(_feed_app(body=b"<<<not xml")) as server:
            client = FeedClient(FeedSource("Garbage", str(server.make_url("/feed"))))
            result = await client.collect(limit=5, now=NOW)

        assert result.status == IngestionStatus.FAILED
        assert isinstance(result.error, ParseError)


# =============================================================
# TEST: Document size cap
# =============================================================

def _streaming_app(body: bytes, chunk_size: int = 256) -> web.Application:
    async def handler(request: web.Request) -> web.StreamResponse:
        response = web.StreamResponse(headers={"Content-Type": "application/rss+xml"})
        response.enable_chunked_encoding()
        await response.prepare(request)
        for start in range(0, len(body), chunk_size):
            await response.write(body[start:start + chunk_size])
        await response.write_eof()
        return response

    app = web.Application()
    app.router.add_get("/feed", handler)
    return app


class TestDocumentSizeCap:
    """Oversize documents are rejected without buffering them whole."""

    @pytest.mark.asyncio
    async def test_declared_length_over_cap(self):
        async with TestServer(_feed_app(body=_many_items(50))) as server:
            client = FeedClient(
                FeedSource("Big", str(server.make_url("/feed"))),
                FeedClientConfig(max_document_bytes=1024),
            )
            with pytest.raises(FetchError) as exc_info:
                await client.fetch_document()

        assert "too large" in str(exc_info.value)
        assert exc_info.value.details["size_bytes"] > 1024

    @pytest.mark.asyncio
    async def test_chunked_body_over_cap(self):
        async with TestServer(_streaming_app(_many_items(50))) as server:
            client = FeedClient(
                FeedSource("Stream", str(server.make_url("/feed"))),
                FeedClientConfig(max_document_bytes=1024),
            )
            result = await client.collect(limit=5, now=NOW)

        assert result.status == IngestionStatus.FAILED
        assert "too large" in str(result.error)

    @pytest.mark.asyncio
    async def test_chunked_body_under_cap(self):
        async with TestServer(_streaming_app(RSS_DOCUMENT)) as server:
            client = FeedClient(FeedSource("Stream", str(server.make_url("/feed"))))
            result = await client.collect(limit=5, now=NOW)

        assert result.status == IngestionStatus.SUCCESS
        assert len(result.articles) == 3
