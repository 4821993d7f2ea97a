"""
News Ingestion - Feed Client.

============================================================
RESPONSIBILITY
============================================================
Fetches and parses one syndication feed (RSS / Atom).

- HTTP GET with a finite timeout (aiohttp)
- Parses the document with feedparser
- Maps each entry to a RawFeedItem with canonical keys
- Raises FetchError / ParseError scoped to the source

============================================================
RAW ITEM KEYS
============================================================
title, link, published, published_parsed,
content_encoded, content, description, content_snippet,
media_content, media_thumbnail, enclosure, image, itunes_image

============================================================
"""

import asyncio
import logging
import re
from typing import Any, Dict, List, Optional

import aiohttp
import feedparser
from bs4 import BeautifulSoup

from news_ingestion.collectors.base import BaseCollector
from news_ingestion.types import (
    FeedClientConfig,
    FeedSource,
    FetchError,
    ParseError,
    RawFeedItem,
)


_WHITESPACE = re.compile(r"\s+")
_CHUNK_SIZE = 64 * 1024

logger = logging.getLogger(__name__)


def html_to_text(raw_html: Optional[str]) -> Optional[str]:
    """Plain-text rendition of an HTML fragment, whitespace collapsed."""
    if not raw_html:
        return None
    text = BeautifulSoup(raw_html, "html.parser").get_text(" ")
    text = _WHITESPACE.sub(" ", text).strip()
    return text or None


def _first_content_value(entry: Dict[str, Any]) -> Optional[str]:
    content = entry.get("content")
    if isinstance(content, list) and content:
        value = content[0].get("value") if isinstance(content[0], dict) else None
        if value:
            return str(value)
    return None


def _first_enclosure(entry: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    enclosures = entry.get("enclosures") or [
        link for link in entry.get("links") or [] if link.get("rel") == "enclosure"
    ]
    for enclosure in enclosures:
        if not isinstance(enclosure, dict):
            continue
        url = enclosure.get("href") or enclosure.get("url")
        if url:
            return {"url": url, "type": enclosure.get("type") or ""}
    return None


def _split_image_fields(entry: Dict[str, Any]) -> Dict[str, Any]:
    # feedparser stores <itunes:image href> under "image" as {"href": ...};
    # a plain <image> element keeps "url" or is a bare string.
    image = entry.get("image")
    fields: Dict[str, Any] = {"image": None, "itunes_image": entry.get("itunes_image")}
    if isinstance(image, dict) and image.get("href") and not image.get("url"):
        fields["itunes_image"] = fields["itunes_image"] or {"href": image.get("href")}
    elif image:
        fields["image"] = image
    return fields


def entry_to_raw_item(entry: Dict[str, Any]) -> RawFeedItem:
    """Map a feedparser entry to a RawFeedItem."""
    content_encoded = _first_content_value(entry)
    description = entry.get("summary") or entry.get("description")

    raw: Dict[str, Any] = {
        "title": entry.get("title"),
        "link": entry.get("link"),
        "published": entry.get("published") or entry.get("updated"),
        "published_parsed": entry.get("published_parsed") or entry.get("updated_parsed"),
        "content_encoded": content_encoded,
        "content": None,
        "description": description,
        "content_snippet": html_to_text(content_encoded or description),
        "media_content": entry.get("media_content"),
        "media_thumbnail": entry.get("media_thumbnail"),
        "enclosure": _first_enclosure(entry),
    }
    raw.update(_split_image_fields(entry))
    return raw


def parse_feed_document(document: bytes, source_name: str) -> List[RawFeedItem]:
    """
    Parse a feed document into raw items.

    Raises:
        ParseError: When the document is not a usable feed
    """
    parsed = feedparser.parse(document)
    entries = parsed.get("entries") or []

    if not entries:
        if parsed.get("bozo"):
            raise ParseError(
                message=f"Malformed feed document: {parsed.get('bozo_exception')}",
                source=source_name,
                recoverable=False,
            )
        if not parsed.get("version"):
            raise ParseError(
                message="Document is not a recognised feed format",
                source=source_name,
                recoverable=False,
            )
    elif parsed.get("bozo"):
        logger.warning(
            f"Malformed feed from {source_name} still yielded {len(entries)} entries: "
            f"{parsed.get('bozo_exception')}"
        )

    return [entry_to_raw_item(entry) for entry in entries]


class FeedClient(BaseCollector):
    """
    Collector for one RSS / Atom feed.

    ============================================================
    WIRING
    ============================================================
    Source: any RSS 2.0 / Atom / media RSS / iTunes feed
    Transport: aiohttp with ClientTimeout(total=timeout_seconds)
    Parser: feedparser

    ============================================================
    """

    def __init__(
        self,
        source: FeedSource,
        config: Optional[FeedClientConfig] = None,
        session: Optional[aiohttp.ClientSession] = None,
    ) -> None:
        """
        Initialize the feed client.

        Args:
            source: Feed source to collect from
            config: Client configuration (timeout, user agent)
            session: Shared aiohttp session; a private one is opened per fetch otherwise
        """
        super().__init__(source)
        self._config = config or FeedClientConfig()
        self._session = session

    # =========================================================
    # FETCH - External HTTP Call
    # =========================================================

    async def fetch_document(self) -> bytes:
        """
        Download the feed document.

        Raises:
            FetchError: On network errors, non-200 status, timeout or oversize body
        """
        timeout = aiohttp.ClientTimeout(total=self._config.timeout_seconds)
        headers = {"User-Agent": self._config.user_agent}

        try:
            if self._session is not None:
                return await self._get(self._session, timeout, headers)
            async with aiohttp.ClientSession(timeout=timeout) as session:
                return await self._get(session, timeout, headers)

        except asyncio.TimeoutError:
            raise FetchError(
                message=f"Request timeout after {self._config.timeout_seconds}s",
                source=self.source_name,
                recoverable=True,
            )
        except aiohttp.ClientError as e:
            raise FetchError(
                message=f"Network error: {type(e).__name__}: {e}",
                source=self.source_name,
                recoverable=True,
            )

    async def _get(
        self,
        session: aiohttp.ClientSession,
        timeout: aiohttp.ClientTimeout,
        headers: Dict[str, str],
    ) -> bytes:
        async with session.get(self._source.url, timeout=timeout, headers=headers) as response:
            if response.status != 200:
                raise FetchError(
                    message=f"HTTP {response.status}",
                    source=self.source_name,
                    recoverable=response.status >= 500,
                    details={"status_code": response.status},
                )

            max_bytes = self._config.max_document_bytes
            if response.content_length is not None and response.content_length > max_bytes:
                raise self._too_large(response.content_length)

            body = bytearray()
            async for chunk in response.content.iter_chunked(_CHUNK_SIZE):
                body.extend(chunk)
                if len(body) > max_bytes:
                    raise self._too_large(len(body))
            return bytes(body)

    def _too_large(self, size: int) -> FetchError:
        return FetchError(
            message=f"Feed document too large ({size} bytes, limit {self._config.max_document_bytes})",
            source=self.source_name,
            recoverable=False,
            details={"size_bytes": size},
        )

    # =========================================================
    # PARSE - Feed document to raw items
    # =========================================================

    async def fetch_items(self) -> List[RawFeedItem]:
        document = await self.fetch_document()
        # feedparser is synchronous and CPU bound
        items = await asyncio.to_thread(parse_feed_document, document, self.source_name)
        self._logger.debug(f"Fetched {len(items)} items from {self.source_name}")
        return items
