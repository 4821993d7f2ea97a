"""
News Ingestion - Article Normalizer.

============================================================
RESPONSIBILITY
============================================================
Maps one raw feed item into zero or one canonical Article.

- Drops items without a title or a link (with a SkipReason)
- Resolves the image URL through a fixed precedence
- Resolves content and description through fallbacks
- Truncates title and description to column limits
- Defaults the publication time to "now"

============================================================
IMAGE PRECEDENCE
============================================================
1. media:content url
2. media:thumbnail url
3. enclosure url (only when its type starts with "image/")
4. image (string, or object with "url")
5. itunes:image (string, or object with "href")
6. first <img src="..."> in content:encoded / content / description

A candidate that is present but carries no usable URL is treated
as absent and the next one is tried.

============================================================
FAILURE SEMANTICS
============================================================
Never raises for malformed optional fields. Only a missing title,
a missing link or a link longer than the URL column produces a
skip. An over-long image URL counts as unusable.

============================================================
"""

import re
import time
from datetime import datetime, timezone
from email.utils import parsedate_to_datetime
from typing import Any, List, Optional, Sequence

from core.clock import ensure_utc
from news_ingestion.types import (
    DESCRIPTION_MAX_LENGTH,
    TITLE_MAX_LENGTH,
    URL_MAX_LENGTH,
    Article,
    ItemResult,
    RawFeedItem,
    SkipReason,
)


IMG_SRC_PATTERN = re.compile(r"""<img[^>]+src=["']([^"']+)["'][^>]*>""", re.IGNORECASE)


# =============================================================
# FIELD HELPERS
# =============================================================

def _text(value: Any) -> Optional[str]:
    """Return a non-blank string or None."""
    if value is None:
        return None
    if not isinstance(value, str):
        return None
    return value if value.strip() else None


def _first(value: Any) -> Any:
    """Unwrap single-element lists (feedparser yields lists for media fields)."""
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _url_attr(value: Any, *keys: str) -> Optional[str]:
    """Read a URL from a string, or from the first present key of a mapping."""
    value = _first(value)
    if isinstance(value, str):
        return _text(value)
    if isinstance(value, dict):
        for key in keys:
            url = _text(value.get(key))
            if url:
                return url
    return None


def _enclosure_image_url(value: Any) -> Optional[str]:
    enclosure = _first(value)
    if not isinstance(enclosure, dict):
        return None
    mime_type = enclosure.get("type")
    if not isinstance(mime_type, str) or not mime_type.lower().startswith("image/"):
        return None
    return _url_attr(enclosure, "url", "href")


def _fits_url_column(url: Optional[str]) -> bool:
    return bool(url) and len(url) <= URL_MAX_LENGTH


def extract_embedded_image(html: Optional[str]) -> Optional[str]:
    """Return the src of the first <img> tag in an HTML fragment."""
    if not html:
        return None
    match = IMG_SRC_PATTERN.search(html)
    return match.group(1) if match else None


def resolve_image_url(raw: RawFeedItem) -> Optional[str]:
    """Apply the image precedence to a raw item."""
    candidates = (
        _url_attr(raw.get("media_content"), "url"),
        _url_attr(raw.get("media_thumbnail"), "url"),
        _enclosure_image_url(raw.get("enclosure")),
        _url_attr(raw.get("image"), "url"),
        _url_attr(raw.get("itunes_image"), "href"),
    )
    for url in candidates:
        if _fits_url_column(url):
            return url

    body = (
        _text(raw.get("content_encoded"))
        or _text(raw.get("content"))
        or _text(raw.get("description"))
    )
    embedded = extract_embedded_image(body)
    return embedded if _fits_url_column(embedded) else None


def resolve_content(raw: RawFeedItem) -> Optional[str]:
    return (
        _text(raw.get("content_encoded"))
        or _text(raw.get("content"))
        or _text(raw.get("description"))
        or _text(raw.get("content_snippet"))
    )


def resolve_description(raw: RawFeedItem) -> Optional[str]:
    description = _text(raw.get("content_snippet")) or _text(raw.get("description"))
    if description is None:
        return None
    return description[:DESCRIPTION_MAX_LENGTH]


def parse_published(raw: RawFeedItem) -> Optional[datetime]:
    """
    Parse the item's publication time.

    Tries feedparser's struct_time first, then the raw string as
    RFC 822 and ISO 8601. Returns an aware UTC datetime or None.
    """
    parsed = raw.get("published_parsed")
    if isinstance(parsed, time.struct_time) or (
        isinstance(parsed, tuple) and len(parsed) >= 6
    ):
        try:
            return datetime(*parsed[:6], tzinfo=timezone.utc)
        except (TypeError, ValueError):
            pass

    published = raw.get("published")
    if isinstance(published, datetime):
        return ensure_utc(published)

    published = _text(published)
    if published is None:
        return None

    try:
        return ensure_utc(parsedate_to_datetime(published))
    except (TypeError, ValueError, IndexError):
        pass

    try:
        return ensure_utc(datetime.fromisoformat(published.strip().replace("Z", "+00:00")))
    except ValueError:
        return None


# =============================================================
# NORMALIZATION
# =============================================================

def normalize_item(raw: RawFeedItem, source_name: str, now: datetime) -> ItemResult:
    """
    Normalize one raw item.

    Args:
        raw: Raw feed item mapping
        source_name: Label of the feed that produced the item
        now: Fallback publication time

    Returns:
        ItemResult holding the Article or the SkipReason
    """
    title = _text(raw.get("title"))
    if title is None:
        return ItemResult.skipped(SkipReason.MISSING_TITLE)

    link = _text(raw.get("link"))
    if link is None:
        return ItemResult.skipped(SkipReason.MISSING_LINK)

    link = link.strip()
    if len(link) > URL_MAX_LENGTH:
        return ItemResult.skipped(SkipReason.LINK_TOO_LONG)

    article = Article(
        title=title.strip()[:TITLE_MAX_LENGTH],
        description=resolve_description(raw),
        content=resolve_content(raw),
        image_url=resolve_image_url(raw),
        source_url=link,
        source_name=source_name,
        published_at=parse_published(raw) or ensure_utc(now),
        is_active=True,
    )
    return ItemResult.success(article)


def normalize_items(
    items: Sequence[RawFeedItem],
    source_name: str,
    now: datetime,
) -> List[ItemResult]:
    """Normalize a sequence of raw items, preserving order."""
    return [normalize_item(item, source_name, now) for item in items]
