"""
News Ingestion - Type Definitions.

============================================================
PURPOSE
============================================================
Shared types for the news aggregation pipeline.

- Feed source and configuration dataclasses
- Canonical Article value
- Per-item and per-source result types
- Run result and metrics types
- Error types

============================================================
DESIGN PRINCIPLES
============================================================
- Immutable data structures where possible
- Skips and failures are values, not swallowed exceptions
- No I/O in this module
- Serializable for logging

============================================================
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple
from uuid import UUID, uuid4


# Raw items are plain mappings keyed by the canonical names the feed
# client produces (title, link, published, media_content, ...).
RawFeedItem = Mapping[str, Any]


# =============================================================
# LIMITS
# =============================================================

TITLE_MAX_LENGTH = 500
DESCRIPTION_MAX_LENGTH = 1000
URL_MAX_LENGTH = 2048
SOURCE_NAME_MAX_LENGTH = 100

DEFAULT_PER_SOURCE_LIMIT = 5
DEFAULT_MAX_ARTICLES = 20
DEFAULT_FETCH_TIMEOUT_SECONDS = 30.0
DEFAULT_REFRESH_INTERVAL_SECONDS = 6 * 60 * 60


# =============================================================
# ENUMS
# =============================================================

class SkipReason(str, Enum):
    """Why a raw item produced no article."""
    MISSING_TITLE = "missing_title"
    MISSING_LINK = "missing_link"
    LINK_TOO_LONG = "link_too_long"


class IngestionStatus(str, Enum):
    """Status of a source fetch or a refresh run."""
    SUCCESS = "success"
    PARTIAL = "partial"
    FAILED = "failed"
    SKIPPED = "skipped"


class RefreshTrigger(str, Enum):
    """What started a refresh run."""
    SCHEDULED = "scheduled"
    MANUAL = "manual"
    STARTUP = "startup"


# =============================================================
# CONFIGURATION TYPES
# =============================================================

@dataclass(frozen=True)
class FeedSource:
    """One configured syndication endpoint."""
    name: str
    url: str


DEFAULT_FEED_SOURCES: Tuple[FeedSource, ...] = (
    FeedSource(name="BBC Health", url="https://feeds.bbci.co.uk/news/health/rss.xml"),
    FeedSource(name="Science Daily Health", url="https://www.sciencedaily.com/rss/health_medicine.xml"),
    FeedSource(name="Cleveland Clinic", url="https://health.clevelandclinic.org/feed"),
    FeedSource(name="Mayo Clinic", url="https://www.mayoclinic.org/rss/all-podcasts"),
)


@dataclass(frozen=True)
class FeedClientConfig:
    """Configuration for the feed HTTP client."""
    timeout_seconds: float = DEFAULT_FETCH_TIMEOUT_SECONDS
    user_agent: str = "storefront-news/1.0 (RSS reader)"
    max_document_bytes: int = 5 * 1024 * 1024


@dataclass(frozen=True)
class AggregatorConfig:
    """Configuration for one aggregation run."""
    sources: Tuple[FeedSource, ...] = DEFAULT_FEED_SOURCES
    per_source_limit: int = DEFAULT_PER_SOURCE_LIMIT
    max_articles: int = DEFAULT_MAX_ARTICLES


@dataclass(frozen=True)
class RefreshServiceConfig:
    """Configuration for the periodic refresh loop."""
    refresh_interval_seconds: float = DEFAULT_REFRESH_INTERVAL_SECONDS
    refresh_on_startup: bool = False


# =============================================================
# CANONICAL ARTICLE
# =============================================================

@dataclass(frozen=True)
class Article:
    """Normalized, storage-ready news article."""
    title: str
    source_url: str
    source_name: str
    published_at: datetime
    description: Optional[str] = None
    content: Optional[str] = None
    image_url: Optional[str] = None
    is_active: bool = True

    def to_row(self) -> Dict[str, Any]:
        """Column mapping for the news_articles table."""
        return {
            "title": self.title,
            "description": self.description,
            "content": self.content,
            "image_url": self.image_url,
            "source_url": self.source_url,
            "source_name": self.source_name,
            "published_at": self.published_at,
            "is_active": self.is_active,
        }


# =============================================================
# RESULT TYPES
# =============================================================

@dataclass(frozen=True)
class ItemResult:
    """Outcome of normalizing one raw item: an article or a skip reason."""
    article: Optional[Article] = None
    skip_reason: Optional[SkipReason] = None

    @property
    def ok(self) -> bool:
        return self.article is not None

    @classmethod
    def success(cls, article: Article) -> "ItemResult":
        return cls(article=article)

    @classmethod
    def skipped(cls, reason: SkipReason) -> "ItemResult":
        return cls(skip_reason=reason)


@dataclass
class SourceResult:
    """Outcome of fetching and normalizing one feed source."""
    source: FeedSource
    status: IngestionStatus = IngestionStatus.SUCCESS
    items_fetched: int = 0
    articles: List[Article] = field(default_factory=list)
    skipped: List[SkipReason] = field(default_factory=list)
    error: Optional["IngestionError"] = None
    duration_seconds: float = 0.0

    @property
    def ok(self) -> bool:
        return self.error is None

    def mark_failed(self, error: "IngestionError") -> None:
        """Record a source-level failure; the source contributes nothing."""
        self.status = IngestionStatus.FAILED
        self.error = error
        self.articles = []

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/monitoring."""
        return {
            "source": self.source.name,
            "status": self.status.value,
            "items_fetched": self.items_fetched,
            "articles": len(self.articles),
            "skipped": [reason.value for reason in self.skipped],
            "error": str(self.error) if self.error else None,
            "duration_seconds": round(self.duration_seconds, 3),
        }


@dataclass
class AggregationResult:
    """Bounded, ordered batch plus the per-source outcomes that built it."""
    batch_id: UUID = field(default_factory=uuid4)
    articles: List[Article] = field(default_factory=list)
    source_results: List[SourceResult] = field(default_factory=list)
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def errors(self) -> List["IngestionError"]:
        return [r.error for r in self.source_results if r.error is not None]

    @property
    def failed_sources(self) -> List[str]:
        return [r.source.name for r in self.source_results if not r.ok]

    @property
    def is_empty(self) -> bool:
        return not self.articles

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/monitoring."""
        return {
            "batch_id": str(self.batch_id),
            "articles": len(self.articles),
            "sources": [r.to_dict() for r in self.source_results],
            "failed_sources": self.failed_sources,
        }


@dataclass
class RefreshResult:
    """Outcome of one refresh run (aggregate + write)."""
    trigger: RefreshTrigger
    status: IngestionStatus = IngestionStatus.SUCCESS
    count: int = 0
    aggregation: Optional[AggregationResult] = None
    error: Optional[str] = None
    started_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None

    @property
    def ok(self) -> bool:
        return self.status != IngestionStatus.FAILED

    @property
    def duration_seconds(self) -> float:
        if self.started_at and self.completed_at:
            return (self.completed_at - self.started_at).total_seconds()
        return 0.0

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary for logging/monitoring."""
        return {
            "trigger": self.trigger.value,
            "status": self.status.value,
            "count": self.count,
            "error": self.error,
            "duration_seconds": round(self.duration_seconds, 3),
            "failed_sources": self.aggregation.failed_sources if self.aggregation else [],
        }


@dataclass
class RefreshMetrics:
    """Aggregated metrics for the refresh service."""
    total_runs: int = 0
    successful_runs: int = 0
    skipped_runs: int = 0
    failed_runs: int = 0

    last_run_at: Optional[datetime] = None
    last_success_at: Optional[datetime] = None
    last_failure_at: Optional[datetime] = None
    last_count: int = 0
    last_error: Optional[str] = None

    def record_result(self, result: RefreshResult) -> None:
        """Record a refresh result."""
        self.total_runs += 1
        self.last_run_at = result.completed_at

        if result.status == IngestionStatus.FAILED:
            self.failed_runs += 1
            self.last_failure_at = result.completed_at
            self.last_error = result.error
        elif result.status == IngestionStatus.SKIPPED:
            self.skipped_runs += 1
        else:
            self.successful_runs += 1
            self.last_success_at = result.completed_at
            self.last_count = result.count

    def to_dict(self) -> Dict[str, Any]:
        def _iso(value: Optional[datetime]) -> Optional[str]:
            return value.isoformat() if value else None

        return {
            "total_runs": self.total_runs,
            "successful_runs": self.successful_runs,
            "skipped_runs": self.skipped_runs,
            "failed_runs": self.failed_runs,
            "last_run_at": _iso(self.last_run_at),
            "last_success_at": _iso(self.last_success_at),
            "last_failure_at": _iso(self.last_failure_at),
            "last_count": self.last_count,
            "last_error": self.last_error,
        }


# =============================================================
# ERROR TYPES
# =============================================================

class IngestionError(Exception):
    """Base exception for ingestion errors."""

    def __init__(
        self,
        message: str,
        source: str,
        recoverable: bool = True,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.source = source
        self.recoverable = recoverable
        self.details = details or {}


class FetchError(IngestionError):
    """Error fetching a feed document (network, status, timeout)."""
    pass


class ParseError(IngestionError):
    """Error parsing a feed document."""
    pass


class StorageError(IngestionError):
    """Error replacing the stored article set."""
    pass
