"""
News Ingestion - Base Collector.

============================================================
PURPOSE
============================================================
Abstract base class for all news collectors.

============================================================
DESIGN PRINCIPLES
============================================================
- Collection and normalization only, no persistence
- One collector per configured source
- Source-level failures become a failed SourceResult
- Full observability

============================================================
"""

import logging
import time
from abc import ABC, abstractmethod
from datetime import datetime
from typing import List

from news_ingestion.normalizers import normalize_items
from news_ingestion.types import (
    FeedSource,
    FetchError,
    IngestionError,
    IngestionStatus,
    RawFeedItem,
    SourceResult,
)


class BaseCollector(ABC):
    """
    Abstract base class for news collectors.

    ============================================================
    RESPONSIBILITIES
    ============================================================
    - Fetch raw items from one external source
    - Bound the number of items taken from the source
    - Normalize items into Articles
    - Report per-item skips and source errors as values

    ============================================================
    LIFECYCLE
    ============================================================
    1. Initialize with the source it collects from
    2. Call collect() once per aggregation run
    3. Read the returned SourceResult

    ============================================================
    """

    def __init__(self, source: FeedSource) -> None:
        """
        Initialize the collector.

        Args:
            source: Configured feed source
        """
        self._source = source
        self._logger = logging.getLogger(f"collector.{source.name}")

    @property
    def source(self) -> FeedSource:
        return self._source

    @property
    def source_name(self) -> str:
        return self._source.name

    # =========================================================
    # ABSTRACT METHODS - Must be implemented by subclasses
    # =========================================================

    @abstractmethod
    async def fetch_items(self) -> List[RawFeedItem]:
        """
        Fetch raw items from the external source.

        Returns:
            Raw items in the source's natural order

        Raises:
            FetchError: On network, status or timeout errors
            ParseError: When the document cannot be parsed
        """
        pass

    # =========================================================
    # COLLECTION WORKFLOW
    # =========================================================

    async def collect(self, limit: int, now: datetime) -> SourceResult:
        """
        Run one collection for this source.

        This method:
        1. Fetches raw items
        2. Keeps the first ``limit`` items
        3. Normalizes each kept item
        4. Returns a SourceResult

        Never raises for source-level failures.
        """
        result = SourceResult(source=self._source)
        started = time.monotonic()

        try:
            raw_items = await self.fetch_items()
            result.items_fetched = len(raw_items)

            for item_result in normalize_items(raw_items[:limit], self.source_name, now):
                if item_result.article is not None:
                    result.articles.append(item_result.article)
                else:
                    result.skipped.append(item_result.skip_reason)
                    self._logger.debug(
                        f"Skipped item from {self.source_name}: {item_result.skip_reason.value}"
                    )

            if result.skipped:
                result.status = IngestionStatus.PARTIAL

        except IngestionError as e:
            result.mark_failed(e)
            self._logger.error(f"Fetch failed for {self.source_name}: {e}")

        except Exception as e:
            result.mark_failed(
                FetchError(
                    message=f"Unexpected error: {type(e).__name__}: {e}",
                    source=self.source_name,
                    recoverable=False,
                )
            )
            self._logger.exception(f"Unexpected error in {self.source_name}")

        result.duration_seconds = time.monotonic() - started
        self._log_result(result)
        return result

    def _log_result(self, result: SourceResult) -> None:
        """Log the collection result."""
        log_data = result.to_dict()

        if result.status == IngestionStatus.SUCCESS:
            self._logger.info(f"Collection complete: {log_data}")
        elif result.status == IngestionStatus.PARTIAL:
            self._logger.warning(f"Collection partial: {log_data}")
        else:
            self._logger.error(f"Collection failed: {log_data}")
