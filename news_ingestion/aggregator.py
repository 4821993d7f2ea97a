"""
News Ingestion - Aggregator.

============================================================
RESPONSIBILITY
============================================================
Builds one bounded, ordered batch of Articles per run.

- Runs one collector per configured source, concurrently
- Caps items taken from each source (per_source_limit)
- Merges in configured source order
- Sorts newest first (stable) and caps the batch (max_articles)

============================================================
FAILURE SEMANTICS
============================================================
A failing source contributes zero articles and never blocks
the others. When every source fails the batch is empty; that
is a value, not an error.

============================================================
"""

import asyncio
import logging
from typing import Callable, List, Optional, Sequence

import aiohttp

from core.clock import ClockProtocol, SystemClock
from news_ingestion.collectors import BaseCollector, FeedClient
from news_ingestion.types import (
    AggregationResult,
    AggregatorConfig,
    Article,
    FeedClientConfig,
    FeedSource,
    FetchError,
    SourceResult,
)


CollectorFactory = Callable[[FeedSource], BaseCollector]


def order_and_cap(articles: Sequence[Article], max_articles: int) -> List[Article]:
    """
    Sort newest first and keep the first ``max_articles``.

    Python's sort is stable, so articles with equal timestamps keep
    their merge order (source order, then feed order).
    """
    ordered = sorted(articles, key=lambda article: article.published_at, reverse=True)
    return ordered[:max_articles]


class NewsAggregator:
    """
    Aggregates articles from all configured feed sources.

    ============================================================
    USAGE
    ============================================================
    ```python
    aggregator = NewsAggregator(settings.aggregator_config())
    result = await aggregator.aggregate()
    batch = result.articles
    ```

    ============================================================
    """

    def __init__(
        self,
        config: Optional[AggregatorConfig] = None,
        client_config: Optional[FeedClientConfig] = None,
        collector_factory: Optional[CollectorFactory] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        """
        Initialize the aggregator.

        Args:
            config: Sources and caps
            client_config: Feed client settings used by the default collectors
            collector_factory: Builds a collector per source; FeedClient otherwise
            clock: Time source for fallback publication times
        """
        self._config = config or AggregatorConfig()
        self._client_config = client_config or FeedClientConfig()
        self._collector_factory = collector_factory
        self._clock = clock or SystemClock()
        self._logger = logging.getLogger("news_aggregator")

    @property
    def config(self) -> AggregatorConfig:
        return self._config

    async def aggregate(self) -> AggregationResult:
        """
        Run one aggregation over every configured source.

        Returns:
            AggregationResult with the ordered, capped batch
        """
        result = AggregationResult(started_at=self._clock.now())
        sources = list(self._config.sources)

        self._logger.info(f"Starting aggregation {result.batch_id} over {len(sources)} sources")

        if self._collector_factory is not None:
            collectors = [self._collector_factory(source) for source in sources]
            result.source_results = await self._collect_all(collectors)
        else:
            async with aiohttp.ClientSession() as session:
                collectors = [
                    FeedClient(source, self._client_config, session=session)
                    for source in sources
                ]
                result.source_results = await self._collect_all(collectors)

        merged: List[Article] = []
        for source_result in result.source_results:
            merged.extend(source_result.articles)

        result.articles = order_and_cap(merged, self._config.max_articles)
        result.completed_at = self._clock.now()

        if result.failed_sources:
            self._logger.warning(
                f"Aggregation {result.batch_id} had failed sources: {result.failed_sources}"
            )
        self._logger.info(f"Aggregation complete: {result.to_dict()}")
        return result

    async def _collect_all(self, collectors: List[BaseCollector]) -> List[SourceResult]:
        now = self._clock.now()
        outcomes = await asyncio.gather(
            *(collector.collect(self._config.per_source_limit, now) for collector in collectors),
            return_exceptions=True,
        )

        # Keep configured source order regardless of completion order.
        results: List[SourceResult] = []
        for collector, outcome in zip(collectors, outcomes):
            if isinstance(outcome, SourceResult):
                results.append(outcome)
            elif isinstance(outcome, asyncio.CancelledError):
                raise outcome
            else:
                results.append(self._error_to_result(collector.source, outcome))
        return results

    def _error_to_result(self, source: FeedSource, error: BaseException) -> SourceResult:
        self._logger.error(f"Collector {source.name} raised: {error}")
        result = SourceResult(source=source)
        result.mark_failed(
            FetchError(
                message=f"Collector error: {type(error).__name__}: {error}",
                source=source.name,
                recoverable=False,
            )
        )
        return result
