"""
News Ingestion - Refresh Service.

============================================================
RESPONSIBILITY
============================================================
Runs aggregate -> write, on a schedule and on demand.

- Runs are serialized by an asyncio.Lock
- An empty batch skips the write (previous batch stays)
- A write failure is reported as a FAILED RefreshResult
- The periodic loop never dies on a failed run

============================================================
SCHEDULE
============================================================
Every refresh_interval_seconds (default 6 hours), plus an
optional run at startup.

============================================================
"""

import asyncio
import logging
from typing import TYPE_CHECKING, Any, Dict, Optional

from core.clock import ClockProtocol, SystemClock
from news_ingestion.aggregator import NewsAggregator
from news_ingestion.types import (
    IngestionStatus,
    RefreshMetrics,
    RefreshResult,
    RefreshServiceConfig,
    RefreshTrigger,
    StorageError,
)
from news_ingestion.writer import NewsWriter

if TYPE_CHECKING:
    from core.config import Settings


class NewsRefreshService:
    """
    Orchestrates refresh runs.

    ============================================================
    USAGE
    ============================================================
    ```python
    service = NewsRefreshService(aggregator, writer, settings.refresh_config())

    # On demand
    result = await service.refresh(RefreshTrigger.MANUAL)

    # Periodic, in the background
    service.start_background()
    ...
    await service.stop()
    ```

    ============================================================
    """

    def __init__(
        self,
        aggregator: NewsAggregator,
        writer: NewsWriter,
        config: Optional[RefreshServiceConfig] = None,
        clock: Optional[ClockProtocol] = None,
    ) -> None:
        self._aggregator = aggregator
        self._writer = writer
        self._config = config or RefreshServiceConfig()
        self._clock = clock or SystemClock()
        self._logger = logging.getLogger("news_refresh")

        self._lock = asyncio.Lock()
        self._running = False
        self._task: Optional[asyncio.Task] = None
        self._metrics = RefreshMetrics()
        self._last_result: Optional[RefreshResult] = None

    @property
    def metrics(self) -> RefreshMetrics:
        return self._metrics

    @property
    def last_result(self) -> Optional[RefreshResult]:
        return self._last_result

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def is_refreshing(self) -> bool:
        return self._lock.locked()

    # =========================================================
    # SINGLE RUN
    # =========================================================

    async def refresh(self, trigger: RefreshTrigger = RefreshTrigger.MANUAL) -> RefreshResult:
        """
        Run one aggregate -> write cycle.

        Concurrent callers wait for the run in progress to finish.

        Returns:
            RefreshResult; FAILED results carry the error message
        """
        if self._lock.locked():
            self._logger.info(f"Refresh ({trigger.value}) waiting for the run in progress")

        async with self._lock:
            result = RefreshResult(trigger=trigger, started_at=self._clock.now())
            self._logger.info(f"Starting {trigger.value} refresh")

            try:
                aggregation = await self._aggregator.aggregate()
                result.aggregation = aggregation

                if aggregation.is_empty:
                    result.status = IngestionStatus.SKIPPED
                    self._logger.warning(
                        "No articles collected; keeping the stored articles unchanged"
                    )
                else:
                    result.count = await self._writer.write(aggregation.articles)
                    result.status = (
                        IngestionStatus.PARTIAL
                        if aggregation.failed_sources
                        else IngestionStatus.SUCCESS
                    )

            except StorageError as e:
                result.status = IngestionStatus.FAILED
                result.error = str(e)

            except Exception as e:
                result.status = IngestionStatus.FAILED
                result.error = f"{type(e).__name__}: {e}"
                self._logger.exception(f"Unexpected error during {trigger.value} refresh")

            result.completed_at = self._clock.now()
            self._metrics.record_result(result)
            self._last_result = result
            self._log_result(result)
            return result

    def _log_result(self, result: RefreshResult) -> None:
        log_data = result.to_dict()
        if result.status == IngestionStatus.FAILED:
            self._logger.error(f"Refresh failed: {log_data}")
        elif result.status == IngestionStatus.SKIPPED:
            self._logger.warning(f"Refresh skipped: {log_data}")
        else:
            self._logger.info(f"Refresh complete: {log_data}")

    # =========================================================
    # CONTINUOUS OPERATION
    # =========================================================

    async def start(self) -> None:
        """
        Run the periodic refresh loop until stopped or cancelled.
        """
        self._running = True
        interval = self._config.refresh_interval_seconds
        self._logger.info(f"Refresh service started (interval {interval}s)")

        try:
            if self._config.refresh_on_startup:
                await self.refresh(RefreshTrigger.STARTUP)

            while self._running:
                await asyncio.sleep(interval)
                if not self._running:
                    break
                await self.refresh(RefreshTrigger.SCHEDULED)

        except asyncio.CancelledError:
            self._logger.info("Refresh service cancelled")
        finally:
            self._running = False

    def start_background(self) -> asyncio.Task:
        """Schedule start() on the running loop and return its task."""
        if self._task is None or self._task.done():
            self._task = asyncio.create_task(self.start(), name="news-refresh-loop")
        return self._task

    async def stop(self) -> None:
        """Stop the periodic loop, cancelling a pending sleep or run."""
        self._running = False

        if self._task is not None and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None

        self._logger.info("Refresh service stopped")

    # =========================================================
    # HEALTH
    # =========================================================

    def get_health_status(self) -> Dict[str, Any]:
        return {
            "running": self._running,
            "refreshing": self.is_refreshing,
            "refresh_interval_seconds": self._config.refresh_interval_seconds,
            "sources": [source.name for source in self._aggregator.config.sources],
            "metrics": self._metrics.to_dict(),
            "last_result": self._last_result.to_dict() if self._last_result else None,
        }


def create_refresh_service(settings: "Settings") -> NewsRefreshService:
    """Wire aggregator, writer and service from resolved settings."""
    aggregator = NewsAggregator(
        config=settings.aggregator_config(),
        client_config=settings.feed_client_config(),
    )
    return NewsRefreshService(
        aggregator=aggregator,
        writer=NewsWriter(),
        config=settings.refresh_config(),
    )
