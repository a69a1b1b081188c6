"""Collection orchestration: immediate per-query collection and a query queue
that triggers batched background collection once it fills up.
"""

import asyncio
import logging
import threading
import time
from collections import Counter, deque
from collections.abc import Coroutine, Iterable, Mapping
from typing import Any

from signal_scout.collectors.base import BaseCollector
from signal_scout.config import Settings, settings
from signal_scout.errors import InvalidQueryError
from signal_scout.models import CollectionRequest, Platform, Signal
from signal_scout.search.index import IndexGateway

from .enrichment import EnrichmentPipeline
from .normalizer import normalize_query

logger = logging.getLogger(__name__)
background_logger = logging.getLogger("signal_scout.background")


def _platform_quotas(raw: Mapping[str, int]) -> dict[Platform, int]:
    return {Platform(name): limit for name, limit in raw.items()}


class CollectionState:
    """Queue, processed-query set and enabled platforms behind one lock.

    The lock is never held across an await.
    """

    def __init__(self, platforms: Iterable[Platform], threshold: int = 10):
        self._lock = threading.Lock()
        self._queue: deque[str] = deque()
        self._processed: set[str] = set()
        self._platforms: list[Platform] = list(platforms)
        self.threshold = threshold

    def enqueue(self, query: str) -> list[str] | None:
        """Queue a normalized query. Returns the drained batch once the threshold is hit."""
        with self._lock:
            if query in self._processed or query in self._queue:
                return None
            self._queue.append(query)
            if len(self._queue) < self.threshold:
                return None
            batch = list(self._queue)
            self._queue.clear()
            return batch

    def is_processed(self, query: str) -> bool:
        with self._lock:
            return query in self._processed

    def mark_processed(self, queries: Iterable[str]) -> None:
        with self._lock:
            self._processed.update(queries)

    def clear_processed(self) -> int:
        with self._lock:
            cleared = len(self._processed)
            self._processed.clear()
            return cleared

    @property
    def platforms(self) -> list[Platform]:
        with self._lock:
            return list(self._platforms)

    def set_platforms(self, platforms: Iterable[Platform]) -> None:
        with self._lock:
            self._platforms = list(dict.fromkeys(platforms))

    def snapshot(self) -> dict[str, Any]:
        with self._lock:
            return {
                "queue_length": len(self._queue),
                "queued_queries": list(self._queue),
                "threshold": self.threshold,
                "processed_count": len(self._processed),
                "enabled_platforms": [p.value for p in self._platforms],
            }


class BackgroundTasks:
    """Keeps references to fire-and-forget tasks and logs their failures."""

    def __init__(self):
        self._tasks: set[asyncio.Task] = set()

    def spawn(self, coro: Coroutine, name: str | None = None) -> asyncio.Task:
        task = asyncio.get_running_loop().create_task(coro, name=name)
        self._tasks.add(task)
        task.add_done_callback(self._on_done)
        return task

    def _on_done(self, task: asyncio.Task) -> None:
        self._tasks.discard(task)
        if task.cancelled():
            background_logger.warning("Background task %s cancelled", task.get_name())
            return
        exc = task.exception()
        if exc is not None:
            background_logger.error(
                "Background task %s failed: %s", task.get_name(), exc, exc_info=exc
            )

    async def wait(self) -> None:
        """Wait for every in-flight task (used at shutdown)."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    def __len__(self) -> int:
        return len(self._tasks)


class CollectionOrchestrator:
    def __init__(
        self,
        collectors: Mapping[Platform, BaseCollector],
        enrichment: EnrichmentPipeline,
        gateway: IndexGateway,
        state: CollectionState | None = None,
        config: Settings = settings,
    ):
        self.collectors = dict(collectors)
        self.enrichment = enrichment
        self.gateway = gateway
        self.state = state or CollectionState(
            (Platform(p) for p in config.enabled_platforms),
            threshold=config.queue_threshold,
        )
        self.background = BackgroundTasks()
        self._config = config
        self._immediate_quotas = _platform_quotas(config.immediate_quotas)
        self._batch_quotas = _platform_quotas(config.batch_quotas)

    # -- queue --------------------------------------------------------------

    def queue(self, query: str) -> None:
        """Record a search query; a full queue starts a background batch.

        Must be called from inside the running event loop.
        """
        normalized = normalize_query(query or "")
        if not normalized:
            return
        batch = self.state.enqueue(normalized)
        if batch is None:
            background_logger.debug("Queued '%s'", normalized)
            return
        background_logger.info("Queue threshold reached, collecting %d queries", len(batch))
        self.background.spawn(self._collect_batch(batch), name="batch-collection")

    # -- collection ---------------------------------------------------------

    async def collect_for_query(self, query: str, force: bool = False) -> list[Signal]:
        """Collect, enrich and index signals for one query right away.

        Returns the persisted signals. A query that was already processed is
        skipped (returns []) unless ``force`` is set.
        """
        normalized = normalize_query(query or "")
        if not normalized:
            raise InvalidQueryError("Query is required and must be a non-empty string")
        if not force and self.state.is_processed(normalized):
            logger.info("'%s' already collected, skipping", normalized)
            return []

        start = time.monotonic()
        request = CollectionRequest(
            query=query.strip(),
            platforms=self.state.platforms,
            quotas=self._immediate_quotas,
        )
        signals = await self._fan_out(request)
        if not signals:
            logger.warning("No signals collected from any platform for '%s'", normalized)
            return []

        enriched = await self.enrichment.run(signals, query=request.query)
        if not enriched:
            logger.warning("No signals passed quality filters for '%s'", normalized)
            return []

        await self.gateway.upsert(enriched)
        self.state.mark_processed([normalized])

        breakdown = Counter(s.platform.value for s in enriched)
        logger.info(
            "Collected %d signals for '%s' in %.1fs: %s",
            len(enriched), normalized, time.monotonic() - start, dict(breakdown),
        )
        return enriched

    async def _collect_batch(self, queries: list[str]) -> int:
        start = time.monotonic()
        collected: list[Signal] = []
        for i, query in enumerate(queries):
            request = CollectionRequest(
                query=query, platforms=self.state.platforms, quotas=self._batch_quotas
            )
            collected.extend(await self._fan_out(request))
            if i < len(queries) - 1:
                await asyncio.sleep(self._config.query_delay_secs)

        if not collected:
            background_logger.info("Batch collection found nothing for %d queries", len(queries))
            return 0

        enriched = await self.enrichment.run(collected)
        if not enriched:
            background_logger.info("No batch signals passed quality filters")
            return 0

        indexed = await self.gateway.upsert(enriched)
        self.state.mark_processed(queries)
        background_logger.info(
            "Batch collection indexed %d signals for %d queries in %.1fs",
            indexed, len(queries), time.monotonic() - start,
        )
        return indexed

    async def _fan_out(self, request: CollectionRequest) -> list[Signal]:
        collectors = [
            self.collectors[p] for p in request.platforms if p in self.collectors
        ]
        results = await asyncio.gather(
            *(c.fetch(request.query, request.quota_for(c.platform)) for c in collectors),
            return_exceptions=True,
        )

        signals: list[Signal] = []
        for collector, result in zip(collectors, results):
            if isinstance(result, BaseException):
                logger.warning("%s failed: %s", collector.platform.value, result)
                continue
            signals.extend(result)
        return signals

    # -- status / config ----------------------------------------------------

    def get_queue_status(self) -> dict[str, Any]:
        status = self.state.snapshot()
        status["background_tasks"] = len(self.background)
        return status

    def set_platforms(self, platforms: Iterable[Platform | str]) -> list[Platform]:
        resolved = [Platform(p) for p in platforms]
        self.state.set_platforms(resolved)
        logger.info("Enabled platforms: %s", ", ".join(p.value for p in resolved))
        return self.state.platforms

    def get_enabled_platforms(self) -> list[Platform]:
        return self.state.platforms

    def clear_processed_cache(self) -> int:
        cleared = self.state.clear_processed()
        logger.info("Cleared %d processed queries", cleared)
        return cleared
