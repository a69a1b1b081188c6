import logging
from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Callable, Iterable
from contextlib import asynccontextmanager
from typing import TypeVar

import httpx
from pydantic import BaseModel, ValidationError

from signal_scout.models import Platform, Signal

logger = logging.getLogger(__name__)

R = TypeVar("R", bound=BaseModel)


class BaseCollector(ABC):
    """Abstract base for all platform collectors.

    Subclasses implement ``collect``/``collect_trending`` and may raise;
    callers go through ``fetch``/``fetch_trending``, which never do.
    """

    platform: Platform

    def __init__(self, client: httpx.AsyncClient | None = None):
        self._client = client

    @abstractmethod
    async def collect(self, query: str, limit: int) -> list[Signal]:
        """Collect up to ``limit`` signals matching ``query``."""
        ...

    async def collect_trending(self, limit: int) -> list[Signal]:
        """Collect currently popular items, independent of any query."""
        return []

    async def fetch(self, query: str, limit: int) -> list[Signal]:
        try:
            signals = await self.collect(query, limit)
        except Exception as e:
            logger.warning("%s collection failed for '%s': %s", self.platform.value, query, e)
            return []
        logger.info("%s: %d signals for '%s'", self.platform.value, len(signals), query)
        return signals

    async def fetch_trending(self, limit: int) -> list[Signal]:
        try:
            return await self.collect_trending(limit)
        except Exception as e:
            logger.warning("%s trending collection failed: %s", self.platform.value, e)
            return []

    @asynccontextmanager
    async def http(self, timeout: float = 20) -> AsyncIterator[httpx.AsyncClient]:
        """Injected client if any (left open), else a short-lived one."""
        if self._client is not None:
            yield self._client
            return
        async with httpx.AsyncClient(timeout=timeout, follow_redirects=True) as client:
            yield client


def map_records(
    raw_items: Iterable[object],
    record_type: type[R],
    normalize: Callable[[R], Signal],
    platform: Platform,
) -> list[Signal]:
    """Validate raw API items into typed records and map them to Signals.

    Malformed items are logged and skipped.
    """
    signals: list[Signal] = []
    skipped = 0
    for raw in raw_items:
        try:
            record = record_type.model_validate(raw)
        except ValidationError as e:
            skipped += 1
            logger.debug("Skipping malformed %s record: %s", platform.value, e)
            continue
        signals.append(normalize(record))
    if skipped:
        logger.warning("Skipped %d malformed %s records", skipped, platform.value)
    return signals
