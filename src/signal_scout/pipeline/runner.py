import logging

from signal_scout.config import settings
from signal_scout.models import Signal

from signal_scout.search.index import IndexGateway

from .orchestrator import CollectionOrchestrator

logger = logging.getLogger(__name__)


async def run_trending_collection(
    orchestrator: CollectionOrchestrator, limit: int | None = None
) -> dict[str, int]:
    """Collect trending items from every enabled platform, enrich and index them."""
    limit = limit or settings.trending_limit
    logger.info("=== Trending collection starting ===")

    counts: dict[str, int] = {}
    collected: list[Signal] = []
    for platform in orchestrator.get_enabled_platforms():
        collector = orchestrator.collectors.get(platform)
        if collector is None:
            continue
        signals = await collector.fetch_trending(limit)
        counts[platform.value] = len(signals)
        collected.extend(signals)
        logger.info("%s trending: %d signals", platform.value, len(signals))

    if not collected:
        logger.info("=== Trending collection complete: nothing collected ===")
        counts["indexed"] = 0
        return counts

    enriched = await orchestrator.enrichment.run(collected)
    counts["indexed"] = await orchestrator.gateway.upsert(enriched) if enriched else 0

    logger.info(
        "=== Trending collection complete: %s ===",
        " ".join(f"{k}={v}" for k, v in counts.items()),
    )
    return counts


async def run_index_prune(gateway: IndexGateway, retention_days: int | None = None) -> int:
    """Delete signals created more than ``retention_days`` ago."""
    retention_days = retention_days or settings.retention_days
    logger.info("=== Index prune starting (retention=%dd) ===", retention_days)
    deleted = await gateway.delete_older_than(retention_days)
    logger.info("=== Index prune complete: %d deleted ===", deleted)
    return deleted
