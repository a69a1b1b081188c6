import logging

from apscheduler.schedulers.asyncio import AsyncIOScheduler

from signal_scout.config import Settings, settings
from signal_scout.pipeline.runner import run_index_prune, run_trending_collection
from signal_scout.services import Services

logger = logging.getLogger(__name__)


def _run_async(coro_func, *args):
    """Wrapper for APScheduler to run async functions."""
    async def wrapper():
        try:
            await coro_func(*args)
        except Exception as e:
            logger.error("Scheduled job %s failed: %s", coro_func.__name__, e)
    return wrapper


def setup_scheduler(services: Services, config: Settings = settings) -> AsyncIOScheduler:
    """Configure and return a scheduler running trending collection and index pruning."""
    scheduler = AsyncIOScheduler()
    scheduler.add_job(
        _run_async(run_trending_collection, services.orchestrator),
        "interval",
        hours=config.trending_interval_hours,
        id="trending",
        max_instances=1,
        name="Trending Collection",
    )
    scheduler.add_job(
        _run_async(run_index_prune, services.gateway, config.retention_days),
        "interval",
        hours=config.prune_interval_hours,
        id="prune",
        max_instances=1,
        name="Index Prune",
    )
    return scheduler
