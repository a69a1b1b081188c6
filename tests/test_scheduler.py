"""Tests for scheduled jobs."""

import asyncio
import logging
from datetime import timedelta
from types import SimpleNamespace

import pytest

from fakes import FakeElasticsearch, make_settings
from signal_scout.pipeline.runner import run_index_prune
from signal_scout.scheduler.jobs import _run_async, setup_scheduler
from signal_scout.search.index import IndexGateway


class TestSetupScheduler:
    def test_registers_jobs(self) -> None:
        services = SimpleNamespace(orchestrator=object(), gateway=object())
        config = make_settings(trending_interval_hours=3, prune_interval_hours=12)
        scheduler = setup_scheduler(services, config)
        jobs = {job.id: job for job in scheduler.get_jobs()}
        assert set(jobs) == {"trending", "prune"}
        assert jobs["trending"].trigger.interval == timedelta(hours=3)
        assert jobs["prune"].trigger.interval == timedelta(hours=12)


class TestRunAsync:
    def test_failure_logged_not_raised(self, caplog: pytest.LogCaptureFixture) -> None:
        async def explode() -> None:
            raise RuntimeError("index unreachable")

        with caplog.at_level(logging.ERROR, logger="signal_scout.scheduler.jobs"):
            asyncio.run(_run_async(explode)())
        assert "explode failed: index unreachable" in caplog.text


class TestIndexPrune:
    def test_deletes_by_retention(self) -> None:
        gateway = IndexGateway(FakeElasticsearch(), make_settings())
        assert asyncio.run(run_index_prune(gateway, 60)) == 4
