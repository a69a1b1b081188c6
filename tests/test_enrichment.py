"""Tests for per-signal analysis and the enrichment pipeline."""

import asyncio
from datetime import timedelta

import pytest

from fakes import FakeEmbedder, make_settings
from signal_scout.models import Platform, Signal, utcnow
from signal_scout.pipeline.enrichment import EnrichmentPipeline, analyze


def _make(title: str, body: str, tags: list[str] | None = None) -> Signal:
    return Signal(
        id="reddit_1",
        platform=Platform.REDDIT,
        title=title,
        body=body,
        author="poster",
        url="https://www.reddit.com/r/SaaS/comments/1/",
        created_at=utcnow() - timedelta(days=2),
        score=12,
        num_comments=4,
        tags=list(tags or []),
    )


class TestAnalyze:
    def test_problem_post_tagged_with_pain_points(self) -> None:
        signal = analyze(_make(
            "Month end close",
            "I'm struggling with invoice reconciliation, any ideas?",
            tags=["smallbusiness"],
        ))
        assert signal.tags == ["smallbusiness", "problem"]
        assert signal.pain_points == ["invoice reconciliation"]
        assert signal.sentiment is not None
        assert signal.quality is not None
        assert signal.domain_context

    def test_problem_tag_not_duplicated(self) -> None:
        signal = analyze(_make("Stuck", "Our deploys are stuck again", tags=["Problem"]))
        assert signal.tags == ["Problem"]

    def test_launch_post_not_tagged(self) -> None:
        signal = analyze(_make("Launch day", "We launched a calendar app today"))
        assert "problem" not in signal.tags
        assert signal.pain_points == []


class TestEnrichmentPipeline:
    def test_empty_input(self) -> None:
        embedder = FakeEmbedder()
        assert asyncio.run(EnrichmentPipeline(embedder, make_settings()).run([])) == []
        assert embedder.calls == []

    def test_embeds_survivors(self) -> None:
        signal = _make(
            "Remote teams and async updates",
            "I'm struggling with async standups across time zones and need a better tool for it.",
        )
        result = asyncio.run(EnrichmentPipeline(FakeEmbedder(), make_settings()).run([signal], query="async"))
        assert [s.id for s in result] == ["reddit_1"]
        assert result[0].embedding == [0.1, 0.2, 0.3]
        assert result[0].relevance_score is not None

    def test_embedding_failure_propagates(self) -> None:
        signal = _make("Remote teams", "I'm struggling with async standups across time zones every week.")
        with pytest.raises(RuntimeError, match="embedding service unavailable"):
            asyncio.run(EnrichmentPipeline(FakeEmbedder(fail=True), make_settings()).run([signal]))
