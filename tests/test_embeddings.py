"""Tests for embedding batching and the Vertex embedder's HTTP handling."""

import asyncio
import json
from datetime import datetime, timezone

import httpx
import pytest

from fakes import FakeEmbedder, make_settings
from signal_scout.ai.embeddings import (
    VertexEmbedder,
    generate_batch_embeddings,
    prepare_text_for_embedding,
)
from signal_scout.errors import EmbeddingError
from signal_scout.models import Platform, Signal


class _StaticTokenEmbedder(VertexEmbedder):
    def _access_token(self) -> str:
        return "test-token"


def _client(handler) -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


class TestVertexEmbedder:
    def test_parses_prediction(self) -> None:
        seen = {}

        def handler(request: httpx.Request) -> httpx.Response:
            seen["url"] = str(request.url)
            seen["auth"] = request.headers["Authorization"]
            seen["body"] = json.loads(request.content)
            return httpx.Response(
                200, json={"predictions": [{"embeddings": {"values": [0.5, -0.5, 1]}}]}
            )

        async def run() -> list[float]:
            async with _client(handler) as client:
                return await _StaticTokenEmbedder(make_settings(), client).embed("hello")

        assert asyncio.run(run()) == [0.5, -0.5, 1.0]
        assert seen["url"].endswith("/publishers/google/models/text-embedding-004:predict")
        assert "projects/test-project/locations/us-central1" in seen["url"]
        assert seen["auth"] == "Bearer test-token"
        assert seen["body"] == {"instances": [{"content": "hello"}]}

    def test_http_error(self) -> None:
        async def run() -> None:
            async with _client(lambda r: httpx.Response(500)) as client:
                await _StaticTokenEmbedder(make_settings(), client).embed("x")

        with pytest.raises(EmbeddingError):
            asyncio.run(run())

    def test_missing_values(self) -> None:
        async def run() -> None:
            async with _client(lambda r: httpx.Response(200, json={"predictions": []})) as client:
                await _StaticTokenEmbedder(make_settings(), client).embed("x")

        with pytest.raises(EmbeddingError, match="No embedding"):
            asyncio.run(run())

    def test_requires_project(self) -> None:
        embedder = _StaticTokenEmbedder(make_settings(google_cloud_project_id=""))
        with pytest.raises(EmbeddingError):
            asyncio.run(embedder.embed("x"))

    def test_rejects_incomplete_service_account(self) -> None:
        config = make_settings(google_application_credentials=json.dumps({"client_email": "a@b"}))
        with pytest.raises(EmbeddingError, match="private_key"):
            VertexEmbedder(config)._load_credentials()


class TestBatchEmbeddings:
    def test_order_preserved(self) -> None:
        embedder = FakeEmbedder()
        texts = [f"text {i}" for i in range(7)]
        result = asyncio.run(generate_batch_embeddings(embedder, texts, batch_size=3, delay_secs=0))
        assert len(result) == 7
        assert sorted(embedder.calls) == sorted(texts)

    def test_failure_aborts(self) -> None:
        with pytest.raises(RuntimeError):
            asyncio.run(generate_batch_embeddings(FakeEmbedder(fail=True), ["a", "b"], delay_secs=0))

    def test_empty(self) -> None:
        assert asyncio.run(generate_batch_embeddings(FakeEmbedder(), [])) == []


class TestPrepareText:
    def test_layout(self) -> None:
        signal = Signal(
            id="hn_1",
            platform=Platform.HACKERNEWS,
            title="Show HN: Tool",
            body="b" * 600,
            author="pg",
            url="https://news.ycombinator.com/item?id=1",
            created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
            tags=["story", "Show HN"],
        )
        text = prepare_text_for_embedding(signal)
        parts = text.split(" | ")
        assert parts[0] == parts[1] == "Title: Show HN: Tool"
        assert parts[2] == "Content: " + "b" * 500
        assert parts[3] == "Tags: story, Show HN"
        assert parts[4] == "Platform: hackernews"
