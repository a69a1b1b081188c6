"""HTTP surface tests with the service container replaced by fakes."""

import pytest
from fastapi.testclient import TestClient

from fakes import FakeCollector, FakeElasticsearch, FakeEmbedder, make_settings
from signal_scout.api.app import create_app
from signal_scout.api.routes.signals import get_services
from signal_scout.models import Platform, Signal, utcnow
from signal_scout.pipeline.enrichment import EnrichmentPipeline
from signal_scout.pipeline.orchestrator import CollectionOrchestrator
from signal_scout.search.hybrid import HybridRetriever
from signal_scout.search.index import IndexGateway
from signal_scout.services import Services


def _signal(n: int) -> Signal:
    return Signal(
        id=f"hn_{n}",
        platform=Platform.HACKERNEWS,
        title=f"Ask HN: how do you run remote retros? ({n})",
        body="We tried three tools and none of them fit a fully remote engineering team well.",
        author="someone",
        url=f"https://news.ycombinator.com/item?id={n}",
        created_at=utcnow(),
        score=20,
        num_comments=n,
    )


def _services(embedder: FakeEmbedder | None = None) -> Services:
    cfg = make_settings()
    hit_doc = _signal(1).to_document()
    es = FakeElasticsearch(hits=[{"_id": "hn_1", "_score": 1.5, "_source": hit_doc}])
    es.counts = {"all": 3, "embedding": 3}
    embedder = embedder or FakeEmbedder()
    gateway = IndexGateway(es, cfg)
    collectors = {Platform.HACKERNEWS: FakeCollector(Platform.HACKERNEWS, [_signal(1), _signal(2)])}
    orchestrator = CollectionOrchestrator(
        collectors, EnrichmentPipeline(embedder, cfg), gateway, config=cfg
    )
    return Services(
        es=es,
        embedder=embedder,
        gateway=gateway,
        retriever=HybridRetriever(es, embedder, None, cfg),
        orchestrator=orchestrator,
    )


@pytest.fixture
def services() -> Services:
    return _services()


@pytest.fixture
def client(services: Services) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_services] = lambda: services
    return TestClient(app)


class TestSearchRoute:
    def test_search(self, client: TestClient, services: Services) -> None:
        resp = client.post("/api/search", json={"query": "remote retros", "limit": 5})
        assert resp.status_code == 200
        data = resp.json()
        assert data["query"] == "remote retros"
        assert data["total_results"] == 1
        assert data["results"][0]["id"] == "hn_1"
        assert "embedding" not in data["results"][0]
        assert services.orchestrator.get_queue_status()["queued_queries"] == ["remote retros"]

    def test_blank_query(self, client: TestClient) -> None:
        resp = client.post("/api/search", json={"query": "  "})
        assert resp.status_code == 400

    def test_bad_filter(self, client: TestClient) -> None:
        resp = client.post("/api/search", json={"query": "x", "filters": {"min_quality": 3}})
        assert resp.status_code == 400

    def test_search_engine_down(self, client: TestClient, services: Services) -> None:
        services.es.search_error = ConnectionError("down")
        resp = client.post("/api/search", json={"query": "remote"})
        assert resp.status_code == 500
        assert "results" not in resp.json()


class TestCollectRoutes:
    def test_collect(self, client: TestClient) -> None:
        resp = client.post("/api/collect", json={"query": "remote retros"})
        assert resp.status_code == 200
        data = resp.json()
        assert data["collected"] == 2
        assert {s["id"] for s in data["signals"]} == {"hn_1", "hn_2"}

    def test_collect_blank(self, client: TestClient) -> None:
        assert client.post("/api/collect", json={"query": " "}).status_code == 400
        assert client.post("/api/collect", json={}).status_code == 400

    def test_collect_failure(self) -> None:
        app = create_app()
        failing = _services(embedder=FakeEmbedder(fail=True))
        app.dependency_overrides[get_services] = lambda: failing
        resp = TestClient(app).post("/api/collect", json={"query": "remote"})
        assert resp.status_code == 500
        assert "signals" not in resp.json()

    def test_queue_status(self, client: TestClient) -> None:
        data = client.get("/api/collect").json()
        assert data["queue_length"] == 0
        assert data["threshold"] == 10

    def test_set_platforms(self, client: TestClient) -> None:
        resp = client.put("/api/collect/platforms", json={"platforms": ["reddit", "hackernews"]})
        assert resp.status_code == 200
        assert resp.json()["enabled_platforms"] == ["reddit", "hackernews"]

    def test_set_unknown_platform(self, client: TestClient) -> None:
        resp = client.put("/api/collect/platforms", json={"platforms": ["myspace"]})
        assert resp.status_code == 400

    def test_clear_cache(self, client: TestClient, services: Services) -> None:
        services.orchestrator.state.mark_processed(["a"])
        resp = client.delete("/api/collect/cache")
        assert resp.json() == {"status": "ok", "cleared": 1}


class TestStatsRoutes:
    def test_stats(self, client: TestClient) -> None:
        data = client.get("/api/stats").json()
        assert data["total_documents"] == 3
        assert data["platforms"] == {"reddit": 2}

    def test_health(self, client: TestClient) -> None:
        assert client.get("/api/health").json() == {"status": "ok", "document_count": 3}
