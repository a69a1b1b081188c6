"""Tests for hybrid query construction and retrieval fallbacks."""

import asyncio
from datetime import datetime, timezone

import pytest

from fakes import FakeElasticsearch, FakeEmbedder, FakeReranker, make_settings
from signal_scout.models import DateRange, Platform, SearchFilters, SearchQuery, Signal
from signal_scout.search.hybrid import (
    HybridRetriever,
    build_filter_clauses,
    build_hybrid_query,
    rank_window_size,
)


def _hit(id: str, title: str, score: float, url: str | None = None) -> dict:
    signal = Signal(
        id=id,
        platform=Platform.REDDIT,
        title=title,
        body=f"{title} body",
        author="someone",
        url=url or f"https://www.reddit.com/r/startups/{id}",
        created_at=datetime(2024, 5, 1, tzinfo=timezone.utc),
        score=3,
    )
    return {"_id": id, "_score": score, "_source": signal.to_document()}


def _retriever(es, embedder=None, reranker=None) -> HybridRetriever:
    return HybridRetriever(es, embedder or FakeEmbedder(), reranker, make_settings())


def _should_types(query: dict) -> list[str]:
    return [next(iter(clause)) for clause in query["bool"]["should"]]


class TestBuildQuery:
    def test_keyword_and_knn(self) -> None:
        query = build_hybrid_query("remote work", [0.1, 0.2, 0.3])
        assert _should_types(query) == ["multi_match", "knn"]
        mm = query["bool"]["should"][0]["multi_match"]
        assert mm["fields"] == ["title^3", "content^2", "tags^1.5"]
        assert mm["fuzziness"] == "AUTO"
        knn = query["bool"]["should"][1]["knn"]
        assert (knn["k"], knn["num_candidates"], knn["boost"]) == (50, 100, 2.0)
        assert query["bool"]["minimum_should_match"] == 1
        assert "filter" not in query["bool"]

    def test_zero_vector_skips_knn(self) -> None:
        assert _should_types(build_hybrid_query("q", [0.0, 0.0, 0.0])) == ["multi_match"]

    def test_no_embedding(self) -> None:
        assert _should_types(build_hybrid_query("q", None)) == ["multi_match"]

    def test_filters(self) -> None:
        filters = SearchFilters(
            platforms=[Platform.REDDIT, Platform.YOUTUBE],
            date_range=DateRange(
                **{"from": datetime(2024, 1, 1, tzinfo=timezone.utc), "to": datetime(2024, 2, 1, tzinfo=timezone.utc)}
            ),
            min_score=5,
            tags=["saas"],
            sentiment="negative",
            domains=["fintech"],
            min_quality=0.75,
        )
        clauses = build_filter_clauses(filters)
        assert {"terms": {"platform": ["reddit", "youtube"]}} in clauses
        assert {"range": {"score": {"gte": 5}}} in clauses
        assert {"terms": {"tags": ["saas"]}} in clauses
        assert {"term": {"sentiment.label": "negative"}} in clauses
        assert {"terms": {"domain_context": ["fintech"]}} in clauses
        assert {"range": {"quality.spam_score": {"lte": 0.25}}} in clauses
        date_clause = next(c for c in clauses if "created_at" in c.get("range", {}))
        assert date_clause["range"]["created_at"]["gte"].startswith("2024-01-01")

    def test_problems_only(self) -> None:
        clauses = build_filter_clauses(SearchFilters(problems_only=True))
        assert clauses[0]["bool"]["minimum_should_match"] == 1
        assert {"term": {"tags": "problem"}} in clauses[0]["bool"]["should"]

    def test_no_filters(self) -> None:
        assert build_filter_clauses(SearchFilters()) == []

    def test_rank_window(self) -> None:
        assert rank_window_size(20, 0) == 100
        assert rank_window_size(100, 150) == 250
        assert rank_window_size(100, 20000) == 10_000


class TestSearch:
    def test_hybrid_path(self) -> None:
        es = FakeElasticsearch(hits=[_hit("reddit_1", "Remote work pain", 3.2)])
        response = asyncio.run(_retriever(es).search(SearchQuery(query="remote work")))
        assert [s.id for s in response.results] == ["reddit_1"]
        assert response.results[0].relevance_score == 3.2
        assert response.total_results == 1
        call = es.search_calls[0]
        assert _should_types(call["query"]) == ["multi_match", "knn"]
        assert call["size"] == 20 and call["from_"] == 0

    def test_embedding_failure_falls_back_to_keyword(self) -> None:
        es = FakeElasticsearch(hits=[_hit("reddit_1", "Remote work pain", 3.2)])
        retriever = _retriever(es, embedder=FakeEmbedder(fail=True))
        response = asyncio.run(retriever.search(SearchQuery(query="remote work")))
        assert len(response.results) == 1
        assert _should_types(es.search_calls[0]["query"]) == ["multi_match"]

    def test_results_deduplicated_and_ranked(self) -> None:
        es = FakeElasticsearch(hits=[
            _hit("reddit_1", "Same post", 2.0, url="https://example.com/x"),
            _hit("reddit_2", "Same post", 5.0, url="https://example.com/x"),
            _hit("reddit_3", "Other post", 4.0),
        ])
        response = asyncio.run(_retriever(es).search(SearchQuery(query="post")))
        # equal engagement: first-seen duplicate survives, then engine score orders
        assert [s.id for s in response.results] == ["reddit_3", "reddit_1"]

    def test_reranked_path(self) -> None:
        es = FakeElasticsearch(hits=[_hit("reddit_1", "Remote work pain", 0.9)])
        retriever = _retriever(es, reranker=FakeReranker())
        asyncio.run(retriever.search(SearchQuery(query="remote work", use_reranking=True, limit=10)))
        call = es.search_calls[0]
        rr = call["retriever"]["text_similarity_reranker"]
        assert rr["field"] == "content"
        assert rr["inference_id"] == "test_reranker"
        assert rr["inference_text"] == "remote work"
        assert rr["rank_window_size"] == 100
        assert "standard" in rr["retriever"]

    def test_reranker_error_falls_back(self) -> None:
        es = FakeElasticsearch(hits=[_hit("reddit_1", "Remote work pain", 1.0)])
        retriever = _retriever(es, reranker=FakeReranker(error=RuntimeError("no credentials")))
        response = asyncio.run(retriever.search(SearchQuery(query="remote", use_reranking=True)))
        assert len(response.results) == 1
        assert "query" in es.search_calls[0]
        assert "retriever" not in es.search_calls[0]

    def test_index_failure_propagates(self) -> None:
        es = FakeElasticsearch()
        es.search_error = ConnectionError("search engine down")
        with pytest.raises(ConnectionError):
            asyncio.run(_retriever(es).search(SearchQuery(query="anything")))


class TestSearchQueryValidation:
    def test_blank_query_rejected(self) -> None:
        with pytest.raises(ValueError):
            SearchQuery(query="   ")

    def test_limit_bounds(self) -> None:
        with pytest.raises(ValueError):
            SearchQuery(query="x", limit=0)
