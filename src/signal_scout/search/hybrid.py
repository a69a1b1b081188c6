"""Hybrid keyword + vector retrieval with optional semantic reranking."""

import logging
import time
from typing import Any

from elasticsearch import AsyncElasticsearch

from signal_scout.ai.embeddings import Embedder
from signal_scout.config import Settings, settings
from signal_scout.models import SearchFilters, SearchQuery, SearchResponse, Signal
from signal_scout.pipeline.dedup import dedupe

from .reranking import RerankerEndpoint

logger = logging.getLogger(__name__)

KEYWORD_FIELDS = ["title^3", "content^2", "tags^1.5"]
KEYWORD_BOOST = 1.5
KNN_BOOST = 2.0
KNN_K = 50
KNN_NUM_CANDIDATES = 100
RERANK_MIN_WINDOW = 100
RERANK_MAX_WINDOW = 10_000

SOURCE_FIELDS = [
    "id", "platform", "title", "content", "author", "url",
    "created_at", "score", "num_comments", "tags", "indexed_at",
    "sentiment", "quality", "domain_context",
]


def keyword_clause(query: str) -> dict[str, Any]:
    return {
        "multi_match": {
            "query": query,
            "fields": KEYWORD_FIELDS,
            "type": "best_fields",
            "fuzziness": "AUTO",
            "boost": KEYWORD_BOOST,
        }
    }


def knn_clause(embedding: list[float]) -> dict[str, Any]:
    return {
        "knn": {
            "field": "embedding",
            "query_vector": embedding,
            "k": KNN_K,
            "num_candidates": KNN_NUM_CANDIDATES,
            "boost": KNN_BOOST,
        }
    }


def build_filter_clauses(filters: SearchFilters | None) -> list[dict[str, Any]]:
    """Hard (non-scoring) filters. Every clause must match."""
    if filters is None:
        return []

    clauses: list[dict[str, Any]] = []
    if filters.platforms:
        clauses.append({"terms": {"platform": [p.value for p in filters.platforms]}})
    if filters.date_range is not None:
        clauses.append({
            "range": {
                "created_at": {
                    "gte": filters.date_range.from_.isoformat(),
                    "lte": filters.date_range.to.isoformat(),
                }
            }
        })
    if filters.min_score:
        clauses.append({"range": {"score": {"gte": filters.min_score}}})
    if filters.tags:
        clauses.append({"terms": {"tags": filters.tags}})
    if filters.keywords:
        clauses.append({
            "bool": {
                "should": [{"match": {"content": kw}} for kw in filters.keywords],
                "minimum_should_match": 1,
            }
        })
    if filters.sentiment:
        clauses.append({"term": {"sentiment.label": filters.sentiment}})
    if filters.domains:
        clauses.append({"terms": {"domain_context": filters.domains}})
    if filters.min_quality is not None:
        clauses.append({"range": {"quality.spam_score": {"lte": 1 - filters.min_quality}}})
    if filters.problems_only:
        clauses.append({
            "bool": {
                "should": [
                    {"term": {"sentiment.label": "negative"}},
                    {"range": {"sentiment.score": {"lt": 0}}},
                    {"term": {"tags": "problem"}},
                ],
                "minimum_should_match": 1,
            }
        })
    return clauses


def build_hybrid_query(
    query: str,
    embedding: list[float] | None,
    filters: SearchFilters | None = None,
) -> dict[str, Any]:
    should = [keyword_clause(query)]
    if embedding and any(v != 0 for v in embedding):
        should.append(knn_clause(embedding))

    bool_query: dict[str, Any] = {"should": should, "minimum_should_match": 1}
    filter_clauses = build_filter_clauses(filters)
    if filter_clauses:
        bool_query["filter"] = filter_clauses
    return {"bool": bool_query}


def build_base_retriever(query: str, filters: SearchFilters | None = None) -> dict[str, Any]:
    """First-stage keyword retriever used as the reranker's candidate source."""
    return {"standard": {"query": build_hybrid_query(query, None, filters)}}


def rank_window_size(limit: int, offset: int) -> int:
    return min(max(limit + offset, RERANK_MIN_WINDOW), RERANK_MAX_WINDOW)


def hit_to_signal(hit: dict[str, Any]) -> Signal:
    signal = Signal.from_document(hit["_source"])
    if hit.get("_score") is not None:
        signal.relevance_score = float(hit["_score"])
    return signal


def _total_hits(hits: dict[str, Any]) -> int:
    total = hits.get("total")
    if isinstance(total, int):
        return total
    if isinstance(total, dict):
        return int(total.get("value", 0))
    return 0


class HybridRetriever:
    def __init__(
        self,
        client: AsyncElasticsearch,
        embedder: Embedder,
        reranker: RerankerEndpoint | None = None,
        config: Settings = settings,
    ):
        self._client = client
        self._embedder = embedder
        self._reranker = reranker
        self.index = config.signals_index

    async def search(self, request: SearchQuery) -> SearchResponse:
        start = time.monotonic()

        if request.use_reranking and await self._reranking_available():
            resp = await self._search_reranked(request)
        else:
            resp = await self._search_standard(request)

        hits = resp["hits"]
        results = dedupe([hit_to_signal(h) for h in hits["hits"]])
        # dedupe orders by engagement; restore engine ranking for the survivors.
        results.sort(key=lambda s: s.relevance_score or 0.0, reverse=True)

        elapsed_ms = int((time.monotonic() - start) * 1000)
        logger.info(
            "Search '%s': %d results (%d total) in %dms",
            request.query, len(results), _total_hits(hits), elapsed_ms,
        )
        return SearchResponse(
            query=request.query,
            results=results,
            total_results=_total_hits(hits),
            search_time_ms=elapsed_ms,
        )

    async def _reranking_available(self) -> bool:
        if self._reranker is None:
            return False
        try:
            return await self._reranker.ensure()
        except Exception as e:
            logger.warning("Reranker unavailable, using standard search: %s", e)
            return False

    async def _query_embedding(self, text: str) -> list[float] | None:
        try:
            return await self._embedder.embed(text)
        except Exception as e:
            logger.warning("Query embedding failed, falling back to keyword search: %s", e)
            return None

    async def _search_standard(self, request: SearchQuery):
        embedding = await self._query_embedding(request.query)
        return await self._client.search(
            index=self.index,
            query=build_hybrid_query(request.query, embedding, request.filters),
            sort=[{"_score": {"order": "desc"}}],
            size=request.limit,
            from_=request.offset,
            source_excludes=["embedding"],
        )

    async def _search_reranked(self, request: SearchQuery):
        retriever = {
            "text_similarity_reranker": {
                "retriever": build_base_retriever(request.query, request.filters),
                "field": "content",
                "rank_window_size": rank_window_size(request.limit, request.offset),
                "inference_id": self._reranker.inference_id,
                "inference_text": request.query,
            }
        }
        return await self._client.search(
            index=self.index,
            retriever=retriever,
            size=request.limit,
            from_=request.offset,
            source=SOURCE_FIELDS,
        )
