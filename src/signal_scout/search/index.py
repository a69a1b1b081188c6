"""Elasticsearch index gateway: schema, bulk upsert and index statistics."""

import logging
from typing import Any

from elasticsearch import AsyncElasticsearch

from signal_scout.config import Settings, settings
from signal_scout.errors import IndexingError
from signal_scout.models import Signal

logger = logging.getLogger(__name__)


def create_es_client(config: Settings = settings) -> AsyncElasticsearch:
    """Build the async client from cloud id + API key, or a plain URL."""
    if config.elastic_cloud_id:
        if not config.elastic_api_key:
            raise RuntimeError(
                "Elasticsearch not configured. Set ELASTIC_API_KEY alongside ELASTIC_CLOUD_ID in .env"
            )
        return AsyncElasticsearch(cloud_id=config.elastic_cloud_id, api_key=config.elastic_api_key)
    if config.elastic_api_key:
        return AsyncElasticsearch(config.elastic_url, api_key=config.elastic_api_key)
    return AsyncElasticsearch(config.elastic_url)


def index_mappings(embedding_dims: int) -> dict[str, Any]:
    return {
        "properties": {
            "id": {"type": "keyword"},
            "platform": {"type": "keyword"},
            "title": {
                "type": "text",
                "analyzer": "english_analyzer",
                "fields": {"keyword": {"type": "keyword"}},
            },
            "content": {"type": "text", "analyzer": "english_analyzer"},
            "author": {"type": "keyword"},
            "url": {"type": "keyword"},
            "created_at": {"type": "date"},
            "indexed_at": {"type": "date"},
            "score": {"type": "integer"},
            "num_comments": {"type": "integer"},
            "tags": {"type": "keyword"},
            "pain_points": {"type": "text", "analyzer": "english_analyzer"},
            "embedding": {
                "type": "dense_vector",
                "dims": embedding_dims,
                "index": True,
                "similarity": "cosine",
            },
            "sentiment": {
                "properties": {
                    "score": {"type": "float"},
                    "comparative": {"type": "float"},
                    "label": {"type": "keyword"},
                    "confidence": {"type": "float"},
                }
            },
            "quality": {
                "properties": {
                    "text_length": {"type": "integer"},
                    "word_count": {"type": "integer"},
                    "readability_score": {"type": "float"},
                    "has_code": {"type": "boolean"},
                    "has_links": {"type": "boolean"},
                    "spam_score": {"type": "float"},
                }
            },
            "domain_context": {"type": "keyword"},
        }
    }


INDEX_SETTINGS = {
    "number_of_shards": 1,
    "number_of_replicas": 1,
    "analysis": {
        "analyzer": {
            "english_analyzer": {"type": "standard", "stopwords": "_english_"},
        }
    },
}


class IndexGateway:
    def __init__(self, client: AsyncElasticsearch, config: Settings = settings):
        self._client = client
        self._config = config
        self.index = config.signals_index

    async def create_index(self) -> bool:
        """Create the signals index if missing. Returns True when it was created."""
        if await self._client.indices.exists(index=self.index):
            logger.info("Index '%s' already exists", self.index)
            return False
        await self._client.indices.create(
            index=self.index,
            settings=INDEX_SETTINGS,
            mappings=index_mappings(self._config.embedding_dims),
        )
        logger.info("Created index '%s'", self.index)
        return True

    async def reset_index(self) -> None:
        if await self._client.indices.exists(index=self.index):
            await self._client.indices.delete(index=self.index)
            logger.info("Deleted index '%s'", self.index)
        await self.create_index()

    async def upsert(self, signals: list[Signal]) -> int:
        """Bulk index by id. Any per-document failure raises IndexingError."""
        if not signals:
            logger.info("No signals to index")
            return 0

        dims = self._config.embedding_dims
        for signal in signals:
            if signal.embedding is not None and len(signal.embedding) != dims:
                raise IndexingError(
                    f"Embedding for {signal.id} has {len(signal.embedding)} dims, expected {dims}",
                    failed_ids=[signal.id],
                )

        chunk_size = self._config.bulk_chunk_size
        indexed = 0
        for i in range(0, len(signals), chunk_size):
            chunk = signals[i : i + chunk_size]
            operations: list[dict[str, Any]] = []
            for signal in chunk:
                operations.append({"index": {"_index": self.index, "_id": signal.id}})
                operations.append(signal.to_document())

            resp = await self._client.bulk(operations=operations, refresh=True)
            if resp.get("errors"):
                failed = [
                    item["index"].get("_id", "?")
                    for item in resp.get("items", [])
                    if item.get("index", {}).get("error")
                ]
                logger.error("Bulk indexing had %d errors: %s", len(failed), failed[:5])
                raise IndexingError(
                    f"Bulk indexing had {len(failed)} errors", failed_ids=failed
                )
            indexed += len(chunk)
            logger.info("Indexed %d signals (took=%sms)", len(chunk), resp.get("took"))

        return indexed

    async def count(self) -> int:
        resp = await self._client.count(index=self.index)
        return int(resp["count"])

    async def stats(self) -> dict[str, Any]:
        total = await self.count()
        agg = await self._client.search(
            index=self.index,
            size=0,
            aggs={"platforms": {"terms": {"field": "platform", "size": 20}}},
        )
        with_embeddings = await self._client.count(
            index=self.index, query={"exists": {"field": "embedding"}}
        )
        return {
            "total_documents": total,
            "platforms": {
                b["key"]: b["doc_count"]
                for b in agg["aggregations"]["platforms"]["buckets"]
            },
            "with_embeddings": int(with_embeddings["count"]),
        }

    async def delete_older_than(self, days: int = 30) -> int:
        resp = await self._client.delete_by_query(
            index=self.index,
            query={"range": {"created_at": {"lt": f"now-{days}d"}}},
        )
        deleted = int(resp.get("deleted", 0))
        logger.info("Deleted %d signals older than %d days", deleted, days)
        return deleted

    async def recent(self, limit: int = 5) -> list[Signal]:
        """Most recently created signals, embeddings excluded."""
        resp = await self._client.search(
            index=self.index,
            size=limit,
            sort=[{"created_at": {"order": "desc"}}],
            source_excludes=["embedding"],
        )
        return [Signal.from_document(hit["_source"]) for hit in resp["hits"]["hits"]]
