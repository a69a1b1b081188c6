from dataclasses import dataclass

from elasticsearch import AsyncElasticsearch

from signal_scout.ai.embeddings import Embedder, VertexEmbedder
from signal_scout.collectors.hackernews import HackerNewsCollector
from signal_scout.collectors.producthunt import ProductHuntCollector
from signal_scout.collectors.reddit import RedditCollector
from signal_scout.collectors.youtube import YouTubeCollector
from signal_scout.config import Settings, settings
from signal_scout.models import Platform
from signal_scout.pipeline.enrichment import EnrichmentPipeline
from signal_scout.pipeline.orchestrator import CollectionOrchestrator
from signal_scout.search.hybrid import HybridRetriever
from signal_scout.search.index import IndexGateway, create_es_client
from signal_scout.search.reranking import RerankerEndpoint


@dataclass
class Services:
    """Everything the app, scheduler and scripts share for one process."""

    es: AsyncElasticsearch
    embedder: Embedder
    gateway: IndexGateway
    retriever: HybridRetriever
    orchestrator: CollectionOrchestrator

    async def close(self) -> None:
        await self.orchestrator.background.wait()
        await self.es.close()


def build_services(config: Settings = settings) -> Services:
    es = create_es_client(config)
    embedder = VertexEmbedder(config)
    gateway = IndexGateway(es, config)
    retriever = HybridRetriever(es, embedder, RerankerEndpoint(es, config), config)
    collectors = {
        Platform.YOUTUBE: YouTubeCollector(config=config),
        Platform.REDDIT: RedditCollector(config),
        Platform.HACKERNEWS: HackerNewsCollector(),
        Platform.PRODUCTHUNT: ProductHuntCollector(config=config),
    }
    orchestrator = CollectionOrchestrator(
        collectors, EnrichmentPipeline(embedder, config), gateway, config=config
    )
    return Services(
        es=es,
        embedder=embedder,
        gateway=gateway,
        retriever=retriever,
        orchestrator=orchestrator,
    )
