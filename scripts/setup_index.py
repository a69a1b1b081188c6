"""Create the signals index and make sure the reranker endpoint exists."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from signal_scout.config import settings
from signal_scout.search.index import IndexGateway, create_es_client
from signal_scout.search.reranking import RerankerEndpoint


async def main(with_reranker: bool) -> None:
    es = create_es_client(settings)
    try:
        gateway = IndexGateway(es, settings)
        created = await gateway.create_index()
        print(f"Index '{gateway.index}': {'created' if created else 'already exists'}")

        if with_reranker:
            reranker = RerankerEndpoint(es, settings)
            available = await reranker.ensure()
            print(f"Reranker '{reranker.inference_id}': {'ready' if available else 'unavailable'}")
    finally:
        await es.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    parser = argparse.ArgumentParser(description="Create the Elasticsearch index for collected signals.")
    parser.add_argument("--with-reranker", action="store_true", help="Also create the Vertex AI reranker endpoint")
    args = parser.parse_args()
    asyncio.run(main(with_reranker=args.with_reranker))
