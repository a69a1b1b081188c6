#!/usr/bin/env python3
"""Drop and recreate the signals index. All indexed signals are lost.

Usage:
  python scripts/reset_index.py                            # dry-run (default)
  python scripts/reset_index.py --execute                  # delete and recreate
  python scripts/reset_index.py --execute --drop-reranker  # also delete the reranker endpoint
"""
import argparse
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from signal_scout.config import settings
from signal_scout.search.index import IndexGateway, create_es_client
from signal_scout.search.reranking import RerankerEndpoint


async def main(execute: bool, drop_reranker: bool) -> None:
    es = create_es_client(settings)
    try:
        gateway = IndexGateway(es, settings)
        if not execute:
            exists = await es.indices.exists(index=gateway.index)
            count = await gateway.count() if exists else 0
            print(f"[DRY RUN] Would delete index '{gateway.index}' ({count} documents) and recreate it.")
            if drop_reranker:
                print(f"[DRY RUN] Would delete reranker endpoint '{settings.reranker_inference_id}'.")
            print("\nRe-run with --execute to apply.")
            return
        await gateway.reset_index()
        print(f"Index '{gateway.index}' recreated (embedding dims={settings.embedding_dims}).")
        if drop_reranker:
            await RerankerEndpoint(es, settings).delete()
            print(f"Reranker endpoint '{settings.reranker_inference_id}' deleted.")
    finally:
        await es.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    parser = argparse.ArgumentParser(description="Drop and recreate the signals index.")
    parser.add_argument("--execute", action="store_true", help="Apply the reset (default is dry-run)")
    parser.add_argument("--drop-reranker", action="store_true", help="Also delete the reranker inference endpoint")
    args = parser.parse_args()
    asyncio.run(main(execute=args.execute, drop_reranker=args.drop_reranker))
