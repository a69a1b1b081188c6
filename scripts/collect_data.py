"""Run one collection pass: trending content, or a single query with --query."""

import argparse
import asyncio
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from signal_scout.config import settings
from signal_scout.pipeline.runner import run_trending_collection
from signal_scout.services import build_services


async def main(query: str | None, limit: int) -> None:
    services = build_services(settings)
    try:
        if query:
            signals = await services.orchestrator.collect_for_query(query, force=True)
            print(f"\nCollected {len(signals)} signals for '{query}'")
            for s in signals[:10]:
                print(f"  [{s.platform.value}] {s.title[:80]}")
        else:
            counts = await run_trending_collection(services.orchestrator, limit=limit)
            print("\nCollection summary:")
            for name, count in counts.items():
                print(f"  - {name}: {count}")

        stats = await services.gateway.stats()
        print(f"\nTotal documents in index: {stats['total_documents']}")
    finally:
        await services.close()


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(levelname)s %(name)s: %(message)s")
    parser = argparse.ArgumentParser(description="Collect, enrich and index social signals.")
    parser.add_argument("--query", help="Collect for this query instead of trending content")
    parser.add_argument("--limit", type=int, default=settings.trending_limit, help="Items per trending source")
    args = parser.parse_args()
    asyncio.run(main(query=args.query, limit=args.limit))
