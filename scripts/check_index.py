"""Print index statistics and a few of the most recent signals."""

import asyncio
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent.parent / "src"))

from signal_scout.config import settings
from signal_scout.search.index import IndexGateway, create_es_client


async def main() -> None:
    es = create_es_client(settings)
    try:
        gateway = IndexGateway(es, settings)
        stats = await gateway.stats()
        print(f"Total documents: {stats['total_documents']}\n")

        print("Documents by platform:")
        for platform, count in sorted(stats["platforms"].items()):
            print(f"  - {platform}: {count}")

        print("\nSample documents:")
        for i, signal in enumerate(await gateway.recent(5), 1):
            print(f"\n{i}. [{signal.platform.value}] {signal.title[:80]}")
            print(f"   Created: {signal.created_at:%Y-%m-%d}")
            print(f"   Score: {signal.score}, Comments: {signal.num_comments}")

        total = stats["total_documents"]
        pct = stats["with_embeddings"] / total * 100 if total else 0.0
        print(f"\nDocuments with embeddings: {stats['with_embeddings']}/{total} ({pct:.0f}%)")
    finally:
        await es.close()


if __name__ == "__main__":
    asyncio.run(main())
