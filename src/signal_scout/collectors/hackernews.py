"""Hacker News collector.

Query search goes through the Algolia HN Search API; trending collection reads
the official Firebase top/ask/show story lists.
"""

import asyncio
import logging
from datetime import datetime, timezone

import httpx
from pydantic import BaseModel, Field

from signal_scout.models import Platform, Signal

from .base import BaseCollector, map_records

logger = logging.getLogger(__name__)

HN_API_BASE = "https://hacker-news.firebaseio.com/v0"
ALGOLIA_SEARCH_URL = "https://hn.algolia.com/api/v1/search"
STORY_LISTS = ("topstories", "askstories", "showstories")


class AlgoliaHit(BaseModel):
    objectID: str
    title: str | None = None
    story_title: str | None = None
    story_text: str | None = None
    comment_text: str | None = None
    author: str | None = None
    url: str | None = None
    created_at: datetime
    points: int | None = None
    num_comments: int | None = None
    tags: list[str] = Field(default_factory=list, alias="_tags")


class HNItem(BaseModel):
    id: int
    type: str | None = None
    title: str | None = None
    text: str | None = None
    by: str | None = None
    url: str | None = None
    time: int
    score: int | None = None
    descendants: int | None = None
    deleted: bool = False
    dead: bool = False


def _item_url(item_id: object) -> str:
    return f"https://news.ycombinator.com/item?id={item_id}"


def normalize_algolia_hit(hit: AlgoliaHit) -> Signal:
    title = hit.title or hit.story_title or "No title"
    return Signal(
        id=f"hn_{hit.objectID}",
        platform=Platform.HACKERNEWS,
        title=title,
        body=hit.story_text or hit.comment_text or hit.title or "",
        author=hit.author or "anonymous",
        url=hit.url or _item_url(hit.objectID),
        created_at=hit.created_at,
        score=hit.points or 0,
        num_comments=hit.num_comments or 0,
        tags=list(hit.tags),
    )


def normalize_hn_item(item: HNItem) -> Signal:
    tags: list[str] = []
    if item.type:
        tags.append(item.type)
    title_lower = (item.title or "").lower()
    if title_lower.startswith("ask hn"):
        tags.append("Ask HN")
    if title_lower.startswith("show hn"):
        tags.append("Show HN")

    return Signal(
        id=f"hn_{item.id}",
        platform=Platform.HACKERNEWS,
        title=item.title or "No title",
        body=item.text or item.title or "",
        author=item.by or "anonymous",
        url=item.url or _item_url(item.id),
        created_at=datetime.fromtimestamp(item.time, tz=timezone.utc),
        score=item.score or 0,
        num_comments=item.descendants or 0,
        tags=tags,
    )


class HackerNewsCollector(BaseCollector):
    platform = Platform.HACKERNEWS

    async def collect(self, query: str, limit: int) -> list[Signal]:
        async with self.http() as client:
            resp = await client.get(
                ALGOLIA_SEARCH_URL, params={"query": query, "hitsPerPage": limit}
            )
            resp.raise_for_status()
            hits = resp.json().get("hits", [])
        return map_records(hits, AlgoliaHit, normalize_algolia_hit, self.platform)

    async def collect_trending(self, limit: int) -> list[Signal]:
        signals: list[Signal] = []
        async with self.http() as client:
            for story_list in STORY_LISTS:
                try:
                    signals.extend(await self._collect_story_list(client, story_list, limit))
                except Exception as e:
                    logger.warning("HN %s failed: %s", story_list, e)
        return signals

    async def _collect_story_list(
        self, client: httpx.AsyncClient, story_list: str, limit: int
    ) -> list[Signal]:
        resp = await client.get(f"{HN_API_BASE}/{story_list}.json")
        resp.raise_for_status()
        story_ids: list[int] = resp.json()[:limit]

        raw_items = await asyncio.gather(
            *(self._fetch_item(client, sid) for sid in story_ids)
        )
        live = [
            item for item in raw_items
            if item and not item.get("deleted") and not item.get("dead")
        ]
        signals = map_records(live, HNItem, normalize_hn_item, self.platform)
        logger.info("HN %s: %d stories", story_list, len(signals))
        return signals

    async def _fetch_item(self, client: httpx.AsyncClient, item_id: int) -> dict | None:
        try:
            resp = await client.get(f"{HN_API_BASE}/item/{item_id}.json")
            resp.raise_for_status()
            return resp.json()
        except Exception as e:
            logger.debug("HN item %s failed: %s", item_id, e)
            return None
