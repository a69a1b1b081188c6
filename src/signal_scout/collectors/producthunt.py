"""Product Hunt collector (GraphQL API v2).

Product Hunt has no free-text search, so queries are mapped to one of its
topics and the top-voted posts are filtered by that topic.
"""

import logging
import re
from datetime import datetime

import httpx
from pydantic import BaseModel

from signal_scout.config import Settings, settings
from signal_scout.errors import CollectorError
from signal_scout.models import Platform, Signal

from .base import BaseCollector, map_records

logger = logging.getLogger(__name__)

PRODUCTHUNT_API = "https://api.producthunt.com/v2/api/graphql"
MAX_FETCH = 50

# Checked in order; first keyword found in the query wins.
TOPIC_MAPPINGS: dict[str, str] = {
    "remote": "Productivity",
    "work from home": "Productivity",
    "wfh": "Productivity",
    "collaboration": "Productivity",
    "communication": "Productivity",
    "team": "Productivity",
    "ai": "AI",
    "artificial intelligence": "AI",
    "saas": "SaaS",
    "software": "SaaS",
    "developer": "Developer Tools",
    "dev tools": "Developer Tools",
    "productivity": "Productivity",
    "design": "Design Tools",
    "marketing": "Marketing",
    "analytics": "Analytics",
    "no-code": "No-Code",
    "mobile": "Mobile",
    "web app": "Web App",
    "extension": "Chrome Extension",
    "api": "API",
    "open source": "Open Source",
    "social media": "Social Media",
    "finance": "Finance",
}

POSTS_QUERY = """
query TopPosts($first: Int!) {
  posts(first: $first, order: VOTES) {
    edges {
      node {
        id
        name
        tagline
        description
        votesCount
        commentsCount
        createdAt
        url
        website
        topics { edges { node { name } } }
        user { name username }
      }
    }
  }
}
"""


class PHUser(BaseModel):
    name: str | None = None
    username: str | None = None


class PHTopic(BaseModel):
    name: str | None = None


class PHTopicEdge(BaseModel):
    node: PHTopic | None = None


class PHTopicEdges(BaseModel):
    edges: list[PHTopicEdge | None] | None = None


class PHPost(BaseModel):
    id: str
    name: str
    tagline: str = ""
    description: str | None = None
    votesCount: int = 0
    commentsCount: int = 0
    createdAt: datetime
    url: str | None = None
    website: str | None = None
    topics: PHTopicEdges | None = None
    user: PHUser | None = None

    @property
    def topic_names(self) -> list[str]:
        edges = (self.topics.edges if self.topics else None) or []
        return [e.node.name for e in edges if e and e.node and e.node.name]


def match_topic(query: str) -> str | None:
    query_lower = query.lower()
    for keyword, topic in TOPIC_MAPPINGS.items():
        if re.search(rf"\b{re.escape(keyword)}\b", query_lower):
            return topic
    return None


def normalize_producthunt_post(post: PHPost) -> Signal:
    author = "anonymous"
    if post.user is not None:
        author = post.user.username or post.user.name or author
    return Signal(
        id=f"producthunt_{post.id}",
        platform=Platform.PRODUCTHUNT,
        title=post.name,
        body=f"{post.tagline}\n\n{post.description or ''}".strip(),
        author=author,
        url=post.url or post.website or f"https://www.producthunt.com/posts/{post.id}",
        created_at=post.createdAt,
        score=post.votesCount,
        num_comments=post.commentsCount,
        tags=["Product Hunt", *post.topic_names],
    )


class ProductHuntCollector(BaseCollector):
    platform = Platform.PRODUCTHUNT

    def __init__(self, client: httpx.AsyncClient | None = None, config: Settings = settings):
        super().__init__(client)
        self._config = config

    async def collect(self, query: str, limit: int) -> list[Signal]:
        topic = match_topic(query)
        if topic is None:
            logger.info("No Product Hunt topic for '%s', skipping", query)
            return []

        posts = await self._top_posts(min(limit * 5, MAX_FETCH))
        topic_lower = topic.lower()
        matching = [
            p for p in posts
            if any(topic_lower in tag.lower() for tag in p.tags[1:])
        ]
        return matching[:limit]

    async def collect_trending(self, limit: int) -> list[Signal]:
        return await self._top_posts(min(limit, MAX_FETCH))

    async def _top_posts(self, first: int) -> list[Signal]:
        token = self._config.producthunt_api_token
        if not token:
            logger.warning("PRODUCTHUNT_API_TOKEN not set, skipping Product Hunt")
            return []

        async with self.http() as client:
            resp = await client.post(
                PRODUCTHUNT_API,
                json={"query": POSTS_QUERY, "variables": {"first": first}},
                headers={"Authorization": f"Bearer {token}"},
            )
            resp.raise_for_status()
            data = resp.json()

        if data.get("errors"):
            raise CollectorError(f"Product Hunt GraphQL errors: {data['errors']}")

        edges = data["data"]["posts"]["edges"]
        return map_records(
            (e.get("node") for e in edges if e),
            PHPost,
            normalize_producthunt_post,
            self.platform,
        )
