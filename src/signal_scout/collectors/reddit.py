import asyncio
import logging
import time
from datetime import datetime, timezone

import praw
from pydantic import BaseModel

from signal_scout.config import Settings, settings
from signal_scout.errors import CollectorError
from signal_scout.models import Platform, Signal

from .base import BaseCollector, map_records

logger = logging.getLogger(__name__)


class RedditPost(BaseModel):
    id: str
    title: str
    selftext: str = ""
    author: str | None = None
    permalink: str
    created_utc: float
    score: int = 0
    num_comments: int = 0
    subreddit: str


def normalize_reddit_post(post: RedditPost) -> Signal:
    return Signal(
        id=f"reddit_{post.id}",
        platform=Platform.REDDIT,
        title=post.title,
        body=post.selftext or post.title,
        author=post.author or "[deleted]",
        url=f"https://www.reddit.com{post.permalink}",
        created_at=datetime.fromtimestamp(post.created_utc, tz=timezone.utc),
        score=post.score,
        num_comments=post.num_comments,
        tags=[post.subreddit],
    )


def _submission_to_raw(post) -> dict:
    return {
        "id": post.id,
        "title": post.title,
        "selftext": post.selftext or "",
        "author": post.author.name if post.author else None,
        "permalink": post.permalink,
        "created_utc": post.created_utc,
        "score": post.score,
        "num_comments": post.num_comments,
        "subreddit": post.subreddit.display_name,
    }


class RedditCollector(BaseCollector):
    platform = Platform.REDDIT

    def __init__(self, config: Settings = settings):
        super().__init__()
        self._config = config
        self._reddit = None

    def _get_reddit(self) -> praw.Reddit:
        if self._reddit is None:
            if not self._config.reddit_client_id:
                raise CollectorError(
                    "Reddit credentials not configured. "
                    "Set REDDIT_CLIENT_ID and REDDIT_CLIENT_SECRET in .env"
                )
            self._reddit = praw.Reddit(
                client_id=self._config.reddit_client_id,
                client_secret=self._config.reddit_client_secret,
                user_agent=self._config.reddit_user_agent,
            )
        return self._reddit

    async def collect(self, query: str, limit: int) -> list[Signal]:
        return await asyncio.to_thread(self._search_sync, query, limit)

    async def collect_trending(self, limit: int) -> list[Signal]:
        return await asyncio.to_thread(
            self._hot_sync, list(self._config.reddit_subreddits), limit
        )

    def _search_sync(self, query: str, limit: int) -> list[Signal]:
        reddit = self._get_reddit()
        raw = [
            _submission_to_raw(post)
            for post in reddit.subreddit("all").search(query, sort="hot", limit=limit)
        ]
        return map_records(raw, RedditPost, normalize_reddit_post, self.platform)

    def _hot_sync(self, subreddits: list[str], limit: int) -> list[Signal]:
        try:
            reddit = self._get_reddit()
        except CollectorError as e:
            logger.warning("Reddit collector skipped: %s", e)
            return []

        signals: list[Signal] = []
        for i, sub_name in enumerate(subreddits):
            try:
                raw = [_submission_to_raw(p) for p in reddit.subreddit(sub_name).hot(limit=limit)]
                posts = map_records(raw, RedditPost, normalize_reddit_post, self.platform)
                signals.extend(posts)
                logger.info("r/%s: %d posts", sub_name, len(posts))
            except Exception as e:
                logger.warning("Failed to scrape r/%s: %s", sub_name, e)

            # Blocking pause between subreddits to stay under Reddit's rate limit.
            if i < len(subreddits) - 1:
                time.sleep(self._config.reddit_rate_limit_secs)

        return signals
