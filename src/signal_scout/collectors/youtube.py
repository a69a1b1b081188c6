"""YouTube collector backed by the Bright Data datasets API.

Bright Data works asynchronously: a trigger call returns a snapshot id,
and the snapshot is polled until it contains results.
"""

import asyncio
import logging
import re
from datetime import date, datetime

import httpx
from pydantic import BaseModel, model_validator

from signal_scout.config import Settings, settings
from signal_scout.models import Platform, Signal, utcnow

from .base import BaseCollector, map_records

logger = logging.getLogger(__name__)

BRIGHT_DATA_TRIGGER_URL = "https://api.brightdata.com/datasets/v3/trigger"
BRIGHT_DATA_SNAPSHOT_URL = "https://api.brightdata.com/datasets/v3/snapshot/{snapshot_id}"

VIDEO_ID_PATTERN = re.compile(r"(?:youtube\.com/watch\?v=|youtu\.be/)([^&?/]+)")


class YouTubeVideo(BaseModel):
    video_id: str | None = None
    url: str | None = None
    title: str | None = None
    description: str | None = None
    youtuber: str | None = None
    channel_name: str | None = None
    post_date: datetime | None = None
    posted_at: datetime | None = None
    likes: int | None = None
    num_comments: int | None = None
    category: str | None = None
    is_live: bool = False
    is_verified: bool = False

    @model_validator(mode="after")
    def _require_video_id(self) -> "YouTubeVideo":
        if not extract_video_id(self):
            raise ValueError("record has no video_id and no recognizable watch URL")
        return self


def extract_video_id(video: YouTubeVideo) -> str:
    if video.video_id:
        return video.video_id
    if video.url:
        m = VIDEO_ID_PATTERN.search(video.url)
        if m:
            return m.group(1)
    return ""


def format_bright_data_date(d: date) -> str:
    """Bright Data expects MM-DD-YYYY."""
    return d.strftime("%m-%d-%Y")


def normalize_youtube_video(video: YouTubeVideo) -> Signal:
    video_id = extract_video_id(video)

    tags: list[str] = []
    if video.category:
        tags.append(video.category)
    if video.is_live:
        tags.append("live")
    if video.is_verified:
        tags.append("verified")

    return Signal(
        id=f"youtube_{video_id}",
        platform=Platform.YOUTUBE,
        title=video.title or "No title",
        body=video.description or video.title or "",
        author=video.youtuber or video.channel_name or "Unknown",
        url=video.url or f"https://www.youtube.com/watch?v={video_id}",
        created_at=video.post_date or video.posted_at or utcnow(),
        score=video.likes or 0,
        num_comments=video.num_comments or 0,
        tags=tags,
    )


class YouTubeCollector(BaseCollector):
    platform = Platform.YOUTUBE

    def __init__(self, client: httpx.AsyncClient | None = None, config: Settings = settings):
        super().__init__(client)
        self._config = config

    async def collect(self, query: str, limit: int) -> list[Signal]:
        return await self.search(query, limit)

    async def search(
        self,
        keyword: str,
        limit: int,
        start_date: date | None = None,
        end_date: date | None = None,
    ) -> list[Signal]:
        token = self._config.bright_data_api_token
        dataset_id = self._config.bright_data_youtube_dataset_id
        if not token or not dataset_id:
            logger.warning("Bright Data credentials not set, skipping YouTube")
            return []

        payload: dict = {"keyword": keyword, "num_of_posts": limit}
        if start_date is not None:
            payload["start_date"] = format_bright_data_date(start_date)
        if end_date is not None:
            payload["end_date"] = format_bright_data_date(end_date)

        headers = {"Authorization": f"Bearer {token}"}
        async with self.http(timeout=30) as client:
            resp = await client.post(
                BRIGHT_DATA_TRIGGER_URL,
                params={"dataset_id": dataset_id, "format": "json"},
                json=[payload],
                headers=headers,
            )
            resp.raise_for_status()
            snapshot_id = resp.json().get("snapshot_id")
            if not snapshot_id:
                logger.error("Bright Data returned no snapshot_id for '%s'", keyword)
                return []

            logger.info("Waiting for Bright Data snapshot %s", snapshot_id)
            videos = await self._poll_snapshot(client, snapshot_id, headers)

        return map_records(videos, YouTubeVideo, normalize_youtube_video, self.platform)

    async def _poll_snapshot(
        self, client: httpx.AsyncClient, snapshot_id: str, headers: dict
    ) -> list[dict]:
        url = BRIGHT_DATA_SNAPSHOT_URL.format(snapshot_id=snapshot_id)
        attempts = self._config.bright_data_poll_attempts
        for attempt in range(attempts):
            try:
                resp = await client.get(url, params={"format": "json"}, headers=headers)
                if resp.status_code == 200:
                    results = resp.json()
                    if isinstance(results, list) and results:
                        return results
            except (httpx.HTTPError, ValueError) as e:
                logger.warning("Snapshot poll attempt %d failed: %s", attempt + 1, e)

            if attempt < attempts - 1:
                await asyncio.sleep(self._config.bright_data_poll_delay_secs)

        logger.warning("Snapshot %s not ready after %d attempts", snapshot_id, attempts)
        return []
