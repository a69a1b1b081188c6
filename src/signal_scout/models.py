"""Domain models shared by collectors, the enrichment pipeline and retrieval."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator


class Platform(str, Enum):
    REDDIT = "reddit"
    HACKERNEWS = "hackernews"
    PRODUCTHUNT = "producthunt"
    YOUTUBE = "youtube"


SentimentLabel = Literal["positive", "negative", "neutral"]


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class SentimentScore:
    score: float = 0.0
    comparative: float = 0.0
    label: SentimentLabel = "neutral"
    confidence: float = 0.0


@dataclass
class QualityMetrics:
    text_length: int = 0
    word_count: int = 0
    readability_score: float = 0.0
    has_code: bool = False
    has_links: bool = False
    spam_score: float = 0.0


@dataclass
class Signal:
    """One normalized content item from any platform."""

    id: str  # platform-prefixed, e.g. "reddit_abc123", "hn_4242"
    platform: Platform
    title: str
    body: str
    author: str
    url: str
    created_at: datetime
    score: int = 0
    num_comments: int = 0
    tags: list[str] = field(default_factory=list)
    pain_points: list[str] = field(default_factory=list)
    indexed_at: datetime = field(default_factory=utcnow)
    embedding: list[float] | None = None
    sentiment: SentimentScore | None = None
    quality: QualityMetrics | None = None
    domain_context: str | None = None
    relevance_score: float | None = None

    def __post_init__(self):
        self.score = max(int(self.score or 0), 0)
        self.num_comments = max(int(self.num_comments or 0), 0)
        if self.created_at.tzinfo is None:
            self.created_at = self.created_at.replace(tzinfo=timezone.utc)

    @property
    def engagement(self) -> int:
        return self.score + self.num_comments

    @property
    def full_text(self) -> str:
        return f"{self.title} {self.body}"

    def age_days(self, now: datetime | None = None) -> float:
        now = now or utcnow()
        return (now - self.created_at).total_seconds() / 86400

    def to_document(self) -> dict[str, Any]:
        """Index document. ``relevance_score`` is query-scoped and never persisted."""
        doc: dict[str, Any] = {
            "id": self.id,
            "platform": self.platform.value,
            "title": self.title,
            "content": self.body,
            "author": self.author,
            "url": self.url,
            "created_at": self.created_at.isoformat(),
            "score": self.score,
            "num_comments": self.num_comments,
            "tags": list(self.tags),
            "pain_points": list(self.pain_points),
            "indexed_at": self.indexed_at.isoformat(),
            "domain_context": self.domain_context,
        }
        if self.embedding is not None:
            doc["embedding"] = list(self.embedding)
        if self.sentiment is not None:
            doc["sentiment"] = vars(self.sentiment).copy()
        if self.quality is not None:
            doc["quality"] = vars(self.quality).copy()
        return doc

    @classmethod
    def from_document(cls, doc: dict[str, Any]) -> Signal:
        sentiment = doc.get("sentiment")
        quality = doc.get("quality")
        return cls(
            id=doc["id"],
            platform=Platform(doc["platform"]),
            title=doc.get("title") or "",
            body=doc.get("content") or "",
            author=doc.get("author") or "",
            url=doc.get("url") or "",
            created_at=_parse_datetime(doc.get("created_at")),
            score=doc.get("score") or 0,
            num_comments=doc.get("num_comments") or 0,
            tags=list(doc.get("tags") or []),
            pain_points=list(doc.get("pain_points") or []),
            indexed_at=_parse_datetime(doc.get("indexed_at")),
            embedding=doc.get("embedding"),
            sentiment=SentimentScore(**sentiment) if sentiment else None,
            quality=QualityMetrics(**quality) if quality else None,
            domain_context=doc.get("domain_context"),
        )

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly view for the HTTP layer (embedding omitted)."""
        doc = self.to_document()
        doc.pop("embedding", None)
        doc["body"] = doc.pop("content")
        doc["relevance_score"] = self.relevance_score
        return doc


def _parse_datetime(value: Any) -> datetime:
    if isinstance(value, datetime):
        return value
    if not value:
        return utcnow()
    parsed = datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


@dataclass
class CollectionRequest:
    """One orchestration call: a query plus which platforms to hit and how much."""

    query: str
    platforms: list[Platform]
    quotas: dict[Platform, int]

    def quota_for(self, platform: Platform) -> int:
        return self.quotas.get(platform, 10)


class DateRange(BaseModel):
    model_config = {"populate_by_name": True}

    from_: datetime = Field(alias="from")
    to: datetime


class SearchFilters(BaseModel):
    platforms: list[Platform] = Field(default_factory=list)
    date_range: DateRange | None = None
    min_score: int | None = Field(default=None, ge=0)
    tags: list[str] = Field(default_factory=list)
    keywords: list[str] = Field(default_factory=list)
    sentiment: SentimentLabel | None = None
    domains: list[str] = Field(default_factory=list)
    min_quality: float | None = Field(default=None, ge=0, le=1)
    problems_only: bool = False


class SearchQuery(BaseModel):
    query: str
    filters: SearchFilters = Field(default_factory=SearchFilters)
    limit: int = Field(default=20, ge=1, le=100)
    offset: int = Field(default=0, ge=0)
    use_reranking: bool = False

    @field_validator("query")
    @classmethod
    def _strip_query(cls, value: str) -> str:
        value = value.strip()
        if not value:
            raise ValueError("query must be a non-empty string")
        return value


@dataclass
class SearchResponse:
    query: str
    results: list[Signal]
    total_results: int
    search_time_ms: int

    def to_dict(self) -> dict[str, Any]:
        return {
            "query": self.query,
            "results": [s.to_dict() for s in self.results],
            "total_results": self.total_results,
            "search_time_ms": self.search_time_ms,
        }
