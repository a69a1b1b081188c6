"""Noise removal, composite quality scoring, tag enhancement and query relevance.

``filter_and_process`` chains the stages in a fixed order:

1. noise removal
2. deduplication
3. composite quality filter
4. tag enhancement
5. relevance + freshness (only when a query is given)

Every stage is deterministic, so re-running the pipeline on its own output
with the same query removes nothing and keeps the order.
"""

import logging
import re
from datetime import datetime

from signal_scout.models import Signal, utcnow

from .dedup import dedupe

logger = logging.getLogger(__name__)

DEFAULT_MIN_QUALITY = 40.0
MAX_TAGS = 20
MAX_PRODUCT_MENTIONS = 5

_DELETION_MARKERS = ("[deleted]", "[removed]")
_DELETED_AUTHORS = {"", "deleted", "[deleted]"}

PROBLEM_KEYWORDS = [
    "problem", "issue", "challenge", "difficult", "struggle", "pain", "frustration",
    "broken", "slow", "expensive", "waste", "inefficient", "annoying", "confusing",
    "lacking", "missing", "need", "want", "wish", "hope", "better", "improve",
]

SOLUTION_KEYWORDS = [
    "solution", "tool", "app", "platform", "service", "software", "product",
    "alternative", "replacement", "instead", "better than", "competitor",
]

TECH_KEYWORDS = [
    "ai", "ml", "machine learning", "saas", "api", "sdk", "cloud",
    "mobile", "web", "desktop", "automation", "analytics", "data",
    "remote", "virtual", "distributed", "async", "realtime",
]

_PRODUCT_PATTERNS = [
    re.compile(r"using (\w+)"),
    re.compile(r"with (\w+)"),
    re.compile(r"(\w+) is"),
    re.compile(r"(\w+) has"),
    re.compile(r"alternative to (\w+)"),
    re.compile(r"instead of (\w+)"),
]


def _has_keyword(text: str, keyword: str) -> bool:
    return re.search(rf"\b{re.escape(keyword)}\b", text) is not None


# ---------------------------------------------------------------------------
# Stage 1: noise
# ---------------------------------------------------------------------------


def is_noise(signal: Signal, now: datetime | None = None) -> bool:
    if any(marker in signal.body for marker in _DELETION_MARKERS):
        return True
    if len(signal.body) < 50 and len(signal.title) < 20:
        return True
    if signal.quality is not None and signal.quality.spam_score > 0.7:
        return True
    if signal.age_days(now) > 30 and signal.engagement == 0:
        return True
    return False


def remove_noise(signals: list[Signal], now: datetime | None = None) -> list[Signal]:
    return [s for s in signals if not is_noise(s, now)]


# ---------------------------------------------------------------------------
# Stage 3: composite quality
# ---------------------------------------------------------------------------


def quality_score(signal: Signal, now: datetime | None = None) -> float:
    """Composite 0-100 score blending engagement, spam absence and recency."""
    score = 50.0

    score += min(30.0, (signal.score + signal.num_comments * 2) / 10)

    if signal.quality is not None:
        score += (1 - signal.quality.spam_score) * 10
        score += 10 if signal.quality.word_count > 50 else 5

    age = signal.age_days(now)
    if age < 7:
        score += 10
    elif age < 30:
        score += 5

    if signal.author.strip().lower() not in _DELETED_AUTHORS:
        score += 5

    return max(0.0, min(100.0, score))


def filter_by_quality(
    signals: list[Signal],
    min_score: float = DEFAULT_MIN_QUALITY,
    now: datetime | None = None,
) -> list[Signal]:
    return [s for s in signals if quality_score(s, now) >= min_score]


# ---------------------------------------------------------------------------
# Stage 4: tags
# ---------------------------------------------------------------------------


def extract_product_mentions(text: str) -> list[str]:
    mentions: list[str] = []
    for pattern in _PRODUCT_PATTERNS:
        for match in pattern.finditer(text):
            word = match.group(1)
            if word and len(word) > 3:
                mentions.append(word)
    return mentions[:MAX_PRODUCT_MENTIONS]


def extract_enhanced_tags(signal: Signal) -> list[str]:
    text = signal.full_text.lower()
    candidates = list(signal.tags)

    if any(_has_keyword(text, kw) for kw in PROBLEM_KEYWORDS):
        candidates.append("problem")
    if any(_has_keyword(text, kw) for kw in SOLUTION_KEYWORDS):
        candidates.append("solution")
    candidates.extend(kw.replace(" ", "-") for kw in TECH_KEYWORDS if _has_keyword(text, kw))
    candidates.extend(extract_product_mentions(text))

    tags: list[str] = []
    seen: set[str] = set()
    for tag in candidates:
        key = tag.strip().lower()
        if not key or key in seen:
            continue
        seen.add(key)
        tags.append(tag.strip())
    return tags[:MAX_TAGS]


# ---------------------------------------------------------------------------
# Stage 5: relevance + freshness
# ---------------------------------------------------------------------------


def _partial_ratio(query_words: list[str], haystack: str) -> float:
    matching = [w for w in query_words if len(w) > 3 and w in haystack]
    return len(matching) / len(query_words)


def calculate_relevance_score(signal: Signal, query: str) -> float:
    query_lower = query.lower().strip()
    if not query_lower:
        return 0.0
    query_words = query_lower.split()
    title = signal.title.lower()
    body = signal.body.lower()

    relevance = 0.0

    if query_lower in title:
        relevance += 50
    else:
        relevance += _partial_ratio(query_words, title) * 30

    if query_lower in body:
        relevance += 30
    else:
        relevance += _partial_ratio(query_words, body) * 20

    for tag in signal.tags:
        tag_lower = tag.lower()
        if tag_lower and (tag_lower in query_lower or query_lower in tag_lower):
            relevance += 5

    relevance += min(10.0, signal.engagement / 100)

    return min(100.0, relevance)


def freshness_multiplier(signal: Signal, now: datetime | None = None) -> float:
    age = signal.age_days(now)
    if age < 1:
        return 1.5
    if age < 7:
        return 1.3
    if age < 30:
        return 1.1
    if age > 365:
        return 0.7
    return 1.0


def apply_freshness_boost(signals: list[Signal], now: datetime | None = None) -> list[Signal]:
    for signal in signals:
        signal.relevance_score = (signal.relevance_score or 0.0) * freshness_multiplier(signal, now)
    return signals


# ---------------------------------------------------------------------------
# Full pipeline
# ---------------------------------------------------------------------------


def filter_and_process(
    signals: list[Signal],
    query: str | None = None,
    min_quality: float = DEFAULT_MIN_QUALITY,
    now: datetime | None = None,
) -> list[Signal]:
    now = now or utcnow()
    logger.info("Post processing: starting with %d signals", len(signals))

    processed = remove_noise(signals, now)
    logger.info("Post processing: %d after noise removal", len(processed))

    processed = dedupe(processed)
    logger.info("Post processing: %d after deduplication", len(processed))

    processed = filter_by_quality(processed, min_quality, now)
    logger.info("Post processing: %d after quality filter (min=%.0f)", len(processed), min_quality)

    for signal in processed:
        signal.tags = extract_enhanced_tags(signal)

    if query:
        for signal in processed:
            signal.relevance_score = calculate_relevance_score(signal, query)
        processed.sort(key=lambda s: s.relevance_score or 0.0, reverse=True)
        apply_freshness_boost(processed, now)

    logger.info("Post processing: %d signals kept", len(processed))
    return processed
