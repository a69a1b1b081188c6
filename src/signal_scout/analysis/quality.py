"""Content quality metrics and keyword-based domain classification."""

import re

from signal_scout.models import QualityMetrics

_CODE_PATTERN = re.compile(r"```|`[^`]+`|function |class |import |const |let |var ")
_LINK_PATTERN = re.compile(r"https?://|www\.", re.IGNORECASE)
_URL_PATTERN = re.compile(r"https?://")
_SENTENCE_SPLIT = re.compile(r"[.!?]+")
_EMOJI_PATTERN = re.compile(r"[\U0001F300-\U0001FAFF\u2600-\u27BF]")

_SPAM_PATTERNS = [
    re.compile(
        r"\b(buy now|click here|limited time|act now|free money|earn \$|make money fast)",
        re.IGNORECASE,
    ),
    re.compile(r"\b(viagra|casino|lottery|prize|winner)\b", re.IGNORECASE),
    re.compile(r"!!!"),
    re.compile(r"[A-Z]{10,}"),
    re.compile(r"(.)\1{4,}"),
]

MAX_UNSTRUCTURED_WORDS = 500

# Ordered: earlier domains win ties.
DOMAIN_KEYWORDS: dict[str, list[str]] = {
    "remote_work": ["remote", "work from home", "wfh", "distributed", "async", "remote team"],
    "saas": ["saas", "subscription", "b2b", "software as a service", "cloud"],
    "ai_tools": ["ai", "machine learning", "gpt", "llm", "chatbot", "artificial intelligence"],
    "developer_tools": ["api", "sdk", "cli", "developer", "code", "github", "programming"],
    "productivity": ["productivity", "workflow", "automation", "efficiency", "task management"],
    "marketing": ["marketing", "seo", "content", "social media", "email marketing", "growth"],
    "ecommerce": ["ecommerce", "shopify", "online store", "dropshipping", "marketplace"],
    "fintech": ["fintech", "banking", "payment", "crypto", "blockchain", "finance"],
    "health_tech": ["health", "medical", "healthcare", "fitness", "wellness", "mental health"],
    "education": ["education", "learning", "course", "teaching", "student", "edtech"],
}

DEFAULT_DOMAIN = "general"


def analyze_quality(text: str) -> QualityMetrics:
    words = text.split()
    return QualityMetrics(
        text_length=len(text),
        word_count=len(words),
        readability_score=_readability(text, words),
        has_code=bool(_CODE_PATTERN.search(text)),
        has_links=bool(_LINK_PATTERN.search(text)),
        spam_score=_spam_score(text, words),
    )


def _clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def _readability(text: str, words: list[str]) -> float:
    """0-1, higher is easier to read. Penalizes long words and long sentences."""
    if not words:
        return 0.0

    sentences = [s for s in _SENTENCE_SPLIT.split(text) if s.strip()]
    sentence_count = max(len(sentences), 1)

    avg_word_length = sum(len(w) for w in words) / len(words)
    avg_sentence_length = len(words) / sentence_count

    word_length_score = _clamp(1 - (avg_word_length - 4) / 10)
    sentence_length_score = _clamp(1 - (avg_sentence_length - 15) / 30)

    return (word_length_score + sentence_length_score) / 2


def _spam_score(text: str, words: list[str]) -> float:
    indicators = sum(1 for pattern in _SPAM_PATTERNS if pattern.search(text))

    link_count = len(_URL_PATTERN.findall(text))
    if link_count > 3:
        indicators += min(link_count - 3, 3)

    if len(_EMOJI_PATTERN.findall(text)) > 5:
        indicators += 1

    # Wall of text: very long with no line breaks at all.
    if len(words) > MAX_UNSTRUCTURED_WORDS and "\n" not in text:
        indicators += 1

    return min(indicators / 5, 1.0)


def _contains_keyword(haystack: str, keyword: str) -> bool:
    return re.search(rf"\b{re.escape(keyword)}\b", haystack) is not None


def classify_domain(text: str, tags: list[str]) -> str:
    lower_text = text.lower()
    all_tags = " ".join(t.lower() for t in tags)

    best_domain = DEFAULT_DOMAIN
    max_matches = 0

    for domain, keywords in DOMAIN_KEYWORDS.items():
        matches = sum(
            1
            for kw in keywords
            if _contains_keyword(lower_text, kw) or _contains_keyword(all_tags, kw)
        )
        if matches > max_matches:
            max_matches = matches
            best_domain = domain

    return best_domain
