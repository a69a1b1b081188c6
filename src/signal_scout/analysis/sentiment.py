"""Lexicon-based sentiment scoring for signal text.

Each word found in the positive or negative lexicon contributes +/-1. A
preceding negation flips the sign and a preceding intensifier doubles it.
"""

import re

from signal_scout.models import SentimentScore

POSITIVE_WORDS = {
    "good", "great", "excellent", "amazing", "awesome", "fantastic", "wonderful",
    "love", "best", "perfect", "happy", "thanks", "thank", "solved", "working",
    "success", "useful", "helpful", "easy", "simple", "better", "improved",
    "innovative", "excited", "brilliant", "outstanding", "recommend", "win",
}

NEGATIVE_WORDS = {
    "bad", "terrible", "awful", "horrible", "worst", "hate", "sucks", "poor",
    "broken", "fail", "failed", "error", "bug", "issue", "problem", "struggling",
    "frustrated", "annoying", "difficult", "hard", "impossible", "slow",
    "confusing", "complicated", "useless", "waste", "disappointed", "wrong",
}

INTENSIFIERS = {"very", "really", "extremely", "absolutely", "totally"}

# Tokens are compared after punctuation is stripped, so "don't" arrives as "dont".
NEGATIONS = {
    "not", "no", "never", "none", "nobody", "nothing",
    "dont", "doesnt", "didnt", "isnt", "wasnt", "cant", "wont",
}

_NON_WORD = re.compile(r"[^\w]")

_PROBLEM_INDICATORS = [
    "problem", "issue", "struggling", "difficulty", "frustrated", "help",
    "how to", "how do", "cant", "can't", "stuck", "broken", "not working",
    "need", "looking for", "any suggestions", "advice", "tips",
]

_PAIN_POINT_PATTERNS = [
    re.compile(
        r"(?:struggling with|problem with|issue with|difficult to|hard to|frustrated by)\s+([^,.!?]+)",
        re.IGNORECASE,
    ),
    re.compile(
        r"(?:need|want|looking for|wish there was)\s+(?:a|an|some)?\s*([^,.!?]+)",
        re.IGNORECASE,
    ),
    re.compile(r"(?:why (?:is|are|does)|how (?:do|can))\s+([^?]+)", re.IGNORECASE),
]


def _clean(token: str) -> str:
    return _NON_WORD.sub("", token)


def analyze_sentiment(text: str) -> SentimentScore:
    tokens = [_clean(t) for t in text.lower().split()]
    score = 0.0
    positive_count = 0
    negative_count = 0

    for i, word in enumerate(tokens):
        previous = tokens[i - 1] if i > 0 else ""
        negated = previous in NEGATIONS
        multiplier = 2 if previous in INTENSIFIERS else 1

        if word in POSITIVE_WORDS:
            word_score = -1 if negated else 1
        elif word in NEGATIVE_WORDS:
            word_score = 1 if negated else -1
        else:
            continue

        score += word_score * multiplier
        if word_score > 0:
            positive_count += 1
        else:
            negative_count += 1

    token_count = len(tokens)
    comparative = score / token_count if token_count else 0.0

    if score > 0.5:
        label = "positive"
    elif score < -0.5:
        label = "negative"
    else:
        label = "neutral"

    sentiment_words = positive_count + negative_count
    confidence = min(sentiment_words / max(token_count / 10, 1), 1.0)

    return SentimentScore(
        score=score,
        comparative=comparative,
        label=label,
        confidence=confidence,
    )


def is_problem_post(text: str, sentiment: SentimentScore) -> bool:
    """True when the text reads like someone describing a pain point."""
    lower = text.lower()
    if any(indicator in lower for indicator in _PROBLEM_INDICATORS):
        return True
    return sentiment.label == "negative" or sentiment.score < 0


def extract_pain_points(text: str) -> list[str]:
    pain_points: list[str] = []
    for pattern in _PAIN_POINT_PATTERNS:
        for match in pattern.finditer(text):
            if match.group(1):
                pain_points.append(match.group(1).strip())
    return pain_points
