import re

_SCHEME_WWW = re.compile(r"^https?://(www\.)?")
_PUNCTUATION = re.compile(r"[^\w\s]")
_WHITESPACE = re.compile(r"\s+")

TITLE_KEY_LENGTH = 100

# Query parameters that name the resource itself (youtube.com/watch?v=, news.ycombinator.com/item?id=).
IDENTITY_PARAMS = ("id", "v")


def normalize_url(url: str) -> str:
    """Normalize a URL for duplicate detection.

    Scheme, ``www.``, fragment and tracking query parameters are dropped;
    identity parameters survive so distinct videos/items keep distinct keys.
    """
    url = url.lower().strip()
    url = _SCHEME_WWW.sub("", url)
    url = url.split("#", 1)[0]
    base, _, query = url.partition("?")
    kept = [p for p in query.split("&") if p and p.split("=", 1)[0] in IDENTITY_PARAMS]
    if kept:
        return f"{base}?{'&'.join(kept)}"
    return base.strip()


def normalize_title(title: str) -> str:
    """Normalize a title for duplicate detection."""
    title = title.lower()
    title = _PUNCTUATION.sub("", title)
    # Collapse whitespace
    title = _WHITESPACE.sub(" ", title).strip()
    return title[:TITLE_KEY_LENGTH]


def normalize_query(query: str) -> str:
    """Normalize a search query for the collection queue and processed cache."""
    return query.strip().lower()
