"""Unit tests for duplicate detection."""

from datetime import datetime, timezone

from signal_scout.models import Platform, Signal
from signal_scout.pipeline.dedup import dedupe
from signal_scout.pipeline.normalizer import normalize_query, normalize_title, normalize_url


def _make(
    id: str,
    title: str = "A title",
    url: str = "https://example.com/a",
    score: int = 0,
    comments: int = 0,
) -> Signal:
    return Signal(
        id=id,
        platform=Platform.HACKERNEWS,
        title=title,
        body="body",
        author="someone",
        url=url,
        created_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
        score=score,
        num_comments=comments,
    )


class TestNormalizer:
    def test_url_drops_scheme_www_and_tracking(self) -> None:
        assert normalize_url("HTTPS://www.Example.com/post?utm_source=x#top") == "example.com/post"

    def test_url_keeps_identity_params(self) -> None:
        a = normalize_url("https://www.youtube.com/watch?v=abc&t=30")
        b = normalize_url("https://www.youtube.com/watch?v=xyz")
        assert a == "youtube.com/watch?v=abc"
        assert a != b

    def test_title(self) -> None:
        assert normalize_title("  Show HN:   My   Tool! ") == "show hn my tool"

    def test_title_truncated(self) -> None:
        assert len(normalize_title("x" * 300)) == 100

    def test_query(self) -> None:
        assert normalize_query("  Remote Work ") == "remote work"


class TestDedupe:
    def test_same_url_keeps_higher_engagement(self) -> None:
        low = _make("hn_1", title="first", score=5)
        high = _make("hn_2", title="second", score=3, comments=10)
        result = dedupe([low, high])
        assert [s.id for s in result] == ["hn_2"]

    def test_same_title_different_url(self) -> None:
        a = _make("hn_1", title="Same Title!", url="https://a.com", score=10)
        b = _make("hn_2", title="same title", url="https://b.com", score=1)
        assert [s.id for s in dedupe([b, a])] == ["hn_1"]

    def test_tie_keeps_first_seen(self) -> None:
        a = _make("hn_1", title="one", score=4)
        b = _make("hn_2", title="two", score=4)
        assert [s.id for s in dedupe([a, b])] == ["hn_1"]

    def test_winner_takes_over_loser_keys(self) -> None:
        # b beats a by URL; c shares only a's title and must not survive beside b
        a = _make("hn_1", title="alpha", url="https://x.com/1", score=1)
        b = _make("hn_2", title="beta", url="https://x.com/1", score=50)
        c = _make("hn_3", title="alpha", url="https://y.com/2", score=10)
        result = dedupe([a, b, c])
        assert [s.id for s in result] == ["hn_2"]

    def test_same_id(self) -> None:
        a = _make("hn_1", title="one", url="https://a.com", score=1)
        b = _make("hn_1", title="two", url="https://b.com", score=2)
        assert len(dedupe([a, b])) == 1

    def test_distinct_sorted_by_engagement(self) -> None:
        a = _make("hn_1", title="one", url="https://a.com", score=1)
        b = _make("hn_2", title="two", url="https://b.com", score=9)
        c = _make("hn_3", title="three", url="https://c.com", comments=5)
        assert [s.id for s in dedupe([a, b, c])] == ["hn_2", "hn_3", "hn_1"]

    def test_empty(self) -> None:
        assert dedupe([]) == []
