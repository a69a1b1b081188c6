import logging

from signal_scout.models import Signal

from .normalizer import normalize_title, normalize_url

logger = logging.getLogger(__name__)


def _keys(signal: Signal) -> list[str]:
    keys = [f"id:{signal.id}"]
    if url_key := normalize_url(signal.url):
        keys.append(f"url:{url_key}")
    if title_key := normalize_title(signal.title):
        keys.append(f"title:{title_key}")
    return keys


def dedupe(signals: list[Signal]) -> list[Signal]:
    """Collapse signals sharing a normalized URL, normalized title or id.

    Single greedy pass. On a collision the signal with the higher
    ``score + num_comments`` is kept; on an exact tie the one seen first
    stays. Every key that pointed at the loser is re-pointed at the winner,
    so two signals sharing any key never both survive.

    Returns the survivors sorted by engagement, descending.
    """
    kept: dict[str, Signal] = {}

    for signal in signals:
        keys = _keys(signal)

        rivals: list[Signal] = []
        for key in keys:
            existing = kept.get(key)
            if existing is not None and not any(existing is r for r in rivals):
                rivals.append(existing)

        winner = signal
        for rival in rivals:
            if rival.engagement >= winner.engagement:
                winner = rival

        losers = [s for s in [*rivals, signal] if s is not winner]
        if losers:
            for key, value in kept.items():
                if any(value is loser for loser in losers):
                    kept[key] = winner
        for key in keys:
            kept[key] = winner

    survivors: list[Signal] = []
    seen: set[int] = set()
    for signal in kept.values():
        if id(signal) not in seen:
            seen.add(id(signal))
            survivors.append(signal)

    # kept preserves first-insertion order, so the stable sort breaks ties by first seen.
    survivors.sort(key=lambda s: s.engagement, reverse=True)

    if len(survivors) != len(signals):
        logger.debug("Dedup: %d total -> %d unique", len(signals), len(survivors))
    return survivors
