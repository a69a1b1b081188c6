import logging

from signal_scout.ai.embeddings import (
    Embedder,
    generate_batch_embeddings,
    prepare_text_for_embedding,
)
from signal_scout.analysis.quality import analyze_quality, classify_domain
from signal_scout.analysis.sentiment import analyze_sentiment, extract_pain_points, is_problem_post
from signal_scout.config import Settings, settings
from signal_scout.models import Signal

from .filtering import filter_and_process

logger = logging.getLogger(__name__)


def analyze(signal: Signal) -> Signal:
    """Attach sentiment, quality metrics, domain and pain points to a signal in place.

    Posts that read like a complaint get a ``problem`` tag, which the
    problems-only search filter matches on.
    """
    text = signal.full_text
    signal.sentiment = analyze_sentiment(text)
    signal.quality = analyze_quality(text)
    signal.domain_context = classify_domain(text, signal.tags)
    signal.pain_points = extract_pain_points(text)
    if is_problem_post(text, signal.sentiment) and "problem" not in (t.lower() for t in signal.tags):
        signal.tags.append("problem")
    return signal


class EnrichmentPipeline:
    """analyze -> filter/score -> embed. Embedding failures propagate."""

    def __init__(self, embedder: Embedder, config: Settings = settings):
        self._embedder = embedder
        self._config = config

    async def run(self, signals: list[Signal], query: str | None = None) -> list[Signal]:
        if not signals:
            return []

        for signal in signals:
            analyze(signal)

        processed = filter_and_process(
            signals, query=query, min_quality=self._config.min_quality_score
        )
        if not processed:
            logger.info("No signals survived filtering")
            return []

        texts = [prepare_text_for_embedding(s) for s in processed]
        embeddings = await generate_batch_embeddings(
            self._embedder,
            texts,
            batch_size=self._config.embedding_batch_size,
            delay_secs=self._config.embedding_batch_delay_secs,
        )
        for signal, embedding in zip(processed, embeddings):
            signal.embedding = embedding

        logger.info("Enriched %d of %d signals", len(processed), len(signals))
        return processed
