"""Exception types raised across collection, enrichment and retrieval."""


class SignalScoutError(Exception):
    """Base class for all signal_scout errors."""


class InvalidQueryError(SignalScoutError, ValueError):
    """Raised when a query or its filters are rejected before any work starts."""


class CollectorError(SignalScoutError):
    """Raised inside a platform collector when its API returns an unusable response."""


class EmbeddingError(SignalScoutError):
    """Raised when the embedding service fails or returns no vector."""


class IndexingError(SignalScoutError):
    """Raised when a bulk write to the search index does not fully succeed."""

    def __init__(self, message: str, failed_ids: list[str] | None = None):
        super().__init__(message)
        self.failed_ids = failed_ids or []
