"""
Error kinds raised by the pipeline.

Everything derives from RAGError so callers can catch the whole family.
Argument errors also derive from ValueError, matching what callers
already expect from bad input.

Only FetchError is isolated (per source, inside DocumentLoader.load).
Every other error aborts the operation that raised it.
"""

from typing import Optional


class RAGError(Exception):
    """Base class for all pipeline errors."""


class FetchError(RAGError):
    """A source could not be fetched (unreachable, not found, empty)."""

    def __init__(self, source: str, message: str):
        super().__init__(f"Failed to fetch '{source}': {message}")
        self.source = source
        self.message = message


class ConfigurationError(RAGError, ValueError):
    """Invalid chunking or pipeline parameters."""


class InvalidArgumentError(RAGError, ValueError):
    """An argument is out of range (e.g. k <= 0, blank question)."""


class DimensionMismatchError(RAGError, ValueError):
    """An embedding does not match the store's configured dimension."""

    def __init__(
        self,
        expected: int,
        actual: int,
        chunk_index: Optional[int] = None,
        records_committed: int = 0,
    ):
        where = f" (chunk {chunk_index})" if chunk_index is not None else ""
        super().__init__(
            f"Embedding dimension mismatch{where}: expected {expected}, got {actual}"
        )
        self.expected = expected
        self.actual = actual
        self.chunk_index = chunk_index
        self.records_committed = records_committed


class EmbeddingServiceError(RAGError):
    """The embedding provider failed. Not retried locally."""

    def __init__(
        self,
        message: str,
        chunk_index: Optional[int] = None,
        records_committed: int = 0,
    ):
        super().__init__(message)
        self.chunk_index = chunk_index
        self.records_committed = records_committed


class GenerationServiceError(RAGError):
    """The text-generation provider failed. Not retried locally."""


class StoreUnavailableError(RAGError):
    """The backing database could not be reached."""


class IngestionCancelledError(RAGError):
    """Ingestion was cancelled between chunks; the completed prefix is committed."""

    def __init__(self, records_committed: int):
        super().__init__(
            f"Ingestion cancelled after committing {records_committed} records"
        )
        self.records_committed = records_committed
