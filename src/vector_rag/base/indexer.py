"""
Abstract base classes for document loading and chunking.

Loading and chunking are separate so either can be swapped on its own:
    loader = DocumentLoader(LoaderConfig())
    chunker = get_chunker(ChunkingConfig(unit="token", chunk_size=512))
    chunks = chunker.split(loader.load(urls).documents)
"""

from abc import ABC, abstractmethod
from typing import Sequence

from vector_rag.config import ChunkingConfig
from vector_rag.exceptions import ConfigurationError
from vector_rag.models.document import Chunk, RawDocument
from vector_rag.models.result import LoadResult


class BaseLoader(ABC):
    """
    Contract for document loaders.

    A loader turns source identifiers (URLs, file paths) into RawDocuments.
    It does NOT chunk. Per-source failures are recorded in the LoadResult
    rather than aborting the batch.
    """

    @abstractmethod
    def load(self, sources: Sequence[str]) -> LoadResult:
        """
        Load every source, isolating failures per source.

        Args:
            sources: URLs or file paths, in the order they should be loaded.

        Returns:
            LoadResult with the documents that loaded and the sources that failed.
        """
        ...


class BaseChunker(ABC):
    """
    Contract for document chunkers.

    Every chunker receives a ChunkingConfig so the caller controls
    chunk_size and overlap. Implementations must be deterministic.
    """

    def __init__(self, config: ChunkingConfig):
        validate_window(config.chunk_size, config.chunk_overlap)
        self.config = config

    @abstractmethod
    def split(self, documents: Sequence[RawDocument]) -> list[Chunk]:
        """
        Split documents into overlapping chunks.

        Args:
            documents: Cleaned documents from a loader.

        Returns:
            Chunks in document order, then position order.
        """
        ...


def validate_window(chunk_size: int, overlap: int) -> None:
    """Raise ConfigurationError unless 0 <= overlap < chunk_size."""
    if chunk_size <= 0:
        raise ConfigurationError(f"chunk_size must be positive, got {chunk_size}")
    if overlap < 0:
        raise ConfigurationError(f"overlap must be non-negative, got {overlap}")
    if overlap >= chunk_size:
        raise ConfigurationError(
            f"overlap ({overlap}) must be less than chunk_size ({chunk_size})"
        )
