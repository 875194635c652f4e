"""
Abstract base class for vector stores.

The store is the only stateful component in the pipeline. Everything
upstream (loader, chunker) and downstream (retriever, engine) is a pure
function of its inputs plus whatever the store holds.
"""

from abc import ABC, abstractmethod
from threading import Event
from typing import Callable, Optional, Sequence

from vector_rag.models.document import Chunk
from vector_rag.models.result import RetrievalResult

EmbeddingFn = Callable[[str], list[float]]


class BaseVectorStore(ABC):
    """
    Contract for vector stores.

    Writers (reset_schema, add) are serialised against each other.
    Readers (similarity_search) never observe a half-written batch.
    """

    dimension: int

    @abstractmethod
    def reset_schema(self) -> None:
        """Drop and recreate the backing storage. Idempotent."""
        ...

    @abstractmethod
    def add(
        self,
        chunks: Sequence[Chunk],
        embedding_fn: EmbeddingFn,
        cancel_event: Optional[Event] = None,
    ) -> list[int]:
        """
        Embed and persist chunks.

        Args:
            chunks: Chunks to store, in order.
            embedding_fn: Maps chunk text to a vector of the store's dimension.
            cancel_event: When set, stop before the next chunk and commit what's done.

        Returns:
            Ids assigned to the new records, in insertion order.
        """
        ...

    @abstractmethod
    def similarity_search(self, query_embedding: Sequence[float], k: int) -> list[RetrievalResult]:
        """
        Return up to k records closest to query_embedding, closest first.

        Ties are broken by insertion order (lower id first).
        """
        ...

    @abstractmethod
    def count(self) -> int:
        """Number of records currently stored."""
        ...
