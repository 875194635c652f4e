"""
Abstract base classes defining the contract for each pipeline stage.

Import from here:
    from vector_rag.base import BaseLoader, BaseChunker, BaseVectorStore, BaseRetriever
"""

from .indexer import BaseChunker, BaseLoader, validate_window
from .retriever import BaseRetriever
from .store import BaseVectorStore, EmbeddingFn

__all__ = [
    "BaseLoader",
    "BaseChunker",
    "BaseVectorStore",
    "BaseRetriever",
    "EmbeddingFn",
    "validate_window",
]
