"""
Indexing pipeline: load → chunk → embed → store.

Usage:
    from vector_rag.indexing import DocumentLoader, get_chunker, EmbeddingFunction, create_vector_store
"""

from .chunking import CharacterChunker, TokenChunker, get_chunker, split
from .embeddings import EmbeddingFunction, get_embedding_model
from .ingest import IngestPipeline
from .loading import DocumentLoader
from .vectorstore import SQLVectorStore, create_vector_store

__all__ = [
    # Loading
    "DocumentLoader",
    # Chunkers
    "get_chunker",
    "split",
    "CharacterChunker",
    "TokenChunker",
    # Embeddings
    "get_embedding_model",
    "EmbeddingFunction",
    # Vector store
    "SQLVectorStore",
    "create_vector_store",
    # Pipeline
    "IngestPipeline",
]
