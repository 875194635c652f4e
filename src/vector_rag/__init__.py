"""
vector-rag — Retrieval-Augmented Generation over a SQL vector store.

Quick start:
    from vector_rag import SimpleRAG, configure_logging

    configure_logging()
    rag = SimpleRAG()
    rag.ingest(["https://example.com/docs/vector-search"], reset=True)
    response = rag.query("How are vectors compared?")
    print(response.answer)

Pipeline stages are also usable on their own; see vector_rag.indexing,
vector_rag.retrieval and vector_rag.generation.
"""

from vector_rag.config import (
    ChunkingConfig,
    EmbeddingConfig,
    LLMConfig,
    LoaderConfig,
    LoggingConfig,
    RAGConfig,
    RetrieverConfig,
    VectorStoreConfig,
)
from vector_rag.exceptions import (
    ConfigurationError,
    DimensionMismatchError,
    EmbeddingServiceError,
    FetchError,
    GenerationServiceError,
    IngestionCancelledError,
    InvalidArgumentError,
    RAGError,
    StoreUnavailableError,
)
from vector_rag.techniques import SimpleRAG
from vector_rag.utils.log import configure_logging

__all__ = [
    # Techniques (public API)
    "SimpleRAG",
    # Config
    "LLMConfig",
    "EmbeddingConfig",
    "ChunkingConfig",
    "LoaderConfig",
    "RetrieverConfig",
    "VectorStoreConfig",
    "LoggingConfig",
    "RAGConfig",
    # Errors
    "RAGError",
    "FetchError",
    "ConfigurationError",
    "InvalidArgumentError",
    "DimensionMismatchError",
    "EmbeddingServiceError",
    "GenerationServiceError",
    "StoreUnavailableError",
    "IngestionCancelledError",
    # Logging
    "configure_logging",
]

__version__ = "0.1.0"
