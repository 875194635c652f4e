"""
Shared test fixtures for the vector-rag test suite.

Provides reusable fixtures: sample documents, configs, in-memory stores
and embedding functions that need no network access.
"""

from unittest.mock import MagicMock

import pytest
from langchain_core.embeddings import DeterministicFakeEmbedding

from vector_rag.config import ChunkingConfig, EmbeddingConfig, RetrieverConfig, VectorStoreConfig
from vector_rag.indexing.embeddings import EmbeddingFunction
from vector_rag.indexing.vectorstore import SQLVectorStore
from vector_rag.models.document import Chunk, RawDocument
from vector_rag.models.result import RetrievalResult


# ---------------------------------------------------------------------------
# Config fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def chunking_config():
    return ChunkingConfig(chunk_size=2048, chunk_overlap=256)


@pytest.fixture
def retriever_config():
    return RetrieverConfig(k=5)


@pytest.fixture
def store_config():
    """A 4-dimensional in-memory store — small enough to write vectors by hand."""
    return VectorStoreConfig(database_url="sqlite://", dimension=4)


# ---------------------------------------------------------------------------
# Store / embedding fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def store(store_config):
    store = SQLVectorStore(store_config)
    yield store
    store.close()


@pytest.fixture
def fake_embedding_fn():
    """Deterministic 8-dimensional embeddings: the same text always gets the same vector."""
    return EmbeddingFunction(
        EmbeddingConfig(provider="fake", model_name="deterministic", dimensions=8),
        model=DeterministicFakeEmbedding(size=8),
    )


def lookup_embedding(vectors: dict[str, list[float]]):
    """Embedding function that returns hand-written vectors keyed by text."""

    def embed(text: str) -> list[float]:
        return vectors[text]

    return embed


@pytest.fixture
def make_lookup_embedding():
    return lookup_embedding


# ---------------------------------------------------------------------------
# Sample data fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def sample_documents():
    """Cleaned documents as the loader would produce them."""
    return [
        RawDocument(
            source="https://example.com/vector-search",
            title="Vector search",
            text="Vector search finds the stored embeddings closest to a query embedding.\n"
                 "Distance is measured with the Euclidean metric.",
        ),
        RawDocument(
            source="https://example.com/rag",
            title="RAG",
            text="Retrieval-Augmented Generation retrieves relevant text before generating an answer.",
        ),
    ]


@pytest.fixture
def sample_chunks():
    return [
        Chunk(text="alpha chunk", source="doc-a", title="A", chunk_index=0),
        Chunk(text="beta chunk", source="doc-a", title="A", chunk_index=1),
        Chunk(text="gamma chunk", source="doc-b", title=None, chunk_index=0),
    ]


@pytest.fixture
def sample_vectors():
    """Hand-written 4-d vectors for sample_chunks (exact in float32)."""
    return {
        "alpha chunk": [1.0, 0.0, 0.0, 0.0],
        "beta chunk": [0.0, 1.0, 0.0, 0.0],
        "gamma chunk": [0.0, 0.0, 1.0, 0.5],
    }


@pytest.fixture
def sample_results():
    return [
        RetrievalResult(id=1, content="RAG combines retrieval with generation.", source="doc1", distance=0.1),
        RetrievalResult(id=2, content="Vectors are compared by distance.", source="doc1", distance=0.4),
        RetrievalResult(id=3, content="Chunks overlap to keep context.", source="doc2", title="Chunking", distance=0.9),
    ]


# ---------------------------------------------------------------------------
# Mock fixtures
# ---------------------------------------------------------------------------

@pytest.fixture
def mock_retriever(sample_results):
    """A retriever that returns canned results without touching a store."""
    retriever = MagicMock()
    retriever.retrieve.return_value = sample_results
    return retriever


@pytest.fixture
def mock_generator():
    generator = MagicMock(return_value="Generated answer")
    return generator
