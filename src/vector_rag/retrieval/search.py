"""
Vector store retrieval.

A retriever is a vector store bound to the embedding function it was
filled with. It embeds the question and hands the vector to
similarity_search, so the caller only ever deals in text.

Usage:
    from vector_rag.retrieval.search import SimilarityRetriever
    from vector_rag.config import RetrieverConfig

    retriever = SimilarityRetriever(store, embedding_fn, RetrieverConfig(k=5))
    results = retriever.retrieve("What is RAG?")
    # → up to 5 RetrievalResults, closest first
"""

from typing import Optional

from vector_rag.base.retriever import BaseRetriever
from vector_rag.base.store import BaseVectorStore, EmbeddingFn
from vector_rag.config import RetrieverConfig
from vector_rag.models.result import RetrievalResult
from vector_rag.utils.log import get_logger

logger = get_logger(__name__)


class SimilarityRetriever(BaseRetriever):
    """
    Nearest-neighbour search by Euclidean distance.

    Results carry the raw distance (0 = identical). No score
    normalisation: the engine only needs the order, and callers that
    want a cut-off can apply it to distance directly.
    """

    def __init__(
        self,
        store: BaseVectorStore,
        embedding_fn: EmbeddingFn,
        config: RetrieverConfig = None,
    ):
        self._store = store
        self._embed = embedding_fn
        self._config = config or RetrieverConfig()

    @property
    def store(self) -> BaseVectorStore:
        return self._store

    def retrieve(self, query: str, k: Optional[int] = None) -> list[RetrievalResult]:
        k = self._config.k if k is None else k
        results = self._store.similarity_search(self._embed(query), k)

        logger.info(
            "chunks_retrieved",
            k=k,
            results=len(results),
            best_distance=results[0].distance if results else None,
        )
        return results
