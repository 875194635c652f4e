"""
Simple RAG: the write path and the read path behind one object.

    from vector_rag import SimpleRAG, RAGConfig

    rag = SimpleRAG(RAGConfig())
    report = rag.ingest(["https://example.com/docs/vector-search"], reset=True)
    response = rag.query("How do I create a vector index?")
    print(response.answer)

Every component is built from the RAGConfig slice it needs, and any of
them can be passed in instead (a pre-filled store, a custom generator,
a fake embedding model in tests). Nothing is shared through module
state: two SimpleRAG instances are fully independent.
"""

from threading import Event
from typing import Optional, Sequence

from vector_rag.base.indexer import BaseChunker, BaseLoader
from vector_rag.base.store import BaseVectorStore, EmbeddingFn
from vector_rag.config import RAGConfig
from vector_rag.generation.engine import QueryEngine
from vector_rag.generation.generate import Generator, LLMGenerator
from vector_rag.indexing.chunking import get_chunker
from vector_rag.indexing.embeddings import EmbeddingFunction
from vector_rag.indexing.ingest import IngestPipeline
from vector_rag.indexing.loading import DocumentLoader
from vector_rag.indexing.vectorstore import create_vector_store
from vector_rag.models.result import IngestReport, RAGResponse
from vector_rag.retrieval.search import SimilarityRetriever


class SimpleRAG:
    """
    Basic RAG pipeline: load → chunk → embed → store, then retrieve → generate.

    The same embedding function is wired into both the ingest pipeline
    and the retriever, so questions are always embedded with the model
    that produced the stored vectors.
    """

    def __init__(
        self,
        config: Optional[RAGConfig] = None,
        loader: Optional[BaseLoader] = None,
        chunker: Optional[BaseChunker] = None,
        embedding_fn: Optional[EmbeddingFn] = None,
        store: Optional[BaseVectorStore] = None,
        generator: Optional[Generator] = None,
    ):
        """
        Args:
            config: Settings for every stage; defaults throughout when None.
            loader: Replaces DocumentLoader(config.loader).
            chunker: Replaces get_chunker(config.chunking).
            embedding_fn: Replaces EmbeddingFunction(config.embedding).
            store: Replaces create_vector_store(config.vector_store).
            generator: Replaces LLMGenerator(config.llm). Any `(prompt) -> str` works.
        """
        self.config = config or RAGConfig()

        self._loader = loader or DocumentLoader(self.config.loader)
        self._chunker = chunker or get_chunker(self.config.chunking)
        self._embedding_fn = embedding_fn or EmbeddingFunction(self.config.embedding)
        self._store = store or create_vector_store(self.config.vector_store)
        self._generator = generator or LLMGenerator(self.config.llm)

        self._pipeline = IngestPipeline(
            loader=self._loader,
            chunker=self._chunker,
            store=self._store,
            embedding_fn=self._embedding_fn,
        )
        self._engine = QueryEngine(
            retriever=SimilarityRetriever(self._store, self._embedding_fn, self.config.retriever),
            generator=self._generator,
            config=self.config.retriever,
        )

    @property
    def store(self) -> BaseVectorStore:
        return self._store

    def ingest(
        self,
        sources: Sequence[str],
        reset: bool = False,
        cancel_event: Optional[Event] = None,
    ) -> IngestReport:
        """
        Load, chunk, embed and store the given sources.

        Args:
            sources: URLs or file paths.
            reset: Empty the store first.
            cancel_event: Set it from another thread to stop between chunks.

        Returns:
            IngestReport; sources that failed to load are listed in .failures.
        """
        return self._pipeline.run(sources, reset=reset, cancel_event=cancel_event)

    def query(self, question: str) -> RAGResponse:
        """Answer a question from the stored chunks."""
        return self._engine.answer(question)
