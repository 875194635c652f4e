"""
Ingest pipeline: load → chunk → embed + store.

The call order is fixed and every stage's output is passed explicitly
to the next one:

    result = loader.load(sources)           # LoadResult
    chunks = chunker.split(result.documents)
    ids = store.add(chunks, embedding_fn)

Fetch failures are collected into the IngestReport. Anything that goes
wrong after loading (embedding, dimension, database) propagates.
"""

from threading import Event
from typing import Optional, Sequence

from vector_rag.base.indexer import BaseChunker, BaseLoader
from vector_rag.base.store import BaseVectorStore, EmbeddingFn
from vector_rag.models.result import IngestReport
from vector_rag.utils.log import get_logger

logger = get_logger(__name__)


class IngestPipeline:
    """Batch ingestion of sources into a vector store."""

    def __init__(
        self,
        loader: BaseLoader,
        chunker: BaseChunker,
        store: BaseVectorStore,
        embedding_fn: EmbeddingFn,
    ):
        self.loader = loader
        self.chunker = chunker
        self.store = store
        self.embedding_fn = embedding_fn

    def run(
        self,
        sources: Sequence[str],
        reset: bool = False,
        cancel_event: Optional[Event] = None,
    ) -> IngestReport:
        """
        Ingest every source in one batch.

        Args:
            sources: URLs or file paths.
            reset: Drop and recreate the store's table before ingesting.
            cancel_event: Forwarded to store.add(); see SQLVectorStore.add.

        Returns:
            IngestReport with counts, the new record ids and per-source failures.
        """
        if reset:
            self.store.reset_schema()

        loaded = self.loader.load(sources)
        chunks = self.chunker.split(loaded.documents)
        ids = self.store.add(chunks, self.embedding_fn, cancel_event=cancel_event)

        report = IngestReport(
            documents_loaded=len(loaded.documents),
            chunks_created=len(chunks),
            records_added=len(ids),
            record_ids=ids,
            failures=loaded.failures,
        )

        logger.info(
            "ingest_completed",
            documents=report.documents_loaded,
            chunks=report.chunks_created,
            records=report.records_added,
            failed_sources=len(report.failures),
        )
        return report
