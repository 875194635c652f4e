"""
Result models for the write and read paths.

StoredRecord is what the vector store persists. Everything else here is
ephemeral: produced per call and returned to the caller.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from .document import RawDocument


# ---------------------------------------------------------------------------
# Storage
# ---------------------------------------------------------------------------

class StoredRecord(BaseModel):
    """
    One row of the vector table.

    Owned by the vector store: created on ingest, never mutated, removed
    only by reset_schema().
    """

    model_config = ConfigDict(frozen=True)

    id: int = Field(description="Auto-incrementing primary key")
    content: str = Field(description="Chunk text")
    source: str = Field(description="Source identifier of the originating document")
    title: Optional[str] = Field(default=None)
    embedding: list[float] = Field(description="Fixed-dimension embedding vector")


# ---------------------------------------------------------------------------
# Loading / ingestion
# ---------------------------------------------------------------------------

class LoadFailure(BaseModel):
    """A source that could not be loaded, and why."""

    source: str
    error: str


class LoadResult(BaseModel):
    """
    Output of DocumentLoader.load().

    A multi-source batch never aborts on one bad URL: the documents that
    loaded are returned alongside the failures.
    """

    documents: list[RawDocument] = Field(default_factory=list)
    failures: list[LoadFailure] = Field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


class IngestReport(BaseModel):
    """Summary of one IngestPipeline.run()."""

    documents_loaded: int = 0
    chunks_created: int = 0
    records_added: int = 0
    record_ids: list[int] = Field(default_factory=list)
    failures: list[LoadFailure] = Field(default_factory=list)


# ---------------------------------------------------------------------------
# Retrieval / answering
# ---------------------------------------------------------------------------

class RetrievalResult(BaseModel):
    """
    A stored chunk returned by similarity search.

    distance is Euclidean: 0 means identical, lower is closer.
    """

    id: int = Field(description="Id of the stored record")
    content: str
    source: str
    title: Optional[str] = None
    distance: float = Field(ge=0.0, description="Euclidean distance to the query vector")


class RAGResponse(BaseModel):
    """
    What QueryEngine.answer() returns.

    sources are the chunks that were actually placed in the prompt, in
    distance order, so the answer can be traced back to them.
    """

    answer: str = Field(description="The generated answer")
    sources: list[RetrievalResult] = Field(default_factory=list)
    question: str = Field(default="", description="The question as asked")
    context_used: bool = Field(
        default=False,
        description="False when nothing was retrieved and the prompt had an empty context",
    )
