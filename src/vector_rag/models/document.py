"""
Document models for the RAG pipeline.

These represent data at each stage of the write path:
  RawDocument (loaded) → Chunk (split) → StoredRecord (embedded + stored)

Both are frozen: once the loader or chunker has produced them, nothing
downstream may edit them.
"""

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RawDocument(BaseModel):
    """
    The cleaned text of one source.

    Produced by the loader, consumed once by the chunker. The text has
    already been normalised (no blank lines).
    """

    model_config = ConfigDict(frozen=True)

    source: str = Field(description="Where this document came from (URL or file path)")
    text: str = Field(description="Cleaned text content, no blank lines")
    title: Optional[str] = Field(default=None, description="Page or file title, if known")


class Chunk(BaseModel):
    """
    A bounded-length slice of a RawDocument.

    This is the unit that gets embedded and stored. Each chunk keeps its
    provenance (source, title) so answers can cite where they came from.
    """

    model_config = ConfigDict(frozen=True)

    text: str = Field(description="The chunk's text, at most chunk_size units long")
    overlap_with_predecessor: int = Field(
        default=0,
        ge=0,
        description="Characters repeated from the end of the previous chunk",
    )
    source: str = Field(description="Source identifier of the parent document")
    title: Optional[str] = Field(default=None, description="Title of the parent document")
    chunk_index: int = Field(default=0, ge=0, description="Position of this chunk in its document")
