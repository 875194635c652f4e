"""
Pydantic models shared across the pipeline.

Import from here rather than reaching into submodules:
    from vector_rag.models import Chunk, RetrievalResult, RAGResponse
"""

from .document import Chunk, RawDocument
from .result import (
    IngestReport,
    LoadFailure,
    LoadResult,
    RAGResponse,
    RetrievalResult,
    StoredRecord,
)

__all__ = [
    # Document
    "RawDocument",
    "Chunk",
    # Result
    "StoredRecord",
    "LoadFailure",
    "LoadResult",
    "IngestReport",
    "RetrievalResult",
    "RAGResponse",
]
