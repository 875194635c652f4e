"""
RAG techniques — the public entry points of the package.

Usage:
    from vector_rag.techniques import SimpleRAG

    rag = SimpleRAG()
    rag.ingest(["https://example.com/page"], reset=True)
    response = rag.query("What is on the page?")
"""

from .simple import SimpleRAG

__all__ = [
    "SimpleRAG",
]
