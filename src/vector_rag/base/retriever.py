"""
Abstract base class for retrievers.

A retriever takes a natural-language query and returns the stored chunks
most relevant to it. Whatever embedding it uses must be the one the
store was filled with.
"""

from abc import ABC, abstractmethod
from typing import Optional

from vector_rag.models.result import RetrievalResult


class BaseRetriever(ABC):
    """
    Contract for retrievers.

    Results come back closest first, each carrying its distance so the
    caller can decide how much of it to use.
    """

    @abstractmethod
    def retrieve(self, query: str, k: Optional[int] = None) -> list[RetrievalResult]:
        """
        Retrieve stored chunks for a natural-language query.

        Args:
            query: The user's question.
            k: Number of chunks to return; the retriever's configured k when None.

        Returns:
            At most k RetrievalResults ordered by ascending distance.
        """
        ...
