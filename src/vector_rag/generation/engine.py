"""
Query engine: question → retrieve → prompt → generate.

    retriever.retrieve(question, k)      # top-K RetrievalResults
    build_context(results)               # bounded context string
    ANSWER_PROMPT.format(...)            # fixed two-placeholder template
    generator(prompt)                    # single-turn LLM call

The retriever must embed with the same function the store was filled
with; the engine cannot check this, it only sees distances.

Usage:
    engine = QueryEngine(retriever, LLMGenerator(LLMConfig()), RetrieverConfig(k=5))
    response = engine.answer("What is vector search?")
    print(response.answer)
    for source in response.sources:
        print(source.source, source.distance)
"""

from vector_rag.base.retriever import BaseRetriever
from vector_rag.config import RetrieverConfig
from vector_rag.exceptions import InvalidArgumentError
from vector_rag.generation.generate import (
    ANSWER_PROMPT,
    FALLBACK_ANSWER,
    Generator,
    build_context,
)
from vector_rag.models.result import RAGResponse
from vector_rag.utils.log import get_logger

logger = get_logger(__name__)


class QueryEngine:
    """
    Answers questions from the vector store.

    Stateless between calls: concurrent answer() calls share nothing but
    the store, which handles its own read concurrency.
    """

    def __init__(
        self,
        retriever: BaseRetriever,
        generator: Generator,
        config: RetrieverConfig = None,
    ):
        self.retriever = retriever
        self.generator = generator
        self.config = config or RetrieverConfig()

    def answer(self, question: str) -> RAGResponse:
        """
        Answer a question grounded in the k nearest stored chunks.

        With nothing retrieved the generator is still called with an empty
        context (the template asks for FALLBACK_ANSWER), unless
        config.short_circuit_empty_context is set, in which case
        FALLBACK_ANSWER is returned without calling it.

        Raises:
            InvalidArgumentError: question is blank.
            EmbeddingServiceError, GenerationServiceError, StoreUnavailableError:
                propagated from the collaborators.
        """
        if not question or not question.strip():
            raise InvalidArgumentError("question must not be empty")

        results = self.retriever.retrieve(question, self.config.k)
        context, used = build_context(results, self.config.max_context_chars)

        if not used and self.config.short_circuit_empty_context:
            logger.info("empty_context_short_circuit", retrieved=len(results))
            return RAGResponse(answer=FALLBACK_ANSWER, question=question)

        prompt = ANSWER_PROMPT.format(context=context, question=question)
        answer = self.generator(prompt)

        logger.info(
            "answer_generated",
            retrieved=len(results),
            context_chunks=len(used),
            context_chars=len(context),
        )
        return RAGResponse(
            answer=answer,
            sources=used,
            question=question,
            context_used=bool(used),
        )


def answer(
    question: str,
    retriever: BaseRetriever,
    generator: Generator,
    k: int = 5,
) -> RAGResponse:
    """One-off answer without keeping a QueryEngine around."""
    if isinstance(k, bool) or not isinstance(k, int) or k <= 0:
        raise InvalidArgumentError(f"k must be a positive integer, got {k!r}")
    return QueryEngine(retriever, generator, RetrieverConfig(k=k)).answer(question)
