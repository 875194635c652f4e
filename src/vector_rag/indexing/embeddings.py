"""
Embedding model factory and the embedding function used by the store.

get_embedding_model() is the single place that maps provider strings to
LangChain classes. EmbeddingFunction wraps the resulting model as a plain
`text -> vector` callable, which is the only thing the store and the
retriever ever see.

Supported providers:
    "openai"      → OpenAIEmbeddings (API-based, default)
    "huggingface" → HuggingFaceEmbeddings (local sentence-transformers)
    "cohere"      → CohereEmbeddings (API-based)

Usage:
    from vector_rag.indexing.embeddings import EmbeddingFunction
    from vector_rag.config import EmbeddingConfig

    embed = EmbeddingFunction(EmbeddingConfig(dimensions=1024))
    vector = embed("What is RAG?")   # list of 1024 floats

    # Any LangChain Embeddings works, e.g. for tests:
    from langchain_core.embeddings import DeterministicFakeEmbedding
    embed = EmbeddingFunction(
        EmbeddingConfig(dimensions=8),
        model=DeterministicFakeEmbedding(size=8),
    )
"""

from langchain_core.embeddings import Embeddings

from vector_rag.config import EmbeddingConfig
from vector_rag.exceptions import DimensionMismatchError, EmbeddingServiceError
from vector_rag.utils.log import get_logger

logger = get_logger(__name__)


def get_embedding_model(config: EmbeddingConfig) -> Embeddings:
    """
    Factory that returns a LangChain embedding model based on config.

    Each provider has its own LangChain integration package. We import
    them lazily (inside the if-branch) so you only need the package
    for the provider you actually use.

    Args:
        config: EmbeddingConfig with provider, model_name, and optional model_kwargs.

    Returns:
        A LangChain Embeddings instance ready to call embed_query().

    Raises:
        ValueError: If the provider is not recognized.
        ImportError: If the required package for the provider is not installed.
    """
    provider = config.provider.lower()

    if provider == "openai":
        from langchain_openai import OpenAIEmbeddings

        return OpenAIEmbeddings(
            model=config.model_name,
            dimensions=config.dimensions,
            request_timeout=config.request_timeout,
            max_retries=0,
            **config.model_kwargs,
        )

    elif provider == "huggingface":
        try:
            from langchain_huggingface import HuggingFaceEmbeddings
        except ImportError:
            raise ImportError(
                "HuggingFace embeddings require langchain-huggingface. "
                "Install with: pip install vector-rag[huggingface]"
            )

        return HuggingFaceEmbeddings(
            model_name=config.model_name,
            model_kwargs=config.model_kwargs,
        )

    elif provider == "cohere":
        try:
            from langchain_cohere import CohereEmbeddings
        except ImportError:
            raise ImportError(
                "Cohere embeddings require langchain-cohere. "
                "Install with: pip install vector-rag[cohere]"
            )

        return CohereEmbeddings(
            model=config.model_name,
            request_timeout=config.request_timeout,
            max_retries=0,
            **config.model_kwargs,
        )

    else:
        raise ValueError(
            f"Unknown embedding provider: '{config.provider}'. "
            f"Supported: 'openai', 'huggingface', 'cohere'. "
            f"For other providers, pass a LangChain Embeddings instance as model=."
        )


class EmbeddingFunction:
    """
    `text -> vector` callable over a LangChain embedding model.

    The same instance embeds chunks at ingest and questions at query
    time, so both sides always go through the same model.

    Provider exceptions are re-raised as EmbeddingServiceError. When
    config.dimensions is set, vectors of any other length are rejected
    with DimensionMismatchError instead of being truncated or padded.
    """

    def __init__(self, config: EmbeddingConfig = None, model: Embeddings = None):
        self.config = config or EmbeddingConfig()
        self._model = model if model is not None else get_embedding_model(self.config)

    @property
    def model_id(self) -> str:
        return f"{self.config.provider}/{self.config.model_name}"

    def __call__(self, text: str) -> list[float]:
        try:
            vector = self._model.embed_query(text)
        except Exception as e:
            logger.error("embedding_failed", model=self.model_id, error=str(e))
            raise EmbeddingServiceError(f"Embedding call to {self.model_id} failed: {e}") from e

        expected = self.config.dimensions
        if expected is not None and len(vector) != expected:
            raise DimensionMismatchError(expected=expected, actual=len(vector))

        return [float(v) for v in vector]
