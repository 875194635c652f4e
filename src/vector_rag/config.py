"""
Configuration for the vector RAG pipeline.

Split into one config per concern so each stage only receives what it
needs. RAGConfig bundles them all for convenience.

Usage:
    # Full config: pass to SimpleRAG
    config = RAGConfig()

    # Override specific parts
    config = RAGConfig(
        llm=LLMConfig(provider="anthropic", model_name="claude-sonnet-4-5-20250929"),
        chunking=ChunkingConfig(chunk_size=1024, chunk_overlap=128),
        vector_store=VectorStoreConfig(database_url="sqlite:///data/vectors.db"),
    )

    # Standalone: use just one piece
    store_config = VectorStoreConfig(dimension=1536)
"""

from enum import Enum
from pathlib import Path
from typing import Any, Optional

from dotenv import load_dotenv
from pydantic import BaseModel, Field, field_validator, model_validator

# Provider SDKs read their API keys from the environment, so the project
# .env has to be loaded before any of them are instantiated.
_env_path = Path(__file__).resolve().parent.parent.parent / ".env"
load_dotenv(_env_path)


# ---------------------------------------------------------------------------
# Enums: for things with a genuinely fixed set of choices
# ---------------------------------------------------------------------------

class LLMProvider(str, Enum):
    """
    Supported LLM providers.

    Each provider needs a different LangChain chat model class, so we
    must know the exact set we can instantiate.
    """

    OPENAI = "openai"
    ANTHROPIC = "anthropic"


class ChunkUnit(str, Enum):
    """What chunk_size and chunk_overlap are measured in."""

    CHARACTER = "character"
    TOKEN = "token"


class VectorPrecision(str, Enum):
    """Numeric precision of stored embeddings. Store-wide, like the dimension."""

    FLOAT32 = "float32"
    FLOAT64 = "float64"


# ---------------------------------------------------------------------------
# Per-concern configs
# ---------------------------------------------------------------------------

class LLMConfig(BaseModel):
    """
    Text-generation configuration.

    Used by: generation/generate.py

    request_timeout is finite and there are no retries: a slow or failing
    provider surfaces as GenerationServiceError instead of hanging.
    """

    provider: LLMProvider = Field(
        default=LLMProvider.OPENAI,
        description="Which LLM provider to use",
    )
    model_name: str = Field(
        default="gpt-4o-mini",
        description="Model identifier (e.g. 'gpt-4o-mini', 'claude-sonnet-4-5-20250929')",
    )
    temperature: float = Field(
        default=0.0,
        ge=0.0,
        le=2.0,
        description="Sampling temperature. 0 = deterministic, higher = more varied",
    )
    max_tokens: int = Field(
        default=1024,
        gt=0,
        description="Maximum tokens in the generated answer",
    )
    request_timeout: float = Field(
        default=60.0,
        gt=0.0,
        description="Seconds to wait for a single generation call",
    )


class EmbeddingConfig(BaseModel):
    """
    Embedding model configuration.

    Used by: indexing/embeddings.py

    Provider is an open string because the embedding landscape keeps
    growing. The factory in indexing/embeddings.py maps known provider
    strings to LangChain classes and raises a clear error for unknown ones.

    The same EmbeddingConfig must be used at ingest and at query time.
    Mixing models invalidates distances even when dimensions agree.

    Examples:
        EmbeddingConfig(provider="openai", dimensions=1024)
        EmbeddingConfig(provider="huggingface", model_name="all-MiniLM-L6-v2", dimensions=384)
    """

    provider: str = Field(
        default="openai",
        description="Embedding provider: 'openai', 'huggingface', 'cohere'",
    )
    model_name: str = Field(
        default="text-embedding-3-small",
        description="Embedding model identifier",
    )
    dimensions: Optional[int] = Field(
        default=1024,
        gt=0,
        description="Expected vector length. None disables the check in EmbeddingFunction",
    )
    request_timeout: float = Field(
        default=60.0,
        gt=0.0,
        description="Seconds to wait for a single embedding call",
    )
    model_kwargs: dict[str, Any] = Field(
        default_factory=dict,
        description="Extra kwargs passed to the embedding model constructor",
    )


class ChunkingConfig(BaseModel):
    """
    Document chunking configuration.

    Used by: indexing/chunking.py

    Chunks are a fixed-size sliding window: every chunk after the first
    repeats the last chunk_overlap units of its predecessor.

        "character": window measured in characters (default).
        "token":     window measured in tiktoken tokens, for keeping
                     chunks under an embedding model's input limit.

    The window itself (chunk_size > 0, 0 <= chunk_overlap < chunk_size)
    is checked when a chunker is built from this config, so a bad window
    raises ConfigurationError like every other chunking entry point.
    """

    unit: ChunkUnit = Field(
        default=ChunkUnit.CHARACTER,
        description="Unit of chunk_size and chunk_overlap",
    )
    chunk_size: int = Field(
        default=2048,
        description="Maximum chunk length in units",
    )
    chunk_overlap: int = Field(
        default=256,
        description="Units repeated from the end of the previous chunk",
    )
    encoding_name: str = Field(
        default="cl100k_base",
        description="tiktoken encoding used when unit is 'token'",
    )


class LoaderConfig(BaseModel):
    """
    Document loading configuration.

    Used by: indexing/loading.py
    """

    request_timeout: float = Field(
        default=30.0,
        gt=0.0,
        description="Seconds to wait when fetching a web page",
    )
    encoding: str = Field(
        default="utf-8",
        description="Encoding used to read local files",
    )
    user_agent: Optional[str] = Field(
        default=None,
        description="User-Agent header for web requests (requests' default when unset)",
    )


class RetrieverConfig(BaseModel):
    """
    Retrieval and prompt-assembly configuration.

    Used by: retrieval/search.py, generation/engine.py

    max_context_chars bounds the prompt: retrieved chunks are added in
    distance order until the next one would exceed the budget.
    """

    k: int = Field(
        default=5,
        gt=0,
        description="Number of chunks to retrieve per question",
    )
    max_context_chars: Optional[int] = Field(
        default=None,
        gt=0,
        description="Upper bound on the context length; None keeps all k chunks",
    )
    short_circuit_empty_context: bool = Field(
        default=False,
        description="Return the fallback answer without calling the LLM when nothing is retrieved",
    )


class VectorStoreConfig(BaseModel):
    """
    Vector store configuration.

    Used by: indexing/vectorstore.py

    dimension and precision are store-wide: every embedding written to
    the table must have exactly this shape.
    """

    database_url: str = Field(
        default="sqlite://",
        description="SQLAlchemy database URL ('sqlite://' is in-memory)",
    )
    table_name: str = Field(
        default="rag_chunks",
        description="Name of the table holding chunks and embeddings",
    )
    dimension: int = Field(
        default=1024,
        gt=0,
        description="Embedding dimension enforced on every insert and query",
    )
    precision: VectorPrecision = Field(
        default=VectorPrecision.FLOAT32,
        description="Numeric precision of stored vectors",
    )
    echo_sql: bool = Field(
        default=False,
        description="Log every SQL statement (SQLAlchemy echo)",
    )

    @field_validator("table_name")
    @classmethod
    def validate_table_name(cls, value: str) -> str:
        """Table names end up in DDL, so keep them to plain identifiers."""
        if not value.replace("_", "").isalnum() or value[0].isdigit():
            raise ValueError(f"table_name must be a plain SQL identifier, got '{value}'")
        return value


class LoggingConfig(BaseModel):
    """
    Logging configuration.

    Used by: utils/log.py. Applied once by the application, never on import.
    """

    level: str = Field(default="INFO", description="Standard logging level name")
    json_output: bool = Field(
        default=False,
        description="Render JSON lines instead of the human-readable console format",
    )

    @field_validator("level")
    @classmethod
    def validate_level(cls, value: str) -> str:
        level = value.upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: '{value}'")
        return level


# ---------------------------------------------------------------------------
# Top-level config: bundles everything
# ---------------------------------------------------------------------------

class RAGConfig(BaseModel):
    """
    Complete pipeline configuration.

    SimpleRAG receives this and passes slices to each stage:
        loader = DocumentLoader(config.loader)
        chunker = get_chunker(config.chunking)
        store = SQLVectorStore(config.vector_store)

    All sub-configs have sensible defaults, so RAGConfig() with no
    arguments gives you a working setup out of the box (given an
    OPENAI_API_KEY in the environment).
    """

    llm: LLMConfig = Field(default_factory=LLMConfig)
    embedding: EmbeddingConfig = Field(default_factory=EmbeddingConfig)
    chunking: ChunkingConfig = Field(default_factory=ChunkingConfig)
    loader: LoaderConfig = Field(default_factory=LoaderConfig)
    retriever: RetrieverConfig = Field(default_factory=RetrieverConfig)
    vector_store: VectorStoreConfig = Field(default_factory=VectorStoreConfig)
    logging: LoggingConfig = Field(default_factory=LoggingConfig)

    @model_validator(mode="after")
    def validate_dimensions(self) -> "RAGConfig":
        """The embedding model and the store must agree on vector length."""
        expected = self.embedding.dimensions
        if expected is not None and expected != self.vector_store.dimension:
            raise ValueError(
                f"embedding.dimensions ({expected}) does not match "
                f"vector_store.dimension ({self.vector_store.dimension})"
            )
        return self
