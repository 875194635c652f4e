"""
SQL-backed vector store.

The final step of the write path and the first step of the read path:

    Loader → Chunker → EmbeddingFunction → SQLVectorStore (this file)
    question → EmbeddingFunction → SQLVectorStore.similarity_search

Chunks live in one table:

    id         INTEGER PRIMARY KEY AUTOINCREMENT
    content    TEXT
    source     VARCHAR(512)
    title      VARCHAR(512) NULL
    embedding  BLOB  -- `dimension` packed floats of the configured precision

Search is done in SQL. On SQLite the store registers a
`euclidean_distance(blob, blob)` function on every new connection, and
the query is

    SELECT id, content, source, title, euclidean_distance(embedding, :q)
    FROM rag_chunks WHERE euclidean_distance(embedding, :q) IS NOT NULL
    ORDER BY 5 ASC, id ASC LIMIT :k

Other databases must already provide a function with that name and
signature.

Ingestion policy (best-effort-partial, single commit): every chunk is
embedded first, outside any transaction. The records that embedded
successfully are then inserted in ONE transaction. If chunk i fails, the
records for chunks 0..i-1 are still committed and the error names chunk i.
Readers therefore see the table either before or after a batch, never
halfway through it.

Usage:
    from vector_rag.indexing.vectorstore import create_vector_store
    from vector_rag.config import VectorStoreConfig

    store = create_vector_store(VectorStoreConfig(database_url="sqlite:///data/vectors.db"))
    store.reset_schema()
    store.add(chunks, embedding_fn)
    results = store.similarity_search(embedding_fn("What is RAG?"), k=5)
"""

import threading
from contextlib import contextmanager
from threading import Event
from typing import Iterator, Optional, Sequence

import numpy as np
from sqlalchemy import (
    Column,
    Float,
    Integer,
    LargeBinary,
    MetaData,
    String,
    Table,
    Text,
    bindparam,
    create_engine,
    event,
    func,
    inspect,
    insert,
    select,
)
from sqlalchemy.engine import Connection, Engine
from sqlalchemy.exc import OperationalError
from sqlalchemy.pool import StaticPool

from vector_rag.base.store import BaseVectorStore, EmbeddingFn
from vector_rag.config import VectorStoreConfig
from vector_rag.exceptions import (
    DimensionMismatchError,
    EmbeddingServiceError,
    IngestionCancelledError,
    InvalidArgumentError,
    StoreUnavailableError,
)
from vector_rag.models.document import Chunk
from vector_rag.models.result import RetrievalResult, StoredRecord
from vector_rag.utils.log import get_logger

logger = get_logger(__name__)

DISTANCE_FUNCTION = "euclidean_distance"


# ---------------------------------------------------------------------------
# Vector encoding
# ---------------------------------------------------------------------------

def pack_vector(vector: Sequence[float], dtype: np.dtype) -> bytes:
    """
    Encode a vector as raw bytes of the given precision.

    Raises:
        ValueError: a component is NaN or infinite, including values that
            only overflow once cast to the store's precision.
    """
    with np.errstate(over="ignore", invalid="ignore"):
        array = np.asarray(vector, dtype=dtype)
    if not np.isfinite(array).all():
        raise ValueError("vector contains non-finite values")
    return array.tobytes()


def unpack_vector(blob: bytes, dtype: np.dtype) -> np.ndarray:
    """Decode bytes written by pack_vector."""
    return np.frombuffer(blob, dtype=dtype)


def make_distance_function(dtype: np.dtype):
    """
    Build the SQL-callable Euclidean distance for vectors of one precision.

    Arithmetic is done in float64 so that a vector compared with itself
    is exactly 0.0 regardless of storage precision.
    """

    def euclidean_distance(left: bytes, right: bytes) -> Optional[float]:
        if left is None or right is None:
            return None
        a = unpack_vector(left, dtype).astype(np.float64)
        b = unpack_vector(right, dtype).astype(np.float64)
        if a.shape != b.shape:
            return None
        value = float(np.linalg.norm(a - b))
        return value if np.isfinite(value) else None

    return euclidean_distance


def create_store_engine(config: VectorStoreConfig) -> Engine:
    """
    Create the SQLAlchemy engine for a store.

    In-memory SQLite gets a StaticPool so every thread shares the one
    database (and the one connection). SQLite connections get the
    distance function registered as they are opened.
    """
    url = config.database_url
    kwargs = {"echo": config.echo_sql}

    is_sqlite = url.startswith("sqlite")
    if is_sqlite:
        kwargs["connect_args"] = {"check_same_thread": False}
        if url in ("sqlite://", "sqlite:///:memory:"):
            kwargs["poolclass"] = StaticPool
    else:
        kwargs["pool_pre_ping"] = True

    engine = create_engine(url, **kwargs)

    if is_sqlite:
        distance = make_distance_function(np.dtype(config.precision.value))

        @event.listens_for(engine, "connect")
        def _register_distance(dbapi_connection, connection_record):
            dbapi_connection.create_function(
                DISTANCE_FUNCTION, 2, distance, deterministic=True
            )

    return engine


# ---------------------------------------------------------------------------
# Concurrency
# ---------------------------------------------------------------------------

class ReadWriteLock:
    """
    Many concurrent readers or one writer.

    Searches take the read side and never wait for each other. Schema
    resets and batch commits take the write side.
    """

    def __init__(self):
        self._cond = threading.Condition(threading.Lock())
        self._readers = 0
        self._writing = False

    @contextmanager
    def read(self) -> Iterator[None]:
        with self._cond:
            while self._writing:
                self._cond.wait()
            self._readers += 1
        try:
            yield
        finally:
            with self._cond:
                self._readers -= 1
                if not self._readers:
                    self._cond.notify_all()

    @contextmanager
    def write(self) -> Iterator[None]:
        with self._cond:
            while self._writing or self._readers:
                self._cond.wait()
            self._writing = True
        try:
            yield
        finally:
            with self._cond:
                self._writing = False
                self._cond.notify_all()


# ---------------------------------------------------------------------------
# Store
# ---------------------------------------------------------------------------

class SQLVectorStore(BaseVectorStore):
    """
    Chunks, provenance and embeddings in one SQL table.

    dimension and precision come from VectorStoreConfig and are enforced
    on every insert and every query: a wrong-sized vector is rejected
    with DimensionMismatchError, never truncated or padded.

    Writers are serialised by an ingest lock held for the whole of add()
    (embedding included), so ids within one batch are contiguous. The
    read/write lock is only held around SQL statements, so searches keep
    running while a batch is being embedded.

    An engine with a single shared connection (StaticPool, used for
    in-memory SQLite) cannot run two statements at once: a second thread
    entering the connection while the first is inside the Python distance
    function deadlocks on the GIL. Reads on such an engine take the
    exclusive side of the lock, one statement at a time.
    """

    def __init__(self, config: VectorStoreConfig = None, engine: Engine = None):
        self.config = config or VectorStoreConfig()
        self.dimension = self.config.dimension
        self._dtype = np.dtype(self.config.precision.value)
        self._engine = engine if engine is not None else create_store_engine(self.config)

        self._metadata = MetaData()
        self._table = Table(
            self.config.table_name,
            self._metadata,
            Column("id", Integer, primary_key=True, autoincrement=True),
            Column("content", Text, nullable=False),
            Column("source", String(512), nullable=False),
            Column("title", String(512), nullable=True),
            Column("embedding", LargeBinary, nullable=False),
            sqlite_autoincrement=True,
        )

        self._ingest_lock = threading.Lock()
        self._rw_lock = ReadWriteLock()
        self._single_connection = isinstance(self._engine.pool, StaticPool)
        self._layout_checked = False

        logger.info(
            "vector_store_initialized",
            table=self.config.table_name,
            dimension=self.dimension,
            precision=self._dtype.name,
            dialect=self._engine.dialect.name,
        )

    @property
    def engine(self) -> Engine:
        return self._engine

    # -- schema -------------------------------------------------------------

    def reset_schema(self) -> None:
        """Drop the table if it exists and create it empty."""
        with self._ingest_lock, self._rw_lock.write(), self._database_errors():
            with self._engine.begin() as conn:
                self._table.drop(conn, checkfirst=True)
                self._table.create(conn)
        self._layout_checked = True
        logger.info("schema_reset", table=self.config.table_name)

    def _reading(self):
        """Lock for a read statement: shared, unless the engine has one connection."""
        return self._rw_lock.write() if self._single_connection else self._rw_lock.read()

    def _table_exists(self, conn: Connection) -> bool:
        return inspect(conn).has_table(self.config.table_name)

    def _check_layout(self, conn: Connection) -> None:
        """
        Reject an existing table written with another dimension or precision.

        Runs once per store instance, on the first access to a table this
        instance did not create.
        """
        if self._layout_checked:
            return
        stored = conn.execute(
            select(func.length(self._table.c.embedding)).limit(1)
        ).scalar()
        if stored is not None:
            expected_bytes = self.dimension * self._dtype.itemsize
            if stored != expected_bytes:
                raise DimensionMismatchError(
                    expected=self.dimension,
                    actual=stored // self._dtype.itemsize,
                )
        self._layout_checked = True

    # -- write path ---------------------------------------------------------

    def add(
        self,
        chunks: Sequence[Chunk],
        embedding_fn: EmbeddingFn,
        cancel_event: Optional[Event] = None,
    ) -> list[int]:
        """
        Embed chunks and insert them as one committed batch.

        Args:
            chunks: Chunks to store, in order.
            embedding_fn: Maps chunk text to a vector of self.dimension floats.
            cancel_event: Checked before each chunk. Once set, the chunks
                embedded so far are committed and IngestionCancelledError is raised.

        Returns:
            Ids of the new records, in chunk order.

        Raises:
            EmbeddingServiceError: embedding_fn failed on a chunk. Earlier chunks
                are committed; chunk_index and records_committed say where it stopped.
            DimensionMismatchError: a vector had the wrong length (same semantics).
                A vector with a NaN or infinite component is reported as
                EmbeddingServiceError, also with the same semantics.
            IngestionCancelledError: cancel_event was set.
            StoreUnavailableError: the database could not be reached.
        """
        chunks = list(chunks)
        if not chunks:
            return []

        with self._ingest_lock:
            rows: list[dict] = []
            failed_index: Optional[int] = None
            cause: Optional[Exception] = None
            cancelled = False

            for index, chunk in enumerate(chunks):
                if cancel_event is not None and cancel_event.is_set():
                    cancelled = True
                    break
                try:
                    rows.append(self._embed_row(chunk, embedding_fn))
                except Exception as e:
                    failed_index, cause = index, e
                    break

            ids = self._insert(rows) if rows else []

        if cancelled:
            logger.warning("ingestion_cancelled", records_committed=len(ids))
            raise IngestionCancelledError(records_committed=len(ids))

        if cause is not None:
            logger.error(
                "chunk_ingest_failed",
                chunk_index=failed_index,
                source=chunks[failed_index].source,
                records_committed=len(ids),
                error=str(cause),
            )
            raise self._ingest_error(cause, failed_index, len(ids)) from cause

        return ids

    def _embed_row(self, chunk: Chunk, embedding_fn: EmbeddingFn) -> dict:
        vector = embedding_fn(chunk.text)
        if len(vector) != self.dimension:
            raise DimensionMismatchError(expected=self.dimension, actual=len(vector))
        return {
            "content": chunk.text,
            "source": chunk.source,
            "title": chunk.title,
            "embedding": pack_vector(vector, self._dtype),
        }

    def _ingest_error(self, cause: Exception, chunk_index: int, committed: int) -> Exception:
        if isinstance(cause, DimensionMismatchError):
            return DimensionMismatchError(
                expected=cause.expected,
                actual=cause.actual,
                chunk_index=chunk_index,
                records_committed=committed,
            )
        return EmbeddingServiceError(
            f"Embedding chunk {chunk_index} failed after {committed} records were committed: {cause}",
            chunk_index=chunk_index,
            records_committed=committed,
        )

    def _insert(self, rows: list[dict]) -> list[int]:
        with self._rw_lock.write(), self._database_errors():
            with self._engine.begin() as conn:
                self._metadata.create_all(conn, tables=[self._table], checkfirst=True)
                self._check_layout(conn)
                ids = [
                    conn.execute(insert(self._table).values(**row)).inserted_primary_key[0]
                    for row in rows
                ]

        logger.info("records_added", count=len(ids), table=self.config.table_name)
        return ids

    # -- read path ----------------------------------------------------------

    def similarity_search(self, query_embedding: Sequence[float], k: int) -> list[RetrievalResult]:
        """
        The k records nearest to query_embedding by Euclidean distance.

        Ordered by ascending distance, ties by ascending id. Returns fewer
        than k results when the store is smaller, and [] when it is empty
        or the table does not exist yet.

        Raises:
            InvalidArgumentError: k is not a positive integer.
            DimensionMismatchError: query_embedding has the wrong length.
            InvalidArgumentError: query_embedding has a NaN or infinite component.
        """
        if isinstance(k, bool) or not isinstance(k, int) or k <= 0:
            raise InvalidArgumentError(f"k must be a positive integer, got {k!r}")

        query = list(query_embedding)
        if len(query) != self.dimension:
            raise DimensionMismatchError(expected=self.dimension, actual=len(query))
        try:
            packed = pack_vector(query, self._dtype)
        except ValueError as e:
            raise InvalidArgumentError(f"query_embedding is invalid: {e}") from e

        table = self._table
        distance_expr = getattr(func, DISTANCE_FUNCTION)(
            table.c.embedding,
            bindparam("query_vector", packed, type_=LargeBinary),
            type_=Float,
        )
        distance = distance_expr.label("distance")
        # Rows whose distance cannot be computed come back as NULL
        statement = (
            select(table.c.id, table.c.content, table.c.source, table.c.title, distance)
            .where(distance_expr.is_not(None))
            .order_by(distance.asc(), table.c.id.asc())
            .limit(k)
        )

        with self._reading(), self._database_errors():
            with self._engine.connect() as conn:
                if not self._table_exists(conn):
                    rows = []
                else:
                    self._check_layout(conn)
                    rows = conn.execute(statement).all()

        results = [
            RetrievalResult(
                id=row.id,
                content=row.content,
                source=row.source,
                title=row.title,
                distance=row.distance,
            )
            for row in rows
        ]

        logger.debug("similarity_search_completed", k=k, results=len(results))
        return results

    def count(self) -> int:
        with self._reading(), self._database_errors():
            with self._engine.connect() as conn:
                if not self._table_exists(conn):
                    return 0
                return conn.execute(select(func.count()).select_from(self._table)).scalar_one()

    def get(self, record_id: int) -> Optional[StoredRecord]:
        """Read one record back, embedding included. None if it does not exist."""
        table = self._table
        with self._reading(), self._database_errors():
            with self._engine.connect() as conn:
                if not self._table_exists(conn):
                    return None
                row = conn.execute(select(table).where(table.c.id == record_id)).first()

        if row is None:
            return None
        return StoredRecord(
            id=row.id,
            content=row.content,
            source=row.source,
            title=row.title,
            embedding=unpack_vector(row.embedding, self._dtype).tolist(),
        )

    def close(self) -> None:
        """Release pooled connections."""
        self._engine.dispose()

    @contextmanager
    def _database_errors(self) -> Iterator[None]:
        try:
            yield
        except OperationalError as e:
            logger.error("store_unavailable", table=self.config.table_name, error=str(e.orig))
            raise StoreUnavailableError(
                f"Vector store '{self.config.table_name}' is unavailable: {e.orig}"
            ) from e


def create_vector_store(config: VectorStoreConfig = None) -> SQLVectorStore:
    """
    Create a vector store from config.

    The table is not touched until reset_schema(), add() or a search.
    """
    return SQLVectorStore(config or VectorStoreConfig())
