"""Tests for the SQL vector store — in-memory / temp-file SQLite, no API calls."""

import threading

import pytest

from vector_rag.config import VectorStoreConfig
from vector_rag.exceptions import (
    DimensionMismatchError,
    EmbeddingServiceError,
    IngestionCancelledError,
    InvalidArgumentError,
    StoreUnavailableError,
)
from vector_rag.indexing.vectorstore import (
    SQLVectorStore,
    create_vector_store,
    make_distance_function,
    pack_vector,
)
from vector_rag.models.document import Chunk


@pytest.fixture
def filled_store(store, sample_chunks, sample_vectors, make_lookup_embedding):
    store.reset_schema()
    store.add(sample_chunks, make_lookup_embedding(sample_vectors))
    return store


class TestSchema:

    def test_reset_on_fresh_database(self, store):
        store.reset_schema()
        assert store.count() == 0

    def test_reset_is_idempotent(self, filled_store):
        filled_store.reset_schema()
        assert filled_store.count() == 0
        filled_store.reset_schema()
        assert filled_store.count() == 0

    def test_ids_restart_after_reset(self, filled_store, sample_chunks, sample_vectors, make_lookup_embedding):
        filled_store.reset_schema()
        ids = filled_store.add(sample_chunks[:1], make_lookup_embedding(sample_vectors))
        assert ids == [1]

    def test_missing_table_counts_as_empty(self, store):
        assert store.count() == 0
        assert store.get(1) is None


class TestAdd:

    def test_ids_are_monotonic(self, store, sample_chunks, sample_vectors, make_lookup_embedding):
        store.reset_schema()
        first = store.add(sample_chunks, make_lookup_embedding(sample_vectors))
        second = store.add(sample_chunks[:1], make_lookup_embedding(sample_vectors))

        assert first == [1, 2, 3]
        assert second == [4]
        assert store.count() == 4

    def test_add_creates_table_if_missing(self, store, sample_chunks, sample_vectors, make_lookup_embedding):
        ids = store.add(sample_chunks, make_lookup_embedding(sample_vectors))
        assert len(ids) == 3

    def test_empty_batch(self, store):
        assert store.add([], lambda text: [0.0] * 4) == []

    def test_stored_record_round_trip(self, filled_store, sample_vectors):
        record = filled_store.get(3)

        assert record.content == "gamma chunk"
        assert record.source == "doc-b"
        assert record.title is None
        assert record.embedding == sample_vectors["gamma chunk"]

    def test_wrong_dimension_rejected_at_ingest(self, store, sample_chunks):
        vectors = {
            "alpha chunk": [1.0, 0.0, 0.0, 0.0],
            "beta chunk": [1.0, 0.0, 0.0],
            "gamma chunk": [1.0, 0.0, 0.0, 0.0],
        }
        store.reset_schema()

        with pytest.raises(DimensionMismatchError) as exc_info:
            store.add(sample_chunks, lambda text: vectors[text])

        assert exc_info.value.expected == 4
        assert exc_info.value.actual == 3
        assert exc_info.value.chunk_index == 1
        assert exc_info.value.records_committed == 1
        assert store.count() == 1

    def test_embedding_failure_keeps_prior_records(self, store, sample_chunks, sample_vectors):
        def flaky(text):
            if text == "gamma chunk":
                raise ConnectionError("embedding service down")
            return sample_vectors[text]

        store.reset_schema()
        with pytest.raises(EmbeddingServiceError, match="embedding service down") as exc_info:
            store.add(sample_chunks, flaky)

        assert exc_info.value.chunk_index == 2
        assert exc_info.value.records_committed == 2
        assert isinstance(exc_info.value.__cause__, ConnectionError)
        assert store.count() == 2
        assert store.get(1).content == "alpha chunk"

    def test_failure_on_first_chunk_commits_nothing(self, store, sample_chunks):
        def broken(text):
            raise RuntimeError("boom")

        store.reset_schema()
        with pytest.raises(EmbeddingServiceError) as exc_info:
            store.add(sample_chunks, broken)

        assert exc_info.value.records_committed == 0
        assert store.count() == 0

    def test_cancel_before_start(self, store, sample_chunks, sample_vectors, make_lookup_embedding):
        cancel = threading.Event()
        cancel.set()

        with pytest.raises(IngestionCancelledError) as exc_info:
            store.add(sample_chunks, make_lookup_embedding(sample_vectors), cancel_event=cancel)

        assert exc_info.value.records_committed == 0
        assert store.count() == 0

    def test_cancel_mid_batch_commits_prefix(self, store, sample_chunks, sample_vectors):
        cancel = threading.Event()

        def embed_then_cancel(text):
            cancel.set()
            return sample_vectors[text]

        store.reset_schema()
        with pytest.raises(IngestionCancelledError) as exc_info:
            store.add(sample_chunks, embed_then_cancel, cancel_event=cancel)

        assert exc_info.value.records_committed == 1
        assert store.count() == 1


class TestSimilaritySearch:

    def test_own_embedding_returns_record_at_distance_zero(self, filled_store, sample_vectors):
        results = filled_store.similarity_search(sample_vectors["beta chunk"], k=1)

        assert len(results) == 1
        assert results[0].id == 2
        assert results[0].content == "beta chunk"
        assert results[0].distance == 0.0

    def test_results_ordered_by_distance(self, filled_store):
        results = filled_store.similarity_search([0.9, 0.1, 0.3, 0.0], k=3)

        distances = [r.distance for r in results]
        assert distances == sorted(distances)
        assert results[0].content == "alpha chunk"

    def test_euclidean_distance_value(self, filled_store):
        results = filled_store.similarity_search([0.0, 0.0, 0.0, 0.0], k=3)
        by_content = {r.content: r.distance for r in results}

        assert by_content["alpha chunk"] == pytest.approx(1.0)
        assert by_content["gamma chunk"] == pytest.approx(1.25 ** 0.5)

    def test_k_larger_than_store_returns_everything(self, filled_store):
        assert len(filled_store.similarity_search([0.0, 0.0, 0.0, 0.0], k=50)) == 3

    def test_empty_store_returns_empty(self, store):
        store.reset_schema()
        assert store.similarity_search([0.0, 0.0, 0.0, 0.0], k=5) == []

    def test_never_created_store_returns_empty(self, store):
        assert store.similarity_search([0.0, 0.0, 0.0, 0.0], k=5) == []

    def test_ties_broken_by_insertion_order(self, store):
        chunks = [
            Chunk(text="first", source="a"),
            Chunk(text="second", source="b"),
            Chunk(text="third", source="c"),
        ]
        store.reset_schema()
        store.add(chunks, lambda text: [0.0, 1.0, 0.0, 0.0])

        results = store.similarity_search([0.0, 1.0, 0.0, 0.0], k=3)
        assert [r.id for r in results] == [1, 2, 3]

    def test_two_documents_scenario(self, store):
        chunks = [
            Chunk(text="A1", source="doc-A", title="Doc A"),
            Chunk(text="B1", source="doc-B"),
            Chunk(text="B2", source="doc-B"),
        ]
        vectors = {
            "A1": [0.0, 0.0, 2.0, 0.0],
            "B1": [1.0, 0.0, 0.0, 0.0],
            "B2": [0.0, 1.0, 0.0, 0.0],
        }
        store.reset_schema()
        store.add(chunks, lambda text: vectors[text])

        results = store.similarity_search([0.0, 0.0, 1.75, 0.0], k=3)
        assert results[0].content == "A1"
        assert results[0].source == "doc-A"
        assert results[0].title == "Doc A"

    @pytest.mark.parametrize("k", [0, -1, 2.5, "3", True])
    def test_invalid_k(self, filled_store, k):
        with pytest.raises(InvalidArgumentError):
            filled_store.similarity_search([0.0, 0.0, 0.0, 0.0], k=k)

    def test_query_dimension_mismatch(self, filled_store):
        with pytest.raises(DimensionMismatchError):
            filled_store.similarity_search([0.0, 0.0, 0.0], k=1)


class TestPrecisionAndLayout:

    def test_float64_store(self, make_lookup_embedding):
        store = create_vector_store(VectorStoreConfig(dimension=2, precision="float64"))
        vector = [0.1, 0.2]
        store.add([Chunk(text="x", source="s")], make_lookup_embedding({"x": vector}))

        assert store.get(1).embedding == vector
        assert store.similarity_search(vector, k=1)[0].distance == 0.0

    def test_reopening_with_other_dimension_rejected(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'vectors.db'}"
        writer = SQLVectorStore(VectorStoreConfig(database_url=url, dimension=4))
        writer.reset_schema()
        writer.add([Chunk(text="x", source="s")], lambda text: [1.0, 0.0, 0.0, 0.0])
        writer.close()

        reader = SQLVectorStore(VectorStoreConfig(database_url=url, dimension=3))
        with pytest.raises(DimensionMismatchError):
            reader.similarity_search([1.0, 0.0, 0.0], k=1)
        reader.close()

    def test_persisted_store_survives_reopen(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'vectors.db'}"
        writer = SQLVectorStore(VectorStoreConfig(database_url=url, dimension=4))
        writer.reset_schema()
        writer.add([Chunk(text="x", source="s")], lambda text: [1.0, 0.0, 0.0, 0.0])
        writer.close()

        reader = SQLVectorStore(VectorStoreConfig(database_url=url, dimension=4))
        assert reader.count() == 1
        assert reader.similarity_search([1.0, 0.0, 0.0, 0.0], k=1)[0].distance == 0.0
        reader.close()

    def test_distance_function_handles_nulls(self):
        import numpy as np

        distance = make_distance_function(np.dtype("float32"))
        assert distance(None, pack_vector([1.0], np.dtype("float32"))) is None


class TestNonFiniteVectors:

    @pytest.mark.parametrize("bad", [
        [float("nan"), 0.0, 0.0, 0.0],
        [0.0, float("inf"), 0.0, 0.0],
        [1e300, 0.0, 0.0, 0.0],  # overflows float32
    ])
    def test_rejected_at_ingest(self, store, sample_chunks, sample_vectors, bad):
        vectors = dict(sample_vectors)
        vectors["beta chunk"] = bad
        store.reset_schema()

        with pytest.raises(EmbeddingServiceError, match="non-finite") as exc_info:
            store.add(sample_chunks, lambda text: vectors[text])

        assert exc_info.value.chunk_index == 1
        assert exc_info.value.records_committed == 1
        results = store.similarity_search([1.0, 0.0, 0.0, 0.0], k=5)
        assert [r.content for r in results] == ["alpha chunk"]

    @pytest.mark.parametrize("bad", [float("nan"), float("-inf")])
    def test_rejected_at_query(self, filled_store, bad):
        with pytest.raises(InvalidArgumentError):
            filled_store.similarity_search([bad, 0.0, 0.0, 0.0], k=1)

    def test_unscorable_stored_row_is_skipped(self, filled_store):
        import numpy as np

        with filled_store.engine.begin() as conn:
            conn.execute(filled_store._table.insert().values(
                content="corrupt",
                source="legacy",
                embedding=np.array([np.nan, 0.0, 0.0, 0.0], dtype=np.float32).tobytes(),
            ))

        results = filled_store.similarity_search([1.0, 0.0, 0.0, 0.0], k=10)

        assert [r.content for r in results] == ["alpha chunk", "beta chunk", "gamma chunk"]
        assert results[0].distance == 0.0

    def test_pack_vector_rejects_nan(self):
        import numpy as np

        with pytest.raises(ValueError):
            pack_vector([float("nan")], np.dtype("float64"))


class TestAvailability:

    def test_unreachable_database(self, tmp_path):
        url = f"sqlite:///{tmp_path / 'missing' / 'dir' / 'vectors.db'}"
        store = SQLVectorStore(VectorStoreConfig(database_url=url, dimension=4))

        with pytest.raises(StoreUnavailableError):
            store.reset_schema()


class TestConcurrency:

    def test_search_not_blocked_while_batch_is_embedding(
        self, filled_store, sample_vectors
    ):
        started = threading.Event()
        release = threading.Event()
        errors = []

        def slow_embed(text):
            started.set()
            release.wait(timeout=5)
            return [0.5, 0.5, 0.0, 0.0]

        def ingest():
            try:
                filled_store.add(
                    [Chunk(text="late 1", source="late"), Chunk(text="late 2", source="late")],
                    slow_embed,
                )
            except Exception as e:  # surfaced through the errors list below
                errors.append(e)

        worker = threading.Thread(target=ingest)
        worker.start()
        assert started.wait(timeout=5)

        # The batch is mid-embedding: readers see the pre-ingest snapshot
        results = filled_store.similarity_search(sample_vectors["alpha chunk"], k=10)
        assert len(results) == 3

        release.set()
        worker.join(timeout=5)

        assert not errors
        assert filled_store.count() == 5

    def _run_searches(self, store, query, threads=8, rounds=30):
        sizes, errors = [], []

        def search():
            try:
                for _ in range(rounds):
                    sizes.append(len(store.similarity_search(query, k=10)))
            except Exception as e:  # surfaced through the errors list below
                errors.append(e)

        workers = [threading.Thread(target=search) for _ in range(threads)]
        for worker in workers:
            worker.start()
        for worker in workers:
            worker.join(timeout=30)

        assert not any(worker.is_alive() for worker in workers), "search threads hung"
        assert not errors
        return sizes

    def test_concurrent_searches_on_in_memory_store(self, filled_store, sample_vectors):
        sizes = self._run_searches(filled_store, sample_vectors["alpha chunk"])
        assert sizes == [3] * (8 * 30)

    def test_concurrent_searches_on_file_store(
        self, tmp_path, sample_chunks, sample_vectors, make_lookup_embedding
    ):
        url = f"sqlite:///{tmp_path / 'vectors.db'}"
        store = SQLVectorStore(VectorStoreConfig(database_url=url, dimension=4))
        store.reset_schema()
        store.add(sample_chunks, make_lookup_embedding(sample_vectors))

        sizes = self._run_searches(store, sample_vectors["alpha chunk"])
        store.close()

        assert sizes == [3] * (8 * 30)

    def test_search_during_reset_sees_whole_snapshots(
        self, filled_store, sample_chunks, sample_vectors, make_lookup_embedding
    ):
        embed = make_lookup_embedding(sample_vectors)
        stop = threading.Event()
        errors = []

        def rewrite():
            try:
                for _ in range(20):
                    filled_store.reset_schema()
                    filled_store.add(sample_chunks, embed)
            except Exception as e:  # surfaced through the errors list below
                errors.append(e)
            finally:
                stop.set()

        writer = threading.Thread(target=rewrite)
        writer.start()

        sizes = []
        while not stop.is_set():
            sizes.append(len(filled_store.similarity_search(sample_vectors["alpha chunk"], k=10)))
        writer.join(timeout=30)

        assert not writer.is_alive()
        assert not errors
        # Either the freshly reset table or the whole batch, never part of it
        assert set(sizes) <= {0, 3}
        assert filled_store.count() == 3
