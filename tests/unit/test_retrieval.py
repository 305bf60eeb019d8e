"""Unit tests for the retrieval layer — models, stores, and SemanticRetriever."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any
from unittest.mock import MagicMock

import pytest
from pydantic import ValidationError
from sqlalchemy.exc import OperationalError

from university_rag.errors import StoreError
from university_rag.retrieval.base import VectorStoreBase, rank_hits, unique_rows
from university_rag.retrieval.chroma_store import ChromaVectorStore
from university_rag.retrieval.memory_store import InMemoryVectorStore, cosine_similarity
from university_rag.retrieval.models import DocumentRow, RetrievedChunk, content_hash
from university_rag.retrieval.pgvector_store import PgVectorStore, schema_statements
from university_rag.retrieval.retriever import SemanticRetriever, build_context

CORPUS = [
    "Hostel fees are payable before the start of each semester.",
    "The central library is open from eight in the morning until midnight.",
    "Admission to the MBA programme requires a graduate degree.",
    "Convocation is held every November on the main campus.",
]


# ── Fake vector store for deterministic testing ─────────────────────────


class FakeVectorStore(VectorStoreBase):
    """Returns canned hits and records the requested k."""

    def __init__(self, hits: list[tuple[str, float]] | None = None) -> None:
        super().__init__("test-collection")
        self._hits = hits or []
        self.last_k: int | None = None

    def insert(self, rows) -> int:  # noqa: ANN001
        raise NotImplementedError

    def search(self, query_embedding: list[float], *, k: int = 3) -> list[RetrievedChunk]:
        self.last_k = k
        return rank_hits(self._hits[:k])

    def health_check(self) -> bool:
        return True


def _engine_with(conn: MagicMock) -> MagicMock:
    engine = MagicMock()
    engine.begin.return_value.__enter__.return_value = conn
    engine.connect.return_value.__enter__.return_value = conn
    return engine


# ── Models ──────────────────────────────────────────────────────────────


class TestModels:
    def test_content_hash_is_stable(self) -> None:
        row = DocumentRow(content="fees", embedding=[1.0])
        assert row.content_hash == content_hash("fees")
        assert len(row.content_hash) == 64

    def test_rows_are_immutable(self) -> None:
        row = DocumentRow(content="fees", embedding=[1.0])
        with pytest.raises(ValidationError):
            row.content = "other"  # type: ignore[misc]

    def test_rank_must_be_positive(self) -> None:
        with pytest.raises(ValueError):
            RetrievedChunk(content="x", rank=0)

    def test_rank_hits_numbers_from_one(self) -> None:
        ranked = rank_hits([("a", 0.9), ("b", 0.5)])
        assert [(c.content, c.rank) for c in ranked] == [("a", 1), ("b", 2)]

    def test_unique_rows_keeps_first(self) -> None:
        rows = [
            DocumentRow(content="a", embedding=[1.0]),
            DocumentRow(content="a", embedding=[2.0]),
            DocumentRow(content="b", embedding=[3.0]),
        ]
        assert [r.embedding for r in unique_rows(rows)] == [[1.0], [3.0]]


# ── In-memory store ─────────────────────────────────────────────────────


class TestInMemoryVectorStore:
    def test_cosine_similarity(self) -> None:
        assert cosine_similarity([1.0, 0.0], [1.0, 0.0]) == pytest.approx(1.0)
        assert cosine_similarity([1.0, 0.0], [0.0, 1.0]) == pytest.approx(0.0)
        assert cosine_similarity([0.0, 0.0], [1.0, 0.0]) == 0.0

    def test_stored_chunk_is_its_own_best_match(self, embedder, memory_store) -> None:
        memory_store.insert([DocumentRow(content=t, embedding=embedder.embed(t)) for t in CORPUS])

        for text in CORPUS:
            top = memory_store.search(embedder.embed(text), k=3)[0]
            assert top.content == text
            assert top.rank == 1
            assert top.score == pytest.approx(1.0)

    def test_ranks_are_contiguous_and_capped(self, embedder, memory_store) -> None:
        memory_store.insert([DocumentRow(content=t, embedding=embedder.embed(t)) for t in CORPUS])
        results = memory_store.search(embedder.embed("library hours"), k=3)
        assert [r.rank for r in results] == [1, 2, 3]
        scores = [r.score for r in results]
        assert scores == sorted(scores, reverse=True)

    def test_empty_store(self, memory_store) -> None:
        assert memory_store.search([1.0, 0.0], k=3) == []

    def test_deduplication_toggle(self) -> None:
        row = DocumentRow(content="same", embedding=[1.0])
        deduped = InMemoryVectorStore()
        assert deduped.insert([row, row]) == 1
        assert deduped.insert([row]) == 0
        plain = InMemoryVectorStore(deduplicate=False)
        assert plain.insert([row, row]) == 2
        assert (len(deduped), len(plain)) == (1, 2)


# ── Chroma store ────────────────────────────────────────────────────────


class TestChromaVectorStore:
    def _store(self, **kwargs: Any) -> tuple[ChromaVectorStore, MagicMock]:
        client = MagicMock()
        collection = client.get_or_create_collection.return_value
        return ChromaVectorStore("docs", client=client, **kwargs), collection

    def test_collection_uses_cosine_space(self) -> None:
        client = MagicMock()
        ChromaVectorStore("docs", client=client)
        client.get_or_create_collection.assert_called_once_with(
            name="docs", metadata={"hnsw:space": "cosine"}
        )

    def test_insert_upserts_by_content_hash(self) -> None:
        store, collection = self._store()
        collection.get.return_value = {"ids": []}

        assert store.insert([DocumentRow(content="fees", embedding=[0.1, 0.2])]) == 1

        collection.get.assert_called_once_with(ids=[content_hash("fees")], include=[])
        collection.upsert.assert_called_once_with(
            ids=[content_hash("fees")], embeddings=[[0.1, 0.2]], documents=["fees"]
        )

    def test_insert_skips_rows_already_stored(self) -> None:
        store, collection = self._store()
        collection.get.return_value = {"ids": [content_hash("fees")]}

        inserted = store.insert(
            [DocumentRow(content="fees", embedding=[0.1]), DocumentRow(content="hostel", embedding=[0.2])]
        )

        assert inserted == 1
        collection.upsert.assert_called_once_with(
            ids=[content_hash("hostel")], embeddings=[[0.2]], documents=["hostel"]
        )

    def test_insert_of_known_row_writes_nothing(self) -> None:
        store, collection = self._store()
        collection.get.return_value = {"ids": [content_hash("fees")]}
        assert store.insert([DocumentRow(content="fees", embedding=[0.1])]) == 0
        collection.upsert.assert_not_called()

    def test_insert_without_dedup_adds(self) -> None:
        store, collection = self._store(deduplicate=False)
        assert store.insert([DocumentRow(content="fees", embedding=[0.1])]) == 1
        collection.add.assert_called_once()
        collection.get.assert_not_called()
        collection.upsert.assert_not_called()

    def test_search_converts_distance_to_similarity(self) -> None:
        store, collection = self._store()
        collection.count.return_value = 2
        collection.query.return_value = {"documents": [["a", "b"]], "distances": [[0.1, 0.4]]}

        results = store.search([0.1, 0.2], k=2)

        assert [(r.content, r.rank) for r in results] == [("a", 1), ("b", 2)]
        assert results[0].score == pytest.approx(0.9)
        assert collection.query.call_args.kwargs["n_results"] == 2

    def test_zero_k_skips_query(self) -> None:
        store, collection = self._store()
        collection.count.return_value = 2
        assert store.search([0.1], k=0) == []
        collection.query.assert_not_called()

    def test_search_on_empty_collection(self) -> None:
        store, collection = self._store()
        collection.count.return_value = 0
        assert store.search([0.1], k=3) == []
        collection.query.assert_not_called()

    def test_backend_errors_become_store_errors(self) -> None:
        store, collection = self._store()
        collection.count.side_effect = ConnectionError("refused")
        with pytest.raises(StoreError):
            store.search([0.1], k=3)

    def test_unreachable_server(self) -> None:
        client = MagicMock()
        client.get_or_create_collection.side_effect = ConnectionError("refused")
        with pytest.raises(StoreError, match="unreachable"):
            ChromaVectorStore("docs", client=client)


# ── pgvector store ──────────────────────────────────────────────────────


class TestPgVectorStore:
    def test_schema_uses_dimension(self) -> None:
        ddl = "\n".join(schema_statements("documents", 384))
        assert "vector(384)" in ddl
        assert "match_documents" in ddl
        assert "content_hash text UNIQUE" in ddl

    def test_insert_sends_vector_literal(self) -> None:
        conn = MagicMock()
        conn.execute.return_value.rowcount = 1
        store = PgVectorStore(engine=_engine_with(conn), dimension=2)

        assert store.insert([DocumentRow(content="fees", embedding=[0.5, 1.0])]) == 1

        stmt, params = conn.execute.call_args.args
        assert "ON CONFLICT (content_hash) DO NOTHING" in str(stmt)
        assert params == {"content": "fees", "content_hash": content_hash("fees"), "embedding": "[0.5,1.0]"}

    def test_conflicting_rows_are_not_counted(self) -> None:
        conn = MagicMock()
        conn.execute.side_effect = [SimpleNamespace(rowcount=0), SimpleNamespace(rowcount=1)]
        store = PgVectorStore(engine=_engine_with(conn), dimension=2)

        inserted = store.insert(
            [DocumentRow(content="fees", embedding=[0.5, 1.0]), DocumentRow(content="hostel", embedding=[1.0, 0.5])]
        )

        assert inserted == 1
        assert conn.execute.call_count == 2

    def test_search_ranks_rows(self) -> None:
        conn = MagicMock()
        conn.execute.return_value = [
            SimpleNamespace(content="a", similarity=0.8),
            SimpleNamespace(content="b", similarity=0.3),
        ]
        store = PgVectorStore(engine=_engine_with(conn), dimension=2)

        results = store.search([0.5, 1.0], k=2)

        assert [(r.content, r.rank, r.score) for r in results] == [("a", 1, 0.8), ("b", 2, 0.3)]
        stmt, params = conn.execute.call_args.args
        assert "match_documents" in str(stmt)
        assert params == {"query_embedding": "[0.5,1.0]", "match_count": 2}

    def test_database_error_becomes_store_error(self) -> None:
        conn = MagicMock()
        conn.execute.side_effect = OperationalError("SELECT", {}, Exception("connection refused"))
        store = PgVectorStore(engine=_engine_with(conn), dimension=2)
        with pytest.raises(StoreError):
            store.search([0.5, 1.0], k=3)


# ── SemanticRetriever ───────────────────────────────────────────────────


class TestSemanticRetriever:
    def test_default_k(self, embedder) -> None:
        store = FakeVectorStore([("a", 0.9), ("b", 0.8), ("c", 0.7), ("d", 0.6)])
        results = SemanticRetriever(embedder, store, default_k=3).search("fees")
        assert store.last_k == 3
        assert len(results) == 3

    def test_explicit_k(self, embedder) -> None:
        store = FakeVectorStore([("a", 0.9), ("b", 0.8)])
        SemanticRetriever(embedder, store).search("fees", k=1)
        assert store.last_k == 1

    def test_zero_k_is_not_replaced_by_default(self, embedder) -> None:
        store = FakeVectorStore([("a", 0.9)])
        assert SemanticRetriever(embedder, store, default_k=3).search("fees", k=0) == []
        assert store.last_k == 0

    def test_end_to_end_with_memory_store(self, embedder, memory_store) -> None:
        memory_store.insert([DocumentRow(content=t, embedding=embedder.embed(t)) for t in CORPUS])
        results = SemanticRetriever(embedder, memory_store).search(CORPUS[2])
        assert results[0].content == CORPUS[2]


def test_build_context_numbers_chunks() -> None:
    chunks = rank_hits([("first passage", 0.9), ("second passage", 0.8)])
    assert build_context(chunks) == "[1] first passage\n\n[2] second passage"


def test_build_context_empty() -> None:
    assert build_context([]) == ""
