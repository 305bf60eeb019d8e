"""Postgres + pgvector implementation of the vector-store abstraction.

Uses a plain ``documents`` table and a ``match_documents`` SQL function,
the same contract Supabase-style deployments expose over RPC::

    match_documents(query_embedding vector(D), match_count int)
        -> table(content text, similarity float)

Vectors cross the wire as pgvector literals (``"[0.1,0.2,...]"``) produced by
:func:`~university_rag.ingestion.embedder.to_vector_literal`.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any

from sqlalchemy import create_engine, text
from sqlalchemy.exc import SQLAlchemyError

from university_rag.config import settings
from university_rag.errors import StoreError
from university_rag.ingestion.embedder import to_vector_literal
from university_rag.retrieval.base import VectorStoreBase, rank_hits, unique_rows
from university_rag.retrieval.models import DocumentRow, RetrievedChunk

logger = logging.getLogger(__name__)


def schema_statements(table: str, dimension: int) -> list[str]:
    """DDL for the documents table and its nearest-neighbour function."""
    return [
        "CREATE EXTENSION IF NOT EXISTS vector",
        f"""
        CREATE TABLE IF NOT EXISTS {table} (
            id bigserial PRIMARY KEY,
            content text NOT NULL,
            content_hash text UNIQUE,
            embedding vector({dimension}) NOT NULL
        )
        """,
        f"""
        CREATE OR REPLACE FUNCTION match_{table}(query_embedding vector({dimension}), match_count int)
        RETURNS TABLE (content text, similarity float)
        LANGUAGE sql STABLE AS $$
            SELECT d.content, 1 - (d.embedding <=> query_embedding) AS similarity
            FROM {table} d
            ORDER BY d.embedding <=> query_embedding, d.id
            LIMIT match_count
        $$
        """,
    ]


class PgVectorStore(VectorStoreBase):
    """pgvector-backed store; similarity is cosine (``<=>``).

    Parameters
    ----------
    collection_name:
        Table name (``documents`` by default).
    database_url:
        SQLAlchemy URL; ignored when *engine* is given.
    engine:
        Pre-built SQLAlchemy engine.
    dimension:
        Embedding dimension of the ``vector`` column.
    """

    def __init__(
        self,
        collection_name: str = "documents",
        *,
        database_url: str = settings.vector_database_url,
        engine: Any = None,
        dimension: int = settings.embedding_dimension,
        deduplicate: bool = True,
    ) -> None:
        super().__init__(collection_name, deduplicate=deduplicate)
        self.dimension = dimension
        self._engine = engine or create_engine(database_url, pool_pre_ping=True)

    def create_schema(self) -> None:
        """Create the extension, table and match function if missing."""
        try:
            with self._engine.begin() as conn:
                for stmt in schema_statements(self.collection_name, self.dimension):
                    conn.execute(text(stmt))
        except SQLAlchemyError as exc:
            raise StoreError(f"Schema creation failed: {exc}") from exc

    # -- VectorStoreBase overrides --------------------------------------------

    def insert(self, rows: Sequence[DocumentRow]) -> int:
        if self.deduplicate:
            rows = unique_rows(rows)
        if not rows:
            return 0
        conflict = " ON CONFLICT (content_hash) DO NOTHING" if self.deduplicate else ""
        stmt = text(
            f"INSERT INTO {self.collection_name} (content, content_hash, embedding) "
            f"VALUES (:content, :content_hash, CAST(:embedding AS vector)){conflict}"
        )
        params = [
            {
                "content": row.content,
                "content_hash": row.content_hash if self.deduplicate else None,
                "embedding": to_vector_literal(row.embedding),
            }
            for row in rows
        ]
        try:
            # One transaction per call; rows run singly so rowcount drops conflicts.
            with self._engine.begin() as conn:
                return sum(conn.execute(stmt, p).rowcount for p in params)
        except SQLAlchemyError as exc:
            raise StoreError(f"Vector insert failed: {exc}") from exc

    def search(self, query_embedding: list[float], *, k: int = 3) -> list[RetrievedChunk]:
        stmt = text(
            f"SELECT content, similarity FROM match_{self.collection_name}("
            "CAST(:query_embedding AS vector), :match_count)"
        )
        try:
            with self._engine.connect() as conn:
                result = conn.execute(
                    stmt,
                    {"query_embedding": to_vector_literal(query_embedding), "match_count": k},
                )
                hits = [(row.content, row.similarity) for row in result]
        except SQLAlchemyError as exc:
            raise StoreError(f"Vector search failed: {exc}") from exc
        return rank_hits(hits)

    def health_check(self) -> bool:
        try:
            with self._engine.connect() as conn:
                conn.execute(text("SELECT 1"))
            return True
        except SQLAlchemyError:
            logger.warning("Postgres health-check failed", exc_info=True)
            return False
