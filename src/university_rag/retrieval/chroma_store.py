"""Chroma implementation of the vector-store abstraction."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any
from uuid import uuid4

import chromadb

from university_rag.config import settings
from university_rag.errors import StoreError
from university_rag.retrieval.base import VectorStoreBase, rank_hits, unique_rows
from university_rag.retrieval.models import DocumentRow, RetrievedChunk

logger = logging.getLogger(__name__)


class ChromaVectorStore(VectorStoreBase):
    """Chroma-backed vector store using cosine distance.

    Parameters
    ----------
    collection_name:
        Name of the Chroma collection.
    host:
        Chroma server hostname.
    port:
        Chroma server port.
    client:
        Pre-built Chroma client (tests, embedded ``chromadb.EphemeralClient``).
    """

    def __init__(
        self,
        collection_name: str = settings.chroma_collection,
        *,
        host: str = settings.chroma_host,
        port: int = settings.chroma_port,
        client: Any = None,
        deduplicate: bool = True,
    ) -> None:
        super().__init__(collection_name, deduplicate=deduplicate)
        try:
            self._client = client or chromadb.HttpClient(host=host, port=port)
            self._collection = self._client.get_or_create_collection(
                name=collection_name,
                metadata={"hnsw:space": "cosine"},
            )
        except Exception as exc:
            raise StoreError(f"Vector store unreachable: {exc}") from exc

    # -- VectorStoreBase overrides --------------------------------------------

    def insert(self, rows: Sequence[DocumentRow]) -> int:
        try:
            if self.deduplicate:
                rows = unique_rows(rows)
                if rows:
                    existing = set(
                        self._collection.get(ids=[row.content_hash for row in rows], include=[])["ids"]
                    )
                    rows = [row for row in rows if row.content_hash not in existing]
            if not rows:
                return 0
            ids = [row.content_hash if self.deduplicate else uuid4().hex for row in rows]
            write = self._collection.upsert if self.deduplicate else self._collection.add
            write(
                ids=ids,
                embeddings=[row.embedding for row in rows],
                documents=[row.content for row in rows],
            )
        except Exception as exc:
            raise StoreError(f"Vector insert failed: {exc}") from exc
        return len(rows)

    def search(self, query_embedding: list[float], *, k: int = 3) -> list[RetrievedChunk]:
        try:
            if k <= 0 or self._collection.count() == 0:
                return []
            results = self._collection.query(
                query_embeddings=[query_embedding],
                n_results=k,
                include=["documents", "distances"],
            )
        except Exception as exc:
            raise StoreError(f"Vector search failed: {exc}") from exc

        docs = (results.get("documents") or [[]])[0]
        distances = (results.get("distances") or [[]])[0]
        # Cosine distance → similarity.
        return rank_hits(
            [(content or "", 1.0 - dist) for content, dist in zip(docs, distances)]
        )

    def health_check(self) -> bool:
        try:
            self._client.heartbeat()
            return True
        except Exception:
            logger.warning("Chroma health-check failed", exc_info=True)
            return False
