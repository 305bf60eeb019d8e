"""Semantic retriever — question embedding, nearest-neighbour search, context assembly.

Usage::

    retriever = SemanticRetriever(embedder, store, default_k=3)
    chunks    = retriever.search("When does the hostel fee fall due?")
    context   = build_context(chunks)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from university_rag.retrieval.base import VectorStoreBase
from university_rag.retrieval.models import RetrievedChunk

if TYPE_CHECKING:
    from university_rag.ingestion.embedder import Embedder

logger = logging.getLogger(__name__)


class SemanticRetriever:
    """High-level retriever that wraps an :class:`Embedder` and any store.

    Parameters
    ----------
    embedder:
        Used to embed the question with the same model as the corpus.
    store:
        A concrete vector-store backend.
    default_k:
        Default number of results returned by :meth:`search`.
    """

    def __init__(self, embedder: Embedder, store: VectorStoreBase, *, default_k: int = 3) -> None:
        self._embedder = embedder
        self._store = store
        self.default_k = default_k

    def search(self, query: str, *, k: int | None = None) -> list[RetrievedChunk]:
        """Embed *query* and return the top-*k* chunks, best match first.

        Raises
        ------
        EmbeddingError
            When the question cannot be embedded.
        StoreError
            When the vector store is unreachable.
        """
        embedding = self._embedder.embed(query)
        return self.search_by_embedding(embedding, k=k)

    def search_by_embedding(self, embedding: list[float], *, k: int | None = None) -> list[RetrievedChunk]:
        """Same as :meth:`search` but accepts a pre-computed embedding."""
        k = self.default_k if k is None else k
        results = self._store.search(embedding, k=k)
        logger.info("Retrieved %d chunk(s) (k=%d)", len(results), k)
        return results


def build_context(chunks: list[RetrievedChunk]) -> str:
    """Numbered context block, ``[1] …\\n\\n[2] …``, in retrieval-rank order."""
    return "\n\n".join(f"[{i}] {chunk.content}" for i, chunk in enumerate(chunks, 1))
