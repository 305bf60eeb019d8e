"""Abstract base class for vector-store backends.

Adding a new backend (Pinecone, Qdrant …) only requires subclassing
:class:`VectorStoreBase` and implementing the three abstract methods.
The ingestion and answer pipelines are backend-agnostic.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from collections.abc import Sequence

from university_rag.retrieval.models import DocumentRow, RetrievedChunk


class VectorStoreBase(ABC):
    """Backend-agnostic vector-store interface.

    Parameters
    ----------
    collection_name:
        Logical name of the collection / table.
    deduplicate:
        When ``True`` rows are keyed by their content hash, so inserting the
        same chunk twice stores it once.
    """

    def __init__(self, collection_name: str, *, deduplicate: bool = True) -> None:
        self.collection_name = collection_name
        self.deduplicate = deduplicate

    @abstractmethod
    def insert(self, rows: Sequence[DocumentRow]) -> int:
        """Persist *rows* and return how many were newly stored.

        With deduplication on, rows whose content hash is already stored are
        skipped and not counted.

        Raises
        ------
        StoreError
            When the backend is unreachable or rejects the write.
        """
        ...

    @abstractmethod
    def search(self, query_embedding: list[float], *, k: int = 3) -> list[RetrievedChunk]:
        """Return up to *k* stored chunks, best match first.

        An empty store yields an empty list, never an error.

        Raises
        ------
        StoreError
            When the backend is unreachable.
        """
        ...

    @abstractmethod
    def health_check(self) -> bool:
        """Return ``True`` when the backend is reachable and ready."""
        ...


def unique_rows(rows: Sequence[DocumentRow]) -> list[DocumentRow]:
    """Drop rows whose content hash already appeared earlier in *rows*."""
    seen: set[str] = set()
    unique: list[DocumentRow] = []
    for row in rows:
        if row.content_hash not in seen:
            seen.add(row.content_hash)
            unique.append(row)
    return unique


def rank_hits(hits: Sequence[tuple[str, float | None]]) -> list[RetrievedChunk]:
    """Number ``(content, score)`` pairs that are already best-first."""
    return [
        RetrievedChunk(content=content, rank=i, score=score)
        for i, (content, score) in enumerate(hits, 1)
    ]
