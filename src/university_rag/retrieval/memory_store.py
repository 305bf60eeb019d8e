"""In-process vector store with exact cosine search (local runs and tests)."""

from __future__ import annotations

import math
from collections.abc import Sequence

from university_rag.retrieval.base import VectorStoreBase, rank_hits
from university_rag.retrieval.models import DocumentRow, RetrievedChunk


def cosine_similarity(a: Sequence[float], b: Sequence[float]) -> float:
    dot = sum(x * y for x, y in zip(a, b))
    norm = math.sqrt(sum(x * x for x in a)) * math.sqrt(sum(y * y for y in b))
    return dot / norm if norm else 0.0


class InMemoryVectorStore(VectorStoreBase):
    """Keeps rows in a list; ties keep insertion order."""

    def __init__(self, collection_name: str = "documents", *, deduplicate: bool = True) -> None:
        super().__init__(collection_name, deduplicate=deduplicate)
        self._rows: list[DocumentRow] = []
        self._hashes: set[str] = set()

    def __len__(self) -> int:
        return len(self._rows)

    @property
    def rows(self) -> list[DocumentRow]:
        return list(self._rows)

    def insert(self, rows: Sequence[DocumentRow]) -> int:
        inserted = 0
        for row in rows:
            if self.deduplicate:
                if row.content_hash in self._hashes:
                    continue
                self._hashes.add(row.content_hash)
            self._rows.append(row)
            inserted += 1
        return inserted

    def search(self, query_embedding: list[float], *, k: int = 3) -> list[RetrievedChunk]:
        scored = [(row.content, cosine_similarity(query_embedding, row.embedding)) for row in self._rows]
        scored.sort(key=lambda hit: hit[1], reverse=True)
        return rank_hits(scored[:k])

    def health_check(self) -> bool:
        return True
