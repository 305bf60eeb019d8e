"""Domain models for stored rows and retrieval results."""

from __future__ import annotations

import hashlib

from pydantic import BaseModel, Field, computed_field


def content_hash(content: str) -> str:
    """SHA-256 hex digest used as the row's deduplication key."""
    return hashlib.sha256(content.encode("utf-8")).hexdigest()


class DocumentRow(BaseModel):
    """One persisted ``(content, embedding)`` pair — one row per chunk.

    Rows are immutable once written; there is no update path.
    """

    model_config = {"frozen": True}

    content: str
    embedding: list[float]

    @computed_field  # type: ignore[prop-decorator]
    @property
    def content_hash(self) -> str:
        return content_hash(self.content)


class RetrievedChunk(BaseModel):
    """A passage returned by similarity search.

    Attributes
    ----------
    content:
        The stored chunk text.
    rank:
        1-based position in the result list (1 = best match).
    score:
        Similarity score reported by the backend (higher = more similar).
    """

    content: str
    rank: int = Field(ge=1)
    score: float | None = None

    def __str__(self) -> str:  # noqa: D105
        return f"[{self.rank}] {self.content[:120]}…"
