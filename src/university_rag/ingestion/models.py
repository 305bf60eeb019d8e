"""Domain models produced by the ingestion pipeline."""

from __future__ import annotations

from pydantic import BaseModel, Field


class Chunk(BaseModel):
    """A contiguous word-window of normalised source text.

    Attributes
    ----------
    content:
        The window's words joined by single spaces.
    index:
        Ordinal position of the chunk within its source document (0-based).
    """

    content: str
    index: int = 0

    @property
    def word_count(self) -> int:
        return len(self.content.split(" "))


class ChunkError(BaseModel):
    """A chunk that failed to embed or store, by 0-based index."""

    chunk: int
    message: str


class IngestionReport(BaseModel):
    """Outcome of ingesting one document.

    ``chunks_skipped`` counts chunks the store already held (same content
    hash); they are neither new rows nor errors.
    """

    source: str = "pasted-text"
    chunks_inserted: int = 0
    chunks_skipped: int = 0
    total_chunks: int = 0
    errors: list[ChunkError] = Field(default_factory=list)

    @property
    def complete(self) -> bool:
        return self.chunks_inserted + self.chunks_skipped == self.total_chunks
