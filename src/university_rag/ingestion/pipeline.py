"""Document ingestion — extract → chunk → embed → store, one chunk at a time.

Per-document lifecycle (each transition is logged)::

    RECEIVED → EXTRACTED → CHUNKED → EMBEDDING(i) → STORED(i) → … → COMPLETE
                                                                   ↘ FAILED

Chunks are processed **sequentially** and failures are isolated: an
embedding or storage error on chunk ``i`` is recorded with its index and
the loop moves on to ``i + 1``. The document only fails as a whole when
every chunk failed. Chunks the store already holds count as skipped.
"""

from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from university_rag.config import settings
from university_rag.errors import (
    IngestionFailedError,
    InputError,
    NoUsableChunksError,
    RagError,
)
from university_rag.ingestion.chunker import chunk_text, normalise_whitespace
from university_rag.ingestion.loader import extract_text, load_file
from university_rag.ingestion.models import ChunkError, IngestionReport
from university_rag.retrieval.models import DocumentRow

if TYPE_CHECKING:
    from university_rag.ingestion.embedder import Embedder
    from university_rag.retrieval.base import VectorStoreBase

logger = logging.getLogger(__name__)


class IngestionStage(str, Enum):
    RECEIVED = "received"
    EXTRACTED = "extracted"
    CHUNKED = "chunked"
    EMBEDDING = "embedding"
    STORED = "stored"
    COMPLETE = "complete"
    FAILED = "failed"


class IngestionPipeline:
    """Orchestrates ingestion of a single document.

    Parameters
    ----------
    embedder:
        Produces one vector per chunk.
    store:
        Receives one :class:`DocumentRow` per successfully embedded chunk.
    max_words / min_words:
        Chunking policy forwarded to :func:`chunk_text`.
    max_bytes:
        Upper bound on uploaded file size.
    """

    def __init__(
        self,
        embedder: Embedder,
        store: VectorStoreBase,
        *,
        max_words: int = settings.chunk_max_words,
        min_words: int | None = settings.chunk_min_words,
        max_bytes: int = settings.max_upload_bytes,
    ) -> None:
        self._embedder = embedder
        self._store = store
        self.max_words = max_words
        self.min_words = min_words
        self.max_bytes = max_bytes

    # -- public API -----------------------------------------------------------

    def ingest(
        self,
        *,
        data: bytes | None = None,
        filename: str | None = None,
        text: str | None = None,
    ) -> IngestionReport:
        """Ingest an uploaded file or pasted text.

        A non-empty file takes precedence over *text*.

        Raises
        ------
        InputError
            Missing / oversized input, unsupported format, or no usable text.
        IngestionFailedError
            Every chunk failed; ``details`` lists each failure.
        """
        if data:
            if len(data) > self.max_bytes:
                raise InputError(f"File exceeds the {self.max_bytes // (1024 * 1024)} MB upload limit.")
            source = filename or "upload"
            logger.info("[%s] %s (%d bytes)", source, IngestionStage.RECEIVED.name, len(data))
            raw_text = extract_text(data, source)
        elif text is not None and text.strip():
            source = "pasted-text"
            logger.info("[%s] %s (%d chars)", source, IngestionStage.RECEIVED.name, len(text))
            raw_text = normalise_whitespace(text)
        else:
            raise InputError("Provide a file (.pdf or .txt) or paste text content.")

        return self._ingest_text(raw_text, source=source)

    def ingest_path(self, path: str | Path) -> IngestionReport:
        """Ingest a ``.pdf`` / ``.txt`` file from disk."""
        path = Path(path)
        logger.info("[%s] %s", path, IngestionStage.RECEIVED.name)
        return self._ingest_text(load_file(path), source=str(path))

    # -- internals ------------------------------------------------------------

    def _ingest_text(self, raw_text: str, *, source: str) -> IngestionReport:
        if not raw_text:
            raise InputError("No readable text found in the input.")
        logger.info("[%s] %s (%d chars)", source, IngestionStage.EXTRACTED.name, len(raw_text))

        chunks = chunk_text(raw_text, max_words=self.max_words, min_words=self.min_words)
        if not chunks:
            raise NoUsableChunksError("Text produced zero usable chunks.")
        logger.info("[%s] %s into %d chunk(s)", source, IngestionStage.CHUNKED.name, len(chunks))

        report = IngestionReport(source=source, total_chunks=len(chunks))
        for chunk in chunks:
            try:
                logger.debug("[%s] %s(%d)", source, IngestionStage.EMBEDDING.name, chunk.index)
                embedding = self._embedder.embed(chunk.content)
                inserted = self._store.insert([DocumentRow(content=chunk.content, embedding=embedding)])
                logger.debug("[%s] %s(%d)", source, IngestionStage.STORED.name, chunk.index)
                if inserted:
                    report.chunks_inserted += 1
                else:
                    logger.debug("[%s] chunk %d already stored", source, chunk.index)
                    report.chunks_skipped += 1
            except RagError as exc:
                logger.error("[%s] chunk %d failed: %s", source, chunk.index, exc.message)
                report.errors.append(ChunkError(chunk=chunk.index, message=exc.message))

        if len(report.errors) == len(chunks):
            logger.error("[%s] %s: all %d chunk(s) failed", source, IngestionStage.FAILED.name, len(chunks))
            raise IngestionFailedError(
                "All chunks failed to embed/insert.",
                details=[e.model_dump() for e in report.errors],
            )

        logger.info(
            "[%s] %s: %d/%d chunk(s) stored, %d already present",
            source,
            IngestionStage.COMPLETE.name,
            report.chunks_inserted,
            report.total_chunks,
            report.chunks_skipped,
        )
        return report
