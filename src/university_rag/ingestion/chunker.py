"""Word-window chunking."""

from __future__ import annotations

import re

from university_rag.ingestion.models import Chunk

NOISE_FLOOR_WORDS = 5

_WHITESPACE = re.compile(r"\s+")


def normalise_whitespace(text: str) -> str:
    """Collapse every whitespace run to a single space and trim the ends."""
    return _WHITESPACE.sub(" ", text).strip()


def chunk_text(
    text: str,
    *,
    max_words: int = 600,
    min_words: int | None = None,
) -> list[Chunk]:
    """Split *text* into consecutive, non-overlapping word windows.

    Parameters
    ----------
    text:
        Raw or extracted document text; whitespace is normalised first.
    max_words:
        Maximum number of words per chunk.
    min_words:
        Optional lower bound. Windows shorter than ``max(5, min_words)``
        are dropped; the 5-word noise floor always applies.

    Returns
    -------
    list[Chunk]
        Chunks in document order. Empty when nothing survives the filter.
    """
    if max_words < 1:
        raise ValueError(f"max_words must be >= 1, got {max_words}")

    floor = max(NOISE_FLOOR_WORDS, min_words or 0)
    words = normalise_whitespace(text).split(" ") if text else []
    words = [w for w in words if w]

    chunks: list[Chunk] = []
    for start in range(0, len(words), max_words):
        window = words[start : start + max_words]
        if len(window) < floor:
            continue
        chunks.append(Chunk(content=" ".join(window), index=len(chunks)))
    return chunks
