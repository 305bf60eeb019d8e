"""Text extraction for uploaded documents (PDF and plain text)."""

from __future__ import annotations

import io
import logging
from pathlib import Path

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from university_rag.errors import InputError, UnsupportedFormatError
from university_rag.ingestion.chunker import normalise_whitespace

logger = logging.getLogger(__name__)

SUPPORTED_SUFFIXES = (".pdf", ".txt")


def extract_pdf_text(data: bytes) -> str:
    """Return the plain text of a PDF with layout whitespace collapsed."""
    try:
        reader = PdfReader(io.BytesIO(data))
        pages = [page.extract_text() or "" for page in reader.pages]
    except (PyPdfError, ValueError) as exc:
        raise InputError(f"Could not read PDF: {exc}") from exc
    return normalise_whitespace(" ".join(pages))


def extract_text(data: bytes, filename: str) -> str:
    """Dispatch on *filename*'s suffix and return normalised text.

    Raises
    ------
    UnsupportedFormatError
        For anything other than ``.pdf`` or ``.txt``.
    """
    name = (filename or "").lower()
    if name.endswith(".pdf"):
        text = extract_pdf_text(data)
    elif name.endswith(".txt"):
        text = normalise_whitespace(data.decode("utf-8", errors="replace"))
    else:
        raise UnsupportedFormatError("Unsupported file type. Upload a .pdf or .txt file.")

    logger.debug("Extracted %d chars from %s", len(text), filename)
    return text


def load_file(path: str | Path) -> str:
    """Read a document from disk and extract its text."""
    path = Path(path)
    if path.suffix.lower() not in SUPPORTED_SUFFIXES:
        raise UnsupportedFormatError(f"Unsupported file type: {path.suffix or path.name}")
    return extract_text(path.read_bytes(), path.name)
