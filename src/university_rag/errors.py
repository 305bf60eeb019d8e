"""Error taxonomy shared by the ingestion, retrieval and answer pipelines.

Every error carries the HTTP status the serving layer answers with, so the
request boundary can render ``{"error": ..., "details": ...}`` without
knowing which component raised it.
"""

from __future__ import annotations

from typing import Any


class RagError(Exception):
    """Base class for all service errors.

    Parameters
    ----------
    message:
        Human-readable message, safe to show to the caller.
    details:
        Optional structured payload (e.g. per-chunk failures).
    """

    status_code: int = 500

    def __init__(self, message: str, *, details: Any = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        body: dict[str, Any] = {"error": self.message}
        if self.details is not None:
            body["details"] = self.details
        return body


# ── Caller-correctable ────────────────────────────────────────────────


class InputError(RagError):
    """Bad, missing or oversized input."""

    status_code = 400


class UnsupportedFormatError(InputError):
    """The uploaded file type cannot be extracted."""


class NoUsableChunksError(InputError):
    """Extraction produced text, but nothing survived the chunker's noise filter."""


class NotFoundError(InputError):
    status_code = 404


# ── Auth ──────────────────────────────────────────────────────────────


class AuthError(RagError):
    """Missing or invalid credential."""

    status_code = 401


class ForbiddenError(AuthError):
    """Valid credential, insufficient role."""

    status_code = 403


# ── External services ─────────────────────────────────────────────────


class UpstreamError(RagError):
    """An external service (model, store, synthesiser) failed."""

    status_code = 502


class EmbeddingError(UpstreamError):
    pass


class ShapeError(EmbeddingError):
    """The embedding service answered with a vector of the wrong shape."""


class StoreError(UpstreamError):
    pass


class GenerationError(UpstreamError):
    pass


class SpeechError(UpstreamError):
    pass


# ── Aggregate ─────────────────────────────────────────────────────────


class IngestionFailedError(RagError):
    """Every chunk of a document failed to embed or store."""

    status_code = 500
