"""Embedding generation with strict output-shape validation."""

from __future__ import annotations

import logging
import math
import numbers
from typing import TYPE_CHECKING, Any

from huggingface_hub import InferenceClient
from langchain_core.embeddings import Embeddings

from university_rag.config import settings
from university_rag.errors import EmbeddingError, InputError, ShapeError

if TYPE_CHECKING:
    from university_rag.config import Settings

logger = logging.getLogger(__name__)

MAX_UNWRAP_DEPTH = 3


class InferenceEndpointEmbeddings(Embeddings):
    """LangChain ``Embeddings`` backed by the Hugging Face Inference API.

    The raw ``feature_extraction`` payload is returned untouched (it may be
    nested); :class:`Embedder` is responsible for flattening and validating it.
    """

    def __init__(
        self,
        model: str = settings.embedding_model,
        *,
        token: str | None = None,
        timeout: float | None = settings.embedding_timeout_seconds,
        client: Any = None,
    ) -> None:
        self.model = model
        self._client = client or InferenceClient(model=model, token=token or None, timeout=timeout)

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self.embed_query(text) for text in texts]

    def embed_query(self, text: str) -> list[float]:
        output = self._client.feature_extraction(text)
        return output.tolist() if hasattr(output, "tolist") else output


def build_embedding_backend(cfg: Settings = settings) -> Embeddings:
    """Return the configured embedding backend."""
    if cfg.embedding_provider == "local":
        from langchain_huggingface import HuggingFaceEmbeddings

        return HuggingFaceEmbeddings(model_name=cfg.embedding_model)
    if cfg.embedding_provider == "inference_api":
        return InferenceEndpointEmbeddings(
            cfg.embedding_model,
            token=cfg.huggingface_api_key,
            timeout=cfg.embedding_timeout_seconds,
        )
    raise ValueError(f"Unsupported embedding_provider={cfg.embedding_provider!r}")


def _as_list(value: Any) -> Any:
    if hasattr(value, "tolist"):
        return value.tolist()
    if isinstance(value, tuple):
        return list(value)
    return value


def flatten_embedding(raw: Any, *, max_depth: int = MAX_UNWRAP_DEPTH) -> list[float]:
    """Unwrap ``[[v1..vD]]``-style payloads down to a flat float list.

    Only the first element is followed at each level. More than *max_depth*
    levels of wrapping, a non-array payload, or a non-finite / non-numeric
    component raises :class:`ShapeError`.
    """
    vector = _as_list(raw)
    depth = 0
    while isinstance(vector, list) and vector and isinstance(_as_list(vector[0]), list):
        if depth >= max_depth:
            raise ShapeError(f"Embedding nested deeper than {max_depth} levels")
        vector = _as_list(vector[0])
        depth += 1

    if not isinstance(vector, list):
        raise ShapeError(f"Unexpected embedding payload: {type(raw).__name__}")
    if not vector:
        raise ShapeError("Empty embedding payload")

    values: list[float] = []
    for component in vector:
        if isinstance(component, bool) or not isinstance(component, numbers.Real):
            raise ShapeError(f"Non-numeric embedding component: {component!r}")
        number = float(component)
        if not math.isfinite(number):
            raise ShapeError(f"Non-finite embedding component: {component!r}")
        values.append(number)
    return values


def to_vector_literal(vector: list[float]) -> str:
    """Format *vector* as a pgvector literal, e.g. ``"[0.1,0.2]"``."""
    return "[" + ",".join(str(float(v)) for v in vector) + "]"


class Embedder:
    """Turns text into a fixed-dimension vector or fails loudly.

    Parameters
    ----------
    backend:
        Any LangChain ``Embeddings`` implementation.
    dimension:
        Required vector length; anything else is rejected, never padded.
    """

    def __init__(self, backend: Embeddings, *, dimension: int = settings.embedding_dimension) -> None:
        self._backend = backend
        self.dimension = dimension

    def embed(self, text: str) -> list[float]:
        if not text or not text.strip():
            raise InputError("Cannot embed empty text")

        try:
            raw = self._backend.embed_query(text)
        except Exception as exc:
            logger.warning("Embedding call failed: %s", exc)
            raise EmbeddingError(f"Embedding generation failed: {exc}") from exc

        vector = flatten_embedding(raw)
        if len(vector) != self.dimension:
            raise ShapeError(
                f"Unexpected embedding dimension: expected {self.dimension}, got {len(vector)}"
            )
        return vector
