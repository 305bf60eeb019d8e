"""Shared pytest configuration and fixtures."""

from __future__ import annotations

import hashlib
import math
import re

import pytest
from langchain_core.embeddings import Embeddings

from university_rag.conversation.base import InMemoryConversationStore
from university_rag.ingestion.embedder import Embedder
from university_rag.retrieval.memory_store import InMemoryVectorStore

FAKE_DIMENSION = 8


def pytest_configure(config: pytest.Config) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "integration: marks tests requiring external services")


# ── Fake embeddings ────────────────────────────────────────────────────


class FakeEmbeddings(Embeddings):
    """Deterministic bag-of-hashed-words vectors.

    Identical texts map to identical vectors; texts sharing words are closer
    than texts that do not. Any text containing a word in *fail_on* raises.
    """

    def __init__(self, dimension: int = FAKE_DIMENSION, *, fail_on: tuple[str, ...] = ()) -> None:
        self.dimension = dimension
        self.fail_on = fail_on
        self.calls: list[str] = []

    def embed_documents(self, texts: list[str]) -> list[list[float]]:
        return [self.embed_query(t) for t in texts]

    def embed_query(self, text: str) -> list[float]:
        self.calls.append(text)
        words = re.findall(r"\w+", text.lower())
        if any(word in self.fail_on for word in words):
            raise RuntimeError("embedding endpoint unavailable")
        vector = [0.0] * self.dimension
        for word in words:
            bucket = int(hashlib.md5(word.encode()).hexdigest(), 16) % self.dimension
            vector[bucket] += 1.0
        norm = math.sqrt(sum(v * v for v in vector)) or 1.0
        return [v / norm for v in vector]


# ── Fixtures ───────────────────────────────────────────────────────────


@pytest.fixture
def fake_embeddings() -> FakeEmbeddings:
    return FakeEmbeddings()


@pytest.fixture
def embedder(fake_embeddings: FakeEmbeddings) -> Embedder:
    return Embedder(fake_embeddings, dimension=FAKE_DIMENSION)


@pytest.fixture
def make_embedder():
    """Factory for embedders whose backend fails on the given words."""

    def _make(*fail_on: str) -> Embedder:
        return Embedder(FakeEmbeddings(fail_on=fail_on), dimension=FAKE_DIMENSION)

    return _make


@pytest.fixture
def memory_store() -> InMemoryVectorStore:
    return InMemoryVectorStore()


@pytest.fixture
def conversations() -> InMemoryConversationStore:
    return InMemoryConversationStore()
