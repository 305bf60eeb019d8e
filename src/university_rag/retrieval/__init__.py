"""
Retrieval — vector storage, similarity search, and context assembly.

This module wraps the vector store behind a clean interface so that the
ingestion and answer pipelines never need to know which DB is backing them.

Public surface
--------------
- :class:`SemanticRetriever` — embeds a question and returns ranked chunks.
- :class:`VectorStoreBase` — abstract backend.
- :class:`ChromaVectorStore`, :class:`PgVectorStore`, :class:`InMemoryVectorStore` — backends.
- :class:`DocumentRow`, :class:`RetrievedChunk` — data models.
- :func:`build_context` — numbered context block for grounded prompts.
"""

from university_rag.retrieval.base import VectorStoreBase
from university_rag.retrieval.memory_store import InMemoryVectorStore
from university_rag.retrieval.models import DocumentRow, RetrievedChunk
from university_rag.retrieval.retriever import SemanticRetriever, build_context

__all__ = [
    "ChromaVectorStore",
    "DocumentRow",
    "InMemoryVectorStore",
    "PgVectorStore",
    "RetrievedChunk",
    "SemanticRetriever",
    "VectorStoreBase",
    "build_context",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import heavyweight backends so importing the package stays cheap."""
    if name == "ChromaVectorStore":
        from university_rag.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore
    if name == "PgVectorStore":
        from university_rag.retrieval.pgvector_store import PgVectorStore

        return PgVectorStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
