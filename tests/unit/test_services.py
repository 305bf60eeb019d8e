"""Unit tests for service wiring from settings."""

from __future__ import annotations

from unittest.mock import MagicMock, patch

import pytest

from university_rag.config import Settings
from university_rag.conversation.base import InMemoryConversationStore
from university_rag.conversation.sql_store import SqlConversationStore
from university_rag.retrieval.chroma_store import ChromaVectorStore
from university_rag.retrieval.memory_store import InMemoryVectorStore
from university_rag.services import build_conversation_store, build_services, build_vector_store


def test_memory_vector_store() -> None:
    store = build_vector_store(Settings(vector_backend="memory", deduplicate_chunks=False))
    assert isinstance(store, InMemoryVectorStore)
    assert store.deduplicate is False


def test_chroma_vector_store() -> None:
    with patch("university_rag.retrieval.chroma_store.chromadb.HttpClient") as http_client:
        store = build_vector_store(Settings(vector_backend="chroma", chroma_host="chroma", chroma_port=9000))
    assert isinstance(store, ChromaVectorStore)
    http_client.assert_called_once_with(host="chroma", port=9000)


def test_unknown_vector_backend() -> None:
    with pytest.raises(ValueError, match="vector_backend"):
        build_vector_store(Settings(vector_backend="faiss"))


def test_conversation_stores(tmp_path) -> None:
    assert isinstance(build_conversation_store(Settings(conversation_backend="memory")), InMemoryConversationStore)
    sql = build_conversation_store(
        Settings(conversation_backend="sql", conversation_database_url=f"sqlite:///{tmp_path / 'c.db'}")
    )
    assert isinstance(sql, SqlConversationStore)
    with pytest.raises(ValueError):
        build_conversation_store(Settings(conversation_backend="redis"))


def test_build_services_wires_everything() -> None:
    cfg = Settings(
        vector_backend="memory",
        conversation_backend="memory",
        embedding_provider="inference_api",
        auth_tokens={"t": {"uid": "u", "role": "admin"}},
    )
    with patch("university_rag.services.get_llm", return_value=MagicMock()) as get_llm:
        services = build_services(cfg)

    get_llm.assert_called_once_with(cfg)
    assert services.ingestion.max_words == cfg.chunk_max_words
    assert services.authenticator.authenticate("t").is_admin
    assert services.speech.allowed_models == tuple(cfg.tts_models)
