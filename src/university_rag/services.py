"""Composition root — builds every client once and wires the pipelines.

Both the FastAPI app and the ingestion CLI go through this module; nothing
else constructs stores or model clients.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from university_rag.answering.llm import get_llm
from university_rag.answering.nodes import AnswerNodes
from university_rag.answering.service import AnswerService
from university_rag.auth import Authenticator, StaticTokenAuthenticator
from university_rag.config import Settings, settings
from university_rag.conversation.base import ConversationStore, InMemoryConversationStore
from university_rag.ingestion.embedder import Embedder, build_embedding_backend
from university_rag.ingestion.pipeline import IngestionPipeline
from university_rag.retrieval.base import VectorStoreBase
from university_rag.retrieval.memory_store import InMemoryVectorStore
from university_rag.retrieval.retriever import SemanticRetriever
from university_rag.speech import SpeechClient

logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Everything a request handler needs, created once at startup."""

    embedder: Embedder
    store: VectorStoreBase
    ingestion: IngestionPipeline
    answers: AnswerService
    authenticator: Authenticator
    speech: SpeechClient


def build_embedder(cfg: Settings = settings) -> Embedder:
    return Embedder(build_embedding_backend(cfg), dimension=cfg.embedding_dimension)


def build_vector_store(cfg: Settings = settings) -> VectorStoreBase:
    """Instantiate the backend named by ``cfg.vector_backend``."""
    backend = cfg.vector_backend.lower()
    logger.info("Vector store backend: %s", backend)

    if backend == "chroma":
        from university_rag.retrieval.chroma_store import ChromaVectorStore

        return ChromaVectorStore(
            cfg.chroma_collection,
            host=cfg.chroma_host,
            port=cfg.chroma_port,
            deduplicate=cfg.deduplicate_chunks,
        )
    if backend == "pgvector":
        from university_rag.retrieval.pgvector_store import PgVectorStore

        store = PgVectorStore(
            cfg.chroma_collection,
            database_url=cfg.vector_database_url,
            dimension=cfg.embedding_dimension,
            deduplicate=cfg.deduplicate_chunks,
        )
        store.create_schema()
        return store
    if backend == "memory":
        return InMemoryVectorStore(cfg.chroma_collection, deduplicate=cfg.deduplicate_chunks)
    raise ValueError(f"Unknown vector_backend: {cfg.vector_backend!r}")


def build_conversation_store(cfg: Settings = settings) -> ConversationStore:
    backend = cfg.conversation_backend.lower()
    if backend == "sql":
        from university_rag.conversation.sql_store import SqlConversationStore

        return SqlConversationStore(cfg.conversation_database_url)
    if backend == "memory":
        return InMemoryConversationStore()
    raise ValueError(f"Unknown conversation_backend: {cfg.conversation_backend!r}")


def build_ingestion_pipeline(
    cfg: Settings = settings,
    *,
    embedder: Embedder | None = None,
    store: VectorStoreBase | None = None,
) -> IngestionPipeline:
    return IngestionPipeline(
        embedder or build_embedder(cfg),
        store or build_vector_store(cfg),
        max_words=cfg.chunk_max_words,
        min_words=cfg.chunk_min_words,
        max_bytes=cfg.max_upload_bytes,
    )


def build_services(cfg: Settings = settings) -> Services:
    """Wire the full service graph from *cfg*."""
    embedder = build_embedder(cfg)
    store = build_vector_store(cfg)
    retriever = SemanticRetriever(embedder, store, default_k=cfg.retrieval_top_k)
    nodes = AnswerNodes(
        retriever,
        get_llm(cfg),
        keywords=cfg.domain_keywords,
        top_k=cfg.retrieval_top_k,
        memory_turns=cfg.memory_turns,
        assistant_name=cfg.assistant_name,
    )
    speech = SpeechClient(
        cfg.huggingface_api_key,
        allowed_models=cfg.tts_models,
        endpoint=cfg.tts_endpoint,
        max_chars=cfg.tts_max_chars,
        max_attempts=cfg.tts_max_attempts,
        default_wait=cfg.tts_default_wait_seconds,
        max_wait=cfg.tts_max_wait_seconds,
        timeout=cfg.tts_timeout_seconds,
    )
    return Services(
        embedder=embedder,
        store=store,
        ingestion=build_ingestion_pipeline(cfg, embedder=embedder, store=store),
        answers=AnswerService(nodes, build_conversation_store(cfg), memory_turns=cfg.memory_turns),
        authenticator=StaticTokenAuthenticator(cfg.auth_tokens),
        speech=speech,
    )
