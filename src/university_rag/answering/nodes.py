"""Graph nodes — each method is one step in the answer workflow.

Node contract
-------------
* Accepts the full :class:`AnswerState` dict.
* Returns a *partial* dict with **only the keys that changed**.
* Uses only the collaborators injected into :class:`AnswerNodes`; no
  global clients, so every node is independently testable.
"""

from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import TYPE_CHECKING, Any

from university_rag.answering.language import detect_language, language_directive
from university_rag.answering.prompts import (
    FALLBACK_ANSWER,
    OPEN_FALLBACK_ANSWER,
    build_grounded_prompt,
    build_open_prompt,
    format_memory,
)
from university_rag.answering.routing import GROUNDED, route_question
from university_rag.answering.state import AnswerState
from university_rag.config import DEFAULT_DOMAIN_KEYWORDS
from university_rag.errors import GenerationError
from university_rag.retrieval.retriever import build_context

if TYPE_CHECKING:
    from langchain_core.language_models import BaseChatModel
    from langchain_core.messages import BaseMessage

    from university_rag.retrieval.retriever import SemanticRetriever

logger = logging.getLogger(__name__)


class AnswerNodes:
    """Node callables bound to their collaborators.

    Parameters
    ----------
    retriever:
        Embeds the question and returns ranked chunks.
    llm:
        Chat model used for both grounded and open-domain generation.
    keywords:
        Topic-routing allowlist.
    top_k:
        Number of chunks to retrieve in grounded mode.
    memory_turns:
        How many earlier messages are replayed to the model.
    """

    def __init__(
        self,
        retriever: SemanticRetriever,
        llm: BaseChatModel,
        *,
        keywords: Sequence[str] = DEFAULT_DOMAIN_KEYWORDS,
        top_k: int = 3,
        memory_turns: int = 8,
        assistant_name: str = "University AI Assistant",
    ) -> None:
        self._retriever = retriever
        self._llm = llm
        self.keywords = tuple(keywords)
        self.top_k = top_k
        self.memory_turns = memory_turns
        self.assistant_name = assistant_name

    # ── 1. ROUTE ──────────────────────────────────────────────────────

    def route_question(self, state: AnswerState) -> dict[str, Any]:
        """Pick grounded vs open-domain mode and the reply language."""
        question = state["question"]
        mode = route_question(question, self.keywords)
        language = detect_language(question, state.get("language_hint"))
        logger.info("Routing question to %s mode (language=%s)", mode, language)
        return {"mode": mode, "language": language}

    # ── 2. RETRIEVE ───────────────────────────────────────────────────

    def retrieve(self, state: AnswerState) -> dict[str, Any]:
        return {"chunks": self._retriever.search(state["question"], k=self.top_k)}

    # ── 3a. GENERATE (grounded) ───────────────────────────────────────

    def generate_grounded(self, state: AnswerState) -> dict[str, Any]:
        messages = build_grounded_prompt(
            state["question"],
            build_context(state["chunks"]),
            memory=format_memory(state.get("history", []), self.memory_turns),
            language_directive=language_directive(state.get("language", "")),
            assistant_name=self.assistant_name,
        )
        answer = self._generate(messages)
        return {"answer": answer or FALLBACK_ANSWER}

    # ── 3b. FALLBACK (grounded, nothing retrieved) ────────────────────

    def fallback(self, state: AnswerState) -> dict[str, Any]:
        logger.info("No chunks retrieved; returning fallback answer")
        return {"answer": FALLBACK_ANSWER}

    # ── 3c. GENERATE (open domain) ────────────────────────────────────

    def generate_open(self, state: AnswerState) -> dict[str, Any]:
        messages = build_open_prompt(
            state["question"],
            memory=format_memory(state.get("history", []), self.memory_turns),
            language_directive=language_directive(state.get("language", "")),
            assistant_name=self.assistant_name,
        )
        answer = self._generate(messages)
        return {"answer": answer or OPEN_FALLBACK_ANSWER, "chunks": []}

    # ── ROUTING (conditional edges) ───────────────────────────────────

    @staticmethod
    def after_routing(state: AnswerState) -> str:
        return "retrieve" if state.get("mode") == GROUNDED else "generate_open"

    @staticmethod
    def after_retrieval(state: AnswerState) -> str:
        return "generate_grounded" if state.get("chunks") else "fallback"

    # ── Internal helpers ──────────────────────────────────────────────

    def _generate(self, messages: list[BaseMessage]) -> str:
        """Call the chat model; blank output comes back as ``""``."""
        try:
            response = self._llm.invoke(messages)
        except Exception as exc:
            logger.exception("Generation call failed")
            raise GenerationError(f"Chat API failed: {exc}") from exc

        content = getattr(response, "content", "")
        if not isinstance(content, str):
            content = "".join(
                part.get("text", "") if isinstance(part, dict) else str(part) for part in content or []
            )
        return content.strip()
