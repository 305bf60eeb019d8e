"""Query entry — validate, load history, run the workflow, persist turns."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from university_rag.answering.graph import build_graph
from university_rag.answering.state import AnswerResult, create_initial_state
from university_rag.errors import InputError

if TYPE_CHECKING:
    from university_rag.answering.nodes import AnswerNodes
    from university_rag.conversation.base import ConversationStore

logger = logging.getLogger(__name__)

TITLE_MAX_CHARS = 50


def conversation_title(question: str) -> str:
    """First 50 characters of the opening question, ellipsised when cut."""
    question = " ".join(question.split())
    if len(question) <= TITLE_MAX_CHARS:
        return question
    return question[:TITLE_MAX_CHARS].rstrip() + "…"


class AnswerService:
    """Answers one question inside a (possibly new) conversation.

    Parameters
    ----------
    nodes:
        Bound graph nodes; the workflow is compiled once from them.
    conversations:
        Store that owns conversation history.
    memory_turns:
        Number of prior messages loaded as conversation memory.
    """

    def __init__(self, nodes: AnswerNodes, conversations: ConversationStore, *, memory_turns: int = 8) -> None:
        self._graph: Any = build_graph(nodes)
        self._conversations = conversations
        self.memory_turns = memory_turns

    def answer(
        self,
        question: str,
        *,
        user_id: str,
        conversation_id: str | None = None,
        voice_language: str | None = None,
    ) -> AnswerResult:
        """Answer *question* for *user_id* and record both turns.

        Nothing is persisted unless generation succeeds; the user turn is
        appended before the assistant turn.

        Raises
        ------
        InputError
            Blank question.
        NotFoundError
            *conversation_id* is unknown or belongs to another user.
        EmbeddingError, StoreError, GenerationError
            Propagated from the workflow.
        """
        question = (question or "").strip()
        if not question:
            raise InputError("Question is required.")

        history = []
        if conversation_id:
            history = self._conversations.recent_messages(user_id, conversation_id, self.memory_turns)

        state = create_initial_state(question, history=history, language_hint=voice_language)
        final_state = self._graph.invoke(state)
        answer = final_state["answer"]

        if conversation_id:
            self._conversations.touch(user_id, conversation_id)
        else:
            conversation_id = self._conversations.create_conversation(user_id, conversation_title(question)).id
            logger.info("Started conversation %s for user %s", conversation_id, user_id)

        self._conversations.append_message(user_id, conversation_id, "user", question)
        self._conversations.append_message(user_id, conversation_id, "assistant", answer)

        return AnswerResult(
            answer=answer,
            conversation_id=conversation_id,
            mode=final_state["mode"],
            sources=[chunk.content for chunk in final_state.get("chunks", [])],
        )
