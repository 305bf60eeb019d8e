"""Answer-workflow state — shared across all graph nodes.

The state is the single source of truth flowing through every node in
the LangGraph workflow. Each field is documented so that new nodes can be
added without guessing what data is available.
"""

from __future__ import annotations

from typing import TypedDict

from pydantic import BaseModel, Field

from university_rag.conversation.models import Message
from university_rag.retrieval.models import RetrievedChunk


class AnswerState(TypedDict):
    """Typed state that flows through the answer workflow.

    Attributes
    ----------
    question:
        The user's current question.
    history:
        Earlier turns of the conversation, oldest first.
    language_hint:
        Optional locale from voice input (``"hi-IN"``, ``"en"`` …).
    language:
        Reply language chosen by ``route_question``.
    mode:
        ``"grounded"`` or ``"open"``, set by ``route_question``.
    chunks:
        Retrieved passages, best match first (grounded mode only).
    answer:
        Final answer text.
    """

    question: str
    history: list[Message]
    language_hint: str | None
    language: str
    mode: str
    chunks: list[RetrievedChunk]
    answer: str


class AnswerResult(BaseModel):
    """What the query entry returns to its caller."""

    answer: str
    conversation_id: str
    mode: str
    sources: list[str] = Field(default_factory=list)


def create_initial_state(
    question: str,
    *,
    history: list[Message] | None = None,
    language_hint: str | None = None,
) -> AnswerState:
    """Build the initial state dict for ``graph.invoke()``."""
    return {
        "question": question,
        "history": list(history or []),
        "language_hint": language_hint,
        "language": "",
        "mode": "",
        "chunks": [],
        "answer": "",
    }
