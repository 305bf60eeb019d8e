"""Prompt templates for the answer workflow.

Every generation call uses a prompt from this module. Keeping prompts in
one place makes them easy to audit and version.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TYPE_CHECKING

from langchain_core.messages import HumanMessage, SystemMessage

if TYPE_CHECKING:
    from langchain_core.messages import BaseMessage

    from university_rag.conversation.models import Message

FALLBACK_ANSWER = "Information not available in university records."
OPEN_FALLBACK_ANSWER = "I could not generate a response right now. Please try again."
NO_HISTORY = "No previous conversation."

# ── 1. Grounded answering ─────────────────────────────────────────────

GROUNDED_SYSTEM = """\
You are {assistant_name}. Answer strictly using the provided context.
Do not use outside knowledge. Do not guess. Do not add assumptions.
If the answer is not found in the context, respond exactly:
'{fallback}'
Use the recent conversation only to understand follow-up questions; it is
not a source of facts.
{language_directive}
"""


def build_grounded_prompt(
    question: str,
    context: str,
    *,
    memory: str = NO_HISTORY,
    language_directive: str = "",
    assistant_name: str = "University AI Assistant",
) -> list[BaseMessage]:
    """Build the prompt for the ``generate_grounded`` node.

    Parameters
    ----------
    question:
        The user's question.
    context:
        Numbered context block from :func:`~university_rag.retrieval.build_context`.
    memory:
        Transcript from :func:`format_memory`.
    language_directive:
        Sentence telling the model which language to answer in.
    """
    system = GROUNDED_SYSTEM.format(
        assistant_name=assistant_name,
        fallback=FALLBACK_ANSWER,
        language_directive=language_directive,
    )
    return [
        SystemMessage(content=system.strip()),
        HumanMessage(
            content=(
                f"Recent conversation:\n{memory}\n\n"
                f"Context:\n{context}\n\n"
                f"Question: {question}"
            )
        ),
    ]


# ── 2. Open-domain answering ──────────────────────────────────────────

OPEN_SYSTEM = """\
You are {assistant_name}, a friendly general-purpose assistant for
students. Answer helpfully and concisely. If you are unsure, say so.
{language_directive}
"""


def build_open_prompt(
    question: str,
    *,
    memory: str = NO_HISTORY,
    language_directive: str = "",
    assistant_name: str = "University AI Assistant",
) -> list[BaseMessage]:
    """Build the prompt for the ``generate_open`` node."""
    system = OPEN_SYSTEM.format(assistant_name=assistant_name, language_directive=language_directive)
    return [
        SystemMessage(content=system.strip()),
        HumanMessage(content=f"Recent conversation:\n{memory}\n\nQuestion: {question}"),
    ]


# ── Helpers ────────────────────────────────────────────────────────────


def format_memory(messages: Sequence[Message], max_turns: int = 8) -> str:
    """Render the last *max_turns* messages, oldest first, one per line."""
    recent = list(messages)[-max_turns:] if max_turns > 0 else []
    if not recent:
        return NO_HISTORY
    lines = []
    for message in recent:
        speaker = "User" if message.role == "user" else "Assistant"
        lines.append(f"{speaker}: {message.content}")
    return "\n".join(lines)
