"""
Conversation — append-only turn log keyed by conversation id.

The answer pipeline reads the last few turns to build conversational
memory and appends the new question/answer pair after each reply.
"""

from university_rag.conversation.base import ConversationStore, InMemoryConversationStore
from university_rag.conversation.models import Conversation, Message

__all__ = [
    "Conversation",
    "ConversationStore",
    "InMemoryConversationStore",
    "Message",
    "SqlConversationStore",
]


def __getattr__(name: str):  # noqa: ANN001
    """Lazy-import the SQLAlchemy backend."""
    if name == "SqlConversationStore":
        from university_rag.conversation.sql_store import SqlConversationStore

        return SqlConversationStore
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
