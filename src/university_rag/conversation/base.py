"""Conversation-store interface and the in-process implementation."""

from __future__ import annotations

from abc import ABC, abstractmethod

from university_rag.conversation.models import Conversation, Message, Role, _utcnow
from university_rag.errors import NotFoundError


class ConversationStore(ABC):
    """Per-user conversations, each an append-only list of messages."""

    @abstractmethod
    def create_conversation(self, user_id: str, title: str) -> Conversation: ...

    @abstractmethod
    def get_conversation(self, user_id: str, conversation_id: str) -> Conversation:
        """Raises :class:`NotFoundError` for unknown ids or another user's conversation."""
        ...

    @abstractmethod
    def touch(self, user_id: str, conversation_id: str) -> None:
        """Bump ``updated_at``."""
        ...

    @abstractmethod
    def append_message(self, user_id: str, conversation_id: str, role: Role, content: str) -> Message: ...

    @abstractmethod
    def list_messages(self, user_id: str, conversation_id: str) -> list[Message]:
        """All messages, oldest first."""
        ...

    def recent_messages(self, user_id: str, conversation_id: str, limit: int) -> list[Message]:
        """The last *limit* messages, oldest first."""
        if limit <= 0:
            return []
        return self.list_messages(user_id, conversation_id)[-limit:]


class InMemoryConversationStore(ConversationStore):
    def __init__(self) -> None:
        self._conversations: dict[str, Conversation] = {}
        self._messages: dict[str, list[Message]] = {}

    def create_conversation(self, user_id: str, title: str) -> Conversation:
        conversation = Conversation(user_id=user_id, title=title)
        self._conversations[conversation.id] = conversation
        self._messages[conversation.id] = []
        return conversation

    def get_conversation(self, user_id: str, conversation_id: str) -> Conversation:
        conversation = self._conversations.get(conversation_id)
        if conversation is None or conversation.user_id != user_id:
            raise NotFoundError(f"Conversation {conversation_id} not found")
        return conversation

    def touch(self, user_id: str, conversation_id: str) -> None:
        self.get_conversation(user_id, conversation_id).updated_at = _utcnow()

    def append_message(self, user_id: str, conversation_id: str, role: Role, content: str) -> Message:
        self.get_conversation(user_id, conversation_id)
        message = Message(role=role, content=content)
        self._messages[conversation_id].append(message)
        return message

    def list_messages(self, user_id: str, conversation_id: str) -> list[Message]:
        self.get_conversation(user_id, conversation_id)
        return list(self._messages[conversation_id])
