"""SQLAlchemy-backed conversation store (SQLite by default, any SQL database works)."""

from __future__ import annotations

from datetime import datetime
from typing import Any
from uuid import uuid4

from sqlalchemy import DateTime, ForeignKey, Integer, String, Text, create_engine, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column, sessionmaker

from university_rag.config import settings
from university_rag.conversation.base import ConversationStore
from university_rag.conversation.models import Conversation, Message, Role, _utcnow
from university_rag.errors import NotFoundError, StoreError


class Base(DeclarativeBase):
    pass


class ConversationRecord(Base):
    __tablename__ = "conversations"

    id: Mapped[str] = mapped_column(String(32), primary_key=True, default=lambda: uuid4().hex)
    user_id: Mapped[str] = mapped_column(String(128), index=True, nullable=False)
    title: Mapped[str] = mapped_column(String(256), default="")
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)
    updated_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


class MessageRecord(Base):
    __tablename__ = "messages"

    # Autoincrement id breaks created_at ties in append order.
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    conversation_id: Mapped[str] = mapped_column(
        ForeignKey("conversations.id"), index=True, nullable=False
    )
    role: Mapped[str] = mapped_column(String(16), nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=_utcnow)


def _to_conversation(record: ConversationRecord) -> Conversation:
    return Conversation(
        id=record.id,
        user_id=record.user_id,
        title=record.title,
        created_at=record.created_at,
        updated_at=record.updated_at,
    )


def _to_message(record: MessageRecord) -> Message:
    return Message(role=record.role, content=record.content, created_at=record.created_at)


class SqlConversationStore(ConversationStore):
    """Conversation store on any SQLAlchemy engine.

    Parameters
    ----------
    database_url:
        SQLAlchemy URL; ignored when *engine* is given.
    engine:
        Pre-built engine (e.g. in-memory SQLite for tests).
    """

    def __init__(
        self,
        database_url: str = settings.conversation_database_url,
        *,
        engine: Any = None,
    ) -> None:
        self._engine = engine or create_engine(database_url)
        Base.metadata.create_all(self._engine)
        self._session_factory = sessionmaker(bind=self._engine, expire_on_commit=False)

    def _owned(self, session: Any, user_id: str, conversation_id: str) -> ConversationRecord:
        record = session.get(ConversationRecord, conversation_id)
        if record is None or record.user_id != user_id:
            raise NotFoundError(f"Conversation {conversation_id} not found")
        return record

    def create_conversation(self, user_id: str, title: str) -> Conversation:
        try:
            with self._session_factory.begin() as session:
                record = ConversationRecord(user_id=user_id, title=title)
                session.add(record)
                session.flush()
                return _to_conversation(record)
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not create conversation: {exc}") from exc

    def get_conversation(self, user_id: str, conversation_id: str) -> Conversation:
        try:
            with self._session_factory() as session:
                return _to_conversation(self._owned(session, user_id, conversation_id))
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not load conversation: {exc}") from exc

    def touch(self, user_id: str, conversation_id: str) -> None:
        try:
            with self._session_factory.begin() as session:
                self._owned(session, user_id, conversation_id).updated_at = _utcnow()
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not update conversation: {exc}") from exc

    def append_message(self, user_id: str, conversation_id: str, role: Role, content: str) -> Message:
        try:
            with self._session_factory.begin() as session:
                self._owned(session, user_id, conversation_id)
                record = MessageRecord(conversation_id=conversation_id, role=role, content=content)
                session.add(record)
                session.flush()
                return _to_message(record)
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not store message: {exc}") from exc

    def list_messages(self, user_id: str, conversation_id: str) -> list[Message]:
        try:
            with self._session_factory() as session:
                self._owned(session, user_id, conversation_id)
                rows = session.scalars(
                    select(MessageRecord)
                    .where(MessageRecord.conversation_id == conversation_id)
                    .order_by(MessageRecord.created_at, MessageRecord.id)
                ).all()
                return [_to_message(r) for r in rows]
        except SQLAlchemyError as exc:
            raise StoreError(f"Could not load messages: {exc}") from exc
