"""Conversation and message records."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Literal
from uuid import uuid4

from pydantic import BaseModel, Field

Role = Literal["user", "assistant"]


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class Conversation(BaseModel):
    id: str = Field(default_factory=lambda: uuid4().hex)
    user_id: str
    title: str = ""
    created_at: datetime = Field(default_factory=_utcnow)
    updated_at: datetime = Field(default_factory=_utcnow)


class Message(BaseModel):
    """One turn. Messages are ordered by ``created_at`` and never edited."""

    role: Role
    content: str
    created_at: datetime = Field(default_factory=_utcnow)
