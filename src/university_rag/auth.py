"""Caller identity — bearer token in, ``CallerIdentity`` out.

Token verification is a collaborator: the HTTP layer only needs
:meth:`Authenticator.authenticate` and :func:`is_admin_role`.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from collections.abc import Mapping

from pydantic import BaseModel

logger = logging.getLogger(__name__)

DEFAULT_ROLE = "Student"
ADMIN_ROLE = "admin"


class CallerIdentity(BaseModel):
    uid: str
    email: str = ""
    role: str = DEFAULT_ROLE

    @property
    def is_admin(self) -> bool:
        return is_admin_role(self.role)


def is_admin_role(role: str | None) -> bool:
    """Privileged-uploader check: case-insensitive ``"admin"``."""
    return str(role or "").lower() == ADMIN_ROLE


def bearer_token(header: str | None) -> str | None:
    """Extract the token from an ``Authorization: Bearer <token>`` header."""
    if not header or not header.startswith("Bearer "):
        return None
    token = header[len("Bearer "):].strip()
    return token or None


class Authenticator(ABC):
    @abstractmethod
    def authenticate(self, token: str) -> CallerIdentity | None:
        """Return the caller for *token*, or ``None`` if it is not valid."""
        ...


class StaticTokenAuthenticator(Authenticator):
    """Resolve tokens from a fixed mapping (``Settings.auth_tokens``).

    Each value is ``{"uid": ..., "email": ..., "role": ...}``; a missing
    role defaults to ``"Student"`` and a missing uid to the token itself.
    """

    def __init__(self, tokens: Mapping[str, Mapping[str, str]]) -> None:
        self._tokens = dict(tokens)

    def authenticate(self, token: str) -> CallerIdentity | None:
        entry = self._tokens.get(token)
        if entry is None:
            logger.info("Rejected unknown bearer token")
            return None
        return CallerIdentity(
            uid=entry.get("uid") or token,
            email=entry.get("email", ""),
            role=entry.get("role") or DEFAULT_ROLE,
        )
