"""Pydantic models for notes, users and auth sessions.

Notes map onto the hosted ``notas`` table, whose columns are
``id``, ``user_id``, ``contenido`` and ``fecha``.
"""

from __future__ import annotations

import time
from datetime import UTC, datetime
from enum import Enum
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict, Field

# Seconds before expiry at which a session is already treated as expired
EXPIRY_MARGIN = 10


class Note(BaseModel):
    """A single note owned by one user."""

    model_config = ConfigDict(populate_by_name=True, frozen=True, extra="ignore")

    id: str = Field(..., description="Server-assigned identifier")
    owner_id: str = Field(..., alias="user_id", description="Owning user id")
    content: str = Field(..., alias="contenido", min_length=1, description="Note text")
    created_at: datetime = Field(
        ..., alias="fecha", description="ISO-8601 creation timestamp"
    )

    def to_row(self) -> dict[str, Any]:
        """Serialize with the table's column names."""
        return self.model_dump(by_alias=True, mode="json")


def new_note_row(owner_id: str, content: str, created_at: Optional[datetime] = None) -> dict[str, str]:
    """Build the insert payload for a note that has no id yet."""
    stamp = created_at or datetime.now(UTC)
    return {
        "user_id": owner_id,
        "contenido": content,
        "fecha": stamp.isoformat(),
    }


class User(BaseModel):
    """The authenticated account."""

    model_config = ConfigDict(extra="ignore")

    id: str
    email: Optional[str] = None


class Session(BaseModel):
    """A live auth session as issued by the identity service."""

    model_config = ConfigDict(extra="ignore")

    access_token: str
    refresh_token: str = ""
    expires_at: Optional[int] = None
    user: User

    @classmethod
    def from_token_response(cls, data: dict[str, Any]) -> "Session":
        """Build a session from a token endpoint payload.

        The service sends ``expires_in`` and, on newer versions,
        ``expires_at``; the absolute time is derived when missing.
        """
        payload = dict(data)
        if payload.get("expires_at") is None and payload.get("expires_in") is not None:
            payload["expires_at"] = int(time.time()) + int(payload["expires_in"])
        return cls.model_validate(payload)

    @property
    def expired(self) -> bool:
        """Whether the access token is expired or about to be."""
        if self.expires_at is None:
            return False
        return time.time() >= self.expires_at - EXPIRY_MARGIN


class SignUpResult(BaseModel):
    """Outcome of a sign-up call.

    ``session`` is None when the service holds the account until the
    email address is confirmed.
    """

    user: Optional[User] = None
    session: Optional[Session] = None

    @property
    def confirmation_required(self) -> bool:
        return self.session is None


class AuthEvent(str, Enum):
    """Session-change notifications emitted by the backend client."""

    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
