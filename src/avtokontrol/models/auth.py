"""Auth service response models and auth-state events."""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from avtokontrol.models._base import Timestamp
from avtokontrol.session import Session


class AuthChangeEvent(enum.StrEnum):
    """Events emitted to auth-state subscribers."""

    INITIAL_SESSION = "INITIAL_SESSION"
    SIGNED_IN = "SIGNED_IN"
    SIGNED_OUT = "SIGNED_OUT"
    TOKEN_REFRESHED = "TOKEN_REFRESHED"
    USER_UPDATED = "USER_UPDATED"


class AuthUser(BaseModel):
    """User object returned by the auth service."""

    model_config = ConfigDict(frozen=True, extra="ignore")

    id: str
    email: str = ""
    email_confirmed_at: Timestamp = None
    user_metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def display_name(self) -> str:
        return str(self.user_metadata.get("name") or self.email)


class AuthResponse(BaseModel):
    """Result of a sign-in or sign-up call.

    ``session`` is ``None`` after a sign-up that still needs email
    confirmation.
    """

    model_config = ConfigDict(frozen=True)

    user: AuthUser | None = None
    session: Session | None = None


class SignUpResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    user_id: str
    session: Session | None = None

    @property
    def confirmation_required(self) -> bool:
        return self.session is None
