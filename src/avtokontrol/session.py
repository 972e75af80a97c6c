"""Authenticated session state."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator

#: Access token lifetime assumed when the backend omits ``expires_in``.
DEFAULT_SESSION_TTL: float = 3600


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Session(BaseModel):
    """Immutable session issued by the backend auth service.

    Parameters
    ----------
    user_id : str
        The authenticated user's id; every table row is scoped by it.
    email : str
        Email the user signed in with.
    access_token : str
        Bearer token for table requests.
    refresh_token : str
        Token exchanged for a new session when the access token expires.
    issued_at : datetime
        When the session was created (UTC).
    expires_at : datetime
        When the access token stops being accepted (UTC).
    """

    model_config = ConfigDict(
        frozen=True,
        extra="forbid",
        validate_default=True,
        str_strip_whitespace=True,
    )

    user_id: str
    email: str = ""
    access_token: str
    refresh_token: str = ""
    issued_at: datetime = Field(default_factory=_utcnow)
    expires_at: datetime = Field(default_factory=lambda: _utcnow() + timedelta(seconds=DEFAULT_SESSION_TTL))

    @field_validator("issued_at", "expires_at")
    @classmethod
    def _ensure_tz_aware(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=UTC)
        return value

    @classmethod
    def from_token_response(cls, payload: dict[str, Any], *, now: datetime | None = None) -> Session:
        """Build a session from an auth ``/token`` or ``/signup`` response body."""
        issued = now or _utcnow()
        user = payload.get("user") or {}
        expires_at_raw = payload.get("expires_at")
        if isinstance(expires_at_raw, (int, float)):
            expires_at = datetime.fromtimestamp(float(expires_at_raw), tz=UTC)
        else:
            expires_in = payload.get("expires_in")
            ttl = float(expires_in) if isinstance(expires_in, (int, float)) else DEFAULT_SESSION_TTL
            expires_at = issued + timedelta(seconds=ttl)
        return cls(
            user_id=str(user.get("id", "")),
            email=str(user.get("email") or ""),
            access_token=str(payload["access_token"]),
            refresh_token=str(payload.get("refresh_token") or ""),
            issued_at=issued,
            expires_at=expires_at,
        )

    def expires_within(self, seconds: float, *, now: datetime | None = None) -> bool:
        """Whether the access token expires in less than *seconds*."""
        current = now or _utcnow()
        return self.expires_at - current <= timedelta(seconds=seconds)

    @property
    def is_expired(self) -> bool:
        """Whether the access token has passed its expiry."""
        return _utcnow() >= self.expires_at

    def to_storage(self) -> str:
        """Serialize for the durable preference store."""
        return self.model_dump_json()

    @classmethod
    def from_storage(cls, raw: str) -> Session:
        return cls.model_validate_json(raw)
