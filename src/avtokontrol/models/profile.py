"""Profile row model."""

from __future__ import annotations

from typing import Any

from pydantic import Field

from avtokontrol.models._base import RowModel, Timestamp


class Profile(RowModel):
    """Public profile of a user; ``id`` equals the auth user id."""

    id: str
    name: str = ""
    username: str = ""
    email: str = ""
    avatar_url: str | None = Field(default=None, validation_alias="avatar", serialization_alias="avatar")
    joined_at: Timestamp = Field(default=None, validation_alias="joined", serialization_alias="joined")
    updated_at: Timestamp = None

    @property
    def greeting_name(self) -> str:
        return self.name or self.username or self.email

    @classmethod
    def from_auth_metadata(cls, user_id: str, email: str, metadata: dict[str, Any]) -> Profile:
        """Fallback profile built from sign-up metadata when the row is missing."""
        name = str(metadata.get("name") or "")
        return cls(id=user_id, name=name, username=email.split("@", 1)[0], email=email)
