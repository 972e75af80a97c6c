"""Base model for backend table rows.

Every row model inherits from :class:`RowModel` which provides:

* ``populate_by_name`` so rows can be built from column names (the
  backend's snake_case, sometimes different from the field name) or
  field names alike.
* A ``model_validator(mode="before")`` that drops ``None`` values so the
  field default is used.
* A ``raw`` dict that captures the original row and is never written back.
"""

from __future__ import annotations

from datetime import UTC, datetime
from typing import Annotated, Any

from pydantic import BaseModel, BeforeValidator, ConfigDict, Field, model_validator


def parse_timestamp(value: Any) -> datetime | None:
    """Convert an ISO-8601 string (or epoch seconds) to a UTC datetime.

    Returns ``None`` for ``None`` and empty strings.
    """
    if value is None or value == "":
        return None
    if isinstance(value, datetime):
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)
    if isinstance(value, (int, float)):
        return datetime.fromtimestamp(float(value), tz=UTC)
    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


Timestamp = Annotated[datetime | None, BeforeValidator(parse_timestamp)]
"""Annotated type that coerces backend timestamps to aware UTC datetimes."""


def isoformat(value: datetime | None) -> str | None:
    """Serialize a timestamp the way the backend stores it."""
    if value is None:
        return None
    return value.astimezone(UTC).isoformat()


class RowModel(BaseModel):
    """Base for backend row models."""

    model_config = ConfigDict(
        frozen=True,
        extra="ignore",
        populate_by_name=True,
    )

    raw: dict[str, Any] = Field(default_factory=dict, exclude=True)
    """Original row as returned by the backend."""

    @model_validator(mode="before")
    @classmethod
    def _drop_nulls(cls, values: Any) -> Any:
        if not isinstance(values, dict):
            return values
        cleaned = {key: value for key, value in values.items() if value is not None}
        if "raw" not in values:
            cleaned["raw"] = dict(values)
        return cleaned
