"""User settings row and client-side notification toggles."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict

from avtokontrol.models._base import RowModel, Timestamp


class UserSettings(RowModel):
    """The ``user_settings`` row of the signed-in user."""

    id: str = ""
    user_id: str
    theme: str | None = None
    language: str | None = None
    created_at: Timestamp = None
    updated_at: Timestamp = None


class NotificationSettings(BaseModel):
    """Which alerts the user wants and through which channels.

    Held in memory only.
    """

    model_config = ConfigDict(frozen=True)

    battery_low: bool = True
    fuel_low: bool = True
    maintenance: bool = True
    security: bool = True
    location: bool = True
    email: bool = True
    push: bool = True
    sms: bool = False
