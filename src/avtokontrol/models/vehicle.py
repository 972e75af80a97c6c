"""Vehicle row model and the persisted status enum."""

from __future__ import annotations

import enum
import logging
from datetime import datetime
from typing import Any

from pydantic import Field, field_validator

from avtokontrol.models._base import RowModel, Timestamp, isoformat

_logger = logging.getLogger(__name__)


class VehicleStatus(enum.StrEnum):
    """Persisted ``vehicles.status`` values.

    Matching is case-insensitive so older rows written as ``"online"``
    resolve to :attr:`ONLINE`.
    """

    PARKED = "Parked"
    RUNNING = "Running"
    LOCKED = "Locked"
    UNLOCKED = "Unlocked"
    MAINTENANCE = "Maintenance"
    OFFLINE = "Offline"
    ONLINE = "Online"

    @classmethod
    def _missing_(cls, value: object) -> VehicleStatus | None:
        if isinstance(value, str):
            lowered = value.strip().lower()
            for member in cls:
                if member.value.lower() == lowered:
                    return member
        return None

    @classmethod
    def parse(cls, value: Any) -> VehicleStatus:
        """Parse a stored status, falling back to :attr:`PARKED` for null or unknown values."""
        if isinstance(value, VehicleStatus):
            return value
        if value is None or value == "":
            return cls.PARKED
        try:
            return cls(value)
        except ValueError:
            _logger.debug("Unknown vehicle status %r, using Parked", value)
            return cls.PARKED

    @property
    def label(self) -> str:
        """Russian label shown in the UI."""
        return _STATUS_LABELS[self]


_STATUS_LABELS: dict[VehicleStatus, str] = {
    VehicleStatus.PARKED: "Припаркован",
    VehicleStatus.RUNNING: "Двигатель запущен",
    VehicleStatus.LOCKED: "Заблокирован",
    VehicleStatus.UNLOCKED: "Разблокирован",
    VehicleStatus.MAINTENANCE: "На обслуживании",
    VehicleStatus.OFFLINE: "Не в сети",
    VehicleStatus.ONLINE: "В сети",
}


class Vehicle(RowModel):
    """A vehicle owned by the signed-in user.

    Fields map to the ``vehicles`` table; ``owner_id`` is the ``user_id``
    column and ``display_name`` the ``name`` column.
    """

    id: str
    owner_id: str = Field(validation_alias="user_id", serialization_alias="user_id")
    display_name: str = Field(validation_alias="name", serialization_alias="name")
    model: str = ""
    year: int | None = None
    color: str | None = None
    license_plate: str | None = None
    location: str | None = None
    status: VehicleStatus = VehicleStatus.PARKED
    last_updated: Timestamp = None
    created_at: Timestamp = None

    @field_validator("status", mode="before")
    @classmethod
    def _parse_status(cls, value: Any) -> VehicleStatus:
        return VehicleStatus.parse(value)

    @property
    def title(self) -> str:
        """Heading used by detail and control screens."""
        return f"{self.display_name} ({self.model}, {self.year})" if self.year else self.display_name

    def with_status(self, status: VehicleStatus, *, updated_at: datetime) -> Vehicle:
        return self.model_copy(update={"status": status, "last_updated": updated_at})

    def to_row(self) -> dict[str, Any]:
        """Column mapping used for inserts.

        ``license_plate`` has no column in the ``vehicles`` table and is never written.
        """
        row: dict[str, Any] = {
            "id": self.id,
            "user_id": self.owner_id,
            "name": self.display_name,
            "model": self.model,
            "year": self.year,
            "color": self.color,
            "location": self.location,
            "status": self.status.value,
            "last_updated": isoformat(self.last_updated),
        }
        return {key: value for key, value in row.items() if value is not None}
