"""Vehicle alert model."""

from __future__ import annotations

import enum
from datetime import datetime

from pydantic import BaseModel, ConfigDict


class AlertKind(enum.StrEnum):
    WARNING = "warning"
    ERROR = "error"
    INFO = "info"


class Alert(BaseModel):
    """A client-side alert about one vehicle.

    Alerts are generated locally or come from the demo dataset; they are
    never persisted.
    """

    model_config = ConfigDict(frozen=True)

    id: str
    vehicle_id: str
    kind: AlertKind
    message: str
    timestamp: datetime
    read: bool = False
    resolved: bool = False
