"""Data models for avtokontrol."""

from avtokontrol.models._base import RowModel, Timestamp, isoformat, parse_timestamp
from avtokontrol.models.alert import Alert, AlertKind
from avtokontrol.models.auth import AuthChangeEvent, AuthResponse, AuthUser, SignUpResult
from avtokontrol.models.control import (
    ClimateState,
    CommandRecord,
    CommandState,
    VehicleCommand,
    VehicleControlState,
)
from avtokontrol.models.profile import Profile
from avtokontrol.models.settings import NotificationSettings, UserSettings
from avtokontrol.models.trip import Trip
from avtokontrol.models.vehicle import Vehicle, VehicleStatus

__all__ = [
    "Alert",
    "AlertKind",
    "AuthChangeEvent",
    "AuthResponse",
    "AuthUser",
    "ClimateState",
    "CommandRecord",
    "CommandState",
    "NotificationSettings",
    "Profile",
    "RowModel",
    "SignUpResult",
    "Timestamp",
    "Trip",
    "UserSettings",
    "Vehicle",
    "VehicleCommand",
    "VehicleControlState",
    "VehicleStatus",
    "isoformat",
    "parse_timestamp",
]
