"""avtokontrol - Async application core for the АвтоКонтроль vehicle remote-control app."""

from importlib.metadata import PackageNotFoundError, version

try:
    __version__ = version("avtokontrol")
except PackageNotFoundError:
    __version__ = "0+local"
from avtokontrol.app import AvtoKontrolApp
from avtokontrol.client import BackendClient
from avtokontrol.config import AppConfig
from avtokontrol.control import VehicleController
from avtokontrol.exceptions import (
    AuthError,
    AvtoKontrolError,
    BackendError,
    CommandError,
    ConfigError,
    DataFetchError,
    EmailNotConfirmedError,
    InvalidCredentialsError,
    InvalidTemperatureError,
    SessionExpiredError,
    TransportError,
    UserAlreadyRegisteredError,
    ValidationError,
    VehicleLockedError,
)
from avtokontrol.models import (
    Alert,
    AlertKind,
    AuthChangeEvent,
    Profile,
    Trip,
    UserSettings,
    Vehicle,
    VehicleControlState,
    VehicleStatus,
)
from avtokontrol.notifications import Notification, Notifier
from avtokontrol.provider import SessionProvider
from avtokontrol.routing import Navigator, RouteGuard
from avtokontrol.session import Session
from avtokontrol.storage import PreferenceStore, Theme

__all__ = [
    "__version__",
    "Alert",
    "AlertKind",
    "AppConfig",
    "AuthChangeEvent",
    "AuthError",
    "AvtoKontrolApp",
    "AvtoKontrolError",
    "BackendClient",
    "BackendError",
    "CommandError",
    "ConfigError",
    "DataFetchError",
    "EmailNotConfirmedError",
    "InvalidCredentialsError",
    "InvalidTemperatureError",
    "Navigator",
    "Notification",
    "Notifier",
    "PreferenceStore",
    "Profile",
    "RouteGuard",
    "Session",
    "SessionExpiredError",
    "SessionProvider",
    "Theme",
    "TransportError",
    "Trip",
    "UserAlreadyRegisteredError",
    "UserSettings",
    "ValidationError",
    "Vehicle",
    "VehicleController",
    "VehicleControlState",
    "VehicleLockedError",
    "VehicleStatus",
]
