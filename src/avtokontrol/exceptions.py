"""Custom exception hierarchy for avtokontrol."""

from __future__ import annotations


class AvtoKontrolError(Exception):
    """Base exception for all avtokontrol errors."""


class ConfigError(AvtoKontrolError):
    """Invalid or missing configuration."""


class TransportError(AvtoKontrolError):
    """HTTP-level failure (network, timeout, invalid JSON)."""

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        endpoint: str = "",
    ) -> None:
        self.status_code = status_code
        self.endpoint = endpoint
        super().__init__(message)


class BackendError(AvtoKontrolError):
    """The hosted backend answered with an error payload."""

    def __init__(
        self,
        message: str,
        *,
        code: str = "",
        endpoint: str = "",
        status_code: int | None = None,
    ) -> None:
        self.code = code
        self.endpoint = endpoint
        self.status_code = status_code
        super().__init__(message)


class AuthError(BackendError):
    """Sign-in, sign-up, sign-out or token refresh failed."""


class InvalidCredentialsError(AuthError):
    """Email/password pair was rejected."""


class EmailNotConfirmedError(AuthError):
    """The account exists but its email address has not been confirmed yet."""


class UserAlreadyRegisteredError(AuthError):
    """Sign-up attempted with an email that already has an account."""


class SessionExpiredError(AuthError):
    """Access token rejected by the backend.

    The backend client catches this internally to refresh the token and
    retry the call once.
    """


class DataFetchError(BackendError):
    """A table read or write failed."""

    def __init__(
        self,
        message: str,
        *,
        table: str = "",
        code: str = "",
        endpoint: str = "",
        status_code: int | None = None,
    ) -> None:
        self.table = table
        super().__init__(message, code=code, endpoint=endpoint, status_code=status_code)


class CommandError(AvtoKontrolError):
    """A vehicle command could not be applied because a precondition failed."""

    def __init__(self, message: str, *, command: str = "") -> None:
        self.command = command
        super().__init__(message)


class VehicleLockedError(CommandError):
    """Engine start requested while the doors are locked."""


class InvalidTemperatureError(CommandError):
    """Requested cabin temperature is not a number."""


class ValidationError(AvtoKontrolError):
    """Form input violated its schema.

    ``errors`` maps field names to a user-facing message; the first entry
    is also used as the exception message.
    """

    def __init__(self, errors: dict[str, str]) -> None:
        self.errors = dict(errors)
        first = next(iter(self.errors.values()), "Некорректные данные")
        super().__init__(first)
