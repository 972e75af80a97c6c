"""Application configuration for avtokontrol."""

from __future__ import annotations

import dataclasses
import os
from pathlib import Path
from typing import Any

from avtokontrol.exceptions import ConfigError


def _env_bool(value: str | None, default: bool) -> bool:
    if value is None:
        return default
    normalized = value.strip().lower()
    if normalized in {"1", "true", "yes", "y", "on"}:
        return True
    if normalized in {"0", "false", "no", "n", "off"}:
        return False
    return default


def _default_storage_path() -> Path:
    return Path.home() / ".avtokontrol" / "storage.json"


@dataclasses.dataclass(frozen=True)
class AppConfig:
    """Application configuration.

    Parameters
    ----------
    backend_url : str
        Base URL of the hosted backend (auth under ``/auth/v1``, tables
        under ``/rest/v1``).
    api_key : str
        Public (anon) API key sent as the ``apikey`` header.
    storage_path : Path
        JSON file backing the durable preference store.
    request_timeout : float
        Total timeout in seconds for a single backend request.
    session_refresh_margin : float
        A persisted session whose access token expires within this many
        seconds is refreshed before being restored.
    persist_session : bool
        Keep the session in the preference store so it survives restarts.
    revert_on_failure : bool
        Roll back an optimistic vehicle command when its status write fails.
        Off by default: the local state stays as the user set it.
    demo_fallback : bool
        Let screens that support it fall back to the bundled demo dataset
        when the backend read fails.
    lock_stops_engine : bool
        Stop a running engine when the doors are locked.
    """

    backend_url: str
    api_key: str
    storage_path: Path = dataclasses.field(default_factory=_default_storage_path)
    request_timeout: float = 15.0
    session_refresh_margin: float = 60.0
    persist_session: bool = True
    revert_on_failure: bool = False
    demo_fallback: bool = True
    lock_stops_engine: bool = False

    def __post_init__(self) -> None:
        url = self.backend_url.strip()
        if not url.startswith(("http://", "https://")):
            raise ConfigError(f"backend_url must be an http(s) URL, got {self.backend_url!r}")
        if not self.api_key.strip():
            raise ConfigError("api_key must not be empty")
        if self.request_timeout <= 0:
            raise ConfigError("request_timeout must be positive")
        object.__setattr__(self, "backend_url", url.rstrip("/"))
        object.__setattr__(self, "storage_path", Path(self.storage_path).expanduser())

    @classmethod
    def from_env(cls, **overrides: Any) -> AppConfig:
        """Create configuration from environment variables.

        Reads ``AVTOKONTROL_BACKEND_URL``, ``AVTOKONTROL_API_KEY`` and the
        optional ``AVTOKONTROL_*`` variables. Explicit keyword arguments
        override environment values.

        Raises
        ------
        ConfigError
            If a required value is missing or a numeric value is malformed.
        """
        env = os.environ

        _ENV_CONFIG_MAP = {
            "AVTOKONTROL_BACKEND_URL": "backend_url",
            "AVTOKONTROL_API_KEY": "api_key",
            "AVTOKONTROL_STORAGE_PATH": "storage_path",
        }
        config_kwargs: dict[str, Any] = {}
        for env_key, field_name in _ENV_CONFIG_MAP.items():
            val = env.get(env_key)
            if val is not None:
                config_kwargs[field_name] = val

        for env_key, field_name in (
            ("AVTOKONTROL_REQUEST_TIMEOUT", "request_timeout"),
            ("AVTOKONTROL_SESSION_REFRESH_MARGIN", "session_refresh_margin"),
        ):
            raw = env.get(env_key)
            if raw is None or field_name in overrides:
                continue
            try:
                config_kwargs[field_name] = float(raw)
            except ValueError as exc:
                raise ConfigError(f"{env_key} must be a number, got {raw!r}") from exc

        defaults = {f.name: f.default for f in dataclasses.fields(cls)}
        for env_key, field_name in (
            ("AVTOKONTROL_PERSIST_SESSION", "persist_session"),
            ("AVTOKONTROL_REVERT_ON_FAILURE", "revert_on_failure"),
            ("AVTOKONTROL_DEMO_FALLBACK", "demo_fallback"),
            ("AVTOKONTROL_LOCK_STOPS_ENGINE", "lock_stops_engine"),
        ):
            if field_name not in overrides:
                config_kwargs[field_name] = _env_bool(env.get(env_key), defaults[field_name])

        config_kwargs.update(overrides)

        missing = [name for name in ("backend_url", "api_key") if not config_kwargs.get(name)]
        if missing:
            raise ConfigError(f"Missing required configuration: {', '.join(missing)}")

        return cls(**config_kwargs)
