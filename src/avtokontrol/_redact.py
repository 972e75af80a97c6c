"""Redaction of credentials before DEBUG logging.

Auth payloads carry passwords and refresh tokens, every request carries the
API key and a bearer token. :func:`redact_for_log` walks a payload and masks
any value whose key looks like a credential.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import Any

from pydantic import BaseModel

REDACTED = "<redacted>"

_SECRET_KEY_PARTS: tuple[str, ...] = ("password", "token", "secret", "apikey", "api_key")
_SECRET_KEYS: frozenset[str] = frozenset({"authorization", "cookie", "set-cookie"})
_MAX_DEPTH = 16


def is_secret_key(key: str) -> bool:
    lowered = key.lower()
    return lowered in _SECRET_KEYS or any(part in lowered for part in _SECRET_KEY_PARTS)


def _short(text: str, limit: int) -> str:
    return text if len(text) <= limit else f"{text[:limit]}…<+{len(text) - limit} chars>"


def redact_for_log(value: Any, *, max_string: int = 512, _depth: int = 0) -> Any:
    """Return a copy of *value* with credential fields masked.

    Mappings are masked by key, pydantic models are dumped first, long
    strings are shortened. Anything else is rendered with ``repr``.
    """
    if _depth > _MAX_DEPTH:
        return "<max-depth>"
    if value is None or isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, str):
        return _short(value, max_string)
    if isinstance(value, (bytes, bytearray)):
        return f"<{len(value)} bytes>"
    if isinstance(value, BaseModel):
        value = value.model_dump(mode="json")
    if isinstance(value, Mapping):
        return {
            str(key): REDACTED
            if is_secret_key(str(key))
            else redact_for_log(item, max_string=max_string, _depth=_depth + 1)
            for key, item in value.items()
        }
    if isinstance(value, Sequence):
        return [redact_for_log(item, max_string=max_string, _depth=_depth + 1) for item in value]
    return repr(value)
