"""HTTP transport for the hosted backend (auth and table REST endpoints)."""

from __future__ import annotations

import asyncio
import json
import logging
from collections.abc import Mapping
from typing import Any, Protocol

import aiohttp

from avtokontrol._constants import USER_AGENT
from avtokontrol._redact import redact_for_log
from avtokontrol.config import AppConfig
from avtokontrol.exceptions import BackendError, TransportError

_logger = logging.getLogger(__name__)


class Transport(Protocol):
    """Structural transport interface used by endpoint modules.

    Having a protocol here makes it easy to pass test doubles while
    keeping the production implementation (`RestTransport`) concrete.
    """

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
        headers: Mapping[str, str] | None = None,
        access_token: str | None = None,
    ) -> Any:
        ...


def _error_details(body: Any, text: str) -> tuple[str, str]:
    """Extract ``(code, message)`` from an auth or table error body."""
    if not isinstance(body, dict):
        return "", text[:200]
    code = body.get("error_code") or body.get("code") or body.get("error") or ""
    message = body.get("msg") or body.get("message") or body.get("error_description") or body.get("error") or text[:200]
    return str(code), str(message)


class RestTransport:
    """JSON-over-HTTP transport that adds the API key and bearer token."""

    def __init__(self, config: AppConfig, http_session: aiohttp.ClientSession) -> None:
        self._config = config
        self._http = http_session
        self._timeout = aiohttp.ClientTimeout(total=config.request_timeout)

    def _headers(self, access_token: str | None, extra: Mapping[str, str] | None) -> dict[str, str]:
        headers: dict[str, str] = {
            "apikey": self._config.api_key,
            "authorization": f"Bearer {access_token or self._config.api_key}",
            "accept": "application/json",
            "content-type": "application/json; charset=UTF-8",
            "user-agent": USER_AGENT,
        }
        if extra:
            headers.update(extra)
        return headers

    async def request(
        self,
        method: str,
        endpoint: str,
        *,
        params: Mapping[str, str] | None = None,
        json_body: Any = None,
        headers: Mapping[str, str] | None = None,
        access_token: str | None = None,
    ) -> Any:
        """Send one request and return the decoded JSON body.

        Returns ``None`` for empty bodies (e.g. ``204 No Content``).

        Raises
        ------
        TransportError
            Network failure, timeout, or a body that is not JSON.
        BackendError
            Any non-2xx response; ``code`` and message come from the body.
        """
        url = f"{self._config.backend_url}{endpoint}"
        data = json.dumps(json_body) if json_body is not None else None

        _logger.debug("%s %s params=%s body=%s", method, url, params, redact_for_log(json_body))

        try:
            async with self._http.request(
                method,
                url,
                params=dict(params) if params else None,
                data=data,
                headers=self._headers(access_token, headers),
                timeout=self._timeout,
            ) as resp:
                status = resp.status
                text = await resp.text()
        except asyncio.TimeoutError as exc:
            raise TransportError(f"Request to {endpoint} timed out", endpoint=endpoint) from exc
        except aiohttp.ClientError as exc:
            raise TransportError(f"Request to {endpoint} failed: {exc}", endpoint=endpoint) from exc

        body: Any = None
        if text.strip():
            try:
                body = json.loads(text)
            except json.JSONDecodeError as exc:
                if 200 <= status < 300:
                    raise TransportError(
                        f"Invalid JSON from {endpoint}: {text[:200]}",
                        status_code=status,
                        endpoint=endpoint,
                    ) from exc

        if not 200 <= status < 300:
            code, message = _error_details(body, text)
            _logger.debug("HTTP %s from %s code=%s message=%s", status, endpoint, code, message)
            raise BackendError(message, code=code, endpoint=endpoint, status_code=status)

        return body
