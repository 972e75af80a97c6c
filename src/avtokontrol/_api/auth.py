"""Auth service endpoints.

Endpoints:
  - POST /auth/v1/token?grant_type=password
  - POST /auth/v1/token?grant_type=refresh_token
  - POST /auth/v1/signup
  - POST /auth/v1/logout
  - GET  /auth/v1/user
  - PUT  /auth/v1/user
"""

from __future__ import annotations

import logging
from typing import Any

from avtokontrol._api._common import auth_error_from
from avtokontrol._constants import AUTH_PREFIX
from avtokontrol._redact import redact_for_log
from avtokontrol._transport import Transport
from avtokontrol.exceptions import AuthError, BackendError
from avtokontrol.models.auth import AuthResponse, AuthUser
from avtokontrol.session import Session

_logger = logging.getLogger(__name__)

TOKEN_ENDPOINT = f"{AUTH_PREFIX}/token"
SIGNUP_ENDPOINT = f"{AUTH_PREFIX}/signup"
LOGOUT_ENDPOINT = f"{AUTH_PREFIX}/logout"
USER_ENDPOINT = f"{AUTH_PREFIX}/user"


async def _call(
    transport: Transport,
    method: str,
    endpoint: str,
    *,
    params: dict[str, str] | None = None,
    json_body: Any = None,
    access_token: str | None = None,
) -> Any:
    try:
        return await transport.request(
            method,
            endpoint,
            params=params,
            json_body=json_body,
            access_token=access_token,
        )
    except AuthError:
        raise
    except BackendError as exc:
        raise auth_error_from(exc) from exc


def parse_auth_response(payload: Any, *, endpoint: str) -> AuthResponse:
    """Parse a token/sign-up response into user + optional session.

    A sign-up that needs email confirmation returns the bare user object
    (no ``access_token``), which yields ``AuthResponse(session=None)``.

    Raises
    ------
    AuthError
        If the payload has neither a session nor a user.
    """
    if not isinstance(payload, dict):
        raise AuthError("Auth response is not an object", endpoint=endpoint)
    _logger.debug("Auth response from %s parsed=%s", endpoint, redact_for_log(payload))

    if payload.get("access_token"):
        session = Session.from_token_response(payload)
        user = AuthUser.model_validate(payload.get("user") or {"id": session.user_id, "email": session.email})
        return AuthResponse(user=user, session=session)

    user_payload = payload.get("user") if isinstance(payload.get("user"), dict) else payload
    if not user_payload.get("id"):
        raise AuthError("Auth response missing user id", endpoint=endpoint)
    return AuthResponse(user=AuthUser.model_validate(user_payload), session=None)


async def sign_in_with_password(transport: Transport, email: str, password: str) -> AuthResponse:
    payload = await _call(
        transport,
        "POST",
        TOKEN_ENDPOINT,
        params={"grant_type": "password"},
        json_body={"email": email, "password": password},
    )
    response = parse_auth_response(payload, endpoint=TOKEN_ENDPOINT)
    if response.session is None:
        raise AuthError("Sign-in response missing session", endpoint=TOKEN_ENDPOINT)
    return response


async def sign_up(
    transport: Transport,
    email: str,
    password: str,
    metadata: dict[str, Any] | None = None,
) -> AuthResponse:
    payload = await _call(
        transport,
        "POST",
        SIGNUP_ENDPOINT,
        json_body={"email": email, "password": password, "data": metadata or {}},
    )
    return parse_auth_response(payload, endpoint=SIGNUP_ENDPOINT)


async def refresh_session(transport: Transport, refresh_token: str) -> Session:
    payload = await _call(
        transport,
        "POST",
        TOKEN_ENDPOINT,
        params={"grant_type": "refresh_token"},
        json_body={"refresh_token": refresh_token},
    )
    response = parse_auth_response(payload, endpoint=TOKEN_ENDPOINT)
    if response.session is None:
        raise AuthError("Refresh response missing session", endpoint=TOKEN_ENDPOINT)
    return response.session


async def sign_out(transport: Transport, access_token: str) -> None:
    await _call(transport, "POST", LOGOUT_ENDPOINT, access_token=access_token)


async def get_user(transport: Transport, access_token: str) -> AuthUser:
    payload = await _call(transport, "GET", USER_ENDPOINT, access_token=access_token)
    if not isinstance(payload, dict) or not payload.get("id"):
        raise AuthError("User response missing id", endpoint=USER_ENDPOINT)
    return AuthUser.model_validate(payload)


async def update_user(transport: Transport, access_token: str, attributes: dict[str, Any]) -> AuthUser:
    """Update email, password or metadata of the signed-in user."""
    payload = await _call(transport, "PUT", USER_ENDPOINT, json_body=attributes, access_token=access_token)
    if not isinstance(payload, dict) or not payload.get("id"):
        raise AuthError("User response missing id", endpoint=USER_ENDPOINT)
    return AuthUser.model_validate(payload)
