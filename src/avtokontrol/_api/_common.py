"""Shared helpers for backend endpoint modules.

This module centralizes the error mapping used by the auth and table
endpoint modules. It is internal to avtokontrol and may change at any time.
"""

from __future__ import annotations

from avtokontrol._constants import (
    EMAIL_NOT_CONFIRMED_CODES,
    INVALID_CREDENTIALS_CODES,
    SESSION_EXPIRED_CODES,
    USER_EXISTS_CODES,
)
from avtokontrol.exceptions import (
    AuthError,
    BackendError,
    DataFetchError,
    EmailNotConfirmedError,
    InvalidCredentialsError,
    SessionExpiredError,
    UserAlreadyRegisteredError,
)


def _is_session_expired(exc: BackendError) -> bool:
    if exc.code in SESSION_EXPIRED_CODES:
        return True
    return exc.status_code == 401 and "jwt" in str(exc).lower()


def auth_error_from(exc: BackendError) -> AuthError:
    """Map a raw backend error from an ``/auth`` endpoint to its typed subclass.

    Older auth servers report only a message, so known messages are matched
    as well as codes.
    """
    message = str(exc)
    lowered = message.lower()
    kwargs = {"code": exc.code, "endpoint": exc.endpoint, "status_code": exc.status_code}

    if exc.code in INVALID_CREDENTIALS_CODES or lowered == "invalid login credentials":
        return InvalidCredentialsError(message, **kwargs)
    if exc.code in EMAIL_NOT_CONFIRMED_CODES or "email not confirmed" in lowered:
        return EmailNotConfirmedError(message, **kwargs)
    if exc.code in USER_EXISTS_CODES or "already registered" in lowered:
        return UserAlreadyRegisteredError(message, **kwargs)
    if _is_session_expired(exc):
        return SessionExpiredError(message, **kwargs)
    return AuthError(message, **kwargs)


def table_error_from(exc: BackendError, table: str) -> BackendError:
    """Map a raw backend error from a ``/rest`` endpoint.

    Expired tokens become :class:`SessionExpiredError` so the client can
    refresh and retry; everything else is a :class:`DataFetchError`.
    """
    if _is_session_expired(exc):
        return SessionExpiredError(
            str(exc),
            code=exc.code,
            endpoint=exc.endpoint,
            status_code=exc.status_code,
        )
    return DataFetchError(
        f"{table}: {exc}",
        table=table,
        code=exc.code,
        endpoint=exc.endpoint,
        status_code=exc.status_code,
    )
