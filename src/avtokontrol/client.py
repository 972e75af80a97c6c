"""High-level async client for the hosted backend (auth + tables)."""

from __future__ import annotations

import logging
from collections.abc import Awaitable, Callable, Mapping
from dataclasses import dataclass
from typing import Any, TypeVar

import aiohttp
from pydantic import ValidationError as PydanticValidationError

from avtokontrol._api import auth as _auth_api
from avtokontrol._api import tables as _tables_api
from avtokontrol._constants import OWNER_COLUMN, PREF_SESSION
from avtokontrol._transport import RestTransport, Transport
from avtokontrol.config import AppConfig
from avtokontrol.exceptions import (
    AuthError,
    AvtoKontrolError,
    BackendError,
    InvalidCredentialsError,
    SessionExpiredError,
    TransportError,
)
from avtokontrol.models.auth import AuthChangeEvent, AuthResponse, AuthUser
from avtokontrol.session import Session
from avtokontrol.storage import PreferenceStore

_logger = logging.getLogger(__name__)

T = TypeVar("T")

AuthStateListener = Callable[[AuthChangeEvent, Session | None], None]


@dataclass(slots=True)
class Subscription:
    """Handle returned by :meth:`BackendClient.on_auth_state_change`."""

    client: BackendClient
    listener: AuthStateListener

    def unsubscribe(self) -> None:
        self.client._remove_listener(self.listener)


class BackendClient:
    """Async client for the hosted backend.

    Usage::

        async with BackendClient(config, storage=store) as client:
            await client.sign_in("ivan@example.com", "Passw0rd!")
            rows = await client.select_owned("vehicles")
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        storage: PreferenceStore | None = None,
        http_session: aiohttp.ClientSession | None = None,
        transport: Transport | None = None,
    ) -> None:
        self._config = config
        self._storage = storage
        self._external_session = http_session is not None
        self._http_session = http_session
        self._transport: Transport | None = transport
        self._external_transport = transport is not None
        self._session: Session | None = None
        self._listeners: list[AuthStateListener] = []

    # ------------------------------------------------------------------
    # Context manager lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> BackendClient:
        if self._transport is None:
            if self._http_session is None:
                self._http_session = aiohttp.ClientSession()
            self._transport = RestTransport(self._config, self._http_session)
        return self

    async def __aexit__(self, *exc: Any) -> None:
        if not self._external_session and self._http_session is not None:
            await self._http_session.close()
            self._http_session = None
        if not self._external_transport:
            self._transport = None
        self._listeners.clear()

    # ------------------------------------------------------------------
    # Auth-state subscription
    # ------------------------------------------------------------------

    def on_auth_state_change(self, listener: AuthStateListener) -> Subscription:
        """Register *listener* for auth-state events."""
        self._listeners.append(listener)
        return Subscription(client=self, listener=listener)

    def _remove_listener(self, listener: AuthStateListener) -> None:
        if listener in self._listeners:
            self._listeners.remove(listener)

    def _emit(self, event: AuthChangeEvent, session: Session | None) -> None:
        _logger.debug("Auth event %s user=%s", event, session.user_id if session else None)
        for listener in list(self._listeners):
            try:
                listener(event, session)
            except Exception:
                _logger.exception("Auth state listener failed on %s", event)

    # ------------------------------------------------------------------
    # Session bookkeeping
    # ------------------------------------------------------------------

    @property
    def session(self) -> Session | None:
        return self._session

    def _require_transport(self) -> Transport:
        if self._transport is None:
            raise AvtoKontrolError("Client not initialized. Use 'async with BackendClient(...) as client:'")
        return self._transport

    def _store_session(self, session: Session | None) -> None:
        self._session = session
        if self._storage is None or not self._config.persist_session:
            return
        if session is None:
            self._storage.remove(PREF_SESSION)
        else:
            self._storage.set(PREF_SESSION, session.to_storage())

    def _load_persisted(self) -> Session | None:
        if self._storage is None or not self._config.persist_session:
            return None
        raw = self._storage.get(PREF_SESSION)
        if not raw:
            return None
        try:
            return Session.from_storage(raw)
        except PydanticValidationError:
            _logger.warning("Discarding unreadable persisted session")
            self._storage.remove(PREF_SESSION)
            return None

    async def get_session(self) -> Session | None:
        """Return the current session, restoring a persisted one if needed.

        A restored session close to expiry is refreshed first. If the
        refresh is rejected the persisted session is discarded and ``None``
        is returned; network failures propagate.
        """
        session = self._session or self._load_persisted()
        if session is None:
            return None
        if session.expires_within(self._config.session_refresh_margin):
            if not session.refresh_token:
                self._store_session(None)
                return None
            try:
                session = await self._refresh(session.refresh_token)
            except AuthError:
                _logger.info("Persisted session could not be refreshed, signing out locally")
                self._store_session(None)
                return None
            self._emit(AuthChangeEvent.TOKEN_REFRESHED, session)
            return session
        self._session = session
        return session

    async def _refresh(self, refresh_token: str) -> Session:
        session = await _auth_api.refresh_session(self._require_transport(), refresh_token)
        self._store_session(session)
        return session

    async def refresh_session(self) -> Session:
        """Exchange the refresh token for a new session.

        A rejected refresh token ends the session: it is cleared locally,
        ``SIGNED_OUT`` is emitted and :class:`SessionExpiredError` raised.
        """
        current = self._session
        if current is None or not current.refresh_token:
            raise SessionExpiredError("No session to refresh")
        try:
            session = await self._refresh(current.refresh_token)
        except AuthError as exc:
            _logger.info("Refresh token rejected, signing out user=%s", current.user_id)
            self._store_session(None)
            self._emit(AuthChangeEvent.SIGNED_OUT, None)
            raise SessionExpiredError(
                "Session expired",
                code=exc.code,
                endpoint=exc.endpoint,
                status_code=exc.status_code,
            ) from exc
        self._emit(AuthChangeEvent.TOKEN_REFRESHED, session)
        return session

    async def ensure_session(self) -> Session:
        """Return an active session, refreshing it if the token has expired."""
        session = self._session
        if session is None:
            raise SessionExpiredError("Not signed in")
        if session.is_expired:
            return await self.refresh_session()
        return session

    async def _call_with_reauth(self, fn: Callable[[Session], Awaitable[T]]) -> T:
        """Run a table call, retrying once with a refreshed token on expiry."""
        session = await self.ensure_session()
        try:
            return await fn(session)
        except SessionExpiredError:
            _logger.debug("Access token rejected, refreshing and retrying once")
            refreshed = await self.refresh_session()
            return await fn(refreshed)

    # ------------------------------------------------------------------
    # Authentication
    # ------------------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> Session:
        """Sign in with email and password and emit ``SIGNED_IN``."""
        response = await _auth_api.sign_in_with_password(self._require_transport(), email, password)
        assert response.session is not None  # noqa: S101
        self._store_session(response.session)
        _logger.info("Signed in user=%s", response.session.user_id)
        self._emit(AuthChangeEvent.SIGNED_IN, response.session)
        return response.session

    async def sign_up(
        self,
        email: str,
        password: str,
        metadata: Mapping[str, Any] | None = None,
    ) -> AuthResponse:
        """Register a new account.

        When the backend requires email confirmation the response carries
        no session and no event is emitted.
        """
        response = await _auth_api.sign_up(self._require_transport(), email, password, dict(metadata or {}))
        if response.session is not None:
            self._store_session(response.session)
            self._emit(AuthChangeEvent.SIGNED_IN, response.session)
        _logger.info(
            "Signed up user=%s confirmation_required=%s",
            response.user.id if response.user else None,
            response.session is None,
        )
        return response

    async def sign_out(self) -> None:
        """Revoke the session remotely and clear it locally.

        The local session is always cleared and ``SIGNED_OUT`` emitted, even
        when the remote revoke fails.
        """
        session = self._session
        if session is not None:
            try:
                await _auth_api.sign_out(self._require_transport(), session.access_token)
            except (BackendError, TransportError) as exc:
                _logger.warning("Remote sign-out failed, clearing local session: %s", exc)
        self._store_session(None)
        _logger.info("Signed out")
        self._emit(AuthChangeEvent.SIGNED_OUT, None)

    async def verify_password(self, password: str) -> bool:
        """Check *password* against the signed-in account without touching the session."""
        session = await self.ensure_session()
        try:
            await _auth_api.sign_in_with_password(self._require_transport(), session.email, password)
        except InvalidCredentialsError:
            return False
        return True

    async def get_user(self) -> AuthUser:
        return await self._call_with_reauth(
            lambda session: _auth_api.get_user(self._require_transport(), session.access_token)
        )

    async def update_user(self, attributes: Mapping[str, Any]) -> AuthUser:
        """Change password, email or metadata of the signed-in user."""
        user = await self._call_with_reauth(
            lambda session: _auth_api.update_user(self._require_transport(), session.access_token, dict(attributes))
        )
        self._emit(AuthChangeEvent.USER_UPDATED, self._session)
        return user

    # ------------------------------------------------------------------
    # Tables
    # ------------------------------------------------------------------

    def _owner_id(self) -> str:
        if self._session is None:
            raise SessionExpiredError("Not signed in")
        return self._session.user_id

    async def select(
        self,
        table: str,
        *,
        filters: Mapping[str, Any] | None = None,
        columns: str = "*",
        order: str | None = None,
    ) -> list[dict[str, Any]]:
        return await self._call_with_reauth(
            lambda session: _tables_api.select(
                self._require_transport(),
                table,
                access_token=session.access_token,
                filters=filters,
                columns=columns,
                order=order,
            )
        )

    async def select_owned(
        self,
        table: str,
        *,
        filters: Mapping[str, Any] | None = None,
        columns: str = "*",
        order: str | None = None,
        owner_column: str = OWNER_COLUMN,
    ) -> list[dict[str, Any]]:
        """Select rows belonging to the signed-in user."""
        scoped = {**(filters or {}), owner_column: self._owner_id()}
        return await self.select(table, filters=scoped, columns=columns, order=order)

    async def select_one_owned(
        self,
        table: str,
        *,
        filters: Mapping[str, Any],
        owner_column: str = OWNER_COLUMN,
    ) -> dict[str, Any] | None:
        rows = await self.select_owned(table, filters=filters, owner_column=owner_column)
        return rows[0] if rows else None

    async def insert_owned(
        self,
        table: str,
        row: Mapping[str, Any],
        *,
        owner_column: str = OWNER_COLUMN,
    ) -> dict[str, Any]:
        """Insert a row stamped with the signed-in user's id."""
        scoped = {**row, owner_column: self._owner_id()}
        return await self._call_with_reauth(
            lambda session: _tables_api.insert(
                self._require_transport(),
                table,
                scoped,
                access_token=session.access_token,
            )
        )

    async def update_owned(
        self,
        table: str,
        values: Mapping[str, Any],
        *,
        filters: Mapping[str, Any],
        owner_column: str = OWNER_COLUMN,
    ) -> list[dict[str, Any]]:
        """Update rows matching *filters* that belong to the signed-in user."""
        scoped = {**filters, owner_column: self._owner_id()}
        return await self._call_with_reauth(
            lambda session: _tables_api.update(
                self._require_transport(),
                table,
                values,
                access_token=session.access_token,
                filters=scoped,
            )
        )

    async def upsert_owned(
        self,
        table: str,
        row: Mapping[str, Any],
        *,
        on_conflict: str = OWNER_COLUMN,
        owner_column: str = OWNER_COLUMN,
    ) -> dict[str, Any]:
        scoped = {**row, owner_column: self._owner_id()}
        return await self._call_with_reauth(
            lambda session: _tables_api.upsert(
                self._require_transport(),
                table,
                scoped,
                access_token=session.access_token,
                on_conflict=on_conflict,
            )
        )
