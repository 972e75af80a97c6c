"""Session provider: the single source of truth for who is signed in.

One provider is created per application. It subscribes to the backend's
auth-state events, restores the persisted session exactly once on start,
and drives the login/dashboard redirects that follow sign-in and sign-out.
"""

from __future__ import annotations

import logging
from collections.abc import Callable

from avtokontrol._constants import PREF_IS_AUTHENTICATED
from avtokontrol.client import BackendClient, Subscription
from avtokontrol.exceptions import BackendError, TransportError
from avtokontrol.models.auth import AuthChangeEvent, SignUpResult
from avtokontrol.routing import DASHBOARD_PATH, LOGIN_PATH, REGISTER_PATH, Navigator
from avtokontrol.session import Session
from avtokontrol.storage import PreferenceStore

_logger = logging.getLogger(__name__)

ProviderListener = Callable[["SessionProvider"], None]

_AUTH_PAGES = frozenset({LOGIN_PATH, REGISTER_PATH})


class SessionProvider:
    """Tracks the current session and reacts to auth-state changes.

    Until :meth:`start` has finished restoring the persisted session,
    :attr:`loading` is ``True`` and consumers must not redirect.
    """

    def __init__(
        self,
        backend: BackendClient,
        navigator: Navigator,
        *,
        storage: PreferenceStore | None = None,
    ) -> None:
        self._backend = backend
        self._navigator = navigator
        self._storage = storage
        self._session: Session | None = None
        self._loading = True
        self._generation = 0
        self._started = False
        self._subscription: Subscription | None = None
        self._listeners: list[ProviderListener] = []

    # ------------------------------------------------------------------
    # Read access
    # ------------------------------------------------------------------

    @property
    def session(self) -> Session | None:
        return self._session

    @property
    def user_id(self) -> str | None:
        return self._session.user_id if self._session else None

    @property
    def loading(self) -> bool:
        return self._loading

    @property
    def is_authenticated(self) -> bool:
        return self._session is not None

    def subscribe(self, listener: ProviderListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def _notify(self) -> None:
        for listener in list(self._listeners):
            try:
                listener(self)
            except Exception:
                _logger.exception("Session listener failed")

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def start(self) -> None:
        """Subscribe to auth events, then restore the session once."""
        if self._started:
            return
        self._started = True
        self._subscription = self._backend.on_auth_state_change(self._on_auth_event)

        generation = self._generation
        try:
            restored = await self._backend.get_session()
        except (BackendError, TransportError) as exc:
            _logger.warning("Session restore failed: %s", exc)
            restored = None

        # An auth event that arrived while restoring is more recent than the restore.
        if self._generation == generation:
            self._apply_session(restored)
        self._loading = False
        _logger.debug("Session restored user=%s", self.user_id)
        self._notify()

    async def stop(self) -> None:
        if self._subscription is not None:
            self._subscription.unsubscribe()
            self._subscription = None
        self._started = False

    def _apply_session(self, session: Session | None) -> None:
        """Set the current session; repeated calls with the same value are harmless."""
        self._generation += 1
        self._session = session
        if self._storage is not None:
            if session is None:
                self._storage.remove(PREF_IS_AUTHENTICATED)
            else:
                self._storage.set(PREF_IS_AUTHENTICATED, "true")

    def _on_auth_event(self, event: AuthChangeEvent, session: Session | None) -> None:
        self._apply_session(session)
        if event == AuthChangeEvent.SIGNED_OUT:
            self._navigator.navigate(LOGIN_PATH)
        elif event == AuthChangeEvent.SIGNED_IN and self._navigator.current in _AUTH_PAGES:
            self._navigator.navigate(DASHBOARD_PATH)
        self._notify()

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    async def sign_in(self, email: str, password: str) -> Session:
        """Sign in; the ``SIGNED_IN`` event updates state and redirects.

        Raises
        ------
        AuthError
            Invalid credentials, unconfirmed email, or another auth failure.
        TransportError
            The backend could not be reached.
        """
        return await self._backend.sign_in(email.strip(), password)

    async def sign_up(self, email: str, password: str, display_name: str) -> SignUpResult:
        """Register a new account.

        Success is reported whether or not the backend requires email
        confirmation; :attr:`SignUpResult.confirmation_required` tells them
        apart.
        """
        response = await self._backend.sign_up(email.strip(), password, {"name": display_name})
        user_id = response.user.id if response.user else (response.session.user_id if response.session else "")
        return SignUpResult(user_id=user_id, session=response.session)

    async def sign_out(self) -> None:
        await self._backend.sign_out()
