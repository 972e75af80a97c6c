"""Application root.

:class:`AvtoKontrolApp` builds the one process-wide context (storage,
backend client, session provider, navigator, notifier) and mounts the
screen for each navigation after the route guard has approved it.
"""

from __future__ import annotations

import asyncio
import logging
import random
from typing import Any

import aiohttp

from avtokontrol._transport import Transport
from avtokontrol.client import BackendClient
from avtokontrol.config import AppConfig
from avtokontrol.notifications import Notifier
from avtokontrol.provider import SessionProvider
from avtokontrol.routing import NavItem, Navigator, RouteGuard, RouteMatch, RouteName, normalize_path, resolve
from avtokontrol.screens import (
    DashboardScreen,
    LandingScreen,
    LoginScreen,
    MapScreen,
    NotFoundScreen,
    ProfileScreen,
    RegisterScreen,
    Screen,
    ScreenContext,
    SettingsScreen,
    VehicleControlScreen,
    VehicleDetailScreen,
    VehiclesListScreen,
)
from avtokontrol.storage import PreferenceStore, Theme

_logger = logging.getLogger(__name__)

_SCREENS: dict[RouteName, type[Screen[Any]]] = {
    RouteName.INDEX: LandingScreen,
    RouteName.LOGIN: LoginScreen,
    RouteName.REGISTER: RegisterScreen,
    RouteName.DASHBOARD: DashboardScreen,
    RouteName.VEHICLES: VehiclesListScreen,
    RouteName.VEHICLE_DETAIL: VehicleDetailScreen,
    RouteName.VEHICLE_CONTROL: VehicleControlScreen,
    RouteName.PROFILE: ProfileScreen,
    RouteName.MAP: MapScreen,
    RouteName.SETTINGS: SettingsScreen,
    RouteName.NOT_FOUND: NotFoundScreen,
}


def build_screen(context: ScreenContext, match: RouteMatch) -> Screen[Any]:
    screen_cls = _SCREENS[match.name]
    if "id" in match.params:
        return screen_cls(context, match.params["id"])  # type: ignore[call-arg]
    return screen_cls(context)


class AvtoKontrolApp:
    """The application context.

    Usage::

        async with AvtoKontrolApp(AppConfig.from_env()) as app:
            screen = await app.open("/dashboard")   # LoginScreen when signed out
            await screen.submit("ivan@example.com", "Passw0rd!")
            await app.settle()                      # DashboardScreen is mounted

    Redirects issued by the session provider (after sign-in or sign-out)
    are followed automatically; :meth:`settle` waits for them.
    """

    def __init__(
        self,
        config: AppConfig,
        *,
        storage: PreferenceStore | None = None,
        transport: Transport | None = None,
        http_session: aiohttp.ClientSession | None = None,
        rng: random.Random | None = None,
    ) -> None:
        self.config = config
        self.storage = storage if storage is not None else PreferenceStore(config.storage_path)
        self.notifier = Notifier()
        self.navigator = Navigator()
        self.backend = BackendClient(config, storage=self.storage, http_session=http_session, transport=transport)
        self.provider = SessionProvider(self.backend, self.navigator, storage=self.storage)
        self.guard = RouteGuard()
        self.context = ScreenContext(
            config=config,
            backend=self.backend,
            provider=self.provider,
            navigator=self.navigator,
            notifier=self.notifier,
            storage=self.storage,
            rng=rng or random.Random(),
        )
        self.theme = self.storage.get_theme()
        self._screen: Screen[Any] | None = None
        self._control_screens: list[VehicleControlScreen] = []
        self._opening = False
        self._tasks: set[asyncio.Task[Any]] = set()
        self._unsubscribe_navigation = self.navigator.subscribe(self._on_navigate)

    # ------------------------------------------------------------------
    # Lifecycle
    # ------------------------------------------------------------------

    async def __aenter__(self) -> AvtoKontrolApp:
        await self.backend.__aenter__()
        await self.provider.start()
        return self

    async def __aexit__(self, *exc: Any) -> None:
        await self.settle()
        for screen in self._control_screens:
            await screen.drain()
        if self._screen is not None:
            self._screen.unmount()
            self._screen = None
        self._unsubscribe_navigation()
        await self.provider.stop()
        await self.backend.__aexit__(*exc)

    async def settle(self) -> None:
        """Wait for screens opened by provider redirects to finish mounting."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    # ------------------------------------------------------------------
    # Navigation
    # ------------------------------------------------------------------

    @property
    def screen(self) -> Screen[Any] | None:
        return self._screen

    @property
    def shows_navigation(self) -> bool:
        return self.guard.shows_navigation(authenticated=self.provider.is_authenticated)

    @property
    def nav_items(self) -> list[NavItem]:
        return self.guard.nav_items(self.navigator.current) if self.shows_navigation else []

    async def open(self, path: str) -> Screen[Any]:
        """Navigate to *path* (or the guard's redirect) and mount its screen."""
        target = normalize_path(path)
        redirect = self.guard.check(
            target,
            authenticated=self.provider.is_authenticated,
            loading=self.provider.loading,
        )
        if redirect is not None:
            target = redirect
        if self.navigator.current != target:
            self._opening = True
            try:
                self.navigator.navigate(target)
            finally:
                self._opening = False
        return await self._mount(resolve(target))

    async def _mount(self, match: RouteMatch) -> Screen[Any]:
        if self._screen is not None:
            self._screen.unmount()
        # Unmounted control screens are kept until their status writes finish.
        self._control_screens = [s for s in self._control_screens if s.controller and s.controller.pending]
        screen = build_screen(self.context, match)
        if isinstance(screen, VehicleControlScreen):
            self._control_screens.append(screen)
        self._screen = screen
        _logger.debug("Mounting %s for %s", type(screen).__name__, match.path)
        await screen.mount()
        return screen

    def _on_navigate(self, path: str) -> None:
        if self._opening:
            return
        task = asyncio.get_running_loop().create_task(self.open(path))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    # ------------------------------------------------------------------
    # Preferences
    # ------------------------------------------------------------------

    def toggle_theme(self) -> Theme:
        self.theme = self.theme.toggle()
        self.storage.set_theme(self.theme)
        return self.theme
