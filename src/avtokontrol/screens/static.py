"""Screens without data: the landing page and the not-found page."""

from __future__ import annotations

from avtokontrol.routing import DASHBOARD_PATH, LOGIN_PATH, RouteName
from avtokontrol.screens._base import Screen


class LandingScreen(Screen[None]):
    route = RouteName.INDEX

    async def _load(self) -> None:
        return None

    @property
    def primary_action(self) -> str:
        """Where the landing page's main button leads."""
        return DASHBOARD_PATH if self._ctx.provider.is_authenticated else LOGIN_PATH


class NotFoundScreen(Screen[None]):
    route = RouteName.NOT_FOUND

    async def _load(self) -> None:
        return None

    @property
    def path(self) -> str:
        return self._ctx.navigator.current
