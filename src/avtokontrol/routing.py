"""Route table, navigator and the route guard.

The guard is a two-state machine (unauthenticated / authenticated) driven
by the session provider: protected paths redirect to ``/login`` while no
session exists.
"""

from __future__ import annotations

import enum
import logging
import re
from collections.abc import Callable
from dataclasses import dataclass, field

_logger = logging.getLogger(__name__)

LOGIN_PATH = "/login"
REGISTER_PATH = "/register"
DASHBOARD_PATH = "/dashboard"

PROTECTED_PREFIXES: tuple[str, ...] = ("/dashboard", "/profile", "/vehicles", "/control", "/settings", "/map")
PUBLIC_PATHS: frozenset[str] = frozenset({"/", LOGIN_PATH, REGISTER_PATH})


class RouteName(enum.StrEnum):
    INDEX = "index"
    LOGIN = "login"
    REGISTER = "register"
    DASHBOARD = "dashboard"
    VEHICLES = "vehicles"
    VEHICLE_DETAIL = "vehicle_detail"
    VEHICLE_CONTROL = "vehicle_control"
    PROFILE = "profile"
    MAP = "map"
    SETTINGS = "settings"
    NOT_FOUND = "not_found"


@dataclass(frozen=True, slots=True)
class Route:
    name: RouteName
    pattern: str

    def compile(self) -> re.Pattern[str]:
        regex = re.sub(r"\{(\w+)\}", r"(?P<\1>[^/]+)", self.pattern)
        return re.compile(f"^{regex}/?$")


ROUTES: tuple[Route, ...] = (
    Route(RouteName.INDEX, "/"),
    Route(RouteName.LOGIN, LOGIN_PATH),
    Route(RouteName.REGISTER, REGISTER_PATH),
    Route(RouteName.DASHBOARD, DASHBOARD_PATH),
    Route(RouteName.VEHICLES, "/vehicles"),
    Route(RouteName.VEHICLE_DETAIL, "/vehicles/{id}"),
    Route(RouteName.VEHICLE_CONTROL, "/control/{id}"),
    Route(RouteName.PROFILE, "/profile"),
    Route(RouteName.MAP, "/map"),
    Route(RouteName.SETTINGS, "/settings"),
)

_COMPILED: tuple[tuple[Route, re.Pattern[str]], ...] = tuple((route, route.compile()) for route in ROUTES)


@dataclass(frozen=True, slots=True)
class RouteMatch:
    name: RouteName
    path: str
    params: dict[str, str] = field(default_factory=dict)


def normalize_path(path: str) -> str:
    """Strip query/fragment and collapse the trailing slash."""
    bare = path.split("?", 1)[0].split("#", 1)[0].strip() or "/"
    if not bare.startswith("/"):
        bare = "/" + bare
    if len(bare) > 1:
        bare = bare.rstrip("/")
    return bare


def resolve(path: str) -> RouteMatch:
    """Match *path* against the route table; unknown paths resolve to ``NOT_FOUND``."""
    bare = normalize_path(path)
    for route, regex in _COMPILED:
        match = regex.match(bare)
        if match:
            return RouteMatch(name=route.name, path=bare, params=match.groupdict())
    return RouteMatch(name=RouteName.NOT_FOUND, path=bare)


def is_protected(path: str) -> bool:
    bare = normalize_path(path)
    return any(bare == prefix or bare.startswith(prefix + "/") for prefix in PROTECTED_PREFIXES)


# ------------------------------------------------------------------
# Navigator
# ------------------------------------------------------------------

NavigationListener = Callable[[str], None]


class Navigator:
    """Holds the current path and the navigation history."""

    def __init__(self, initial: str = "/") -> None:
        self._history: list[str] = [normalize_path(initial)]
        self._listeners: list[NavigationListener] = []

    @property
    def current(self) -> str:
        return self._history[-1]

    @property
    def history(self) -> list[str]:
        return list(self._history)

    def subscribe(self, listener: NavigationListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def navigate(self, path: str, *, replace: bool = False) -> None:
        target = normalize_path(path)
        if replace:
            self._history[-1] = target
        else:
            self._history.append(target)
        _logger.debug("Navigate to %s (replace=%s)", target, replace)
        for listener in list(self._listeners):
            listener(target)

    def back(self) -> str:
        if len(self._history) > 1:
            self._history.pop()
        return self.current


# ------------------------------------------------------------------
# Route guard (layout)
# ------------------------------------------------------------------


@dataclass(frozen=True, slots=True)
class NavItem:
    path: str
    label: str
    active: bool


_NAV_ENTRIES: tuple[tuple[str, str], ...] = (
    ("/dashboard", "Главная"),
    ("/vehicles", "Автомобили"),
    ("/control", "Управление"),
    ("/map", "Карта"),
    ("/profile", "Профиль"),
    ("/settings", "Настройки"),
)


def page_title(path: str) -> str:
    bare = normalize_path(path)
    if bare == "/dashboard":
        return "Панель приборов"
    if bare.startswith("/vehicles"):
        return "Автомобили"
    if bare.startswith("/control"):
        return "Управление"
    if bare == "/map":
        return "Карта"
    if bare == "/profile":
        return "Профиль"
    if bare == "/settings":
        return "Настройки"
    return "АвтоКонтроль"


class RouteGuard:
    """Gates protected paths and decides whether navigation chrome is shown."""

    def check(self, path: str, *, authenticated: bool, loading: bool = False) -> str | None:
        """Return the redirect target for *path*, or ``None`` to allow it.

        While the session is still being restored no redirect is issued.
        """
        if loading or authenticated:
            return None
        if is_protected(path):
            _logger.debug("Unauthenticated access to %s, redirecting to %s", path, LOGIN_PATH)
            return LOGIN_PATH
        return None

    @staticmethod
    def shows_navigation(*, authenticated: bool) -> bool:
        return authenticated

    @staticmethod
    def nav_items(path: str) -> list[NavItem]:
        bare = normalize_path(path)
        items = []
        for target, label in _NAV_ENTRIES:
            if target in ("/vehicles", "/control"):
                active = bare == target or bare.startswith(target + "/")
            else:
                active = bare == target
            items.append(NavItem(path=target, label=label, active=active))
        return items
