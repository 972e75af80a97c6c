"""Base class for data-fetch screens.

A screen is a headless view-model: :meth:`Screen.mount` runs the screen's
load under a fresh generation token and moves it through
``loading -> ready | empty | error``. :meth:`Screen.unmount` invalidates
the token, so a fetch that completes afterwards is dropped instead of
updating a view that is gone. Every mount refetches.
"""

from __future__ import annotations

import enum
import logging
import random
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import TYPE_CHECKING, ClassVar, Generic, TypeVar

from avtokontrol.exceptions import BackendError, SessionExpiredError, TransportError
from avtokontrol.routing import RouteName, page_title

if TYPE_CHECKING:
    from avtokontrol.client import BackendClient
    from avtokontrol.config import AppConfig
    from avtokontrol.notifications import Notifier
    from avtokontrol.provider import SessionProvider
    from avtokontrol.routing import Navigator
    from avtokontrol.storage import PreferenceStore

_logger = logging.getLogger(__name__)

DataT = TypeVar("DataT")


class ScreenStatus(enum.StrEnum):
    IDLE = "idle"
    LOADING = "loading"
    READY = "ready"
    EMPTY = "empty"
    ERROR = "error"


@dataclass(slots=True)
class ScreenContext:
    """Collaborators shared by every screen of one application."""

    config: AppConfig
    backend: BackendClient
    provider: SessionProvider
    navigator: Navigator
    notifier: Notifier
    storage: PreferenceStore | None = None
    rng: random.Random = field(default_factory=random.Random)

    def now(self) -> datetime:
        return datetime.now(UTC)


class Screen(Generic[DataT]):
    """One screen instance; subclasses implement :meth:`_load`."""

    route: ClassVar[RouteName]
    load_error_title: ClassVar[str] = "Не удалось загрузить данные"

    def __init__(self, context: ScreenContext) -> None:
        self._ctx = context
        self._status = ScreenStatus.IDLE
        self._data: DataT | None = None
        self._error: Exception | None = None
        self._generation = 0
        self._mounted = False

    @property
    def status(self) -> ScreenStatus:
        return self._status

    @property
    def data(self) -> DataT | None:
        return self._data

    @property
    def error(self) -> Exception | None:
        return self._error

    @property
    def is_mounted(self) -> bool:
        return self._mounted

    @property
    def title(self) -> str:
        return page_title(self._ctx.navigator.current)

    def _is_current(self, token: int) -> bool:
        return self._mounted and token == self._generation

    async def mount(self) -> ScreenStatus:
        """Fetch the screen's data and settle its status."""
        self._generation += 1
        token = self._generation
        self._mounted = True
        self._status = ScreenStatus.LOADING
        self._error = None

        try:
            data = await self._load()
        except (BackendError, TransportError) as exc:
            if not self._is_current(token):
                _logger.debug("Dropping stale %s failure: %s", type(self).__name__, exc)
                return self._status
            fallback = self._fallback(exc)
            if fallback is None:
                self._fail(exc)
                return self._status
            data = fallback

        if not self._is_current(token):
            _logger.debug("Dropping stale %s result", type(self).__name__)
            return self._status
        self._set_data(data)
        return self._status

    def unmount(self) -> None:
        self._mounted = False
        self._generation += 1

    def _fail(self, exc: Exception) -> None:
        _logger.debug("%s failed to load: %s", type(self).__name__, exc)
        self._error = exc
        self._status = ScreenStatus.ERROR
        if isinstance(exc, SessionExpiredError):
            self._ctx.notifier.error("Сессия истекла", "Пожалуйста, войдите снова")
        else:
            self._ctx.notifier.error(self.load_error_title, str(exc))

    def _set_data(self, data: DataT) -> None:
        self._data = data
        self._status = ScreenStatus.EMPTY if self._is_empty(data) else ScreenStatus.READY

    async def _load(self) -> DataT:
        raise NotImplementedError

    def _is_empty(self, data: DataT) -> bool:
        return False

    def _fallback(self, exc: Exception) -> DataT | None:
        """Data to show instead of an error state, or ``None``."""
        return None
