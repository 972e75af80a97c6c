"""Transient user-visible notifications (toasts)."""

from __future__ import annotations

import enum
import logging
from collections import deque
from collections.abc import Callable
from dataclasses import dataclass, field
from datetime import UTC, datetime

_logger = logging.getLogger(__name__)

_LOG_LEVELS = {
    "success": logging.INFO,
    "info": logging.INFO,
    "error": logging.WARNING,
}


class NotificationLevel(enum.StrEnum):
    SUCCESS = "success"
    INFO = "info"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class Notification:
    level: NotificationLevel
    title: str
    description: str = ""
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))


NotificationListener = Callable[[Notification], None]


class Notifier:
    """Collects notifications and fans them out to listeners.

    Listener failures are logged and never reach the code that raised the
    notification.
    """

    def __init__(self, *, history: int = 50) -> None:
        self._history: deque[Notification] = deque(maxlen=history)
        self._listeners: list[NotificationListener] = []

    @property
    def history(self) -> list[Notification]:
        return list(self._history)

    @property
    def last(self) -> Notification | None:
        return self._history[-1] if self._history else None

    def subscribe(self, listener: NotificationListener) -> Callable[[], None]:
        self._listeners.append(listener)

        def _unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return _unsubscribe

    def notify(self, level: NotificationLevel, title: str, description: str = "") -> Notification:
        note = Notification(level=level, title=title, description=description)
        self._history.append(note)
        _logger.log(_LOG_LEVELS[level.value], "[%s] %s %s", level.value, title, description)
        for listener in list(self._listeners):
            try:
                listener(note)
            except Exception:
                _logger.debug("Notification listener failed", exc_info=True)
        return note

    def success(self, title: str, description: str = "") -> Notification:
        return self.notify(NotificationLevel.SUCCESS, title, description)

    def info(self, title: str, description: str = "") -> Notification:
        return self.notify(NotificationLevel.INFO, title, description)

    def error(self, title: str, description: str = "") -> Notification:
        return self.notify(NotificationLevel.ERROR, title, description)

    def clear(self) -> None:
        self._history.clear()
