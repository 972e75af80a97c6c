"""Settings screen: preferences, notification toggles and alert history."""

from __future__ import annotations

import logging

from pydantic import BaseModel, ConfigDict, Field

from avtokontrol import alerts as _alerts
from avtokontrol._constants import TABLE_USER_SETTINGS, TABLE_VEHICLES
from avtokontrol.exceptions import BackendError, TransportError
from avtokontrol.models._base import isoformat
from avtokontrol.models.alert import Alert
from avtokontrol.models.settings import NotificationSettings, UserSettings
from avtokontrol.models.vehicle import Vehicle
from avtokontrol.routing import RouteName
from avtokontrol.screens._base import Screen
from avtokontrol.storage import Theme

_logger = logging.getLogger(__name__)

NOTIFICATION_LABELS: dict[str, str] = {
    "battery_low": "Низкий заряд аккумулятора",
    "fuel_low": "Низкий уровень топлива",
    "maintenance": "Техническое обслуживание",
    "security": "Безопасность",
    "location": "Местоположение",
    "email": "Email",
    "push": "Push-уведомления",
    "sms": "SMS",
}


class SettingsData(BaseModel):
    model_config = ConfigDict(frozen=True)

    settings: UserSettings | None = None
    vehicles: list[Vehicle] = Field(default_factory=list)
    alerts: list[Alert] = Field(default_factory=list)
    notifications: NotificationSettings = Field(default_factory=NotificationSettings)

    @property
    def active_alerts(self) -> list[Alert]:
        return _alerts.active_alerts(self.alerts)

    @property
    def resolved_alerts(self) -> list[Alert]:
        return _alerts.resolved_alerts(self.alerts)


class SettingsScreen(Screen[SettingsData]):
    route = RouteName.SETTINGS

    async def _load(self) -> SettingsData:
        backend = self._ctx.backend
        settings_row = await backend.select_one_owned(TABLE_USER_SETTINGS, filters={})
        rows = await backend.select_owned(TABLE_VEHICLES)
        vehicles = [Vehicle.model_validate(row) for row in rows]
        return SettingsData(
            settings=UserSettings.model_validate(settings_row) if settings_row else None,
            vehicles=vehicles,
            alerts=_alerts.generate_alerts(vehicles, rng=self._ctx.rng, now=self._ctx.now()),
        )

    def _update(self, **changes: object) -> SettingsData:
        assert self._data is not None  # noqa: S101
        self._data = self._data.model_copy(update=changes)
        return self._data

    def resolve_alert(self, alert_id: str) -> None:
        if self._data is None:
            return
        self._update(alerts=_alerts.resolve_alert(self._data.alerts, alert_id))
        self._ctx.notifier.success("Оповещение помечено как решенное")

    def mark_all_read(self) -> None:
        if self._data is None:
            return
        self._update(alerts=_alerts.mark_all_read(self._data.alerts))
        self._ctx.notifier.success("Все оповещения помечены как прочитанные")

    def set_notification(self, name: str, enabled: bool) -> NotificationSettings:
        """Flip one notification toggle; unknown names raise ``KeyError``."""
        if name not in NOTIFICATION_LABELS:
            raise KeyError(name)
        current = self._data.notifications if self._data else NotificationSettings()
        notifications = current.model_copy(update={name: enabled})
        if self._data is not None:
            self._update(notifications=notifications)
        state = "включена" if enabled else "выключена"
        self._ctx.notifier.success(f'Настройка "{NOTIFICATION_LABELS[name]}" {state}')
        return notifications

    async def save_preferences(self, *, theme: Theme | None = None, language: str | None = None) -> UserSettings | None:
        """Upsert the ``user_settings`` row; the theme is also stored locally."""
        values: dict[str, str | None] = {"updated_at": isoformat(self._ctx.now())}
        if theme is not None:
            values["theme"] = theme.value
        if language is not None:
            values["language"] = language
        try:
            row = await self._ctx.backend.upsert_owned(TABLE_USER_SETTINGS, values)
        except (BackendError, TransportError) as exc:
            _logger.warning("Saving settings failed: %s", exc)
            self._ctx.notifier.error("Не удалось сохранить настройки", str(exc))
            return None

        if theme is not None and self._ctx.storage is not None:
            self._ctx.storage.set_theme(theme)
        settings = UserSettings.model_validate(row)
        if self._data is not None:
            self._update(settings=settings)
        self._ctx.notifier.success("Настройки сохранены")
        return settings
