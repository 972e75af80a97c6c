"""Dashboard: greeting, vehicle overview, status counters and latest alerts."""

from __future__ import annotations

import logging
from collections import Counter

from pydantic import BaseModel, ConfigDict, Field

from avtokontrol import alerts as _alerts
from avtokontrol import demo
from avtokontrol._constants import TABLE_PROFILES, TABLE_VEHICLES
from avtokontrol.exceptions import DataFetchError
from avtokontrol.models.alert import Alert
from avtokontrol.models.profile import Profile
from avtokontrol.models.vehicle import Vehicle, VehicleStatus
from avtokontrol.routing import RouteName
from avtokontrol.screens._base import Screen

_logger = logging.getLogger(__name__)

LATEST_ALERTS = 5


class DashboardData(BaseModel):
    model_config = ConfigDict(frozen=True)

    profile: Profile | None = None
    vehicles: list[Vehicle] = Field(default_factory=list)
    alerts: list[Alert] = Field(default_factory=list)
    demo: bool = False

    @property
    def greeting(self) -> str:
        name = self.profile.greeting_name if self.profile else ""
        return f"Добро пожаловать, {name}" if name else "Добро пожаловать"

    @property
    def status_counts(self) -> dict[VehicleStatus, int]:
        return dict(Counter(vehicle.status for vehicle in self.vehicles))

    @property
    def unread_alerts(self) -> int:
        return _alerts.unread_count(self.alerts)


class DashboardScreen(Screen[DashboardData]):
    route = RouteName.DASHBOARD

    async def _load(self) -> DashboardData:
        backend = self._ctx.backend
        session = await backend.ensure_session()
        profile_row = await backend.select_one_owned(TABLE_PROFILES, filters={}, owner_column="id")
        profile = (
            Profile.model_validate(profile_row)
            if profile_row
            else Profile.from_auth_metadata(session.user_id, session.email, {})
        )
        rows = await backend.select_owned(TABLE_VEHICLES, order="created_at.desc")
        vehicles = [Vehicle.model_validate(row) for row in rows]
        alerts = _alerts.generate_alerts(vehicles, rng=self._ctx.rng, now=self._ctx.now())
        return DashboardData(profile=profile, vehicles=vehicles, alerts=alerts[:LATEST_ALERTS])

    def _is_empty(self, data: DashboardData) -> bool:
        return not data.vehicles

    def _fallback(self, exc: Exception) -> DashboardData | None:
        if not self._ctx.config.demo_fallback or not isinstance(exc, DataFetchError):
            return None
        _logger.warning("Dashboard data unavailable, showing demo data: %s", exc)
        self._ctx.notifier.error("Не удалось загрузить данные", "Показаны демонстрационные данные")
        return DashboardData(
            profile=demo.DEMO_PROFILE,
            vehicles=list(demo.DEMO_VEHICLES),
            alerts=list(demo.DEMO_ALERTS),
            demo=True,
        )

    def mark_all_read(self) -> None:
        if self._data is None:
            return
        self._data = self._data.model_copy(update={"alerts": _alerts.mark_all_read(self._data.alerts)})
        self._ctx.notifier.success("Все оповещения помечены как прочитанные")
