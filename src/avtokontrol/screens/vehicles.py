"""Vehicle list with the add-vehicle dialog."""

from __future__ import annotations

import logging
from typing import Any

from avtokontrol._constants import TABLE_VEHICLES
from avtokontrol.exceptions import BackendError, TransportError, ValidationError
from avtokontrol.models._base import isoformat
from avtokontrol.models.vehicle import Vehicle, VehicleStatus
from avtokontrol.routing import RouteName
from avtokontrol.screens._base import Screen, ScreenContext, ScreenStatus
from avtokontrol.validation import VehicleForm

_logger = logging.getLogger(__name__)


class VehiclesListScreen(Screen[list[Vehicle]]):
    route = RouteName.VEHICLES
    load_error_title = "Ошибка при загрузке автомобилей"

    def __init__(self, context: ScreenContext) -> None:
        super().__init__(context)
        self.form_errors: dict[str, str] = {}

    @property
    def vehicles(self) -> list[Vehicle]:
        return list(self._data or [])

    @property
    def can_add(self) -> bool:
        """Whether the add-vehicle affordance is offered (always, once loaded)."""
        return self._status in (ScreenStatus.READY, ScreenStatus.EMPTY)

    async def _load(self) -> list[Vehicle]:
        rows = await self._ctx.backend.select_owned(TABLE_VEHICLES, order="created_at.desc")
        return [Vehicle.model_validate(row) for row in rows]

    def _is_empty(self, data: list[Vehicle]) -> bool:
        return not data

    async def add_vehicle(self, **fields: Any) -> Vehicle | None:
        """Validate the add-vehicle form and insert the row with status ``Parked``.

        Returns the created vehicle, or ``None`` when validation or the
        insert failed (the reason is shown as a notification).
        """
        try:
            form = VehicleForm.parse(**fields)
        except ValidationError as exc:
            self.form_errors = exc.errors
            self._ctx.notifier.error(str(exc))
            return None
        self.form_errors = {}

        if not self._ctx.provider.is_authenticated:
            self._ctx.notifier.error("Необходимо войти в систему")
            return None

        row = {
            **form.to_row(),
            "status": VehicleStatus.PARKED.value,
            "last_updated": isoformat(self._ctx.now()),
        }
        try:
            created = await self._ctx.backend.insert_owned(TABLE_VEHICLES, row)
        except (BackendError, TransportError) as exc:
            _logger.warning("Vehicle insert failed: %s", exc)
            self._ctx.notifier.error(str(exc) or "Ошибка при добавлении автомобиля")
            return None

        vehicle = Vehicle.model_validate(created)
        if form.license_plate:
            vehicle = vehicle.model_copy(update={"license_plate": form.license_plate})
        self._ctx.notifier.success("Автомобиль успешно добавлен")
        self._set_data([vehicle, *self.vehicles])
        return vehicle
