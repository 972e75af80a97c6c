"""Remote control screen for one vehicle."""

from __future__ import annotations

import logging

from avtokontrol._constants import TABLE_VEHICLES
from avtokontrol.control import VehicleController
from avtokontrol.exceptions import CommandError
from avtokontrol.models._base import isoformat
from avtokontrol.models.control import VehicleControlState
from avtokontrol.models.vehicle import Vehicle, VehicleStatus
from avtokontrol.routing import RouteName
from avtokontrol.screens._base import Screen, ScreenContext

_logger = logging.getLogger(__name__)


class VehicleControlScreen(Screen[Vehicle | None]):
    """Loads the vehicle and exposes its :class:`VehicleController`.

    Command methods show precondition failures as notifications and
    return ``None`` when nothing changed.
    """

    route = RouteName.VEHICLE_CONTROL
    load_error_title = "Ошибка загрузки данных автомобиля"

    def __init__(self, context: ScreenContext, vehicle_id: str) -> None:
        super().__init__(context)
        self.vehicle_id = vehicle_id
        self._controller: VehicleController | None = None

    @property
    def controller(self) -> VehicleController | None:
        return self._controller

    @property
    def state(self) -> VehicleControlState | None:
        return self._controller.state if self._controller else None

    async def _load(self) -> Vehicle | None:
        row = await self._ctx.backend.select_one_owned(TABLE_VEHICLES, filters={"id": self.vehicle_id})
        return Vehicle.model_validate(row) if row else None

    def _is_empty(self, data: Vehicle | None) -> bool:
        return data is None

    def _set_data(self, data: Vehicle | None) -> None:
        super()._set_data(data)
        if data is None:
            self._controller = None
            return
        config = self._ctx.config
        self._controller = VehicleController(
            data,
            self._write_status,
            notifier=self._ctx.notifier,
            revert_on_failure=config.revert_on_failure,
            lock_stops_engine=config.lock_stops_engine,
        )

    async def _write_status(self, vehicle_id: str, status: VehicleStatus) -> None:
        await self._ctx.backend.update_owned(
            TABLE_VEHICLES,
            {"status": status.value, "last_updated": isoformat(self._ctx.now())},
            filters={"id": vehicle_id},
        )

    def _require_controller(self) -> VehicleController:
        if self._controller is None:
            raise CommandError("Автомобиль не загружен")
        return self._controller

    def _run(self, command: str, *args: float) -> VehicleControlState | None:
        try:
            controller = self._require_controller()
            return getattr(controller, command)(*args)
        except CommandError as exc:
            _logger.debug("Command %s rejected: %s", command, exc)
            self._ctx.notifier.error(str(exc))
            return None

    def toggle_lock(self) -> VehicleControlState | None:
        return self._run("toggle_lock")

    def toggle_engine(self) -> VehicleControlState | None:
        return self._run("toggle_engine")

    def set_temperature(self, celsius: float) -> VehicleControlState | None:
        return self._run("set_climate_temperature", celsius)

    def step_temperature(self, delta: float) -> VehicleControlState | None:
        return self._run("step_temperature", delta)

    def toggle_climate(self) -> VehicleControlState | None:
        return self._run("toggle_climate")

    def toggle_lights(self) -> VehicleControlState | None:
        return self._run("toggle_lights")

    async def drain(self) -> None:
        if self._controller is not None:
            await self._controller.drain()
