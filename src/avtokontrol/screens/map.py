"""Map screen. Only vehicle selection is modelled; there is no map rendering."""

from __future__ import annotations

import logging

from avtokontrol._constants import TABLE_VEHICLES
from avtokontrol.models.vehicle import Vehicle
from avtokontrol.routing import RouteName
from avtokontrol.screens._base import Screen, ScreenContext

_logger = logging.getLogger(__name__)

MAP_PLACEHOLDER = "Карта будет доступна в следующей версии"


class MapScreen(Screen[list[Vehicle]]):
    route = RouteName.MAP

    def __init__(self, context: ScreenContext) -> None:
        super().__init__(context)
        self._selected_id: str | None = None

    @property
    def vehicles(self) -> list[Vehicle]:
        return list(self._data or [])

    @property
    def selected(self) -> Vehicle | None:
        for vehicle in self.vehicles:
            if vehicle.id == self._selected_id:
                return vehicle
        return None

    async def _load(self) -> list[Vehicle]:
        rows = await self._ctx.backend.select_owned(TABLE_VEHICLES)
        return [Vehicle.model_validate(row) for row in rows]

    def _is_empty(self, data: list[Vehicle]) -> bool:
        return not data

    def _set_data(self, data: list[Vehicle]) -> None:
        super()._set_data(data)
        self._selected_id = data[0].id if data else None

    def select(self, vehicle_id: str) -> bool:
        """Select a vehicle on the map; unknown ids are ignored."""
        if not any(vehicle.id == vehicle_id for vehicle in self.vehicles):
            _logger.debug("Ignoring selection of unknown vehicle %s", vehicle_id)
            return False
        self._selected_id = vehicle_id
        return True
