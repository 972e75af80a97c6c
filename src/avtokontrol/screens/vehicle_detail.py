"""Vehicle detail: one vehicle with its trips and alerts."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from avtokontrol import alerts as _alerts
from avtokontrol._constants import TABLE_TRIPS, TABLE_VEHICLES
from avtokontrol.models.alert import Alert
from avtokontrol.models.trip import Trip
from avtokontrol.models.vehicle import Vehicle
from avtokontrol.routing import RouteName
from avtokontrol.screens._base import Screen, ScreenContext


class VehicleDetailData(BaseModel):
    model_config = ConfigDict(frozen=True)

    vehicle: Vehicle | None = None
    trips: list[Trip] = Field(default_factory=list)
    alerts: list[Alert] = Field(default_factory=list)

    @property
    def total_distance(self) -> float:
        return sum(trip.distance or 0.0 for trip in self.trips)


class VehicleDetailScreen(Screen[VehicleDetailData]):
    """Shows the empty state when the vehicle does not exist or belongs to someone else."""

    route = RouteName.VEHICLE_DETAIL
    load_error_title = "Ошибка при загрузке данных автомобиля"

    def __init__(self, context: ScreenContext, vehicle_id: str) -> None:
        super().__init__(context)
        self.vehicle_id = vehicle_id

    @property
    def not_found(self) -> bool:
        return self._data is not None and self._data.vehicle is None

    async def _load(self) -> VehicleDetailData:
        backend = self._ctx.backend
        row = await backend.select_one_owned(TABLE_VEHICLES, filters={"id": self.vehicle_id})
        if row is None:
            return VehicleDetailData()
        vehicle = Vehicle.model_validate(row)
        trip_rows = await backend.select(
            TABLE_TRIPS,
            filters={"vehicle_id": vehicle.id},
            order="start_time.desc",
        )
        return VehicleDetailData(
            vehicle=vehicle,
            trips=[Trip.model_validate(trip) for trip in trip_rows],
            alerts=_alerts.generate_alerts([vehicle], rng=self._ctx.rng, now=self._ctx.now()),
        )

    def _is_empty(self, data: VehicleDetailData) -> bool:
        return data.vehicle is None
