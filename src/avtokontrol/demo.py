"""Static demo dataset.

Shown by the dashboard when the vehicles table cannot be read and demo
fallback is enabled.
"""

from __future__ import annotations

from avtokontrol.models._base import parse_timestamp
from avtokontrol.models.alert import Alert, AlertKind
from avtokontrol.models.profile import Profile
from avtokontrol.models.vehicle import Vehicle, VehicleStatus

DEMO_USER_ID = "demo-user"

DEMO_PROFILE = Profile(
    id=DEMO_USER_ID,
    name="Иван Петров",
    username="ivan",
    email="ivan@example.com",
    joined_at=parse_timestamp("2023-01-15T10:30:00Z"),
)

DEMO_VEHICLES: tuple[Vehicle, ...] = (
    Vehicle(
        id="demo-1",
        owner_id=DEMO_USER_ID,
        display_name="Tesla",
        model="Model S",
        year=2022,
        color="Черный",
        license_plate="А123БВ77",
        status=VehicleStatus.ONLINE,
        last_updated=parse_timestamp("2023-08-17T15:23:00Z"),
    ),
    Vehicle(
        id="demo-2",
        owner_id=DEMO_USER_ID,
        display_name="BMW",
        model="X5",
        year=2021,
        color="Белый",
        license_plate="В234ГД77",
        status=VehicleStatus.ONLINE,
        last_updated=parse_timestamp("2023-08-17T16:45:00Z"),
    ),
    Vehicle(
        id="demo-3",
        owner_id=DEMO_USER_ID,
        display_name="Mercedes-Benz",
        model="E-Class",
        year=2023,
        color="Серебристый",
        license_plate="Г345ЕЖ77",
        status=VehicleStatus.MAINTENANCE,
        last_updated=parse_timestamp("2023-08-16T18:10:00Z"),
    ),
)

DEMO_ALERTS: tuple[Alert, ...] = (
    Alert(
        id="demo-alert-1",
        vehicle_id="demo-1",
        kind=AlertKind.WARNING,
        message="Низкий заряд батареи (15%)",
        timestamp=parse_timestamp("2023-08-17T12:32:00Z"),
    ),
    Alert(
        id="demo-alert-2",
        vehicle_id="demo-2",
        kind=AlertKind.INFO,
        message="Плановое ТО через 250 км",
        timestamp=parse_timestamp("2023-08-17T09:15:00Z"),
        read=True,
    ),
    Alert(
        id="demo-alert-3",
        vehicle_id="demo-3",
        kind=AlertKind.ERROR,
        message="Требуется техническое обслуживание",
        timestamp=parse_timestamp("2023-08-16T18:05:00Z"),
    ),
)


def demo_alerts_for(vehicle_id: str) -> list[Alert]:
    return [alert for alert in DEMO_ALERTS if alert.vehicle_id == vehicle_id]
