"""Client-side vehicle alerts.

Alerts are not stored by the backend. The settings screen generates a
random set for the user's vehicles; helpers here keep the list sorted and
apply the resolve / mark-read actions.
"""

from __future__ import annotations

import random
from collections.abc import Iterable, Sequence
from datetime import UTC, datetime, timedelta

from avtokontrol.models.alert import Alert, AlertKind
from avtokontrol.models.vehicle import Vehicle

ALERT_MESSAGES: tuple[str, ...] = (
    "Низкий уровень топлива",
    "Низкий заряд аккумулятора",
    "Необходимо техническое обслуживание",
    "Обнаружено движение автомобиля",
    "Низкое давление в шинах",
)

MAX_ALERTS_PER_VEHICLE = 3
ALERT_WINDOW = timedelta(days=7)


def newest_first(alerts: Iterable[Alert]) -> list[Alert]:
    return sorted(alerts, key=lambda alert: alert.timestamp, reverse=True)


def generate_alerts(
    vehicles: Sequence[Vehicle],
    *,
    rng: random.Random | None = None,
    now: datetime | None = None,
) -> list[Alert]:
    """Generate 0-3 random alerts per vehicle from the last week.

    Parameters
    ----------
    vehicles:
        Vehicles to generate alerts for.
    rng:
        Random source; pass a seeded instance for reproducible output.
    now:
        Upper bound of the alert timestamps.

    Returns
    -------
    list[Alert]
        Alerts sorted newest first. Ids are ``alert-<vehicle id>-<n>``.
    """
    rng = rng or random.Random()
    now = now or datetime.now(UTC)
    window = int(ALERT_WINDOW.total_seconds())
    kinds = list(AlertKind)

    alerts: list[Alert] = []
    for vehicle in vehicles:
        for index in range(rng.randint(0, MAX_ALERTS_PER_VEHICLE)):
            alerts.append(
                Alert(
                    id=f"alert-{vehicle.id}-{index}",
                    vehicle_id=vehicle.id,
                    kind=rng.choice(kinds),
                    message=rng.choice(ALERT_MESSAGES),
                    timestamp=now - timedelta(seconds=rng.randrange(window)),
                    read=rng.random() > 0.5,
                    resolved=rng.random() > 0.7,
                )
            )
    return newest_first(alerts)


def resolve_alert(alerts: Sequence[Alert], alert_id: str) -> list[Alert]:
    """Mark one alert resolved (and read). Unknown ids leave the list unchanged."""
    return [
        alert.model_copy(update={"resolved": True, "read": True}) if alert.id == alert_id else alert
        for alert in alerts
    ]


def mark_all_read(alerts: Sequence[Alert]) -> list[Alert]:
    return [alert if alert.read else alert.model_copy(update={"read": True}) for alert in alerts]


def active_alerts(alerts: Iterable[Alert]) -> list[Alert]:
    return [alert for alert in alerts if not alert.resolved]


def resolved_alerts(alerts: Iterable[Alert]) -> list[Alert]:
    return [alert for alert in alerts if alert.resolved]


def unread_count(alerts: Iterable[Alert]) -> int:
    return sum(1 for alert in alerts if not alert.read)
