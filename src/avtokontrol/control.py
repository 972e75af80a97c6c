"""Vehicle command model.

Turns control-screen commands into an immediate local state change plus a
background write of the persisted ``status``. Commands must be issued from
a running event loop; they return as soon as the local state is committed.
"""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Awaitable, Callable
from datetime import UTC, datetime
from typing import Any

from avtokontrol._constants import clamp_temperature
from avtokontrol.exceptions import BackendError, InvalidTemperatureError, TransportError, VehicleLockedError
from avtokontrol.models.control import (
    CommandRecord,
    CommandState,
    VehicleCommand,
    VehicleControlState,
)
from avtokontrol.models.vehicle import Vehicle, VehicleStatus
from avtokontrol.notifications import Notifier

_logger = logging.getLogger(__name__)

StatusWriter = Callable[[str, VehicleStatus], Awaitable[Any]]
"""``writer(vehicle_id, status)`` persists the status of one vehicle."""


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _format_temperature(value: float) -> str:
    return str(int(value)) if float(value).is_integer() else f"{value:.1f}"


class VehicleController:
    """Optimistic control state for one vehicle.

    Lock and engine commands write the projected status in the background
    and never wait for it. A failed write raises a notification; the local
    state is only rolled back when ``revert_on_failure`` is set and no newer
    command has replaced it.
    """

    def __init__(
        self,
        vehicle: Vehicle,
        writer: StatusWriter,
        *,
        notifier: Notifier | None = None,
        revert_on_failure: bool = False,
        lock_stops_engine: bool = False,
        clock: Callable[[], datetime] = _utcnow,
    ) -> None:
        self._vehicle = vehicle
        self._writer = writer
        self._notifier = notifier or Notifier()
        self._revert_on_failure = revert_on_failure
        self._lock_stops_engine = lock_stops_engine
        self._clock = clock
        self._state = VehicleControlState.from_status(vehicle.status)
        self._records: list[CommandRecord] = []
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def vehicle(self) -> Vehicle:
        return self._vehicle

    @property
    def state(self) -> VehicleControlState:
        return self._state

    @property
    def records(self) -> list[CommandRecord]:
        return list(self._records)

    @property
    def pending(self) -> int:
        return sum(1 for task in self._tasks if not task.done())

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------

    def toggle_lock(self) -> VehicleControlState:
        """Lock or unlock the doors; persists ``Locked``/``Unlocked``."""
        previous = self._state
        locked = not previous.locked
        update: dict[str, Any] = {"locked": locked}
        if locked and previous.engine_on and self._lock_stops_engine:
            update["engine_on"] = False
        self._state = previous.model_copy(update=update)
        self._notifier.success("Двери заблокированы" if locked else "Двери разблокированы")
        status = VehicleStatus.LOCKED if locked else VehicleStatus.UNLOCKED
        self._schedule_write(VehicleCommand.TOGGLE_LOCK, status, previous)
        return self._state

    def toggle_engine(self) -> VehicleControlState:
        """Start or stop the engine; persists ``Running``/``Parked``.

        Raises
        ------
        VehicleLockedError
            The doors are locked; the state is left unchanged.
        """
        previous = self._state
        if previous.locked:
            raise VehicleLockedError(
                "Автомобиль заблокирован. Разблокируйте двери, чтобы управлять двигателем",
                command=VehicleCommand.TOGGLE_ENGINE.value,
            )
        engine_on = not previous.engine_on
        self._state = previous.model_copy(update={"engine_on": engine_on})
        self._notifier.success("Двигатель запущен" if engine_on else "Двигатель остановлен")
        status = VehicleStatus.RUNNING if engine_on else VehicleStatus.PARKED
        self._schedule_write(VehicleCommand.TOGGLE_ENGINE, status, previous)
        return self._state

    def set_climate_temperature(self, celsius: float) -> VehicleControlState:
        """Set the cabin target, clamped to 16-30 °C. Not persisted.

        Raises
        ------
        InvalidTemperatureError
            *celsius* is NaN or not a number; the state is left unchanged.
        """
        try:
            value = clamp_temperature(celsius)
        except (TypeError, ValueError) as exc:
            raise InvalidTemperatureError(
                "Некорректное значение температуры",
                command=VehicleCommand.SET_TEMPERATURE.value,
            ) from exc
        climate = self._state.climate.model_copy(update={"temperature_c": value})
        self._state = self._state.model_copy(update={"climate": climate})
        self._notifier.success(f"Температура установлена на {_format_temperature(value)}°C")
        return self._state

    def step_temperature(self, delta: float) -> VehicleControlState:
        """The ``-``/``+`` buttons: move the target by *delta* degrees."""
        return self.set_climate_temperature(self._state.climate.temperature_c + delta)

    def toggle_climate(self) -> VehicleControlState:
        climate = self._state.climate.model_copy(update={"on": not self._state.climate.on})
        self._state = self._state.model_copy(update={"climate": climate})
        self._notifier.success("Климат-контроль включен" if climate.on else "Климат-контроль выключен")
        return self._state

    def toggle_lights(self) -> VehicleControlState:
        lights_on = not self._state.lights_on
        self._state = self._state.model_copy(update={"lights_on": lights_on})
        self._notifier.success("Фары включены" if lights_on else "Фары выключены")
        return self._state

    # ------------------------------------------------------------------
    # Background writes
    # ------------------------------------------------------------------

    def _schedule_write(self, command: VehicleCommand, status: VehicleStatus, previous: VehicleControlState) -> None:
        record = CommandRecord(command=command, status=status, previous=previous, applied=self._state)
        index = len(self._records)
        self._records.append(record)
        task = asyncio.get_running_loop().create_task(self._write(index))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    def _replace_record(self, index: int, **update: Any) -> CommandRecord:
        record = self._records[index].model_copy(update=update)
        self._records[index] = record
        return record

    async def _write(self, index: int) -> None:
        record = self._records[index]
        try:
            await self._writer(self._vehicle.id, record.status)
        except (BackendError, TransportError) as exc:
            _logger.warning("Status write %s for vehicle %s failed: %s", record.status, self._vehicle.id, exc)
            self._replace_record(index, state=CommandState.FAILED, error=str(exc))
            self._notifier.error("Ошибка обновления статуса автомобиля", str(exc))
            if self._revert_on_failure:
                self._revert(index)
            return
        self._replace_record(index, state=CommandState.COMMITTED)
        self._vehicle = self._vehicle.with_status(record.status, updated_at=self._clock())
        _logger.info("Vehicle %s status set to %s", self._vehicle.id, record.status)

    def _revert(self, index: int) -> None:
        record = self._records[index]
        if self._state != record.applied:
            _logger.debug("Not reverting %s: state changed by a newer command", record.command)
            return
        self._state = record.previous
        self._replace_record(index, state=CommandState.REVERTED)
        self._notifier.info("Команда отменена", "Состояние автомобиля возвращено к предыдущему")

    async def drain(self) -> None:
        """Wait until every scheduled status write has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    def close(self) -> None:
        """Cancel outstanding writes (the screen was unmounted)."""
        for task in list(self._tasks):
            task.cancel()
