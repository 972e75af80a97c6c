from __future__ import annotations

import asyncio

import pytest

from avtokontrol.control import VehicleController
from avtokontrol.exceptions import BackendError, DataFetchError, InvalidTemperatureError, VehicleLockedError
from avtokontrol.models import CommandState, Vehicle, VehicleStatus
from avtokontrol.notifications import NotificationLevel, Notifier


class _RecordingWriter:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.writes: list[tuple[str, VehicleStatus]] = []

    async def __call__(self, vehicle_id: str, status: VehicleStatus) -> None:
        await asyncio.sleep(0)
        if self.fail:
            raise DataFetchError("vehicles: internal error", table="vehicles", status_code=500)
        self.writes.append((vehicle_id, status))


def _vehicle(status: VehicleStatus = VehicleStatus.PARKED) -> Vehicle:
    return Vehicle(id="v1", owner_id="u1", display_name="Tesla", model="Model S", year=2022, status=status)


@pytest.mark.asyncio
async def test_toggle_lock_from_parked_round_trip() -> None:
    writer = _RecordingWriter()
    controller = VehicleController(_vehicle(VehicleStatus.PARKED), writer)
    assert controller.state.locked is False

    locked = controller.toggle_lock()
    assert locked.locked is True
    unlocked = controller.toggle_lock()
    assert unlocked.locked is False
    await controller.drain()

    assert writer.writes == [("v1", VehicleStatus.LOCKED), ("v1", VehicleStatus.UNLOCKED)]
    assert controller.vehicle.status == VehicleStatus.UNLOCKED
    assert [r.state for r in controller.records] == [CommandState.COMMITTED, CommandState.COMMITTED]


@pytest.mark.asyncio
async def test_commands_return_before_the_write_completes() -> None:
    controller = VehicleController(_vehicle(), _RecordingWriter())
    controller.toggle_lock()
    assert controller.pending == 1
    assert controller.records[0].state == CommandState.PENDING
    await controller.drain()
    assert controller.pending == 0


@pytest.mark.asyncio
async def test_engine_blocked_while_locked() -> None:
    writer = _RecordingWriter()
    controller = VehicleController(_vehicle(VehicleStatus.LOCKED), writer)
    before = controller.state

    with pytest.raises(VehicleLockedError):
        controller.toggle_engine()

    assert controller.state == before
    assert controller.state.engine_on is False
    await controller.drain()
    assert writer.writes == []


@pytest.mark.asyncio
async def test_engine_start_and_stop() -> None:
    writer = _RecordingWriter()
    notifier = Notifier()
    controller = VehicleController(_vehicle(VehicleStatus.UNLOCKED), writer, notifier=notifier)

    assert controller.toggle_engine().engine_on is True
    assert notifier.last.title == "Двигатель запущен"
    assert controller.toggle_engine().engine_on is False
    assert notifier.last.title == "Двигатель остановлен"
    await controller.drain()

    assert [status for _, status in writer.writes] == [VehicleStatus.RUNNING, VehicleStatus.PARKED]


@pytest.mark.asyncio
async def test_locking_keeps_engine_running_by_default() -> None:
    controller = VehicleController(_vehicle(VehicleStatus.RUNNING), _RecordingWriter())
    state = controller.toggle_lock()
    assert state.locked is True
    assert state.engine_on is True
    await controller.drain()


@pytest.mark.asyncio
async def test_locking_can_stop_engine() -> None:
    controller = VehicleController(_vehicle(VehicleStatus.RUNNING), _RecordingWriter(), lock_stops_engine=True)
    state = controller.toggle_lock()
    assert state.locked is True
    assert state.engine_on is False
    await controller.drain()


@pytest.mark.asyncio
async def test_failed_write_keeps_optimistic_state_and_notifies() -> None:
    notifier = Notifier()
    controller = VehicleController(_vehicle(), _RecordingWriter(fail=True), notifier=notifier)

    controller.toggle_lock()
    await controller.drain()

    assert controller.state.locked is True
    assert controller.records[0].state == CommandState.FAILED
    assert controller.records[0].error
    assert notifier.last.level == NotificationLevel.ERROR
    assert notifier.last.title == "Ошибка обновления статуса автомобиля"
    assert controller.vehicle.status == VehicleStatus.PARKED


@pytest.mark.asyncio
async def test_failed_write_reverts_when_configured() -> None:
    notifier = Notifier()
    controller = VehicleController(
        _vehicle(), _RecordingWriter(fail=True), notifier=notifier, revert_on_failure=True
    )

    controller.toggle_lock()
    await controller.drain()

    assert controller.state.locked is False
    assert controller.records[0].state == CommandState.REVERTED
    assert notifier.last.title == "Команда отменена"


@pytest.mark.asyncio
async def test_revert_skipped_when_newer_command_applied() -> None:
    controller = VehicleController(_vehicle(), _RecordingWriter(fail=True), revert_on_failure=True)

    controller.toggle_lock()
    controller.toggle_lights()
    await controller.drain()

    assert controller.state.locked is True
    assert controller.state.lights_on is True
    assert controller.records[0].state == CommandState.FAILED


@pytest.mark.asyncio
@pytest.mark.parametrize(("requested", "expected"), [(10, 16.0), (16, 16.0), (21.5, 21.5), (30, 30.0), (45, 30.0)])
async def test_set_climate_temperature_clamps(requested: float, expected: float) -> None:
    notifier = Notifier()
    writer = _RecordingWriter()
    controller = VehicleController(_vehicle(), writer, notifier=notifier)

    state = controller.set_climate_temperature(requested)

    assert state.climate.temperature_c == expected
    assert controller.records == []
    assert notifier.last.title.startswith("Температура установлена на ")


@pytest.mark.asyncio
async def test_temperature_steps_stay_in_range() -> None:
    controller = VehicleController(_vehicle(), _RecordingWriter())
    for _ in range(20):
        controller.step_temperature(1)
    assert controller.state.climate.temperature_c == 30.0
    assert controller.set_climate_temperature(22).climate.temperature_c == 22.0


@pytest.mark.asyncio
async def test_lights_and_climate_are_local_only() -> None:
    writer = _RecordingWriter()
    notifier = Notifier()
    controller = VehicleController(_vehicle(), writer, notifier=notifier)

    assert controller.toggle_lights().lights_on is True
    assert notifier.last.title == "Фары включены"
    assert controller.toggle_climate().climate.on is True
    await controller.drain()

    assert writer.writes == []
    assert controller.records == []


@pytest.mark.asyncio
async def test_close_cancels_outstanding_writes() -> None:
    release = asyncio.Event()

    async def _blocked_writer(_vehicle_id: str, _status: VehicleStatus) -> None:
        await release.wait()

    controller = VehicleController(_vehicle(), _blocked_writer)
    controller.toggle_lock()
    await asyncio.sleep(0)
    controller.close()
    await asyncio.sleep(0)

    assert controller.pending == 0
    assert controller.records[0].state == CommandState.PENDING


def test_backend_error_is_base_of_data_fetch_error() -> None:
    assert issubclass(DataFetchError, BackendError)


@pytest.mark.asyncio
async def test_nan_temperature_is_rejected() -> None:
    controller = VehicleController(_vehicle(), _RecordingWriter())
    before = controller.state

    with pytest.raises(InvalidTemperatureError):
        controller.set_climate_temperature(float("nan"))

    assert controller.state == before
