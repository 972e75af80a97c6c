"""Remote control view-state and command bookkeeping models."""

from __future__ import annotations

import enum
from datetime import UTC, datetime

from pydantic import BaseModel, ConfigDict, Field

from avtokontrol._constants import CLIMATE_DEFAULT_C
from avtokontrol.models.vehicle import VehicleStatus

# ------------------------------------------------------------------
# Enums
# ------------------------------------------------------------------


class VehicleCommand(enum.StrEnum):
    """Commands a user can issue from the control screen."""

    TOGGLE_LOCK = "toggle_lock"
    TOGGLE_ENGINE = "toggle_engine"
    SET_TEMPERATURE = "set_temperature"
    TOGGLE_CLIMATE = "toggle_climate"
    TOGGLE_LIGHTS = "toggle_lights"


class CommandState(enum.StrEnum):
    """Lifecycle of the backend write that follows an optimistic command."""

    PENDING = "pending"
    COMMITTED = "committed"
    FAILED = "failed"
    REVERTED = "reverted"


# ------------------------------------------------------------------
# View-state
# ------------------------------------------------------------------


class ClimateState(BaseModel):
    model_config = ConfigDict(frozen=True)

    on: bool = False
    temperature_c: float = CLIMATE_DEFAULT_C


class VehicleControlState(BaseModel):
    """Client-only control state of one vehicle.

    Only the ``locked``/``engine_on`` pair is projected back to the
    persisted ``status``; climate and lights live in memory.
    """

    model_config = ConfigDict(frozen=True)

    locked: bool = False
    engine_on: bool = False
    climate: ClimateState = Field(default_factory=ClimateState)
    lights_on: bool = False

    @classmethod
    def from_status(cls, status: VehicleStatus) -> VehicleControlState:
        """Initial state for a freshly mounted control screen."""
        return cls(
            locked=status == VehicleStatus.LOCKED,
            engine_on=status == VehicleStatus.RUNNING,
        )


class CommandRecord(BaseModel):
    """One status write issued by a command."""

    model_config = ConfigDict(frozen=True)

    command: VehicleCommand
    status: VehicleStatus
    previous: VehicleControlState
    applied: VehicleControlState
    state: CommandState = CommandState.PENDING
    issued_at: datetime = Field(default_factory=lambda: datetime.now(UTC))
    error: str | None = None
