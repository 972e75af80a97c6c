"""Trip row model."""

from __future__ import annotations

from avtokontrol.models._base import RowModel, Timestamp


class Trip(RowModel):
    """A completed trip of one vehicle."""

    id: str
    vehicle_id: str
    start_location: str = ""
    end_location: str = ""
    start_time: Timestamp = None
    end_time: Timestamp = None
    distance: float | None = None
    """Kilometres."""
    duration: int | None = None
    """Minutes."""
    created_at: Timestamp = None
