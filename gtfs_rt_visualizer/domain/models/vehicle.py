from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class FeedEntity:
    """A decoded feed record. Any field may be missing."""

    vehicle_id: str | None = None
    latitude: float | None = None
    longitude: float | None = None

    @property
    def has_position(self) -> bool:
        return self.latitude is not None and self.longitude is not None


@dataclass(frozen=True, slots=True)
class Vehicle:
    id: str
    latitude: float
    longitude: float
    last_update_ms: int  # epoch millis of the last observed coordinate change
