from __future__ import annotations

from dataclasses import dataclass

from .vehicle import Vehicle


@dataclass(frozen=True, slots=True)
class SourceSnapshot:
    """Point-in-time view of one source, safe to hand to other threads."""

    source_id: int
    agency: str
    url: str
    hue: float
    refresh_interval: int
    last_refresh_ms: int | None
    vehicles: tuple[Vehicle, ...] = ()


Snapshot = tuple[SourceSnapshot, ...]
