from __future__ import annotations

import math
import random
from dataclasses import dataclass, field

from .snapshot import SourceSnapshot
from .vehicle import Vehicle


def normalize_hue(hue: float | None) -> float:
    """Return ``hue`` when it lies strictly inside (0, 1), else a fresh random hue."""

    if hue is None or not math.isfinite(hue) or not (0.0 < hue < 1.0):
        return random.random()
    return float(hue)


@dataclass(slots=True)
class Source:
    """One GTFS-realtime endpoint plus its adaptive polling state.

    Only the refresh task bound to this source mutates it.
    """

    agency: str
    url: str
    refresh_interval: int
    min_interval: int = 0
    hue: float | None = None
    source_id: int = -1
    last_refresh_ms: int | None = None
    vehicles: dict[str, Vehicle] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.refresh_interval = max(int(self.min_interval), int(self.refresh_interval))
        self.hue = normalize_hue(self.hue)

    def set_refresh_interval(self, interval: int) -> None:
        self.refresh_interval = max(self.min_interval, int(interval))

    def describe(self, now_ms: int) -> str:
        if self.last_refresh_ms is None:
            recency = "not yet updated"
        else:
            recency = f"last updated {(now_ms - self.last_refresh_ms) // 1000}s ago"
        return (
            f"agency={self.agency} url={self.url} "
            f"refresh={self.refresh_interval}s {recency}"
        )

    def snapshot(self) -> SourceSnapshot:
        return SourceSnapshot(
            source_id=self.source_id,
            agency=self.agency,
            url=self.url,
            hue=float(self.hue or 0.0),
            refresh_interval=self.refresh_interval,
            last_refresh_ms=self.last_refresh_ms,
            vehicles=tuple(self.vehicles.values()),
        )
