from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping

from gtfs_rt_visualizer.domain.models.vehicle import FeedEntity, Vehicle


@dataclass(frozen=True, slots=True)
class VehicleDiff:
    vehicles: dict[str, Vehicle]
    changed_ids: tuple[str, ...]
    seen: int

    @property
    def updated(self) -> bool:
        return bool(self.changed_ids)


def diff_vehicles(
    current: Mapping[str, Vehicle], entities: Iterable[FeedEntity], *, now_ms: int
) -> VehicleDiff:
    """Merge decoded entities into a copy of ``current``.

    A vehicle counts as changed when it is new or its latitude/longitude
    differ exactly from the stored value. Unchanged vehicles keep their
    previous timestamp. Vehicles missing from ``entities`` are kept as-is.
    """

    merged: dict[str, Vehicle] = dict(current)
    changed: list[str] = []
    seen = 0

    for ent in entities:
        if not ent.vehicle_id or not ent.has_position:
            continue

        seen += 1
        lat = float(ent.latitude)  # type: ignore[arg-type]
        lon = float(ent.longitude)  # type: ignore[arg-type]

        existing = merged.get(ent.vehicle_id)
        if existing is None or existing.latitude != lat or existing.longitude != lon:
            merged[ent.vehicle_id] = Vehicle(
                id=ent.vehicle_id, latitude=lat, longitude=lon, last_update_ms=now_ms
            )
            changed.append(ent.vehicle_id)
        else:
            merged[ent.vehicle_id] = Vehicle(
                id=ent.vehicle_id,
                latitude=lat,
                longitude=lon,
                last_update_ms=existing.last_update_ms,
            )

    return VehicleDiff(vehicles=merged, changed_ids=tuple(changed), seen=seen)
