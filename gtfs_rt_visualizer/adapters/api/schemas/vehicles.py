from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from gtfs_rt_visualizer.domain.models.snapshot import Snapshot, SourceSnapshot


class VehicleSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: str
    latitude: float
    longitude: float
    last_update_ms: int = Field(alias="lastUpdateMs")


class SourceSchema(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    id: int
    agency: str
    url: str
    hue: float
    refresh_interval: int = Field(alias="refreshInterval")
    last_refresh_ms: int | None = Field(default=None, alias="lastRefreshMs")
    vehicles: list[VehicleSchema]


def source_to_schema(source: SourceSnapshot) -> SourceSchema:
    return SourceSchema(
        id=source.source_id,
        agency=source.agency,
        url=source.url,
        hue=source.hue,
        refresh_interval=source.refresh_interval,
        last_refresh_ms=source.last_refresh_ms,
        vehicles=[
            VehicleSchema(
                id=v.id,
                latitude=v.latitude,
                longitude=v.longitude,
                last_update_ms=v.last_update_ms,
            )
            for v in source.vehicles
        ],
    )


def snapshot_to_payload(snapshot: Snapshot) -> list[dict]:
    """JSON-ready form of a snapshot, camelCase keys."""

    return [source_to_schema(s).model_dump(by_alias=True) for s in snapshot]
