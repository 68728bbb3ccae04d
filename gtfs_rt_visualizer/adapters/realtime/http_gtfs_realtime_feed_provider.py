from __future__ import annotations

import os
from dataclasses import dataclass

import httpx
from google.protobuf.message import DecodeError as ProtobufDecodeError
from google.transit import gtfs_realtime_pb2  # type: ignore

from gtfs_rt_visualizer.app.ports.output import IFeedProvider
from gtfs_rt_visualizer.domain.exceptions import ConfigError, DecodeError, FetchError
from gtfs_rt_visualizer.domain.models.vehicle import FeedEntity


def parse_headers(raw: str | None) -> dict[str, str]:
    """Parse 'Key:Value;Key2:Value2' into a header dict, ignoring junk parts."""

    raw = (raw or "").strip()
    if not raw:
        return {}
    headers: dict[str, str] = {}
    for part in raw.split(";"):
        part = part.strip()
        if not part or ":" not in part:
            continue
        k, v = part.split(":", 1)
        k = k.strip()
        if k:
            headers[k] = v.strip()
    return headers


@dataclass(slots=True)
class HttpGtfsRealtimeFeedProvider(IFeedProvider):
    """Downloads a GTFS-Realtime VehiclePositions feed over HTTP and decodes it.

    Env vars:
      - GTFS_RT_HEADERS: optional headers, as 'Key:Value;Key2:Value2'
      - GTFS_RT_TIMEOUT_S: request timeout (default 10)

    There is no retry here; the next scheduled tick is the retry.
    """

    headers_raw: str | None = None
    timeout_s: float = 10.0
    transport: httpx.AsyncBaseTransport | None = None

    def __post_init__(self) -> None:
        if self.headers_raw is None:
            self.headers_raw = os.getenv("GTFS_RT_HEADERS")
        raw_timeout = os.getenv("GTFS_RT_TIMEOUT_S")
        if raw_timeout:
            try:
                self.timeout_s = float(raw_timeout)
            except ValueError as exc:
                raise ConfigError(
                    f"GTFS_RT_TIMEOUT_S must be a number, got {raw_timeout!r}"
                ) from exc
        if self.timeout_s <= 0:
            raise ConfigError(f"Feed timeout must be > 0, got {self.timeout_s}")

    async def fetch_entities(self, url: str) -> tuple[FeedEntity, ...]:
        try:
            async with httpx.AsyncClient(
                timeout=self.timeout_s, transport=self.transport
            ) as client:
                resp = await client.get(url, headers=parse_headers(self.headers_raw))
                resp.raise_for_status()
                content = resp.content
        except httpx.HTTPStatusError as exc:
            raise FetchError(
                f"{url} answered HTTP {exc.response.status_code}"
            ) from exc
        except httpx.HTTPError as exc:
            raise FetchError(f"{url}: {type(exc).__name__}: {exc}") from exc

        return parse_vehicle_positions(content)


def parse_vehicle_positions(content: bytes) -> tuple[FeedEntity, ...]:
    """Decode a FeedMessage into entities.

    Only presence is checked: entities without a vehicle are skipped, and
    id/position are left as None when the feed omits them.
    """

    feed = gtfs_realtime_pb2.FeedMessage()
    try:
        feed.ParseFromString(content)
    except ProtobufDecodeError as exc:
        raise DecodeError(f"Malformed GTFS-realtime payload: {exc}") from exc

    out: list[FeedEntity] = []
    for ent in feed.entity:
        if not ent.HasField("vehicle"):
            continue

        v = ent.vehicle

        vehicle_id = None
        if v.HasField("vehicle"):
            vehicle_id = v.vehicle.id or None
        if vehicle_id is None:
            vehicle_id = ent.id or None

        lat = lon = None
        if v.HasField("position"):
            lat = float(v.position.latitude)
            lon = float(v.position.longitude)

        out.append(FeedEntity(vehicle_id=vehicle_id, latitude=lat, longitude=lon))

    return tuple(out)
