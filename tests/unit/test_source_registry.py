from __future__ import annotations

import pytest

from gtfs_rt_visualizer.app.services.source_registry import SourceRegistry
from gtfs_rt_visualizer.domain.models.source import Source, normalize_hue
from gtfs_rt_visualizer.domain.models.vehicle import Vehicle


def _source(**kwargs) -> Source:
    params = {"agency": "A", "url": "http://feed/a", "refresh_interval": 15}
    params.update(kwargs)
    return Source(**params)


def test_registry_assigns_ids_in_order() -> None:
    registry = SourceRegistry()
    a = registry.add(_source(agency="A"))
    b = registry.add(_source(agency="B"))

    assert (a.source_id, b.source_id) == (0, 1)
    assert registry.get(1) is b
    assert [s.agency for s in registry.list()] == ["A", "B"]
    assert len(registry) == 2


def test_registry_get_unknown_id_raises() -> None:
    registry = SourceRegistry()
    registry.add(_source())

    with pytest.raises(KeyError):
        registry.get(1)
    with pytest.raises(KeyError):
        registry.get(-1)


def test_snapshot_is_detached_from_live_store() -> None:
    registry = SourceRegistry()
    src = registry.add(_source())
    src.vehicles["v1"] = Vehicle(id="v1", latitude=1.0, longitude=2.0, last_update_ms=3)

    snap = registry.snapshot()
    src.vehicles["v2"] = Vehicle(id="v2", latitude=0.0, longitude=0.0, last_update_ms=4)

    assert len(snap) == 1
    assert [v.id for v in snap[0].vehicles] == ["v1"]
    assert snap[0].agency == "A"
    assert snap[0].refresh_interval == 15


def test_interval_never_drops_below_minimum() -> None:
    src = _source(refresh_interval=5, min_interval=10)
    assert src.refresh_interval == 10

    src.set_refresh_interval(3)
    assert src.refresh_interval == 10

    src.set_refresh_interval(42)
    assert src.refresh_interval == 42


@pytest.mark.parametrize("hue", [0.25, 0.999, 1e-9])
def test_hue_inside_unit_interval_is_kept(hue: float) -> None:
    assert normalize_hue(hue) == hue


@pytest.mark.parametrize(
    "hue",
    [None, 0.0, 1.0, 1.25, 3.0, 7.5, -0.5, float("nan"), float("inf")],
)
def test_hue_falls_back_to_random(monkeypatch, hue) -> None:
    from gtfs_rt_visualizer.domain.models import source as source_module

    monkeypatch.setattr(source_module.random, "random", lambda: 0.125)

    assert normalize_hue(hue) == 0.125


def test_describe_reports_recency() -> None:
    src = _source()
    assert "not yet updated" in src.describe(now_ms=10_000)

    src.last_refresh_ms = 4_000
    assert "last updated 6s ago" in src.describe(now_ms=10_000)
