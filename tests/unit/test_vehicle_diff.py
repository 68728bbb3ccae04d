from __future__ import annotations

from gtfs_rt_visualizer.domain.algorithms.vehicle_diff import diff_vehicles
from gtfs_rt_visualizer.domain.models.vehicle import FeedEntity, Vehicle


def test_new_vehicles_are_changed_and_stamped_now() -> None:
    out = diff_vehicles(
        {},
        [
            FeedEntity(vehicle_id="v1", latitude=1.0, longitude=2.0),
            FeedEntity(vehicle_id="v2", latitude=3.0, longitude=4.0),
        ],
        now_ms=1_000,
    )

    assert out.updated
    assert out.changed_ids == ("v1", "v2")
    assert out.vehicles["v1"] == Vehicle(
        id="v1", latitude=1.0, longitude=2.0, last_update_ms=1_000
    )


def test_equal_coordinates_keep_previous_timestamp() -> None:
    current = {"v1": Vehicle(id="v1", latitude=1.0, longitude=2.0, last_update_ms=500)}

    out = diff_vehicles(
        current, [FeedEntity(vehicle_id="v1", latitude=1.0, longitude=2.0)], now_ms=9_000
    )

    assert not out.updated
    assert out.vehicles["v1"].last_update_ms == 500


def test_any_exact_coordinate_difference_counts_as_change() -> None:
    current = {"v1": Vehicle(id="v1", latitude=1.0, longitude=2.0, last_update_ms=500)}

    out = diff_vehicles(
        current,
        [FeedEntity(vehicle_id="v1", latitude=1.0, longitude=2.0000001)],
        now_ms=9_000,
    )

    assert out.updated
    assert out.vehicles["v1"].longitude == 2.0000001
    assert out.vehicles["v1"].last_update_ms == 9_000


def test_entities_without_id_or_position_are_skipped() -> None:
    out = diff_vehicles(
        {},
        [
            FeedEntity(vehicle_id=None, latitude=1.0, longitude=2.0),
            FeedEntity(vehicle_id="", latitude=1.0, longitude=2.0),
            FeedEntity(vehicle_id="v1", latitude=None, longitude=2.0),
            FeedEntity(vehicle_id="v2"),
        ],
        now_ms=1,
    )

    assert out.vehicles == {}
    assert not out.updated
    assert out.seen == 0


def test_absent_vehicles_are_kept_stale() -> None:
    current = {
        "gone": Vehicle(id="gone", latitude=0.0, longitude=0.0, last_update_ms=10),
    }

    out = diff_vehicles(
        current, [FeedEntity(vehicle_id="v1", latitude=1.0, longitude=1.0)], now_ms=20
    )

    assert out.vehicles["gone"] == current["gone"]
    assert set(out.vehicles) == {"gone", "v1"}


def test_input_mapping_is_not_mutated() -> None:
    current = {"v1": Vehicle(id="v1", latitude=1.0, longitude=2.0, last_update_ms=5)}

    diff_vehicles(
        current, [FeedEntity(vehicle_id="v1", latitude=9.0, longitude=9.0)], now_ms=6
    )

    assert current["v1"].latitude == 1.0


def test_duplicate_ids_compare_against_earlier_entry_in_same_feed() -> None:
    out = diff_vehicles(
        {},
        [
            FeedEntity(vehicle_id="v1", latitude=1.0, longitude=1.0),
            FeedEntity(vehicle_id="v1", latitude=1.0, longitude=1.0),
        ],
        now_ms=42,
    )

    assert out.changed_ids == ("v1",)
    assert out.seen == 2
    assert out.vehicles["v1"].last_update_ms == 42
