from __future__ import annotations

import threading
from dataclasses import dataclass, field

from gtfs_rt_visualizer.app.services.broadcaster import Broadcaster
from gtfs_rt_visualizer.domain.models.snapshot import Snapshot, SourceSnapshot

SNAP: Snapshot = (
    SourceSnapshot(
        source_id=0,
        agency="A",
        url="http://feed/a",
        hue=0.5,
        refresh_interval=15,
        last_refresh_ms=None,
    ),
)


@dataclass(eq=False)
class RecordingListener:
    received: list[Snapshot] = field(default_factory=list)

    def handle_vehicles(self, snapshot: Snapshot) -> None:
        self.received.append(snapshot)


@dataclass(eq=False)
class CallbackListener:
    callback: object
    received: list[Snapshot] = field(default_factory=list)

    def handle_vehicles(self, snapshot: Snapshot) -> None:
        self.received.append(snapshot)
        self.callback()  # type: ignore[operator]


class FailingListener:
    def handle_vehicles(self, snapshot: Snapshot) -> None:
        raise RuntimeError("boom")


def test_broadcast_reaches_every_listener() -> None:
    b = Broadcaster()
    l1, l2 = RecordingListener(), RecordingListener()
    b.add_listener(l1)
    b.add_listener(l2)

    assert b.broadcast(SNAP) == 2
    assert l1.received == [SNAP]
    assert l2.received == [SNAP]


def test_add_is_idempotent_and_remove_unknown_is_noop() -> None:
    b = Broadcaster()
    l1 = RecordingListener()
    b.add_listener(l1)
    b.add_listener(l1)
    b.remove_listener(RecordingListener())

    b.broadcast(SNAP)

    assert len(b.listeners) == 1
    assert l1.received == [SNAP]


def test_failing_listener_does_not_stop_delivery() -> None:
    b = Broadcaster()
    ok = RecordingListener()
    b.add_listener(FailingListener())
    b.add_listener(ok)

    assert b.broadcast(SNAP) == 1
    assert ok.received == [SNAP]


def test_remove_during_delivery_is_safe_and_takes_effect_next_time() -> None:
    b = Broadcaster()
    l2 = RecordingListener()
    l1 = CallbackListener(callback=lambda: b.remove_listener(l2))
    b.add_listener(l1)
    b.add_listener(l2)

    b.broadcast(SNAP)
    b.broadcast(SNAP)

    assert len(l1.received) == 2
    # l2 was still in the view taken for the first delivery.
    assert len(l2.received) == 1


def test_listener_added_during_delivery_only_gets_later_snapshots() -> None:
    b = Broadcaster()
    late = RecordingListener()
    first = CallbackListener(callback=lambda: b.add_listener(late))
    b.add_listener(first)

    b.broadcast(SNAP)
    assert late.received == []

    b.broadcast(SNAP)
    assert late.received == [SNAP]


def test_concurrent_registration_while_broadcasting() -> None:
    b = Broadcaster()
    stable = RecordingListener()
    b.add_listener(stable)
    errors: list[BaseException] = []

    def churn() -> None:
        try:
            for _ in range(500):
                extra = RecordingListener()
                b.add_listener(extra)
                b.remove_listener(extra)
        except BaseException as exc:  # pragma: no cover
            errors.append(exc)

    workers = [threading.Thread(target=churn) for _ in range(4)]
    for w in workers:
        w.start()
    for _ in range(500):
        b.broadcast(SNAP)
    for w in workers:
        w.join()

    assert errors == []
    assert len(stable.received) == 500
    assert b.listeners == (stable,)
