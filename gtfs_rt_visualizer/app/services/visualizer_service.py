from __future__ import annotations

import asyncio
import logging
import time
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable

from gtfs_rt_visualizer.app.ports.output import IFeedProvider
from gtfs_rt_visualizer.app.services.broadcaster import Broadcaster
from gtfs_rt_visualizer.app.services.source_registry import SourceRegistry
from gtfs_rt_visualizer.domain.algorithms.refresh_interval import next_refresh_interval
from gtfs_rt_visualizer.domain.algorithms.vehicle_diff import VehicleDiff, diff_vehicles
from gtfs_rt_visualizer.domain.exceptions import FeedError
from gtfs_rt_visualizer.domain.models.snapshot import Snapshot
from gtfs_rt_visualizer.domain.models.source import Source

logger = logging.getLogger(__name__)


def _now_ms() -> int:
    return int(time.time() * 1000)


class RefreshTaskState(str, Enum):
    IDLE = "idle"
    RUNNING = "running"
    STOPPED = "stopped"


@dataclass(slots=True)
class RefreshTask:
    """Self-rescheduling unit of work bound to a single source."""

    source_id: int
    state: RefreshTaskState = RefreshTaskState.IDLE
    runs: int = 0
    failures: int = 0
    _timer: asyncio.TimerHandle | None = field(default=None, repr=False)
    _running: asyncio.Task[None] | None = field(default=None, repr=False)


@dataclass(slots=True)
class VisualizerService:
    """Polls every registered source on its own adaptive schedule.

    Each source gets one RefreshTask. A task is re-armed only after its
    current run finishes, so runs for one source never overlap. Runs wait
    for a slot in a worker pool sized at start(). While running, snapshots
    are delivered to listeners on a separate thread.
    """

    registry: SourceRegistry
    feed_provider: IFeedProvider
    broadcaster: Broadcaster = field(default_factory=Broadcaster)
    dynamic_refresh: bool = True
    max_workers: int | None = None
    clock_ms: Callable[[], int] = _now_ms

    _tasks: dict[int, RefreshTask] = field(default_factory=dict, init=False, repr=False)
    _loop: asyncio.AbstractEventLoop | None = field(default=None, init=False, repr=False)
    _workers: asyncio.Semaphore | None = field(default=None, init=False, repr=False)
    _delivery: ThreadPoolExecutor | None = field(default=None, init=False, repr=False)
    _stopped: bool = field(default=False, init=False, repr=False)

    @property
    def tasks(self) -> tuple[RefreshTask, ...]:
        return tuple(self._tasks.values())

    @property
    def is_running(self) -> bool:
        return self._loop is not None and not self._stopped

    def start(self) -> None:
        """Arm one refresh task per source. Must run inside the event loop."""

        if self.is_running:
            raise RuntimeError("VisualizerService already started")

        self._loop = asyncio.get_running_loop()
        self._stopped = False
        size = self.max_workers or len(self.registry)
        self._workers = asyncio.Semaphore(max(1, size))
        self._delivery = ThreadPoolExecutor(
            max_workers=1, thread_name_prefix="snapshot-delivery"
        )

        for source in self.registry.list():
            task = RefreshTask(source_id=source.source_id)
            self._tasks[source.source_id] = task
            self._arm(task)

        logger.info(
            "started polling %d source(s) with %d worker(s)",
            len(self.registry),
            max(1, size),
        )

    async def stop(self) -> None:
        """Cancel pending reschedules and interrupt in-flight refreshes."""

        self._stopped = True
        in_flight: list[asyncio.Task[None]] = []
        for task in self._tasks.values():
            if task._timer is not None:
                task._timer.cancel()
                task._timer = None
            if task._running is not None and not task._running.done():
                task._running.cancel()
                in_flight.append(task._running)
            task.state = RefreshTaskState.STOPPED

        if in_flight:
            await asyncio.gather(*in_flight, return_exceptions=True)
        if self._delivery is not None:
            self._delivery.shutdown(wait=False, cancel_futures=True)
            self._delivery = None
        logger.info("stopped polling")

    def _arm(self, task: RefreshTask) -> None:
        if self._stopped or self._loop is None:
            task.state = RefreshTaskState.STOPPED
            return
        source = self.registry.get(task.source_id)
        task.state = RefreshTaskState.IDLE
        task._timer = self._loop.call_later(
            source.refresh_interval, self._launch, task
        )

    def _launch(self, task: RefreshTask) -> None:
        task._timer = None
        if self._stopped or self._loop is None:
            task.state = RefreshTaskState.STOPPED
            return
        task._running = self._loop.create_task(
            self._run(task), name=f"refresh-source-{task.source_id}"
        )

    async def _run(self, task: RefreshTask) -> None:
        if self._workers is None:
            raise RuntimeError("VisualizerService not started")
        try:
            async with self._workers:
                task.state = RefreshTaskState.RUNNING
                task.runs += 1
                await self.refresh(task.source_id)
        except asyncio.CancelledError:
            task.state = RefreshTaskState.STOPPED
            raise
        except FeedError as exc:
            task.failures += 1
            logger.warning(
                "error refreshing GTFS-realtime data for source id %s: %s",
                task.source_id,
                exc,
            )
        except Exception:
            task.failures += 1
            logger.exception(
                "error refreshing GTFS-realtime data for source id %s",
                task.source_id,
            )

        task._running = None
        self._arm(task)

    async def refresh(self, source_id: int) -> VehicleDiff:
        """Run one tick for a source: fetch, diff, adapt the interval, broadcast.

        Feed errors propagate before any state is touched, so a failed tick
        leaves the vehicles and interval as they were and broadcasts nothing.
        """

        source = self.registry.get(source_id)
        logger.info("refreshing vehicle positions for source %s", source_id)
        logger.info("%s", source.describe(self.clock_ms()))

        entities = await self.feed_provider.fetch_entities(source.url)

        now_ms = self.clock_ms()
        diff = diff_vehicles(source.vehicles, entities, now_ms=now_ms)
        source.vehicles = diff.vehicles

        if diff.updated:
            logger.info("vehicles updated: %d", diff.seen)
            if self.dynamic_refresh:
                self._update_refresh_interval(source, now_ms=now_ms)

        self._publish(self.registry.snapshot())
        return diff

    def _publish(self, snapshot: Snapshot) -> None:
        if self._delivery is None:
            self.broadcaster.broadcast(snapshot)
            return
        # One delivery thread keeps snapshots in tick order.
        self._delivery.submit(self.broadcaster.broadcast, snapshot)

    def _update_refresh_interval(self, source: Source, *, now_ms: int) -> None:
        if source.last_refresh_ms is not None:
            interval = next_refresh_interval(
                current_interval=source.refresh_interval,
                min_interval=source.min_interval,
                last_refresh_ms=source.last_refresh_ms,
                now_ms=now_ms,
            )
            source.set_refresh_interval(interval)
            logger.info("refresh interval: %d", source.refresh_interval)
        source.last_refresh_ms = now_ms
