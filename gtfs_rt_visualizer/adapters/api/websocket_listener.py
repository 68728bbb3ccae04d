from __future__ import annotations

import asyncio
from dataclasses import dataclass, field

from gtfs_rt_visualizer.app.ports.output import IVehicleListener
from gtfs_rt_visualizer.domain.models.snapshot import Snapshot


@dataclass(eq=False, slots=True)
class QueueVehicleListener(IVehicleListener):
    """Hands snapshots to one WebSocket connection without blocking the poller.

    Only the most recent undelivered snapshot is kept. Safe to call from
    any thread; the queue itself is only touched on ``loop``.
    """

    loop: asyncio.AbstractEventLoop
    _queue: asyncio.Queue[Snapshot] = field(
        default_factory=lambda: asyncio.Queue(maxsize=1), init=False, repr=False
    )

    def handle_vehicles(self, snapshot: Snapshot) -> None:
        self.loop.call_soon_threadsafe(self._offer, snapshot)

    def _offer(self, snapshot: Snapshot) -> None:
        if self._queue.full():
            self._queue.get_nowait()
        self._queue.put_nowait(snapshot)

    async def next_snapshot(self) -> Snapshot:
        return await self._queue.get()
