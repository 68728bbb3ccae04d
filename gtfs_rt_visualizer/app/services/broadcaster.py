from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field

from gtfs_rt_visualizer.app.ports.output import IVehicleListener
from gtfs_rt_visualizer.domain.models.snapshot import Snapshot

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class Broadcaster:
    """Fans snapshots out to listeners.

    The listener collection is an immutable tuple replaced on every
    change (copy-on-write), so delivery iterates without holding the lock
    and registrations may happen at any time.
    """

    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)
    _listeners: tuple[IVehicleListener, ...] = ()

    @property
    def listeners(self) -> tuple[IVehicleListener, ...]:
        return self._listeners

    def add_listener(self, listener: IVehicleListener) -> None:
        with self._lock:
            if listener in self._listeners:
                return
            self._listeners = (*self._listeners, listener)

    def remove_listener(self, listener: IVehicleListener) -> None:
        with self._lock:
            self._listeners = tuple(x for x in self._listeners if x is not listener)

    def broadcast(self, snapshot: Snapshot) -> int:
        """Deliver ``snapshot`` to every listener registered right now.

        Returns the number of listeners that accepted it.
        """

        delivered = 0
        for listener in self._listeners:
            try:
                listener.handle_vehicles(snapshot)
            except Exception:
                logger.exception("vehicle listener %r failed", listener)
                continue
            delivered += 1
        return delivered
