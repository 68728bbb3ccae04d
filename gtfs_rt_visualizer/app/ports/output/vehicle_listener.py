from __future__ import annotations

from abc import ABC, abstractmethod

from gtfs_rt_visualizer.domain.models.snapshot import Snapshot


class IVehicleListener(ABC):
    """Receives a full snapshot of every source after each tick.

    Implementations must return quickly; they are called from the polling path.
    """

    @abstractmethod
    def handle_vehicles(self, snapshot: Snapshot) -> None:
        raise NotImplementedError
