from __future__ import annotations

from dataclasses import dataclass, field

from gtfs_rt_visualizer.domain.models.snapshot import Snapshot
from gtfs_rt_visualizer.domain.models.source import Source


@dataclass(slots=True)
class SourceRegistry:
    """Ordered, append-only collection of sources.

    Filled once at startup; afterwards every refresh task reads it and
    mutates only its own source.
    """

    _sources: list[Source] = field(default_factory=list)

    def add(self, source: Source) -> Source:
        source.source_id = len(self._sources)
        self._sources.append(source)
        return source

    def get(self, source_id: int) -> Source:
        if not (0 <= source_id < len(self._sources)):
            raise KeyError(f"Unknown source id: {source_id}")
        return self._sources[source_id]

    def list(self) -> tuple[Source, ...]:
        return tuple(self._sources)

    def snapshot(self) -> Snapshot:
        return tuple(s.snapshot() for s in self._sources)

    def __len__(self) -> int:
        return len(self._sources)
