from __future__ import annotations

from abc import ABC, abstractmethod

from gtfs_rt_visualizer.domain.models.vehicle import FeedEntity


class IFeedProvider(ABC):
    """Port for fetching and decoding one realtime vehicle positions feed."""

    @abstractmethod
    async def fetch_entities(self, url: str) -> tuple[FeedEntity, ...]:
        """Return the decoded entities, or raise FetchError/DecodeError."""
