from .snapshot import Snapshot, SourceSnapshot
from .source import Source, normalize_hue
from .vehicle import FeedEntity, Vehicle

__all__ = [
    "FeedEntity",
    "Snapshot",
    "Source",
    "SourceSnapshot",
    "Vehicle",
    "normalize_hue",
]
