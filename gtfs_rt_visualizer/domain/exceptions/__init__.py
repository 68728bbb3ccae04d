from .feed import ConfigError, DecodeError, FeedError, FetchError, VisualizerError

__all__ = [
    "ConfigError",
    "DecodeError",
    "FeedError",
    "FetchError",
    "VisualizerError",
]
