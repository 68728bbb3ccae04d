class VisualizerError(Exception):
    """Base exception for the vehicle visualizer."""


class ConfigError(VisualizerError):
    """Raised when the startup configuration is missing or malformed."""


class FeedError(VisualizerError):
    """Base exception for recoverable per-tick feed failures."""


class FetchError(FeedError):
    """Raised when a feed cannot be downloaded (network, timeout, non-2xx)."""


class DecodeError(FeedError):
    """Raised when a downloaded feed payload cannot be parsed."""
