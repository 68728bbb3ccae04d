"""Adaptive GTFS-realtime vehicle position poller and snapshot broadcaster."""

__version__ = "0.1.0"
