from .feed_provider import IFeedProvider
from .vehicle_listener import IVehicleListener

__all__ = [
    "IFeedProvider",
    "IVehicleListener",
]
