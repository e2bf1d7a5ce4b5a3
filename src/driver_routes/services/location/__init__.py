"""Device location services."""

from .feed import PositionFeed
from .provider import GeolocationProvider, Subscription
from .reporter import LocationReporter

__all__ = ["GeolocationProvider", "Subscription", "PositionFeed", "LocationReporter"]
