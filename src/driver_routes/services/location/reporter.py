"""Forward the driver's position to the route backend while a route is active."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable, Optional

from ...config import settings
from ...data.route_repository import RepositoryError, RouteRepository
from ...models.domain import GeoPoint
from ..geospatial import haversine_km
from .provider import GeolocationProvider, Subscription

logger = logging.getLogger(__name__)


class LocationReporter:
    """Subscribe to a geolocation provider and post throttled updates.

    The first fix is always sent. After that a fix goes out only once both the
    update interval has elapsed and the driver moved at least the distance
    interval since the last sent fix. Failed posts are logged and do not count
    as sent, so the next fix retries.
    """

    def __init__(
        self,
        repository: RouteRepository,
        provider: GeolocationProvider,
        *,
        interval_seconds: float | None = None,
        distance_interval_m: float | None = None,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        self.repository = repository
        self.provider = provider
        self.interval_seconds = (
            interval_seconds if interval_seconds is not None else settings.location_update_interval_seconds
        )
        self.distance_interval_m = (
            distance_interval_m if distance_interval_m is not None else settings.location_distance_interval_m
        )
        self._clock = clock
        self._lock = threading.Lock()
        self._subscription: Optional[Subscription] = None
        self._last_sent: Optional[tuple[GeoPoint, float]] = None
        self.sent_count = 0
        self.failed_count = 0

    @property
    def is_tracking(self) -> bool:
        return self._subscription is not None

    def start(self) -> None:
        if self._subscription is not None:
            logger.info("Location reporting already running")
            return
        self._subscription = self.provider.subscribe(self.handle_position)
        logger.info("Location reporting started")

    def stop(self) -> None:
        subscription, self._subscription = self._subscription, None
        if subscription is None:
            return
        subscription.cancel()
        logger.info(f"Location reporting stopped ({self.sent_count} sent, {self.failed_count} failed)")

    def _should_send(self, point: GeoPoint, now: float) -> bool:
        if self._last_sent is None:
            return True
        last_point, last_time = self._last_sent
        if now - last_time < self.interval_seconds:
            return False
        return haversine_km(last_point, point) * 1000 >= self.distance_interval_m

    def handle_position(self, point: GeoPoint) -> bool:
        """Post the position if the throttle allows it; return True when sent."""
        now = self._clock()
        with self._lock:
            if not self._should_send(point, now):
                return False

        try:
            self.repository.update_location(point)
        except RepositoryError as exc:
            self.failed_count += 1
            logger.warning(f"Failed to send location update: {exc}")
            return False
        with self._lock:
            self._last_sent = (point, now)
            self.sent_count += 1
        logger.debug(f"Location sent: {point.latitude:.6f}, {point.longitude:.6f}")
        return True
