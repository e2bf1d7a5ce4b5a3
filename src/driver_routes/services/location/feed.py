"""In-process geolocation provider fed by positions pushed from the driver's device."""

from __future__ import annotations

import threading
from typing import Optional

from ...models.domain import GeoPoint
from .provider import PositionCallback


class FeedSubscription:
    def __init__(self, feed: "PositionFeed", callback: PositionCallback) -> None:
        self._feed = feed
        self._callback = callback
        self.active = True

    def cancel(self) -> None:
        if self.active:
            self.active = False
            self._feed._remove(self)

    def __call__(self, point: GeoPoint) -> None:
        self._callback(point)


class PositionFeed:
    """Fan positions out to subscribers in the order they are published."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._publish_lock = threading.Lock()
        self._subscribers: list[FeedSubscription] = []
        self._last_position: Optional[GeoPoint] = None

    def get_current_position(self) -> GeoPoint:
        if self._last_position is None:
            raise LookupError("No position has been reported yet")
        return self._last_position

    @property
    def last_position(self) -> Optional[GeoPoint]:
        return self._last_position

    @property
    def subscriber_count(self) -> int:
        with self._lock:
            return len(self._subscribers)

    def subscribe(self, on_update: PositionCallback) -> FeedSubscription:
        subscription = FeedSubscription(self, on_update)
        with self._lock:
            self._subscribers.append(subscription)
        return subscription

    def _remove(self, subscription: FeedSubscription) -> None:
        with self._lock:
            if subscription in self._subscribers:
                self._subscribers.remove(subscription)

    def publish(self, point: GeoPoint) -> int:
        """Deliver a position to every subscriber; return how many received it."""
        with self._publish_lock:
            with self._lock:
                self._last_position = point
                subscribers = list(self._subscribers)
            for subscription in subscribers:
                subscription(point)
        return len(subscribers)
