"""Geolocation provider contract.

Device positioning lives outside this service; callers plug in any object that
satisfies these protocols (a GPS bridge, a replay of recorded fixes, a test double).
"""

from __future__ import annotations

from typing import Callable, Protocol

from ...models.domain import GeoPoint

PositionCallback = Callable[[GeoPoint], None]


class Subscription(Protocol):
    def cancel(self) -> None:
        ...


class GeolocationProvider(Protocol):
    def get_current_position(self) -> GeoPoint:
        ...

    def subscribe(self, on_update: PositionCallback) -> Subscription:
        ...
