"""Navigation progress tracking for a single route session.

A session walks the ordered stops of a route while position updates arrive:

    idle -> navigating -> arrived(i) -> navigating(i + 1) -> ... -> finished

Arrival is only proposed to the caller; the session advances past a stop once
the caller resolves it as completed or skipped. ``stop()`` returns to idle from
any state and releases the position subscription.
"""

from __future__ import annotations

import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, replace
from enum import Enum
from typing import Callable, Iterator, Optional, Sequence

from ...config import settings
from ...models.domain import GeoPoint, NavigationStep, Stop, StopStatus
from ..geospatial import haversine_km
from ..location.provider import GeolocationProvider, Subscription

logger = logging.getLogger(__name__)


class NavigationError(Exception):
    """Raised when an operation is not valid in the session's current state."""


class NavigationState(str, Enum):
    IDLE = "idle"
    NAVIGATING = "navigating"
    ARRIVED = "arrived"
    FINISHED = "finished"


@dataclass(frozen=True, slots=True)
class ArrivalEvent:
    stop: Stop
    index: int
    distance_km: float
    final: bool = False


def find_nearest_step(
    position: GeoPoint, steps: Sequence[NavigationStep]
) -> Optional[tuple[NavigationStep, int]]:
    """Return the step whose start is closest to ``position`` and its index."""
    if not steps:
        return None

    nearest_index = 0
    nearest_distance = haversine_km(position, steps[0].start_location)
    for index in range(1, len(steps)):
        distance = haversine_km(position, steps[index].start_location)
        if distance < nearest_distance:
            nearest_distance = distance
            nearest_index = index
    return steps[nearest_index], nearest_index


class NavigationSession:
    """Owned state of one navigation run over an ordered list of stops."""

    def __init__(
        self,
        stops: Sequence[Stop],
        *,
        route_id: str | None = None,
        arrival_threshold_km: float | None = None,
        on_arrival: Callable[[ArrivalEvent], None] | None = None,
    ) -> None:
        self.route_id = route_id
        self.arrival_threshold_km = (
            arrival_threshold_km if arrival_threshold_km is not None else settings.arrival_threshold_km
        )
        self._stops: list[Stop] = list(stops)
        self._on_arrival = on_arrival
        self._lock = threading.Lock()
        self._state = NavigationState.IDLE
        self._current_index = 0
        self._last_position: GeoPoint | None = None
        self._pending_arrival: ArrivalEvent | None = None
        self._subscription: Subscription | None = None

    @property
    def state(self) -> NavigationState:
        return self._state

    @property
    def current_index(self) -> int:
        return self._current_index

    @property
    def last_position(self) -> GeoPoint | None:
        return self._last_position

    @property
    def pending_arrival(self) -> ArrivalEvent | None:
        return self._pending_arrival

    @property
    def stops(self) -> list[Stop]:
        with self._lock:
            return list(self._stops)

    @property
    def current_stop(self) -> Stop | None:
        if not self._stops:
            return None
        return self._stops[self._current_index]

    @property
    def is_navigating(self) -> bool:
        return self._state in (NavigationState.NAVIGATING, NavigationState.ARRIVED)

    def start(self, provider: GeolocationProvider | None = None) -> None:
        """Begin navigating; with a provider, subscribe to its position updates."""
        with self._lock:
            if self._state is not NavigationState.IDLE:
                raise NavigationError(f"Cannot start navigation from state '{self._state.value}'")
            if not self._stops:
                raise NavigationError("Cannot navigate a route without stops")
            self._state = NavigationState.NAVIGATING
            self._pending_arrival = None

        if provider is not None:
            try:
                self._subscription = provider.subscribe(self.update_position)
            except Exception:
                with self._lock:
                    self._state = NavigationState.IDLE
                raise
        logger.info(
            f"Navigation started for route {self.route_id or '<adhoc>'} "
            f"at stop {self._current_index + 1}/{len(self._stops)}"
        )

    def stop(self) -> None:
        """Stop navigating and release the position subscription."""
        subscription, self._subscription = self._subscription, None
        try:
            if subscription is not None:
                subscription.cancel()
        finally:
            with self._lock:
                self._state = NavigationState.IDLE
                self._pending_arrival = None
            logger.info(f"Navigation stopped for route {self.route_id or '<adhoc>'}")

    def update_position(self, position: GeoPoint) -> ArrivalEvent | None:
        """Apply a position update and return an arrival event when one is detected.

        Updates outside the navigating state are ignored, and an arrival is
        reported once per approach: further updates while waiting for the
        caller's decision produce nothing.
        """
        with self._lock:
            if self._state is not NavigationState.NAVIGATING:
                return None
            self._last_position = position

            stop = self._stops[self._current_index]
            distance = haversine_km(position, stop.location)
            if not distance < self.arrival_threshold_km:
                return None

            final = self._current_index == len(self._stops) - 1
            event = ArrivalEvent(stop=stop, index=self._current_index, distance_km=distance, final=final)
            if final:
                self._state = NavigationState.FINISHED
            else:
                self._state = NavigationState.ARRIVED
                self._pending_arrival = event

        logger.info(
            f"Arrived at stop {stop.id} ({event.index + 1}/{len(self._stops)}) "
            f"within {distance * 1000:.0f} m"
        )
        if self._on_arrival is not None:
            self._on_arrival(event)
        return event

    def resolve_arrival(self, status: StopStatus) -> Stop:
        """Record the caller's decision for the pending arrival and move to the next stop."""
        if status not in (StopStatus.COMPLETED, StopStatus.SKIPPED):
            raise ValueError(f"Arrival must be resolved as completed or skipped, got '{status.value}'")

        with self._lock:
            if self._state is not NavigationState.ARRIVED or self._pending_arrival is None:
                raise NavigationError("No arrival is waiting for confirmation")
            index = self._pending_arrival.index
            resolved = replace(self._stops[index], status=status)
            self._stops[index] = resolved
            self._current_index = index + 1
            self._pending_arrival = None
            self._state = NavigationState.NAVIGATING
        return resolved


@contextmanager
def navigation_session(
    stops: Sequence[Stop],
    provider: GeolocationProvider,
    **kwargs,
) -> Iterator[NavigationSession]:
    """Run a navigation session whose subscription is released on exit, including on errors."""
    session = NavigationSession(stops, **kwargs)
    session.start(provider)
    try:
        yield session
    finally:
        session.stop()


class NavigationRegistry:
    """Active navigation sessions keyed by route id."""

    def __init__(self) -> None:
        self._sessions: dict[str, NavigationSession] = {}
        self._lock = threading.Lock()

    def start(
        self,
        route_id: str,
        stops: Sequence[Stop],
        provider: GeolocationProvider | None = None,
        **kwargs,
    ) -> NavigationSession:
        with self._lock:
            existing = self._sessions.get(route_id)
            if existing is not None and existing.is_navigating:
                raise NavigationError(f"Navigation already active for route {route_id}")
            session = NavigationSession(stops, route_id=route_id, **kwargs)
            session.start(provider)
            if existing is not None:
                existing.stop()
            self._sessions[route_id] = session
            return session

    def sessions(self) -> list[NavigationSession]:
        with self._lock:
            return list(self._sessions.values())

    def get(self, route_id: str) -> NavigationSession:
        with self._lock:
            session = self._sessions.get(route_id)
        if session is None:
            raise LookupError(f"No navigation session for route {route_id}")
        return session

    def stop(self, route_id: str) -> None:
        with self._lock:
            session = self._sessions.pop(route_id, None)
        if session is None:
            raise LookupError(f"No navigation session for route {route_id}")
        session.stop()

    def clear(self) -> None:
        with self._lock:
            sessions = list(self._sessions.values())
            self._sessions.clear()
        for session in sessions:
            session.stop()
