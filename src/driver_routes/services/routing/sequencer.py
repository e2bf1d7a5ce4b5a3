"""Greedy stop sequencing for a single driver route.

The visiting order is built with the nearest-neighbour heuristic: starting from
the driver's position (or the first stop), repeatedly move to the closest stop
not yet visited. This approximates a short tour but does not guarantee the
minimum total distance; route sizes are tens of stops, so the O(n^2) scan is
acceptable.

All distances are in kilometres.
"""

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional, Sequence

from ...config import settings
from ...models.domain import GeoPoint, OrderedStopPair, Stop
from ..geospatial import haversine_km, is_valid_point
from .models import RoutePlan

logger = logging.getLogger(__name__)

NAVIGATION_BASE_PATH = "/dir/"


def optimize_order(stops: Sequence[Stop], start: Optional[GeoPoint] = None) -> list[Stop]:
    """Return the stops in nearest-neighbour visiting order.

    Ties are resolved in favour of the stop that appears first in ``stops``;
    the result is always a permutation of the input.
    """
    if len(stops) <= 1:
        return list(stops)

    visited = [False] * len(stops)
    ordered: list[Stop] = []
    current = start if start is not None else stops[0].location

    for _ in range(len(stops)):
        nearest_index = -1
        nearest_distance = float("inf")
        for index, stop in enumerate(stops):
            if visited[index]:
                continue
            distance = haversine_km(current, stop.location)
            # Strict comparison keeps the lowest index on exact ties.
            if nearest_index < 0 or distance < nearest_distance:
                nearest_index = index
                nearest_distance = distance
        visited[nearest_index] = True
        nearest = stops[nearest_index]
        ordered.append(nearest)
        current = nearest.location

    return ordered


def total_distance_km(ordered_stops: Sequence[Stop], start: Optional[GeoPoint] = None) -> float:
    """Sum the leg distances along ``ordered_stops``.

    Without ``start`` the first leg runs from the first stop to itself, so a
    single stop yields 0.
    """
    if not ordered_stops:
        return 0.0

    total = 0.0
    current = start if start is not None else ordered_stops[0].location
    for stop in ordered_stops:
        total += haversine_km(current, stop.location)
        current = stop.location
    return total


def build_navigation_link(
    ordered_stops: Sequence[Stop],
    start: Optional[GeoPoint] = None,
    *,
    maps_host: str | None = None,
    max_waypoints: int | None = None,
) -> str:
    """Build a driving deep link for the external maps application.

    Intermediate stops beyond ``max_waypoints`` (9 for the maps service) are
    dropped from the link; origin and destination are always present.
    """
    if not ordered_stops:
        return ""

    host = maps_host or settings.maps_host
    limit = settings.max_waypoints if max_waypoints is None else max_waypoints

    origin = start if start is not None else ordered_stops[0].location
    destination = ordered_stops[-1].location
    between = ordered_stops[0 if start is not None else 1 : -1]
    waypoints = "|".join(stop.location.as_pair() for stop in between[:limit])

    url = (
        f"https://{host}{NAVIGATION_BASE_PATH}?api=1"
        f"&origin={origin.as_pair()}&destination={destination.as_pair()}&travelmode=driving"
    )
    if waypoints:
        url += f"&waypoints={waypoints}"
    return url


def filter_valid_stops(stops: Sequence[Stop]) -> tuple[list[Stop], list[Stop]]:
    """Split stops into those with usable coordinates and those without."""
    valid: list[Stop] = []
    rejected: list[Stop] = []
    for stop in stops:
        if is_valid_point(stop.location):
            valid.append(stop)
        else:
            logger.warning(
                f"Invalid stop coordinates for {stop.id}: "
                f"{stop.location.latitude}, {stop.location.longitude}"
            )
            rejected.append(stop)
    return valid, rejected


def optimized_order_pairs(ordered_stops: Sequence[Stop]) -> list[OrderedStopPair]:
    """Pair each stop id with its 1-based position in the sequence."""
    return [OrderedStopPair(stop_id=stop.id, order=index) for index, stop in enumerate(ordered_stops, start=1)]


def apply_optimized_order(ordered_stops: Sequence[Stop]) -> list[Stop]:
    return [replace(stop, optimized_order=index) for index, stop in enumerate(ordered_stops, start=1)]


def usable_start(start: Optional[GeoPoint]) -> Optional[GeoPoint]:
    """Return ``start`` when it holds real coordinates, otherwise None."""
    if start is not None and not is_valid_point(start):
        logger.warning(f"Ignoring invalid start location {start.latitude}, {start.longitude}")
        return None
    return start


def sequence_stops(
    stops: Sequence[Stop],
    start: Optional[GeoPoint] = None,
    *,
    route_id: str | None = None,
) -> RoutePlan:
    """Filter, order and summarise a set of stops."""
    start = usable_start(start)
    valid, rejected = filter_valid_stops(stops)
    ordered = apply_optimized_order(optimize_order(valid, start))
    distance = total_distance_km(ordered, start)

    logger.info(
        f"Sequenced {len(ordered)} stops for route {route_id or '<adhoc>'} "
        f"({len(rejected)} rejected), estimated distance {distance:.2f} km"
    )
    return RoutePlan(
        route_id=route_id,
        start=start,
        stops=ordered,
        rejected_stop_ids=[stop.id for stop in rejected],
        total_distance_km=distance,
        navigation_url=build_navigation_link(ordered, start),
    )
