"""Routing orchestration service."""

from __future__ import annotations

import logging
from typing import Optional, Sequence

from ...data.route_repository import RouteRepository
from ...models.domain import GeoPoint, OrderedStopPair, Route, RouteStatus, Stop, StopStatus
from ...schemas.routing import (
    GeoPointModel,
    OptimizeRequest,
    RouteModel,
    RoutePlanResponse,
    StartRouteResponse,
    StopModel,
)
from .models import RoutePlan
from .sequencer import build_navigation_link, filter_valid_stops, optimize_order, sequence_stops, usable_start

logger = logging.getLogger(__name__)


def point_from_model(model: Optional[GeoPointModel]) -> Optional[GeoPoint]:
    if model is None:
        return None
    return GeoPoint(latitude=model.latitude, longitude=model.longitude)


def point_to_model(point: Optional[GeoPoint]) -> Optional[GeoPointModel]:
    if point is None:
        return None
    return GeoPointModel(latitude=point.latitude, longitude=point.longitude)


def stop_from_model(model: StopModel) -> Stop:
    return Stop(
        id=model.id,
        route_id=model.route_id,
        location=GeoPoint(latitude=model.latitude, longitude=model.longitude),
        stop_order=model.stop_order,
        client_id=model.client_id,
        client_name=model.client_name,
        client_sku=model.client_sku,
        address=model.address,
        optimized_order=model.optimized_order,
        status=model.status,
        completed_at=model.completed_at,
        notes=model.notes,
    )


def stop_to_model(stop: Stop) -> StopModel:
    return StopModel(
        id=stop.id,
        route_id=stop.route_id,
        latitude=stop.location.latitude,
        longitude=stop.location.longitude,
        stop_order=stop.stop_order,
        client_id=stop.client_id,
        client_name=stop.client_name,
        client_sku=stop.client_sku,
        address=stop.address,
        optimized_order=stop.optimized_order,
        status=stop.status,
        completed_at=stop.completed_at,
        notes=stop.notes,
    )


def route_to_model(route: Route) -> RouteModel:
    return RouteModel(
        id=route.id,
        name=route.name,
        status=route.status,
        driver_id=route.driver_id,
        driver_name=route.driver_name,
        route_date=route.route_date,
        total_stops=route.total_stops,
        completed_stops=route.completed_stops,
        stops=[stop_to_model(stop) for stop in route.stops],
    )


def _plan_to_response(plan: RoutePlan, persisted: bool = False) -> RoutePlanResponse:
    return RoutePlanResponse(
        route_id=plan.route_id,
        stops=[stop_to_model(stop) for stop in plan.stops],
        rejected_stop_ids=plan.rejected_stop_ids,
        total_distance_km=plan.total_distance_km,
        navigation_url=plan.navigation_url,
        persisted=persisted,
    )


def current_order(stops: Sequence[Stop]) -> list[Stop]:
    """Order stops by their saved optimized position, falling back to the original sequence."""
    return sorted(
        stops,
        key=lambda stop: (stop.optimized_order is None, stop.optimized_order or 0, stop.stop_order),
    )


def optimize_stops(payload: OptimizeRequest) -> RoutePlanResponse:
    """Sequence an ad-hoc list of stops without touching the backend."""
    stops = [stop_from_model(model) for model in payload.stops]
    plan = sequence_stops(stops, point_from_model(payload.start))
    return _plan_to_response(plan)


def plan_route(
    route_id: str,
    start: Optional[GeoPoint] = None,
    *,
    persist: bool = False,
    repository: RouteRepository | None = None,
) -> RoutePlanResponse:
    """Fetch a route, sequence its stops and optionally save the order back."""
    repository = repository or RouteRepository()
    route = repository.get_route_details(route_id)
    plan = sequence_stops(route.stops, start, route_id=route.id)
    if not plan.stops:
        raise ValueError(f"Route {route_id} has no stops with valid coordinates.")

    if persist:
        save_order(route.id, [stop.id for stop in plan.stops], repository=repository)
    return _plan_to_response(plan, persisted=persist)


def save_order(
    route_id: str,
    stop_ids: Sequence[str],
    *,
    repository: RouteRepository | None = None,
) -> list[OrderedStopPair]:
    if len(set(stop_ids)) != len(stop_ids):
        raise ValueError("Stop ids in the optimized order must be unique.")
    repository = repository or RouteRepository()
    pairs = [OrderedStopPair(stop_id=stop_id, order=index) for index, stop_id in enumerate(stop_ids, start=1)]
    repository.save_optimized_order(route_id, pairs)
    logger.info(f"Saved optimized order for route {route_id} ({len(pairs)} stops)")
    return pairs


def navigation_stops(
    route: Route,
    start: Optional[GeoPoint] = None,
    *,
    optimize: bool = True,
) -> list[Stop]:
    """Pending stops with usable coordinates, in the order the driver should visit them."""
    start = usable_start(start)
    valid, _ = filter_valid_stops(route.stops)
    pending = [stop for stop in valid if stop.status is StopStatus.PENDING]
    if optimize:
        return optimize_order(pending, start)
    return current_order(pending)


def start_route(
    route_id: str,
    start: Optional[GeoPoint] = None,
    *,
    repository: RouteRepository | None = None,
) -> StartRouteResponse:
    """Mark a route in progress and return the navigation link for its remaining stops."""
    start = usable_start(start)
    repository = repository or RouteRepository()
    route = repository.get_route_details(route_id)
    repository.update_route_status(route.id, RouteStatus.IN_PROGRESS)
    stops = navigation_stops(route, start, optimize=False)
    return StartRouteResponse(
        route_id=route.id,
        status=RouteStatus.IN_PROGRESS,
        navigation_url=build_navigation_link(stops, start),
    )
