"""Route and stop endpoints."""

from __future__ import annotations

from typing import List

from fastapi import APIRouter, HTTPException, status

from ...data.route_repository import RouteRepository
from ...models.domain import RouteStatus
from ...schemas.routing import (
    CompleteStopRequest,
    OptimizeRequest,
    RouteModel,
    RouteOptimizeRequest,
    RoutePlanResponse,
    RouteStatusUpdate,
    SaveOrderRequest,
    StartRouteRequest,
    StartRouteResponse,
)
from ...services.routing import service as routing_service
from ..errors import to_http_exception

router = APIRouter(tags=["routes"])


@router.get("/routes", response_model=List[RouteModel], status_code=status.HTTP_200_OK)
def list_routes() -> List[RouteModel]:
    try:
        routes = RouteRepository().list_routes()
    except Exception as exc:
        raise to_http_exception(exc, "fetch routes") from exc
    return [routing_service.route_to_model(route) for route in routes]


@router.get("/routes/{route_id}", response_model=RouteModel, status_code=status.HTTP_200_OK)
def get_route(route_id: str) -> RouteModel:
    try:
        route = RouteRepository().get_route_details(route_id)
    except Exception as exc:
        raise to_http_exception(exc, "fetch route details") from exc
    return routing_service.route_to_model(route)


@router.post("/routes/optimize", response_model=RoutePlanResponse, status_code=status.HTTP_200_OK)
def optimize(payload: OptimizeRequest) -> RoutePlanResponse:
    """Sequence a list of stops supplied by the client."""
    try:
        return routing_service.optimize_stops(payload)
    except Exception as exc:
        raise to_http_exception(exc, "optimize stops") from exc


@router.post("/routes/{route_id}/optimize", response_model=RoutePlanResponse, status_code=status.HTTP_200_OK)
def optimize_route(route_id: str, payload: RouteOptimizeRequest) -> RoutePlanResponse:
    """Sequence a backend route from the driver's position, optionally saving the order."""
    try:
        return routing_service.plan_route(
            route_id,
            routing_service.point_from_model(payload.start),
            persist=payload.persist,
            repository=RouteRepository(),
        )
    except Exception as exc:
        raise to_http_exception(exc, "optimize route") from exc


@router.post("/routes/{route_id}/optimized-order", status_code=status.HTTP_200_OK)
def save_optimized_order(route_id: str, payload: SaveOrderRequest) -> dict:
    try:
        pairs = routing_service.save_order(route_id, payload.stop_ids, repository=RouteRepository())
    except Exception as exc:
        raise to_http_exception(exc, "save optimized route") from exc
    return {
        "success": True,
        "optimized_order": [{"stop_id": pair.stop_id, "order": pair.order} for pair in pairs],
    }


@router.post("/routes/{route_id}/status", status_code=status.HTTP_200_OK)
def update_route_status(route_id: str, payload: RouteStatusUpdate) -> dict:
    try:
        RouteRepository().update_route_status(route_id, payload.status)
    except Exception as exc:
        raise to_http_exception(exc, "update route status") from exc
    return {"success": True, "route_id": route_id, "status": payload.status.value}


@router.post("/routes/{route_id}/start", response_model=StartRouteResponse, status_code=status.HTTP_200_OK)
def start_route(route_id: str, payload: StartRouteRequest) -> StartRouteResponse:
    """Mark the route in progress and return the deep link for the maps application."""
    try:
        return routing_service.start_route(
            route_id,
            routing_service.point_from_model(payload.start),
            repository=RouteRepository(),
        )
    except Exception as exc:
        raise to_http_exception(exc, "start route") from exc


@router.delete("/routes/{route_id}", status_code=status.HTTP_200_OK)
def delete_route(route_id: str) -> dict:
    try:
        repository = RouteRepository()
        route = repository.get_route_details(route_id)
        if route.status not in (RouteStatus.COMPLETED, RouteStatus.CANCELLED):
            raise HTTPException(
                status_code=status.HTTP_409_CONFLICT,
                detail=f"Only completed or cancelled routes can be deleted (route is {route.status.value})",
            )
        repository.delete_route(route_id)
    except Exception as exc:
        raise to_http_exception(exc, "delete route") from exc
    return {"success": True, "message": f"Route {route_id} deleted"}


@router.post("/stops/{stop_id}/complete", status_code=status.HTTP_200_OK)
def complete_stop(stop_id: str, payload: CompleteStopRequest) -> dict:
    try:
        RouteRepository().complete_stop(stop_id, payload.notes)
    except Exception as exc:
        raise to_http_exception(exc, "complete stop") from exc
    return {"success": True, "stop_id": stop_id}
