"""Navigation session endpoints.

Positions reach active sessions through ``POST /location``; these endpoints
manage the session lifecycle and the driver's decision at each arrival.
"""

from __future__ import annotations

from fastapi import APIRouter, Request, status

from ...data.route_repository import RouteRepository
from ...models.domain import StopStatus
from ...schemas.navigation import (
    ArrivalModel,
    ArrivalResolutionRequest,
    NavigationStartRequest,
    NavigationStateResponse,
)
from ...services.navigation.tracker import NavigationError, NavigationSession
from ...services.routing import service as routing_service
from ..errors import to_http_exception

router = APIRouter(prefix="/navigation", tags=["navigation"])


def session_to_response(session: NavigationSession) -> NavigationStateResponse:
    current = session.current_stop
    pending = session.pending_arrival
    return NavigationStateResponse(
        route_id=session.route_id or "",
        state=session.state.value,
        current_index=session.current_index,
        total_stops=len(session.stops),
        current_stop=routing_service.stop_to_model(current) if current is not None else None,
        last_position=routing_service.point_to_model(session.last_position),
        pending_arrival=ArrivalModel(
            stop_id=pending.stop.id,
            index=pending.index,
            distance_km=pending.distance_km,
            final=pending.final,
        )
        if pending is not None
        else None,
    )


@router.post("/{route_id}/start", response_model=NavigationStateResponse, status_code=status.HTTP_200_OK)
def start_navigation(route_id: str, payload: NavigationStartRequest, request: Request) -> NavigationStateResponse:
    state = request.app.state
    try:
        route = RouteRepository().get_route_details(route_id)
        stops = routing_service.navigation_stops(
            route,
            routing_service.point_from_model(payload.start),
            optimize=payload.optimize,
        )
        if not stops:
            raise ValueError(f"Route {route_id} has no pending stops with valid coordinates.")
        session = state.navigation.start(route_id, stops, provider=state.position_feed)
    except Exception as exc:
        raise to_http_exception(exc, "start navigation") from exc
    return session_to_response(session)


@router.get("/{route_id}", response_model=NavigationStateResponse, status_code=status.HTTP_200_OK)
def get_navigation(route_id: str, request: Request) -> NavigationStateResponse:
    try:
        session = request.app.state.navigation.get(route_id)
    except Exception as exc:
        raise to_http_exception(exc, "fetch navigation state") from exc
    return session_to_response(session)


@router.post("/{route_id}/arrival", response_model=NavigationStateResponse, status_code=status.HTTP_200_OK)
def resolve_arrival(
    route_id: str, payload: ArrivalResolutionRequest, request: Request
) -> NavigationStateResponse:
    """Apply the driver's decision for the stop they arrived at, then move on."""
    try:
        session = request.app.state.navigation.get(route_id)
        pending = session.pending_arrival
        if pending is None:
            raise NavigationError("No arrival is waiting for confirmation")
        decision = StopStatus(payload.status)
        if decision is StopStatus.COMPLETED:
            RouteRepository().complete_stop(pending.stop.id, payload.notes)
        session.resolve_arrival(decision)
    except Exception as exc:
        raise to_http_exception(exc, "resolve arrival") from exc
    return session_to_response(session)


@router.delete("/{route_id}", status_code=status.HTTP_200_OK)
def stop_navigation(route_id: str, request: Request) -> dict:
    try:
        request.app.state.navigation.stop(route_id)
    except Exception as exc:
        raise to_http_exception(exc, "stop navigation") from exc
    return {"success": True, "route_id": route_id, "state": "idle"}
