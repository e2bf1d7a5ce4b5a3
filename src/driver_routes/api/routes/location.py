"""Device position intake."""

from __future__ import annotations

from fastapi import APIRouter, Request, status

from ...schemas.navigation import LocationUpdateResponse
from ...schemas.routing import GeoPointModel
from ...services.routing.service import point_from_model
from ..errors import to_http_exception
from .navigation import session_to_response

router = APIRouter(tags=["location"])


@router.post("/location", response_model=LocationUpdateResponse, status_code=status.HTTP_200_OK)
def report_location(payload: GeoPointModel, request: Request) -> LocationUpdateResponse:
    """Publish a device position to the location reporter and active navigation sessions."""
    state = request.app.state
    try:
        delivered = state.position_feed.publish(point_from_model(payload))
        sessions = state.navigation.sessions()
    except Exception as exc:
        raise to_http_exception(exc, "report location") from exc
    return LocationUpdateResponse(
        delivered=delivered,
        navigation=[session_to_response(session) for session in sessions],
    )
