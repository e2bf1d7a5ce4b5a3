"""Turn-by-turn directions endpoint."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...schemas.directions import DirectionsRequest, DirectionsResponse
from ...services.directions import service as directions_service
from ..errors import to_http_exception

router = APIRouter(prefix="/directions", tags=["directions"])


@router.post("", response_model=DirectionsResponse, status_code=status.HTTP_200_OK)
def directions(payload: DirectionsRequest) -> DirectionsResponse:
    try:
        return directions_service.get_directions(payload)
    except Exception as exc:
        raise to_http_exception(exc, "get directions") from exc
