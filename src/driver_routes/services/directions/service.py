"""Directions enrichment for the driver's turn-by-turn view."""

from __future__ import annotations

from ...models.domain import GeoPoint, NavigationStep
from ...schemas.directions import DirectionsRequest, DirectionsResponse, NavigationStepModel
from ..navigation.maneuvers import classify_maneuver
from ..navigation.polyline import decode_path
from ..navigation.tracker import find_nearest_step
from ..routing.service import point_from_model as _point, point_to_model as _point_model
from .client import DirectionsClient, DirectionsError


def _decode(encoded: str) -> list[GeoPoint]:
    try:
        return decode_path(encoded)
    except ValueError as exc:
        raise DirectionsError("INVALID_RESPONSE", f"Malformed polyline: {exc}") from exc


def step_to_model(step: NavigationStep) -> NavigationStepModel:
    indicator = classify_maneuver(step.maneuver)
    return NavigationStepModel(
        instruction=step.instruction,
        distance_text=step.distance.text,
        distance_m=step.distance.value,
        duration_text=step.duration.text,
        duration_s=step.duration.value,
        start_location=_point_model(step.start_location),
        end_location=_point_model(step.end_location),
        maneuver=step.maneuver,
        icon=indicator.icon,
        label=indicator.label,
        path=[_point_model(point) for point in _decode(step.polyline)] if step.polyline else [],
    )


def get_directions(payload: DirectionsRequest) -> DirectionsResponse:
    client = DirectionsClient()
    result = client.get_directions(
        _point(payload.origin),
        _point(payload.destination),
        [_point(point) for point in payload.waypoints],
    )

    current_step_index = None
    if payload.position is not None:
        nearest = find_nearest_step(_point(payload.position), result.steps)
        if nearest is not None:
            current_step_index = nearest[1]

    return DirectionsResponse(
        steps=[step_to_model(step) for step in result.steps],
        total_distance_m=result.total_distance_m,
        total_duration_s=result.total_duration_s,
        overview_path=[_point_model(point) for point in _decode(result.overview_polyline)],
        current_step_index=current_step_index,
    )
