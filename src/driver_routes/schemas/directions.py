"""Directions request/response schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from .routing import GeoPointModel


class DirectionsRequest(BaseModel):
    origin: GeoPointModel
    destination: GeoPointModel
    waypoints: List[GeoPointModel] = Field(default_factory=list)
    position: Optional[GeoPointModel] = Field(default=None, description="Current position for nearest-step lookup.")


class NavigationStepModel(BaseModel):
    instruction: str
    distance_text: str
    distance_m: float
    duration_text: str
    duration_s: float
    start_location: GeoPointModel
    end_location: GeoPointModel
    maneuver: Optional[str] = None
    icon: str
    label: str
    path: List[GeoPointModel]


class DirectionsResponse(BaseModel):
    steps: List[NavigationStepModel]
    total_distance_m: float
    total_duration_s: float
    overview_path: List[GeoPointModel]
    current_step_index: Optional[int] = None
