"""Navigation and location schemas."""

from __future__ import annotations

from typing import List, Literal, Optional

from pydantic import BaseModel, Field

from .routing import GeoPointModel, StopModel


class NavigationStartRequest(BaseModel):
    start: Optional[GeoPointModel] = Field(default=None, description="Driver position used when optimizing.")
    optimize: bool = Field(default=True, description="Sequence pending stops from the start position.")


class ArrivalModel(BaseModel):
    stop_id: str
    index: int
    distance_km: float
    final: bool


class ArrivalResolutionRequest(BaseModel):
    status: Literal["completed", "skipped"]
    notes: Optional[str] = None


class NavigationStateResponse(BaseModel):
    route_id: str
    state: str
    current_index: int
    total_stops: int
    current_stop: Optional[StopModel] = None
    last_position: Optional[GeoPointModel] = None
    pending_arrival: Optional[ArrivalModel] = None


class LocationUpdateResponse(BaseModel):
    delivered: int
    navigation: List[NavigationStateResponse]
