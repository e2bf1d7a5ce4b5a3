"""Routing request/response schemas."""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from ..models.domain import RouteStatus, StopStatus


class GeoPointModel(BaseModel):
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)


class StopModel(BaseModel):
    id: str
    route_id: str = ""
    latitude: float
    longitude: float
    stop_order: int = 0
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    client_sku: Optional[str] = None
    address: Optional[str] = None
    optimized_order: Optional[int] = None
    status: StopStatus = StopStatus.PENDING
    completed_at: Optional[str] = None
    notes: Optional[str] = None


class RouteModel(BaseModel):
    id: str
    name: str
    status: RouteStatus
    driver_id: Optional[str] = None
    driver_name: Optional[str] = None
    route_date: Optional[str] = None
    total_stops: int = 0
    completed_stops: int = 0
    stops: List[StopModel] = Field(default_factory=list)


class OptimizeRequest(BaseModel):
    stops: List[StopModel]
    start: Optional[GeoPointModel] = Field(default=None, description="Driver position to start the tour from.")


class RouteOptimizeRequest(BaseModel):
    start: Optional[GeoPointModel] = Field(default=None, description="Driver position to start the tour from.")
    persist: bool = Field(default=False, description="Save the resulting order to the route backend.")


class RoutePlanResponse(BaseModel):
    route_id: Optional[str] = None
    stops: List[StopModel]
    rejected_stop_ids: List[str]
    total_distance_km: float
    navigation_url: str
    persisted: bool = False


class SaveOrderRequest(BaseModel):
    stop_ids: List[str] = Field(..., min_length=1, description="Stop ids in visiting order.")


class RouteStatusUpdate(BaseModel):
    status: RouteStatus


class StartRouteRequest(BaseModel):
    start: Optional[GeoPointModel] = None


class StartRouteResponse(BaseModel):
    route_id: str
    status: RouteStatus
    navigation_url: str


class CompleteStopRequest(BaseModel):
    notes: Optional[str] = None
