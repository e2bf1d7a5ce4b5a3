"""Routing domain models."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Optional

from ...models.domain import GeoPoint, Stop


@dataclass(slots=True)
class RoutePlan:
    route_id: Optional[str]
    start: Optional[GeoPoint]
    stops: List[Stop]
    rejected_stop_ids: List[str]
    total_distance_km: float
    navigation_url: str
