"""Domain models for routes, stops and navigation steps."""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional


class StopStatus(str, Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    SKIPPED = "skipped"


class RouteStatus(str, Enum):
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


@dataclass(frozen=True, slots=True)
class GeoPoint:
    """WGS84 coordinate in decimal degrees."""

    latitude: float
    longitude: float

    def as_pair(self) -> str:
        return f"{_format_number(self.latitude)},{_format_number(self.longitude)}"


@dataclass(frozen=True, slots=True)
class Stop:
    """A delivery stop on a route.

    Only ``status`` and ``optimized_order`` change after loading, and they do so
    through ``dataclasses.replace`` so the original route list is never mutated.
    """

    id: str
    route_id: str
    location: GeoPoint
    stop_order: int
    client_id: Optional[str] = None
    client_name: Optional[str] = None
    client_sku: Optional[str] = None
    address: Optional[str] = None
    optimized_order: Optional[int] = None
    status: StopStatus = StopStatus.PENDING
    completed_at: Optional[str] = None
    notes: Optional[str] = None


@dataclass(frozen=True, slots=True)
class Route:
    """Represents a driver route with its stops as fetched from the backend."""

    id: str
    name: str
    status: RouteStatus
    driver_id: Optional[str] = None
    driver_name: Optional[str] = None
    route_date: Optional[str] = None
    total_stops: int = 0
    completed_stops: int = 0
    stops: tuple[Stop, ...] = field(default_factory=tuple)


@dataclass(frozen=True, slots=True)
class OrderedStopPair:
    stop_id: str
    order: int


@dataclass(frozen=True, slots=True)
class TextValue:
    """Human readable text paired with its numeric value (metres or seconds)."""

    text: str
    value: float


@dataclass(frozen=True, slots=True)
class NavigationStep:
    instruction: str
    distance: TextValue
    duration: TextValue
    start_location: GeoPoint
    end_location: GeoPoint
    polyline: str
    maneuver: Optional[str] = None


def _format_number(value: float) -> str:
    # Same output as JavaScript's Number#toString: no trailing ".0" and plain
    # decimals down to 1e-6, so links match the mobile client.
    number = float(value)
    if number.is_integer():
        return str(int(number))
    if 1e-6 <= abs(number) < 1e21:
        return format(Decimal(repr(number)), "f")
    return repr(number)
