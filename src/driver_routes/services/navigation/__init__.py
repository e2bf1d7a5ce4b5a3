"""Navigation progress services."""

from .maneuvers import ManeuverIndicator, classify_maneuver
from .polyline import decode_path, encode_path
from .tracker import (
    ArrivalEvent,
    NavigationError,
    NavigationRegistry,
    NavigationSession,
    NavigationState,
    find_nearest_step,
    navigation_session,
)

__all__ = [
    "ArrivalEvent",
    "ManeuverIndicator",
    "NavigationError",
    "NavigationRegistry",
    "NavigationSession",
    "NavigationState",
    "classify_maneuver",
    "decode_path",
    "encode_path",
    "find_nearest_step",
    "navigation_session",
]
