"""Maneuver indicators for turn-by-turn steps."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Optional


@dataclass(frozen=True, slots=True)
class ManeuverIndicator:
    icon: str
    label: str


STRAIGHT_AHEAD = ManeuverIndicator(icon="⬆", label="Continue straight")

MANEUVER_INDICATORS: dict[str, ManeuverIndicator] = {
    "turn-left": ManeuverIndicator("↰", "Turn left"),
    "turn-right": ManeuverIndicator("↱", "Turn right"),
    "turn-slight-left": ManeuverIndicator("↖", "Slight left"),
    "turn-slight-right": ManeuverIndicator("↗", "Slight right"),
    "turn-sharp-left": ManeuverIndicator("⬅", "Sharp left"),
    "turn-sharp-right": ManeuverIndicator("➡", "Sharp right"),
    "uturn-left": ManeuverIndicator("↶", "U-turn left"),
    "uturn-right": ManeuverIndicator("↷", "U-turn right"),
    "straight": STRAIGHT_AHEAD,
    "ramp-left": ManeuverIndicator("↰", "Take the ramp on the left"),
    "ramp-right": ManeuverIndicator("↱", "Take the ramp on the right"),
    "merge": ManeuverIndicator("⤴", "Merge"),
    "fork-left": ManeuverIndicator("↖", "Keep left at the fork"),
    "fork-right": ManeuverIndicator("↗", "Keep right at the fork"),
    "keep-left": ManeuverIndicator("↖", "Keep left"),
    "keep-right": ManeuverIndicator("↗", "Keep right"),
    "roundabout-left": ManeuverIndicator("↺", "Enter the roundabout"),
    "roundabout-right": ManeuverIndicator("↻", "Enter the roundabout"),
}


def classify_maneuver(maneuver: Optional[str]) -> ManeuverIndicator:
    """Map a directions maneuver tag to its indicator; unknown tags mean straight ahead."""
    if not maneuver:
        return STRAIGHT_AHEAD
    return MANEUVER_INDICATORS.get(maneuver.strip().lower(), STRAIGHT_AHEAD)
