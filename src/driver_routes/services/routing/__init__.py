"""Stop sequencing services."""

from .sequencer import (
    build_navigation_link,
    filter_valid_stops,
    optimize_order,
    optimized_order_pairs,
    sequence_stops,
    total_distance_km,
    usable_start,
)

__all__ = [
    "optimize_order",
    "total_distance_km",
    "build_navigation_link",
    "filter_valid_stops",
    "optimized_order_pairs",
    "sequence_stops",
    "usable_start",
]
