"""Turn-by-turn directions services."""

from .client import DirectionsClient, DirectionsError, DirectionsResult, parse_directions

__all__ = ["DirectionsClient", "DirectionsError", "DirectionsResult", "parse_directions"]
