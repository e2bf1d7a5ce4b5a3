"""Route group exports."""

from . import auth, directions, health, location, navigation, routes

__all__ = ["auth", "directions", "health", "location", "navigation", "routes"]
