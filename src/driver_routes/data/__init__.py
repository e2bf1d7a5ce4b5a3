"""Route backend access."""

from .route_repository import AuthenticationError, RepositoryError, RouteRepository

__all__ = ["RouteRepository", "RepositoryError", "AuthenticationError"]
