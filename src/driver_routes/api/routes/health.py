"""Health endpoints."""

from __future__ import annotations

from fastapi import APIRouter, status

from ...config import settings

router = APIRouter(tags=["health"])


@router.get("/health", status_code=status.HTTP_200_OK)
def health_root() -> dict:
    """Simple health check endpoint that doesn't require any dependencies."""
    return {"status": "ok"}


def _get_repository():
    """Lazy import to avoid startup failures."""
    from ...data.route_repository import RouteRepository
    return RouteRepository()


@router.get("/health/backend", status_code=status.HTTP_200_OK)
def health_backend() -> dict:
    """Check that the route backend answers."""
    try:
        healthy = _get_repository().check_health()
        return {"service": "route-backend", "healthy": healthy}
    except Exception as e:
        return {"service": "route-backend", "healthy": False, "error": str(e)}


@router.get("/health/directions", status_code=status.HTTP_200_OK)
def health_directions() -> dict:
    """Report whether the directions service is configured."""
    return {"service": "directions", "configured": bool(settings.directions_api_key)}
