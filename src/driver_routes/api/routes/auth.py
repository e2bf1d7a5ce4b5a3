"""Driver authentication endpoints."""

from __future__ import annotations

import logging

from fastapi import APIRouter, HTTPException, Request, status

from ...data.route_repository import RouteRepository
from ...schemas.auth import LoginRequest, LoginResponse
from ...services.location.reporter import LocationReporter
from ..errors import to_http_exception

router = APIRouter(prefix="/auth", tags=["auth"])
logger = logging.getLogger(__name__)


@router.post("/login", response_model=LoginResponse, status_code=status.HTTP_200_OK)
def login(payload: LoginRequest, request: Request) -> LoginResponse:
    """Log the driver in and start forwarding their positions to the backend."""
    try:
        repository = RouteRepository()
        data = repository.login(payload.phone_number, payload.password)
    except Exception as exc:
        raise to_http_exception(exc, "log in") from exc

    state = request.app.state
    if state.reporter is not None:
        state.reporter.stop()
    state.reporter = LocationReporter(repository, state.position_feed)
    state.reporter.start()

    driver = data.get("driver") if isinstance(data.get("driver"), dict) else {}
    return LoginResponse(success=True, driver=driver)


@router.post("/logout", status_code=status.HTTP_200_OK)
def logout(request: Request) -> dict:
    state = request.app.state
    try:
        state.navigation.clear()
        if state.reporter is not None:
            state.reporter.stop()
            state.reporter = None
        RouteRepository().logout()
    except HTTPException:
        raise
    except Exception as exc:
        raise to_http_exception(exc, "log out") from exc
    return {"success": True}
