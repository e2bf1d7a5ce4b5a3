"""HTTP client for the route backend.

The backend exposes tRPC procedures under ``/api/trpc``: queries are GET requests
with a JSON ``input`` query parameter, mutations are POST requests, and both
wrap their payloads in a ``{"json": ...}`` envelope. Calls are not retried here;
callers decide whether to try again.
"""

from __future__ import annotations

import json
import logging
import math
from datetime import datetime, timezone
from typing import Any, Optional, Sequence

import httpx

from ..config import settings
from ..models.domain import GeoPoint, OrderedStopPair, Route, RouteStatus, Stop, StopStatus
from ..persistence.session_store import SessionStore

logger = logging.getLogger(__name__)

TRPC_PATH = "/api/trpc"


class RepositoryError(Exception):
    """A backend call failed or returned an unusable payload."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class AuthenticationError(RepositoryError):
    """Credentials were rejected or no session is available."""


def _coerce_float(value: Any) -> float:
    if value is None or value == "":
        return math.nan
    if isinstance(value, (int, float)):
        return float(value)
    try:
        return float(str(value).replace(",", ""))
    except ValueError:
        logger.warning(f"Unable to parse coordinate value '{value}'")
        return math.nan


def _optional_str(value: Any) -> Optional[str]:
    if value is None:
        return None
    text = str(value).strip()
    return text or None


def _parse_enum(enum_type, value: Any, default):
    try:
        return enum_type(str(value).strip().lower())
    except ValueError:
        logger.warning(f"Unknown {enum_type.__name__} '{value}', using '{default.value}'")
        return default


def stop_from_payload(payload: dict, route_id: str | None = None) -> Stop:
    optimized = payload.get("optimizedOrder")
    return Stop(
        id=str(payload["id"]),
        route_id=str(payload.get("routeId") or route_id or ""),
        location=GeoPoint(
            latitude=_coerce_float(payload.get("latitude")),
            longitude=_coerce_float(payload.get("longitude")),
        ),
        stop_order=int(payload.get("stopOrder") or 0),
        client_id=_optional_str(payload.get("clientId")),
        client_name=_optional_str(payload.get("clientName")),
        client_sku=_optional_str(payload.get("clientSku")),
        address=_optional_str(payload.get("address")),
        optimized_order=int(optimized) if optimized is not None else None,
        status=_parse_enum(StopStatus, payload.get("status") or "pending", StopStatus.PENDING),
        completed_at=_optional_str(payload.get("completedAt")),
        notes=_optional_str(payload.get("notes")),
    )


def route_from_payload(payload: dict) -> Route:
    route_id = str(payload["id"])
    stops = tuple(stop_from_payload(item, route_id) for item in payload.get("stops") or [])
    return Route(
        id=route_id,
        name=str(payload.get("name") or ""),
        status=_parse_enum(RouteStatus, payload.get("status") or "pending", RouteStatus.PENDING),
        driver_id=_optional_str(payload.get("driverId")),
        driver_name=_optional_str(payload.get("driverName")),
        route_date=_optional_str(payload.get("routeDate")),
        total_stops=int(payload.get("totalStops") or len(stops)),
        completed_stops=int(payload.get("completedStops") or 0),
        stops=stops,
    )


def _error_message(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text[:200] or f"HTTP {response.status_code}"
    error = body.get("error") if isinstance(body, dict) else None
    if isinstance(error, dict):
        nested = error.get("json")
        if isinstance(nested, dict) and nested.get("message"):
            return str(nested["message"])
        if error.get("message"):
            return str(error["message"])
    return f"HTTP {response.status_code}"


class RouteRepository:
    def __init__(
        self,
        base_url: str | None = None,
        session_store: SessionStore | None = None,
        timeout: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = (base_url or settings.backend_base_url).rstrip("/")
        if not self.base_url:
            raise ValueError("Route backend URL is not configured.")
        self.session_store = session_store or SessionStore()
        self.timeout = timeout if timeout is not None else settings.backend_timeout_seconds
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        return httpx.Client(
            base_url=f"{self.base_url}{TRPC_PATH}",
            timeout=httpx.Timeout(self.timeout, connect=10.0),
            transport=self._transport,
        )

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json"}
        token = self.session_store.load()
        if token:
            headers["Cookie"] = f"session={token}"
        return headers

    def _send(self, method: str, procedure: str, payload: dict) -> Any:
        client = self._get_client()
        try:
            if method == "GET":
                response = client.get(
                    f"/{procedure}",
                    params={"input": json.dumps({"json": payload})},
                    headers=self._headers(),
                )
            else:
                response = client.post(f"/{procedure}", json={"json": payload}, headers=self._headers())
        except httpx.HTTPError as exc:
            logger.error(f"Route backend call {procedure} failed: {exc}")
            raise RepositoryError(f"Route backend is not reachable: {exc}") from exc
        finally:
            client.close()

        if response.status_code in (401, 403):
            raise AuthenticationError(_error_message(response), status_code=response.status_code)
        if response.is_error:
            message = _error_message(response)
            logger.error(f"Route backend call {procedure} returned {response.status_code}: {message}")
            raise RepositoryError(message, status_code=response.status_code)

        try:
            body = response.json()
        except ValueError as exc:
            raise RepositoryError(f"Invalid JSON from route backend for {procedure}") from exc
        return (body.get("result") or {}).get("data") if isinstance(body, dict) else None

    def login(self, phone_number: str, password: str) -> dict:
        """Exchange driver credentials for a session token and persist it."""
        try:
            data = self._send("POST", "driver.login", {"phoneNumber": phone_number, "password": password})
        except AuthenticationError:
            raise
        except RepositoryError as exc:
            if exc.status_code is not None and 400 <= exc.status_code < 500:
                raise AuthenticationError(str(exc), status_code=exc.status_code) from exc
            raise
        if isinstance(data, dict) and isinstance(data.get("json"), dict):
            data = data["json"]
        if not isinstance(data, dict) or not data.get("success") or not data.get("token"):
            raise AuthenticationError("Invalid credentials")
        self.session_store.save(str(data["token"]))
        logger.info(f"Driver {phone_number} logged in")
        return data

    def logout(self) -> None:
        self.session_store.clear()

    def list_routes(self) -> list[Route]:
        data = self._send("GET", "route.getRoutes", {})
        items = (data or {}).get("json") or []
        return [route_from_payload(item) for item in items]

    def get_route_details(self, route_id: str) -> Route:
        data = self._send("GET", "route.getRouteDetails", {"routeId": route_id})
        payload = (data or {}).get("json")
        if not payload:
            raise LookupError(f"Route {route_id} not found")
        return route_from_payload(payload)

    def update_route_status(self, route_id: str, status: RouteStatus) -> None:
        self._send("POST", "route.updateRouteStatus", {"routeId": route_id, "status": status.value})

    def complete_stop(self, stop_id: str, notes: str | None = None) -> None:
        self._send("POST", "route.completeStop", {"stopId": stop_id, "notes": notes})

    def save_optimized_order(self, route_id: str, pairs: Sequence[OrderedStopPair]) -> None:
        optimized_order = [{"stopId": pair.stop_id, "order": pair.order} for pair in pairs]
        self._send("POST", "route.saveOptimizedRoute", {"routeId": route_id, "optimizedOrder": optimized_order})

    def delete_route(self, route_id: str) -> None:
        self._send("POST", "route.deleteRoute", {"routeId": route_id})

    def update_location(
        self,
        point: GeoPoint,
        accuracy: float | None = None,
        timestamp: datetime | None = None,
    ) -> None:
        moment = timestamp or datetime.now(timezone.utc)
        self._send(
            "POST",
            "driver.updateLocation",
            {
                "latitude": point.latitude,
                "longitude": point.longitude,
                "accuracy": accuracy or 0,
                "timestamp": moment.isoformat(),
            },
        )

    def check_health(self) -> bool:
        """Return True when the backend answers HTTP requests at all."""
        try:
            with httpx.Client(timeout=5.0, transport=self._transport) as client:
                response = client.get(self.base_url)
            return response.status_code < 500
        except httpx.HTTPError:
            return False
