"""HTTP client for the turn-by-turn directions service."""

from __future__ import annotations

import html
import logging
import re
import time
from dataclasses import dataclass, field
from typing import Sequence

import httpx

from ...config import settings
from ...models.domain import GeoPoint, NavigationStep, TextValue
from ..navigation.polyline import decode_path

logger = logging.getLogger(__name__)

_TAG_PATTERN = re.compile(r"<[^>]*>")


class DirectionsError(Exception):
    """The directions service returned an error status or could not be reached."""

    def __init__(self, status: str, message: str = "") -> None:
        self.status = status
        self.message = message
        super().__init__(f"Directions {status}: {message}" if message else f"Directions {status}")


@dataclass(slots=True)
class DirectionsResult:
    steps: list[NavigationStep]
    total_distance_m: float
    total_duration_s: float
    overview_polyline: str
    legs: list[dict] = field(default_factory=list)

    @property
    def overview_path(self) -> list[GeoPoint]:
        return decode_path(self.overview_polyline) if self.overview_polyline else []


def clean_html_instructions(value: str) -> str:
    """Strip markup from an HTML instruction and collapse whitespace."""
    text = _TAG_PATTERN.sub(" ", value or "")
    text = html.unescape(text).replace("\xa0", " ")
    return " ".join(text.split())


def _text_value(payload: dict | None) -> TextValue:
    payload = payload or {}
    return TextValue(text=str(payload.get("text") or ""), value=float(payload.get("value") or 0))


def _point(payload: dict) -> GeoPoint:
    return GeoPoint(latitude=float(payload["lat"]), longitude=float(payload["lng"]))


def parse_directions(data: dict) -> DirectionsResult:
    """Convert a directions JSON payload into domain objects.

    Steps from every leg are concatenated in travel order.
    """
    routes = data.get("routes") or []
    if not routes:
        raise DirectionsError("ZERO_RESULTS", "No route found")

    route = routes[0]
    legs = route.get("legs") or []
    steps: list[NavigationStep] = []
    total_distance = 0.0
    total_duration = 0.0
    for leg in legs:
        total_distance += float((leg.get("distance") or {}).get("value") or 0)
        total_duration += float((leg.get("duration") or {}).get("value") or 0)
        for step in leg.get("steps") or []:
            steps.append(
                NavigationStep(
                    instruction=clean_html_instructions(step.get("html_instructions", "")),
                    distance=_text_value(step.get("distance")),
                    duration=_text_value(step.get("duration")),
                    start_location=_point(step["start_location"]),
                    end_location=_point(step["end_location"]),
                    polyline=(step.get("polyline") or {}).get("points", ""),
                    maneuver=step.get("maneuver"),
                )
            )

    return DirectionsResult(
        steps=steps,
        total_distance_m=total_distance,
        total_duration_s=total_duration,
        overview_polyline=(route.get("overview_polyline") or {}).get("points", ""),
        legs=legs,
    )


class DirectionsClient:
    def __init__(
        self,
        base_url: str | None = None,
        api_key: str | None = None,
        timeout: float = 30.0,
        max_retries: int | None = None,
        backoff_seconds: float | None = None,
        transport: httpx.BaseTransport | None = None,
    ) -> None:
        self.base_url = base_url or settings.directions_base_url
        self.api_key = api_key or settings.directions_api_key
        if not self.api_key:
            raise DirectionsError("REQUEST_DENIED", "Directions API key is not configured.")
        self.timeout = timeout
        self.max_retries = max_retries if max_retries is not None else settings.directions_max_retries
        self.backoff_seconds = backoff_seconds if backoff_seconds is not None else settings.directions_backoff_seconds
        self._transport = transport

    def _get_client(self) -> httpx.Client:
        return httpx.Client(timeout=httpx.Timeout(self.timeout, connect=10.0), transport=self._transport)

    def get_directions(
        self,
        origin: GeoPoint,
        destination: GeoPoint,
        waypoints: Sequence[GeoPoint] | None = None,
    ) -> DirectionsResult:
        """Request driving directions through the optional waypoints."""
        params = {
            "origin": origin.as_pair(),
            "destination": destination.as_pair(),
            "mode": "driving",
            "traffic_model": "best_guess",
            "departure_time": "now",
            "key": self.api_key,
        }
        if waypoints:
            params["waypoints"] = "optimize:true|" + "|".join(point.as_pair() for point in waypoints)

        client = self._get_client()
        try:
            attempt = 0
            while True:
                try:
                    response = client.get(self.base_url, params=params)
                    response.raise_for_status()
                    data = response.json()
                    break
                except (httpx.TimeoutException, httpx.NetworkError) as e:
                    attempt += 1
                    if attempt > self.max_retries:
                        logger.warning(f"Directions request failed after {self.max_retries} retries: {e}")
                        raise DirectionsError("UNAVAILABLE", str(e)) from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"Directions network error, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                    time.sleep(wait_time)
                except httpx.HTTPStatusError as e:
                    if e.response.status_code < 500:
                        raise DirectionsError("REQUEST_DENIED", f"HTTP {e.response.status_code}") from e
                    attempt += 1
                    if attempt > self.max_retries:
                        raise DirectionsError("UNKNOWN_ERROR", f"HTTP {e.response.status_code}") from e
                    wait_time = self.backoff_seconds * (2 ** (attempt - 1))
                    logger.debug(f"Directions returned HTTP {e.response.status_code}, retrying in {wait_time:.1f}s (attempt {attempt}/{self.max_retries})")
                    time.sleep(wait_time)
                except ValueError as e:
                    raise DirectionsError("INVALID_RESPONSE", "Response body is not JSON") from e
        finally:
            client.close()

        status = data.get("status")
        if status != "OK":
            logger.info(f"Directions error: status={status} message={data.get('error_message', '')}")
            raise DirectionsError(str(status), data.get("error_message", ""))

        result = parse_directions(data)
        logger.info(
            f"Directions returned {len(result.steps)} steps, "
            f"{result.total_distance_m / 1000:.1f} km / {result.total_duration_s / 60:.0f} min"
        )
        return result
