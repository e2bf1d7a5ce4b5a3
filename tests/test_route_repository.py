import json
import math
from pathlib import Path

import httpx
import pytest

from driver_routes.data.route_repository import AuthenticationError, RepositoryError, RouteRepository
from driver_routes.models.domain import GeoPoint, OrderedStopPair, RouteStatus, StopStatus
from driver_routes.persistence.session_store import SessionStore

BASE_URL = "https://backend.test"

ROUTE_PAYLOAD = {
    "id": 7,
    "name": "Centro",
    "driverId": 3,
    "driverName": "Driver",
    "status": "in_progress",
    "routeDate": "2026-10-19",
    "totalStops": 2,
    "completedStops": 1,
    "stops": [
        {
            "id": 70,
            "routeId": 7,
            "clientId": "C-1",
            "clientName": "Tienda Uno",
            "clientSku": "SKU-1",
            "address": "Calle 1",
            "latitude": "19.4326",
            "longitude": "-99.1332",
            "stopOrder": 1,
            "optimizedOrder": 2,
            "status": "completed",
        },
        {
            "id": 71,
            "clientName": "Tienda Dos",
            "latitude": None,
            "longitude": -99.2,
            "stopOrder": 2,
            "status": "pending",
        },
    ],
}


class Recorder:
    def __init__(self, responder):
        self.requests: list[httpx.Request] = []
        self.responder = responder

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.responder(request)


def _repository(tmp_path: Path, responder) -> tuple[RouteRepository, Recorder]:
    recorder = Recorder(responder)
    repository = RouteRepository(
        base_url=BASE_URL,
        session_store=SessionStore(root=tmp_path),
        transport=httpx.MockTransport(recorder),
    )
    return repository, recorder


def _ok(data) -> httpx.Response:
    return httpx.Response(200, json={"result": {"data": data}})


def test_login_persists_token_and_sends_cookie(tmp_path: Path):
    def responder(request: httpx.Request) -> httpx.Response:
        if request.url.path.endswith("driver.login"):
            return _ok({"success": True, "token": "tok-123", "driver": {"id": 3}})
        return _ok({"json": []})

    repository, recorder = _repository(tmp_path, responder)
    data = repository.login("5550001111", "secret")

    assert data["driver"] == {"id": 3}
    login_request = recorder.requests[0]
    assert login_request.method == "POST"
    assert login_request.url.path == "/api/trpc/driver.login"
    assert json.loads(login_request.content) == {"json": {"phoneNumber": "5550001111", "password": "secret"}}
    assert SessionStore(root=tmp_path).load() == "tok-123"

    repository.list_routes()
    assert recorder.requests[1].headers["Cookie"] == "session=tok-123"


def test_login_rejected(tmp_path: Path):
    repository, _ = _repository(tmp_path, lambda request: _ok({"success": False}))
    with pytest.raises(AuthenticationError):
        repository.login("5550001111", "wrong")
    assert SessionStore(root=tmp_path).load() is None


def test_login_error_message_from_trpc(tmp_path: Path):
    def responder(request):
        return httpx.Response(400, json={"error": {"json": {"message": "Contraseña incorrecta"}}})

    repository, _ = _repository(tmp_path, responder)
    with pytest.raises(AuthenticationError, match="Contraseña incorrecta"):
        repository.login("5550001111", "wrong")


def test_list_routes_parses_payload(tmp_path: Path):
    repository, recorder = _repository(tmp_path, lambda request: _ok({"json": [ROUTE_PAYLOAD]}))
    routes = repository.list_routes()

    request = recorder.requests[0]
    assert request.method == "GET"
    assert request.url.path == "/api/trpc/route.getRoutes"
    assert json.loads(request.url.params["input"]) == {"json": {}}

    route = routes[0]
    assert route.id == "7"
    assert route.status is RouteStatus.IN_PROGRESS
    assert route.completed_stops == 1
    first, second = route.stops
    assert first.id == "70"
    assert first.location == GeoPoint(19.4326, -99.1332)
    assert first.optimized_order == 2
    assert first.status is StopStatus.COMPLETED
    assert second.route_id == "7"
    assert math.isnan(second.location.latitude)


def test_get_route_details(tmp_path: Path):
    repository, recorder = _repository(tmp_path, lambda request: _ok({"json": ROUTE_PAYLOAD}))
    route = repository.get_route_details("7")
    assert route.name == "Centro"
    assert json.loads(recorder.requests[0].url.params["input"]) == {"json": {"routeId": "7"}}


def test_get_route_details_missing(tmp_path: Path):
    repository, _ = _repository(tmp_path, lambda request: _ok({"json": None}))
    with pytest.raises(LookupError):
        repository.get_route_details("404")


def test_mutations_send_expected_payloads(tmp_path: Path):
    repository, recorder = _repository(tmp_path, lambda request: _ok({"json": {"success": True}}))

    repository.update_route_status("7", RouteStatus.IN_PROGRESS)
    repository.complete_stop("70", "Left at the door")
    repository.save_optimized_order("7", [OrderedStopPair("71", 1), OrderedStopPair("70", 2)])
    repository.delete_route("7")

    calls = [(request.url.path.rsplit("/", 1)[-1], json.loads(request.content)) for request in recorder.requests]
    assert calls == [
        ("route.updateRouteStatus", {"json": {"routeId": "7", "status": "in_progress"}}),
        ("route.completeStop", {"json": {"stopId": "70", "notes": "Left at the door"}}),
        (
            "route.saveOptimizedRoute",
            {"json": {"routeId": "7", "optimizedOrder": [{"stopId": "71", "order": 1}, {"stopId": "70", "order": 2}]}},
        ),
        ("route.deleteRoute", {"json": {"routeId": "7"}}),
    ]


def test_server_error_raises_repository_error(tmp_path: Path):
    def responder(request):
        return httpx.Response(500, json={"error": {"json": {"message": "boom"}}})

    repository, _ = _repository(tmp_path, responder)
    with pytest.raises(RepositoryError) as excinfo:
        repository.complete_stop("70")
    assert str(excinfo.value) == "boom"
    assert excinfo.value.status_code == 500


def test_unauthorized_raises_authentication_error(tmp_path: Path):
    repository, _ = _repository(tmp_path, lambda request: httpx.Response(401, json={}))
    with pytest.raises(AuthenticationError):
        repository.list_routes()


def test_network_failure_is_not_retried(tmp_path: Path):
    def responder(request):
        raise httpx.ConnectError("connection refused", request=request)

    repository, recorder = _repository(tmp_path, responder)
    with pytest.raises(RepositoryError):
        repository.list_routes()
    assert len(recorder.requests) == 1


def test_update_location_payload(tmp_path: Path):
    repository, recorder = _repository(tmp_path, lambda request: _ok({"json": {"success": True}}))
    repository.update_location(GeoPoint(19.43, -99.13), accuracy=12.5)

    body = json.loads(recorder.requests[0].content)["json"]
    assert recorder.requests[0].url.path == "/api/trpc/driver.updateLocation"
    assert body["latitude"] == 19.43
    assert body["longitude"] == -99.13
    assert body["accuracy"] == 12.5
    assert body["timestamp"]
