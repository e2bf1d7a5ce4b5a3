from dataclasses import replace

import pytest
from fastapi.testclient import TestClient

from driver_routes.data.route_repository import RepositoryError
from driver_routes.main import create_app
from driver_routes.models.domain import GeoPoint, Route, RouteStatus, Stop


def _stop(sid: str, lat: float, lon: float, order: int) -> Stop:
    return Stop(
        id=sid,
        route_id="R1",
        location=GeoPoint(lat, lon),
        stop_order=order,
        client_name=f"Client {sid}",
        address=f"Street {order}",
    )


def _route(status: RouteStatus = RouteStatus.PENDING) -> Route:
    stops = (
        _stop("S1", 19.4326, -99.1332, 1),
        _stop("S2", 19.4270, -99.1677, 2),
        _stop("S3", 0.0, 0.0, 3),
        _stop("S4", 19.4400, -99.2000, 4),
    )
    return Route(
        id="R1",
        name="Centro",
        status=status,
        driver_id="D1",
        route_date="2026-10-19",
        total_stops=len(stops),
        stops=stops,
    )


class DummyRepository:
    def __init__(self, route: Route | None = None, fail: bool = False) -> None:
        self.route = route or _route()
        self.fail = fail
        self.saved_orders = []
        self.completed = []
        self.statuses = []
        self.deleted = []
        self.locations = []

    def _check(self):
        if self.fail:
            raise RepositoryError("backend unavailable", status_code=503)

    def login(self, phone_number, password):
        self._check()
        return {"success": True, "token": "tok", "driver": {"id": "D1", "name": "Driver"}}

    def logout(self):
        pass

    def list_routes(self):
        self._check()
        return [self.route]

    def get_route_details(self, route_id):
        self._check()
        if route_id != self.route.id:
            raise LookupError(f"Route {route_id} not found")
        return self.route

    def update_route_status(self, route_id, status):
        self.statuses.append((route_id, status))

    def complete_stop(self, stop_id, notes=None):
        self.completed.append((stop_id, notes))

    def save_optimized_order(self, route_id, pairs):
        self.saved_orders.append((route_id, [(pair.stop_id, pair.order) for pair in pairs]))

    def delete_route(self, route_id):
        self.deleted.append(route_id)

    def update_location(self, point, accuracy=None, timestamp=None):
        self.locations.append(point)


@pytest.fixture
def repository() -> DummyRepository:
    return DummyRepository()


@pytest.fixture
def api_client(repository: DummyRepository, monkeypatch: pytest.MonkeyPatch) -> TestClient:
    from driver_routes.api.routes import auth, navigation, routes

    for module in (auth, navigation, routes):
        monkeypatch.setattr(module, "RouteRepository", lambda: repository)
    from driver_routes.services.routing import service as routing_service

    monkeypatch.setattr(routing_service, "RouteRepository", lambda: repository)
    return TestClient(create_app())


def test_health(api_client: TestClient):
    response = api_client.get("/api/health")
    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_optimize_adhoc_stops(api_client: TestClient):
    payload = {
        "start": {"latitude": 0.01, "longitude": 0.001},
        "stops": [
            {"id": "C", "latitude": 0.5, "longitude": 3.0},
            {"id": "A", "latitude": 0.5, "longitude": 0.1},
            {"id": "B", "latitude": 0.5, "longitude": 1.0},
        ],
    }
    response = api_client.post("/api/routes/optimize", json=payload)
    assert response.status_code == 200
    body = response.json()
    assert [stop["id"] for stop in body["stops"]] == ["A", "B", "C"]
    assert [stop["optimized_order"] for stop in body["stops"]] == [1, 2, 3]
    assert body["total_distance_km"] > 0
    assert body["navigation_url"].startswith("https://www.google.com/maps/dir/?api=1&origin=0.01,0.001")


def test_list_and_get_routes(api_client: TestClient):
    routes = api_client.get("/api/routes").json()
    assert routes[0]["id"] == "R1"
    assert len(routes[0]["stops"]) == 4

    assert api_client.get("/api/routes/R1").json()["name"] == "Centro"
    assert api_client.get("/api/routes/NOPE").status_code == 404


def test_optimize_backend_route_and_persist(api_client: TestClient, repository: DummyRepository):
    response = api_client.post("/api/routes/R1/optimize", json={"persist": True})
    assert response.status_code == 200
    body = response.json()

    assert [stop["id"] for stop in body["stops"]] == ["S1", "S2", "S4"]
    assert body["rejected_stop_ids"] == ["S3"]
    assert body["persisted"] is True
    assert repository.saved_orders == [("R1", [("S1", 1), ("S2", 2), ("S4", 3)])]


def test_save_optimized_order_rejects_duplicates(api_client: TestClient, repository: DummyRepository):
    response = api_client.post("/api/routes/R1/optimized-order", json={"stop_ids": ["S1", "S1"]})
    assert response.status_code == 400
    assert repository.saved_orders == []

    response = api_client.post("/api/routes/R1/optimized-order", json={"stop_ids": ["S2", "S1"]})
    assert response.status_code == 200
    assert repository.saved_orders == [("R1", [("S2", 1), ("S1", 2)])]


def test_start_route_marks_in_progress(api_client: TestClient, repository: DummyRepository):
    response = api_client.post("/api/routes/R1/start", json={})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] == "in_progress"
    assert "origin=19.4326,-99.1332&destination=19.44,-99.2" in body["navigation_url"]
    assert "waypoints=19.427,-99.1677" in body["navigation_url"]
    assert repository.statuses == [("R1", RouteStatus.IN_PROGRESS)]


def test_start_route_ignores_placeholder_start(api_client: TestClient):
    response = api_client.post("/api/routes/R1/start", json={"start": {"latitude": 0, "longitude": 0}})
    assert response.status_code == 200
    url = response.json()["navigation_url"]
    assert "origin=19.4326,-99.1332&destination=19.44,-99.2" in url
    assert "0,0" not in url


def test_navigation_start_ignores_placeholder_start(api_client: TestClient, repository: DummyRepository):
    route = _route()
    repository.route = replace(route, stops=tuple(reversed(route.stops)))

    response = api_client.post(
        "/api/navigation/R1/start", json={"start": {"latitude": 0, "longitude": 0}, "optimize": True}
    )
    assert response.status_code == 200
    assert response.json()["current_stop"]["id"] == "S4"


def test_delete_route_requires_finished_status(api_client: TestClient, repository: DummyRepository):
    assert api_client.delete("/api/routes/R1").status_code == 409
    assert repository.deleted == []

    repository.route = _route(RouteStatus.COMPLETED)
    assert api_client.delete("/api/routes/R1").status_code == 200
    assert repository.deleted == ["R1"]


def test_complete_stop(api_client: TestClient, repository: DummyRepository):
    response = api_client.post("/api/stops/S1/complete", json={"notes": "Signed"})
    assert response.status_code == 200
    assert repository.completed == [("S1", "Signed")]


def test_backend_failure_maps_to_bad_gateway(monkeypatch: pytest.MonkeyPatch):
    from driver_routes.api.routes import routes

    failing = DummyRepository(fail=True)
    monkeypatch.setattr(routes, "RouteRepository", lambda: failing)
    client = TestClient(create_app())
    response = client.get("/api/routes")
    assert response.status_code == 502
    assert "backend unavailable" in response.json()["detail"]


def test_navigation_flow(api_client: TestClient, repository: DummyRepository):
    response = api_client.post("/api/navigation/R1/start", json={"optimize": False})
    assert response.status_code == 200
    state = response.json()
    assert state["state"] == "navigating"
    assert state["total_stops"] == 3
    assert state["current_stop"]["id"] == "S1"

    assert api_client.post("/api/navigation/R1/start", json={}).status_code == 409

    far = api_client.post("/api/location", json={"latitude": 19.5, "longitude": -99.0}).json()
    assert far["delivered"] == 1
    assert far["navigation"][0]["state"] == "navigating"

    arrived = api_client.post("/api/location", json={"latitude": 19.4326, "longitude": -99.1332}).json()
    session_state = arrived["navigation"][0]
    assert session_state["state"] == "arrived"
    assert session_state["pending_arrival"]["stop_id"] == "S1"
    assert session_state["pending_arrival"]["final"] is False

    response = api_client.post("/api/navigation/R1/arrival", json={"status": "completed", "notes": "ok"})
    assert response.status_code == 200
    assert response.json()["current_index"] == 1
    assert response.json()["state"] == "navigating"
    assert repository.completed == [("S1", "ok")]

    assert api_client.post("/api/navigation/R1/arrival", json={"status": "skipped"}).status_code == 409

    assert api_client.delete("/api/navigation/R1").status_code == 200
    assert api_client.get("/api/navigation/R1").status_code == 404


def test_skipped_arrival_does_not_complete_stop(api_client: TestClient, repository: DummyRepository):
    api_client.post("/api/navigation/R1/start", json={"optimize": False})
    api_client.post("/api/location", json={"latitude": 19.4326, "longitude": -99.1332})

    response = api_client.post("/api/navigation/R1/arrival", json={"status": "skipped"})
    assert response.status_code == 200
    assert response.json()["current_stop"]["id"] == "S2"
    assert repository.completed == []


def test_login_starts_location_reporting(api_client: TestClient, repository: DummyRepository):
    response = api_client.post("/api/auth/login", json={"phone_number": "5550001111", "password": "secret"})
    assert response.status_code == 200
    assert response.json()["driver"]["id"] == "D1"

    api_client.post("/api/location", json={"latitude": 19.43, "longitude": -99.13})
    assert repository.locations == [GeoPoint(19.43, -99.13)]

    assert api_client.post("/api/auth/logout").status_code == 200
    api_client.post("/api/location", json={"latitude": 19.44, "longitude": -99.14})
    assert len(repository.locations) == 1
