"""
API endpoint tests
FastAPI TestClient over an orchestrator backed by in-memory SQLite
"""

import pytest
from fastapi.testclient import TestClient

from cylinder_monitor.main import create_app
from cylinder_monitor.orchestrators import MonitorOrchestrator


@pytest.fixture
def client(test_settings):
    app = create_app(test_settings)
    with TestClient(app) as test_client:
        yield test_client


def _add(client, name="Butane", tare=5.0, capacity=10.0, make_active=True):
    response = client.post(
        "/api/cylinders",
        json={"name": name, "tare_kg": tare, "capacity_kg": capacity, "make_active": make_active},
    )
    assert response.status_code == 201
    return response.json()["id"]


class TestHealth:
    def test_health(self, client):
        response = client.get("/api/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["database"] == "ok"
        assert data["active_cylinder_id"] is None


class TestCylinderEndpoints:
    """Test /cylinders"""

    def test_create_and_list(self, client):
        first = _add(client, "First", make_active=False)
        second = _add(client, "Second", make_active=True)

        listed = client.get("/api/cylinders").json()

        assert {c["id"] for c in listed} == {first, second}
        assert [c["id"] for c in listed if c["is_active"]] == [second]

    def test_validation_error_maps_to_422(self, client):
        response = client.post(
            "/api/cylinders", json={"name": "  ", "tare_kg": 1, "capacity_kg": 1}
        )

        assert response.status_code == 422
        assert response.json()["detail"]["message"] == "Name cannot be empty"

    def test_active_none(self, client):
        response = client.get("/api/cylinders/active")

        assert response.status_code == 200
        assert response.json() is None

    def test_activate(self, client):
        first = _add(client, "First", make_active=True)
        second = _add(client, "Second", make_active=False)

        response = client.post(f"/api/cylinders/{second}/activate")

        assert response.status_code == 200
        assert response.json()["is_active"] is True
        assert client.get("/api/cylinders/active").json()["id"] == second
        assert client.get(f"/api/cylinders/{first}").json()["is_active"] is False

    def test_activate_unknown_is_404(self, client):
        response = client.post("/api/cylinders/999/activate")

        assert response.status_code == 404
        assert response.json()["detail"]["code"] == "not_found"

    def test_delete_inactive(self, client):
        _add(client, "Old", make_active=False)
        keep = _add(client, "Current", make_active=True)

        response = client.delete("/api/cylinders/inactive")

        assert response.json() == {"deleted": 1}
        assert [c["id"] for c in client.get("/api/cylinders").json()] == [keep]

    def test_delete_inactive_without_active_is_409(self, client):
        _add(client, "Idle", make_active=False)

        response = client.delete("/api/cylinders/inactive")

        assert response.status_code == 409


class TestMeasurementEndpoints:
    """Test /measurements"""

    def test_realtime_without_active_is_409(self, client):
        response = client.post("/api/measurements/realtime", json={"total_weight_kg": 12.0})

        assert response.status_code == 409
        assert response.json()["detail"]["message"] == "No active cylinder configured"

    def test_realtime_saved(self, client):
        _add(client)

        response = client.post(
            "/api/measurements/realtime", json={"total_weight_kg": 12.0, "timestamp": 1000}
        )

        body = response.json()
        assert response.status_code == 200
        assert body["processed"] is True
        latest = client.get("/api/measurements/latest").json()
        assert latest["fuel_kilograms"] == pytest.approx(7.0)
        assert latest["fuel_percentage"] == pytest.approx(70.0)

    def test_outlier_removed_through_api(self, client):
        _add(client)
        for i, weight in enumerate([11.5, 6.0, 12.0, 11.8]):
            client.post(
                "/api/measurements/realtime",
                json={"total_weight_kg": weight, "timestamp": 1000 + i * 1000},
            )

        stored = client.get("/api/measurements", params={"start": 0, "end": 10_000}).json()

        assert [m["total_weight_kg"] for m in stored] == [11.5, 12.0, 11.8]

    def test_historical_import(self, client):
        cylinder_id = _add(client)

        response = client.post(
            f"/api/measurements/historical/{cylinder_id}",
            json={
                "samples": [
                    {"total_weight_kg": 12.0, "timestamp": 1000},
                    {"total_weight_kg": 50.0, "timestamp": 2000},
                ]
            },
        )

        assert response.json() == {"inserted": 2}

    def test_historical_unknown_cylinder_is_404(self, client):
        response = client.post(
            "/api/measurements/historical/77",
            json={"samples": [{"total_weight_kg": 12.0, "timestamp": 1000}]},
        )

        assert response.status_code == 404

    def test_inverted_range_is_422(self, client):
        response = client.get("/api/measurements", params={"start": 10, "end": 5})

        assert response.status_code == 422


class TestConsumptionEndpoints:
    """Test /consumption"""

    def test_summary_over_refill(self, client):
        cylinder_id = _add(client, capacity=20.0)
        samples = [
            {"total_weight_kg": w, "timestamp": 1000 + i * 60_000}
            for i, w in enumerate([20.0, 17.0, 14.0, 24.0, 22.0])
        ]
        client.post(f"/api/measurements/historical/{cylinder_id}", json={"samples": samples})

        response = client.get("/api/consumption/summary", params={"start": 0, "end": 10_000_000})

        data = response.json()
        assert data["total_consumed_kg"] == pytest.approx(8.0)
        assert data["measurement_count"] == 5
        assert data["chart"][0]["day"] == "1970-01-01"

    def test_chart(self, client):
        cylinder_id = _add(client)
        client.post(
            f"/api/measurements/historical/{cylinder_id}",
            json={"samples": [{"total_weight_kg": 14.0, "timestamp": 0}, {"total_weight_kg": 12.0, "timestamp": 1}]},
        )

        chart = client.get("/api/consumption/chart", params={"period": "all"}).json()

        assert chart == [{"day": "1970-01-01", "kilograms": 2.0}]

    def test_unknown_period_rejected(self, client):
        response = client.get("/api/consumption/summary", params={"period": "year"})

        assert response.status_code == 422


class TestInjectedOrchestrator:
    def test_engine_not_disposed_when_injected(self, test_settings, engine):
        orchestrator = MonitorOrchestrator(test_settings, engine=engine)

        with TestClient(create_app(test_settings, orchestrator)) as client:
            assert client.get("/api/health").status_code == 200

        assert orchestrator._owns_engine is False
