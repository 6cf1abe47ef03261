import inspect
from typing import Iterator

import pytest
from fastapi.routing import APIRoute
from fastapi.testclient import TestClient

from app.api import router
from app.main import create_app
from datastore.readings_store import ReadingStore, build_default_store
from models.tariffs import TariffConfig, build_default_tariffs
from services.calculators import GasCalculator, PowerCalculator, WaterCalculator
from services.consumption import ConsumptionService


@pytest.fixture
def api_client(tmp_path, monkeypatch, tariffs: TariffConfig) -> Iterator[TestClient]:
    store = ReadingStore(data_dir=tmp_path / "data")
    store.create_apartment("flat-1")
    service = ConsumptionService(
        store=store,
        power=PowerCalculator(tariffs.power),
        gas=GasCalculator(tariffs.gas),
        water=WaterCalculator(tariffs.water),
    )

    def build_test_service() -> ConsumptionService:
        return service

    build_test_service.cache_clear = lambda: None  # type: ignore[attr-defined]

    monkeypatch.setattr("app.main.build_default_service", build_test_service)
    monkeypatch.setattr("app.api.build_default_service", build_test_service)

    app = create_app()
    with TestClient(app) as client:
        yield client


def _post_reading(client: TestClient, day: str, power, gas, water, **extra) -> dict:
    response = client.post(
        "/api/consumption/flat-1",
        json={"date": day, "power": power, "gas": gas, "water": water, **extra},
    )
    assert response.status_code == 201, response.text
    return response.json()


def test_healthcheck(api_client: TestClient) -> None:
    response = api_client.get("/health")

    assert response.status_code == 200
    assert response.json() == {"status": "ok"}


def test_list_and_create_apartments(api_client: TestClient) -> None:
    assert api_client.get("/api/apartments").json() == ["flat-1"]

    response = api_client.post("/api/apartments", json={"name": "flat-2"})

    assert response.status_code == 201
    assert api_client.get("/api/apartments").json() == ["flat-1", "flat-2"]


def test_create_apartment_rejects_bad_names(api_client: TestClient) -> None:
    response = api_client.post("/api/apartments", json={"name": "../etc"})

    assert response.status_code == 422


def test_create_reading_returns_stored_record(api_client: TestClient) -> None:
    created = _post_reading(api_client, "2024-01-01", "1000", 100, 50.5)

    assert created["id"]
    assert created["timestamp"]
    assert created["date"] == "2024-01-01"
    assert created["power"] == 1000.0
    assert created["gasPercentage"] == 100.0
    assert created["powerReduction"] == 0.0

    listed = api_client.get("/api/consumption/flat-1").json()
    assert [item["id"] for item in listed] == [created["id"]]


@pytest.mark.parametrize(
    "body",
    [
        {"date": "2024-01-01", "power": "abc", "gas": 1, "water": 1},
        {"date": "2024-01-01", "power": -1, "gas": 1, "water": 1},
        {"date": "2024-01-01", "power": 1, "gas": 1, "water": 1, "gasPercentage": 150},
        {"date": "not-a-date", "power": 1, "gas": 1, "water": 1},
        {"date": "2024-01-01", "power": 1, "gas": 1},
    ],
)
def test_create_reading_validates_payload(api_client: TestClient, body: dict) -> None:
    response = api_client.post("/api/consumption/flat-1", json=body)

    assert response.status_code == 422


@pytest.mark.parametrize("field", ["power", "gas", "water", "powerReduction"])
def test_create_reading_rejects_infinite_values(api_client: TestClient, field: str) -> None:
    values = {"power": "1", "gas": "1", "water": "1", "powerReduction": "0"}
    values[field] = "Infinity"
    # json= cannot send the bare Infinity token, so the body is written by hand
    fields = ", ".join(f'"{name}": {value}' for name, value in values.items())
    body = '{"date": "2024-01-01", ' + fields + "}"

    response = api_client.post(
        "/api/consumption/flat-1",
        content=body,
        headers={"Content-Type": "application/json"},
    )

    assert response.status_code == 422
    assert api_client.get("/api/consumption/flat-1").json() == []


def test_unknown_apartment_returns_not_found(api_client: TestClient) -> None:
    assert api_client.get("/api/consumption/ghost").status_code == 404
    assert api_client.get("/api/consumption/ghost/gas-calculations").status_code == 404
    response = api_client.post(
        "/api/consumption/ghost",
        json={"date": "2024-01-01", "power": 1, "gas": 1, "water": 1},
    )
    assert response.status_code == 404
    assert "ghost" in response.json()["detail"]


def test_update_reading(api_client: TestClient) -> None:
    created = _post_reading(api_client, "2024-01-01", 1000, 100, 50)

    response = api_client.put(
        f"/api/consumption/flat-1/{created['id']}",
        json={"date": "2024-01-05", "power": 1010, "gas": 101, "water": 51, "gasPercentage": 50},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == created["id"]
    assert body["date"] == "2024-01-05"
    assert body["gasPercentage"] == 50.0


def test_update_missing_reading_returns_not_found(api_client: TestClient) -> None:
    response = api_client.put(
        "/api/consumption/flat-1/missing",
        json={"date": "2024-01-05", "power": 1, "gas": 1, "water": 1},
    )

    assert response.status_code == 404
    assert "missing" in response.json()["detail"]


def test_delete_reading(api_client: TestClient) -> None:
    created = _post_reading(api_client, "2024-01-01", 1000, 100, 50)

    response = api_client.delete(f"/api/consumption/flat-1/{created['id']}")

    assert response.status_code == 200
    assert response.json() == {"message": "Reading deleted successfully"}
    assert api_client.get("/api/consumption/flat-1").json() == []
    assert api_client.delete(f"/api/consumption/flat-1/{created['id']}").status_code == 404


@pytest.mark.parametrize("utility", ["power", "gas", "water"])
def test_calculations_need_two_readings(api_client: TestClient, utility: str) -> None:
    _post_reading(api_client, "2024-01-01", 1000, 100, 50)

    response = api_client.get(f"/api/consumption/flat-1/{utility}-calculations")

    assert response.status_code == 400
    assert response.json() == {"detail": "Insufficient data for calculations"}


def test_gas_calculations(api_client: TestClient) -> None:
    _post_reading(api_client, "2024-02-01", 1100, 120, 60, gasPercentage=50)
    _post_reading(api_client, "2024-01-01", 1000, 100, 50)

    response = api_client.get("/api/consumption/flat-1/gas-calculations")

    assert response.status_code == 200
    assert response.json() == [
        {
            "date": "2024-02-01",
            "netPrice": 85.0,
            "grossPrice": 52.275,
            "consumptionInKWh": 220.0,
            "consumption": 20.0,
        }
    ]


def test_power_calculations(api_client: TestClient) -> None:
    _post_reading(api_client, "2024-01-01", 1000, 100, 50)
    _post_reading(api_client, "2024-03-01", 1200, 120, 60)

    response = api_client.get("/api/consumption/flat-1/power-calculations")

    assert response.status_code == 200
    [period] = response.json()
    assert period["date"] == "2024-03-01"
    assert period["consumption"] == 200.0
    assert period["netPrice"] == 210.68
    assert period["grossPrice"] == 259.14
    assert period["details"]["fixedCapacityFee"] == 19.16
    assert set(period["details"]) == {
        "activeEnergy",
        "resFee",
        "qualityComponent",
        "networkFee",
        "transitionFee",
        "fixedTransmissionFee",
        "subscriptionFee",
        "commercialFee",
        "fixedCapacityFee",
    }


def test_water_calculations(api_client: TestClient) -> None:
    _post_reading(api_client, "2024-01-01", 1000, 100, 50)
    _post_reading(api_client, "2024-02-01", 1100, 120, 60)

    response = api_client.get("/api/consumption/flat-1/water-calculations")

    assert response.status_code == 200
    [period] = response.json()
    assert period["netPrice"] == 0
    assert period["grossPrice"] == 102.6
    assert period["details"]["waterConsumptionFee"] == 54.0


def test_summary(api_client: TestClient) -> None:
    _post_reading(api_client, "2024-01-01", 1000, 100, 50)
    _post_reading(api_client, "2024-02-01", 1100, 120, 60)

    response = api_client.get("/api/consumption/flat-1/summary")

    assert response.status_code == 200
    body = response.json()
    assert body["apartment"] == "flat-1"
    assert len(body["periods"]) == 1
    assert body["periods"][0]["date"] == "2024-02-01"
    assert body["periods"][0]["gas"] == 104.55


def test_nan_prices_are_serialized_as_null(api_client: TestClient, tmp_path) -> None:
    (tmp_path / "data" / "flat-1.json").write_text(
        '[{"id": "a", "date": "2024-01-01", "power": "1", "gas": "1", "water": "x"},'
        ' {"id": "b", "date": "2024-02-01", "power": "2", "gas": "2", "water": "2"}]'
    )

    response = api_client.get("/api/consumption/flat-1/water-calculations")

    assert response.status_code == 200
    [period] = response.json()
    assert period["grossPrice"] is None
    assert period["consumption"] is None
    assert period["netPrice"] == 0


def test_shutdown_clears_factory_caches(tmp_path, monkeypatch, tariff_file) -> None:
    build_default_tariffs.cache_clear()
    build_default_store.cache_clear()
    build_default_tariffs(str(tariff_file))
    build_default_store(str(tmp_path / "cached"))

    def build_test_service() -> None:
        return None

    build_test_service.cache_clear = lambda: None  # type: ignore[attr-defined]
    monkeypatch.setattr("app.main.build_default_service", build_test_service)

    with TestClient(create_app()):
        assert build_default_tariffs.cache_info().currsize == 1

    assert build_default_tariffs.cache_info().currsize == 0
    assert build_default_store.cache_info().currsize == 0


def test_route_handlers_run_in_threadpool() -> None:
    endpoints = [route.endpoint for route in router.routes if isinstance(route, APIRoute)]

    assert endpoints
    assert not any(inspect.iscoroutinefunction(endpoint) for endpoint in endpoints)
