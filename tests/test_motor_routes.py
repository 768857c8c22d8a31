from __future__ import annotations

from typing import Any

import pytest
from httpx import AsyncClient

from app.routes import motor as motor_routes
from app.services.motor_service import MotorService


@pytest.fixture
def wired_motor(
    monkeypatch: pytest.MonkeyPatch, sensor_store_factory: Any, motor_log: Any
) -> Any:
    """Route the motor endpoints through in-memory stores; returns the sensor store."""
    store = sensor_store_factory([])

    def _factory(db: Any, redis_client: Any = None) -> MotorService:
        return MotorService(db, redis_client, sensor_store=store, motor_log=motor_log)

    monkeypatch.setattr(motor_routes, "MotorService", _factory)
    return store


@pytest.mark.asyncio
async def test_get_motor_seeds_default(client: AsyncClient, wired_motor: Any) -> None:
    response = await client.get("/api/v1/motor")
    assert response.status_code == 200
    body = response.json()
    assert body["status"] is False
    assert body["mode"] == "automatic"
    assert body["changed_by"] == "system"
    assert body["reason"] == "Initial setup"


@pytest.mark.asyncio
async def test_manual_command_then_history(client: AsyncClient, wired_motor: Any) -> None:
    response = await client.post("/api/v1/motor", json={"status": True})
    assert response.status_code == 200
    body = response.json()
    assert body["status"] is True
    assert body["mode"] == "manual"
    assert body["changed_by"] == "user"
    assert body["reason"] == "Motor activated via manual mode"

    history = await client.get("/api/v1/motor/history", params={"limit": 5})
    assert history.status_code == 200
    assert history.json()["count"] == 1
    assert history.json()["items"][0]["id"] == body["id"]


@pytest.mark.asyncio
async def test_command_rejects_non_boolean_status(client: AsyncClient, wired_motor: Any) -> None:
    response = await client.post("/api/v1/motor", json={"status": "yes"})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_manual_command_from_system_is_bad_request(client: AsyncClient, wired_motor: Any) -> None:
    response = await client.post(
        "/api/v1/motor",
        json={"status": True, "mode": "manual", "changed_by": "system"},
    )
    assert response.status_code == 400


@pytest.mark.asyncio
async def test_auto_control_without_readings_is_not_found(client: AsyncClient, wired_motor: Any) -> None:
    response = await client.post("/api/v1/motor/auto-control")
    assert response.status_code == 404
    assert "No sensor readings" in response.json()["detail"]


@pytest.mark.asyncio
async def test_auto_control_activates(client: AsyncClient, wired_motor: Any, make_reading: Any) -> None:
    wired_motor.rows.append(make_reading(soil_moisture=18.0))

    response = await client.post("/api/v1/motor/auto-control")
    assert response.status_code == 200
    body = response.json()
    assert body["action"] == "activated"
    assert body["rule"] == "critical_moisture"
    assert body["new_status"]["status"] is True
    assert body["sensor_data"]["soil_moisture"] == 18.0

    again = await client.post("/api/v1/motor/auto-control")
    assert again.json()["action"] == "none"


@pytest.mark.asyncio
async def test_auto_control_rejects_invalid_reading(
    client: AsyncClient, wired_motor: Any, make_reading: Any
) -> None:
    wired_motor.rows.append(make_reading(air_humidity=140.0))
    response = await client.post("/api/v1/motor/auto-control")
    assert response.status_code == 400
    assert "air_humidity" in response.json()["detail"]


@pytest.mark.asyncio
async def test_history_limit_is_bounded(client: AsyncClient, wired_motor: Any) -> None:
    response = await client.get("/api/v1/motor/history", params={"limit": 0})
    assert response.status_code == 422


@pytest.mark.asyncio
async def test_forged_system_command_is_rejected(client: AsyncClient, wired_motor: Any, motor_log: Any) -> None:
    response = await client.post(
        "/api/v1/motor",
        json={"status": True, "mode": "automatic", "changed_by": "system", "reason": "forged"},
    )
    assert response.status_code == 400
    assert motor_log.rows == []


@pytest.mark.asyncio
async def test_auto_control_in_manual_mode_without_readings(client: AsyncClient, wired_motor: Any) -> None:
    await client.post("/api/v1/motor", json={"status": False})

    response = await client.post("/api/v1/motor/auto-control")
    assert response.status_code == 200
    assert response.json()["message"] == "Motor is in manual mode, automatic control disabled"
