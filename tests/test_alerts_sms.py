from __future__ import annotations

from typing import Any

import httpx
import pytest
from httpx import AsyncClient

from app.config import Settings, get_settings
from app.models.enums import AlertSeverityEnum, AlertTypeEnum
from app.routes import sms as sms_routes
from app.services.alert_service import AlertService, evaluate_alerts
from app.services.sensor_store import coerce_reading
from app.services.sms_service import SmsDeliveryError, SmsDispatcher


def _twilio_settings() -> Settings:
    return Settings(
        twilio_account_sid="AC123",
        twilio_auth_token="secret",
        twilio_from_number="+15550001111",
        twilio_base_url="https://twilio.test/2010-04-01",
    )


def test_evaluate_alerts_flags_every_threshold(make_reading: Any) -> None:
    reading = coerce_reading(
        make_reading(soil_moisture=20.0, air_temperature=38.0, ammonia=31.0, pressure=98.5)
    )
    alerts = evaluate_alerts(reading, list(AlertTypeEnum), get_settings())

    by_type = {alert.type: alert for alert in alerts}
    assert set(by_type) == set(AlertTypeEnum)
    assert by_type[AlertTypeEnum.soil_moisture].severity == AlertSeverityEnum.critical
    assert by_type[AlertTypeEnum.soil_moisture].message.startswith("CRITICAL:")
    assert by_type[AlertTypeEnum.temperature].message.startswith("WARNING:")
    assert by_type[AlertTypeEnum.ammonia].severity == AlertSeverityEnum.high
    assert by_type[AlertTypeEnum.pressure].message.startswith("WEATHER:")


def test_evaluate_alerts_respects_requested_types(make_reading: Any) -> None:
    reading = coerce_reading(make_reading(soil_moisture=10.0, air_temperature=5.0))
    alerts = evaluate_alerts(reading, [AlertTypeEnum.temperature], get_settings())
    assert [alert.type for alert in alerts] == [AlertTypeEnum.temperature]


def test_evaluate_alerts_quiet_for_normal_reading(make_reading: Any) -> None:
    reading = coerce_reading(make_reading())
    assert evaluate_alerts(reading, list(AlertTypeEnum), get_settings()) == []


@pytest.mark.asyncio
async def test_unconfigured_dispatcher_returns_mock_receipt() -> None:
    dispatcher = SmsDispatcher(Settings(twilio_account_sid="", twilio_auth_token=""))
    receipt = await dispatcher.send("+15551234567", "hello", sms_type="manual")

    assert dispatcher.configured is False
    assert receipt.mocked is True
    assert receipt.sid.startswith("SM")
    assert receipt.status == "sent"
    assert receipt.body == "hello"


@pytest.mark.asyncio
async def test_twilio_dispatch_posts_form() -> None:
    seen: dict[str, Any] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["url"] = str(request.url)
        seen["body"] = request.content.decode()
        seen["auth"] = request.headers.get("authorization", "")
        return httpx.Response(
            201,
            json={"sid": "SM999", "to": "+15551234567", "from": "+15550001111", "body": "hi", "status": "queued"},
        )

    dispatcher = SmsDispatcher(_twilio_settings(), transport=httpx.MockTransport(handler))
    receipt = await dispatcher.send("+15551234567", "hi", sms_type="alert")

    assert seen["url"] == "https://twilio.test/2010-04-01/Accounts/AC123/Messages.json"
    assert "Body=hi" in seen["body"]
    assert seen["auth"].startswith("Basic ")
    assert receipt.sid == "SM999"
    assert receipt.status == "queued"
    assert receipt.mocked is False


@pytest.mark.asyncio
async def test_twilio_error_raises_delivery_error() -> None:
    transport = httpx.MockTransport(lambda request: httpx.Response(400, json={"message": "invalid To"}))
    dispatcher = SmsDispatcher(_twilio_settings(), transport=transport)

    with pytest.raises(SmsDeliveryError):
        await dispatcher.send("+1", "hi")


class FlakyDispatcher:
    def __init__(self) -> None:
        self.sent: list[str] = []

    async def send(self, to: str, message: str, sms_type: str = "manual") -> Any:
        if message.startswith("WARNING:"):
            raise SmsDeliveryError("provider down")
        self.sent.append(message)
        return None


@pytest.mark.asyncio
async def test_failed_alert_send_is_skipped(sensor_store_factory: Any, make_reading: Any) -> None:
    dispatcher = FlakyDispatcher()
    service = AlertService(
        db=object(),  # type: ignore[arg-type]
        sensor_store=sensor_store_factory([make_reading(soil_moisture=12.0, air_temperature=40.0)]),
        dispatcher=dispatcher,  # type: ignore[arg-type]
    )

    result = await service.check_and_notify("+15551234567", list(AlertTypeEnum))

    assert result.alerts_found == 2
    assert result.alerts_sent == 1
    assert [alert.type for alert in result.alerts] == [AlertTypeEnum.soil_moisture]
    assert len(dispatcher.sent) == 1


@pytest.mark.asyncio
async def test_send_route_uses_mock_when_unconfigured(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    unconfigured = Settings(twilio_account_sid="", twilio_auth_token="")
    original = SmsDispatcher
    monkeypatch.setattr(sms_routes, "SmsDispatcher", lambda: original(unconfigured))

    response = await client.post("/api/v1/sms/send", json={"to": "+15551234567", "message": "Pump check"})
    assert response.status_code == 200
    body = response.json()
    assert body["success"] is True
    assert body["data"]["mocked"] is True
    assert body["data"]["body"] == "Pump check"


@pytest.mark.asyncio
async def test_send_route_maps_delivery_error(client: AsyncClient, monkeypatch: pytest.MonkeyPatch) -> None:
    async def failing_send(self: SmsDispatcher, to: str, message: str, sms_type: str = "manual") -> Any:
        raise SmsDeliveryError("provider down")

    monkeypatch.setattr(SmsDispatcher, "send", failing_send)

    response = await client.post("/api/v1/sms/send", json={"to": "+15551234567", "message": "x"})
    assert response.status_code == 502


@pytest.mark.asyncio
async def test_alerts_route_without_readings(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch, sensor_store_factory: Any
) -> None:
    original = AlertService
    store = sensor_store_factory([])
    monkeypatch.setattr(sms_routes, "AlertService", lambda db: original(db, sensor_store=store))

    response = await client.post("/api/v1/sms/alerts", json={"phone_number": "+15551234567"})
    assert response.status_code == 404
