from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

import httpx
import pytest
from httpx import AsyncClient

from app.config import Settings
from app.exceptions import ConfigError, InvalidInputError
from app.routes import sensors as sensor_routes
from app.services.thingspeak_feed import (
    FeedSyncService,
    FeedUnavailableError,
    ThingSpeakFeed,
    parse_feed_entry,
)

FIELD_MAP = Settings().thingspeak_field_map


def _settings(**overrides: Any) -> Settings:
    values = {
        "thingspeak_channel_id": "123",
        "thingspeak_read_api_key": "KEY",
        "thingspeak_base_url": "https://thingspeak.test",
    }
    values.update(overrides)
    return Settings(**values)


def _entry(entry_id: int, created_at: str, **overrides: Any) -> dict[str, Any]:
    entry: dict[str, Any] = {
        "entry_id": entry_id,
        "created_at": created_at,
        "field1": "42.5",
        "field2": "19.0",
        "field3": "55",
        "field4": "23.4",
        "field5": "61",
        "field6": "101.2",
        "field7": "0",
        "field8": "4.5",
    }
    entry.update(overrides)
    return entry


def test_parse_feed_entry_reads_string_fields() -> None:
    payload = parse_feed_entry(_entry(7, "2026-06-01T07:00:00Z"), FIELD_MAP)

    assert payload.soil_moisture == 42.5
    assert payload.air_humidity == 61.0
    assert payload.ammonia == 4.5
    assert payload.timestamp == datetime(2026, 6, 1, 7, 0, tzinfo=UTC)


@pytest.mark.parametrize("blank", [None, "", "  "])
def test_blank_field_counts_as_missing(blank: Any) -> None:
    with pytest.raises(InvalidInputError, match="soil_moisture"):
        parse_feed_entry(_entry(7, "2026-06-01T07:00:00Z", field1=blank), FIELD_MAP)


def test_entry_without_timestamp_is_rejected() -> None:
    with pytest.raises(InvalidInputError, match="created_at"):
        parse_feed_entry(_entry(7, ""), FIELD_MAP)


def test_out_of_range_field_is_rejected() -> None:
    with pytest.raises(InvalidInputError, match="air_humidity"):
        parse_feed_entry(_entry(7, "2026-06-01T07:00:00Z", field5="140"), FIELD_MAP)


@pytest.mark.asyncio
@pytest.mark.parametrize("key", ["", "demo_key"])
async def test_unconfigured_channel_is_a_config_error(key: str) -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        raise AssertionError("no request expected")

    feed = ThingSpeakFeed(_settings(thingspeak_read_api_key=key), transport=httpx.MockTransport(handler))

    assert feed.configured is False
    with pytest.raises(ConfigError):
        await feed.fetch_entries(10)


@pytest.mark.asyncio
async def test_sync_records_only_new_valid_entries(
    fake_db_session: Any, fake_redis: Any, sensor_store_factory: Any, make_reading: Any
) -> None:
    seen: dict[str, Any] = {}

    def handler(request: httpx.Request) -> httpx.Response:
        seen["path"] = request.url.path
        seen["params"] = dict(request.url.params)
        return httpx.Response(
            200,
            json={
                "channel": {"id": 123, "name": "Field A"},
                "feeds": [
                    _entry(1, "2026-06-01T05:00:00Z"),
                    _entry(2, "2026-06-01T07:00:00Z"),
                    _entry(3, "2026-06-01T07:00:00Z"),
                    _entry(4, "2026-06-01T08:00:00Z", field8=None),
                ],
            },
        )

    store = sensor_store_factory([make_reading()])
    feed = ThingSpeakFeed(_settings(), transport=httpx.MockTransport(handler))
    service = FeedSyncService(fake_db_session, fake_redis, sensor_store=store, feed=feed)

    result = await service.sync(results=4)

    assert seen["path"] == "/channels/123/feeds.json"
    assert seen["params"] == {"api_key": "KEY", "results": "4"}
    assert result.channel == "Field A"
    assert (result.fetched, result.recorded, result.skipped) == (4, 1, 3)
    assert result.latest_timestamp == datetime(2026, 6, 1, 7, 0, tzinfo=UTC)
    assert len(store.rows) == 2
    assert store.rows[-1].soil_moisture == 42.5

    fake_redis.publish.assert_awaited_once()
    message = json.loads(fake_redis.publish.await_args.args[1])
    assert message["event_type"] == "sensor_reading"
    assert message["soil_moisture"] == 42.5


@pytest.mark.asyncio
async def test_second_sync_records_nothing(fake_db_session: Any, sensor_store_factory: Any) -> None:
    transport = httpx.MockTransport(
        lambda request: httpx.Response(200, json={"feeds": [_entry(1, "2026-06-01T07:00:00Z")]})
    )
    store = sensor_store_factory([])
    service = FeedSyncService(
        fake_db_session, sensor_store=store, feed=ThingSpeakFeed(_settings(), transport=transport)
    )

    first = await service.sync()
    second = await service.sync()

    assert first.recorded == 1
    assert second.recorded == 0
    assert second.skipped == 1
    assert len(store.rows) == 1


@pytest.mark.asyncio
@pytest.mark.parametrize(
    "response",
    [
        httpx.Response(500, json={"error": "down"}),
        httpx.Response(200, json={"status": "-1"}),
        httpx.Response(200, text="not json"),
    ],
)
async def test_unusable_feed_raises_unavailable(
    fake_db_session: Any, sensor_store_factory: Any, response: httpx.Response
) -> None:
    store = sensor_store_factory([])
    feed = ThingSpeakFeed(_settings(), transport=httpx.MockTransport(lambda request: response))
    service = FeedSyncService(fake_db_session, sensor_store=store, feed=feed)

    with pytest.raises(FeedUnavailableError):
        await service.sync()
    assert store.rows == []


@pytest.mark.asyncio
async def test_sync_route(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch, sensor_store_factory: Any
) -> None:
    store = sensor_store_factory([])
    transport = httpx.MockTransport(
        lambda request: httpx.Response(
            200,
            json={"channel": {"name": "Field A"}, "feeds": [_entry(1, "2026-06-01T07:00:00Z")]},
        )
    )
    original = FeedSyncService
    monkeypatch.setattr(
        sensor_routes,
        "FeedSyncService",
        lambda db, redis_client=None: original(
            db, redis_client, sensor_store=store, feed=ThingSpeakFeed(_settings(), transport=transport)
        ),
    )

    response = await client.post("/api/v1/sensors/sync")

    assert response.status_code == 200
    body = response.json()
    assert body["channel"] == "Field A"
    assert body["recorded"] == 1
    assert body["items"][0]["soil_moisture"] == 42.5


@pytest.mark.asyncio
async def test_sync_route_unconfigured_and_unreachable(
    client: AsyncClient, monkeypatch: pytest.MonkeyPatch, sensor_store_factory: Any
) -> None:
    store = sensor_store_factory([])
    original = FeedSyncService
    monkeypatch.setattr(
        sensor_routes,
        "FeedSyncService",
        lambda db, redis_client=None: original(
            db, redis_client, sensor_store=store, feed=ThingSpeakFeed(_settings(thingspeak_channel_id=""))
        ),
    )
    response = await client.post("/api/v1/sensors/sync")
    assert response.status_code == 503

    failing = httpx.MockTransport(lambda request: httpx.Response(502, text="bad gateway"))
    monkeypatch.setattr(
        sensor_routes,
        "FeedSyncService",
        lambda db, redis_client=None: original(
            db, redis_client, sensor_store=store, feed=ThingSpeakFeed(_settings(), transport=failing)
        ),
    )
    response = await client.post("/api/v1/sensors/sync")
    assert response.status_code == 502
    assert store.rows == []
