"""Shared pytest fixtures: async test client, in-memory stores, reading factory."""

from __future__ import annotations

from collections.abc import AsyncGenerator, Callable
from contextlib import asynccontextmanager
from datetime import UTC, datetime, timedelta
from types import SimpleNamespace
from typing import Any
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient

from app.database import get_db
from app.exceptions import NotFoundError
from app.main import app
from app.schemas.motor import MotorStateIn
from app.services.motor_log import INITIAL_STATE, latest_state


class FakeAsyncSession:
	def __init__(self) -> None:
		self.commit = AsyncMock()
		self.rollback = AsyncMock()
		self.close = AsyncMock()
		self.execute = AsyncMock()
		self.flush = AsyncMock()
		self.refresh = AsyncMock(side_effect=self._refresh)
		self.added: list[Any] = []

	async def _refresh(self, row: Any) -> None:
		# stand-in for server defaults
		if getattr(row, "id", None) is None:
			row.id = len(self.added)
		for column in ("ingested_at", "created_at"):
			if hasattr(row, column) and getattr(row, column) is None:
				setattr(row, column, datetime.now(UTC))

	def add(self, row: Any) -> None:
		self.added.append(row)

	def add_all(self, rows: list[Any]) -> None:
		self.added.extend(rows)

	@asynccontextmanager
	async def begin_nested(self) -> AsyncGenerator[None, None]:
		yield


class FakeRedis:
	def __init__(self) -> None:
		self.publish = AsyncMock()
		self.ping = AsyncMock(return_value=True)
		self._counter: dict[str, int] = {}
		self.incr = AsyncMock(side_effect=self._incr)
		self.expire = AsyncMock(return_value=True)

	async def _incr(self, key: str) -> int:
		value = self._counter.get(key, 0) + 1
		self._counter[key] = value
		return value


class InMemorySensorStore:
	"""Same surface as ``SensorStore`` over a plain list."""

	def __init__(self, rows: list[Any] | None = None) -> None:
		self.rows: list[Any] = list(rows or [])

	async def latest(self) -> Any:
		if not self.rows:
			raise NotFoundError("No sensor readings recorded yet")
		return max(self.rows, key=lambda row: (row.timestamp, row.id))

	async def record(self, payload: Any) -> SimpleNamespace:
		now = datetime.now(UTC)
		row = SimpleNamespace(
			id=len(self.rows) + 1,
			**payload.model_dump(exclude={"timestamp"}),
			timestamp=payload.timestamp or now,
			ingested_at=now,
		)
		self.rows.append(row)
		return row

	async def history(self, hours: int = 24) -> list[Any]:
		return sorted(self.rows, key=lambda row: (row.timestamp, row.id))


class InMemoryMotorLog:
	"""Same surface as ``MotorStateLog`` over a plain list."""

	def __init__(self) -> None:
		self.rows: list[SimpleNamespace] = []

	async def append_state(self, state: MotorStateIn) -> SimpleNamespace:
		row = SimpleNamespace(
			id=len(self.rows) + 1,
			status=state.status,
			mode=state.mode,
			reason=state.reason,
			changed_by=state.changed_by,
			created_at=datetime.now(UTC),
		)
		self.rows.append(row)
		return row

	async def get_latest(self) -> SimpleNamespace:
		return latest_state(self.rows)  # type: ignore[return-value]

	async def get_or_seed_latest(self) -> SimpleNamespace:
		try:
			return await self.get_latest()
		except NotFoundError:
			return await self.append_state(INITIAL_STATE)

	async def history(self, limit: int = 50) -> list[SimpleNamespace]:
		return sorted(self.rows, key=lambda row: (row.created_at, row.id), reverse=True)[:limit]


READING_DEFAULTS: dict[str, Any] = {
	"soil_moisture": 50.0,
	"soil_temperature": 20.0,
	"soil_humidity": 55.0,
	"air_temperature": 22.0,
	"air_humidity": 60.0,
	"pressure": 101.3,
	"rainfall": 0.0,
	"ammonia": 5.0,
}


@pytest.fixture
def make_reading() -> Callable[..., SimpleNamespace]:
	"""Factory for stored-reading lookalikes; later calls get later timestamps."""
	counter = {"id": 0}
	base = datetime(2026, 6, 1, 6, 0, tzinfo=UTC)

	def _make(**overrides: Any) -> SimpleNamespace:
		counter["id"] += 1
		values = {
			**READING_DEFAULTS,
			"id": counter["id"],
			"timestamp": base + timedelta(minutes=counter["id"]),
			"ingested_at": base + timedelta(minutes=counter["id"]),
		}
		values.update(overrides)
		return SimpleNamespace(**values)

	return _make


@pytest.fixture
def fake_db_session() -> FakeAsyncSession:
	"""A lightweight async-session stub for dependency overrides in API tests."""
	return FakeAsyncSession()


@pytest.fixture
def fake_redis() -> FakeRedis:
	return FakeRedis()


@pytest.fixture
def motor_log() -> InMemoryMotorLog:
	return InMemoryMotorLog()


@pytest.fixture
async def client(fake_db_session: FakeAsyncSession) -> AsyncGenerator[AsyncClient, None]:
	"""HTTPX async client with lifespan disabled and DB dependency mocked."""

	async def override_get_db() -> AsyncGenerator[Any, None]:
		yield fake_db_session

	app.dependency_overrides[get_db] = override_get_db
	original_lifespan = app.router.lifespan_context

	@asynccontextmanager
	async def noop_lifespan(_: Any) -> AsyncGenerator[None, None]:
		yield

	app.router.lifespan_context = noop_lifespan

	transport = ASGITransport(app=app)
	async with AsyncClient(transport=transport, base_url="http://test") as test_client:
		yield test_client

	app.router.lifespan_context = original_lifespan
	app.dependency_overrides.clear()
	if hasattr(app.state, "redis"):
		del app.state.redis


@pytest.fixture
def sensor_store_factory() -> Callable[..., InMemorySensorStore]:
	"""Build an in-memory sensor store from a list of reading rows."""
	return InMemorySensorStore
