"""Time-series store for sensor readings, plus boundary validation."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime, timedelta
from typing import Any

from pydantic import ValidationError
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import InvalidInputError, NotFoundError, StorageError
from app.models.sensors import SensorReading as SensorReadingRow
from app.schemas.sensors import SensorReading, SensorReadingIn


def coerce_reading(source: SensorReading | SensorReadingRow | Mapping[str, Any] | None) -> SensorReading:
	"""Validate anything reading-shaped into an immutable ``SensorReading``.

	Raises ``InvalidInputError`` naming the offending fields when a
	measurement is missing, null, non-numeric, or out of range.
	"""
	if isinstance(source, SensorReading):
		return source
	if source is None:
		raise InvalidInputError("sensor reading is missing")
	try:
		return SensorReading.model_validate(source, from_attributes=not isinstance(source, Mapping))
	except ValidationError as exc:
		fields = sorted({".".join(str(part) for part in err["loc"]) or "reading" for err in exc.errors()})
		raise InvalidInputError(f"invalid sensor reading: {', '.join(fields)}") from exc


class SensorStore:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def record(self, payload: SensorReadingIn) -> SensorReadingRow:
		row = SensorReadingRow(
			timestamp=payload.timestamp or datetime.now(UTC),
			soil_moisture=payload.soil_moisture,
			soil_temperature=payload.soil_temperature,
			soil_humidity=payload.soil_humidity,
			air_temperature=payload.air_temperature,
			air_humidity=payload.air_humidity,
			pressure=payload.pressure,
			rainfall=payload.rainfall,
			ammonia=payload.ammonia,
		)
		try:
			self.db.add(row)
			await self.db.flush()
			await self.db.refresh(row)
		except SQLAlchemyError as exc:
			raise StorageError(f"failed to store sensor reading: {exc}") from exc
		return row

	async def latest(self) -> SensorReadingRow:
		stmt = (
			select(SensorReadingRow)
			.order_by(SensorReadingRow.timestamp.desc(), SensorReadingRow.id.desc())
			.limit(1)
		)
		row = await self.db.execute(stmt)
		reading = row.scalar_one_or_none()
		if reading is None:
			raise NotFoundError("No sensor readings recorded yet")
		return reading

	async def history(self, hours: int = 24) -> list[SensorReadingRow]:
		since = datetime.now(UTC) - timedelta(hours=hours)
		stmt = (
			select(SensorReadingRow)
			.where(SensorReadingRow.timestamp >= since)
			.order_by(SensorReadingRow.timestamp.asc(), SensorReadingRow.id.asc())
		)
		rows = await self.db.execute(stmt)
		return list(rows.scalars().all())
