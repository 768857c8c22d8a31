"""Crop recommendations for the latest reading, with an optional history projection."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import UTC, datetime

import structlog
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.models.crops import CropRecommendationRecord
from app.schemas.crops import (
	CropProfile,
	CropRecommendation,
	CropRecommendationResponse,
	CropSensorSnapshot,
)
from app.services.crop_catalog import get_crop_profiles
from app.services.sensor_store import SensorStore, coerce_reading
from app.services.suitability import rank_crops

logger = structlog.get_logger("soilsense.crops")


class RecommendationService:
	def __init__(
		self,
		db: AsyncSession,
		*,
		sensor_store: SensorStore | None = None,
		profiles: Sequence[CropProfile] | None = None,
	):
		self.db = db
		self.settings = get_settings()
		self.sensor_store = sensor_store or SensorStore(db)
		self.profiles = tuple(profiles) if profiles is not None else get_crop_profiles()

	async def recommend(self) -> CropRecommendationResponse:
		reading_row = await self.sensor_store.latest()
		reading = coerce_reading(reading_row)
		ranked = rank_crops(reading, self.profiles)

		if self.settings.persist_crop_recommendations:
			await self._store_projection(ranked, getattr(reading_row, "id", None))

		return CropRecommendationResponse(
			recommendations=ranked,
			sensor_data=CropSensorSnapshot(
				soil_moisture=reading.soil_moisture,
				soil_temperature=reading.soil_temperature,
				air_temperature=reading.air_temperature,
				air_humidity=reading.air_humidity,
				pressure=reading.pressure,
				rainfall=reading.rainfall,
				ammonia=reading.ammonia,
				timestamp=reading.timestamp,
			),
			analysis_date=datetime.now(UTC),
		)

	async def _store_projection(self, ranked: Sequence[CropRecommendation], reading_id: int | None) -> None:
		rows = [
			CropRecommendationRecord(
				crop_type=item.crop_type,
				recommendation_text=item.recommendation_text,
				confidence_score=item.suitability_score / 100,
				based_on_reading_id=reading_id,
			)
			for item in ranked
		]
		try:
			async with self.db.begin_nested():
				self.db.add_all(rows)
				await self.db.flush()
		except SQLAlchemyError as exc:
			# History is optional; the caller still gets its recommendations.
			logger.warning("crop_projection_store_failed", error=str(exc), count=len(rows))
