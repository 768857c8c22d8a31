"""Pydantic schemas for sensor readings."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field


class SensorReading(BaseModel):
	"""Validated snapshot consumed by the irrigation policy and crop scorer.

	Every measurement is required; a payload that lacks one never reaches the
	decision functions.
	"""

	model_config = ConfigDict(frozen=True, from_attributes=True, allow_inf_nan=False)

	soil_moisture: float = Field(ge=0.0, le=100.0)
	soil_temperature: float
	soil_humidity: float = Field(ge=0.0, le=100.0)
	air_temperature: float
	air_humidity: float = Field(ge=0.0, le=100.0)
	pressure: float = Field(gt=0.0)
	rainfall: float = Field(ge=0.0)
	ammonia: float = Field(ge=0.0)
	timestamp: datetime


class SensorReadingIn(BaseModel):
	model_config = ConfigDict(allow_inf_nan=False)

	soil_moisture: float = Field(ge=0.0, le=100.0)
	soil_temperature: float
	soil_humidity: float = Field(ge=0.0, le=100.0)
	air_temperature: float
	air_humidity: float = Field(ge=0.0, le=100.0)
	pressure: float = Field(gt=0.0)
	rainfall: float = Field(default=0.0, ge=0.0)
	ammonia: float = Field(ge=0.0)
	timestamp: datetime | None = None


class SensorReadingOut(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: int
	timestamp: datetime
	soil_moisture: float
	soil_temperature: float
	soil_humidity: float
	air_temperature: float
	air_humidity: float
	pressure: float
	rainfall: float
	ammonia: float
	ingested_at: datetime | None = None


class SensorHistoryResponse(BaseModel):
	hours: int
	count: int
	items: list[SensorReadingOut] = Field(default_factory=list)


class FeedSyncResponse(BaseModel):
	channel: str | None = None
	fetched: int
	recorded: int
	skipped: int
	latest_timestamp: datetime | None = None
	items: list[SensorReadingOut] = Field(default_factory=list)
