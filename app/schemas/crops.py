"""Pydantic schemas for crop profiles and suitability recommendations."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any, Self

from pydantic import BaseModel, ConfigDict, Field, ValidationError, model_validator

from app.exceptions import ConfigError


def _as_config_error(model: str, exc: ValidationError) -> ConfigError:
	problems = "; ".join(
		f"{'.'.join(str(part) for part in err['loc']) or model}: {err['msg']}" for err in exc.errors()
	)
	return ConfigError(f"invalid {model}: {problems}")


class _ReferenceData(BaseModel):
	"""Static reference data: any construction failure surfaces as ``ConfigError``."""

	model_config = ConfigDict(frozen=True, allow_inf_nan=False)

	def __init__(self, **data: Any) -> None:
		try:
			super().__init__(**data)
		except ValidationError as exc:
			raise _as_config_error(type(self).__name__, exc) from exc

	@classmethod
	def from_record(cls, record: Mapping[str, Any]) -> Self:
		try:
			return cls.model_validate(record)
		except ValidationError as exc:
			raise _as_config_error(cls.__name__, exc) from exc


class OptimalRange(_ReferenceData):
	"""Closed ``[min, max]`` interval; degenerate ranges are rejected."""

	min: float
	max: float

	@model_validator(mode="after")
	def _check_bounds(self) -> OptimalRange:
		if self.min >= self.max:
			raise ConfigError(f"optimal range min ({self.min}) must be below max ({self.max})")
		return self

	@property
	def mid(self) -> float:
		return (self.min + self.max) / 2

	@property
	def width(self) -> float:
		return self.max - self.min


class OptimalRanges(_ReferenceData):
	soil_moisture: OptimalRange
	soil_temperature: OptimalRange
	air_temperature: OptimalRange
	air_humidity: OptimalRange


class CropProfile(_ReferenceData):
	"""Static reference data for one crop."""

	name: str = Field(min_length=1, max_length=100)
	optimal: OptimalRanges
	planting_season: str = ""
	expected_yield: str = ""
	care_instructions: tuple[str, ...] = ()
	growth_duration: str = ""
	water_requirements: str = ""
	temperature_range: str = ""


class CropRecommendation(BaseModel):
	crop_type: str
	suitability_score: int = Field(ge=20, le=100)
	recommendation_text: str
	planting_season: str = ""
	expected_yield: str = ""
	care_instructions: list[str] = Field(default_factory=list)
	growth_duration: str = ""
	water_requirements: str = ""
	temperature_range: str = ""


class CropSensorSnapshot(BaseModel):
	soil_moisture: float
	soil_temperature: float
	air_temperature: float
	air_humidity: float
	pressure: float
	rainfall: float
	ammonia: float
	timestamp: datetime


class CropRecommendationResponse(BaseModel):
	recommendations: list[CropRecommendation] = Field(default_factory=list)
	sensor_data: CropSensorSnapshot
	analysis_date: datetime


class CropProfileListResponse(BaseModel):
	count: int
	items: list[CropProfile] = Field(default_factory=list)
