"""Pydantic schemas for the farm assistant chat endpoint."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field


class ChatSensorContext(BaseModel):
	"""Readings the assistant is allowed to reference in its answer."""

	air_temperature: float
	air_humidity: float
	soil_moisture: float
	ammonia: float
	timestamp: datetime | None = None


class ChatRequest(BaseModel):
	message: str = Field(min_length=1, max_length=2000)
	sensor_data: ChatSensorContext | None = None


class ChatResponse(BaseModel):
	message: str
	fallback: bool
