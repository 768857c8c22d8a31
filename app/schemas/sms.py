"""Pydantic schemas for SMS sending and sensor alerts."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from app.models.enums import AlertSeverityEnum, AlertTypeEnum


class SmsSendRequest(BaseModel):
	to: str = Field(min_length=3, max_length=32)
	message: str = Field(min_length=1, max_length=1600)
	type: str = Field(default="manual", max_length=32)


class SmsReceipt(BaseModel):
	sid: str
	to: str
	from_number: str
	body: str
	status: str
	type: str
	date_created: datetime
	mocked: bool = False


class SmsSendResponse(BaseModel):
	success: bool
	message: str
	data: SmsReceipt


class SensorAlert(BaseModel):
	type: AlertTypeEnum
	severity: AlertSeverityEnum
	message: str


class AlertCheckRequest(BaseModel):
	phone_number: str = Field(min_length=3, max_length=32)
	alert_types: list[AlertTypeEnum] = Field(default_factory=lambda: list(AlertTypeEnum))


class AlertSensorSnapshot(BaseModel):
	soil_moisture: float
	air_temperature: float
	ammonia: float
	pressure: float
	timestamp: datetime


class AlertCheckResponse(BaseModel):
	success: bool
	alerts_found: int
	alerts_sent: int
	alerts: list[SensorAlert] = Field(default_factory=list)
	sensor_data: AlertSensorSnapshot
