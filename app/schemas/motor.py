"""Pydantic schemas for motor control and the irrigation policy."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, StrictBool

from app.models.enums import (
	ChangedByEnum,
	IrrigationRuleEnum,
	MotorActionEnum,
	MotorModeEnum,
)


class IrrigationDecision(BaseModel):
	model_config = ConfigDict(frozen=True)

	activate: bool
	reason: str
	rule: IrrigationRuleEnum


class MotorStateIn(BaseModel):
	"""A new audit-log row, before storage assigns id and created_at."""

	status: bool
	mode: MotorModeEnum
	reason: str = Field(min_length=1, max_length=2000)
	changed_by: ChangedByEnum


class MotorCommand(BaseModel):
	"""A user command.  ``status`` is required in manual mode; automatic mode keeps the current state."""

	status: StrictBool | None = None
	mode: MotorModeEnum = MotorModeEnum.manual
	reason: str | None = Field(default=None, max_length=2000)
	changed_by: ChangedByEnum = ChangedByEnum.user


class MotorStateOut(BaseModel):
	model_config = ConfigDict(from_attributes=True)

	id: int
	status: bool
	mode: MotorModeEnum
	reason: str | None = None
	changed_by: ChangedByEnum
	created_at: datetime


class MotorSensorSnapshot(BaseModel):
	soil_moisture: float
	air_temperature: float
	air_humidity: float
	rainfall: float


class AutoControlResponse(BaseModel):
	message: str
	action: MotorActionEnum
	reason: str | None = None
	rule: IrrigationRuleEnum | None = None
	current_status: bool
	sensor_data: MotorSensorSnapshot | None = None
	new_status: MotorStateOut | None = None


class MotorHistoryResponse(BaseModel):
	count: int
	items: list[MotorStateOut] = Field(default_factory=list)
