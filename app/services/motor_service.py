"""Irrigation motor control: manual commands and the automatic control cycle."""

from __future__ import annotations

import asyncio

import structlog
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.exceptions import InvalidInputError
from app.models.enums import ChangedByEnum, MotorActionEnum, MotorModeEnum
from app.models.motor import MotorControl
from app.schemas.motor import (
	AutoControlResponse,
	MotorCommand,
	MotorSensorSnapshot,
	MotorStateIn,
	MotorStateOut,
)
from app.services.events import publish_event
from app.services.irrigation_policy import decide_motor_action, requires_transition
from app.services.motor_log import MotorStateLog
from app.services.sensor_store import SensorStore, coerce_reading

logger = structlog.get_logger("soilsense.motor")


class MotorService:
	def __init__(
		self,
		db: AsyncSession,
		redis_client: Redis | None = None,
		*,
		sensor_store: SensorStore | None = None,
		motor_log: MotorStateLog | None = None,
	):
		self.db = db
		self.redis_client = redis_client
		self.settings = get_settings()
		self.sensor_store = sensor_store or SensorStore(db)
		self.motor_log = motor_log or MotorStateLog(db)

	async def get_status(self) -> MotorStateOut:
		current = await self.motor_log.get_or_seed_latest()
		return MotorStateOut.model_validate(current)

	async def history(self, limit: int = 50) -> list[MotorStateOut]:
		rows = await self.motor_log.history(limit=limit)
		return [MotorStateOut.model_validate(row) for row in rows]

	async def set_state(self, command: MotorCommand) -> MotorStateOut:
		"""Apply an explicit user command.  Always appends; user actions are never deduplicated.

		Manual mode sets the motor directly.  Switching to automatic mode keeps
		the current on/off state and hands control to the irrigation policy
		from the next control cycle.
		"""
		if command.changed_by != ChangedByEnum.user:
			raise InvalidInputError("motor commands must come from a user; system changes come from the irrigation policy")

		if command.mode == MotorModeEnum.manual:
			if command.status is None:
				raise InvalidInputError("status is required in manual mode")
			state = MotorStateIn(
				status=command.status,
				mode=MotorModeEnum.manual,
				reason=command.reason or f"Motor {'activated' if command.status else 'deactivated'} via manual mode",
				changed_by=ChangedByEnum.user,
			)
			row = await self.motor_log.append_state(state)
			await self._send_motor_command(row)
			return MotorStateOut.model_validate(row)

		current = await self.motor_log.get_or_seed_latest()
		if command.status is not None and command.status != current.status:
			raise InvalidInputError(
				"the irrigation policy controls the motor in automatic mode; switch to manual mode to turn it on or off"
			)
		row = await self.motor_log.append_state(
			MotorStateIn(
				status=current.status,
				mode=MotorModeEnum.automatic,
				reason=command.reason or "Automatic control enabled",
				changed_by=ChangedByEnum.user,
			)
		)
		await self._announce(row)
		return MotorStateOut.model_validate(row)

	async def run_auto_control(self) -> AutoControlResponse:
		"""One evaluation of the irrigation policy against the latest reading.

		Manual mode short-circuits before any reading is fetched.  A decision
		equal to the current state appends nothing.  Invalid readings raise before any write.
		"""
		current = await self.motor_log.get_or_seed_latest()

		if current.mode != MotorModeEnum.automatic:
			logger.info("auto_control_skipped", mode=str(current.mode), status=current.status)
			return AutoControlResponse(
				message="Motor is in manual mode, automatic control disabled",
				action=MotorActionEnum.none,
				current_status=current.status,
			)

		reading = coerce_reading(await self.sensor_store.latest())
		snapshot = MotorSensorSnapshot(
			soil_moisture=reading.soil_moisture,
			air_temperature=reading.air_temperature,
			air_humidity=reading.air_humidity,
			rainfall=reading.rainfall,
		)
		decision = decide_motor_action(reading, currently_on=current.status)

		if not requires_transition(decision, currently_on=current.status):
			logger.debug("auto_control_hold", status=current.status, rule=decision.rule.value)
			return AutoControlResponse(
				message="No action needed, motor status optimal",
				action=MotorActionEnum.none,
				reason=decision.reason,
				rule=decision.rule,
				current_status=current.status,
				sensor_data=snapshot,
			)

		row = await self.motor_log.append_state(
			MotorStateIn(
				status=decision.activate,
				mode=MotorModeEnum.automatic,
				reason=decision.reason,
				changed_by=ChangedByEnum.system,
			)
		)
		await self._send_motor_command(row)

		action = MotorActionEnum.activated if decision.activate else MotorActionEnum.deactivated
		return AutoControlResponse(
			message=f"Motor {action.value} automatically",
			action=action,
			reason=decision.reason,
			rule=decision.rule,
			current_status=row.status,
			sensor_data=snapshot,
			new_status=MotorStateOut.model_validate(row),
		)

	async def _send_motor_command(self, row: MotorControl) -> None:
		# No hardware link: the command is logged and announced on the live channel.
		logger.info(
			"motor_command",
			command="start" if row.status else "stop",
			mode=str(row.mode),
			changed_by=str(row.changed_by),
			reason=row.reason,
		)
		if self.settings.motor_command_delay_seconds > 0:
			await asyncio.sleep(self.settings.motor_command_delay_seconds)
		await self._announce(row)

	async def _announce(self, row: MotorControl) -> None:
		await publish_event(
			self.redis_client,
			"motor_state_changed",
			MotorStateOut.model_validate(row).model_dump(mode="json"),
		)
