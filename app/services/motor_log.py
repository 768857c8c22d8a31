"""Append-only motor state audit log."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Protocol

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession

from app.exceptions import NotFoundError, StorageError
from app.models.enums import ChangedByEnum, MotorModeEnum
from app.models.motor import MotorControl
from app.schemas.motor import MotorStateIn

INITIAL_STATE = MotorStateIn(
	status=False,
	mode=MotorModeEnum.automatic,
	reason="Initial setup",
	changed_by=ChangedByEnum.system,
)


class StoredMotorState(Protocol):
	id: int
	status: bool
	mode: MotorModeEnum
	reason: str | None
	changed_by: ChangedByEnum
	created_at: object


def latest_state(records: Iterable[StoredMotorState]) -> StoredMotorState:
	"""Project the current state out of a set of log rows (newest ``created_at``, then id)."""
	current: StoredMotorState | None = None
	for record in records:
		if current is None or (record.created_at, record.id) > (current.created_at, current.id):
			current = record
	if current is None:
		raise NotFoundError("Motor state log is empty")
	return current


class MotorStateLog:
	def __init__(self, db: AsyncSession):
		self.db = db

	async def append_state(self, state: MotorStateIn) -> MotorControl:
		row = MotorControl(
			status=state.status,
			mode=state.mode,
			reason=state.reason,
			changed_by=state.changed_by,
		)
		try:
			self.db.add(row)
			await self.db.flush()
			await self.db.refresh(row)
		except SQLAlchemyError as exc:
			raise StorageError(f"failed to append motor state: {exc}") from exc
		return row

	async def get_latest(self) -> MotorControl:
		rows = await self.history(limit=1)
		return latest_state(rows)

	async def get_or_seed_latest(self) -> MotorControl:
		try:
			return await self.get_latest()
		except NotFoundError:
			return await self.append_state(INITIAL_STATE)

	async def history(self, limit: int = 50) -> list[MotorControl]:
		stmt = (
			select(MotorControl)
			.order_by(MotorControl.created_at.desc(), MotorControl.id.desc())
			.limit(limit)
		)
		rows = await self.db.execute(stmt)
		return list(rows.scalars().all())
