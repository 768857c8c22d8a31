"""Irrigation motor audit log ORM model.

The table is append-only: every state change (automatic or manual) is a new
row and nothing is updated in place.  The current motor state is the newest
row.
"""

from __future__ import annotations

from sqlalchemy import Boolean, Enum, Index, Text
from sqlalchemy.orm import Mapped, mapped_column

from app.models.base import AppendOnlyMixin, Base
from app.models.enums import ChangedByEnum, MotorModeEnum


class MotorControl(Base, AppendOnlyMixin):
    """One motor state record — on/off, mode, reason, and actor."""

    __tablename__ = "motor_control"
    __table_args__ = (
        Index("ix_motor_control_created_at", "created_at"),
    )

    status: Mapped[bool] = mapped_column(
        Boolean, nullable=False, default=False, server_default="false"
    )
    mode: Mapped[MotorModeEnum] = mapped_column(
        Enum(
            MotorModeEnum,
            name="motor_mode",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=MotorModeEnum.automatic,
    )
    reason: Mapped[str | None] = mapped_column(Text, nullable=True)
    changed_by: Mapped[ChangedByEnum] = mapped_column(
        Enum(
            ChangedByEnum,
            name="changed_by",
            create_constraint=False,
            native_enum=True,
        ),
        nullable=False,
        default=ChangedByEnum.system,
    )

    def __repr__(self) -> str:
        return (
            f"<MotorControl id={self.id} status={self.status} "
            f"mode={self.mode} by={self.changed_by}>"
        )
