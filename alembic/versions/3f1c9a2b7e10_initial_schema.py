"""initial_schema

Revision ID: 3f1c9a2b7e10
Revises:
Create Date: 2026-10-16 09:00:00.000000
"""

from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op
from sqlalchemy.dialects import postgresql

revision: str = "3f1c9a2b7e10"
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None

ENUM_MOTOR_MODE = postgresql.ENUM(
	"automatic",
	"manual",
	name="motor_mode",
	create_type=False,
)

ENUM_CHANGED_BY = postgresql.ENUM(
	"system",
	"user",
	name="changed_by",
	create_type=False,
)


def upgrade() -> None:
	ENUM_MOTOR_MODE.create(op.get_bind(), checkfirst=True)
	ENUM_CHANGED_BY.create(op.get_bind(), checkfirst=True)

	op.create_table(
		"sensor_readings",
		sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
		sa.Column("timestamp", sa.DateTime(timezone=True), nullable=False),
		sa.Column("soil_moisture", sa.Float(), nullable=False),
		sa.Column("soil_temperature", sa.Float(), nullable=False),
		sa.Column("soil_humidity", sa.Float(), nullable=False),
		sa.Column("air_temperature", sa.Float(), nullable=False),
		sa.Column("air_humidity", sa.Float(), nullable=False),
		sa.Column("pressure", sa.Float(), nullable=False),
		sa.Column("rainfall", sa.Float(), server_default=sa.text("0"), nullable=False),
		sa.Column("ammonia", sa.Float(), nullable=False),
		sa.Column(
			"ingested_at",
			sa.DateTime(timezone=True),
			server_default=sa.text("now()"),
			nullable=False,
		),
		sa.PrimaryKeyConstraint("id"),
	)
	op.create_index("ix_sensor_readings_timestamp", "sensor_readings", [sa.text("timestamp DESC")])

	op.create_table(
		"motor_control",
		sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
		sa.Column("status", sa.Boolean(), server_default=sa.text("false"), nullable=False),
		sa.Column("mode", ENUM_MOTOR_MODE, nullable=False),
		sa.Column("reason", sa.Text(), nullable=True),
		sa.Column("changed_by", ENUM_CHANGED_BY, nullable=False),
		sa.Column(
			"created_at",
			sa.DateTime(timezone=True),
			server_default=sa.text("now()"),
			nullable=False,
		),
		sa.PrimaryKeyConstraint("id"),
	)
	op.create_index("ix_motor_control_created_at", "motor_control", [sa.text("created_at DESC")])

	op.create_table(
		"crop_recommendations",
		sa.Column("id", sa.BigInteger(), autoincrement=True, nullable=False),
		sa.Column("crop_type", sa.String(length=100), nullable=False),
		sa.Column("recommendation_text", sa.Text(), nullable=False),
		sa.Column("confidence_score", sa.Float(), nullable=True),
		sa.Column("based_on_reading_id", sa.BigInteger(), nullable=True),
		sa.Column(
			"created_at",
			sa.DateTime(timezone=True),
			server_default=sa.text("now()"),
			nullable=False,
		),
		sa.ForeignKeyConstraint(["based_on_reading_id"], ["sensor_readings.id"], ondelete="SET NULL"),
		sa.PrimaryKeyConstraint("id"),
	)
	op.create_index(
		"ix_crop_recommendations_created_at",
		"crop_recommendations",
		[sa.text("created_at DESC")],
	)

	op.execute(
		"INSERT INTO motor_control (status, mode, reason, changed_by) "
		"VALUES (false, 'automatic', 'Initial setup', 'system')"
	)


def downgrade() -> None:
	op.drop_index("ix_crop_recommendations_created_at", table_name="crop_recommendations")
	op.drop_table("crop_recommendations")
	op.drop_index("ix_motor_control_created_at", table_name="motor_control")
	op.drop_table("motor_control")
	op.drop_index("ix_sensor_readings_timestamp", table_name="sensor_readings")
	op.drop_table("sensor_readings")
	ENUM_CHANGED_BY.drop(op.get_bind(), checkfirst=True)
	ENUM_MOTOR_MODE.drop(op.get_bind(), checkfirst=True)
