"""PostgreSQL-backed enum types for the ORM models and API schemas.

Each StrEnum maps 1:1 to a PostgreSQL CREATE TYPE ... AS ENUM where it is
stored; alert enums are only used on the wire.
"""

from enum import StrEnum

# ── Motor control enums ─────────────────────────────────────────────────────


class MotorModeEnum(StrEnum):
    """Who is allowed to drive the irrigation motor."""

    automatic = "automatic"
    manual = "manual"


class ChangedByEnum(StrEnum):
    """Actor recorded on every motor state change."""

    system = "system"
    user = "user"


class MotorActionEnum(StrEnum):
    """Outcome of a single automatic-control evaluation."""

    activated = "activated"
    deactivated = "deactivated"
    none = "none"


class IrrigationRuleEnum(StrEnum):
    """Which irrigation rule produced a decision."""

    rainfall = "rainfall"
    critical_moisture = "critical_moisture"
    low_moisture = "low_moisture"
    high_moisture = "high_moisture"
    hot_dry = "hot_dry"
    hold = "hold"


# ── Alert enums ─────────────────────────────────────────────────────────────


class AlertTypeEnum(StrEnum):
    """Sensor conditions a farmer can subscribe to by SMS."""

    soil_moisture = "soil_moisture"
    temperature = "temperature"
    ammonia = "ammonia"
    pressure = "pressure"


class AlertSeverityEnum(StrEnum):
    critical = "critical"
    warning = "warning"
    high = "high"
    info = "info"
