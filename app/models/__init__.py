"""ORM model registry — importing this module registers every table on Base.metadata.

Alembic ``env.py`` imports ``Base`` from here (not from ``base.py``) so that
autogenerate sees all tables.  Application code can also do::

    from app.models import SensorReading, MotorControl, ...
"""

# ── Base & Mixins ───────────────────────────────────────────────────────────
from app.models.base import AppendOnlyMixin, Base, TimeSeriesMixin

# ── Crop recommendation history ─────────────────────────────────────────────
from app.models.crops import CropRecommendationRecord

# ── Enums ───────────────────────────────────────────────────────────────────
from app.models.enums import (
    AlertSeverityEnum,
    AlertTypeEnum,
    ChangedByEnum,
    IrrigationRuleEnum,
    MotorActionEnum,
    MotorModeEnum,
)

# ── Motor audit log ─────────────────────────────────────────────────────────
from app.models.motor import MotorControl

# ── Time-series sensor model ───────────────────────────────────────────────
from app.models.sensors import SensorReading

__all__ = [
    "AlertSeverityEnum",
    "AlertTypeEnum",
    "AppendOnlyMixin",
    # Base & mixins
    "Base",
    "ChangedByEnum",
    # Crop history
    "CropRecommendationRecord",
    "IrrigationRuleEnum",
    "MotorActionEnum",
    # Motor
    "MotorControl",
    "MotorModeEnum",
    # Time-series
    "SensorReading",
    "TimeSeriesMixin",
]
