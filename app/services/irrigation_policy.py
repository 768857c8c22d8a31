"""Automatic irrigation policy: motor on/off from the latest reading.

Rules are evaluated in priority order and the first match wins:

1. rainfall above ``RAINFALL_CUTOFF_MM`` → off
2. soil moisture below ``MOISTURE_LOW`` → on (critical below ``MOISTURE_CRITICAL``)
3. soil moisture above ``MOISTURE_HIGH`` → off
4. moderate moisture with hot, dry air → on (preventive)
5. otherwise → hold whatever the motor is doing now

The policy is only consulted in automatic mode.  It never writes anything:
the caller compares ``decision.activate`` with the current state and appends
to the audit log only when they differ.
"""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from app.models.enums import IrrigationRuleEnum
from app.schemas.motor import IrrigationDecision
from app.schemas.sensors import SensorReading
from app.services.sensor_store import coerce_reading

RAINFALL_CUTOFF_MM = 1.0
MOISTURE_CRITICAL = 20.0
MOISTURE_LOW = 30.0
MOISTURE_HIGH = 60.0
MOISTURE_SATURATED = 70.0
HOT_DRY_MOISTURE_CEILING = 40.0
HOT_AIR_TEMPERATURE = 30.0
DRY_AIR_HUMIDITY = 50.0


def decide_motor_action(
	reading: SensorReading | Mapping[str, Any] | Any,
	*,
	currently_on: bool,
) -> IrrigationDecision:
	"""Return the motor decision for ``reading``.

	Raises ``InvalidInputError`` for incomplete readings, so a caller that
	lets the error propagate leaves the motor untouched.
	"""
	snapshot = coerce_reading(reading)
	moisture = snapshot.soil_moisture

	if snapshot.rainfall > RAINFALL_CUTOFF_MM:
		return IrrigationDecision(
			activate=False,
			reason=f"Deactivated due to rainfall ({snapshot.rainfall:.1f}mm)",
			rule=IrrigationRuleEnum.rainfall,
		)

	if moisture < MOISTURE_LOW:
		if moisture < MOISTURE_CRITICAL:
			return IrrigationDecision(
				activate=True,
				reason=f"Critical soil moisture level ({moisture:.1f}%) - immediate irrigation required",
				rule=IrrigationRuleEnum.critical_moisture,
			)
		return IrrigationDecision(
			activate=True,
			reason=f"Low soil moisture ({moisture:.1f}%) - irrigation activated",
			rule=IrrigationRuleEnum.low_moisture,
		)

	if moisture > MOISTURE_HIGH:
		if moisture > MOISTURE_SATURATED:
			reason = f"High soil moisture ({moisture:.1f}%) - irrigation not needed"
		else:
			reason = f"Adequate soil moisture ({moisture:.1f}%) - irrigation deactivated"
		return IrrigationDecision(activate=False, reason=reason, rule=IrrigationRuleEnum.high_moisture)

	if (
		moisture < HOT_DRY_MOISTURE_CEILING
		and snapshot.air_temperature > HOT_AIR_TEMPERATURE
		and snapshot.air_humidity < DRY_AIR_HUMIDITY
	):
		return IrrigationDecision(
			activate=True,
			reason=(
				f"Hot and dry conditions ({snapshot.air_temperature:.1f}°C, "
				f"{snapshot.air_humidity:.1f}% humidity) - preventive irrigation"
			),
			rule=IrrigationRuleEnum.hot_dry,
		)

	return IrrigationDecision(
		activate=currently_on,
		reason=(
			f"No action needed: {moisture:.1f}% moisture, "
			f"{snapshot.air_temperature:.1f}°C air temperature"
		),
		rule=IrrigationRuleEnum.hold,
	)


def requires_transition(decision: IrrigationDecision, *, currently_on: bool) -> bool:
	"""True only when the decision would change the persisted motor state."""
	return decision.activate != currently_on
