"""Threshold alerts on the latest reading, delivered by SMS."""

from __future__ import annotations

from collections.abc import Iterable

import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.models.enums import AlertSeverityEnum, AlertTypeEnum
from app.schemas.sensors import SensorReading
from app.schemas.sms import AlertCheckResponse, AlertSensorSnapshot, SensorAlert
from app.services.sensor_store import SensorStore, coerce_reading
from app.services.sms_service import SmsDeliveryError, SmsDispatcher

logger = structlog.get_logger("soilsense.alerts")


def evaluate_alerts(
	reading: SensorReading,
	alert_types: Iterable[AlertTypeEnum],
	settings: Settings,
) -> list[SensorAlert]:
	requested = set(alert_types)
	alerts: list[SensorAlert] = []

	if AlertTypeEnum.soil_moisture in requested and reading.soil_moisture < settings.alert_soil_moisture_min:
		alerts.append(
			SensorAlert(
				type=AlertTypeEnum.soil_moisture,
				severity=AlertSeverityEnum.critical,
				message=(
					f"CRITICAL: Soil moisture is very low at {reading.soil_moisture:.1f}%. "
					"Immediate irrigation recommended!"
				),
			)
		)

	if AlertTypeEnum.temperature in requested and (
		reading.air_temperature > settings.alert_air_temperature_max
		or reading.air_temperature < settings.alert_air_temperature_min
	):
		alerts.append(
			SensorAlert(
				type=AlertTypeEnum.temperature,
				severity=AlertSeverityEnum.warning,
				message=(
					f"WARNING: Extreme air temperature detected: {reading.air_temperature:.1f}°C. "
					"Monitor crops closely."
				),
			)
		)

	if AlertTypeEnum.ammonia in requested and reading.ammonia > settings.alert_ammonia_max:
		alerts.append(
			SensorAlert(
				type=AlertTypeEnum.ammonia,
				severity=AlertSeverityEnum.high,
				message=(
					f"ALERT: High ammonia levels detected: {reading.ammonia:.1f} ppm. "
					"Check ventilation systems."
				),
			)
		)

	if AlertTypeEnum.pressure in requested and reading.pressure < settings.alert_pressure_min:
		alerts.append(
			SensorAlert(
				type=AlertTypeEnum.pressure,
				severity=AlertSeverityEnum.info,
				message=(
					f"WEATHER: Low pressure detected ({reading.pressure:.1f} kPa). "
					"Rain likely within 24 hours."
				),
			)
		)

	return alerts


class AlertService:
	def __init__(
		self,
		db: AsyncSession,
		*,
		sensor_store: SensorStore | None = None,
		dispatcher: SmsDispatcher | None = None,
	):
		self.db = db
		self.settings = get_settings()
		self.sensor_store = sensor_store or SensorStore(db)
		self.dispatcher = dispatcher or SmsDispatcher(self.settings)

	async def check_and_notify(self, phone_number: str, alert_types: Iterable[AlertTypeEnum]) -> AlertCheckResponse:
		reading = coerce_reading(await self.sensor_store.latest())
		alerts = evaluate_alerts(reading, alert_types, self.settings)

		sent: list[SensorAlert] = []
		for alert in alerts:
			try:
				await self.dispatcher.send(phone_number, alert.message, sms_type="alert")
			except SmsDeliveryError as exc:
				logger.warning("alert_delivery_failed", alert_type=alert.type.value, error=str(exc))
				continue
			sent.append(alert)

		return AlertCheckResponse(
			success=True,
			alerts_found=len(alerts),
			alerts_sent=len(sent),
			alerts=sent,
			sensor_data=AlertSensorSnapshot(
				soil_moisture=reading.soil_moisture,
				air_temperature=reading.air_temperature,
				ammonia=reading.ammonia,
				pressure=reading.pressure,
				timestamp=reading.timestamp,
			),
		)
