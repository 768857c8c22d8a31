"""Farm assistant chat: sensor context, Ollama call, deterministic fallback."""

from __future__ import annotations

from typing import Any

import httpx
import structlog
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.exceptions import InvalidInputError, NotFoundError
from app.schemas.chat import ChatResponse, ChatSensorContext
from app.services.sensor_store import SensorStore, coerce_reading

logger = structlog.get_logger("soilsense.chat")

NO_RESPONSE_TEXT = "Sorry, I could not generate a response."

DEFAULT_HELP_TEXT = (
	"I'm here to help with your farming questions! I can provide advice on:\n\n"
	"• Irrigation and water management\n"
	"• Crop selection and planting timing\n"
	"• Soil health and fertilization\n"
	"• Pest and disease management\n"
	"• Harvest timing and techniques\n"
	"• Weather impact assessment\n"
	"• Sustainable farming practices\n\n"
	"What specific aspect of farming would you like guidance on? If you have sensor data "
	"available, I can provide more targeted recommendations based on your current conditions."
)


def _has(text: str, *tokens: str) -> bool:
	return any(token in text for token in tokens)


def fallback_reply(message: str, sensor_data: ChatSensorContext | None) -> str:
	"""Keyword-driven advice used whenever the text-generation service is unavailable."""
	text = message.lower()

	if sensor_data is not None:
		temperature = sensor_data.air_temperature
		humidity = sensor_data.air_humidity
		moisture = sensor_data.soil_moisture
		ammonia = sensor_data.ammonia

		if _has(text, "crop", "plant"):
			if 20 <= temperature <= 30 and moisture >= 40:
				return (
					f"Based on your current conditions ({temperature:g}°C, {moisture:g}% soil moisture), "
					"this is excellent for warm-season crops like tomatoes, peppers, and cucumbers. "
					"Consider planting within the next few days if you haven't already."
				)
			if temperature < 20 and moisture >= 40:
				return (
					f"With cooler temperatures ({temperature:g}°C) and good soil moisture ({moisture:g}%), "
					"this is perfect for cool-season crops like lettuce, spinach, kale, and peas."
				)
			return (
				f"Current conditions: {temperature:g}°C and {moisture:g}% soil moisture. Consider adjusting "
				"irrigation before planting. Most crops prefer soil moisture between 40-60% for germination."
			)

		if _has(text, "water", "irrigation", "moisture"):
			if moisture < 25:
				return (
					f"URGENT: Your soil moisture is critically low at {moisture:g}%. Immediate irrigation is "
					"needed. Water deeply and slowly, check again in 2-3 hours, and keep moisture between "
					"40-60% for most crops."
				)
			if moisture < 35:
				return (
					f"Your soil moisture is low at {moisture:g}%. Increase irrigation frequency and water early "
					"morning or late evening to minimize evaporation. Aim for 40-60% moisture."
				)
			if moisture > 75:
				return (
					f"Soil moisture is high at {moisture:g}%. Reduce watering frequency to prevent root rot, "
					"ensure proper drainage, and let the soil dry to 60-65% before the next watering."
				)
			return (
				f"Your soil moisture level of {moisture:g}% is in a workable range. Maintain the current "
				f"irrigation schedule but monitor daily, especially with air temperature at {temperature:g}°C."
			)

		if _has(text, "temperature", "heat", "cold"):
			if temperature > 32:
				return (
					f"High temperature alert: {temperature:g}°C is stressful for most crops. Provide shade "
					"cloth, increase watering frequency, and harvest early in the morning."
				)
			if temperature < 10:
				return (
					f"Low temperature warning: {temperature:g}°C may damage sensitive crops. Use row covers or "
					"greenhouse protection and favour cold-hardy crops like spinach and kale."
				)
			if 15 <= temperature <= 25:
				return (
					f"Excellent temperature conditions at {temperature:g}°C! This is ideal for planting, "
					"transplanting, and general maintenance."
				)

		if _has(text, "humidity"):
			if humidity > 85:
				return (
					f"Very high humidity at {humidity:g}% increases disease risk. Improve air circulation, "
					"space plants properly, and watch for powdery mildew, blight, and rust."
				)
			if humidity < 30:
				return (
					f"Low humidity at {humidity:g}% may stress plants and raise water needs. Consider misting, "
					"heavy mulching, or windbreaks."
				)
			return f"Humidity level of {humidity:g}% is within an acceptable range. Continue monitoring."

		if _has(text, "pest", "disease", "bug"):
			risk = "moderate"
			if humidity > 80 and temperature > 25:
				risk = "high"
			elif humidity < 40 and temperature < 20:
				risk = "low"
			guidance = {
				"high": "Inspect plants daily, improve air circulation, and keep neem oil or insecticidal soap ready.",
				"low": "Maintain regular monitoring and good garden hygiene.",
				"moderate": "Weekly plant inspections are recommended; keep good sanitation practices.",
			}[risk]
			return (
				f"Current conditions indicate {risk} pest/disease risk ({temperature:g}°C, {humidity:g}% "
				f"humidity). {guidance} Always use integrated pest management approaches first."
			)

		if _has(text, "ammonia", "gas", "air quality"):
			if ammonia > 25:
				return (
					f"High ammonia levels detected ({ammonia:g} ppm). This may indicate over-fertilization or "
					"poor ventilation. Reduce nitrogen applications and improve air circulation."
				)
			if ammonia > 15:
				return (
					f"Elevated ammonia levels ({ammonia:g} ppm). Monitor fertilizer applications and make sure "
					"organic matter is fully composted before use."
				)
			return f"Ammonia levels are normal ({ammonia:g} ppm), which points to healthy nutrient cycling."

	if _has(text, "fertilizer", "nutrients", "feed"):
		return (
			"Start with a soil test to determine specific nutrient needs. Generally, apply a balanced "
			"fertilizer (10-10-10 or 5-5-5) during the growing season, or organic options such as compost, "
			"aged manure, fish emulsion, and kelp meal. Avoid over-fertilizing."
		)

	if _has(text, "organic", "natural"):
		return (
			"Organic practices include composting, cover crops, companion planting, crop rotation, and "
			"beneficial insect habitats. Natural pest control options include neem oil, diatomaceous earth, "
			"and beneficial nematodes."
		)

	if _has(text, "harvest", "pick", "ready"):
		return (
			"Harvest timing depends on the crop, but look for proper colour, easy separation from the plant, "
			"and peak flavour. Harvest in the early morning when plants are fully hydrated."
		)

	return DEFAULT_HELP_TEXT


def build_system_prompt(sensor_data: ChatSensorContext | None) -> str:
	readings = ""
	if sensor_data is not None:
		updated = sensor_data.timestamp.isoformat() if sensor_data.timestamp else "unknown"
		readings = (
			"\nCurrent Sensor Readings:\n"
			f"- Air Temperature: {sensor_data.air_temperature}°C\n"
			f"- Air Humidity: {sensor_data.air_humidity}%\n"
			f"- Soil Moisture: {sensor_data.soil_moisture}%\n"
			f"- Ammonia Level: {sensor_data.ammonia} ppm\n"
			f"- Last Updated: {updated}\n"
		)
	return (
		"You are an expert agricultural assistant specializing in precision farming and IoT-based "
		"agriculture. You have access to real-time sensor data from a smart farming system.\n"
		f"{readings}\n"
		"Guidelines for responses:\n"
		"- Always reference current sensor data when providing recommendations\n"
		"- Provide specific, actionable advice with clear steps\n"
		"- Include safety considerations for any chemical applications\n"
		"- Be concise but thorough, using farmer-friendly language"
	)


class ChatService:
	def __init__(
		self,
		db: AsyncSession | None = None,
		*,
		sensor_store: SensorStore | None = None,
		transport: httpx.AsyncBaseTransport | None = None,
	):
		self.db = db
		self.settings = get_settings()
		self.sensor_store = sensor_store or (SensorStore(db) if db is not None else None)
		self.transport = transport

	async def reply(self, message: str, sensor_data: ChatSensorContext | None = None) -> ChatResponse:
		context = sensor_data or await self.latest_context()
		try:
			text = await self.call_llm(message=message, sensor_data=context)
		except (httpx.HTTPError, ValueError) as exc:
			logger.warning("chat_fallback", error=str(exc))
			return ChatResponse(message=fallback_reply(message, context), fallback=True)
		return ChatResponse(message=text, fallback=False)

	async def latest_context(self) -> ChatSensorContext | None:
		if self.sensor_store is None:
			return None
		try:
			reading = coerce_reading(await self.sensor_store.latest())
		except (NotFoundError, InvalidInputError):
			return None
		return ChatSensorContext(
			air_temperature=reading.air_temperature,
			air_humidity=reading.air_humidity,
			soil_moisture=reading.soil_moisture,
			ammonia=reading.ammonia,
			timestamp=reading.timestamp,
		)

	async def call_llm(self, *, message: str, sensor_data: ChatSensorContext | None) -> str:
		body: dict[str, Any] = {
			"model": self.settings.ollama_model,
			"messages": [
				{"role": "system", "content": build_system_prompt(sensor_data)},
				{"role": "user", "content": message},
			],
			"stream": False,
			"options": {
				"temperature": self.settings.ollama_temperature,
				"top_p": 0.9,
				"num_predict": self.settings.ollama_max_tokens,
			},
		}
		url = f"{self.settings.ollama_base_url.rstrip('/')}/api/chat"

		async with httpx.AsyncClient(timeout=self.settings.ollama_timeout_seconds, transport=self.transport) as client:
			response = await client.post(url, json=body)
			response.raise_for_status()
			payload = response.json()

		content = ""
		if isinstance(payload, dict) and isinstance(payload.get("message"), dict):
			content = str(payload["message"].get("content") or "").strip()
		return content or NO_RESPONSE_TEXT
