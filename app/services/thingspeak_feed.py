"""Pull sensor readings from a ThingSpeak channel into the sensor store.

The channel's eight fields map onto the eight reading measurements through
``thingspeak_field_map``.  Entries already covered by the newest stored
reading are skipped, so repeated syncs never duplicate a reading.  An
unconfigured channel is an error: demo values are never written to the
time series.
"""

from __future__ import annotations

from collections.abc import Mapping
from datetime import UTC, datetime
from typing import Any

import httpx
import structlog
from pydantic import ValidationError
from redis.asyncio import Redis
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import Settings, get_settings
from app.exceptions import ConfigError, InvalidInputError, NotFoundError
from app.schemas.sensors import FeedSyncResponse, SensorReadingIn, SensorReadingOut
from app.services.events import publish_event
from app.services.sensor_store import SensorStore

logger = structlog.get_logger("soilsense.thingspeak")


class FeedUnavailableError(RuntimeError):
	"""The ThingSpeak channel could not be read or returned malformed data."""


def _aware(value: datetime) -> datetime:
	return value if value.tzinfo is not None else value.replace(tzinfo=UTC)


def parse_feed_entry(entry: Mapping[str, Any], field_map: Mapping[str, str]) -> SensorReadingIn:
	"""Translate one channel entry into a reading; blank fields count as missing."""
	if not entry.get("created_at"):
		raise InvalidInputError(f"feed entry {entry.get('entry_id')} has no created_at")

	values: dict[str, Any] = {"timestamp": entry["created_at"]}
	for field, measurement in field_map.items():
		raw = entry.get(field)
		if raw is None or (isinstance(raw, str) and not raw.strip()):
			continue
		values[measurement] = raw

	try:
		return SensorReadingIn.model_validate(values)
	except ValidationError as exc:
		fields = sorted({".".join(str(part) for part in err["loc"]) or "entry" for err in exc.errors()})
		raise InvalidInputError(f"invalid feed entry {entry.get('entry_id')}: {', '.join(fields)}") from exc


class ThingSpeakFeed:
	def __init__(self, settings: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None):
		self.settings = settings or get_settings()
		self.transport = transport

	@property
	def configured(self) -> bool:
		key = self.settings.thingspeak_read_api_key
		return bool(self.settings.thingspeak_channel_id and key and key != "demo_key")

	async def fetch_entries(self, results: int) -> tuple[str | None, list[dict[str, Any]]]:
		if not self.configured:
			raise ConfigError("ThingSpeak channel is not configured")

		url = f"{self.settings.thingspeak_base_url.rstrip('/')}/channels/{self.settings.thingspeak_channel_id}/feeds.json"
		params = {"api_key": self.settings.thingspeak_read_api_key, "results": results}
		try:
			async with httpx.AsyncClient(
				timeout=self.settings.thingspeak_timeout_seconds,
				transport=self.transport,
			) as client:
				response = await client.get(url, params=params)
				response.raise_for_status()
				payload = response.json()
		except (httpx.HTTPError, ValueError) as exc:
			logger.error("thingspeak_fetch_failed", channel_id=self.settings.thingspeak_channel_id, error=str(exc))
			raise FeedUnavailableError(f"ThingSpeak request failed: {exc}") from exc

		if not isinstance(payload, dict) or not isinstance(payload.get("feeds"), list):
			raise FeedUnavailableError("Invalid data received from ThingSpeak")

		channel = payload.get("channel")
		name = channel.get("name") if isinstance(channel, dict) else None
		return name, [entry for entry in payload["feeds"] if isinstance(entry, dict)]


class FeedSyncService:
	def __init__(
		self,
		db: AsyncSession,
		redis_client: Redis | None = None,
		*,
		sensor_store: SensorStore | None = None,
		feed: ThingSpeakFeed | None = None,
	):
		self.db = db
		self.redis_client = redis_client
		self.settings = get_settings()
		self.sensor_store = sensor_store or SensorStore(db)
		self.feed = feed or ThingSpeakFeed(self.settings)

	async def sync(self, results: int | None = None) -> FeedSyncResponse:
		channel, entries = await self.feed.fetch_entries(results or self.settings.thingspeak_results)

		try:
			newest: datetime | None = _aware((await self.sensor_store.latest()).timestamp)
		except NotFoundError:
			newest = None

		recorded: list[SensorReadingOut] = []
		skipped = 0
		for entry in entries:
			try:
				payload = parse_feed_entry(entry, self.settings.thingspeak_field_map)
			except InvalidInputError as exc:
				logger.warning("feed_entry_skipped", entry_id=entry.get("entry_id"), error=str(exc))
				skipped += 1
				continue

			timestamp = _aware(payload.timestamp)  # type: ignore[arg-type]
			if newest is not None and timestamp <= newest:
				skipped += 1
				continue

			reading = SensorReadingOut.model_validate(await self.sensor_store.record(payload))
			recorded.append(reading)
			newest = timestamp
			await publish_event(self.redis_client, "sensor_reading", reading.model_dump(mode="json"))

		logger.info("feed_synced", channel=channel, fetched=len(entries), recorded=len(recorded), skipped=skipped)
		return FeedSyncResponse(
			channel=channel,
			fetched=len(entries),
			recorded=len(recorded),
			skipped=skipped,
			latest_timestamp=newest,
			items=recorded,
		)
