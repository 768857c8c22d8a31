"""Live event publication over Redis pub/sub."""

from __future__ import annotations

import json
from datetime import UTC, datetime
from typing import Any

import structlog
from redis.asyncio import Redis
from redis.exceptions import RedisError

from app.config import get_settings

logger = structlog.get_logger("soilsense.events")


async def publish_event(redis_client: Redis | None, event_type: str, payload: dict[str, Any]) -> None:
	"""Best-effort publish; a missing or failing Redis never blocks a write path."""
	if redis_client is None:
		return
	message = {
		"event_type": event_type,
		"published_at": datetime.now(UTC).isoformat(),
		**payload,
	}
	try:
		await redis_client.publish(get_settings().live_channel, json.dumps(message, default=str))
	except RedisError as exc:
		logger.warning("live_publish_failed", event_type=event_type, error=str(exc))
