"""Sensor reading routes."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.exceptions import ConfigError
from app.schemas.sensors import FeedSyncResponse, SensorHistoryResponse, SensorReadingIn, SensorReadingOut
from app.services.events import publish_event
from app.services.sensor_store import SensorStore
from app.services.thingspeak_feed import FeedSyncService, FeedUnavailableError

router = APIRouter(prefix="/sensors", tags=["sensors"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, ConfigError):
		return HTTPException(status_code=status.HTTP_503_SERVICE_UNAVAILABLE, detail=str(exc))
	if isinstance(exc, FeedUnavailableError):
		return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="sensor store failure")


@router.post("/readings", response_model=SensorReadingOut, status_code=status.HTTP_201_CREATED)
async def record_reading(
	payload: SensorReadingIn,
	request: Request,
	db: AsyncSession = Depends(get_db),
) -> SensorReadingOut:
	try:
		row = await SensorStore(db).record(payload)
	except Exception as exc:
		raise _map_error(exc) from exc
	reading = SensorReadingOut.model_validate(row)
	await publish_event(
		getattr(request.app.state, "redis", None),
		"sensor_reading",
		reading.model_dump(mode="json"),
	)
	return reading


@router.get("/latest", response_model=SensorReadingOut)
async def latest_reading(db: AsyncSession = Depends(get_db)) -> SensorReadingOut:
	try:
		row = await SensorStore(db).latest()
	except Exception as exc:
		raise _map_error(exc) from exc
	return SensorReadingOut.model_validate(row)


@router.get("/history", response_model=SensorHistoryResponse)
async def reading_history(
	hours: int = Query(default=24, ge=1, le=24 * 31),
	db: AsyncSession = Depends(get_db),
) -> SensorHistoryResponse:
	try:
		rows = await SensorStore(db).history(hours=hours)
	except Exception as exc:
		raise _map_error(exc) from exc
	items = [SensorReadingOut.model_validate(row) for row in rows]
	return SensorHistoryResponse(hours=hours, count=len(items), items=items)


@router.post("/sync", response_model=FeedSyncResponse)
async def sync_feed(
	request: Request,
	results: int | None = Query(default=None, ge=1, le=8000),
	db: AsyncSession = Depends(get_db),
) -> FeedSyncResponse:
	"""Import new entries from the configured ThingSpeak channel."""
	service = FeedSyncService(db, getattr(request.app.state, "redis", None))
	try:
		return await service.sync(results)
	except Exception as exc:
		raise _map_error(exc) from exc
