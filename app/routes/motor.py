"""Irrigation motor routes: status, manual commands, automatic control."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.motor import AutoControlResponse, MotorCommand, MotorHistoryResponse, MotorStateOut
from app.services.motor_service import MotorService

router = APIRouter(prefix="/motor", tags=["motor"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="motor control failure")


@router.get("", response_model=MotorStateOut)
async def get_motor_status(
	request: Request,
	db: AsyncSession = Depends(get_db),
) -> MotorStateOut:
	service = MotorService(db, getattr(request.app.state, "redis", None))
	try:
		return await service.get_status()
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("", response_model=MotorStateOut)
async def set_motor_status(
	payload: MotorCommand,
	request: Request,
	db: AsyncSession = Depends(get_db),
) -> MotorStateOut:
	service = MotorService(db, getattr(request.app.state, "redis", None))
	try:
		return await service.set_state(payload)
	except Exception as exc:
		raise _map_error(exc) from exc


@router.post("/auto-control", response_model=AutoControlResponse)
async def run_auto_control(
	request: Request,
	db: AsyncSession = Depends(get_db),
) -> AutoControlResponse:
	service = MotorService(db, getattr(request.app.state, "redis", None))
	try:
		return await service.run_auto_control()
	except Exception as exc:
		raise _map_error(exc) from exc


@router.get("/history", response_model=MotorHistoryResponse)
async def motor_history(
	request: Request,
	limit: int = Query(default=50, ge=1, le=500),
	db: AsyncSession = Depends(get_db),
) -> MotorHistoryResponse:
	service = MotorService(db, getattr(request.app.state, "redis", None))
	try:
		items = await service.history(limit=limit)
	except Exception as exc:
		raise _map_error(exc) from exc
	return MotorHistoryResponse(count=len(items), items=items)
