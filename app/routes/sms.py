"""SMS routes: direct sends and sensor alert checks."""

from __future__ import annotations

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.schemas.sms import AlertCheckRequest, AlertCheckResponse, SmsSendRequest, SmsSendResponse
from app.services.alert_service import AlertService
from app.services.sms_service import SmsDeliveryError, SmsDispatcher

router = APIRouter(prefix="/sms", tags=["sms"])


def _map_error(exc: Exception) -> HTTPException:
	if isinstance(exc, SmsDeliveryError):
		return HTTPException(status_code=status.HTTP_502_BAD_GATEWAY, detail=str(exc))
	if isinstance(exc, LookupError):
		return HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail=str(exc))
	if isinstance(exc, ValueError):
		return HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(exc))
	return HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="sms failure")


@router.post("/send", response_model=SmsSendResponse)
async def send_sms(payload: SmsSendRequest) -> SmsSendResponse:
	try:
		receipt = await SmsDispatcher().send(payload.to, payload.message, sms_type=payload.type)
	except Exception as exc:
		raise _map_error(exc) from exc
	return SmsSendResponse(success=True, message="SMS sent successfully", data=receipt)


@router.post("/alerts", response_model=AlertCheckResponse)
async def check_alerts(
	payload: AlertCheckRequest,
	db: AsyncSession = Depends(get_db),
) -> AlertCheckResponse:
	try:
		return await AlertService(db).check_and_notify(payload.phone_number, payload.alert_types)
	except Exception as exc:
		raise _map_error(exc) from exc
