"""SMS delivery through the Twilio REST API, with a logged mock when unconfigured."""

from __future__ import annotations

import secrets
from datetime import UTC, datetime

import httpx
import structlog

from app.config import Settings, get_settings
from app.schemas.sms import SmsReceipt

logger = structlog.get_logger("soilsense.sms")


class SmsDeliveryError(RuntimeError):
	"""The SMS provider rejected the message or could not be reached."""


class SmsDispatcher:
	def __init__(self, settings: Settings | None = None, transport: httpx.AsyncBaseTransport | None = None):
		self.settings = settings or get_settings()
		self.transport = transport

	@property
	def configured(self) -> bool:
		return bool(self.settings.twilio_account_sid and self.settings.twilio_auth_token)

	async def send(self, to: str, message: str, sms_type: str = "manual") -> SmsReceipt:
		if not self.configured:
			receipt = SmsReceipt(
				sid=f"SM{secrets.token_hex(16)}",
				to=to,
				from_number=self.settings.twilio_from_number,
				body=message,
				status="sent",
				type=sms_type,
				date_created=datetime.now(UTC),
				mocked=True,
			)
			logger.info("sms_sent", to=to, sms_type=sms_type, mocked=True, body=message)
			return receipt

		sid = self.settings.twilio_account_sid
		url = f"{self.settings.twilio_base_url}/Accounts/{sid}/Messages.json"
		form = {"To": to, "From": self.settings.twilio_from_number, "Body": message}
		try:
			async with httpx.AsyncClient(
				timeout=self.settings.sms_timeout_seconds,
				auth=(sid, self.settings.twilio_auth_token),
				transport=self.transport,
			) as client:
				response = await client.post(url, data=form)
				response.raise_for_status()
				payload = response.json()
		except (httpx.HTTPError, ValueError) as exc:
			logger.error("sms_send_failed", to=to, sms_type=sms_type, error=str(exc))
			raise SmsDeliveryError(f"failed to send SMS to {to}: {exc}") from exc

		logger.info("sms_sent", to=to, sms_type=sms_type, mocked=False, sid=payload.get("sid"))
		return SmsReceipt(
			sid=str(payload.get("sid") or ""),
			to=str(payload.get("to") or to),
			from_number=str(payload.get("from") or self.settings.twilio_from_number),
			body=str(payload.get("body") or message),
			status=str(payload.get("status") or "queued"),
			type=sms_type,
			date_created=datetime.now(UTC),
			mocked=False,
		)
