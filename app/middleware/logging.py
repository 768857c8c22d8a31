"""Structured logging setup and per-request logging middleware."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import LogFormat, get_settings
from app.middleware.rate_limit import client_identity

REQUEST_ID_HEADER = "x-request-id"

# Probed every few seconds by orchestrators; logged at debug only.
QUIET_PATH_PREFIXES = ("/health",)

_configured = False


def _add_service_name(_: Any, __: str, event_dict: dict[str, Any]) -> dict[str, Any]:
	event_dict.setdefault("service", "soilsense")
	return event_dict


def configure_structured_logging() -> None:
	"""Route stdlib logging and structlog through one renderer, once per process."""
	global _configured
	if _configured:
		return

	settings = get_settings()
	log_level = getattr(logging, settings.log_level.upper(), logging.INFO)
	logging.basicConfig(level=log_level, format="%(message)s")

	renderer: Any
	if settings.log_format == LogFormat.json:
		renderer = structlog.processors.JSONRenderer()
	else:
		renderer = structlog.dev.ConsoleRenderer()

	structlog.configure(
		processors=[
			structlog.contextvars.merge_contextvars,
			structlog.processors.add_log_level,
			structlog.stdlib.add_logger_name,
			_add_service_name,
			structlog.processors.TimeStamper(fmt="iso", utc=True),
			structlog.processors.format_exc_info,
			renderer,
		],
		wrapper_class=structlog.make_filtering_bound_logger(log_level),
		logger_factory=structlog.stdlib.LoggerFactory(),
		cache_logger_on_first_use=True,
	)
	_configured = True


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Bind a request id and client to the log context; one timing line per request."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
		request.state.request_id = request_id

		structlog.contextvars.clear_contextvars()
		structlog.contextvars.bind_contextvars(request_id=request_id, client=client_identity(request))

		logger = structlog.get_logger("soilsense.request")
		path = request.url.path
		started = time.perf_counter()

		def elapsed_ms() -> float:
			return round((time.perf_counter() - started) * 1000.0, 2)

		try:
			response = await call_next(request)
		except Exception as exc:
			logger.exception("http_request_failed", method=request.method, path=path, duration_ms=elapsed_ms(), error=str(exc))
			raise

		response.headers[REQUEST_ID_HEADER] = request_id
		if response.status_code >= 500:
			emit = logger.warning
		elif path.startswith(QUIET_PATH_PREFIXES):
			emit = logger.debug
		else:
			emit = logger.info
		emit("http_request", method=request.method, path=path, status_code=response.status_code, duration_ms=elapsed_ms())
		return response
