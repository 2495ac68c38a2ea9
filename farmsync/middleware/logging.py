"""structlog configuration and per-request logging with request IDs."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from farmsync import __version__
from farmsync.config import LogFormat, get_settings

QUIET_PATHS = frozenset({"/health"})
NOISY_LOGGERS = ("httpx", "httpcore", "sqlalchemy.engine")

_configured = False


def _add_service(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
	event_dict.setdefault("service", "farmsync")
	event_dict.setdefault("version", __version__)
	return event_dict


def configure_structured_logging() -> None:
	"""Configure stdlib logging and structlog once per process."""
	global _configured
	if _configured:
		return

	settings = get_settings()
	log_level = getattr(logging, settings.log_level.upper(), logging.INFO)

	shared_processors: list[Any] = [
		structlog.contextvars.merge_contextvars,
		structlog.processors.add_log_level,
		structlog.processors.TimeStamper(fmt="iso", utc=True),
	]

	if settings.log_format == LogFormat.json:
		renderer: Any = structlog.processors.JSONRenderer()
		shared_processors.append(_add_service)
		logging.basicConfig(level=log_level, format="%(message)s")
	else:
		renderer = structlog.dev.ConsoleRenderer()
		logging.basicConfig(level=log_level)

	for name in NOISY_LOGGERS:
		logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

	structlog.configure(
		processors=[
			*shared_processors,
			structlog.processors.format_exc_info,
			renderer,
		],
		wrapper_class=structlog.make_filtering_bound_logger(log_level),
		logger_factory=structlog.PrintLoggerFactory(),
		cache_logger_on_first_use=True,
	)
	_configured = True


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Bind a request id, log timing, and tag each line with the connectivity state."""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		request_id = request.headers.get("x-request-id") or str(uuid.uuid4())
		request.state.request_id = request_id

		structlog.contextvars.clear_contextvars()
		structlog.contextvars.bind_contextvars(request_id=request_id)
		connectivity = getattr(request.app.state, "connectivity", None)
		if connectivity is not None:
			structlog.contextvars.bind_contextvars(online=connectivity.is_online)

		logger = structlog.get_logger("farmsync.request")
		start = time.perf_counter()

		try:
			response = await call_next(request)
		except Exception as exc:
			logger.exception(
				"http_request_failed",
				method=request.method,
				path=request.url.path,
				duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
				error=str(exc),
			)
			raise

		response.headers["x-request-id"] = request_id
		log = logger.debug if request.url.path in QUIET_PATHS else logger.info
		log(
			"http_request",
			method=request.method,
			path=request.url.path,
			status_code=response.status_code,
			duration_ms=round((time.perf_counter() - start) * 1000.0, 2),
		)
		return response
