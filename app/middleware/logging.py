"""structlog setup and the per-request access log."""

from __future__ import annotations

import logging
import time
import uuid
from typing import Any

import structlog
from fastapi import Request
from starlette.middleware.base import BaseHTTPMiddleware

from app.config import LogFormat, get_settings

REQUEST_ID_HEADER = "x-request-id"
SERVICE_NAME = "soleil-farm"

_configured = False


def _add_service(_logger: Any, _method: str, event_dict: dict[str, Any]) -> dict[str, Any]:
	event_dict.setdefault("service", SERVICE_NAME)
	return event_dict


def configure_structured_logging() -> None:
	"""Route structlog and stdlib records (uvicorn, sqlalchemy) through one renderer."""
	global _configured
	if _configured:
		return

	settings = get_settings()
	level = getattr(logging, settings.log_level.upper(), logging.INFO)

	pre_chain: list[Any] = [
		structlog.contextvars.merge_contextvars,
		structlog.stdlib.add_log_level,
		structlog.stdlib.add_logger_name,
		structlog.processors.TimeStamper(fmt="iso", utc=True),
		_add_service,
		structlog.processors.format_exc_info,
	]
	if settings.log_format == LogFormat.json:
		renderer: Any = structlog.processors.JSONRenderer(ensure_ascii=False)
	else:
		renderer = structlog.dev.ConsoleRenderer()

	handler = logging.StreamHandler()
	handler.setFormatter(
		structlog.stdlib.ProcessorFormatter(
			foreign_pre_chain=pre_chain,
			processors=[structlog.stdlib.ProcessorFormatter.remove_processors_meta, renderer],
		)
	)
	root = logging.getLogger()
	root.handlers = [handler]
	root.setLevel(level)

	structlog.configure(
		processors=[*pre_chain, structlog.stdlib.ProcessorFormatter.wrap_for_formatter],
		logger_factory=structlog.stdlib.LoggerFactory(),
		wrapper_class=structlog.stdlib.BoundLogger,
		cache_logger_on_first_use=True,
	)
	_configured = True


def _elapsed_ms(started: float) -> float:
	return round((time.perf_counter() - started) * 1000.0, 2)


class RequestLoggingMiddleware(BaseHTTPMiddleware):
	"""Tag each request with an id and log one line per response.

	The id is taken from the caller's ``x-request-id`` header when present and
	echoed back; it is bound to structlog's context so service logs carry it.
	"""

	async def dispatch(self, request: Request, call_next):  # type: ignore[override]
		request_id = request.headers.get(REQUEST_ID_HEADER) or uuid.uuid4().hex
		request.state.request_id = request_id

		structlog.contextvars.clear_contextvars()
		structlog.contextvars.bind_contextvars(
			request_id=request_id,
			method=request.method,
			path=request.url.path,
		)
		logger = structlog.get_logger("soleil.request")
		started = time.perf_counter()

		try:
			response = await call_next(request)
		except Exception:
			logger.exception("request_failed", duration_ms=_elapsed_ms(started))
			raise

		response.headers[REQUEST_ID_HEADER] = request_id
		log = logger.warning if response.status_code >= 500 else logger.info
		log("request_completed", status_code=response.status_code, duration_ms=_elapsed_ms(started))
		return response
