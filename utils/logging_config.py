"""Logging setup with per-request correlation ids."""

from __future__ import annotations

import logging
import time
import uuid
from contextvars import ContextVar

from fastapi import Request

CORRELATION_HEADER = "X-Correlation-ID"
LOG_FORMAT = "%(asctime)s %(levelname)s [%(correlation_id)s] %(name)s: %(message)s"

_correlation_id: ContextVar[str] = ContextVar("correlation_id", default="-")

LOGGER = logging.getLogger("sitebuilder.http")


def get_correlation_id() -> str:
    return _correlation_id.get()


def new_correlation_id() -> str:
    return uuid.uuid4().hex


class CorrelationIdFilter(logging.Filter):
    """Attach the current correlation id to every record."""

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = _correlation_id.get()
        return True


def configure_logging(level: str = "INFO") -> None:
    """Install a stream handler that prints correlation ids.

    Safe to call more than once; the handler is only added the first time.
    """
    root = logging.getLogger()
    root.setLevel(getattr(logging, level.upper(), logging.INFO))
    for handler in root.handlers:
        if any(isinstance(f, CorrelationIdFilter) for f in handler.filters):
            return
    handler = logging.StreamHandler()
    handler.setFormatter(logging.Formatter(LOG_FORMAT))
    handler.addFilter(CorrelationIdFilter())
    root.addHandler(handler)


async def correlation_id_middleware(request: Request, call_next):
    """Bind a correlation id for the request and log its outcome."""
    correlation_id = request.headers.get(CORRELATION_HEADER) or new_correlation_id()
    token = _correlation_id.set(correlation_id)
    start = time.perf_counter()
    try:
        response = await call_next(request)
        duration_ms = (time.perf_counter() - start) * 1000
        LOGGER.info(
            "%s %s -> %s (%.1f ms)",
            request.method,
            request.url.path,
            response.status_code,
            duration_ms,
        )
        response.headers[CORRELATION_HEADER] = correlation_id
        return response
    finally:
        _correlation_id.reset(token)
