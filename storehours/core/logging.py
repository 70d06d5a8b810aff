"""
Structured logging with per-request correlation IDs.

Every log line emitted while a request is in flight carries the correlation
id plus whatever request context was set (path, method, merchant code), so a
single status decision can be traced from the middleware line to the
``store_status_evaluated`` event.
"""
import logging
import time
import uuid
from contextvars import ContextVar
from typing import Any, Dict, Optional

import structlog
from fastapi import Request

correlation_id_var: ContextVar[str] = ContextVar("correlation_id", default="")
request_context_var: ContextVar[Dict[str, Any]] = ContextVar("request_context", default={})

# Free-text fields that may grow with user input or stack traces
TRUNCATED_FIELDS = ("message", "error", "reason")


class TruncateProcessor:
    """Cap the length of free-text fields."""

    def __init__(self, max_length: int = 200):
        self.max_length = max_length

    def __call__(self, logger, method_name, event_dict):
        for key in TRUNCATED_FIELDS:
            value = event_dict.get(key)
            if value is not None:
                event_dict[key] = str(value)[:self.max_length]
        return event_dict


def add_request_context(logger, method_name, event_dict):
    """Merge correlation id and request context; explicit event keys win."""
    correlation_id = correlation_id_var.get()
    if correlation_id:
        event_dict["correlation_id"] = correlation_id
    for key, value in request_context_var.get().items():
        event_dict.setdefault(key, value)
    return event_dict


def setup_logging(debug: bool = False, max_log_length: int = 200, level: str = "INFO"):
    """Configure structlog on top of stdlib logging.

    Console rendering in development, one JSON object per line otherwise.
    """
    log_level = logging.DEBUG if debug else getattr(logging, level.upper(), logging.INFO)

    processors = [
        structlog.stdlib.filter_by_level,
        add_request_context,
        TruncateProcessor(max_length=max_log_length),
        structlog.stdlib.add_logger_name,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.format_exc_info,
        structlog.dev.ConsoleRenderer() if debug else structlog.processors.JSONRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        logger_factory=structlog.stdlib.LoggerFactory(),
        context_class=dict,
        cache_logger_on_first_use=True,
    )

    logging.basicConfig(level=log_level, format="%(message)s")
    logging.getLogger().setLevel(log_level)


def get_logger(name: str = __name__):
    return structlog.get_logger(name)


def set_correlation_id(correlation_id: str):
    correlation_id_var.set(correlation_id)


def set_request_context(merchant_code: Optional[str] = None, endpoint: Optional[str] = None,
                        method: Optional[str] = None, **extra):
    """Add keys to the current request's log context (None values are skipped)."""
    context = dict(request_context_var.get())
    fields = {"merchant_code": merchant_code, "endpoint": endpoint, "method": method, **extra}
    context.update({k: v for k, v in fields.items() if v is not None})
    request_context_var.set(context)


def clear_context():
    correlation_id_var.set("")
    request_context_var.set({})


class LoggingMiddleware:
    """HTTP middleware: assigns a correlation id and logs slow or failed requests.

    Successful fast requests are only logged when ``log_responses`` is on;
    status polling would otherwise dominate the log volume.
    """

    def __init__(self, log_requests: bool = False, log_responses: bool = False,
                 slow_threshold: float = 2.0):
        self.log_requests = log_requests
        self.log_responses = log_responses
        self.slow_threshold = slow_threshold
        self.logger = get_logger("storehours.http")

    async def __call__(self, request: Request, call_next):
        correlation_id = request.headers.get("x-correlation-id", "")[:8] or uuid.uuid4().hex[:8]
        set_correlation_id(correlation_id)
        set_request_context(endpoint=request.url.path, method=request.method)
        request.state.correlation_id = correlation_id

        if self.log_requests:
            self.logger.info("request_start", query_params=dict(request.query_params))

        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception as e:
            self.logger.error(
                "request_error",
                error=str(e),
                error_type=type(e).__name__,
                duration=round(time.perf_counter() - start, 3),
            )
            raise
        else:
            duration = time.perf_counter() - start
            slow = duration > self.slow_threshold
            if self.log_responses or slow or response.status_code >= 400:
                self.logger.info(
                    "request_complete",
                    status_code=response.status_code,
                    duration=round(duration, 3),
                    slow=slow,
                )
            response.headers["X-Correlation-ID"] = correlation_id
            return response
        finally:
            clear_context()
