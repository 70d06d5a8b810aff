"""
Domain errors and error aggregation.

Service code raises ``StoreHoursError`` subclasses; routes turn them into
HTTP responses. Every error that reaches a route or the global handler is
recorded in the aggregator, which deduplicates repeats and feeds /metrics.
"""
import hashlib
import time
from enum import Enum
from typing import Any, Dict, Optional

import structlog
from fastapi import HTTPException

logger = structlog.get_logger(__name__)


class StoreHoursError(Exception):
    """Base class for errors raised by the store hours service layer."""

    status_code = 400
    code = "BAD_REQUEST"

    def __init__(self, message: str):
        super().__init__(message)
        self.message = message


class MerchantNotFoundError(StoreHoursError):
    status_code = 404
    code = "MERCHANT_NOT_FOUND"

    def __init__(self, merchant_code: str):
        super().__init__(f"Merchant '{merchant_code}' not found")
        self.merchant_code = merchant_code


class MerchantInactiveError(StoreHoursError):
    status_code = 400
    code = "MERCHANT_INACTIVE"

    def __init__(self, merchant_code: str):
        super().__init__("Merchant is currently not accepting orders")
        self.merchant_code = merchant_code


class ScheduleValidationError(StoreHoursError):
    """Input rejected before it reaches the availability evaluator."""

    status_code = 422
    code = "VALIDATION_ERROR"


class ErrorSeverity(Enum):
    LOW = "low"            # client mistakes: unknown merchant, bad query params
    MEDIUM = "medium"      # unexpected exceptions
    HIGH = "high"          # database or configuration failures
    CRITICAL = "critical"


SEVERITY_BY_TYPE = {
    "ValidationError": ErrorSeverity.LOW,
    "OperationalError": ErrorSeverity.HIGH,
    "InterfaceError": ErrorSeverity.HIGH,
    "ZoneInfoNotFoundError": ErrorSeverity.HIGH,
    "TimeoutError": ErrorSeverity.MEDIUM,
}


def _fingerprint(error_type: str, message: str, endpoint: str) -> str:
    content = f"{error_type}:{message}:{endpoint}"
    return hashlib.md5(content.encode(), usedforsecurity=False).hexdigest()[:8]


class ErrorPattern:
    """One distinct error: same type, message prefix and endpoint."""

    def __init__(self, error_type: str, message: str, endpoint: str, severity: ErrorSeverity):
        self.error_type = error_type
        self.message = message[:100]
        self.endpoint = endpoint
        self.severity = severity
        self.fingerprint = _fingerprint(error_type, self.message, endpoint)
        self.merchant_codes: set[str] = set()
        self.first_seen = self.last_seen = time.time()
        self.count = 0

    def record(self, merchant_code: Optional[str]):
        self.count += 1
        self.last_seen = time.time()
        if merchant_code:
            self.merchant_codes.add(merchant_code)


class ErrorAggregator:
    """Count repeated errors and log only the first and every Nth occurrence."""

    def __init__(self, log_threshold: int = 10, time_window: int = 300):
        self.log_threshold = log_threshold
        self.time_window = time_window  # seconds a pattern counts as recent
        self.patterns: Dict[str, ErrorPattern] = {}

    def severity_for(self, error: Exception) -> ErrorSeverity:
        name = type(error).__name__
        if name in SEVERITY_BY_TYPE:
            return SEVERITY_BY_TYPE[name]
        status = getattr(error, "status_code", None)
        if isinstance(error, (StoreHoursError, HTTPException)) and status is not None:
            return ErrorSeverity.LOW if status < 500 else ErrorSeverity.HIGH
        return ErrorSeverity.MEDIUM

    def should_log(self, pattern: ErrorPattern) -> bool:
        if pattern.severity in (ErrorSeverity.HIGH, ErrorSeverity.CRITICAL) or pattern.count == 1:
            return True
        every = self.log_threshold if pattern.severity == ErrorSeverity.MEDIUM else self.log_threshold * 5
        return pattern.count % every == 0

    def log_error(self, error: Exception, context: Optional[Dict[str, Any]] = None,
                  severity: Optional[ErrorSeverity] = None) -> str:
        """Record ``error`` and log it unless it is a suppressed repeat.

        Returns the pattern fingerprint.
        """
        context = context or {}
        error_type = type(error).__name__
        endpoint = context.get("endpoint", "")
        fingerprint = _fingerprint(error_type, str(error)[:100], endpoint)

        pattern = self.patterns.get(fingerprint)
        if pattern is None:
            pattern = ErrorPattern(error_type, str(error), endpoint, severity or self.severity_for(error))
            self.patterns[fingerprint] = pattern
        pattern.record(context.get("merchant_code"))

        if self.should_log(pattern):
            logger.error(
                "aggregated_error",
                error_hash=fingerprint,
                error_type=error_type,
                error=str(error),
                count=pattern.count,
                severity=pattern.severity.value,
                **context,
            )
        return fingerprint

    def get_error_summary(self) -> Dict[str, Any]:
        """Recent error patterns, for the /metrics endpoint."""
        now = time.time()
        recent = [p for p in self.patterns.values() if now - p.last_seen < self.time_window]

        by_severity: Dict[str, int] = {}
        for p in recent:
            by_severity[p.severity.value] = by_severity.get(p.severity.value, 0) + p.count

        top = sorted(recent, key=lambda p: p.count, reverse=True)[:5]
        return {
            "total_unique_errors": len(recent),
            "total_error_count": sum(p.count for p in recent),
            "by_severity": by_severity,
            "top_errors": [
                {
                    "fingerprint": p.fingerprint,
                    "type": p.error_type,
                    "message": p.message,
                    "endpoint": p.endpoint,
                    "count": p.count,
                    "merchants": sorted(p.merchant_codes)[:10],
                }
                for p in top
            ],
        }

    def cleanup_old_patterns(self):
        cutoff = time.time() - self.time_window * 10
        stale = [fp for fp, p in self.patterns.items() if p.last_seen < cutoff]
        for fp in stale:
            del self.patterns[fp]
        if stale:
            logger.info("error_cleanup", removed_patterns=len(stale))


# Global error aggregator instance
error_aggregator = ErrorAggregator()


def log_error(error: Exception, context: Optional[Dict[str, Any]] = None,
              severity: Optional[ErrorSeverity] = None) -> str:
    return error_aggregator.log_error(error, context, severity)


def get_error_summary() -> Dict[str, Any]:
    return error_aggregator.get_error_summary()
