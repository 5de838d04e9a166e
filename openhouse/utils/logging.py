"""Structured logging utilities with correlation IDs, performance timing, and PII masking."""

import logging
import time
import uuid
import re
import hashlib
from contextvars import ContextVar
from typing import Any, Optional, Dict, Callable
from contextlib import contextmanager
from functools import wraps
from datetime import datetime, timezone

from openhouse.utils.logging_config import LoggingConfig, get_logger


_correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)


def generate_correlation_id() -> str:
    """Generate a unique correlation ID for request tracing."""
    return f"req_{uuid.uuid4().hex[:12]}"


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from context."""
    return _correlation_id_var.get()


def set_correlation_id(correlation_id: Optional[str]) -> None:
    """Set the correlation ID in context."""
    _correlation_id_var.set(correlation_id)


@contextmanager
def correlation_context(correlation_id: Optional[str] = None):
    """Context manager for correlation ID propagation."""
    if correlation_id is None:
        correlation_id = generate_correlation_id()

    old_id = get_correlation_id()
    set_correlation_id(correlation_id)
    try:
        yield correlation_id
    finally:
        set_correlation_id(old_id)


def mask_sensitive_data(text: str) -> str:
    """Mask sensitive data in text (client PII, OAuth tokens)."""
    if not text or not LoggingConfig.LOG_MASK_SENSITIVE:
        return text

    text = re.sub(
        r'[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}',
        '[REDACTED_EMAIL]',
        text,
        flags=re.IGNORECASE
    )

    text = re.sub(
        r'\+?\d[\d\s().-]{7,}\d',
        '[REDACTED_PHONE]',
        text
    )

    text = re.sub(
        r'(?i)(api[_-]?key|token|secret|password|auth)[\s:=]+([A-Za-z0-9._/-]{20,})',
        r'\1=[REDACTED]',
        text
    )

    # Google OAuth access tokens
    text = re.sub(
        r'ya29\.[A-Za-z0-9._-]+',
        '[REDACTED_GOOGLE_TOKEN]',
        text
    )

    return text


def mask_email(email: Optional[str]) -> Optional[str]:
    """Keep the first character and the domain of an email address."""
    if not email or not LoggingConfig.LOG_MASK_SENSITIVE:
        return email

    local, _, domain = email.partition("@")
    if not domain:
        return hashlib.sha256(email.encode()).hexdigest()[:8]
    return f"{local[:1]}***@{domain}"


class StructuredLogger:
    """
    Logger wrapper that turns keyword arguments into record attributes.

    Every record carries a UTC ``timestamp`` and, inside a request, the
    ``correlation_id`` of that request.
    """

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _log(self, level: int, message: str, fields: Dict[str, Any], exc_info: bool = False) -> None:
        extra = {"timestamp": datetime.now(timezone.utc).isoformat()}
        correlation_id = get_correlation_id()
        if correlation_id:
            extra["correlation_id"] = correlation_id
        extra.update(fields)
        self.logger.log(level, message, extra=extra, exc_info=exc_info)

    def debug(self, message: str, **kwargs: Any) -> None:
        self._log(logging.DEBUG, message, kwargs)

    def info(self, message: str, **kwargs: Any) -> None:
        self._log(logging.INFO, message, kwargs)

    def warning(self, message: str, **kwargs: Any) -> None:
        self._log(logging.WARNING, message, kwargs)

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, kwargs, exc_info=exc_info)

    def exception(self, message: str, **kwargs: Any) -> None:
        self._log(logging.ERROR, message, kwargs, exc_info=True)


def get_structured_logger(name: str) -> StructuredLogger:
    return StructuredLogger(get_logger(name))


@contextmanager
def log_timing(operation_name: str, logger: Optional[StructuredLogger] = None, **context: Any):
    """
    Log how long the block took.

    One record per block: INFO normally, WARNING with ``threshold_ms`` once
    the duration passes ``LOG_SLOW_OPERATION_THRESHOLD_MS``.
    """
    logger = logger or get_structured_logger(__name__)
    started = time.perf_counter()
    try:
        yield
    finally:
        elapsed_ms = round((time.perf_counter() - started) * 1000, 2)
        threshold_ms = LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS
        if elapsed_ms > threshold_ms:
            logger.warning(
                f"Slow operation: {operation_name}",
                operation=operation_name,
                processing_time_ms=elapsed_ms,
                threshold_ms=threshold_ms,
                **context,
            )
        else:
            logger.info(
                f"Completed {operation_name}",
                operation=operation_name,
                processing_time_ms=elapsed_ms,
                **context,
            )


def timed(operation_name: Optional[str] = None, logger: Optional[StructuredLogger] = None):
    """Wrap a coroutine function in ``log_timing``."""
    def decorator(func: Callable) -> Callable:
        op_name = operation_name or f"{func.__module__}.{func.__name__}"
        log = logger or get_structured_logger(func.__module__)

        @wraps(func)
        async def wrapper(*args, **kwargs):
            with log_timing(op_name, logger=log):
                return await func(*args, **kwargs)

        return wrapper

    return decorator
