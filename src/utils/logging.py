"""Structured logging for listing search and moderation.

Correlation IDs ride a ContextVar so every record a request emits carries the
same ``correlation_id``. Search terms and user ids pass through the masking
helpers before they reach a log line.
"""

import hashlib
import logging
import re
import time
import uuid
from contextlib import contextmanager
from contextvars import ContextVar
from functools import wraps
from typing import Any, Awaitable, Callable, Optional, TypeVar

from src.utils.logging_config import LoggingConfig, get_logger

T = TypeVar("T")

_correlation_id_var: ContextVar[Optional[str]] = ContextVar('correlation_id', default=None)

_SENSITIVE_PATTERNS = (
    (re.compile(r'[A-Z0-9._%+-]+@[A-Z0-9.-]+\.[A-Z]{2,}', re.IGNORECASE), '[REDACTED_EMAIL]'),
    (re.compile(r'\b\+?\d[\d\s().-]{7,}\b'), '[REDACTED_PHONE]'),
    # Supabase access tokens, bare or in an Authorization header
    (re.compile(r'bearer\s+[A-Za-z0-9._-]+', re.IGNORECASE), 'Bearer [REDACTED]'),
    (re.compile(r'eyJ[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+\.[A-Za-z0-9_-]+'), '[REDACTED_JWT]'),
    (re.compile(r'(api[_-]?key|token|secret|password|auth)[\s:=]+([A-Za-z0-9_-]{20,})', re.IGNORECASE), r'\1=[REDACTED]'),
)


def get_correlation_id() -> Optional[str]:
    """Get the current correlation ID from context."""
    return _correlation_id_var.get()


@contextmanager
def correlation_context(correlation_id: Optional[str] = None):
    """Bind a correlation ID (a fresh ``req_`` id when none is given) for the block."""
    correlation_id = correlation_id or f"req_{uuid.uuid4().hex[:12]}"
    token = _correlation_id_var.set(correlation_id)
    try:
        yield correlation_id
    finally:
        _correlation_id_var.reset(token)


def mask_sensitive_data(text: str) -> str:
    """Redact emails, phone numbers and credentials."""
    if not text or not LoggingConfig.LOG_MASK_SENSITIVE:
        return text
    for pattern, replacement in _SENSITIVE_PATTERNS:
        text = pattern.sub(replacement, text)
    return text


def mask_user_id(user_id: str) -> str:
    """Mask or hash user ID for privacy."""
    if not LoggingConfig.LOG_MASK_SENSITIVE or not user_id:
        return user_id

    # First 4 chars + short hash
    if len(user_id) > 12:
        hashed = hashlib.sha256(user_id.encode()).hexdigest()[:8]
        return f"{user_id[:4]}...{hashed}"
    return user_id


def sanitize_search_text(text: Optional[str], max_length: int = 100) -> Optional[str]:
    """Search term as it may appear in logs, or None when terms are not logged."""
    if not LoggingConfig.LOG_SEARCH_TERMS or not text:
        return None

    if len(text) > max_length:
        text = text[:max_length] + "..."
    return mask_sensitive_data(text)


class StructuredLogger:
    """Logger wrapper with keyword-argument structured fields."""

    def __init__(self, logger: logging.Logger):
        self.logger = logger

    def _get_extra(self, **kwargs: Any) -> dict[str, Any]:
        correlation_id = get_correlation_id()
        if correlation_id:
            return {"correlation_id": correlation_id, **kwargs}
        return kwargs

    def debug(self, message: str, **kwargs: Any) -> None:
        self.logger.debug(message, extra=self._get_extra(**kwargs))

    def info(self, message: str, **kwargs: Any) -> None:
        self.logger.info(message, extra=self._get_extra(**kwargs))

    def warning(self, message: str, **kwargs: Any) -> None:
        self.logger.warning(message, extra=self._get_extra(**kwargs))

    def error(self, message: str, exc_info: bool = False, **kwargs: Any) -> None:
        self.logger.error(message, extra=self._get_extra(**kwargs), exc_info=exc_info)

    def exception(self, message: str, **kwargs: Any) -> None:
        self.logger.exception(message, extra=self._get_extra(**kwargs))


def get_structured_logger(name: str) -> StructuredLogger:
    return StructuredLogger(get_logger(name))


@contextmanager
def log_timing(operation_name: str, logger: Optional[StructuredLogger] = None, **context: Any):
    """Log how long the block took, warning past LOG_SLOW_OPERATION_THRESHOLD_MS."""
    logger = logger or get_structured_logger(__name__)

    start_time = time.time()
    logger.debug(f"Starting {operation_name}", operation=operation_name, **context)
    try:
        yield
    finally:
        elapsed_ms = round((time.time() - start_time) * 1000, 2)
        logger.info(
            f"Completed {operation_name}",
            operation=operation_name,
            processing_time_ms=elapsed_ms,
            **context
        )
        if elapsed_ms > LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS:
            logger.warning(
                f"Slow operation detected: {operation_name}",
                operation=operation_name,
                processing_time_ms=elapsed_ms,
                threshold_ms=LoggingConfig.LOG_SLOW_OPERATION_THRESHOLD_MS,
                **context
            )


def timed(operation_name: Optional[str] = None, logger: Optional[StructuredLogger] = None):
    """Wrap a service coroutine in ``log_timing``."""
    def decorator(func: Callable[..., Awaitable[T]]) -> Callable[..., Awaitable[T]]:
        op_name = operation_name or f"{func.__module__}.{func.__name__}"
        log = logger or get_structured_logger(func.__module__)

        @wraps(func)
        async def wrapper(*args, **kwargs) -> T:
            with log_timing(op_name, logger=log):
                return await func(*args, **kwargs)

        return wrapper

    return decorator
