"""Helpers shared by the Vercel function handlers under api/."""

import asyncio
import json
from decimal import Decimal
from typing import Any, Awaitable, Mapping, Optional, TypeVar

from src.utils.errors import (
    AuthenticationError,
    AuthorizationError,
    ListingNotFoundError,
    ListingValidationError,
    SupabaseError,
)
from src.utils.logging import StructuredLogger

T = TypeVar("T")

JSON_HEADERS = {"Content-Type": "application/json"}


def _default(value: Any) -> Any:
    if isinstance(value, Decimal):
        return float(value)
    if isinstance(value, (set, frozenset)):
        return sorted(value)
    if hasattr(value, "isoformat"):
        return value.isoformat()
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def json_response(status_code: int, body: Any, headers: Optional[Mapping[str, str]] = None) -> dict:
    """Vercel function response with a JSON body."""
    return {
        "statusCode": status_code,
        "headers": {**JSON_HEADERS, **(headers or {})},
        "body": json.dumps(body, default=_default),
    }


def run_async(awaitable: Awaitable[T]) -> T:
    """Run a coroutine from a synchronous handler."""
    try:
        loop = asyncio.get_event_loop()
    except RuntimeError:
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    if loop.is_closed():
        loop = asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
    return loop.run_until_complete(awaitable)


def get_header(request: Mapping[str, Any], name: str) -> Optional[str]:
    """Case-insensitive request header lookup."""
    headers = request.get("headers") or {}
    wanted = name.lower()
    for key, value in headers.items():
        if key.lower() == wanted:
            return value
    return None


def parse_json_body(request: Mapping[str, Any]) -> dict:
    """Request body as a dict; raises a validation error for malformed JSON."""
    body = request.get("body")
    if body is None or body == "":
        return {}
    if isinstance(body, (bytes, bytearray)):
        body = body.decode("utf-8")
    if isinstance(body, str):
        try:
            body = json.loads(body)
        except json.JSONDecodeError:
            raise ListingValidationError("Request body is not valid JSON", field="body")
    if not isinstance(body, dict):
        raise ListingValidationError("Request body must be a JSON object", field="body")
    return body


def error_response(error: Exception, logger: StructuredLogger, **context: Any) -> dict:
    """Map a service exception to its HTTP response and log it."""
    if isinstance(error, ListingValidationError):
        logger.info("Validation failed", field=error.field, error=str(error), **context)
        return json_response(400, {"error": str(error), "field": error.field})
    if isinstance(error, AuthenticationError):
        logger.info("Authentication failed", error=str(error), **context)
        return json_response(401, {"error": str(error)})
    if isinstance(error, AuthorizationError):
        logger.warning("Access denied", error=str(error), **context)
        return json_response(403, {"error": str(error)})
    if isinstance(error, ListingNotFoundError):
        logger.info("Listing not found", listing_id=error.listing_id, **context)
        return json_response(404, {"error": str(error)})
    if isinstance(error, SupabaseError):
        logger.error("Backing store error", error=str(error), **context)
        return json_response(502, {"error": "backing store unavailable"})
    logger.exception("Unhandled error", error=str(error), **context)
    return json_response(500, {"error": "internal server error"})
