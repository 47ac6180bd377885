"""Broker listing management endpoint."""

from src.services.actors import parse_bearer_token, resolve_actor
from src.services.listing_management import create_listing, delete_listing, update_listing_content
from src.utils.errors import ListingValidationError
from src.utils.http import error_response, get_header, json_response, parse_json_body, run_async
from src.utils.logging import correlation_context, get_structured_logger
from src.utils.logging_config import LoggingConfig

logger = get_structured_logger(__name__)


def _listing_id(request: dict, body: dict):
    listing_id = body.get("listing_id") or (request.get("query") or {}).get("listing_id")
    if listing_id in (None, ""):
        raise ListingValidationError("listing_id is required", field="listing_id")
    return listing_id


async def _handle(request: dict) -> dict:
    method = request.get("method", "GET").upper()
    if method not in ("POST", "PATCH", "DELETE"):
        return json_response(405, {"error": "method not allowed"})

    actor = await resolve_actor(parse_bearer_token(get_header(request, "Authorization")))
    body = parse_json_body(request)

    if method == "POST":
        listing = await create_listing(actor, body)
        return json_response(201, {"listing": listing.model_dump()})

    listing_id = _listing_id(request, body)

    if method == "PATCH":
        changes = {key: value for key, value in body.items() if key != "listing_id"}
        listing = await update_listing_content(actor, listing_id, changes)
        return json_response(200, {"listing": listing.model_dump()})

    await delete_listing(actor, listing_id)
    return json_response(200, {"ok": True, "listing_id": listing_id})


def handler(request):
    """
    Create (POST), edit (PATCH) or delete (DELETE) a listing.

    Edits never change moderation status; new listings start pending.
    """
    LoggingConfig.ensure_configured()

    with correlation_context(get_header(request, LoggingConfig.LOG_CORRELATION_ID_HEADER)):
        try:
            return run_async(_handle(request))
        except Exception as e:
            return error_response(e, logger, path=request.get("path"), method=request.get("method"))
