"""Admin moderation endpoint."""

from src.services.actors import parse_bearer_token, resolve_actor
from src.services.moderation import list_listings_for_review, moderate_listing
from src.utils.errors import ListingValidationError
from src.utils.http import error_response, get_header, json_response, parse_json_body, run_async
from src.utils.logging import correlation_context, get_structured_logger
from src.utils.logging_config import LoggingConfig

logger = get_structured_logger(__name__)


async def _handle(request: dict) -> dict:
    method = request.get("method", "GET").upper()
    actor = await resolve_actor(parse_bearer_token(get_header(request, "Authorization")))

    if method == "GET":
        query = request.get("query") or {}
        queue = await list_listings_for_review(actor, status=query.get("status"), search=query.get("search"))
        return json_response(200, {
            "listings": [listing.model_dump() for listing in queue.listings],
            "counts": {status.value: count for status, count in queue.counts.items()},
        })

    if method != "POST":
        return json_response(405, {"error": "method not allowed"})

    body = parse_json_body(request)
    listing_id = body.get("listing_id")
    if listing_id in (None, ""):
        raise ListingValidationError("listing_id is required", field="listing_id")
    if not body.get("status"):
        raise ListingValidationError("status is required", field="status")

    listing = await moderate_listing(actor, listing_id, body["status"], body.get("rejection_reason"))
    return json_response(200, {"listing": listing.model_dump()})


def handler(request):
    """
    Moderate listings.

    GET lists listings for review (``status`` and ``search`` query params).
    POST changes one listing's status: {listing_id, status, rejection_reason?}.
    Requires an admin bearer token.
    """
    LoggingConfig.ensure_configured()

    with correlation_context(get_header(request, LoggingConfig.LOG_CORRELATION_ID_HEADER)):
        try:
            return run_async(_handle(request))
        except Exception as e:
            return error_response(e, logger, path=request.get("path"))
