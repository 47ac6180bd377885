"""Landing page listings endpoint."""

from src.services.listing_search import count_approved_listings, fetch_featured_listings
from src.utils.errors import ListingValidationError, SupabaseError
from src.utils.http import error_response, get_header, json_response, run_async
from src.utils.logging import correlation_context, get_structured_logger
from src.utils.logging_config import LoggingConfig

logger = get_structured_logger(__name__)

DEFAULT_FEATURED_LIMIT = 3


def _parse_limit(raw) -> int:
    if raw is None or str(raw).strip() == "":
        return DEFAULT_FEATURED_LIMIT
    try:
        limit = int(raw)
    except (TypeError, ValueError):
        raise ListingValidationError(f"Invalid limit: {raw}", field="limit")
    if not 1 <= limit <= 50:
        raise ListingValidationError("limit must be between 1 and 50", field="limit")
    return limit


def handler(request):
    """
    Featured listings plus the number of approved listings.

    Featured listings follow the search fallback rules; ``total_approved`` is
    null when the listings table could not be read.
    """
    LoggingConfig.ensure_configured()
    correlation_id = get_header(request, LoggingConfig.LOG_CORRELATION_ID_HEADER)

    with correlation_context(correlation_id) as correlation_id:
        if request.get("method", "GET").upper() != "GET":
            return json_response(405, {"error": "method not allowed"})

        query = request.get("query") or {}
        try:
            limit = _parse_limit(query.get("limit"))
            listings = run_async(fetch_featured_listings(limit))
        except Exception as e:
            return error_response(e, logger, path=request.get("path"))

        try:
            total = run_async(count_approved_listings())
        except SupabaseError as e:
            logger.warning("Approved listing count unavailable", error=str(e))
            total = None

        return json_response(
            200,
            {
                "listings": [listing.model_dump() for listing in listings],
                "count": len(listings),
                "total_approved": total,
            },
            headers={LoggingConfig.LOG_CORRELATION_ID_HEADER: correlation_id},
        )
