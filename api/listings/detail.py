"""Public listing detail endpoint."""

from src.services.listing_search import get_approved_listing
from src.utils.errors import ListingNotFoundError, ListingValidationError
from src.utils.http import error_response, get_header, json_response, run_async
from src.utils.logging import correlation_context, get_structured_logger
from src.utils.logging_config import LoggingConfig

logger = get_structured_logger(__name__)


def handler(request):
    """Approved listing by ``id``; pending, rejected and missing listings are 404."""
    LoggingConfig.ensure_configured()
    correlation_id = get_header(request, LoggingConfig.LOG_CORRELATION_ID_HEADER)

    with correlation_context(correlation_id) as correlation_id:
        if request.get("method", "GET").upper() != "GET":
            return json_response(405, {"error": "method not allowed"})

        listing_id = (request.get("query") or {}).get("id")
        try:
            if not listing_id:
                raise ListingValidationError("id is required", field="id")
            listing = run_async(get_approved_listing(listing_id))
            if listing is None:
                raise ListingNotFoundError(listing_id)
        except Exception as e:
            return error_response(e, logger, path=request.get("path"))

        return json_response(
            200,
            {"listing": listing.model_dump()},
            headers={LoggingConfig.LOG_CORRELATION_ID_HEADER: correlation_id},
        )
