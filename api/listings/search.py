"""Public listing search endpoint."""

from src.models.filters import FilterConfiguration
from src.services.listing_search import compose_listings
from src.utils.http import error_response, get_header, json_response, run_async
from src.utils.logging import correlation_context, get_structured_logger
from src.utils.logging_config import LoggingConfig

logger = get_structured_logger(__name__)


def handler(request):
    """
    Search approved listings.

    Query parameters map onto FilterConfiguration (snake_case or camelCase,
    comma separated multi-selects, ``quick`` presets). Every serving path
    answers 200; the path is reported in the X-Listings-Source header.
    """
    LoggingConfig.ensure_configured()
    correlation_id = get_header(request, LoggingConfig.LOG_CORRELATION_ID_HEADER)

    with correlation_context(correlation_id) as correlation_id:
        if request.get("method", "GET").upper() != "GET":
            return json_response(405, {"error": "method not allowed"})

        try:
            config = FilterConfiguration.from_query_params(request.get("query") or {})
            result = run_async(compose_listings(config))
        except Exception as e:
            return error_response(e, logger, path=request.get("path"))

        listings = [listing.model_dump() for listing in result.listings]
        return json_response(
            200,
            {"listings": listings, "count": len(listings)},
            headers={
                "X-Listings-Source": result.source,
                LoggingConfig.LOG_CORRELATION_ID_HEADER: correlation_id,
            },
        )
