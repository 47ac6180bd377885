"""Listing image endpoint: record an uploaded image or pick the cover."""

from src.services.actors import parse_bearer_token, resolve_actor
from src.services.listing_management import add_listing_image, set_primary_image
from src.utils.errors import ListingValidationError
from src.utils.http import error_response, get_header, json_response, parse_json_body, run_async
from src.utils.logging import correlation_context, get_structured_logger
from src.utils.logging_config import LoggingConfig

logger = get_structured_logger(__name__)


def _required(body: dict, name: str):
    value = body.get(name)
    if value in (None, ""):
        raise ListingValidationError(f"{name} is required", field=name)
    return value


async def _handle(request: dict) -> dict:
    method = request.get("method", "GET").upper()
    if method not in ("POST", "PATCH"):
        return json_response(405, {"error": "method not allowed"})

    actor = await resolve_actor(parse_bearer_token(get_header(request, "Authorization")))
    body = parse_json_body(request)
    listing_id = _required(body, "listing_id")

    if method == "POST":
        image = await add_listing_image(actor, listing_id, _required(body, "filename"))
        return json_response(201, {"image": image.model_dump()})

    listing = await set_primary_image(actor, listing_id, _required(body, "image_id"))
    return json_response(200, {"listing": listing.model_dump()})


def handler(request):
    """POST {listing_id, filename} adds an image; PATCH {listing_id, image_id} sets the primary one."""
    LoggingConfig.ensure_configured()

    with correlation_context(get_header(request, LoggingConfig.LOG_CORRELATION_ID_HEADER)):
        try:
            return run_async(_handle(request))
        except Exception as e:
            return error_response(e, logger, path=request.get("path"), method=request.get("method"))
