"""Public listing search: remote query first, local evaluation as fallback.

The serving path is reported as a ``ListingSearchResult`` variant instead of
through exceptions, so callers treat every variant the same way on success
and only log the source.
"""

from datetime import datetime, timezone
from typing import Annotated, Iterable, Literal, Optional, Union

from pydantic import BaseModel, Field

from src.data.fallback_listings import get_fallback_listings
from src.models.filters import FilterConfiguration, SortDirection, SortKey
from src.models.listing import Listing, ListingId, ModerationStatus, listing_from_row
from src.services.listing_filter import filter_listings
from src.services.listing_query import build_listing_query
from src.services.supabase_client import SupabaseClient, count_listing_rows, get_listing_row
from src.utils.config import MarketplaceConfig
from src.utils.errors import MalformedListingError, SupabaseError
from src.utils.logging import get_structured_logger, log_timing, sanitize_search_text

logger = get_structured_logger(__name__)


class RemoteResult(BaseModel):
    """Listings served by the listings table."""
    source: Literal["remote"] = "remote"
    listings: list[Listing] = Field(default_factory=list)


class FallbackResult(BaseModel):
    """Listings evaluated locally over the fallback collection."""
    source: Literal["fallback"] = "fallback"
    listings: list[Listing] = Field(default_factory=list)
    reason: str = Field(..., description="Why the remote path was not used")


class UnavailableResult(BaseModel):
    """Neither path could serve the request."""
    source: Literal["unavailable"] = "unavailable"
    reason: str

    @property
    def listings(self) -> list[Listing]:
        return []


ListingSearchResult = Annotated[
    Union[RemoteResult, FallbackResult, UnavailableResult],
    Field(discriminator="source"),
]


def rows_to_listings(rows: Iterable[dict]) -> list[Listing]:
    """Load stored rows, skipping the ones the listing model rejects."""
    listings = []
    for row in rows:
        try:
            listings.append(listing_from_row(row))
        except MalformedListingError as e:
            logger.warning(
                "Skipping malformed listing row",
                listing_id=e.listing_id,
                error_count=e.error_count,
            )
    return listings


async def query_remote_listings(config: FilterConfiguration, now: Optional[datetime] = None) -> list[Listing]:
    """Run the configuration against the listings table.

    Rows are re-checked with the local predicate, which also applies the
    amenity selection the query does not push down.
    """
    now = now or datetime.now(timezone.utc)
    async with SupabaseClient() as client:
        try:
            query = build_listing_query(client.table("listings"), config, now)
            result = query.execute()
        except Exception as e:
            raise SupabaseError(f"Failed to query listings: {e}")
    return filter_listings(rows_to_listings(result.data or []), config, now)


def _evaluate_fallback(
    config: FilterConfiguration,
    fallback: Optional[Iterable[Listing]],
    now: datetime,
    reason: str,
) -> Union[FallbackResult, UnavailableResult]:
    if not MarketplaceConfig.LISTINGS_FALLBACK_ENABLED:
        logger.warning("Listing search unavailable", source="unavailable", reason=reason)
        return UnavailableResult(reason=reason)

    collection = get_fallback_listings() if fallback is None else fallback
    listings = filter_listings(collection, config, now)
    logger.info(
        "Listings served from fallback collection",
        source="fallback",
        reason=reason,
        result_count=len(listings),
    )
    return FallbackResult(listings=listings, reason=reason)


async def compose_listings(
    config: FilterConfiguration,
    fallback: Optional[Iterable[Listing]] = None,
    now: Optional[datetime] = None,
) -> ListingSearchResult:
    """Search listings, degrading to the fallback collection.

    Falls back when the remote query fails, or when it comes back empty for
    a configuration with no active criteria (the table is expected to hold
    something). Never raises for a failed remote query or for no matches.
    """
    now = now or datetime.now(timezone.utc)

    with log_timing(
        "compose_listings",
        logger=logger,
        search=sanitize_search_text(config.search),
        has_criteria=config.has_active_criteria(),
    ):
        try:
            listings = await query_remote_listings(config, now)
        except SupabaseError as e:
            return _evaluate_fallback(config, fallback, now, reason=f"remote query failed: {e}")

        if (
            not listings
            and not config.has_active_criteria()
            and MarketplaceConfig.LISTINGS_FALLBACK_ON_EMPTY
        ):
            return _evaluate_fallback(config, fallback, now, reason="remote query returned no listings")

        logger.info("Listings served from listings table", source="remote", result_count=len(listings))
        return RemoteResult(listings=listings)


async def fetch_featured_listings(limit: int = 3) -> list[Listing]:
    """Newest approved featured listings for the landing page."""
    config = FilterConfiguration(
        only_featured=True,
        sort_by=SortKey.CREATED_AT,
        sort_direction=SortDirection.DESC,
        limit=limit,
    )
    result = await compose_listings(config)
    return result.listings


async def get_approved_listing(listing_id: ListingId) -> Optional[Listing]:
    """Publicly visible listing by ID, or None."""
    row = await get_listing_row(listing_id)
    if row is None:
        return None
    listing = listing_from_row(row)
    return listing if listing.is_publicly_visible else None


async def count_approved_listings() -> int:
    return await count_listing_rows(ModerationStatus.APPROVED.value)
