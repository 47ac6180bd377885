"""In-process listing predicate and ordering.

This is the local evaluation path of listing search. The remote path in
``listing_query`` pushes the same constraints down to PostgREST, and remote
rows are re-checked here, so both paths agree on the matching set.
"""

from datetime import datetime, timedelta, timezone
from typing import Any, Iterable, Optional

from src.models.filters import FilterConfiguration, SortDirection
from src.models.listing import Listing

SEARCH_FIELDS = ("title", "description", "city", "state")


def matches_search(listing: Listing, term: str) -> bool:
    """Case-insensitive substring match on title, description, city or state."""
    if not term:
        return True
    needle = term.lower()
    return any(needle in (getattr(listing, field) or "").lower() for field in SEARCH_FIELDS)


def _within(value: Any, minimum: Any = None, maximum: Any = None) -> bool:
    """Inclusive bounds check; a missing value fails any active bound."""
    if minimum is None and maximum is None:
        return True
    if value is None:
        return False
    if minimum is not None and value < minimum:
        return False
    if maximum is not None and value > maximum:
        return False
    return True


def matches(listing: Listing, config: FilterConfiguration, now: Optional[datetime] = None) -> bool:
    """True when the listing satisfies every active criterion of ``config``."""
    if not listing.is_publicly_visible:
        return False

    if not matches_search(listing, config.search):
        return False

    if not _within(listing.price, config.price_min, config.price_max):
        return False
    if not _within(listing.num_sites, config.sites_min, config.sites_max):
        return False
    if not _within(listing.annual_revenue, config.revenue_min, config.revenue_max):
        return False
    if not _within(listing.cap_rate, config.cap_rate_min):
        return False
    if not _within(listing.occupancy_rate, config.occupancy_rate_min):
        return False

    states = config.selected_states()
    if states and listing.state not in states:
        return False

    if config.property_types and listing.property_type not in config.property_types:
        return False

    # Any selected amenity is enough
    if config.amenities and not listing.amenities.intersection(config.amenities):
        return False

    if config.listed_within_days is not None:
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(days=config.listed_within_days)
        if listing.created_at is None or listing.created_at < cutoff:
            return False

    if config.only_featured and not listing.featured:
        return False
    if config.only_with_images and not listing.images:
        return False

    return True


def sort_listings(listings: Iterable[Listing], config: FilterConfiguration) -> list[Listing]:
    """Stable sort on the configured key; listings missing the value go last."""
    attribute = config.sort_by.value
    listings = list(listings)
    present = [listing for listing in listings if getattr(listing, attribute) is not None]
    missing = [listing for listing in listings if getattr(listing, attribute) is None]
    present.sort(
        key=lambda listing: getattr(listing, attribute),
        reverse=config.sort_direction == SortDirection.DESC,
    )
    return present + missing


def filter_listings(
    listings: Iterable[Listing],
    config: FilterConfiguration,
    now: Optional[datetime] = None,
) -> list[Listing]:
    """Matching listings in requested order, truncated to ``config.limit``."""
    now = now or datetime.now(timezone.utc)
    matching = [listing for listing in listings if matches(listing, config, now)]
    ordered = sort_listings(matching, config)
    if config.limit is not None:
        ordered = ordered[:config.limit]
    return ordered
