"""Translate a FilterConfiguration into a PostgREST listings query."""

from datetime import datetime, timedelta, timezone
from typing import Any, Optional

from src.models.filters import FilterConfiguration, SortDirection
from src.models.listing import ModerationStatus
from src.services.listing_filter import SEARCH_FIELDS
from src.utils.config import MarketplaceConfig

PUBLIC_SELECT = "*, listing_images(*), listing_documents(*)"
# Inner join drops listings without any image row
PUBLIC_SELECT_WITH_IMAGES = "*, listing_images!inner(*), listing_documents(*)"


def escape_like(term: str) -> str:
    """Escape LIKE wildcards, including PostgREST's ``*``, so the term matches literally."""
    for char in ("\\", "%", "_", "*"):
        term = term.replace(char, "\\" + char)
    return term


def quote_filter_value(value: str) -> str:
    """Double-quote a value for use inside a PostgREST ``or`` filter."""
    return '"' + value.replace("\\", "\\\\").replace('"', '\\"') + '"'


def build_search_clause(term: str) -> str:
    """``or`` filter matching the term in any searchable column."""
    pattern = quote_filter_value(f"%{escape_like(term)}%")
    return ",".join(f"{column}.ilike.{pattern}" for column in SEARCH_FIELDS)


def build_listing_query(table: Any, config: FilterConfiguration, now: Optional[datetime] = None) -> Any:
    """Apply ``config`` to a ``client.table("listings")`` request builder.

    Amenities are stored as a JSON object and are not pushed down; callers
    re-check remote rows with ``listing_filter.matches``.
    """
    select = PUBLIC_SELECT_WITH_IMAGES if config.only_with_images else PUBLIC_SELECT
    query = table.select(select).eq("status", ModerationStatus.APPROVED.value)

    if config.search:
        query = query.or_(build_search_clause(config.search))

    for column, minimum, maximum in (
        ("price", config.price_min, config.price_max),
        ("num_sites", config.sites_min, config.sites_max),
        ("annual_revenue", config.revenue_min, config.revenue_max),
        ("cap_rate", config.cap_rate_min, None),
        ("occupancy_rate", config.occupancy_rate_min, None),
    ):
        if minimum is not None:
            query = query.gte(column, str(minimum))
        if maximum is not None:
            query = query.lte(column, str(maximum))

    states = sorted(config.selected_states())
    if len(states) == 1:
        query = query.eq("state", states[0])
    elif states:
        query = query.in_("state", states)

    if config.property_types:
        query = query.in_("property_type", list(config.property_types))

    if config.listed_within_days is not None:
        now = now or datetime.now(timezone.utc)
        cutoff = now - timedelta(days=config.listed_within_days)
        query = query.gte("created_at", cutoff.isoformat())

    if config.only_featured:
        query = query.eq("featured", "true")

    query = query.order(
        config.sort_by.value,
        desc=config.sort_direction == SortDirection.DESC,
        nullsfirst=False,
    )

    # A row cap would cut matches before the amenity check runs
    if not config.amenities:
        query = query.limit(config.limit or MarketplaceConfig.LISTINGS_QUERY_LIMIT)

    return query
