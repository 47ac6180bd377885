"""Listing moderation state machine.

Status moves between pending, approved and rejected. Every move is admin-only
and the actor is passed in explicitly, so ``plan_transition`` is a pure
function of (actor, listing, target).

    pending  -> approved | rejected
    approved -> rejected | pending
    rejected -> pending

A listing sent back to review goes through pending before it can be approved.
"""

from collections import Counter
from datetime import datetime, timezone
from typing import Iterable, Optional, Union

from pydantic import BaseModel, Field

from src.models.actor import Actor
from src.models.listing import Listing, ListingId, ModerationStatus, listing_from_row
from src.services.listing_search import rows_to_listings
from src.services.supabase_client import get_listing_row, list_listing_rows, update_listing_row
from src.utils.config import MarketplaceConfig
from src.utils.errors import AuthorizationError, ListingNotFoundError, ListingValidationError
from src.utils.logging import get_structured_logger, mask_user_id, timed

logger = get_structured_logger(__name__)

ALLOWED_TRANSITIONS: dict[ModerationStatus, frozenset[ModerationStatus]] = {
    ModerationStatus.PENDING: frozenset({ModerationStatus.APPROVED, ModerationStatus.REJECTED}),
    ModerationStatus.APPROVED: frozenset({ModerationStatus.REJECTED, ModerationStatus.PENDING}),
    ModerationStatus.REJECTED: frozenset({ModerationStatus.PENDING}),
}

REVIEW_SEARCH_FIELDS = ("title", "city", "state", "property_type")


class StatusChange(BaseModel):
    """A planned, authorized status transition."""
    listing_id: Optional[ListingId] = None
    from_status: ModerationStatus
    to_status: ModerationStatus
    rejection_reason: Optional[str] = Field(None, description="Set only when moving to rejected")
    changed_by: str
    changed_at: datetime

    def to_record(self) -> dict:
        """Columns written back to the listings row."""
        return {
            "status": self.to_status.value,
            "rejection_reason": self.rejection_reason,
            "updated_at": self.changed_at.isoformat(),
        }


class ReviewQueue(BaseModel):
    """Listings shown on the admin dashboard with per-status totals."""
    listings: list[Listing] = Field(default_factory=list)
    counts: dict[ModerationStatus, int] = Field(default_factory=dict)


def current_status(listing: Listing) -> ModerationStatus:
    """Status used for moderation; rows that predate moderation count as pending."""
    return listing.status or ModerationStatus.PENDING


def require_admin(actor: Actor) -> None:
    if not actor.is_admin:
        raise AuthorizationError("Only admins can change listing status")


def _resolve_reason(reason: Optional[str]) -> str:
    cleaned = (reason or "").strip()
    if cleaned:
        return cleaned
    if MarketplaceConfig.REQUIRE_REJECTION_REASON:
        raise ListingValidationError(
            "A rejection reason is required",
            field="rejection_reason",
        )
    return MarketplaceConfig.DEFAULT_REJECTION_REASON


def plan_transition(
    actor: Actor,
    listing: Listing,
    target: Union[ModerationStatus, str],
    reason: Optional[str] = None,
    now: Optional[datetime] = None,
) -> Optional[StatusChange]:
    """Check a requested transition and describe its effect.

    Returns None when the listing already has the target status.

    Raises:
        AuthorizationError: actor is not an admin
        ListingValidationError: unknown target or a transition outside the table
    """
    require_admin(actor)

    target = ModerationStatus.parse(target)
    source = current_status(listing)
    if target == source:
        return None

    if target not in ALLOWED_TRANSITIONS[source]:
        raise ListingValidationError(
            f"Cannot change status from {source.value} to {target.value}",
            field="status",
        )

    return StatusChange(
        listing_id=listing.id,
        from_status=source,
        to_status=target,
        rejection_reason=_resolve_reason(reason) if target == ModerationStatus.REJECTED else None,
        changed_by=actor.user_id,
        changed_at=now or datetime.now(timezone.utc),
    )


def apply_status_change(listing: Listing, change: StatusChange) -> Listing:
    """Copy of ``listing`` with the change applied."""
    return listing.model_copy(update={
        "status": change.to_status,
        "rejection_reason": change.rejection_reason,
        "updated_at": change.changed_at,
    })


@timed("moderate_listing")
async def moderate_listing(
    actor: Actor,
    listing_id: ListingId,
    target: Union[ModerationStatus, str],
    reason: Optional[str] = None,
) -> Listing:
    """Fetch, transition and persist a listing's moderation status."""
    require_admin(actor)

    row = await get_listing_row(listing_id)
    if row is None:
        raise ListingNotFoundError(listing_id)

    listing = listing_from_row(row)
    change = plan_transition(actor, listing, target, reason)
    if change is None:
        logger.info(
            "Listing already has requested status",
            listing_id=listing_id,
            status=current_status(listing).value,
        )
        return listing

    await update_listing_row(listing_id, change.to_record())

    logger.info(
        "Listing status changed",
        listing_id=listing_id,
        from_status=change.from_status.value,
        to_status=change.to_status.value,
        admin_id=mask_user_id(actor.user_id),
        has_reason=change.rejection_reason is not None,
    )
    return apply_status_change(listing, change)


def summarize_statuses(listings: Iterable[Listing]) -> dict[ModerationStatus, int]:
    """Listing count per status; every status is present."""
    counts = Counter(current_status(listing) for listing in listings)
    return {status: counts.get(status, 0) for status in ModerationStatus}


def _matches_review_search(listing: Listing, term: str) -> bool:
    needle = term.lower()
    return any(needle in (getattr(listing, field) or "").lower() for field in REVIEW_SEARCH_FIELDS)


async def list_listings_for_review(
    actor: Actor,
    status: Optional[Union[ModerationStatus, str]] = None,
    search: Optional[str] = None,
) -> ReviewQueue:
    """All listings of any status, newest first, for the admin dashboard."""
    require_admin(actor)
    status = ModerationStatus.parse(status) if status else None

    listings = rows_to_listings(await list_listing_rows())
    counts = summarize_statuses(listings)

    if status is not None:
        listings = [listing for listing in listings if current_status(listing) == status]
    if search and search.strip():
        listings = [listing for listing in listings if _matches_review_search(listing, search.strip())]

    return ReviewQueue(listings=listings, counts=counts)
