"""Broker and admin listing management: create, edit, delete, images."""

from datetime import datetime, timezone
from typing import Any, Mapping, Union

from ulid import ULID

from src.models.actor import Actor
from src.models.listing import (
    DocumentCategory,
    Listing,
    ListingContentUpdate,
    ListingDraft,
    ListingId,
    ListingImage,
    ModerationStatus,
    categorize_file_type,
    listing_from_row,
    validate_input,
)
from src.services.supabase_client import (
    delete_listing_media_rows,
    delete_listing_row,
    get_listing_row,
    insert_listing_image_row,
    insert_listing_row,
    remove_storage_objects,
    set_primary_image_row,
    update_listing_row,
)
from src.utils.config import MarketplaceConfig
from src.utils.errors import AuthorizationError, ListingNotFoundError, ListingValidationError
from src.utils.logging import get_structured_logger, mask_user_id, timed

logger = get_structured_logger(__name__)

# Columns a content edit never writes
PROTECTED_FIELDS = frozenset({
    "id",
    "user_id",
    "status",
    "rejection_reason",
    "created_at",
    "updated_at",
})


def _now_iso() -> str:
    return datetime.now(timezone.utc).isoformat()


async def _load_managed_listing(actor: Actor, listing_id: ListingId) -> tuple[dict, Listing]:
    """Fetch a listing the actor may manage (owner or admin)."""
    row = await get_listing_row(listing_id)
    if row is None:
        raise ListingNotFoundError(listing_id)
    listing = listing_from_row(row)
    if not (actor.is_admin or actor.owns(listing.user_id)):
        raise AuthorizationError("You can only manage your own listings")
    return row, listing


@timed("create_listing")
async def create_listing(actor: Actor, draft: Union[ListingDraft, Mapping[str, Any]]) -> Listing:
    """Create a listing owned by the actor, awaiting review."""
    if not isinstance(draft, ListingDraft):
        draft = validate_input(ListingDraft, {k: v for k, v in draft.items() if k not in PROTECTED_FIELDS})

    now = _now_iso()
    record = {
        **draft.to_record(),
        "user_id": actor.user_id,
        "status": ModerationStatus.PENDING.value,
        "rejection_reason": None,
        "created_at": now,
        "updated_at": now,
    }
    row = await insert_listing_row(record)

    logger.info(
        "Listing created",
        listing_id=row.get("id"),
        owner_id=mask_user_id(actor.user_id),
        property_type=draft.property_type,
        state=draft.state,
    )
    return listing_from_row(row)


@timed("update_listing_content")
async def update_listing_content(
    actor: Actor,
    listing_id: ListingId,
    changes: Union[ListingContentUpdate, Mapping[str, Any]],
) -> Listing:
    """Apply a content edit; moderation columns are never touched."""
    row, listing = await _load_managed_listing(actor, listing_id)

    if not isinstance(changes, ListingContentUpdate):
        dropped = sorted(set(changes) & PROTECTED_FIELDS)
        if dropped:
            logger.info("Ignoring protected fields in content update", listing_id=listing_id, fields=dropped)
        changes = validate_input(
            ListingContentUpdate,
            {k: v for k, v in changes.items() if k not in PROTECTED_FIELDS},
        )

    record = changes.to_record()
    if not record:
        return listing

    record["updated_at"] = _now_iso()
    updated = await update_listing_row(listing_id, record)

    logger.info(
        "Listing content updated",
        listing_id=listing_id,
        fields=sorted(record),
        editor_id=mask_user_id(actor.user_id),
    )
    # Update returns the bare row; keep the joined media from the fetch
    return listing_from_row({**row, **updated})


def _document_paths(listing: Listing) -> list[str]:
    paths = [document.storage_path for document in listing.documents]
    if listing.offering_memorandum_path and listing.offering_memorandum_path not in paths:
        paths.append(listing.offering_memorandum_path)
    return paths


@timed("delete_listing")
async def delete_listing(actor: Actor, listing_id: ListingId) -> None:
    """Delete a listing with its stored files and media rows."""
    _, listing = await _load_managed_listing(actor, listing_id)

    image_paths = [image.storage_path for image in listing.images if image.storage_path]
    document_paths = _document_paths(listing)

    await remove_storage_objects(MarketplaceConfig.LISTING_IMAGES_BUCKET, image_paths)
    await remove_storage_objects(MarketplaceConfig.LISTING_DOCUMENTS_BUCKET, document_paths)
    await delete_listing_media_rows(listing_id)
    await delete_listing_row(listing_id)

    logger.info(
        "Listing deleted",
        listing_id=listing_id,
        images_removed=len(image_paths),
        documents_removed=len(document_paths),
        actor_id=mask_user_id(actor.user_id),
    )


def build_image_path(user_id: str, listing_id: ListingId, filename: str) -> str:
    """Storage path ``{user_id}/{listing_id}/{ulid}.{ext}`` for an uploaded image."""
    if "." not in filename or categorize_file_type(filename) != DocumentCategory.IMAGE:
        raise ListingValidationError(f"Not an image file: {filename}", field="filename")
    extension = filename.rsplit(".", 1)[-1].lower()
    return f"{user_id}/{listing_id}/{ULID()}.{extension}"


async def add_listing_image(actor: Actor, listing_id: ListingId, filename: str) -> ListingImage:
    """Record an image for a listing; the first image becomes primary."""
    _, listing = await _load_managed_listing(actor, listing_id)

    record = {
        "listing_id": listing.id if listing.id is not None else listing_id,
        "storage_path": build_image_path(listing.user_id or actor.user_id, listing_id, filename),
        "position": len(listing.images),
        "is_primary": not listing.images,
    }
    row = await insert_listing_image_row(record)

    logger.info(
        "Listing image added",
        listing_id=listing_id,
        position=record["position"],
        is_primary=record["is_primary"],
    )
    return ListingImage.model_validate(row)


async def set_primary_image(actor: Actor, listing_id: ListingId, image_id: ListingId) -> Listing:
    """Make one image the listing's cover."""
    _, listing = await _load_managed_listing(actor, listing_id)

    if not any(str(image.id) == str(image_id) for image in listing.images):
        raise ListingValidationError(f"Image {image_id} does not belong to listing {listing_id}", field="image_id")

    await set_primary_image_row(listing_id, image_id)

    images = [
        image.model_copy(update={"is_primary": str(image.id) == str(image_id)})
        for image in listing.images
    ]
    return listing.model_copy(update={"images": images})
