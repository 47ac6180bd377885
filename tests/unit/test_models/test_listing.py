"""Tests for listing models."""

import pytest
from decimal import Decimal
from pydantic import ValidationError

from src.models.listing import (
    DocumentCategory,
    Listing,
    ListingContentUpdate,
    ListingDraft,
    ListingDocument,
    ModerationStatus,
    categorize_file_type,
    normalize_state,
    parse_amenities,
    listing_from_row,
    validate_input,
)
from src.utils.errors import ListingValidationError, MalformedListingError, SupabaseError
from tests.utils.factories import create_listing_data, create_listing_draft_data, create_listing_image_data


@pytest.mark.unit
def test_listing_from_supabase_row():
    """Joined rows map onto images and documents."""
    row = create_listing_data(id=7, amenities={"Pool": True, "WiFi": False, "Laundry": True})
    row["listing_images"] = [
        create_listing_image_data(7, position=1),
        create_listing_image_data(7, position=0, is_primary=True),
    ]

    listing = Listing.model_validate(row)

    assert listing.id == 7
    assert listing.amenities == {"Pool", "Laundry"}
    assert [image.position for image in listing.images] == [0, 1]
    assert listing.primary_image.is_primary
    assert listing.status == ModerationStatus.APPROVED


@pytest.mark.unit
def test_listing_legacy_image_urls():
    """Bare URLs become image records, the first one primary."""
    listing = Listing(
        title="Sunset RV Resort",
        price=2500000,
        state="Arizona",
        images=["https://img.example/1.jpg", "https://img.example/2.jpg"],
    )

    assert listing.state == "AZ"
    assert len(listing.images) == 2
    assert listing.images[0].is_primary is True
    assert listing.images[1].is_primary is False
    assert listing.primary_image.url == "https://img.example/1.jpg"


@pytest.mark.unit
def test_listing_rejects_two_primary_images():
    row = create_listing_data(id=9)
    row["listing_images"] = [
        create_listing_image_data(9, position=0, is_primary=True),
        create_listing_image_data(9, position=1, is_primary=True),
    ]

    with pytest.raises(ValidationError):
        Listing.model_validate(row)


@pytest.mark.unit
def test_listing_clears_reason_unless_rejected():
    approved = Listing.model_validate(create_listing_data(status="approved", rejection_reason="stale"))
    rejected = Listing.model_validate(create_listing_data(status="rejected", rejection_reason="Incomplete financials"))

    assert approved.rejection_reason is None
    assert rejected.rejection_reason == "Incomplete financials"


@pytest.mark.unit
def test_listing_status_is_closed():
    with pytest.raises(ValidationError):
        Listing.model_validate(create_listing_data(status="archived"))


@pytest.mark.unit
def test_listing_visibility():
    assert Listing.model_validate(create_listing_data(status="approved")).is_publicly_visible
    assert Listing.model_validate(create_listing_data(status=None)).is_publicly_visible
    assert not Listing.model_validate(create_listing_data(status="pending")).is_publicly_visible
    assert not Listing.model_validate(create_listing_data(status="rejected")).is_publicly_visible


@pytest.mark.unit
def test_listing_naive_timestamps_are_utc():
    listing = Listing.model_validate(create_listing_data(created_at="2024-02-01T10:00:00"))
    assert listing.created_at.tzinfo is not None
    assert listing.created_at.utcoffset().total_seconds() == 0


@pytest.mark.unit
def test_listing_price_bounds():
    with pytest.raises(ValidationError):
        Listing.model_validate(create_listing_data(price=-1))
    with pytest.raises(ValidationError):
        Listing.model_validate(create_listing_data(price=10_000_000_000))


@pytest.mark.unit
@pytest.mark.parametrize("raw", ["pending", "APPROVED", " rejected ", ModerationStatus.PENDING])
def test_moderation_status_parse(raw):
    assert ModerationStatus.parse(raw) in set(ModerationStatus)


@pytest.mark.unit
def test_moderation_status_parse_unknown():
    with pytest.raises(ListingValidationError) as exc_info:
        ModerationStatus.parse("archived")
    assert exc_info.value.field == "status"
    assert "archived" in str(exc_info.value)


@pytest.mark.unit
def test_normalize_state():
    assert normalize_state("tx") == "TX"
    assert normalize_state("North Carolina") == "NC"
    with pytest.raises(ValueError):
        normalize_state("Atlantis")


@pytest.mark.unit
def test_parse_amenities_formats():
    assert parse_amenities({"Pool": True, "WiFi": False}) == {"Pool"}
    assert parse_amenities(["Pool", "WiFi"]) == {"Pool", "WiFi"}
    assert parse_amenities('{"Laundry": true}') == {"Laundry"}
    assert parse_amenities("Pool, Fishing") == {"Pool", "Fishing"}
    assert parse_amenities(None) == set()
    assert parse_amenities("") == set()


@pytest.mark.unit
@pytest.mark.parametrize("file_type, category", [
    ("application/pdf", DocumentCategory.PDF),
    ("rent-roll.xlsx", DocumentCategory.SPREADSHEET),
    ("text/csv", DocumentCategory.SPREADSHEET),
    ("application/vnd.openxmlformats-officedocument.wordprocessingml.document", DocumentCategory.DOCUMENT),
    ("image/png", DocumentCategory.IMAGE),
    ("archive.zip", DocumentCategory.OTHER),
    (None, DocumentCategory.OTHER),
])
def test_categorize_file_type(file_type, category):
    assert categorize_file_type(file_type) == category


@pytest.mark.unit
def test_document_category_property():
    document = ListingDocument(name="OM.pdf", type="pdf", storage_path="broker-1/1/om.pdf")
    assert document.category == DocumentCategory.PDF


@pytest.mark.unit
def test_listing_draft_valid():
    draft = ListingDraft.model_validate(create_listing_draft_data(state="Oregon"))

    assert draft.state == "OR"
    assert draft.price == Decimal("1850000.00")
    assert draft.location_set is True

    record = draft.to_record()
    assert record["amenities"] == {"Full Hookups": True, "WiFi": True}
    assert record["location_set"] is True
    assert "status" not in record


@pytest.mark.unit
@pytest.mark.parametrize("field, value", [
    ("title", "RV"),
    ("description", "Too short"),
    ("city", "Bend 123"),
    ("property_type", "Castle"),
    ("amenities", ["Helipad"]),
    ("num_sites", 0),
    ("occupancy_rate", 120),
    ("price", "100.001"),
])
def test_listing_draft_rejects_out_of_bounds(field, value):
    with pytest.raises(ListingValidationError) as exc_info:
        validate_input(ListingDraft, create_listing_draft_data(**{field: value}))
    assert exc_info.value.field == field


@pytest.mark.unit
def test_content_update_only_serializes_set_fields():
    update = ListingContentUpdate(price=Decimal("990000"), amenities=["Pool"])

    assert update.to_record() == {"price": "990000", "amenities": {"Pool": True}}


@pytest.mark.unit
def test_content_update_sets_location_flag():
    update = ListingContentUpdate(latitude=30.2672, longitude=-97.7431)
    assert update.to_record()["location_set"] is True


@pytest.mark.unit
def test_content_update_has_no_moderation_fields():
    update = ListingContentUpdate.model_validate({"title": "Updated Park Title", "status": "approved"})
    assert update.to_record() == {"title": "Updated Park Title"}


@pytest.mark.unit
def test_listing_from_row():
    assert listing_from_row(create_listing_data(id=3)).id == 3

    with pytest.raises(MalformedListingError) as exc_info:
        listing_from_row({**create_listing_data(id=4), "price": None, "num_sites": -1})
    assert exc_info.value.listing_id == 4
    assert exc_info.value.error_count == 2
    assert isinstance(exc_info.value, SupabaseError)
