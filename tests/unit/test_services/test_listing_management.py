"""Tests for listing management."""

import pytest
from unittest.mock import AsyncMock, call, patch

from src.models.listing import ListingDraft, ModerationStatus
from src.services.listing_management import (
    add_listing_image,
    build_image_path,
    create_listing,
    delete_listing,
    set_primary_image,
    update_listing_content,
)
from src.utils.errors import (
    AuthorizationError,
    ListingNotFoundError,
    ListingValidationError,
    MalformedListingError,
)
from tests.utils.factories import (
    create_listing_document_data,
    create_listing_draft_data,
    create_listing_image_data,
)

MODULE = "src.services.listing_management"


@pytest.fixture
def listing_row_with_media(sample_listing_row):
    row = dict(sample_listing_row)
    row["listing_images"] = [
        {**create_listing_image_data(42, position=0, is_primary=True), "id": 1},
        {**create_listing_image_data(42, position=1), "id": 2},
    ]
    row["listing_documents"] = [create_listing_document_data(42)]
    row["offering_memorandum_path"] = "broker-1/42/om.pdf"
    return row


@pytest.mark.unit
@pytest.mark.asyncio
async def test_create_listing_forces_pending(broker_actor):
    draft = create_listing_draft_data(status="approved", user_id="someone-else")

    async def echo(record):
        return {**record, "id": 500}

    with patch(f"{MODULE}.insert_listing_row", new_callable=AsyncMock, side_effect=echo) as mock_insert:
        listing = await create_listing(broker_actor, draft)

    record = mock_insert.call_args[0][0]
    assert record["status"] == "pending"
    assert record["user_id"] == "broker-1"
    assert record["rejection_reason"] is None
    assert record["created_at"] == record["updated_at"]
    assert listing.id == 500
    assert listing.status == ModerationStatus.PENDING
    assert not listing.is_publicly_visible


@pytest.mark.unit
@pytest.mark.asyncio
async def test_create_listing_accepts_model(broker_actor):
    draft = ListingDraft.model_validate(create_listing_draft_data())
    with patch(f"{MODULE}.insert_listing_row", new_callable=AsyncMock) as mock_insert:
        mock_insert.return_value = {**draft.to_record(), "id": 1, "status": "pending", "user_id": "broker-1"}
        listing = await create_listing(broker_actor, draft)
    assert listing.title == draft.title


@pytest.mark.unit
@pytest.mark.asyncio
async def test_create_listing_validation(broker_actor):
    with patch(f"{MODULE}.insert_listing_row", new_callable=AsyncMock) as mock_insert:
        with pytest.raises(ListingValidationError) as exc_info:
            await create_listing(broker_actor, create_listing_draft_data(num_sites=0))
    assert exc_info.value.field == "num_sites"
    mock_insert.assert_not_called()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_update_never_changes_status(broker_actor, sample_listing_row):
    with patch(f"{MODULE}.get_listing_row", new_callable=AsyncMock, return_value=sample_listing_row), \
            patch(f"{MODULE}.update_listing_row", new_callable=AsyncMock) as mock_update:
        mock_update.side_effect = lambda listing_id, record: {**sample_listing_row, **record}

        listing = await update_listing_content(
            broker_actor,
            42,
            {"price": "990000", "status": "pending", "rejection_reason": "x", "user_id": "broker-2"},
        )

    record = mock_update.call_args[0][1]
    assert set(record) == {"price", "updated_at"}
    assert listing.status == ModerationStatus.APPROVED
    assert listing.user_id == "broker-1"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_update_by_admin_allowed(admin_actor, sample_listing_row):
    with patch(f"{MODULE}.get_listing_row", new_callable=AsyncMock, return_value=sample_listing_row), \
            patch(f"{MODULE}.update_listing_row", new_callable=AsyncMock, return_value={"title": "Renamed Campground"}):
        listing = await update_listing_content(admin_actor, 42, {"title": "Renamed Campground"})
    assert listing.title == "Renamed Campground"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_update_by_other_broker_denied(other_broker_actor, sample_listing_row):
    with patch(f"{MODULE}.get_listing_row", new_callable=AsyncMock, return_value=sample_listing_row), \
            patch(f"{MODULE}.update_listing_row", new_callable=AsyncMock) as mock_update:
        with pytest.raises(AuthorizationError):
            await update_listing_content(other_broker_actor, 42, {"title": "Hijacked Campground"})
    mock_update.assert_not_called()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_update_without_changes_does_not_write(broker_actor, sample_listing_row):
    with patch(f"{MODULE}.get_listing_row", new_callable=AsyncMock, return_value=sample_listing_row), \
            patch(f"{MODULE}.update_listing_row", new_callable=AsyncMock) as mock_update:
        listing = await update_listing_content(broker_actor, 42, {"status": "approved"})
    assert listing.id == 42
    mock_update.assert_not_called()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_update_missing_listing(broker_actor):
    with patch(f"{MODULE}.get_listing_row", new_callable=AsyncMock, return_value=None):
        with pytest.raises(ListingNotFoundError):
            await update_listing_content(broker_actor, 404, {"title": "Nothing here"})


@pytest.mark.unit
@pytest.mark.asyncio
async def test_delete_listing_removes_files_then_rows(broker_actor, listing_row_with_media):
    with patch(f"{MODULE}.get_listing_row", new_callable=AsyncMock, return_value=listing_row_with_media), \
            patch(f"{MODULE}.remove_storage_objects", new_callable=AsyncMock) as mock_remove, \
            patch(f"{MODULE}.delete_listing_media_rows", new_callable=AsyncMock) as mock_media, \
            patch(f"{MODULE}.delete_listing_row", new_callable=AsyncMock) as mock_delete:
        await delete_listing(broker_actor, 42)

    image_call, document_call = mock_remove.call_args_list
    assert image_call[0][0] == "listing-images"
    assert len(image_call[0][1]) == 2
    assert document_call[0][0] == "listing-documents"
    assert "broker-1/42/om.pdf" in document_call[0][1]
    assert len(document_call[0][1]) == 2
    mock_media.assert_awaited_once_with(42)
    mock_delete.assert_awaited_once_with(42)


@pytest.mark.unit
@pytest.mark.asyncio
async def test_delete_by_other_broker_denied(other_broker_actor, sample_listing_row):
    with patch(f"{MODULE}.get_listing_row", new_callable=AsyncMock, return_value=sample_listing_row), \
            patch(f"{MODULE}.delete_listing_row", new_callable=AsyncMock) as mock_delete:
        with pytest.raises(AuthorizationError):
            await delete_listing(other_broker_actor, 42)
    mock_delete.assert_not_called()


@pytest.mark.unit
def test_build_image_path():
    path = build_image_path("broker-1", 42, "Front Gate.JPG")

    owner, listing_id, filename = path.split("/")
    assert owner == "broker-1"
    assert listing_id == "42"
    stem, extension = filename.split(".")
    assert extension == "jpg"
    assert len(stem) == 26


@pytest.mark.unit
@pytest.mark.parametrize("filename", ["rent-roll.pdf", "noextension"])
def test_build_image_path_rejects_non_images(filename):
    with pytest.raises(ListingValidationError) as exc_info:
        build_image_path("broker-1", 42, filename)
    assert exc_info.value.field == "filename"


@pytest.mark.unit
@pytest.mark.asyncio
async def test_first_image_becomes_primary(broker_actor, sample_listing_row):
    async def echo(record):
        return {**record, "id": 9}

    with patch(f"{MODULE}.get_listing_row", new_callable=AsyncMock, return_value=sample_listing_row), \
            patch(f"{MODULE}.insert_listing_image_row", new_callable=AsyncMock, side_effect=echo) as mock_insert:
        image = await add_listing_image(broker_actor, 42, "pool.png")

    record = mock_insert.call_args[0][0]
    assert record["position"] == 0
    assert record["is_primary"] is True
    assert record["storage_path"].startswith("broker-1/42/")
    assert image.is_primary


@pytest.mark.unit
@pytest.mark.asyncio
async def test_later_images_are_not_primary(broker_actor, listing_row_with_media):
    async def echo(record):
        return {**record, "id": 9}

    with patch(f"{MODULE}.get_listing_row", new_callable=AsyncMock, return_value=listing_row_with_media), \
            patch(f"{MODULE}.insert_listing_image_row", new_callable=AsyncMock, side_effect=echo) as mock_insert:
        await add_listing_image(broker_actor, 42, "dock.webp")

    record = mock_insert.call_args[0][0]
    assert record["position"] == 2
    assert record["is_primary"] is False


@pytest.mark.unit
@pytest.mark.asyncio
async def test_admin_image_goes_under_owner_folder(admin_actor, sample_listing_row):
    async def echo(record):
        return {**record, "id": 9}

    with patch(f"{MODULE}.get_listing_row", new_callable=AsyncMock, return_value=sample_listing_row), \
            patch(f"{MODULE}.insert_listing_image_row", new_callable=AsyncMock, side_effect=echo) as mock_insert:
        await add_listing_image(admin_actor, 42, "entrance.jpg")

    assert mock_insert.call_args[0][0]["storage_path"].startswith("broker-1/42/")


@pytest.mark.unit
@pytest.mark.asyncio
async def test_malformed_listing_row_is_typed_error(broker_actor, sample_listing_row):
    row = {**sample_listing_row, "price": None}
    with patch(f"{MODULE}.get_listing_row", new_callable=AsyncMock, return_value=row), \
            patch(f"{MODULE}.insert_listing_image_row", new_callable=AsyncMock) as mock_insert:
        with pytest.raises(MalformedListingError):
            await add_listing_image(broker_actor, 42, "pool.png")
    mock_insert.assert_not_called()


@pytest.mark.unit
@pytest.mark.asyncio
async def test_set_primary_image_keeps_single_primary(broker_actor, listing_row_with_media):
    with patch(f"{MODULE}.get_listing_row", new_callable=AsyncMock, return_value=listing_row_with_media), \
            patch(f"{MODULE}.set_primary_image_row", new_callable=AsyncMock) as mock_set:
        listing = await set_primary_image(broker_actor, 42, 2)

    mock_set.assert_awaited_once_with(42, 2)
    assert [image.is_primary for image in listing.images] == [False, True]
    assert listing.primary_image.id == 2


@pytest.mark.unit
@pytest.mark.asyncio
async def test_set_primary_image_unknown_image(broker_actor, listing_row_with_media):
    with patch(f"{MODULE}.get_listing_row", new_callable=AsyncMock, return_value=listing_row_with_media), \
            patch(f"{MODULE}.set_primary_image_row", new_callable=AsyncMock) as mock_set:
        with pytest.raises(ListingValidationError) as exc_info:
            await set_primary_image(broker_actor, 42, 999)
    assert exc_info.value.field == "image_id"
    mock_set.assert_not_called()
