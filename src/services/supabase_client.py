"""Supabase client wrapper with async context manager support."""

import os
from typing import Any, Optional
from supabase import create_client, Client
from supabase.client import ClientOptions
from src.models.listing import ListingId
from src.utils.errors import SupabaseError, StorageError
import logging

logger = logging.getLogger(__name__)

# Listing row with its joined media
LISTING_SELECT = "*, listing_images(*), listing_documents(*)"

# Global client instance (singleton pattern)
_client: Optional[Client] = None


def get_supabase_client() -> Client:
    """Get or create Supabase client singleton."""
    global _client

    if _client is None:
        url = os.environ.get("SUPABASE_URL")
        key = os.environ.get("SUPABASE_SERVICE_ROLE_KEY")

        if not url or not key:
            raise SupabaseError("SUPABASE_URL and SUPABASE_SERVICE_ROLE_KEY must be set")

        options = ClientOptions(
            auto_refresh_token=False,
            persist_session=False,
        )

        _client = create_client(url, key, options)
        logger.info("Supabase client initialized", extra={"url": url})

    return _client


class SupabaseClient:
    """Async context manager for Supabase client."""

    def __init__(self):
        self.client: Optional[Client] = None

    async def __aenter__(self) -> Client:
        self.client = get_supabase_client()
        return self.client

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        if exc_type:
            logger.error(
                "Supabase operation error",
                extra={"error": str(exc_val), "type": exc_type.__name__}
            )
        return False


# Listings table operations
async def get_listing_row(listing_id: ListingId) -> Optional[dict]:
    """Get a listing row with images and documents, or None."""
    async with SupabaseClient() as client:
        try:
            result = client.table("listings").select(LISTING_SELECT).eq("id", listing_id).limit(1).execute()
            return result.data[0] if result.data and len(result.data) > 0 else None
        except Exception as e:
            raise SupabaseError(f"Failed to get listing: {e}")


async def insert_listing_row(record: dict) -> dict:
    """Insert a listing row."""
    async with SupabaseClient() as client:
        try:
            result = client.table("listings").insert(record).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to create listing: {e}")
    if result.data and len(result.data) > 0:
        return result.data[0]
    raise SupabaseError("Failed to create listing: no data returned")


async def update_listing_row(listing_id: ListingId, updates: dict) -> dict:
    """Update a listing row and return it."""
    async with SupabaseClient() as client:
        try:
            result = client.table("listings").update(updates).eq("id", listing_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to update listing: {e}")
    if result.data and len(result.data) > 0:
        return result.data[0]
    raise SupabaseError(f"Failed to update listing: {listing_id}")


async def delete_listing_row(listing_id: ListingId) -> None:
    """Delete a listing row."""
    async with SupabaseClient() as client:
        try:
            client.table("listings").delete().eq("id", listing_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to delete listing: {e}")


async def list_listing_rows(status: Optional[str] = None) -> list[dict]:
    """All listing rows (any status), newest first."""
    async with SupabaseClient() as client:
        try:
            query = client.table("listings").select("*")
            if status:
                query = query.eq("status", status)
            result = query.order("created_at", desc=True).execute()
            return result.data if result.data else []
        except Exception as e:
            raise SupabaseError(f"Failed to list listings: {e}")


async def count_listing_rows(status: str) -> int:
    """Exact count of listings with a status."""
    async with SupabaseClient() as client:
        try:
            result = client.table("listings").select("id", count="exact").eq("status", status).execute()
            return result.count or 0
        except Exception as e:
            raise SupabaseError(f"Failed to count listings: {e}")


# Listing media operations
async def insert_listing_image_row(record: dict) -> dict:
    """Insert a listing_images row."""
    async with SupabaseClient() as client:
        try:
            result = client.table("listing_images").insert(record).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to add listing image: {e}")
    if result.data and len(result.data) > 0:
        return result.data[0]
    raise SupabaseError("Failed to add listing image: no data returned")


async def set_primary_image_row(listing_id: ListingId, image_id: ListingId) -> None:
    """Clear every primary flag of a listing, then flag one image."""
    async with SupabaseClient() as client:
        try:
            client.table("listing_images").update({"is_primary": False}).eq("listing_id", listing_id).execute()
            client.table("listing_images").update({"is_primary": True}).eq("id", image_id).eq("listing_id", listing_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to set primary image: {e}")


async def delete_listing_media_rows(listing_id: ListingId) -> None:
    """Delete image and document rows of a listing."""
    async with SupabaseClient() as client:
        try:
            client.table("listing_images").delete().eq("listing_id", listing_id).execute()
            client.table("listing_documents").delete().eq("listing_id", listing_id).execute()
        except Exception as e:
            raise SupabaseError(f"Failed to delete listing media: {e}")


async def remove_storage_objects(bucket: str, paths: list[str]) -> None:
    """Remove files from a storage bucket."""
    if not paths:
        return
    async with SupabaseClient() as client:
        try:
            client.storage.from_(bucket).remove(paths)
        except Exception as e:
            raise StorageError(f"Failed to remove files from {bucket}: {e}")


# Auth and roles
async def get_auth_user(access_token: str) -> Optional[Any]:
    """Resolve an access token to the auth provider's user, or None."""
    async with SupabaseClient() as client:
        try:
            response = client.auth.get_user(access_token)
        except Exception as e:
            logger.warning("Access token rejected", extra={"error": str(e)})
            return None
    return response.user if response else None


async def get_user_role(user_id: str) -> Optional[str]:
    """Get a user's role name, or None when no role row exists."""
    async with SupabaseClient() as client:
        try:
            result = client.rpc("get_user_role", {"user_id_param": user_id}).execute()
            if result.data:
                return str(result.data)
        except Exception as e:
            logger.debug("get_user_role RPC unavailable, querying user_roles", extra={"error": str(e)})
        # Fallback to direct query if the function doesn't exist
        try:
            result = client.table("user_roles").select("role").eq("user_id", user_id).limit(1).execute()
            return result.data[0]["role"] if result.data and len(result.data) > 0 else None
        except Exception as e:
            raise SupabaseError(f"Failed to get user role: {e}")


async def create_user_role(user_id: str, role: str) -> None:
    """Create a user_roles row."""
    async with SupabaseClient() as client:
        try:
            client.table("user_roles").insert({"user_id": user_id, "role": role}).execute()
        except Exception as e:
            # Ignore duplicate key errors (concurrent first login)
            if "duplicate key" not in str(e).lower():
                raise SupabaseError(f"Failed to create user role: {e}")
