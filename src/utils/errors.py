"""Error handling utilities."""

from typing import Optional, Union


class MarketplaceError(Exception):
    """Base exception for the marketplace backend."""
    pass


class ListingValidationError(MarketplaceError):
    """A filter value, status value or listing field failed validation."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class AuthorizationError(MarketplaceError):
    """Actor lacks the capability required for the operation."""
    pass


class AuthenticationError(AuthorizationError):
    """Access token missing, expired or unknown to the auth provider."""
    pass


class ListingNotFoundError(MarketplaceError):
    """Listing does not exist."""

    def __init__(self, listing_id: Union[int, str]):
        super().__init__(f"Listing not found: {listing_id}")
        self.listing_id = listing_id


class SupabaseError(MarketplaceError):
    """Supabase operation error."""
    pass


class StorageError(SupabaseError):
    """Supabase storage bucket operation error."""
    pass


class MalformedListingError(SupabaseError):
    """Stored listing row does not satisfy the listing model."""

    def __init__(self, listing_id: Optional[Union[int, str]], error_count: int = 1):
        super().__init__(f"Listing row {listing_id} is malformed ({error_count} invalid fields)")
        self.listing_id = listing_id
        self.error_count = error_count
