"""Marketplace configuration read from environment variables."""

import os


def _env_flag(name: str, default: str) -> bool:
    return os.environ.get(name, default).strip().lower() in ("true", "1", "yes")


class MarketplaceConfig:
    """Runtime settings for listing search, moderation and storage.

    Read once at import, like LoggingConfig. Tests patch the class attributes
    directly rather than the environment.
    """

    # Listing search
    LISTINGS_FALLBACK_ENABLED = _env_flag("LISTINGS_FALLBACK_ENABLED", "true")
    LISTINGS_FALLBACK_ON_EMPTY = _env_flag("LISTINGS_FALLBACK_ON_EMPTY", "true")
    LISTINGS_QUERY_LIMIT = int(os.environ.get("LISTINGS_QUERY_LIMIT", "100"))

    # Moderation
    REQUIRE_REJECTION_REASON = _env_flag("REQUIRE_REJECTION_REASON", "false")
    DEFAULT_REJECTION_REASON = os.environ.get("DEFAULT_REJECTION_REASON", "No reason provided")

    # Storage buckets
    LISTING_IMAGES_BUCKET = os.environ.get("LISTING_IMAGES_BUCKET", "listing-images")
    LISTING_DOCUMENTS_BUCKET = os.environ.get("LISTING_DOCUMENTS_BUCKET", "listing-documents")
