"""Listing models."""

import json
from datetime import datetime, timezone
from decimal import Decimal
from enum import Enum
from typing import Any, Optional, TypeVar, Union

from pydantic import AliasChoices, BaseModel, Field, ValidationError, field_validator, model_validator

from src.utils.errors import ListingValidationError, MalformedListingError

ListingId = Union[int, str]

# Upper bounds shared by the currency and site-count fields
MAX_CURRENCY = Decimal("10000000000")
MAX_SITES = 1_000_000

US_STATES: dict[str, str] = {
    "AL": "Alabama", "AK": "Alaska", "AZ": "Arizona", "AR": "Arkansas",
    "CA": "California", "CO": "Colorado", "CT": "Connecticut", "DE": "Delaware",
    "DC": "District of Columbia", "FL": "Florida", "GA": "Georgia", "HI": "Hawaii",
    "ID": "Idaho", "IL": "Illinois", "IN": "Indiana", "IA": "Iowa",
    "KS": "Kansas", "KY": "Kentucky", "LA": "Louisiana", "ME": "Maine",
    "MD": "Maryland", "MA": "Massachusetts", "MI": "Michigan", "MN": "Minnesota",
    "MS": "Mississippi", "MO": "Missouri", "MT": "Montana", "NE": "Nebraska",
    "NV": "Nevada", "NH": "New Hampshire", "NJ": "New Jersey", "NM": "New Mexico",
    "NY": "New York", "NC": "North Carolina", "ND": "North Dakota", "OH": "Ohio",
    "OK": "Oklahoma", "OR": "Oregon", "PA": "Pennsylvania", "RI": "Rhode Island",
    "SC": "South Carolina", "SD": "South Dakota", "TN": "Tennessee", "TX": "Texas",
    "UT": "Utah", "VT": "Vermont", "VA": "Virginia", "WA": "Washington",
    "WV": "West Virginia", "WI": "Wisconsin", "WY": "Wyoming",
}

PROPERTY_TYPES = (
    "RV Park",
    "RV Resort",
    "Campground",
    "Mobile Home Park",
    "Resort",
    "Marina",
    "Mixed-Use",
)

AMENITIES = (
    "Waterfront",
    "Pool",
    "Clubhouse",
    "WiFi",
    "Pet Friendly",
    "Laundry",
    "Playground",
    "Boat Ramp",
    "Fishing",
    "Hiking Trails",
    "Store/Shop",
    "Restaurant",
    "Full Hookups",
    "Bathhouse",
    "Recreation Hall",
)


class ModerationStatus(str, Enum):
    """Moderation status values (listing_status enum)."""
    PENDING = "pending"
    APPROVED = "approved"
    REJECTED = "rejected"

    @classmethod
    def parse(cls, value: Any) -> "ModerationStatus":
        """Parse a raw status value, raising a validation error naming it."""
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            raise ListingValidationError(f"Invalid status value: {value!r}", field="status")


class DocumentCategory(str, Enum):
    """Attachment categories derived from the file type."""
    PDF = "pdf"
    SPREADSHEET = "spreadsheet"
    DOCUMENT = "document"
    IMAGE = "image"
    OTHER = "other"


_CATEGORY_BY_EXTENSION = {
    "pdf": DocumentCategory.PDF,
    "xls": DocumentCategory.SPREADSHEET,
    "xlsx": DocumentCategory.SPREADSHEET,
    "csv": DocumentCategory.SPREADSHEET,
    "doc": DocumentCategory.DOCUMENT,
    "docx": DocumentCategory.DOCUMENT,
    "txt": DocumentCategory.DOCUMENT,
    "jpg": DocumentCategory.IMAGE,
    "jpeg": DocumentCategory.IMAGE,
    "png": DocumentCategory.IMAGE,
    "webp": DocumentCategory.IMAGE,
}


def categorize_file_type(file_type: Optional[str]) -> DocumentCategory:
    """Map a MIME type or file extension to a document category."""
    if not file_type:
        return DocumentCategory.OTHER
    value = file_type.strip().lower()
    if "/" in value:
        if value == "application/pdf":
            return DocumentCategory.PDF
        if value.startswith("image/"):
            return DocumentCategory.IMAGE
        if "spreadsheet" in value or "excel" in value or value == "text/csv":
            return DocumentCategory.SPREADSHEET
        if "word" in value or value.startswith("text/"):
            return DocumentCategory.DOCUMENT
        return DocumentCategory.OTHER
    return _CATEGORY_BY_EXTENSION.get(value.rsplit(".", 1)[-1], DocumentCategory.OTHER)


def normalize_state(value: str) -> str:
    """Return the two-letter code for a state code or full state name."""
    cleaned = value.strip()
    if cleaned.upper() in US_STATES:
        return cleaned.upper()
    for code, name in US_STATES.items():
        if name.lower() == cleaned.lower():
            return code
    raise ValueError(f"Unknown state: {value}")


def parse_amenities(value: Any) -> set[str]:
    """Accept the stored JSON object, a list, or a JSON / comma separated string."""
    if value is None:
        return set()
    if isinstance(value, str):
        value = value.strip()
        if not value:
            return set()
        try:
            value = json.loads(value)
        except json.JSONDecodeError:
            return {item.strip() for item in value.split(",") if item.strip()}
        if isinstance(value, str):
            return {value}
    if isinstance(value, dict):
        return {str(name) for name, enabled in value.items() if enabled}
    return {str(item) for item in value}


ModelT = TypeVar("ModelT", bound=BaseModel)


def validate_input(model: type[ModelT], data: Any) -> ModelT:
    """Validate caller input, reporting the first failing field."""
    try:
        return model.model_validate(data)
    except ValidationError as exc:
        error = exc.errors()[0]
        field = ".".join(str(part) for part in error["loc"] if not isinstance(part, int)) or None
        raise ListingValidationError(f"Invalid value for {field}: {error['msg']}", field=field)


def _as_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


class ListingImage(BaseModel):
    """Image attached to a listing (listing_images row)."""
    id: Optional[ListingId] = None
    listing_id: Optional[ListingId] = None
    storage_path: Optional[str] = Field(None, description="Path inside the images bucket")
    url: Optional[str] = Field(None, description="Public URL for legacy or resolved images")
    position: int = Field(default=0, ge=0)
    is_primary: bool = False
    created_at: Optional[datetime] = None

    @field_validator("position", mode="before")
    @classmethod
    def _default_position(cls, value: Any) -> Any:
        return 0 if value is None else value

    @field_validator("is_primary", mode="before")
    @classmethod
    def _coerce_primary(cls, value: Any) -> bool:
        return bool(value)


class ListingDocument(BaseModel):
    """Document attached to a listing (listing_documents row)."""
    id: Optional[ListingId] = None
    listing_id: Optional[ListingId] = None
    name: str
    type: str = Field(..., description="MIME type or file extension")
    storage_path: str
    size: Optional[int] = Field(None, ge=0)
    description: Optional[str] = None

    @property
    def category(self) -> DocumentCategory:
        return categorize_file_type(self.type)


class Listing(BaseModel):
    """RV park / campground listing with joined images and documents."""
    id: Optional[ListingId] = Field(None, description="Listing ID (int from the listings table)")
    title: str
    description: str = ""
    property_type: Optional[str] = None
    amenities: set[str] = Field(default_factory=set)

    address: Optional[str] = None
    city: str = ""
    state: str
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    location_set: bool = False

    price: Decimal = Field(..., ge=0, lt=MAX_CURRENCY)
    num_sites: Optional[int] = Field(None, gt=0, lt=MAX_SITES)
    occupancy_rate: Optional[float] = Field(None, ge=0, le=100)
    annual_revenue: Optional[Decimal] = Field(None, ge=0, lt=MAX_CURRENCY)
    cap_rate: Optional[float] = Field(None, ge=0, le=100)

    images: list[ListingImage] = Field(
        default_factory=list,
        validation_alias=AliasChoices("images", "listing_images"),
    )
    documents: list[ListingDocument] = Field(
        default_factory=list,
        validation_alias=AliasChoices("documents", "listing_documents"),
    )
    offering_memorandum_path: Optional[str] = None
    featured: bool = False

    user_id: Optional[str] = Field(None, description="Owning broker (auth user id)")
    status: Optional[ModerationStatus] = Field(
        None,
        description="pending, approved or rejected; None only for legacy data"
    )
    rejection_reason: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("state", mode="before")
    @classmethod
    def _normalize_state(cls, value: Any) -> Any:
        return normalize_state(value) if isinstance(value, str) else value

    @field_validator("amenities", mode="before")
    @classmethod
    def _parse_amenities(cls, value: Any) -> set[str]:
        return parse_amenities(value)

    @field_validator("images", mode="before")
    @classmethod
    def _parse_images(cls, value: Any) -> Any:
        if value is None:
            return []
        # Legacy data carries bare image URLs; the first one is the cover
        return [
            {"url": item, "position": index, "is_primary": index == 0} if isinstance(item, str) else item
            for index, item in enumerate(value)
        ]

    @field_validator("documents", mode="before")
    @classmethod
    def _default_documents(cls, value: Any) -> Any:
        return [] if value is None else value

    @field_validator("featured", "location_set", mode="before")
    @classmethod
    def _coerce_flag(cls, value: Any) -> bool:
        return bool(value)

    @field_validator("city", "description", mode="before")
    @classmethod
    def _default_text(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("created_at", "updated_at")
    @classmethod
    def _assume_utc(cls, value: Optional[datetime]) -> Optional[datetime]:
        return _as_utc(value)

    @model_validator(mode="after")
    def _check_invariants(self) -> "Listing":
        if sum(1 for image in self.images if image.is_primary) > 1:
            raise ValueError("Only one image per listing may be marked primary")
        self.images.sort(key=lambda image: image.position)
        if self.status != ModerationStatus.REJECTED:
            self.rejection_reason = None
        return self

    @property
    def primary_image(self) -> Optional[ListingImage]:
        for image in self.images:
            if image.is_primary:
                return image
        return self.images[0] if self.images else None

    @property
    def is_publicly_visible(self) -> bool:
        """Approved listings, plus legacy rows that predate moderation."""
        return self.status is None or self.status == ModerationStatus.APPROVED


def _check_property_type(value: Optional[str]) -> Optional[str]:
    if value is not None and value not in PROPERTY_TYPES:
        raise ValueError(f"Unknown property type: {value}")
    return value


def _check_amenities(value: Optional[set[str]]) -> Optional[set[str]]:
    if value:
        unknown = sorted(value - set(AMENITIES))
        if unknown:
            raise ValueError(f"Unknown amenities: {', '.join(unknown)}")
    return value


class ListingDraft(BaseModel):
    """Broker-submitted listing content for creation."""
    title: str = Field(..., min_length=5, max_length=100)
    description: str = Field(..., min_length=20, max_length=2000)
    property_type: str
    amenities: set[str] = Field(default_factory=set)
    address: Optional[str] = Field(None, max_length=200)
    city: str = Field(..., min_length=2, max_length=50, pattern=r"^[A-Za-z\s\-'.]+$")
    state: str
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    price: Decimal = Field(..., ge=0, lt=MAX_CURRENCY, decimal_places=2)
    num_sites: int = Field(..., gt=0, lt=MAX_SITES)
    occupancy_rate: float = Field(..., ge=0, le=100)
    annual_revenue: Decimal = Field(..., ge=0, lt=MAX_CURRENCY, decimal_places=2)
    cap_rate: float = Field(..., ge=0, le=100)
    offering_memorandum_path: Optional[str] = None

    @field_validator("title", "description", "city", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("state", mode="before")
    @classmethod
    def _normalize_state(cls, value: Any) -> Any:
        return normalize_state(value) if isinstance(value, str) else value

    @field_validator("property_type")
    @classmethod
    def _known_property_type(cls, value: str) -> str:
        return _check_property_type(value)

    @field_validator("amenities", mode="before")
    @classmethod
    def _parse_amenities(cls, value: Any) -> set[str]:
        return parse_amenities(value)

    @field_validator("amenities")
    @classmethod
    def _known_amenities(cls, value: set[str]) -> set[str]:
        return _check_amenities(value)

    @property
    def location_set(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    def to_record(self) -> dict[str, Any]:
        """Content columns of a new listings row."""
        record = self.model_dump(mode="json", exclude={"amenities"})
        record["amenities"] = {name: True for name in sorted(self.amenities)}
        record["location_set"] = self.location_set
        return record


class ListingContentUpdate(BaseModel):
    """Partial update of broker-editable content fields."""
    title: Optional[str] = Field(None, min_length=5, max_length=100)
    description: Optional[str] = Field(None, min_length=20, max_length=2000)
    property_type: Optional[str] = None
    amenities: Optional[set[str]] = None
    address: Optional[str] = Field(None, max_length=200)
    city: Optional[str] = Field(None, min_length=2, max_length=50, pattern=r"^[A-Za-z\s\-'.]+$")
    state: Optional[str] = None
    latitude: Optional[float] = Field(None, ge=-90, le=90)
    longitude: Optional[float] = Field(None, ge=-180, le=180)
    price: Optional[Decimal] = Field(None, ge=0, lt=MAX_CURRENCY, decimal_places=2)
    num_sites: Optional[int] = Field(None, gt=0, lt=MAX_SITES)
    occupancy_rate: Optional[float] = Field(None, ge=0, le=100)
    annual_revenue: Optional[Decimal] = Field(None, ge=0, lt=MAX_CURRENCY, decimal_places=2)
    cap_rate: Optional[float] = Field(None, ge=0, le=100)
    offering_memorandum_path: Optional[str] = None

    @field_validator("title", "description", "city", mode="before")
    @classmethod
    def _strip(cls, value: Any) -> Any:
        return value.strip() if isinstance(value, str) else value

    @field_validator("state", mode="before")
    @classmethod
    def _normalize_state(cls, value: Any) -> Any:
        return normalize_state(value) if isinstance(value, str) else value

    @field_validator("property_type")
    @classmethod
    def _known_property_type(cls, value: Optional[str]) -> Optional[str]:
        return _check_property_type(value)

    @field_validator("amenities", mode="before")
    @classmethod
    def _parse_amenities(cls, value: Any) -> Optional[set[str]]:
        return None if value is None else parse_amenities(value)

    @field_validator("amenities")
    @classmethod
    def _known_amenities(cls, value: Optional[set[str]]) -> Optional[set[str]]:
        return _check_amenities(value)

    def to_record(self) -> dict[str, Any]:
        """Serialize only the fields the caller actually set."""
        record = self.model_dump(mode="json", exclude_unset=True, exclude={"amenities"})
        if "amenities" in self.model_fields_set and self.amenities is not None:
            record["amenities"] = {name: True for name in sorted(self.amenities)}
        if "latitude" in record and "longitude" in record:
            record["location_set"] = record["latitude"] is not None and record["longitude"] is not None
        return record


def listing_from_row(row: dict) -> Listing:
    """Load a stored row; a row the model rejects raises MalformedListingError."""
    try:
        return Listing.model_validate(row)
    except ValidationError as exc:
        raise MalformedListingError(row.get("id"), exc.error_count())
