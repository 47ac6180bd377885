"""Filter configuration for public listing search."""

from decimal import Decimal
from enum import Enum
from typing import Any, Mapping, Optional

from pydantic import BaseModel, Field, ValidationInfo, field_validator

from src.models.listing import AMENITIES, PROPERTY_TYPES, normalize_state, validate_input
from src.utils.errors import ListingValidationError


class SortKey(str, Enum):
    """Sortable listing columns."""
    PRICE = "price"
    CREATED_AT = "created_at"
    NUM_SITES = "num_sites"
    CAP_RATE = "cap_rate"


class SortDirection(str, Enum):
    ASC = "asc"
    DESC = "desc"


class FilterConfiguration(BaseModel):
    """Search and sort intent of a browsing session.

    Every field is defaulted to "inactive", so an empty configuration
    matches every publicly visible listing.
    """
    search: str = Field(default="", max_length=200, description="Free-text search")
    price_min: Optional[Decimal] = Field(None, ge=0)
    price_max: Optional[Decimal] = Field(None, ge=0)
    sites_min: Optional[int] = Field(None, ge=0)
    sites_max: Optional[int] = Field(None, ge=0)
    cap_rate_min: Optional[float] = Field(None, ge=0, le=100)
    occupancy_rate_min: Optional[float] = Field(None, ge=0, le=100)
    revenue_min: Optional[Decimal] = Field(None, ge=0)
    revenue_max: Optional[Decimal] = Field(None, ge=0)
    state: Optional[str] = Field(None, description="Single state selection (two-letter code)")
    states: list[str] = Field(default_factory=list, description="Multi-state selection")
    property_types: list[str] = Field(default_factory=list)
    amenities: list[str] = Field(default_factory=list)
    listed_within_days: Optional[int] = Field(None, ge=1)
    only_featured: bool = False
    only_with_images: bool = False
    sort_by: SortKey = SortKey.CREATED_AT
    sort_direction: SortDirection = SortDirection.DESC
    limit: Optional[int] = Field(None, ge=1, le=1000)

    @field_validator("search", mode="before")
    @classmethod
    def _strip_search(cls, value: Any) -> Any:
        if value is None:
            return ""
        return value.strip() if isinstance(value, str) else value

    @field_validator("state", mode="before")
    @classmethod
    def _normalize_state(cls, value: Any) -> Any:
        if value is None or (isinstance(value, str) and not value.strip()):
            return None
        return normalize_state(value) if isinstance(value, str) else value

    @field_validator("states", mode="before")
    @classmethod
    def _normalize_states(cls, value: Any) -> Any:
        if value is None:
            return []
        return [normalize_state(item) if isinstance(item, str) else item for item in value]

    @field_validator("property_types")
    @classmethod
    def _known_property_types(cls, value: list[str]) -> list[str]:
        unknown = [item for item in value if item not in PROPERTY_TYPES]
        if unknown:
            raise ValueError(f"Unknown property types: {', '.join(unknown)}")
        return value

    @field_validator("amenities")
    @classmethod
    def _known_amenities(cls, value: list[str]) -> list[str]:
        unknown = [item for item in value if item not in AMENITIES]
        if unknown:
            raise ValueError(f"Unknown amenities: {', '.join(unknown)}")
        return value

    @field_validator("price_max", "sites_max", "revenue_max")
    @classmethod
    def _max_not_below_min(cls, value: Any, info: ValidationInfo) -> Any:
        min_field = info.field_name.replace("_max", "_min")
        minimum = info.data.get(min_field)
        if value is not None and minimum is not None and value < minimum:
            raise ValueError(f"{info.field_name} must not be lower than {min_field}")
        return value

    def selected_states(self) -> set[str]:
        selected = set(self.states)
        if self.state:
            selected.add(self.state)
        return selected

    def has_active_criteria(self) -> bool:
        """True when any filter (not sort or limit) narrows the result set."""
        return any((
            self.search,
            self.price_min is not None,
            self.price_max is not None,
            self.sites_min is not None,
            self.sites_max is not None,
            self.cap_rate_min is not None,
            self.occupancy_rate_min is not None,
            self.revenue_min is not None,
            self.revenue_max is not None,
            self.selected_states(),
            self.property_types,
            self.amenities,
            self.listed_within_days is not None,
            self.only_featured,
            self.only_with_images,
        ))

    @classmethod
    def from_query_params(cls, params: Mapping[str, Any]) -> "FilterConfiguration":
        """Build a configuration from string query parameters.

        Accepts snake_case and the camelCase names used by the web client.
        Multi-selects are comma separated; ``quick`` applies named presets.
        """
        data: dict[str, Any] = {}
        for raw_key, raw_value in params.items():
            key = _QUERY_ALIASES.get(raw_key, raw_key)
            if key not in cls.model_fields or raw_value is None:
                continue
            if isinstance(raw_value, str) and not raw_value.strip() and key != "search":
                continue
            if key in _LIST_FIELDS:
                data[key] = _split_list(raw_value)
            elif key in _FLAG_FIELDS:
                data[key] = _parse_flag(raw_value)
            else:
                data[key] = raw_value

        config = _validate(data)
        for name in _split_list(params.get("quick") or ""):
            config = apply_quick_filter(config, name)
        return config


QUICK_FILTERS: dict[str, dict[str, Any]] = {
    "featured": {"only_featured": True},
    "new_this_week": {"listed_within_days": 7},
    "high_cap_rate": {"cap_rate_min": 8.0},
    "high_occupancy": {"occupancy_rate_min": 80.0},
    "large_parks": {"sites_min": 100},
    "under_1m": {"price_max": Decimal("1000000")},
}


def apply_quick_filter(config: FilterConfiguration, name: str) -> FilterConfiguration:
    """Return a copy of ``config`` with a named preset applied on top."""
    preset = QUICK_FILTERS.get(name)
    if preset is None:
        raise ListingValidationError(f"Unknown quick filter: {name}", field="quick_filter")
    return _validate({**config.model_dump(), **preset})


_QUERY_ALIASES = {
    "priceMin": "price_min",
    "priceMax": "price_max",
    "sitesMin": "sites_min",
    "sitesMax": "sites_max",
    "capRateMin": "cap_rate_min",
    "occupancyRateMin": "occupancy_rate_min",
    "revenueMin": "revenue_min",
    "revenueMax": "revenue_max",
    "statesSelected": "states",
    "propertyTypes": "property_types",
    "features": "amenities",
    "listedWithinDays": "listed_within_days",
    "onlyFeatured": "only_featured",
    "onlyWithImages": "only_with_images",
    "sortBy": "sort_by",
    "sortDirection": "sort_direction",
    # sort_by values
    "createdAt": "created_at",
    "numSites": "num_sites",
    "capRate": "cap_rate",
}

_LIST_FIELDS = {"states", "property_types", "amenities"}
_FLAG_FIELDS = {"only_featured", "only_with_images"}


def _split_list(value: Any) -> list[str]:
    if isinstance(value, str):
        return [item.strip() for item in value.split(",") if item.strip()]
    return [str(item).strip() for item in value if str(item).strip()]


def _parse_flag(value: Any) -> bool:
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ("true", "1", "yes", "on")


def _validate(data: dict[str, Any]) -> FilterConfiguration:
    if "sort_by" in data and isinstance(data["sort_by"], str):
        data["sort_by"] = _QUERY_ALIASES.get(data["sort_by"], data["sort_by"])
    return validate_input(FilterConfiguration, data)
