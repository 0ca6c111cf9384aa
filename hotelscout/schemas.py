"""Pydantic models for the hotel search tools."""
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, ConfigDict, Field, field_validator
from pydantic.alias_generators import to_camel


class CamelModel(BaseModel):
    """Base model exposing camelCase names on the wire."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        str_strip_whitespace=True,
    )

    def to_wire(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


# Filter dimensions accepted by search_hotels, in the order they are reported back
FILTER_FIELDS = (
    "brands",
    "amenities",
    "activities",
    "transportation_types",
    "property_types",
    "cities",
    "states",
    "countries",
    "meetings_and_events",
    "hotel_service_types",
    "leisure_region",
    "all_inclusive",
)

FILTER_LABELS = {
    "brands": "Brands",
    "amenities": "Amenities",
    "activities": "Activities",
    "transportation_types": "Transportation",
    "property_types": "Property Types",
    "cities": "Cities",
    "states": "States",
    "countries": "Countries",
    "meetings_and_events": "Meetings & Events",
    "hotel_service_types": "Hotel Services",
    "leisure_region": "Leisure Region",
    "all_inclusive": "All-Inclusive",
}


# Places
class Place(CamelModel):
    """A geocodable location suggestion."""
    place_id: str
    description: Optional[str] = None
    primary_description: Optional[str] = None
    secondary_description: Optional[str] = None


class PlaceSearchResult(CamelModel):
    places: List[Place] = Field(default_factory=list)
    total: int = 0


class PlaceLocation(CamelModel):
    latitude: Optional[float] = None
    longitude: Optional[float] = None
    address: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    country_name: Optional[str] = None


class PlaceDetail(CamelModel):
    """Resolved coordinates and postal address for a place."""
    place_id: str
    description: Optional[str] = None
    distance: Optional[float] = None
    location: PlaceLocation = Field(default_factory=PlaceLocation)
    types: List[str] = Field(default_factory=list)
    destination_type: Optional[str] = None

    @property
    def is_resolved(self) -> bool:
        return self.location.latitude is not None and self.location.longitude is not None


# Hotel search
class HotelSearchQuery(CamelModel):
    """Input for the search_hotels tool."""
    latitude: float = Field(..., ge=-90, le=90)
    longitude: float = Field(..., ge=-180, le=180)
    start_date: str = Field(..., min_length=1, description="Check-in date YYYY-MM-DD")
    end_date: str = Field(..., min_length=1, description="Check-out date YYYY-MM-DD")
    guests: int = Field(1, ge=1, description="Number of adult guests")
    rooms: int = Field(1, ge=1, description="Number of rooms")
    child_ages: List[int] = Field(default_factory=list, description="Ages of children, one entry per child")
    page: int = Field(1, description="Page number, starting from 1")

    brands: List[str] = Field(default_factory=list, description="Brand codes from a discovery search")
    amenities: List[str] = Field(default_factory=list, description="Amenity codes from a discovery search")
    activities: List[str] = Field(default_factory=list)
    transportation_types: List[str] = Field(default_factory=list)
    property_types: List[str] = Field(default_factory=list)
    cities: List[str] = Field(default_factory=list)
    states: List[str] = Field(default_factory=list)
    countries: List[str] = Field(default_factory=list)
    meetings_and_events: List[str] = Field(default_factory=list)
    hotel_service_types: List[str] = Field(default_factory=list)
    leisure_region: List[str] = Field(default_factory=list)
    all_inclusive: List[str] = Field(default_factory=list)

    @field_validator("page", mode="before")
    @classmethod
    def clamp_page(cls, value):
        if value is None:
            return 1
        return max(int(value), 1)

    @field_validator(*FILTER_FIELDS, mode="before")
    @classmethod
    def none_as_empty(cls, value):
        return [] if value is None else value

    @property
    def children(self) -> int:
        return len(self.child_ages)

    @property
    def has_filters(self) -> bool:
        return any(getattr(self, name) for name in FILTER_FIELDS)

    def active_filters(self) -> Dict[str, List[str]]:
        """Non-empty filter dimensions, in declaration order."""
        return {name: list(getattr(self, name)) for name in FILTER_FIELDS if getattr(self, name)}

    def without_filters(self) -> "HotelSearchQuery":
        return self.model_copy(update={name: [] for name in FILTER_FIELDS})


class HotelCard(CamelModel):
    """Flat, provider-independent view of one search result."""
    id: Optional[str] = None
    name: Optional[str] = None
    brand: Optional[str] = None
    distance: Optional[str] = None
    distance_miles: Optional[str] = None
    price: Optional[str] = None
    currency: Optional[str] = None
    rating: Optional[float] = None
    reviews: Optional[int] = None
    bookable: bool = False
    url: Optional[str] = None
    image: Optional[str] = None
    platform: Optional[str] = None
    warnings: List[str] = Field(default_factory=list)


class FacetBucket(CamelModel):
    code: Optional[str] = None
    label: Optional[str] = None
    count: Optional[int] = None


FacetCatalog = Dict[str, List[FacetBucket]]


class PaginationInfo(CamelModel):
    current_page: int
    total_pages: int
    total_results: int
    per_page: int
    has_next_page: bool
    has_prev_page: bool


class HotelSearchResult(CamelModel):
    hotels: List[HotelCard] = Field(default_factory=list)
    total: int = 0
    facets: FacetCatalog = Field(default_factory=dict)
    pagination: PaginationInfo
    search_params: Dict[str, Any] = Field(default_factory=dict)
    dates: str
    location: Dict[str, float] = Field(default_factory=dict)


class DiscoveryRejection(CamelModel):
    """Returned instead of results when a filtered search skips discovery."""
    reason: str = "DISCOVERY_REQUIRED"
    message: str
    retry_with: Dict[str, Any]
    requested_filters: Dict[str, List[str]] = Field(default_factory=dict)


# Property detail and rates
class HotelDetail(CamelModel):
    property_id: str
    property_info: Optional[Dict[str, Any]] = None
    photo_gallery: Optional[Dict[str, Any]] = None
    amenities: Optional[Dict[str, Any]] = None
    degraded: bool = False
    degraded_sections: List[str] = Field(default_factory=list)


class HotelRates(CamelModel):
    property_id: str
    check_in_date: str
    check_out_date: str
    property: Optional[Dict[str, Any]] = None
    rooms: Optional[Dict[str, Any]] = None
    images: Optional[Dict[str, Any]] = None
    header: Optional[Dict[str, Any]] = None
    degraded: bool = False
    degraded_sections: List[str] = Field(default_factory=list)


# Tool-specific inputs
class SearchPlacesInput(CamelModel):
    """Input for the search_places tool."""
    query: str = Field(..., min_length=1, description="City or destination name")


class PlaceDetailsInput(CamelModel):
    """Input for the place_details tool."""
    place_id: str = Field(..., min_length=1, description="Place ID from search_places results")


class HotelDetailsInput(CamelModel):
    """Input for the hotel_details tool."""
    property_id: str = Field(..., min_length=1, description="Property ID from search_hotels results")


class HotelRatesInput(CamelModel):
    """Input for the hotel_rates tool."""
    property_id: str = Field(..., min_length=1, description="Property ID from search_hotels results")
    check_in_date: str = Field(..., min_length=1, description="Check-in date YYYY-MM-DD")
    check_out_date: str = Field(..., min_length=1, description="Check-out date YYYY-MM-DD")
    rooms: int = Field(1, ge=1)
    guests: int = Field(1, ge=1)

    @field_validator("rooms", "guests", mode="before")
    @classmethod
    def default_when_missing(cls, value):
        return 1 if value is None else value
