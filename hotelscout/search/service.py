"""Hotel search service: places, guarded hotel search, details and rates."""
from typing import Optional, Union

from hotelscout.config import Settings, get_settings
from hotelscout.errors import ValidationError
from hotelscout.framework.tool_runtime import DEFAULT_SESSION_ID
from hotelscout.logging_config import get_logger
from hotelscout.provider.gateway import InventoryGateway
from hotelscout.schemas import (
    DiscoveryRejection,
    HotelDetail,
    HotelRates,
    HotelRatesInput,
    HotelSearchQuery,
    HotelSearchResult,
    PlaceDetail,
    PlaceSearchResult,
)
from hotelscout.search.guard import DISCOVERY_REQUIRED, FacetDiscoveryGuard
from hotelscout.search.normalizer import normalize_search_result
from hotelscout.search.pagination import normalize_page, to_offset
from hotelscout.search.session import SessionStore

logger = get_logger(__name__)

DISCOVERY_MESSAGE = (
    "Filters can only use codes discovered at this location. Search this location "
    "without any filters first, then repeat the search using facet codes from those results."
)


def _require(value: Optional[str], field: str) -> str:
    if value is None or not str(value).strip():
        raise ValidationError(f"{field} is required", field=field)
    return str(value).strip()


class HotelSearchService:
    """Runs each hotel search operation against the inventory gateway."""

    def __init__(
        self,
        gateway: InventoryGateway,
        settings: Optional[Settings] = None,
        sessions: Optional[SessionStore] = None,
        guard: Optional[FacetDiscoveryGuard] = None,
    ):
        self.gateway = gateway
        self.settings = settings or get_settings()
        self.sessions = sessions or SessionStore(
            ttl_seconds=self.settings.SESSION_TTL_SECONDS,
            max_entries=self.settings.SESSION_MAX_ENTRIES,
        )
        self.guard = guard or FacetDiscoveryGuard(precision=self.settings.LOCATION_KEY_PRECISION)

    async def search_places(self, query: str) -> PlaceSearchResult:
        return await self.gateway.search_places(_require(query, "query"))

    async def get_place_details(self, place_id: str) -> PlaceDetail:
        return await self.gateway.get_place_details(_require(place_id, "placeId"))

    async def search_hotels(
        self,
        query: HotelSearchQuery,
        session_id: Optional[str] = None,
    ) -> Union[HotelSearchResult, DiscoveryRejection]:
        """Guarded, paginated hotel search.

        A filtered search is rejected without a provider call unless the
        session's last successful unfiltered search was at the same location.
        """
        session_id = session_id or DEFAULT_SESSION_ID
        log = logger.bind(session_id=session_id)

        query = query.model_copy(update={"page": normalize_page(query.page)})
        session = self.sessions.get(session_id)
        key = self.guard.key_for(query.latitude, query.longitude)
        decision = self.guard.check(session.location, key, query.has_filters)

        if not decision.allowed:
            log.bind(location_key=key).info("Filtered search rejected, discovery required")
            retry = query.without_filters()
            return DiscoveryRejection(
                reason=DISCOVERY_REQUIRED,
                message=DISCOVERY_MESSAGE,
                retry_with={
                    "latitude": retry.latitude,
                    "longitude": retry.longitude,
                    "startDate": retry.start_date,
                    "endDate": retry.end_date,
                    "guests": retry.guests,
                    "rooms": retry.rooms,
                    "childAges": list(retry.child_ages),
                },
                requested_filters=query.active_filters(),
            )

        page_size = self.settings.SEARCH_PAGE_SIZE
        connection = await self.gateway.search_hotels(query, to_offset(query.page, page_size), page_size)
        result = normalize_search_result(
            connection,
            query,
            page_size=page_size,
            base_url=self.settings.PROVIDER_BASE_URL,
            asset_base_url=self.settings.PROVIDER_ASSET_BASE_URL,
            platform=self.settings.PROVIDER_NAME,
            bucket_limit=self.settings.FACET_BUCKET_LIMIT,
        )
        # Only a search that returned facets opens the filter gate
        self.guard.record(session.location, key, query.has_filters)
        log.bind(location_key=key, total=result.total, page=query.page).info(
            f"Hotel search returned {len(result.hotels)} result(s)"
        )
        return result

    async def get_hotel_details(self, property_id: str) -> HotelDetail:
        return await self.gateway.get_property_details(_require(property_id, "propertyId"))

    async def get_hotel_rates(self, request: HotelRatesInput) -> HotelRates:
        # Dates are passed through as given
        return await self.gateway.get_property_rates(
            _require(request.property_id, "propertyId"),
            _require(request.check_in_date, "checkInDate"),
            _require(request.check_out_date, "checkOutDate"),
            rooms=request.rooms,
            guests=request.guests,
        )
