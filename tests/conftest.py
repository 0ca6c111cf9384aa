"""Shared fixtures."""
from typing import Any, Dict, List, Optional

import pytest

from hotelscout.config import Settings
from hotelscout.errors import GatewayError
from hotelscout.schemas import (
    HotelDetail,
    HotelRates,
    HotelSearchQuery,
    Place,
    PlaceDetail,
    PlaceLocation,
    PlaceSearchResult,
)
from hotelscout.search.service import HotelSearchService

from payloads import make_connection


@pytest.fixture
def settings() -> Settings:
    return Settings(
        SEARCH_PAGE_SIZE=5,
        FACET_BUCKET_LIMIT=20,
        RATES_REQUEST_DELAY=0,
        LOG_FILE="logs/test.log",
    )


class FakeGateway:
    """In-memory stand-in for InventoryGateway that records every call."""

    def __init__(self):
        self.calls: List[tuple] = []
        self.connection: Dict[str, Any] = make_connection()
        self.place_detail = PlaceDetail(
            place_id="ChIJOwg_06VPwokRYv534QaPC8g",
            description="New York, NY, USA",
            location=PlaceLocation(latitude=40.7128, longitude=-74.006, city="New York", country="US"),
        )
        self.error: Optional[GatewayError] = None
        self.degraded_rates = False

    def _record(self, *call):
        self.calls.append(call)
        if self.error is not None:
            raise self.error

    def calls_to(self, name: str) -> List[tuple]:
        return [call for call in self.calls if call[0] == name]

    async def search_places(self, query: str) -> PlaceSearchResult:
        self._record("search_places", query)
        return PlaceSearchResult(
            places=[Place(place_id="ChIJOwg_06VPwokRYv534QaPC8g", description="New York, NY, USA")],
            total=1,
        )

    async def get_place_details(self, place_id: str) -> PlaceDetail:
        self._record("get_place_details", place_id)
        return self.place_detail

    async def search_hotels(self, query: HotelSearchQuery, offset: int, limit: int) -> Dict[str, Any]:
        self._record("search_hotels", query, offset, limit)
        return self.connection

    async def get_property_details(self, property_id: str) -> HotelDetail:
        self._record("get_property_details", property_id)
        return HotelDetail(
            property_id=property_id,
            property_info={"id": property_id, "basicInformation": {"name": "New York Marriott Marquis"}},
            photo_gallery={},
            amenities={},
        )

    async def get_property_rates(self, property_id, check_in, check_out, rooms=1, guests=1) -> HotelRates:
        self._record("get_property_rates", property_id, check_in, check_out, rooms, guests)
        return HotelRates(
            property_id=property_id,
            check_in_date=check_in,
            check_out_date=check_out,
            rooms={"edges": [], "total": 0},
            header={"basicInformation": {"name": "New York Marriott Marquis"}},
            degraded=self.degraded_rates,
            degraded_sections=["rooms"] if self.degraded_rates else [],
        )


@pytest.fixture
def gateway() -> FakeGateway:
    return FakeGateway()


@pytest.fixture
def service(gateway: FakeGateway, settings: Settings) -> HotelSearchService:
    return HotelSearchService(gateway, settings)
