"""Tests for search result normalization."""
import pytest

from hotelscout.errors import ParseError
from hotelscout.schemas import HotelSearchQuery
from hotelscout.search.normalizer import (
    MISSING_BOOKING_SLUG,
    dig,
    extract_connection,
    format_price,
    meters_to_miles,
    normalize_card,
    normalize_facets,
    normalize_search_result,
)

from payloads import make_connection, make_edge, search_args, search_response

BASE_URL = "https://www.marriott.com"
ASSET_URL = "https://cache.marriott.com"


def card(edge):
    return normalize_card(edge, base_url=BASE_URL, asset_base_url=ASSET_URL, platform="marriott")


def test_dig_tolerates_missing_levels():
    data = {"a": {"b": [{"c": 1}]}}

    assert dig(data, "a", "b", 0, "c") == 1
    assert dig(data, "a", "x", "c") is None
    assert dig(data, "a", "b", 3, "c") is None
    assert dig(None, "a") is None
    assert dig({"a": "text"}, "a", "b") is None


class TestPrice:
    def test_amount_in_minor_units(self):
        assert format_price(53900, 2) == "539"

    def test_decimal_point_defaults_to_two(self):
        assert format_price(53900) == "539"

    def test_rounds_half_up(self):
        assert format_price(250, 2) == "3"
        assert format_price(249, 2) == "2"

    def test_missing_amount(self):
        assert format_price(None, 2) is None


class TestDistance:
    def test_one_mile(self):
        assert meters_to_miles(1609.34) == "1.0"

    def test_zero(self):
        assert meters_to_miles(0) == "0.0"

    def test_missing(self):
        assert meters_to_miles(None) is None


class TestNormalizeCard:
    def test_full_edge(self):
        result = card(make_edge())

        assert result.id == "NYCAK"
        assert result.name == "New York Marriott Marquis"
        assert result.brand == "Marriott Hotels"
        assert result.price == "539"
        assert result.currency == "USD"
        assert result.distance == "1.0 mi"
        assert result.distance_miles == "1.0"
        assert result.rating == 4.3
        assert result.reviews == 5120
        assert result.bookable is True
        assert result.url == "https://www.marriott.com/hotels/travel/nycmq-new-york-marriott-marquis/"
        assert result.image == "https://cache.marriott.com/is/image/marriotts7prod/mc-nycmq-exterior.jpg"
        assert result.platform == "marriott"
        assert result.warnings == []

    def test_missing_amount_gives_null_price(self):
        result = card(make_edge(amount=None))

        assert result.price is None
        assert result.currency == "USD"

    def test_unavailable_rate_is_not_bookable(self):
        assert card(make_edge(status="Unavailable")).bookable is False

    def test_absolute_image_url_is_kept(self):
        result = card(make_edge(image="https://img.example.com/a.jpg"))
        assert result.image == "https://img.example.com/a.jpg"

    def test_missing_image_is_null(self):
        result = card(make_edge(image=None))

        assert result.image is None
        assert "image" in result.to_wire()

    def test_image_falls_back_to_narrower_variants(self):
        edge = make_edge()
        edge["node"]["property"]["media"]["primaryImage"]["edges"][0]["node"]["imageUrls"] = {
            "square": "/sq.jpg"
        }
        assert card(edge).image == "https://cache.marriott.com/sq.jpg"

    def test_missing_slug_is_flagged_not_fabricated(self):
        result = card(make_edge(slug=None))

        assert result.url is None
        assert result.warnings == [MISSING_BOOKING_SLUG]

    def test_empty_edge_does_not_raise(self):
        result = card({})

        assert result.id is None
        assert result.name is None
        assert result.price is None
        assert result.distance is None
        assert result.bookable is False

    def test_edge_with_null_rates(self):
        edge = make_edge()
        edge["node"]["rates"] = None

        result = card(edge)
        assert result.price is None
        assert result.bookable is False


class TestNormalizeFacets:
    def test_keyed_by_type_code_in_provider_order(self):
        catalog = normalize_facets(
            [
                {
                    "type": {"code": "BRANDS"},
                    "buckets": [
                        {"code": "SI", "label": "Sheraton", "count": 1},
                        {"code": "MC", "label": "Marriott Hotels", "count": 9},
                    ],
                }
            ]
        )

        assert [b.code for b in catalog["BRANDS"]] == ["SI", "MC"]
        assert catalog["BRANDS"][1].count == 9

    def test_buckets_are_capped(self):
        buckets = [{"code": f"B{i}", "label": str(i), "count": i} for i in range(30)]
        catalog = normalize_facets([{"type": {"code": "AMENITIES"}, "buckets": buckets}], bucket_limit=20)

        assert len(catalog["AMENITIES"]) == 20
        assert catalog["AMENITIES"][0].code == "B0"
        assert catalog["AMENITIES"][-1].code == "B19"

    def test_facets_without_type_code_are_skipped(self):
        catalog = normalize_facets([{"type": None, "buckets": []}, {"buckets": [{"code": "X"}]}])
        assert catalog == {}

    def test_none(self):
        assert normalize_facets(None) == {}


class TestExtractConnection:
    def test_valid_payload(self):
        connection = extract_connection(search_response(make_connection())["data"])

        assert connection["total"] == 1
        assert len(connection["edges"]) == 1

    def test_empty_result_is_not_an_error(self):
        connection = extract_connection(search_response(make_connection(edges=[], total=0, facets=[]))["data"])

        assert connection["edges"] == []
        assert connection["total"] == 0

    def test_missing_container_is_a_parse_error(self):
        with pytest.raises(ParseError):
            extract_connection({"search": {"lowestAvailableRates": None}})

    def test_missing_total_is_a_parse_error(self):
        with pytest.raises(ParseError):
            extract_connection(search_response({"edges": []})["data"])

    def test_non_list_edges_is_a_parse_error(self):
        with pytest.raises(ParseError):
            extract_connection(search_response({"edges": {}, "total": 0})["data"])


class TestNormalizeSearchResult:
    def test_total_comes_from_provider(self):
        query = HotelSearchQuery.model_validate(search_args(page=2))
        connection = make_connection(edges=[make_edge(), make_edge(property_id="NYCMQ")], total=47)

        result = normalize_search_result(connection, query, page_size=5, base_url=BASE_URL, asset_base_url=ASSET_URL)

        assert result.total == 47
        assert len(result.hotels) == 2
        assert result.pagination.total_results == 47
        assert result.pagination.total_pages == 10
        assert result.pagination.current_page == 2
        assert result.dates == "2025-11-15 to 2025-11-17"
        assert result.location == {"latitude": 40.75, "longitude": -73.98}
        assert set(result.facets) == {"BRANDS", "AMENITIES"}

    def test_search_params_echo_filters(self):
        query = HotelSearchQuery.model_validate(search_args(amenities=["POOL"]))
        result = normalize_search_result(
            make_connection(), query, page_size=5, base_url=BASE_URL, asset_base_url=ASSET_URL
        )

        wire = result.to_wire()
        assert wire["searchParams"]["amenities"] == ["POOL"]
        assert wire["searchParams"]["startDate"] == "2025-11-15"

    def test_zero_results(self):
        query = HotelSearchQuery.model_validate(search_args())
        result = normalize_search_result(
            make_connection(edges=[], total=0, facets=[]),
            query,
            page_size=5,
            base_url=BASE_URL,
            asset_base_url=ASSET_URL,
        )

        assert result.hotels == []
        assert result.total == 0
        assert result.pagination.total_pages == 0
