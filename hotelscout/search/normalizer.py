"""
Result normalizer.

Turns provider search payloads into flat ``HotelCard`` records and a facet
catalog. Card extraction never raises on missing fields; only a payload
without the search container is treated as a parse failure.
"""
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Optional

from hotelscout.errors import ParseError
from hotelscout.logging_config import get_logger
from hotelscout.schemas import (
    FacetBucket,
    FacetCatalog,
    HotelCard,
    HotelSearchQuery,
    HotelSearchResult,
)
from hotelscout.search.pagination import to_page_info

logger = get_logger(__name__)

METERS_PER_MILE = 1609.34
DEFAULT_DECIMAL_POINT = 2
BOOKABLE_STATUS = "AvailableForSale"
MISSING_BOOKING_SLUG = "missing_booking_slug"

# Widest first
IMAGE_FIELDS = ("wideHorizontal", "classicHorizontal", "square")

SEARCH_CONTAINER = ("search", "lowestAvailableRates", "searchByGeolocation")


def dig(data: Any, *path: Any) -> Any:
    """Follow ``path`` through nested dicts and lists, returning None on any gap."""
    for key in path:
        if isinstance(key, int):
            if not isinstance(data, list) or not -len(data) <= key < len(data):
                return None
        elif not isinstance(data, dict):
            return None
        data = data[key] if isinstance(key, int) else data.get(key)
        if data is None:
            return None
    return data


def meters_to_miles(meters: Optional[float]) -> Optional[str]:
    if meters is None:
        return None
    try:
        return f"{float(meters) / METERS_PER_MILE:.1f}"
    except (TypeError, ValueError):
        return None


def format_price(amount: Any, decimal_point: Any = None) -> Optional[str]:
    """Whole major units, rounded half up, without a currency symbol."""
    if amount is None or isinstance(amount, bool):
        return None
    if decimal_point is None:
        decimal_point = DEFAULT_DECIMAL_POINT
    try:
        value = Decimal(str(amount)).scaleb(-int(decimal_point))
        return str(value.quantize(Decimal(1), rounding=ROUND_HALF_UP))
    except (InvalidOperation, TypeError, ValueError):
        return None


def _image_url(prop: Any, asset_base_url: str) -> Optional[str]:
    urls = dig(prop, "media", "primaryImage", "edges", 0, "node", "imageUrls")
    if not isinstance(urls, dict):
        return None
    for name in IMAGE_FIELDS:
        url = urls.get(name)
        if url:
            if url.startswith("http://") or url.startswith("https://"):
                return url
            return f"{asset_base_url.rstrip('/')}/{url.lstrip('/')}"
    return None


def _to_float(value: Any) -> Optional[float]:
    try:
        return float(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def _to_int(value: Any) -> Optional[int]:
    try:
        return int(value) if value is not None else None
    except (TypeError, ValueError):
        return None


def normalize_card(
    edge: Dict[str, Any],
    base_url: str,
    asset_base_url: str,
    platform: Optional[str] = None,
) -> HotelCard:
    node = dig(edge, "node") or {}
    prop = dig(node, "property") or {}
    rate = dig(node, "rates", 0)
    amount = dig(rate, "rateModes", "lowestAverageRate", "amount")

    card_id = dig(prop, "id") or dig(node, "id")
    miles = meters_to_miles(dig(node, "distance"))

    warnings: List[str] = []
    slug = dig(prop, "seoNickname")
    if slug:
        url = f"{base_url.rstrip('/')}/hotels/travel/{slug}/"
    else:
        url = None
        warnings.append(MISSING_BOOKING_SLUG)
        logger.bind(property_id=card_id).warning("Search result has no booking slug")

    return HotelCard(
        id=str(card_id) if card_id is not None else None,
        name=dig(prop, "basicInformation", "name"),
        brand=dig(prop, "basicInformation", "brand", "name"),
        distance=f"{miles} mi" if miles is not None else None,
        distance_miles=miles,
        price=format_price(dig(amount, "amount"), dig(amount, "decimalPoint")),
        currency=dig(amount, "currency"),
        rating=_to_float(dig(prop, "reviews", "stars", "count")),
        reviews=_to_int(dig(prop, "reviews", "numberOfReviews", "count")),
        bookable=dig(rate, "status", "code") == BOOKABLE_STATUS,
        url=url,
        image=_image_url(prop, asset_base_url),
        platform=platform,
        warnings=warnings,
    )


def normalize_facets(raw_facets: Optional[Iterable[Any]], bucket_limit: int = 20) -> FacetCatalog:
    """Map facet type codes to their first ``bucket_limit`` buckets, in provider order."""
    catalog: FacetCatalog = {}
    for facet in raw_facets or []:
        code = dig(facet, "type", "code")
        if not code:
            continue
        buckets = [
            FacetBucket(code=bucket.get("code"), label=bucket.get("label"), count=_to_int(bucket.get("count")))
            for bucket in (dig(facet, "buckets") or [])
            if isinstance(bucket, dict)
        ]
        catalog[code] = buckets[:bucket_limit]
    return catalog


def extract_connection(data: Dict[str, Any]) -> Dict[str, Any]:
    """Pull the search connection out of a search response ``data`` object.

    Raises:
        ParseError: If the search container is missing or malformed
    """
    connection = dig(data, *SEARCH_CONTAINER)
    if not isinstance(connection, dict):
        raise ParseError("searchByGeolocation missing from search response")

    edges = connection.get("edges")
    if edges is None:
        edges = []
    if not isinstance(edges, list):
        raise ParseError("search edges are not a list")

    total = connection.get("total")
    if isinstance(total, bool) or not isinstance(total, int):
        raise ParseError("search total is missing")

    facets = connection.get("facets")
    return {
        "edges": edges,
        "total": total,
        "facets": facets if isinstance(facets, list) else [],
        "pageInfo": connection.get("pageInfo") or {},
    }


def normalize_search_result(
    connection: Dict[str, Any],
    query: HotelSearchQuery,
    page_size: int,
    base_url: str,
    asset_base_url: str,
    platform: Optional[str] = None,
    bucket_limit: int = 20,
) -> HotelSearchResult:
    hotels = [
        normalize_card(edge, base_url=base_url, asset_base_url=asset_base_url, platform=platform)
        for edge in connection.get("edges") or []
    ]
    total = connection.get("total") or 0
    return HotelSearchResult(
        hotels=hotels,
        total=total,
        facets=normalize_facets(connection.get("facets"), bucket_limit),
        pagination=to_page_info(total, page_size, query.page),
        search_params=query.to_wire(),
        dates=f"{query.start_date} to {query.end_date}",
        location={"latitude": query.latitude, "longitude": query.longitude},
    )
