"""Tool handlers for the hotel search operations."""
import functools
from typing import Any, Dict, List, Optional

from pydantic import ValidationError as PydanticValidationError

from hotelscout.errors import GatewayError, TransportError, ValidationError
from hotelscout.framework.tool_runtime import ToolContext, ToolDefinition, ToolHandler, ToolResult
from hotelscout.logging_config import get_logger
from hotelscout.schemas import (
    FILTER_LABELS,
    DiscoveryRejection,
    HotelDetail,
    HotelDetailsInput,
    HotelRates,
    HotelRatesInput,
    HotelSearchQuery,
    HotelSearchResult,
    PlaceDetail,
    PlaceDetailsInput,
    PlaceSearchResult,
    SearchPlacesInput,
)
from hotelscout.search.guard import DISCOVERY_REQUIRED
from hotelscout.search.normalizer import dig, format_price
from hotelscout.search.service import HotelSearchService

logger = get_logger(__name__)

VALIDATION_ERROR = "VALIDATION_ERROR"
PROVIDER_ERROR = "PROVIDER_ERROR"


# Text formatting

def format_places(result: PlaceSearchResult) -> str:
    if not result.places:
        return "No matching locations found. Try a different or more specific place name."
    lines = [f"Found {result.total} location(s). Call place_details with the placeId of the best match:"]
    for index, place in enumerate(result.places, start=1):
        lines.append(f'{index}. "{place.description or place.primary_description}" - placeId: {place.place_id}')
    return "\n".join(lines)


def format_place_detail(detail: PlaceDetail) -> str:
    if not detail.is_resolved:
        return (
            f'Unable to get coordinates for "{detail.description or detail.place_id}". '
            "Ask the user for a more specific location, such as a landmark or neighbourhood."
        )
    loc = detail.location
    return (
        f"Coordinates for {detail.description or detail.place_id}: {loc.latitude}, {loc.longitude}\n"
        "Next: call search_hotels with these coordinates, startDate and endDate, and no filters."
    )


def format_no_results(query: HotelSearchQuery) -> str:
    active = query.active_filters()
    if not active:
        return "No hotels found matching your criteria. Try adjusting your dates or searching a different location."
    lines = ["No hotels found matching your criteria.", "", "Active filters:"]
    for name, codes in active.items():
        lines.append(f"  - {FILTER_LABELS[name]}: {', '.join(codes)}")
    lines += [
        "",
        "Suggestions:",
        "  - Try removing some filters",
        "  - Adjust your dates",
        "  - Search a different location",
    ]
    return "\n".join(lines)


def format_search_result(result: HotelSearchResult, query: HotelSearchQuery) -> str:
    pagination = result.pagination
    start = (pagination.current_page - 1) * pagination.per_page + 1
    lines = ["SEARCH RESULTS REFERENCE (use these property IDs for details):", ""]
    for index, card in enumerate(result.hotels):
        lines.append(f'{start + index}. "{card.name}" - Property ID: {card.id}')
    if result.total > pagination.per_page:
        lines += [
            "",
            f"... showing {len(result.hotels)} of {result.total} total results "
            f"(page {pagination.current_page}/{pagination.total_pages})",
        ]
    if result.facets and not query.has_filters:
        lines += ["", "Available filter dimensions: " + ", ".join(result.facets.keys())]
    return "\n".join(lines)


def format_rejection(rejection: DiscoveryRejection) -> str:
    retry = rejection.retry_with
    return (
        f"{DISCOVERY_REQUIRED}: {rejection.message}\n"
        f"Retry search_hotels with latitude {retry['latitude']}, longitude {retry['longitude']}, "
        f"startDate {retry['startDate']}, endDate {retry['endDate']}, guests {retry['guests']} and no filters."
    )


def format_hotel_detail(detail: HotelDetail) -> str:
    info = detail.property_info or {}
    address = dig(info, "contactInformation", "address") or {}
    lines = [
        f"{dig(info, 'basicInformation', 'name') or 'Hotel'} (Property ID: {detail.property_id})",
        f"Brand: {dig(info, 'basicInformation', 'brand', 'name') or 'N/A'}",
        "Location: " + ", ".join(
            part for part in (
                address.get("line1"),
                address.get("city"),
                dig(address, "stateProvince", "code"),
                address.get("postalCode"),
            ) if part
        ),
    ]
    stars = dig(info, "reviews", "stars", "count")
    if stars is not None:
        reviews = dig(info, "reviews", "numberOfReviews", "count") or 0
        lines.append(f"Rating: {stars} stars ({reviews} reviews)")
    check_in = dig(info, "policies", "checkInTime")
    if check_in:
        lines.append(f"Check-in: {check_in}, check-out: {dig(info, 'policies', 'checkOutTime') or 'N/A'}")
    if detail.degraded:
        lines.append(f"Some sections could not be loaded: {', '.join(detail.degraded_sections)}")
    return "\n".join(lines)


def format_rates(rates: HotelRates) -> str:
    header = rates.header or {}
    lines = [
        f"{dig(header, 'basicInformation', 'name') or 'Hotel'} - room rates "
        f"for {rates.check_in_date} to {rates.check_out_date}",
    ]
    edges = dig(rates.rooms, "edges") or []
    if not edges:
        lines.append("No rooms available for the selected dates.")
    for index, edge in enumerate(edges[:10], start=1):
        room = dig(edge, "node") or {}
        name = dig(room, "basicInformation", "name") or "Room"
        origin = dig(room, "rates", "rateAmountsByMode", "averageNightlyRatePerUnit", "amount", "origin") or {}
        nightly = format_price(origin.get("amount"), origin.get("valueDecimalPoint"))
        rate_name = dig(room, "rates", "localizedName", "translatedText")
        line = f"{index}. {name}"
        if nightly is not None:
            line += f" - {origin.get('currency') or 'USD'} {nightly}/night"
        if rate_name:
            line += f" ({rate_name})"
        lines.append(line)
    if rates.degraded:
        lines.append(
            "NOTE: live data was unavailable for "
            f"{', '.join(rates.degraded_sections)}; those sections are placeholders, not real rates."
        )
    return "\n".join(lines)


# Envelopes

def _failure(error: str, short_text: str, metadata: Optional[Dict[str, Any]] = None) -> ToolResult:
    return ToolResult(success=False, short_text=short_text, error=error, metadata=metadata or {})


def _gateway_failure_text(error: GatewayError) -> str:
    if isinstance(error, TransportError):
        if error.status_code == 429:
            return "The hotel provider is temporarily rate limiting requests. Please wait a moment and try again."
        if error.status_code == 403:
            return "The hotel provider blocked this request. Please try again later."
        if error.timed_out:
            return "The hotel provider did not respond in time. Please try again or adjust your search."
    return "Unable to get results from the hotel provider. Please try again or adjust your search."


def tool_handler(func):
    """Convert validation and provider failures raised by ``func`` into failed envelopes."""

    @functools.wraps(func)
    async def handler(payload: Dict[str, Any], context: ToolContext) -> ToolResult:
        log = logger.bind(
            correlation_id=context.get("correlation_id"),
            session_id=context.get("session_id"),
            tool_name=context.get("tool_name"),
        )
        try:
            return await func(payload or {}, context)
        except PydanticValidationError as e:
            fields = [".".join(str(p) for p in err["loc"]) for err in e.errors()]
            log.bind(fields=fields).info("Rejected invalid tool input")
            return _failure(
                VALIDATION_ERROR,
                f"Invalid input: check {', '.join(fields) or 'the arguments'} and try again.",
                {"error_type": "ValidationError", "fields": fields, "retryable": False},
            )
        except ValidationError as e:
            log.bind(field=e.field).info("Rejected invalid tool input")
            return _failure(
                VALIDATION_ERROR,
                f"Invalid input: {e}.",
                {"error_type": "ValidationError", "fields": [e.field] if e.field else [], "retryable": False},
            )
        except GatewayError as e:
            log.bind(error=e.to_dict()).warning("Provider call failed")
            return _failure(
                PROVIDER_ERROR,
                _gateway_failure_text(e),
                {"error_type": type(e).__name__, "retryable": e.retryable, "operation": e.operation},
            )

    return handler


def build_tools(service: HotelSearchService) -> List[ToolDefinition]:
    """Create the tool definitions backed by ``service``."""

    @tool_handler
    async def search_places(payload: Dict[str, Any], context: ToolContext) -> ToolResult:
        args = SearchPlacesInput.model_validate(payload)
        result = await service.search_places(args.query)
        return ToolResult(success=True, short_text=format_places(result), structured_content=result.to_wire())

    @tool_handler
    async def place_details(payload: Dict[str, Any], context: ToolContext) -> ToolResult:
        args = PlaceDetailsInput.model_validate(payload)
        detail = await service.get_place_details(args.place_id)
        return ToolResult(
            success=True,
            short_text=format_place_detail(detail),
            structured_content=detail.to_wire(),
            metadata={"unresolved": not detail.is_resolved},
        )

    @tool_handler
    async def search_hotels(payload: Dict[str, Any], context: ToolContext) -> ToolResult:
        query = HotelSearchQuery.model_validate(payload)
        outcome = await service.search_hotels(query, session_id=context.get("session_id"))

        if isinstance(outcome, DiscoveryRejection):
            return ToolResult(
                success=False,
                short_text=format_rejection(outcome),
                structured_content=outcome.to_wire(),
                error=DISCOVERY_REQUIRED,
                metadata={"reason": DISCOVERY_REQUIRED, "retryable": True},
            )

        if not outcome.hotels:
            return ToolResult(
                success=True,
                short_text=format_no_results(query),
                structured_content=outcome.to_wire(),
                metadata={"empty": True, "filtered": query.has_filters},
            )

        return ToolResult(
            success=True,
            short_text=format_search_result(outcome, query),
            structured_content=outcome.to_wire(),
            metadata={"empty": False, "filtered": query.has_filters},
        )

    @tool_handler
    async def hotel_details(payload: Dict[str, Any], context: ToolContext) -> ToolResult:
        args = HotelDetailsInput.model_validate(payload)
        detail = await service.get_hotel_details(args.property_id)
        return ToolResult(
            success=True,
            short_text=format_hotel_detail(detail),
            structured_content=detail.to_wire(),
            metadata={"degraded": detail.degraded},
        )

    @tool_handler
    async def hotel_rates(payload: Dict[str, Any], context: ToolContext) -> ToolResult:
        args = HotelRatesInput.model_validate(payload)
        rates = await service.get_hotel_rates(args)
        return ToolResult(
            success=True,
            short_text=format_rates(rates),
            structured_content=rates.to_wire(),
            metadata={"degraded": rates.degraded},
        )

    return [
        _definition(
            "search_places",
            "Search Locations",
            "Find places matching a city or destination name. Returns placeIds for place_details.",
            SearchPlacesInput,
            search_places,
        ),
        _definition(
            "place_details",
            "Get Coordinates for Location",
            "Resolve a placeId from search_places to latitude and longitude for search_hotels.",
            PlaceDetailsInput,
            place_details,
        ),
        _definition(
            "search_hotels",
            "Search Hotels",
            f"Search hotels near coordinates for a date range, {service.settings.SEARCH_PAGE_SIZE} results "
            "per page. The first search at a location must use no filters; its facets list the filter "
            "codes usable afterwards.",
            HotelSearchQuery,
            search_hotels,
        ),
        _definition(
            "hotel_details",
            "Hotel Details",
            "Get address, policies, amenities and photos for a Property ID from search_hotels.",
            HotelDetailsInput,
            hotel_details,
        ),
        _definition(
            "hotel_rates",
            "Hotel Room Rates",
            "Get available rooms and rates for a Property ID and check-in/check-out dates.",
            HotelRatesInput,
            hotel_rates,
        ),
    ]


def _definition(name: str, title: str, description: str, model, handler: ToolHandler) -> ToolDefinition:
    return ToolDefinition(
        name=name,
        title=title,
        description=description,
        input_schema=model.model_json_schema(by_alias=True),
        handler=handler,
    )
