"""
MCP server exposing the hotel search tools.

Each MCP tool forwards to a ``ToolRuntime`` built from the same tool
definitions as the HTTP API; the MCP session id is used as the
discovery-guard session.

Run with ``python -m hotelscout.mcp_server`` (stdio) or set
``MCP_TRANSPORT=http`` to serve over streamable HTTP.
"""
import uuid
from contextlib import asynccontextmanager
from typing import Any, Dict, List, Optional

from fastmcp import Context, FastMCP
from fastmcp.tools.tool import ToolResult as MCPToolResult

from hotelscout.config import get_settings
from hotelscout.framework.tool_runtime import ToolResult, ToolRuntime
from hotelscout.instructions import AGENT_INSTRUCTIONS
from hotelscout.logging_config import get_logger, setup_logging
from hotelscout.provider.gateway import InventoryGateway
from hotelscout.search.service import HotelSearchService
from hotelscout.tools.hotel_tools import build_tools

logger = get_logger(__name__)

READ_ONLY = {"readOnlyHint": True}


def session_id_of(ctx: Optional[Context]) -> Optional[str]:
    if ctx is None:
        return None
    try:
        return ctx.session_id
    except RuntimeError:
        return None


def to_mcp_result(result: ToolResult) -> MCPToolResult:
    """Short text as content, the payload (plus ``error`` on failure) as structured content."""
    structured = dict(result.structured_content or {})
    if not result.success:
        structured.setdefault("error", result.error)
    return MCPToolResult(content=result.short_text, structured_content=structured or None)


def create_server(service: Optional[HotelSearchService] = None) -> FastMCP:
    """Create the MCP server.

    Args:
        service: Search service to expose. When omitted, one backed by a live
            inventory gateway is created per server run and closed afterwards.
    """
    runtimes: List[ToolRuntime] = []

    @asynccontextmanager
    async def lifespan(server: FastMCP):
        gateway = None
        active = service
        if active is None:
            settings = get_settings()
            gateway = InventoryGateway(settings)
            active = HotelSearchService(gateway, settings)
        runtime = ToolRuntime()
        runtime.register_tools(build_tools(active))
        runtimes.append(runtime)
        logger.bind(tools=runtime.list_tools()).info("MCP tool server started")
        try:
            yield {}
        finally:
            runtimes.remove(runtime)
            if gateway is not None:
                await gateway.aclose()

    mcp = FastMCP("hotel-scout", instructions=AGENT_INSTRUCTIONS, lifespan=lifespan)

    async def call(name: str, arguments: Dict[str, Any], ctx: Optional[Context]) -> MCPToolResult:
        if not runtimes:
            raise RuntimeError("Tool runtime is not initialised")
        payload = {key: value for key, value in arguments.items() if value is not None}
        result = await runtimes[-1].call_tool(
            name,
            payload,
            correlation_id=str(uuid.uuid4()),
            session_id=session_id_of(ctx),
        )
        return to_mcp_result(result)

    @mcp.tool(
        name="search_places",
        description="Find places matching a city or destination name. Returns placeIds for place_details.",
        annotations=READ_ONLY,
    )
    async def search_places(query: str, ctx: Context = None) -> MCPToolResult:
        return await call("search_places", {"query": query}, ctx)

    @mcp.tool(
        name="place_details",
        description="Resolve a placeId from search_places to latitude and longitude for search_hotels.",
        annotations=READ_ONLY,
    )
    async def place_details(placeId: str, ctx: Context = None) -> MCPToolResult:
        return await call("place_details", {"placeId": placeId}, ctx)

    @mcp.tool(
        name="search_hotels",
        description=(
            "Search hotels near coordinates for a date range. The first search at a location must use "
            "no filters; its facets list the filter codes usable in later searches at that location."
        ),
        annotations=READ_ONLY,
    )
    async def search_hotels(
        latitude: float,
        longitude: float,
        startDate: str,
        endDate: str,
        guests: int = 1,
        rooms: int = 1,
        childAges: Optional[List[int]] = None,
        page: int = 1,
        brands: Optional[List[str]] = None,
        amenities: Optional[List[str]] = None,
        activities: Optional[List[str]] = None,
        transportationTypes: Optional[List[str]] = None,
        propertyTypes: Optional[List[str]] = None,
        cities: Optional[List[str]] = None,
        states: Optional[List[str]] = None,
        countries: Optional[List[str]] = None,
        meetingsAndEvents: Optional[List[str]] = None,
        hotelServiceTypes: Optional[List[str]] = None,
        leisureRegion: Optional[List[str]] = None,
        allInclusive: Optional[List[str]] = None,
        ctx: Context = None,
    ) -> MCPToolResult:
        return await call(
            "search_hotels",
            {
                "latitude": latitude,
                "longitude": longitude,
                "startDate": startDate,
                "endDate": endDate,
                "guests": guests,
                "rooms": rooms,
                "childAges": childAges,
                "page": page,
                "brands": brands,
                "amenities": amenities,
                "activities": activities,
                "transportationTypes": transportationTypes,
                "propertyTypes": propertyTypes,
                "cities": cities,
                "states": states,
                "countries": countries,
                "meetingsAndEvents": meetingsAndEvents,
                "hotelServiceTypes": hotelServiceTypes,
                "leisureRegion": leisureRegion,
                "allInclusive": allInclusive,
            },
            ctx,
        )

    @mcp.tool(
        name="hotel_details",
        description="Get address, policies, amenities and photos for a Property ID from search_hotels.",
        annotations=READ_ONLY,
    )
    async def hotel_details(propertyId: str, ctx: Context = None) -> MCPToolResult:
        return await call("hotel_details", {"propertyId": propertyId}, ctx)

    @mcp.tool(
        name="hotel_rates",
        description="Get available rooms and rates for a Property ID and check-in/check-out dates.",
        annotations=READ_ONLY,
    )
    async def hotel_rates(
        propertyId: str,
        checkInDate: str,
        checkOutDate: str,
        rooms: int = 1,
        guests: int = 1,
        ctx: Context = None,
    ) -> MCPToolResult:
        return await call(
            "hotel_rates",
            {
                "propertyId": propertyId,
                "checkInDate": checkInDate,
                "checkOutDate": checkOutDate,
                "rooms": rooms,
                "guests": guests,
            },
            ctx,
        )

    return mcp


mcp = create_server()


def main() -> None:
    setup_logging()
    settings = get_settings()
    if settings.MCP_TRANSPORT == "stdio":
        mcp.run()
    else:
        mcp.run(transport=settings.MCP_TRANSPORT, host=settings.HOST, port=settings.PORT)


if __name__ == "__main__":
    main()
