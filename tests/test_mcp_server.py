"""Tests for the MCP surface, driven through an in-memory fastmcp client."""
import pytest
from fastmcp import Client

from hotelscout.errors import TransportError
from hotelscout.mcp_server import create_server

from payloads import search_args

TOOL_NAMES = ["hotel_details", "hotel_rates", "place_details", "search_hotels", "search_places"]


@pytest.fixture
def server(service):
    return create_server(service)


def text_of(result) -> str:
    return result.content[0].text


async def test_tools_are_listed_read_only(server):
    async with Client(server) as client:
        tools = await client.list_tools()

    assert sorted(tool.name for tool in tools) == TOOL_NAMES
    assert all(tool.annotations.readOnlyHint for tool in tools)
    search = next(tool for tool in tools if tool.name == "search_hotels")
    assert {"latitude", "longitude", "startDate", "endDate"} <= set(search.inputSchema["required"])


async def test_discovery_then_filter_in_one_session(server, gateway):
    async with Client(server) as client:
        first = await client.call_tool("search_hotels", search_args())
        second = await client.call_tool("search_hotels", search_args(amenities=["POOL"]))

    assert first.structured_content["total"] == 1
    assert second.structured_content["hotels"]
    assert "Property ID" in text_of(second)
    assert len(gateway.calls_to("search_hotels")) == 2


async def test_rejection_is_structured_content(server, gateway):
    async with Client(server) as client:
        result = await client.call_tool("search_hotels", search_args(brands=["SI"]))

    assert result.is_error is False
    assert result.structured_content["reason"] == "DISCOVERY_REQUIRED"
    assert result.structured_content["error"] == "DISCOVERY_REQUIRED"
    assert result.structured_content["retryWith"]["latitude"] == 40.75
    assert gateway.calls == []


async def test_discovery_does_not_carry_across_sessions(server):
    async with Client(server) as client:
        await client.call_tool("search_hotels", search_args())

    async with Client(server) as other:
        result = await other.call_tool("search_hotels", search_args(brands=["MC"]))

    assert result.structured_content["reason"] == "DISCOVERY_REQUIRED"


async def test_omitted_optional_arguments_are_not_forwarded(server, gateway):
    async with Client(server) as client:
        await client.call_tool("search_hotels", search_args())

    _, query, offset, limit = gateway.calls_to("search_hotels")[0]
    assert query.child_ages == []
    assert query.brands == []
    assert query.has_filters is False
    assert (offset, limit) == (0, 5)


async def test_provider_failure_is_reported_in_structured_content(server, gateway):
    gateway.error = TransportError("boom", operation="phoenixShopSuggestedPlacesQuery", status_code=503)

    async with Client(server) as client:
        result = await client.call_tool("search_places", {"query": "paris"})

    assert result.is_error is False
    assert result.structured_content["error"] == "PROVIDER_ERROR"
    assert "try again" in text_of(result).lower()


async def test_hotel_rates_defaults(server, gateway):
    async with Client(server) as client:
        result = await client.call_tool(
            "hotel_rates",
            {"propertyId": "NYCMQ", "checkInDate": "2025-11-15", "checkOutDate": "2025-11-17"},
        )

    assert gateway.calls_to("get_property_rates")[0] == (
        "get_property_rates", "NYCMQ", "2025-11-15", "2025-11-17", 1, 1
    )
    assert result.structured_content["propertyId"] == "NYCMQ"
