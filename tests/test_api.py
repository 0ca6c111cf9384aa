"""
Tests for the Hotel Scout HTTP API.
"""
import pytest
from fastapi.testclient import TestClient

from server import create_app

from payloads import search_args


@pytest.fixture
def client(service):
    with TestClient(create_app(service)) as test_client:
        yield test_client


def test_health_check(client):
    """Test the health check endpoint."""
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "healthy"


def test_list_tools(client):
    """Test that every tool is listed with its schema."""
    response = client.get("/api/tools")

    assert response.status_code == 200
    names = [tool["name"] for tool in response.json()["tools"]]
    assert names == ["search_places", "place_details", "search_hotels", "hotel_details", "hotel_rates"]


def test_call_tool(client):
    """Test calling a tool returns the envelope."""
    response = client.post("/api/tools/search_places", json={"arguments": {"query": "new york"}})

    assert response.status_code == 200
    data = response.json()
    assert data["success"] is True
    assert data["structuredContent"]["total"] == 1
    assert "shortText" in data


def test_unknown_tool(client):
    """Test that unknown tools return 404."""
    response = client.post("/api/tools/book_hotel", json={"arguments": {}})
    assert response.status_code == 404


def test_validation_failure_is_an_envelope(client):
    """Test that bad tool input is reported in the envelope, not as an HTTP error."""
    response = client.post("/api/tools/place_details", json={"arguments": {}})

    assert response.status_code == 200
    assert response.json()["success"] is False
    assert response.json()["error"] == "VALIDATION_ERROR"


def test_session_header_scopes_discovery(client):
    """Test that discovery state follows the X-Session-Id header."""
    client.post("/api/tools/search_hotels", json={"arguments": search_args()}, headers={"X-Session-Id": "a"})

    same = client.post(
        "/api/tools/search_hotels",
        json={"arguments": search_args(brands=["MC"])},
        headers={"X-Session-Id": "a"},
    ).json()
    other = client.post(
        "/api/tools/search_hotels",
        json={"arguments": search_args(brands=["MC"])},
        headers={"X-Session-Id": "b"},
    ).json()

    assert same["success"] is True
    assert other["success"] is False
    assert other["error"] == "DISCOVERY_REQUIRED"


def test_session_id_in_body(client):
    """Test that the body session id takes precedence over the header."""
    client.post("/api/tools/search_hotels", json={"arguments": search_args(), "session_id": "body"})

    response = client.post(
        "/api/tools/search_hotels",
        json={"arguments": search_args(amenities=["POOL"]), "session_id": "body"},
        headers={"X-Session-Id": "header"},
    ).json()

    assert response["success"] is True


def test_apps_manifest(client):
    """Test the app manifest served from the .well-known path."""
    response = client.get("/.well-known/apps.json")

    assert response.status_code == 200
    data = response.json()
    assert data["name"] == "hotel_scout"
    assert "search_hotels" in data["instructions"]
    assert len(data["tools"]) == 5
