"""Outbound headers identifying the calling application to the provider."""
import random
import uuid
from typing import Dict, Optional

from hotelscout.provider.queries import Operation

USER_AGENTS = [
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/142.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Macintosh; Intel Mac OS X 10_15_7) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/141.0.0.0 Safari/537.36",
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 (KHTML, like Gecko) Chrome/142.0.0.0 Safari/537.36",
]
ACCEPT_LANGUAGES = ["en-GB", "en-US,en;q=0.9", "en-US,en;q=0.9,en-GB;q=0.8"]

# Client family -> (apollo client name, application name, referer path)
CLIENT_PROFILES = {
    "homepage": ("phoenix_homepage", "homepage", "/default.mi"),
    "shop": ("phoenix_shop", "shop", "/en-gb/search/findHotels.mi"),
    "book": ("phoenix_book", "book", "/en-gb/reservation/rateListMenu.mi"),
}


def operation_headers(
    operation: Operation,
    origin: str,
    user_agent: Optional[str] = None,
    accept_language: str = "en-US,en;q=0.9",
) -> Dict[str, str]:
    """Headers for one GraphQL operation."""
    client_name, application, referer_path = CLIENT_PROFILES[operation.client]
    origin = origin.rstrip("/")
    headers = {
        "accept": "*/*",
        "accept-language": accept_language,
        "content-type": "application/json",
        "apollographql-client-name": client_name,
        "apollographql-client-version": "v1",
        "application-name": application,
        "graphql-operation-name": operation.name,
        "graphql-require-safelisting": "true",
        "origin": origin,
        "referer": f"{origin}{referer_path}",
        "sec-fetch-dest": "empty",
        "sec-fetch-mode": "cors",
        "sec-fetch-site": "same-origin",
        "user-agent": user_agent or USER_AGENTS[0],
    }
    if operation.signature:
        headers["graphql-operation-signature"] = operation.signature
    if operation.client == "book":
        headers["graphql-force-safelisting"] = "true"
        headers["x-request-id"] = str(uuid.uuid4())
    return headers


def browser_profile() -> Dict[str, str]:
    """Pick a user agent and language pair for one rates session."""
    return {
        "user_agent": random.choice(USER_AGENTS),
        "accept_language": random.choice(ACCEPT_LANGUAGES),
    }


def landing_page_headers(user_agent: str, accept_language: str) -> Dict[str, str]:
    return {
        "accept": "text/html,application/xhtml+xml,application/xml;q=0.9,image/avif,image/webp,*/*;q=0.8",
        "accept-language": accept_language,
        "user-agent": user_agent,
        "upgrade-insecure-requests": "1",
    }
