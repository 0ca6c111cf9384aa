"""
Inventory gateway.

Async client for the hotel inventory provider's GraphQL endpoints. Every
failure is raised as one of ``TransportError``, ``UpstreamError`` or
``ParseError``; the rates lookup degrades failed sections to canned data
instead of raising.
"""
import asyncio
import json
import random
from http.cookiejar import CookieJar, DefaultCookiePolicy
from typing import Any, Awaitable, Callable, Dict, List, Optional

import httpx

from hotelscout.config import Settings, get_settings
from hotelscout.errors import GatewayError, ParseError, TransportError, UpstreamError
from hotelscout.logging_config import get_logger
from hotelscout.provider import fallback, queries
from hotelscout.provider.headers import (
    CLIENT_PROFILES,
    browser_profile,
    landing_page_headers,
    operation_headers,
)
from hotelscout.schemas import (
    HotelDetail,
    HotelRates,
    HotelSearchQuery,
    Place,
    PlaceDetail,
    PlaceSearchResult,
)
from hotelscout.search.normalizer import dig, extract_connection

logger = get_logger(__name__)

# Retry-After values above this are treated as a block rather than a backoff
MAX_RETRY_AFTER = 3600


def parse_retry_after(value: Optional[str]) -> Optional[float]:
    """First numeric value of a Retry-After header such as ``"28800, 28800"``."""
    if not value:
        return None
    for part in value.split(","):
        try:
            return float(int(part.strip()))
        except ValueError:
            continue
    return None


def absorb_cookies(jar: httpx.Cookies, response: httpx.Response) -> None:
    """Merge ``Set-Cookie`` values from ``response`` and its redirects into ``jar``.

    Cookies are keyed by name only, so the latest value always wins.
    """
    for hop in (*response.history, response):
        received = httpx.Cookies()
        received.extract_cookies(hop)
        for cookie in received.jar:
            jar.set(cookie.name, cookie.value)


def cookie_header(jar: httpx.Cookies) -> str:
    return "; ".join(f"{cookie.name}={cookie.value}" for cookie in jar.jar)


def refusing_cookie_jar() -> CookieJar:
    """Jar that stores nothing; cookies are only kept per rates lookup."""
    return CookieJar(policy=DefaultCookiePolicy(allowed_domains=[]))


def is_challenge(body: str) -> bool:
    try:
        data = json.loads(body)
    except ValueError:
        return False
    if not isinstance(data, dict):
        return False
    return data.get("cpr_chlge") in (True, "true")


class InventoryGateway:
    """Client for the hotel inventory provider."""

    def __init__(
        self,
        settings: Optional[Settings] = None,
        client: Optional[httpx.AsyncClient] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.settings = settings or get_settings()
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(
            timeout=self.settings.REQUEST_TIMEOUT,
            follow_redirects=True,
        )
        self._client.cookies = refusing_cookie_jar()
        self._sleep = sleep

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    # Low-level request handling

    def _url(self, operation: queries.Operation) -> str:
        return f"{self.settings.provider_api_url}/{operation.name}"

    async def _execute(
        self,
        operation: queries.Operation,
        variables: Dict[str, Any],
        jar: Optional[httpx.Cookies] = None,
        profile: Optional[Dict[str, str]] = None,
    ) -> Dict[str, Any]:
        """Send one GraphQL operation and return its ``data`` object.

        ``jar`` is the caller's own cookie state: it is sent as the ``cookie``
        header and updated from the response, error responses included.
        """
        headers = operation_headers(operation, self.settings.PROVIDER_BASE_URL, **(profile or {}))
        if jar:
            headers["cookie"] = cookie_header(jar)

        log = logger.bind(operation=operation.name)
        try:
            response = await self._client.post(
                self._url(operation),
                json=operation.body(variables),
                headers=headers,
                timeout=self.settings.REQUEST_TIMEOUT,
            )
        except httpx.TimeoutException as e:
            log.warning("Provider request timed out")
            raise TransportError(
                f"{operation.name} timed out after {self.settings.REQUEST_TIMEOUT}s",
                operation=operation.name,
                timed_out=True,
            ) from e
        except httpx.RequestError as e:
            log.warning(f"Provider request failed: {type(e).__name__}")
            raise TransportError(
                f"{operation.name} request failed: {e}",
                operation=operation.name,
            ) from e

        if jar is not None:
            absorb_cookies(jar, response)

        if not response.is_success:
            challenge = is_challenge(response.text)
            log.bind(status_code=response.status_code, challenge=challenge).warning(
                "Provider returned an error status"
            )
            raise TransportError(
                f"{operation.name} returned HTTP {response.status_code}",
                operation=operation.name,
                status_code=response.status_code,
                retry_after=parse_retry_after(response.headers.get("retry-after")),
                challenge=challenge,
            )

        try:
            payload = response.json()
        except ValueError as e:
            raise ParseError(f"{operation.name} returned a non-JSON body", operation=operation.name) from e

        if not isinstance(payload, dict):
            raise ParseError(f"{operation.name} returned an unexpected payload", operation=operation.name)

        errors = payload.get("errors")
        if errors:
            log.bind(errors=errors).warning("Provider reported errors")
            raise UpstreamError(
                f"{operation.name} reported {len(errors)} error(s)",
                operation=operation.name,
                errors=list(errors),
            )

        data = payload.get("data")
        if not isinstance(data, dict):
            raise ParseError(f"{operation.name} response has no data object", operation=operation.name)
        return data

    async def _execute_with_retry(
        self,
        operation: queries.Operation,
        variables: Dict[str, Any],
        jar: httpx.Cookies,
        profile: Dict[str, str],
    ) -> Dict[str, Any]:
        """Run an operation, backing off on 429 and refreshing cookies on 403."""
        max_retries = self.settings.RATES_MAX_RETRIES
        for attempt in range(max_retries):
            try:
                return await self._execute(operation, variables, jar=jar, profile=profile)
            except TransportError as e:
                if attempt == max_retries - 1:
                    raise
                if e.status_code == 429:
                    if e.challenge or (e.retry_after is not None and e.retry_after > MAX_RETRY_AFTER):
                        logger.bind(operation=operation.name).error(
                            "Rate limit too severe, not retrying"
                        )
                        raise
                    delay = e.retry_after if e.retry_after else 2 ** attempt
                    delay = min(delay, self.settings.RATES_MAX_RETRY_WAIT)
                elif e.status_code == 403 and len(jar):
                    delay = 1 + random.random()
                else:
                    raise
                logger.bind(operation=operation.name, attempt=attempt + 1, delay=delay).warning(
                    f"Retrying after HTTP {e.status_code}"
                )
                await self._sleep(delay)
        raise AssertionError("unreachable")

    # Places

    async def search_places(self, query: str) -> PlaceSearchResult:
        data = await self._execute(queries.SUGGESTED_PLACES, {"query": query})
        container = data.get("suggestedPlaces")
        if not isinstance(container, dict):
            raise ParseError("suggestedPlaces missing from response", operation=queries.SUGGESTED_PLACES.name)

        places = []
        for edge in container.get("edges") or []:
            node = dig(edge, "node")
            if isinstance(node, dict) and node.get("placeId"):
                places.append(Place.model_validate(node))
        total = container.get("total")
        return PlaceSearchResult(places=places, total=total if isinstance(total, int) else len(places))

    async def get_place_details(self, place_id: str) -> PlaceDetail:
        data = await self._execute(queries.SUGGESTED_PLACE_DETAILS, {"placeId": place_id})
        details = data.get("suggestedPlaceDetails")
        if not isinstance(details, dict):
            raise ParseError(
                "suggestedPlaceDetails missing from response",
                operation=queries.SUGGESTED_PLACE_DETAILS.name,
            )
        details = dict(details)
        details.setdefault("placeId", place_id)
        details["location"] = details.get("location") or {}
        details["types"] = details.get("types") or []
        return PlaceDetail.model_validate(details)

    # Hotels

    async def search_hotels(self, query: HotelSearchQuery, offset: int, limit: int) -> Dict[str, Any]:
        """Run a dated geolocation search and return the raw result connection."""
        variables = queries.search_by_geolocation_variables(query, offset, limit)
        data = await self._execute(queries.SEARCH_BY_GEOLOCATION, variables)
        return extract_connection(data)

    async def get_property_details(self, property_id: str) -> HotelDetail:
        """Fetch property info, photo gallery and amenities concurrently.

        Property info is required; a failure there is raised. The gallery and
        amenities sections are dropped on failure and the detail is flagged
        as degraded.
        """
        info, gallery, amenities = await asyncio.gather(
            self._execute(
                queries.PROPERTY_INFO,
                {"propertyId": property_id, "filter": "PHONE", "descriptionsFilter": ["LOCATION"]},
            ),
            self._execute(queries.PHOTO_GALLERY, {"propertyId": property_id}),
            self._execute(queries.HOTEL_AMENITIES, {"propertyId": property_id}),
            return_exceptions=True,
        )
        if isinstance(info, BaseException):
            raise info

        degraded: List[str] = []
        sections: Dict[str, Optional[Dict[str, Any]]] = {}
        for name, result, path in (
            ("photo_gallery", gallery, ("property", "media", "photoGallery")),
            ("amenities", amenities, ("property",)),
        ):
            if isinstance(result, GatewayError):
                logger.bind(operation=result.operation).warning(f"Dropping {name} section: {result}")
                degraded.append(name)
                sections[name] = None
            elif isinstance(result, BaseException):
                raise result
            else:
                sections[name] = dig(result, *path)

        property_info = info.get("property")
        if not isinstance(property_info, dict):
            raise ParseError(f"Property {property_id} not found", operation=queries.PROPERTY_INFO.name)

        return HotelDetail(
            property_id=property_id,
            property_info=property_info,
            photo_gallery=sections["photo_gallery"],
            amenities=sections["amenities"],
            degraded=bool(degraded),
            degraded_sections=degraded,
        )

    def landing_page_url(self) -> str:
        """The rate list page that booking queries name as their referer."""
        return self.settings.PROVIDER_BASE_URL.rstrip("/") + CLIENT_PROFILES["book"][2]

    async def _warm_up(self, jar: httpx.Cookies, profile: Dict[str, str]) -> None:
        """Visit the rate list page once to collect session cookies."""
        url = self.landing_page_url()
        try:
            response = await self._client.get(
                url,
                headers=landing_page_headers(**profile),
                timeout=self.settings.REQUEST_TIMEOUT,
            )
        except httpx.HTTPError as e:
            logger.warning(f"Could not fetch landing page cookies: {type(e).__name__}")
            return
        absorb_cookies(jar, response)
        logger.bind(cookies=len(jar)).debug("Landing page visited")

    async def _pause(self) -> None:
        delay = self.settings.RATES_REQUEST_DELAY
        if delay > 0:
            await self._sleep(delay + random.random() * delay)

    async def get_property_rates(
        self,
        property_id: str,
        check_in: str,
        check_out: str,
        rooms: int = 1,
        guests: int = 1,
    ) -> HotelRates:
        """Fetch room availability and rates.

        The four sub-queries run one after another over a cookie jar that
        lives only for this lookup.
        Any section that still fails after retries is replaced by canned data
        and listed in ``degraded_sections``.
        """
        jar = httpx.Cookies()
        profile = browser_profile()
        await self._warm_up(jar, profile)

        steps = (
            ("property", queries.BOOK_PROPERTY, {"propertyId": property_id}, ("property",)),
            (
                "rooms",
                queries.SEARCH_PRODUCTS_BY_PROPERTY,
                queries.search_products_variables(property_id, check_in, check_out, rooms, guests),
                ("searchProductsByProperty",),
            ),
            ("images", queries.ROOM_IMAGES, {"propertyId": property_id}, ("property", "media", "photoGallery")),
            ("header", queries.HOTEL_HEADER, {"propertyId": property_id}, ("property",)),
        )

        sections: Dict[str, Dict[str, Any]] = {}
        degraded: List[str] = []
        for index, (name, operation, variables, path) in enumerate(steps):
            if index:
                await self._pause()
            try:
                data = await self._execute_with_retry(operation, variables, jar, profile)
                section = dig(data, *path)
                if not isinstance(section, dict):
                    raise ParseError(f"{name} section missing from response", operation=operation.name)
            except GatewayError as e:
                logger.bind(operation=operation.name, error=e.to_dict()).warning(
                    f"Using fallback data for {name} section"
                )
                section = fallback.section(name, property_id)
                degraded.append(name)
            sections[name] = section

        return HotelRates(
            property_id=property_id,
            check_in_date=check_in,
            check_out_date=check_out,
            degraded=bool(degraded),
            degraded_sections=degraded,
            **sections,
        )
