"""
Facet discovery guard.

Filter codes (brands, amenities, ...) are only known from the facets of an
unfiltered search at the same location. The guard rejects a filtered search
unless the session's last unfiltered search was at the same location key.
"""
from dataclasses import dataclass
from typing import Optional

from hotelscout.search.session import SearchLocationState

DISCOVERY_REQUIRED = "DISCOVERY_REQUIRED"


def _format_coordinate(value: float, precision: Optional[int]) -> str:
    value = float(value)
    if precision is not None:
        value = round(value, precision)
    if value.is_integer():
        return str(int(value))
    return repr(value)


def location_key(latitude: float, longitude: float, precision: Optional[int] = None) -> str:
    """Build the ``"<lat>,<lng>"`` key used to match searches to a location.

    Without ``precision`` the coordinates must match exactly: ``40.75`` and
    ``40.750`` give the same key, ``40.75`` and ``40.7500001`` do not.
    """
    return f"{_format_coordinate(latitude, precision)},{_format_coordinate(longitude, precision)}"


@dataclass(frozen=True)
class GuardDecision:
    allowed: bool
    location_key: str
    reason: Optional[str] = None


class FacetDiscoveryGuard:
    def __init__(self, precision: Optional[int] = None):
        self.precision = precision

    def key_for(self, latitude: float, longitude: float) -> str:
        return location_key(latitude, longitude, self.precision)

    def check(self, state: SearchLocationState, key: str, has_filters: bool) -> GuardDecision:
        """Decide whether a search may run. Never changes ``state``."""
        if has_filters and state.last_discovery_key != key:
            return GuardDecision(allowed=False, location_key=key, reason=DISCOVERY_REQUIRED)
        return GuardDecision(allowed=True, location_key=key)

    def record(self, state: SearchLocationState, key: str, has_filters: bool) -> None:
        """Remember ``key`` once an unfiltered search there has succeeded."""
        if not has_filters:
            state.last_discovery_key = key
