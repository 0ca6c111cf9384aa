"""Tests for the facet discovery guard and session store."""
from hotelscout.search.guard import DISCOVERY_REQUIRED, FacetDiscoveryGuard, location_key
from hotelscout.search.session import SearchLocationState, SessionStore


class TestLocationKey:
    def test_matches_plain_coordinate_rendering(self):
        assert location_key(40.75, -73.98) == "40.75,-73.98"

    def test_integral_coordinates_have_no_trailing_zero(self):
        assert location_key(40.0, -74.0) == "40,-74"
        assert location_key(40, -74) == location_key(40.0, -74.0)

    def test_exact_policy_distinguishes_extra_precision(self):
        assert location_key(40.75, -73.98) != location_key(40.7500001, -73.98)

    def test_precision_rounds_before_comparing(self):
        assert location_key(40.7500001, -73.98, precision=4) == location_key(40.75, -73.98, precision=4)
        assert location_key(40.751, -73.98, precision=2) == "40.75,-73.98"


class TestFacetDiscoveryGuard:
    def setup_method(self):
        self.guard = FacetDiscoveryGuard()
        self.state = SearchLocationState()

    def discover(self, key):
        assert self.guard.check(self.state, key, has_filters=False).allowed
        self.guard.record(self.state, key, has_filters=False)

    def test_unfiltered_search_is_always_allowed(self):
        decision = self.guard.check(self.state, "40.75,-73.98", has_filters=False)

        assert decision.allowed
        assert decision.location_key == "40.75,-73.98"

    def test_check_never_records(self):
        self.guard.check(self.state, "40.75,-73.98", has_filters=False)

        assert self.state.last_discovery_key is None

    def test_record_remembers_unfiltered_location(self):
        self.discover("40.75,-73.98")

        assert self.state.last_discovery_key == "40.75,-73.98"

    def test_filtered_search_without_discovery_is_rejected(self):
        decision = self.guard.check(self.state, "12.97,77.59", has_filters=True)

        assert not decision.allowed
        assert decision.reason == DISCOVERY_REQUIRED
        assert self.state.last_discovery_key is None

    def test_filtered_search_after_discovery_is_allowed(self):
        self.discover("40.75,-73.98")
        decision = self.guard.check(self.state, "40.75,-73.98", has_filters=True)

        assert decision.allowed
        assert self.state.last_discovery_key == "40.75,-73.98"

    def test_recording_a_filtered_search_changes_nothing(self):
        self.discover("40.75,-73.98")
        self.guard.record(self.state, "12.97,77.59", has_filters=True)

        assert self.state.last_discovery_key == "40.75,-73.98"

    def test_filtered_search_at_other_location_is_rejected(self):
        self.discover("40.75,-73.98")
        decision = self.guard.check(self.state, "12.97,77.59", has_filters=True)

        assert not decision.allowed
        assert self.state.last_discovery_key == "40.75,-73.98"

    def test_new_discovery_overwrites_previous_location(self):
        self.discover("40.75,-73.98")
        self.discover("12.97,77.59")

        assert not self.guard.check(self.state, "40.75,-73.98", has_filters=True).allowed
        assert self.guard.check(self.state, "12.97,77.59", has_filters=True).allowed

    def test_repeated_discovery_is_idempotent(self):
        self.discover("40.75,-73.98")
        self.discover("40.75,-73.98")

        assert self.state.last_discovery_key == "40.75,-73.98"

    def test_key_for_uses_configured_precision(self):
        guard = FacetDiscoveryGuard(precision=3)
        assert guard.key_for(40.75001, -73.98) == "40.75,-73.98"


class FakeClock:
    def __init__(self):
        self.now = 1000.0

    def __call__(self):
        return self.now


class TestSessionStore:
    def test_sessions_are_isolated(self):
        store = SessionStore(ttl_seconds=60, max_entries=10)
        store.get("a").location.last_discovery_key = "40.75,-73.98"

        assert store.get("b").location.last_discovery_key is None
        assert store.get("a").location.last_discovery_key == "40.75,-73.98"

    def test_idle_sessions_expire(self):
        clock = FakeClock()
        store = SessionStore(ttl_seconds=60, max_entries=10, clock=clock)
        store.get("a").location.last_discovery_key = "1,2"

        clock.now += 61
        assert store.get("a").location.last_discovery_key is None

    def test_active_sessions_do_not_expire(self):
        clock = FakeClock()
        store = SessionStore(ttl_seconds=60, max_entries=10, clock=clock)
        store.get("a").location.last_discovery_key = "1,2"

        clock.now += 50
        store.get("a")
        clock.now += 50
        assert store.get("a").location.last_discovery_key == "1,2"

    def test_least_recently_used_session_is_evicted(self):
        store = SessionStore(ttl_seconds=60, max_entries=2)
        store.get("a")
        store.get("b")
        store.get("a")
        store.get("c")

        assert "a" in store
        assert "b" not in store
        assert "c" in store
        assert len(store) == 2

    def test_drop(self):
        store = SessionStore(ttl_seconds=60, max_entries=2)
        store.get("a")
        store.drop("a")
        store.drop("missing")

        assert "a" not in store
