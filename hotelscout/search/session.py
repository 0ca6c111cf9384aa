"""Per-conversation search state."""
import time
from collections import OrderedDict
from dataclasses import dataclass, field
from typing import Callable, Optional

from hotelscout.logging_config import get_logger

logger = get_logger(__name__)


@dataclass
class SearchLocationState:
    """Location of the most recent unfiltered (discovery) search."""
    last_discovery_key: Optional[str] = None


@dataclass
class SearchSession:
    session_id: str
    location: SearchLocationState = field(default_factory=SearchLocationState)
    last_seen: float = 0.0


class SessionStore:
    """Bounded map of session id to ``SearchSession``.

    Sessions idle for longer than ``ttl_seconds`` are dropped, and the least
    recently used session is evicted once ``max_entries`` is reached.
    """

    def __init__(
        self,
        ttl_seconds: float,
        max_entries: int,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.ttl_seconds = ttl_seconds
        self.max_entries = max_entries
        self._clock = clock
        self._sessions: "OrderedDict[str, SearchSession]" = OrderedDict()

    def __len__(self) -> int:
        return len(self._sessions)

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._sessions

    def get(self, session_id: str) -> SearchSession:
        """Return the session for ``session_id``, creating it if needed."""
        now = self._clock()
        self._expire(now)

        session = self._sessions.get(session_id)
        if session is None:
            session = SearchSession(session_id=session_id)
            self._sessions[session_id] = session
            while len(self._sessions) > self.max_entries:
                evicted, _ = self._sessions.popitem(last=False)
                logger.bind(session_id=evicted).debug("Evicted search session")
        else:
            self._sessions.move_to_end(session_id)

        session.last_seen = now
        return session

    def drop(self, session_id: str) -> None:
        self._sessions.pop(session_id, None)

    def _expire(self, now: float) -> None:
        # Ordered by last use, so expired sessions sit at the front
        while self._sessions:
            session_id, session = next(iter(self._sessions.items()))
            if now - session.last_seen <= self.ttl_seconds:
                break
            del self._sessions[session_id]
            logger.bind(session_id=session_id).debug("Expired search session")
