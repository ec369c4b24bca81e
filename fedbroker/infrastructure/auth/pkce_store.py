"""In-memory PKCE session store."""

import logging
import threading
import time
from collections.abc import Callable

from fedbroker.domain.auth.model.pkce import PKCESession
from fedbroker.domain.auth.port.pkce_store import PKCESessionStore

logger = logging.getLogger(__name__)

DEFAULT_TTL_SECONDS = 600.0
MAX_SWEEP_INTERVAL_SECONDS = 60.0


class InMemoryPKCESessionStore(PKCESessionStore):
    """Process-local PKCE store keyed by OAuth state.

    Every mutation happens under a single lock with no awaits inside, so
    `consume` is an atomic pop even with many concurrent logins. Expired
    sessions are never returned; they are removed when touched and by a
    periodic sweep that runs at most once per sweep interval.
    """

    def __init__(
        self,
        ttl_seconds: float = DEFAULT_TTL_SECONDS,
        clock: Callable[[], float] = time.monotonic,
    ) -> None:
        if ttl_seconds <= 0:
            raise ValueError("ttl_seconds must be positive")
        self._ttl = ttl_seconds
        self._clock = clock
        self._sweep_interval = min(ttl_seconds, MAX_SWEEP_INTERVAL_SECONDS)
        self._sessions: dict[str, PKCESession] = {}
        self._lock = threading.Lock()
        self._next_sweep = clock() + self._sweep_interval

    @property
    def ttl_seconds(self) -> float:
        return self._ttl

    async def create(self) -> PKCESession:
        with self._lock:
            now = self._clock()
            self._sweep_if_due(now)
            session = PKCESession.new(created_at=now, ttl=self._ttl)
            # 256-bit states do not collide in practice; regenerate rather than overwrite
            while session.state in self._sessions:
                session = PKCESession.new(created_at=now, ttl=self._ttl)
            self._sessions[session.state] = session
        return session

    async def consume(self, state: str) -> str | None:
        with self._lock:
            now = self._clock()
            self._sweep_if_due(now)
            session = self._sessions.pop(state, None)
        if session is None:
            return None
        if session.is_expired(now):
            logger.debug("PKCE session expired before consumption")
            return None
        return session.code_verifier

    def purge_expired(self) -> int:
        """Evict every expired session now. Returns the number evicted."""
        with self._lock:
            return self._evict_expired(self._clock())

    def __len__(self) -> int:
        with self._lock:
            return len(self._sessions)

    def _sweep_if_due(self, now: float) -> None:
        if now >= self._next_sweep:
            self._evict_expired(now)

    def _evict_expired(self, now: float) -> int:
        expired = [state for state, s in self._sessions.items() if s.is_expired(now)]
        for state in expired:
            del self._sessions[state]
        self._next_sweep = now + self._sweep_interval
        if expired:
            logger.debug("Evicted %d expired PKCE sessions", len(expired))
        return len(expired)
