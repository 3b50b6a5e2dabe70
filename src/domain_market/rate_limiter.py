"""
Per-endpoint rate-limit tracking for the registrar API.

The tracker remembers the most recent rate-limit window reported by the
upstream for each endpoint. It performs no I/O and never blocks; the request
queue consults it before every call and decides whether to wait.

A window whose reset time has passed is stale: it is discarded the next time
it is observed and never blocks a call.
"""

from dataclasses import asdict, dataclass
from typing import Optional

from .clock import Clock, SystemClock


@dataclass
class RateLimitState:
    """Rate-limit window last reported for one endpoint."""

    remaining: int
    limit: int
    reset_time: float  # epoch seconds
    last_update: float


class RateLimitTracker:
    """
    Sliding-window rate-limit state keyed by endpoint.

    An endpoint is limited only while its window is open and its remaining
    budget is exhausted.
    """

    def __init__(self, clock: Optional[Clock] = None) -> None:
        self._clock = clock or SystemClock()
        self._states: dict[str, RateLimitState] = {}

    def observe(
        self,
        endpoint: str,
        remaining: int,
        limit: int,
        reset_time: float,
    ) -> RateLimitState:
        """
        Record (or overwrite) the window for an endpoint.

        Values are stored as given; zero or negative numbers are accepted.
        """
        state = RateLimitState(
            remaining=remaining,
            limit=limit,
            reset_time=reset_time,
            last_update=self._clock.now(),
        )
        self._states[endpoint] = state
        return state

    def get(self, endpoint: str) -> Optional[RateLimitState]:
        """Return the live state for an endpoint, discarding it if stale."""
        state = self._states.get(endpoint)
        if state is None:
            return None
        if self._clock.now() > state.reset_time:
            del self._states[endpoint]
            return None
        return state

    def is_limited(self, endpoint: str) -> bool:
        """True iff a live window exists and its remaining budget is spent."""
        state = self.get(endpoint)
        return state is not None and state.remaining <= 0

    def wait_time(self, endpoint: str) -> float:
        """Seconds until the endpoint's window resets, 0.0 if not limited."""
        if not self.is_limited(endpoint):
            return 0.0
        state = self._states[endpoint]
        return max(0.0, state.reset_time - self._clock.now())

    def snapshot(self) -> dict[str, dict]:
        """Copy of all tracked windows, stale ones included, for diagnostics."""
        return {endpoint: asdict(state) for endpoint, state in self._states.items()}

    def clear(self) -> None:
        self._states.clear()
