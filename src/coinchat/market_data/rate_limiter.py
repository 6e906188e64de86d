"""Sliding-window rate limiter for outbound market-data requests.

Counts request timestamps inside the trailing window; a request is admitted
only while that count is below the ceiling. Denied requests are not queued
or delayed; the caller decides whether to back off and retry.

All mutation happens between await points on the event loop thread, so an
``admit`` followed immediately by ``record`` cannot be interleaved by another
request.
"""

import time
from collections import deque
from collections.abc import Callable

from coinchat.logging import get_logger

logger = get_logger(__name__)


class SlidingWindowRateLimiter:
    """Admission control over a trailing time window.

    Args:
        max_requests: Ceiling of admitted requests per window.
        window_seconds: Length of the trailing window.
        clock: Monotonic time source, injectable for tests.
        name: Label used in log events to tell limiter instances apart.
    """

    def __init__(
        self,
        max_requests: int,
        window_seconds: float = 60.0,
        clock: Callable[[], float] = time.monotonic,
        name: str = "default",
    ) -> None:
        if max_requests <= 0:
            raise ValueError("max_requests must be positive")
        self._max_requests = max_requests
        self._window = window_seconds
        self._clock = clock
        self._name = name
        self._requests: deque[float] = deque()

    @property
    def max_requests(self) -> int:
        return self._max_requests

    def _prune(self, now: float) -> None:
        # Timestamps are appended in order, so expired ones sit at the left
        while self._requests and now - self._requests[0] >= self._window:
            self._requests.popleft()

    def admit(self, now: float | None = None) -> bool:
        """Return True if a request may be made at ``now``."""
        now = self._clock() if now is None else now
        self._prune(now)
        return len(self._requests) < self._max_requests

    def record(self, now: float | None = None) -> None:
        """Record a request made at ``now``."""
        now = self._clock() if now is None else now
        self._requests.append(now)

    def try_acquire(self, now: float | None = None) -> bool:
        """Admit and record in one step. Returns False when denied."""
        now = self._clock() if now is None else now
        if not self.admit(now):
            logger.warning(
                "rate_limit_exceeded",
                limiter=self._name,
                max_requests=self._max_requests,
                window_seconds=self._window,
            )
            return False
        self.record(now)
        return True

    def in_window(self, now: float | None = None) -> int:
        """Number of requests counted in the current window."""
        now = self._clock() if now is None else now
        self._prune(now)
        return len(self._requests)
