"""
In-process fixed-window rate limiting keyed by client address.
"""

import threading
import time

from fastapi import Request

from ..errors import RateLimitError
from ..logging_config import get_logger

logger = get_logger(__name__)

# Forget idle clients once the table grows past this size
MAX_TRACKED_CLIENTS = 10_000


class FixedWindowRateLimiter:
    """Allow `limit` hits per client in each `window_seconds` window."""

    def __init__(self, name: str, limit: int, window_seconds: int, message: str, enabled: bool = True) -> None:
        self.name = name
        self.limit = limit
        self.window_seconds = window_seconds
        self.message = message
        self.enabled = enabled
        self._windows: dict[str, tuple[float, int]] = {}
        self._lock = threading.Lock()

    def hit(self, client: str, now: float | None = None) -> int:
        """
        Count one request for a client.

        Returns:
            int: Requests remaining in the current window

        Raises:
            RateLimitError: If the client has used up its window
        """
        if not self.enabled:
            return self.limit

        now = time.monotonic() if now is None else now
        with self._lock:
            started, count = self._windows.get(client, (now, 0))
            if now - started >= self.window_seconds:
                started, count = now, 0

            if count >= self.limit:
                raise RateLimitError(
                    self.message,
                    details={"limiter": self.name, "client": client, "limit": self.limit},
                )

            self._windows[client] = (started, count + 1)
            if len(self._windows) > MAX_TRACKED_CLIENTS:
                self._prune(now)
            return self.limit - count - 1

    def _prune(self, now: float) -> None:
        expired = [key for key, (started, _) in self._windows.items() if now - started >= self.window_seconds]
        for key in expired:
            del self._windows[key]
        logger.debug("rate_limit_pruned", limiter=self.name, removed=len(expired))

    def reset(self) -> None:
        with self._lock:
            self._windows.clear()


class RateLimit:
    """Dependency applying the limiter registered under `name` on app.state.rate_limiters."""

    def __init__(self, name: str) -> None:
        self.name = name

    def __call__(self, request: Request) -> None:
        limiter: FixedWindowRateLimiter = request.app.state.rate_limiters[self.name]
        client = request.client.host if request.client else "unknown"
        limiter.hit(client)


api_rate_limit = RateLimit("api")
upload_rate_limit = RateLimit("upload")
