"""
Fixed-window rate limiting, keyed by client.

Each client gets `permit` requests per window. The window starts with the
client's first request and resets once it has elapsed.
"""

import threading
import time
from typing import Callable, Optional


class FixedWindowRateLimiter:
    """
    Counts requests per key inside fixed windows.

    HOW TO USE:
    ----------
    limiter = FixedWindowRateLimiter(permit=100, window_seconds=60)

    retry_after = limiter.hit("10.0.0.5")
    if retry_after is not None:
        # over the limit, try again in `retry_after` seconds
        ...
    """

    def __init__(self, permit: int, window_seconds: float, clock: Callable[[], float] = time.monotonic):
        self.permit = permit
        self.window_seconds = window_seconds
        self._clock = clock
        self._windows: dict[str, tuple[float, int]] = {}
        self._lock = threading.Lock()

    def hit(self, key: str) -> Optional[float]:
        """
        Record one request for `key`.

        Returns:
            None if the request is allowed, otherwise seconds until the
            client's window resets
        """
        now = self._clock()
        with self._lock:
            self._evict_expired(now)
            started, count = self._windows.get(key, (now, 0))
            if count >= self.permit:
                return max(0.0, started + self.window_seconds - now)
            self._windows[key] = (started, count + 1)
            return None

    def _evict_expired(self, now: float):
        expired = [key for key, (started, _) in self._windows.items()
                   if now - started >= self.window_seconds]
        for key in expired:
            del self._windows[key]
