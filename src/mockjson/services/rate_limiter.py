"""In-process sliding-window rate limiter for the public live-data endpoint.

State lives in this process only. With several server instances each one
enforces its own window, so the effective limit is multiplied by the instance
count. The monthly quota in LiveDataGateway is the cross-instance guarantee.
"""

import threading
import time
from collections import deque
from typing import Callable


class SlidingWindowRateLimiter:
    """Allow at most ``limit`` hits per ``window_seconds`` for each key.

    Keys whose hits have all left the window are dropped, so memory is bounded
    by the clients seen within roughly the last two windows.

    Args:
        limit: Maximum hits per window for one key
        window_seconds: Window length in seconds
        clock: Monotonic time source (tests inject a fake)
    """

    def __init__(
        self,
        limit: int,
        window_seconds: float,
        clock: Callable[[], float] = time.monotonic,
    ):
        if limit < 1:
            raise ValueError("limit must be >= 1")
        if window_seconds <= 0:
            raise ValueError("window_seconds must be > 0")
        self.limit = limit
        self.window_seconds = window_seconds
        self.clock = clock
        self._hits: dict[str, deque[float]] = {}
        self._lock = threading.Lock()
        self._last_sweep = clock()

    def tracked_keys(self) -> int:
        """Number of keys currently held in memory."""
        with self._lock:
            return len(self._hits)

    def _evict(self, key: str, now: float) -> deque[float] | None:
        """Drop hits outside the window; remove the key once it has none left."""
        hits = self._hits.get(key)
        if hits is None:
            return None
        boundary = now - self.window_seconds
        while hits and hits[0] <= boundary:
            hits.popleft()
        if not hits:
            del self._hits[key]
            return None
        return hits

    def _sweep(self, now: float) -> None:
        # At most once per window; the newest hit decides whether a key is stale
        if now - self._last_sweep < self.window_seconds:
            return
        self._last_sweep = now
        boundary = now - self.window_seconds
        stale = [key for key, hits in self._hits.items() if not hits or hits[-1] <= boundary]
        for key in stale:
            del self._hits[key]

    def allow(self, key: str) -> bool:
        """Record a hit for key and return whether it is within the limit.

        Rejected hits are not recorded.
        """
        with self._lock:
            now = self.clock()
            self._sweep(now)
            hits = self._evict(key, now)
            if hits is None:
                self._hits[key] = deque([now])
                return True
            if len(hits) >= self.limit:
                return False
            hits.append(now)
            return True

    def retry_after(self, key: str) -> float:
        """Seconds until the oldest hit for key leaves the window (0 if a hit is allowed now)."""
        with self._lock:
            now = self.clock()
            hits = self._evict(key, now)
            if hits is None or len(hits) < self.limit:
                return 0.0
            return max(hits[0] + self.window_seconds - now, 0.0)

    def reset(self) -> None:
        with self._lock:
            self._hits.clear()
