import threading
import time
from collections import deque
from typing import Callable, Deque, Dict

from ...application.ports.rate_limiter import RateLimiter


class InMemoryRateLimiter(RateLimiter):
    """Sliding-window limiter for a single process.

    Keys whose hits have all left the window are dropped, so idle clients
    do not accumulate.
    """

    def __init__(self, clock: Callable[[], float] = time.time) -> None:
        self._hits: Dict[str, Deque[float]] = {}
        self._lock = threading.Lock()
        self._clock = clock

    def _prune(self, key: str, window_seconds: int) -> int:
        hits = self._hits.get(key)
        if hits is None:
            return 0
        window_start = self._clock() - window_seconds
        while hits and hits[0] <= window_start:
            hits.popleft()
        if not hits:
            del self._hits[key]
        return len(hits)

    def allow(self, key: str, max_requests: int, window_seconds: int) -> bool:
        with self._lock:
            if self._prune(key, window_seconds) >= max_requests:
                return False
            self._hits.setdefault(key, deque()).append(self._clock())
            return True

    def remaining(self, key: str, max_requests: int, window_seconds: int) -> int:
        with self._lock:
            return max(0, max_requests - self._prune(key, window_seconds))
