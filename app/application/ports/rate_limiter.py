from typing import Protocol


class RateLimiter(Protocol):
    def allow(self, key: str, max_requests: int, window_seconds: int) -> bool:
        """Record a hit for key and report whether it is within the window budget."""
        ...

    def remaining(self, key: str, max_requests: int, window_seconds: int) -> int:
        ...
