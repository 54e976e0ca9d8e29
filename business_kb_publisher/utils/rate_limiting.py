"""
Thread-safe rate limiting for calls to the remote knowledge base.

Both the SPARQL endpoint and the Action API publish usage budgets; every
outbound request from the resolver and the publish transport goes through
a shared limiter keyed by source name.

Usage:
    from business_kb_publisher.utils.rate_limiting import get_rate_limiter

    limiter = get_rate_limiter("sparql", requests_per_second=5.0)
    limiter()
    session.post(...)
"""

import time
from threading import Lock


class RateLimiter:
    """
    Enforces a minimum interval between calls.

    Thread-safe: concurrent publish requests share one limiter per source.

    Example:
        >>> limiter = RateLimiter(requests_per_second=2.0, source_name="action_api")
        >>> limiter()  # First call - no wait
        >>> limiter()  # Second call - waits ~0.5s
    """

    def __init__(self, requests_per_second: float, source_name: str = "default"):
        """
        Initialize rate limiter.

        Args:
            requests_per_second: Maximum requests per second (must be > 0)
            source_name: Name of the source (for debugging)

        Raises:
            ValueError: If requests_per_second <= 0
        """
        if requests_per_second <= 0:
            raise ValueError(f"requests_per_second must be > 0, got {requests_per_second}")

        self.requests_per_second = requests_per_second
        self.source_name = source_name
        self.min_interval = 1.0 / requests_per_second
        self._lock = Lock()
        self._last_call = 0.0

    def __call__(self) -> None:
        """Sleep if the minimum interval has not elapsed since the last call."""
        with self._lock:
            elapsed = time.monotonic() - self._last_call
            if elapsed < self.min_interval:
                time.sleep(self.min_interval - elapsed)
            self._last_call = time.monotonic()

    def __enter__(self):
        self()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        return False

    def reset(self) -> None:
        """Allow the next call through immediately."""
        with self._lock:
            self._last_call = 0.0


_rate_limiters: dict[str, RateLimiter] = {}
_rate_limiters_lock = Lock()


def get_rate_limiter(source_name: str, requests_per_second: float) -> RateLimiter:
    """
    Get or create the shared rate limiter for a source.

    The first caller fixes the rate; later callers get the same instance.

    Args:
        source_name: Name of the source (e.g., "sparql", "action_api")
        requests_per_second: Maximum requests per second

    Returns:
        Shared RateLimiter instance
    """
    with _rate_limiters_lock:
        limiter = _rate_limiters.get(source_name)
        if limiter is None:
            limiter = RateLimiter(requests_per_second=requests_per_second, source_name=source_name)
            _rate_limiters[source_name] = limiter
        return limiter
