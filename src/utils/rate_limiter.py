"""
Rate limiter using token bucket algorithm.

Keeps outbound LegiScan traffic under the per-key quota. With ``burst=1``
the bucket degenerates into a strict minimum interval between calls.

Responsibility: Token bucket rate limiting for adapter requests
"""

import asyncio
import time


class RateLimiter:
    """
    Token bucket rate limiter for controlling request rates.

    Tokens are added at a constant rate and each request consumes one.
    ``hits`` counts how many acquisitions had to wait for a token.

    Example:
        limiter = RateLimiter.from_interval(1.0)
        await limiter.acquire()  # Blocks until token available
    """

    def __init__(self, rate: float, burst: int = 1):
        """
        Initialize rate limiter.

        Args:
            rate: Requests per second (e.g., 2.0 = 2 req/sec)
            burst: Maximum burst size (tokens in bucket at full capacity)
        """
        if rate <= 0:
            raise ValueError("Rate must be positive")
        if burst < 1:
            raise ValueError("Burst must be at least 1")

        self.rate = rate
        self.burst = burst
        self.tokens = float(burst)
        self.last_update = time.monotonic()
        self.lock = asyncio.Lock()
        self.hits = 0

    @classmethod
    def from_interval(cls, min_interval_seconds: float) -> "RateLimiter":
        """Build a limiter that spaces calls at least ``min_interval_seconds`` apart."""
        if min_interval_seconds <= 0:
            raise ValueError("Interval must be positive")
        return cls(rate=1.0 / min_interval_seconds, burst=1)

    @property
    def min_interval(self) -> float:
        return 1.0 / self.rate

    async def acquire(self) -> float:
        """
        Acquire a token, blocking until one is available.

        Returns:
            Seconds spent waiting (0.0 when a token was immediately available)
        """
        async with self.lock:
            now = time.monotonic()
            elapsed = now - self.last_update

            self.tokens = min(self.burst, self.tokens + elapsed * self.rate)
            self.last_update = now

            if self.tokens < 1:
                wait_time = (1 - self.tokens) / self.rate
                self.hits += 1
                await asyncio.sleep(wait_time)

                # The waited-for token is consumed immediately
                self.tokens = 0
                self.last_update = time.monotonic()
                return wait_time

            self.tokens -= 1
            return 0.0

    def get_current_tokens(self) -> float:
        """
        Get current number of tokens in bucket (for monitoring).

        Note: This doesn't acquire the lock, so it's approximate.
        """
        now = time.monotonic()
        elapsed = now - self.last_update
        return min(self.burst, self.tokens + elapsed * self.rate)

    def reset(self) -> None:
        """Reset the rate limiter to full capacity."""
        self.tokens = float(self.burst)
        self.last_update = time.monotonic()
        self.hits = 0
