"""
In-memory fixed-window attempt limiter.

Counts attempts per key (e.g. ``login:{email}``) inside a fixed window and
refuses further attempts until the window ends. Single-process only.

Responsibility: Throttle login and write operations per user/key
"""

from dataclasses import dataclass
import logging
import time
from typing import Callable, Dict

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class RateLimitResult:
    """Outcome of a single limit check."""

    allowed: bool
    remaining: int
    reset_time: float
    retry_after: int = 0


class AttemptLimiter:
    """
    Fixed-window attempt counter keyed by arbitrary strings.

    Example:
        limiter = AttemptLimiter()
        result = limiter.check_limit("login:a@b.com", max_attempts=5, window_seconds=900)
        if not result.allowed:
            ...
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._store: Dict[str, Dict[str, float]] = {}
        self._clock = clock

    def check_limit(self, key: str, max_attempts: int, window_seconds: int) -> RateLimitResult:
        """
        Record one attempt for ``key`` and report whether it is allowed.

        A refused attempt does not extend the window.
        """
        now = self._clock()
        entry = self._store.get(key)

        if entry is None or now > entry["window_end"]:
            self._store[key] = {"count": 1, "window_end": now + window_seconds}
            return RateLimitResult(
                allowed=True,
                remaining=max_attempts - 1,
                reset_time=now + window_seconds,
            )

        if entry["count"] >= max_attempts:
            logger.warning(f"Attempt limit reached for {key}")
            return RateLimitResult(
                allowed=False,
                remaining=0,
                reset_time=entry["window_end"],
                retry_after=int(entry["window_end"] - now) + 1,
            )

        entry["count"] += 1
        return RateLimitResult(
            allowed=True,
            remaining=max_attempts - int(entry["count"]),
            reset_time=entry["window_end"],
        )

    def reset(self, key: str) -> None:
        """Forget all attempts for ``key`` (e.g. after a successful login)."""
        self._store.pop(key, None)

    def cleanup(self) -> int:
        """Drop expired windows. Returns the number of keys removed."""
        now = self._clock()
        expired = [key for key, entry in self._store.items() if now > entry["window_end"]]
        for key in expired:
            del self._store[key]
        return len(expired)


# Process-wide limiter shared by the auth and poll services
attempt_limiter = AttemptLimiter()
