import time

import pytest

from src.utils.rate_limiter import RateLimiter


async def test_consecutive_acquires_are_spaced_by_interval() -> None:
    limiter = RateLimiter.from_interval(0.05)

    stamps = []
    for _ in range(4):
        await limiter.acquire()
        stamps.append(time.monotonic())

    gaps = [later - earlier for earlier, later in zip(stamps, stamps[1:])]
    # Small tolerance for timer resolution
    assert all(gap >= 0.045 for gap in gaps)
    assert limiter.hits == 3


async def test_first_acquire_does_not_wait() -> None:
    limiter = RateLimiter.from_interval(10.0)

    assert await limiter.acquire() == 0.0


async def test_burst_allows_immediate_requests() -> None:
    limiter = RateLimiter(rate=1.0, burst=3)

    waits = [await limiter.acquire() for _ in range(3)]

    assert waits == [0.0, 0.0, 0.0]
    assert limiter.hits == 0


async def test_reset_restores_capacity() -> None:
    limiter = RateLimiter.from_interval(10.0)
    await limiter.acquire()

    limiter.reset()

    assert limiter.get_current_tokens() == pytest.approx(1.0, abs=0.01)
    assert limiter.hits == 0


def test_invalid_configuration_rejected() -> None:
    with pytest.raises(ValueError):
        RateLimiter(rate=0)
    with pytest.raises(ValueError):
        RateLimiter(rate=1.0, burst=0)
    with pytest.raises(ValueError):
        RateLimiter.from_interval(0)


def test_min_interval_matches_rate() -> None:
    assert RateLimiter.from_interval(1.0).min_interval == pytest.approx(1.0)
