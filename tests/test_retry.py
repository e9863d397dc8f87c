import httpx
import pytest

from src.utils import retry as retry_module
from src.utils.retry import RetryError, calculate_backoff, is_retryable_error, retry_async


@pytest.fixture(autouse=True)
def no_sleep(monkeypatch):
    delays = []

    async def fake_sleep(delay):
        delays.append(delay)

    monkeypatch.setattr(retry_module.asyncio, "sleep", fake_sleep)
    return delays


def _status_error(code: int) -> httpx.HTTPStatusError:
    request = httpx.Request("GET", "https://api.legiscan.com/")
    return httpx.HTTPStatusError("boom", request=request, response=httpx.Response(code, request=request))


def test_backoff_doubles_and_caps() -> None:
    assert calculate_backoff(0, base_delay=1.0, jitter=False) == 1.0
    assert calculate_backoff(1, base_delay=1.0, jitter=False) == 2.0
    assert calculate_backoff(2, base_delay=1.0, jitter=False) == 4.0
    assert calculate_backoff(10, base_delay=1.0, max_delay=5.0, jitter=False) == 5.0


def test_jitter_stays_within_half_to_full_delay() -> None:
    for _ in range(20):
        assert 1.0 <= calculate_backoff(1, base_delay=1.0) <= 2.0


def test_retryable_classification() -> None:
    assert is_retryable_error(httpx.ConnectError("down"))
    assert is_retryable_error(_status_error(503))
    assert is_retryable_error(_status_error(429))
    assert not is_retryable_error(_status_error(404))
    assert not is_retryable_error(ValueError("bad"))
    assert is_retryable_error(ValueError("bad"), retryable_exceptions=(ValueError,))


async def test_succeeds_after_transient_failures(no_sleep) -> None:
    calls = []

    async def flaky():
        calls.append(1)
        if len(calls) < 3:
            raise httpx.ConnectError("down")
        return "ok"

    assert await retry_async(flaky, max_attempts=3, base_delay=1.0, jitter=False) == "ok"
    assert len(calls) == 3
    assert no_sleep == [1.0, 2.0]


async def test_exhausted_attempts_raise_retry_error() -> None:
    async def always_down():
        raise _status_error(500)

    with pytest.raises(RetryError) as exc_info:
        await retry_async(always_down, max_attempts=3, jitter=False)

    assert exc_info.value.attempts == 3
    assert isinstance(exc_info.value.last_exception, httpx.HTTPStatusError)


async def test_non_retryable_error_propagates_immediately() -> None:
    calls = []

    async def bad_request():
        calls.append(1)
        raise _status_error(400)

    with pytest.raises(httpx.HTTPStatusError):
        await retry_async(bad_request, max_attempts=3)

    assert len(calls) == 1


async def test_retry_async_recovers_after_timeout(no_sleep) -> None:
    calls = []

    async def fetch_session_list() -> str:
        calls.append("NV")
        if len(calls) == 1:
            raise httpx.ReadTimeout("slow")
        return "sessions for NV"

    assert await retry_async(fetch_session_list, max_attempts=3, base_delay=2.0, jitter=False) == "sessions for NV"
    assert calls == ["NV", "NV"]
    assert no_sleep == [2.0]
