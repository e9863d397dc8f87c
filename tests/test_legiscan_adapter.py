from typing import Callable, List

import httpx
import pytest

from src.adapters.legiscan_adapter import LegiScanAdapter
from src.exceptions import ConfigurationError, LegiScanAPIError
from src.models.adapter_models import AdapterStatus

from tests.factories import bill_payload, person_payload, roll_call_payload, session_payload, summary_payload


def _adapter(handler: Callable[[httpx.Request], httpx.Response], **kwargs) -> LegiScanAdapter:
    kwargs.setdefault("request_interval_seconds", 0.001)
    kwargs.setdefault("backoff_base_seconds", 0)
    return LegiScanAdapter(
        api_key="test-key",
        base_url="https://api.legiscan.com/",
        state="NV",
        transport=httpx.MockTransport(handler),
        **kwargs,
    )


def _ok(body: dict) -> httpx.Response:
    return httpx.Response(200, json={"status": "OK", **body})


def test_missing_api_key_is_a_configuration_error(monkeypatch) -> None:
    from src.config import settings

    monkeypatch.setattr(settings.legiscan, "api_key", None)

    with pytest.raises(ConfigurationError):
        LegiScanAdapter()


async def test_request_carries_key_op_and_user_agent() -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return _ok({"sessions": [session_payload()]})

    async with _adapter(handler) as adapter:
        sessions = await adapter.get_sessions()

    assert [s.session_id for s in sessions] == [2172]
    assert sessions[0].is_current
    params = seen[0].url.params
    assert params["key"] == "test-key"
    assert params["op"] == "getSessionList"
    assert params["state"] == "NV"
    assert seen[0].headers["User-Agent"] == "Citizenly-MVP/1.0"


async def test_master_list_skips_session_header() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        assert request.url.params["op"] == "getMasterListRaw"
        assert request.url.params["id"] == "2172"
        return _ok({
            "masterlist": {
                "session": {"session_id": 2172, "session_name": "83rd"},
                "0": summary_payload(1001, "h1"),
                "1": summary_payload(1002, "h2", status_date="0000-00-00"),
            }
        })

    async with _adapter(handler) as adapter:
        masterlist = await adapter.get_master_list(2172)

    assert masterlist.session["session_id"] == 2172
    assert [b.bill_id for b in masterlist.bills] == [1001, 1002]
    assert masterlist.bills[1].status_date is None


async def test_get_bill_normalizes_subjects_committee_and_sponsors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return _ok({"bill": bill_payload(1001)})

    async with _adapter(handler) as adapter:
        bill = await adapter.get_bill(1001)

    assert bill.bill_number == "AB1001"
    assert bill.subjects == ["Education"]
    assert bill.committee is None
    assert bill.chamber == "H"
    assert bill.state_url == "https://www.leg.state.nv.us/"
    assert bill.sponsors[0].people_id == 501
    assert bill.status_text == "Introduced"


async def test_roll_call_and_people() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        op = request.url.params["op"]
        if op == "getRollCall":
            return _ok({"roll_call": roll_call_payload()})
        if op == "getSessionPeople":
            return _ok({"sessionpeople": {"people": [person_payload(501), person_payload(502, role="Sen")]}})
        return _ok({"person": person_payload()})

    async with _adapter(handler) as adapter:
        roll_call = await adapter.get_roll_call(9001)
        people = await adapter.get_session_people(2172)
        person = await adapter.get_person(501)

    assert roll_call.did_pass
    assert roll_call.margin == 18
    assert [p.chamber for p in people] == ["H", "S"]
    assert person.votesmart_id is None
    assert person.full_name == "Jane Doe"


async def test_transient_http_errors_are_retried() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        if len(calls) < 3:
            return httpx.Response(503)
        return _ok({"bill": bill_payload()})

    async with _adapter(handler) as adapter:
        bill = await adapter.get_bill(1001)

    assert bill.bill_id == 1001
    assert len(calls) == 3
    assert adapter.retry_count == 2


async def test_error_status_raises_after_three_attempts() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(200, json={"status": "ERROR", "alert": {"message": "Unknown bill id"}})

    async with _adapter(handler) as adapter:
        with pytest.raises(LegiScanAPIError, match="LegiScan API Error: Unknown bill id"):
            await adapter.get_bill(1)

    assert len(calls) == 3


async def test_client_errors_are_not_retried() -> None:
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(1)
        return httpx.Response(403)

    async with _adapter(handler) as adapter:
        with pytest.raises(LegiScanAPIError, match="HTTP 403"):
            await adapter.get_sessions()

    assert len(calls) == 1


async def test_fetch_collects_normalization_errors() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return _ok({
            "masterlist": {
                "0": summary_payload(1001),
                "1": {"bill_id": "not-a-number"},
            }
        })

    async with _adapter(handler) as adapter:
        response = await adapter.fetch(session_id=2172)

    assert response.status == AdapterStatus.PARTIAL_SUCCESS
    assert [b.bill_id for b in response.data] == [1001]
    assert len(response.errors) == 1


async def test_fetch_reports_unavailable_source() -> None:
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(500)

    async with _adapter(handler, max_retries=2) as adapter:
        response = await adapter.fetch(session_id=2172)

    assert response.status == AdapterStatus.SOURCE_UNAVAILABLE
    assert response.data is None


async def test_search_returns_raw_searchresult() -> None:
    seen: List[httpx.Request] = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return _ok({"searchresult": {"summary": {"count": 1}, "0": {"bill_id": 1001}}})

    async with _adapter(handler) as adapter:
        result = await adapter.search_bills("education")

    assert result["summary"]["count"] == 1
    params = seen[0].url.params
    assert params["op"] == "search"
    assert params["query"] == "education"
    assert "year" not in params
