"""
LegiScan API adapter.

Pulls state legislative data (sessions, masterlists, bills, roll calls,
people) from the LegiScan JSON API at a polite, fixed request rate with
exponential-backoff retries.

Responsibility: Fetch and normalize LegiScan records
"""

from datetime import datetime
from typing import Any, Dict, List, Optional
import httpx

from .base_adapter import BaseAdapter
from ..config import settings
from ..exceptions import ConfigurationError, LegiScanAPIError
from ..models.adapter_models import AdapterResponse, AdapterError
from ..models.legislative import (
    BillDetail,
    BillSummary,
    LegislativeSession,
    Legislator,
    MasterList,
    RollCall,
)
from ..utils.retry import RetryError, retry_async


class LegiScanAdapter(BaseAdapter[BillSummary]):
    """
    Adapter for the LegiScan API.

    Every request goes through ``_request`` which:
    - waits on the rate limiter (one request per ``request_interval_seconds``)
    - retries transient failures up to ``max_retries`` times with
      ``backoff_base * 2**(n-1)`` seconds between attempts
    - raises LegiScanAPIError when the payload reports ``status: ERROR``

    Example:
        adapter = LegiScanAdapter()
        sessions = await adapter.get_sessions()
        masterlist = await adapter.get_master_list(sessions[0].session_id)
        bill = await adapter.get_bill(masterlist.bills[0].bill_id)
        await adapter.close()
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        *,
        base_url: Optional[str] = None,
        state: Optional[str] = None,
        request_interval_seconds: Optional[float] = None,
        max_retries: Optional[int] = None,
        backoff_base_seconds: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        """
        Initialize LegiScan adapter.

        Args:
            api_key: LegiScan API key (defaults to ``LEGISCAN_API_KEY``)
            base_url: API root (defaults to settings)
            state: Default state code for session/search calls
            request_interval_seconds: Minimum spacing between requests
            max_retries: Maximum attempts per request
            backoff_base_seconds: First retry delay; doubles per attempt
            transport: Optional httpx transport (tests use MockTransport)

        Raises:
            ConfigurationError: If no API key is configured
        """
        config = settings.legiscan
        self.api_key = api_key or config.api_key
        if not self.api_key:
            raise ConfigurationError("LEGISCAN_API_KEY environment variable is required")

        super().__init__(
            source_name="legiscan",
            min_interval_seconds=(
                request_interval_seconds
                if request_interval_seconds is not None
                else config.request_interval_seconds
            ),
            max_retries=max_retries if max_retries is not None else config.max_retries,
            timeout_seconds=config.timeout_seconds,
        )

        self.base_url = base_url or config.base_url
        self.state = state or config.state
        self.backoff_base_seconds = (
            backoff_base_seconds if backoff_base_seconds is not None else config.backoff_base_seconds
        )

        self.client = httpx.AsyncClient(
            timeout=self.timeout_seconds,
            headers={
                "User-Agent": config.user_agent,
                "Accept": "application/json",
            },
            transport=transport,
        )

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    async def close(self) -> None:
        await self.client.aclose()

    # MARK: - Transport

    async def _request(self, op: str, **params: Any) -> Dict[str, Any]:
        """
        Perform one LegiScan API call.

        Args:
            op: LegiScan operation name (e.g. ``getBill``)
            **params: Extra query parameters

        Returns:
            Decoded JSON payload

        Raises:
            LegiScanAPIError: API error status, or HTTP failure after retries
        """
        query = {"key": self.api_key, "op": op}
        query.update({k: v for k, v in params.items() if v is not None})

        async def call() -> Dict[str, Any]:
            await self.rate_limiter.acquire()
            self.logger.debug(f"GET op={op} {params}")

            response = await self.client.get(self.base_url, params=query)
            response.raise_for_status()
            data = response.json()

            if data.get("status") == "ERROR":
                message = (data.get("alert") or {}).get("message", "Unknown error")
                raise LegiScanAPIError(f"LegiScan API Error: {message}", operation=op)

            return data

        try:
            return await retry_async(
                call,
                max_attempts=self.max_retries,
                base_delay=self.backoff_base_seconds,
                jitter=False,
                retryable_exceptions=(LegiScanAPIError,),
                logger_instance=self.logger,
                on_retry=self._record_retry,
            )
        except RetryError as e:
            last = e.last_exception
            if isinstance(last, LegiScanAPIError):
                raise last
            raise LegiScanAPIError(
                f"LegiScan request {op} failed after {e.attempts} attempts: {last}",
                operation=op,
            ) from e
        except httpx.HTTPStatusError as e:
            raise LegiScanAPIError(
                f"HTTP {e.response.status_code}: {e.response.reason_phrase}",
                operation=op,
            ) from e
        except httpx.HTTPError as e:
            raise LegiScanAPIError(f"LegiScan request {op} failed: {e}", operation=op) from e

    # MARK: - Adapter contract

    def normalize(self, raw_data: Any) -> BillSummary:
        return BillSummary.model_validate(raw_data)

    async def fetch(
        self,
        session_id: Optional[int] = None,
        limit: Optional[int] = None,
        **kwargs: Any
    ) -> AdapterResponse[BillSummary]:
        """
        Fetch masterlist bill summaries for a session.

        Normalization failures are collected as errors and do not
        abort the fetch; transport/API failures produce a failure response.

        Args:
            session_id: LegiScan session id (required)
            limit: Maximum summaries to return

        Returns:
            AdapterResponse containing BillSummary records
        """
        start_time = datetime.utcnow()
        summaries: List[BillSummary] = []
        errors: List[AdapterError] = []

        self.logger.info(f"Fetching masterlist: session_id={session_id}, limit={limit}")

        try:
            if session_id is None:
                raise ValueError("session_id is required")

            data = await self._request("getMasterListRaw", id=session_id)

            for key, raw in (data.get("masterlist") or {}).items():
                if key == "session" or not isinstance(raw, dict):
                    continue
                if limit is not None and len(summaries) >= limit:
                    break
                try:
                    summaries.append(self.normalize(raw))
                except Exception as e:
                    self.logger.warning(f"Failed to normalize masterlist entry {key}: {e}")
                    errors.append(AdapterError(
                        timestamp=datetime.utcnow(),
                        error_type=type(e).__name__,
                        message=str(e),
                        context={"masterlist_key": key, "session_id": session_id},
                        retryable=False
                    ))

            self.logger.info(
                f"Successfully fetched {len(summaries)} bill summaries, "
                f"{len(errors)} errors"
            )

            return self._build_success_response(
                data=summaries,
                errors=errors,
                start_time=start_time,
                cache_ttl_seconds=3600
            )

        except LegiScanAPIError as e:
            self.logger.error(f"LegiScan unavailable: {e}")
            return self._build_failure_response(e, start_time, retryable=True)

        except Exception as e:
            self.logger.error(f"Unexpected error fetching masterlist: {e}", exc_info=True)
            return self._build_failure_response(e, start_time, retryable=False)

    # MARK: - Typed operations

    async def get_sessions(self, state: Optional[str] = None) -> List[LegislativeSession]:
        """Sessions for a state (``getSessionList``)."""
        data = await self._request("getSessionList", state=state or self.state)
        return [LegislativeSession.model_validate(raw) for raw in data.get("sessions") or []]

    async def get_master_list(self, session_id: int) -> MasterList:
        """
        Masterlist for a session (``getMasterListRaw``).

        The ``session`` header entry is separated from bill summaries.
        """
        data = await self._request("getMasterListRaw", id=session_id)
        masterlist = data.get("masterlist") or {}

        bills = [
            BillSummary.model_validate(raw)
            for key, raw in masterlist.items()
            if key != "session" and isinstance(raw, dict)
        ]
        return MasterList(session=masterlist.get("session") or data.get("session"), bills=bills)

    async def get_bill(self, bill_id: int) -> BillDetail:
        data = await self._request("getBill", id=bill_id)
        if not data.get("bill"):
            raise LegiScanAPIError(f"Bill {bill_id} missing from response", operation="getBill")
        return BillDetail.model_validate(data["bill"])

    async def get_roll_call(self, roll_call_id: int) -> RollCall:
        data = await self._request("getRollCall", id=roll_call_id)
        if not data.get("roll_call"):
            raise LegiScanAPIError(
                f"Roll call {roll_call_id} missing from response", operation="getRollCall"
            )
        return RollCall.model_validate(data["roll_call"])

    async def get_person(self, people_id: int) -> Legislator:
        data = await self._request("getPerson", id=people_id)
        if not data.get("person"):
            raise LegiScanAPIError(f"Person {people_id} missing from response", operation="getPerson")
        return Legislator.model_validate(data["person"])

    async def get_session_people(self, session_id: int) -> List[Legislator]:
        data = await self._request("getSessionPeople", id=session_id)
        people = (data.get("sessionpeople") or {}).get("people") or []
        if isinstance(people, dict):
            people = list(people.values())
        return [Legislator.model_validate(raw) for raw in people]

    async def search_bills(
        self,
        query: str,
        state: Optional[str] = None,
        year: Optional[int] = None
    ) -> Dict[str, Any]:
        """Full-text search (``search``); returns the raw ``searchresult``."""
        data = await self._request("search", query=query, state=state or self.state, year=year)
        return data.get("searchresult") or {}
