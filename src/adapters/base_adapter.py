"""
Base adapter interface for external data sources.

Defines the contract that source adapters (LegiScan today) implement so
callers get a uniform response shape, rate limiting and error handling.

Responsibility: Abstract base class defining adapter contract
"""

from abc import ABC, abstractmethod
from datetime import datetime, timedelta
from typing import Generic, TypeVar, Any, Optional
import logging

from ..models.adapter_models import (
    AdapterResponse,
    AdapterStatus,
    AdapterError,
    AdapterMetrics,
)
from ..utils.rate_limiter import RateLimiter


# Generic type for normalized data models
T = TypeVar('T')


class BaseAdapter(ABC, Generic[T]):
    """
    Abstract base class for data source adapters.

    Every adapter MUST:
    1. Implement fetch() returning an AdapterResponse
    2. Implement normalize() converting one raw record to a domain model
    3. Pace outbound requests with self.rate_limiter
    4. Count retries in self.retry_count so metrics report them

    fetch() reports failures inside the AdapterResponse. Typed
    single-record helpers on subclasses may raise instead.
    """

    def __init__(
        self,
        source_name: str,
        min_interval_seconds: float = 1.0,
        max_retries: int = 3,
        timeout_seconds: int = 30
    ):
        """
        Initialize base adapter.

        Args:
            source_name: Identifier for this adapter (e.g., "legiscan")
            min_interval_seconds: Minimum spacing between outbound requests
            max_retries: Maximum attempts for retryable errors
            timeout_seconds: Request timeout in seconds
        """
        self.source_name = source_name
        self.max_retries = max_retries
        self.timeout_seconds = timeout_seconds

        # burst=1: strict spacing, no bursting
        self.rate_limiter = RateLimiter.from_interval(min_interval_seconds)
        self.retry_count = 0

        self.logger = logging.getLogger(f"adapter.{source_name}")

    @abstractmethod
    async def fetch(self, **kwargs: Any) -> AdapterResponse[T]:
        """
        Fetch and normalize a batch of records from the source.

        Args:
            **kwargs: Source-specific parameters (e.g. session_id, limit)

        Returns:
            AdapterResponse containing normalized records, errors, and metrics
        """

    @abstractmethod
    def normalize(self, raw_data: Any) -> T:
        """
        Normalize one raw source record into a domain model.

        Raises:
            ValueError: If raw_data cannot be normalized (collected by fetch())
        """

    def _record_retry(self, attempt: int, error: Exception) -> None:
        self.retry_count += 1

    def _metrics(self, succeeded: int, failed: int, start_time: datetime, end_time: datetime) -> AdapterMetrics:
        return AdapterMetrics(
            records_attempted=succeeded + failed,
            records_succeeded=succeeded,
            records_failed=failed,
            duration_seconds=(end_time - start_time).total_seconds(),
            rate_limit_hits=self.rate_limiter.hits,
            retry_count=self.retry_count,
        )

    def _build_success_response(
        self,
        data: list[T],
        errors: list[AdapterError],
        start_time: datetime,
        cache_ttl_seconds: Optional[int] = None
    ) -> AdapterResponse[T]:
        """Build a successful (or partially successful) AdapterResponse."""
        end_time = datetime.utcnow()

        status = AdapterStatus.SUCCESS if not errors else AdapterStatus.PARTIAL_SUCCESS

        cache_until = None
        if cache_ttl_seconds:
            cache_until = end_time + timedelta(seconds=cache_ttl_seconds)

        return AdapterResponse(
            status=status,
            data=data,
            errors=errors,
            metrics=self._metrics(len(data), len(errors), start_time, end_time),
            source=self.source_name,
            fetch_timestamp=end_time,
            cache_until=cache_until
        )

    def _build_failure_response(
        self,
        error: Exception,
        start_time: datetime,
        retryable: bool = False
    ) -> AdapterResponse[T]:
        """
        Build a failed AdapterResponse.

        Used when the whole fetch fails (source unavailable, API error).
        """
        end_time = datetime.utcnow()

        return AdapterResponse(
            status=AdapterStatus.SOURCE_UNAVAILABLE if retryable else AdapterStatus.FAILURE,
            data=None,
            errors=[AdapterError(
                timestamp=end_time,
                error_type=type(error).__name__,
                message=str(error),
                context={"adapter": self.source_name},
                retryable=retryable
            )],
            metrics=self._metrics(0, 0, start_time, end_time),
            source=self.source_name,
            fetch_timestamp=end_time
        )
