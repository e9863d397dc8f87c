"""
Utilities package for Citizenly.

This package contains reusable utility classes for:
- Rate limiting (outbound token bucket, inbound attempt windows)
- Retry logic
- Hashing helpers
"""

from .rate_limiter import RateLimiter
from .attempt_limiter import AttemptLimiter, RateLimitResult, attempt_limiter
from .retry import (
    retry_async,
    calculate_backoff,
    is_retryable_error,
    RetryError,
)
from .hash_utils import (
    calculate_hash,
    compute_response_hash,
    generate_filters_hash,
)

__all__ = [
    "RateLimiter",
    "AttemptLimiter",
    "RateLimitResult",
    "attempt_limiter",
    "retry_async",
    "calculate_backoff",
    "is_retryable_error",
    "RetryError",
    "calculate_hash",
    "compute_response_hash",
    "generate_filters_hash",
]
