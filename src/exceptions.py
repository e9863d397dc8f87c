"""
Domain exceptions for Citizenly.

Services raise these; API endpoints translate them to HTTP responses.

Responsibility: Shared exception hierarchy
"""

from typing import Optional


class CitizenlyError(Exception):
    """Base class for all domain errors"""


class ConfigurationError(CitizenlyError):
    """Required configuration (API key, secret) is missing"""


class LegiScanAPIError(CitizenlyError):
    """LegiScan returned status ERROR or an unusable payload"""

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation


class SyncAlreadyRunningError(CitizenlyError):
    """A legislative sync is already in progress in this process"""

    def __init__(self, message: str = "Sync is already running"):
        super().__init__(message)


class AuthenticationError(CitizenlyError):
    """Credentials or session token rejected"""


class ValidationError(CitizenlyError):
    """Input failed a business rule"""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class PermissionDeniedError(CitizenlyError):
    """Caller is authenticated but not allowed to perform the action"""


class NotFoundError(CitizenlyError):
    """Requested entity does not exist"""


class ConflictError(CitizenlyError):
    """Action conflicts with existing state (e.g. duplicate vote)"""


class RateLimitExceededError(CitizenlyError):
    """Per-user attempt window exhausted"""

    def __init__(self, message: str = "Too many requests", retry_after: int = 0):
        super().__init__(message)
        self.retry_after = retry_after
