"""API v1 request/response schemas."""

from api.v1.schemas.auth import AuthStatusResponse, LoginRequest
from api.v1.schemas.legislative import (
    CronSyncRequest,
    FeedFiltersRequest,
    FeedRequest,
    FeedResponse,
    SyncStatusResponse,
)
from api.v1.schemas.notifications import MarkReadRequest, NotificationListResponse

__all__ = [
    "AuthStatusResponse",
    "LoginRequest",
    "CronSyncRequest",
    "FeedFiltersRequest",
    "FeedRequest",
    "FeedResponse",
    "SyncStatusResponse",
    "MarkReadRequest",
    "NotificationListResponse",
]
