"""
Pydantic schemas for legislative sync, cron, feed and interests requests.

Responsibility: Legislative request/response schemas
"""

from typing import List, Optional
from datetime import datetime
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from src.models.feed import FeedItem, FeedItemType


class CronSyncRequest(BaseModel):
    """Body of ``POST /cron/sync-bills``."""

    model_config = ConfigDict(populate_by_name=True)

    type: str = "quick"
    session_id: Optional[int] = Field(default=None, alias="sessionId")
    force: bool = False
    max_bills: Optional[int] = Field(default=None, alias="maxBills", ge=1)


class FeedFiltersRequest(BaseModel):
    type: List[FeedItemType] = Field(default_factory=list)
    subjects: List[str] = Field(default_factory=list)


class FeedRequest(BaseModel):
    """Body of ``POST /legislative/feed``."""

    model_config = ConfigDict(populate_by_name=True)

    user_id: UUID = Field(alias="userId")
    filters: FeedFiltersRequest = Field(default_factory=FeedFiltersRequest)
    page: int = Field(default=1, ge=1)
    limit: int = Field(default=20, ge=1, le=100)


class FeedResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    items: List[FeedItem]
    total: int
    page: int
    has_more: bool = Field(serialization_alias="hasMore")


class SyncStatusResponse(BaseModel):
    success: bool = True
    feed_stats: Optional[dict] = None
    active_sessions: List[dict] = Field(default_factory=list)
    is_running: bool
    last_updated: datetime


