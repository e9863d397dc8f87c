"""
Legislative feed models.

Responsibility: Feed item types, filters and statistics
"""

from datetime import date, datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class FeedItemType(str, Enum):
    """Kinds of legislative events surfaced in the feed"""
    BILL_INTRODUCED = "bill_introduced"
    BILL_UPDATED = "bill_updated"
    VOTE_SCHEDULED = "vote_scheduled"
    VOTE_RESULT = "vote_result"
    STATUS_CHANGE = "status_change"


DEFAULT_NOTIFICATION_TYPES: List[str] = [
    FeedItemType.BILL_INTRODUCED.value,
    FeedItemType.VOTE_RESULT.value,
]


class NewFeedItem(BaseModel):
    """A feed item ready to be inserted."""

    type: FeedItemType
    title: str
    description: Optional[str] = None
    bill_id: Optional[int] = None
    roll_call_id: Optional[int] = None
    people_id: Optional[int] = None
    action_date: date
    subjects: List[str] = Field(default_factory=list)
    districts: List[str] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    dedupe_key: str = ""


class FeedItem(BaseModel):
    """A stored feed item, joined with bill/vote/legislator labels."""

    model_config = ConfigDict(from_attributes=True)

    id: UUID
    type: FeedItemType
    title: str
    description: Optional[str] = None
    bill_id: Optional[int] = None
    roll_call_id: Optional[int] = None
    people_id: Optional[int] = None
    action_date: date
    subjects: List[str] = Field(default_factory=list)
    districts: List[str] = Field(default_factory=list)
    metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: datetime

    bill_number: Optional[str] = None
    bill_title: Optional[str] = None
    vote_description: Optional[str] = None
    legislator_name: Optional[str] = None


class FeedFilters(BaseModel):
    """User feed query options"""

    type: List[FeedItemType] = Field(default_factory=list)
    subjects: List[str] = Field(default_factory=list)
    start_date: Optional[date] = None
    end_date: Optional[date] = None
    limit: int = Field(default=50, ge=1, le=200)
    offset: int = Field(default=0, ge=0)

    def cache_payload(self) -> Dict[str, Any]:
        return self.model_dump(mode="json")


class FeedStats(BaseModel):
    total_items: int = 0
    items_by_type: Dict[str, int] = Field(default_factory=dict)
    items_last_24h: int = 0
    items_last_7d: int = 0


class LegislativeInterests(BaseModel):
    """A user's followed subjects, districts and feed item types"""

    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    subjects: List[str] = Field(default_factory=list)
    follow_districts: List[str] = Field(default_factory=list)
    notification_types: List[str] = Field(default_factory=lambda: list(DEFAULT_NOTIFICATION_TYPES))
