"""
Poll domain models.

Responsibility: Poll configuration, responses and results
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class PollType(str, Enum):
    YES_NO = "yes_no"
    MULTIPLE_CHOICE = "multiple_choice"
    APPROVAL_RATING = "approval_rating"
    RANKED_CHOICE = "ranked_choice"


class PollStatus(str, Enum):
    DRAFT = "draft"
    ACTIVE = "active"
    CLOSED = "closed"
    ARCHIVED = "archived"


class RatingScale(BaseModel):
    min: int = 1
    max: int = 5
    labels: Dict[int, str] = Field(default_factory=dict)


class PollOptions(BaseModel):
    options: Optional[List[str]] = None
    scale: Optional[RatingScale] = None
    candidates: Optional[List[str]] = None


class TargetAudience(BaseModel):
    congressional_districts: Optional[List[str]] = None
    states: Optional[List[str]] = None
    age_groups: Optional[List[str]] = None
    party_affiliations: Optional[List[str]] = None
    voter_registration_status: Optional[bool] = None


class CreatePollInput(BaseModel):
    title: str = Field(min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    poll_type: PollType
    options: Optional[PollOptions] = None
    target_audience: TargetAudience = Field(default_factory=TargetAudience)
    starts_at: Optional[datetime] = None
    ends_at: Optional[datetime] = None
    max_responses: Optional[int] = Field(default=None, ge=1)
    requires_verification: bool = True
    allows_anonymous: bool = False
    show_results_before_vote: bool = False
    show_results_after_vote: bool = True


class UpdatePollInput(BaseModel):
    title: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = Field(default=None, max_length=2000)
    ends_at: Optional[datetime] = None
    status: Optional[PollStatus] = None
    is_active: Optional[bool] = None


class SubmitPollResponseInput(BaseModel):
    response_data: Dict[str, Any]
    response_time_seconds: Optional[int] = Field(default=None, ge=0)


class PollFilters(BaseModel):
    politician_id: Optional[UUID] = None
    status: Optional[PollStatus] = None
    poll_type: Optional[PollType] = None
    is_active: Optional[bool] = None
    search: Optional[str] = None


class Poll(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    politician_id: UUID
    title: str
    description: Optional[str] = None
    poll_type: PollType
    options: Optional[Dict[str, Any]] = None
    target_audience: Dict[str, Any] = Field(default_factory=dict)
    congressional_district: Optional[str] = None
    state_code: Optional[str] = None
    status: PollStatus
    is_active: bool
    starts_at: datetime
    ends_at: Optional[datetime] = None
    max_responses: Optional[int] = None
    requires_verification: bool
    allows_anonymous: bool
    show_results_before_vote: bool
    show_results_after_vote: bool
    total_responses: int = 0
    created_at: datetime
    updated_at: datetime

    # Joined from politician/user
    politician_first_name: Optional[str] = None
    politician_last_name: Optional[str] = None
    office_title: Optional[str] = None
    office_level: Optional[str] = None


class PollEligibility(BaseModel):
    eligible: bool
    reason: Optional[str] = None
    can_view_results: bool
    can_vote: bool
    already_voted: bool


class PollListResult(BaseModel):
    polls: List[Poll]
    total: int
    page: int
    limit: int
    has_more: bool


class PollResults(BaseModel):
    poll: Poll
    response_distribution: Dict[str, int]
    demographic_breakdown: Dict[str, Dict[str, int]]
    total_responses: int
    response_rate: float
    user_has_voted: bool
    time_remaining: Optional[float] = None
