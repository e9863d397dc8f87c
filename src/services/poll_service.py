"""
Constituent polling service.

Verified politicians create polls for their district; verified
constituents vote once each. Responses carry anonymized demographics
and an integrity hash; every write is audited.

Responsibility: Poll lifecycle, voting eligibility and results
"""

from collections import Counter
from datetime import date, datetime, timezone
from typing import Any, Callable, Dict, List, Optional
from uuid import UUID
import logging

from ..db.repositories.audit_repository import AuditLogRepository
from ..db.repositories.poll_repository import PollRepository
from ..db.repositories.user_repository import UserRepository
from ..exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitExceededError,
    ValidationError,
)
from ..models.notification import NotificationChannel, NotificationType
from ..models.poll import (
    CreatePollInput,
    Poll,
    PollEligibility,
    PollFilters,
    PollListResult,
    PollResults,
    PollStatus,
    PollType,
    SubmitPollResponseInput,
    UpdatePollInput,
)
from ..models.user import AuthUser, UserRole, VerificationStatus
from ..utils.attempt_limiter import AttemptLimiter, attempt_limiter
from ..utils.hash_utils import compute_response_hash
from .notification_service import NotificationService

logger = logging.getLogger(__name__)

CREATE_POLL_LIMIT = (5, 3600)       # 5 per hour
SUBMIT_VOTE_LIMIT = (10, 60)        # 10 per minute
DEFAULT_RESPONSE_TARGET = 1000
FULL_VERIFICATION_SCORE = 100

AGE_GROUPS = [
    (18, 24, "18-24"),
    (25, 34, "25-34"),
    (35, 44, "35-44"),
    (45, 54, "45-54"),
    (55, 64, "55-64"),
]


def _utcnow() -> datetime:
    return datetime.utcnow()


def _as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    if value is None or value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def age_group(date_of_birth: Optional[date], today: date) -> str:
    """Bucket an age for anonymized demographics."""
    if date_of_birth is None:
        return "unknown"

    age = today.year - date_of_birth.year - (
        (today.month, today.day) < (date_of_birth.month, date_of_birth.day)
    )
    if age >= 65:
        return "65+"
    for low, high, label in AGE_GROUPS:
        if low <= age <= high:
            return label
    return "unknown"


def validate_poll_configuration(data: CreatePollInput) -> List[str]:
    """Type-specific checks that the input schema cannot express."""
    errors = []
    options = data.options

    if data.poll_type == PollType.MULTIPLE_CHOICE and (
        options is None or not options.options or len(options.options) < 2
    ):
        errors.append("Multiple choice polls require at least 2 options")

    if data.poll_type == PollType.APPROVAL_RATING and (options is None or options.scale is None):
        errors.append("Approval rating polls require a scale configuration")

    starts_at = _as_naive_utc(data.starts_at)
    ends_at = _as_naive_utc(data.ends_at)
    if starts_at and ends_at and ends_at <= starts_at:
        errors.append("End date must be after start date")

    return errors


def calculate_response_distribution(
    poll_type: PollType,
    responses: List[Dict[str, Any]]
) -> Dict[str, int]:
    counts: Counter = Counter()

    if poll_type == PollType.YES_NO:
        for response in responses:
            counts[str(response.get("answer"))] += 1
    elif poll_type == PollType.MULTIPLE_CHOICE:
        for response in responses:
            for option in response.get("selected") or []:
                counts[str(option)] += 1

    return dict(counts)


def calculate_demographic_breakdown(demographics: List[Dict[str, Any]]) -> Dict[str, Dict[str, int]]:
    age_groups: Counter = Counter()
    districts: Counter = Counter()

    for demo in demographics:
        if demo.get("age_group"):
            age_groups[demo["age_group"]] += 1
        if demo.get("district"):
            districts[demo["district"]] += 1

    breakdown: Dict[str, Dict[str, int]] = {}
    if age_groups:
        breakdown["age_groups"] = dict(age_groups)
    if districts:
        breakdown["districts"] = dict(districts)
    return breakdown


def calculate_response_rate(poll: Poll, response_count: int) -> float:
    if response_count <= 0:
        return 0.0
    return response_count / (poll.max_responses or DEFAULT_RESPONSE_TARGET) * 100


class PollService:
    """
    Poll creation, voting and results.

    Example:
        service = PollService(
            PollRepository(session),
            UserRepository(session),
            AuditLogRepository(session),
            NotificationService(NotificationRepository(session), UserRepository(session)),
        )
        poll = await service.create_poll(politician_user, CreatePollInput(...))
        await service.submit_response(citizen_user, poll.id, SubmitPollResponseInput(...))
    """

    def __init__(
        self,
        polls: PollRepository,
        users: UserRepository,
        audit: AuditLogRepository,
        notifications: Optional[NotificationService] = None,
        limiter: Optional[AttemptLimiter] = None,
        clock: Callable[[], datetime] = _utcnow
    ):
        self.polls = polls
        self.users = users
        self.audit = audit
        self.notifications = notifications
        self.limiter = limiter or attempt_limiter
        self._clock = clock

    def _check_rate(self, user_id: UUID, action: str, limit: tuple, message: str) -> None:
        max_attempts, window_seconds = limit
        result = self.limiter.check_limit(f"{user_id}:{action}", max_attempts, window_seconds)
        if not result.allowed:
            raise RateLimitExceededError(message, retry_after=result.retry_after)

    async def _require_poll(self, poll_id: UUID) -> Poll:
        poll = await self.polls.get_by_id(poll_id)
        if poll is None:
            raise NotFoundError("Poll not found")
        return poll

    async def _require_owned_poll(self, user: AuthUser, poll_id: UUID) -> Poll:
        politician = await self.users.get_politician_by_user(user.id)
        poll = await self.polls.get_by_id(poll_id)
        if poll is None or politician is None or poll.politician_id != politician.id:
            raise NotFoundError("Poll not found or access denied")
        return poll

    # MARK: - Create

    async def create_poll(self, user: AuthUser, data: CreatePollInput) -> Poll:
        """
        Create a poll for the politician's district.

        Raises:
            RateLimitExceededError: More than 5 polls in the last hour
            PermissionDeniedError: Caller is not a verified politician
            ValidationError: Invalid poll configuration
        """
        self._check_rate(
            user.id, "create_poll", CREATE_POLL_LIMIT,
            "Rate limit exceeded. Please try again later."
        )

        politician = await self.users.get_politician_by_user(user.id)
        if politician is None:
            raise PermissionDeniedError("Only verified politicians can create polls")
        if not politician.is_verified:
            raise PermissionDeniedError("Politician verification required to create polls")

        problems = validate_poll_configuration(data)
        if problems:
            raise ValidationError(problems[0])

        now = self._clock()
        data = data.model_copy(update={
            "starts_at": _as_naive_utc(data.starts_at),
            "ends_at": _as_naive_utc(data.ends_at),
        })

        poll = await self.polls.create(
            politician.id,
            data,
            congressional_district=politician.congressional_district,
            state_code=politician.state_code,
            starts_at=data.starts_at or now,
            now=now,
        )

        await self.audit.log(
            user.id,
            "poll_created",
            resource_type="poll",
            resource_id=str(poll.id),
            details={"poll_title": poll.title, "poll_type": poll.poll_type.value},
        )

        if poll.status == PollStatus.ACTIVE:
            await self.notify_constituents_of_new_poll(poll)

        return poll

    async def notify_constituents_of_new_poll(self, poll: Poll) -> int:
        """Send ``new_poll`` notifications to verified citizens in the poll's district."""
        if self.notifications is None or not poll.congressional_district:
            return 0

        constituents = await self.users.list_verified_in_district(poll.congressional_district)
        created = await self.notifications.create_bulk_notifications(
            [constituent.id for constituent in constituents],
            {
                "type": NotificationType.NEW_POLL,
                "title": f"New Poll: {poll.title}"[:255],
                "content": "Your representative has created a new poll. Cast your vote now!",
                "data": {"poll_id": str(poll.id), "poll_title": poll.title, "urgency": "medium"},
                "channels": [NotificationChannel.EMAIL, NotificationChannel.PUSH],
                "priority": 7,
            },
        )
        logger.info(f"Notified {created} constituents of poll {poll.id}")
        return created

    # MARK: - Read

    async def list_polls(
        self,
        user: Optional[AuthUser],
        filters: PollFilters,
        page: int = 1,
        limit: int = 20
    ) -> PollListResult:
        """Citizens only see polls for their own congressional district."""
        district = None
        if user is not None and user.role == UserRole.CITIZEN:
            address = await self.users.get_primary_address(user.id)
            district = address.congressional_district if address else ""

        polls, total = await self.polls.list(filters, district=district, page=page, limit=limit)
        return PollListResult(
            polls=polls,
            total=total,
            page=page,
            limit=limit,
            has_more=(page - 1) * limit + len(polls) < total,
        )

    async def get_poll(self, poll_id: UUID) -> Poll:
        return await self._require_poll(poll_id)

    async def check_eligibility(self, user_id: UUID, poll: Poll) -> PollEligibility:
        user = await self.users.get_by_id(user_id)
        if user is None:
            return PollEligibility(
                eligible=False, reason="User or poll not found",
                can_view_results=False, can_vote=False, already_voted=False,
            )

        already_voted = await self.polls.has_response(poll.id, user_id)

        if not poll.is_active or poll.status != PollStatus.ACTIVE:
            return PollEligibility(
                eligible=False, reason="Poll is not active",
                can_view_results=True, can_vote=False, already_voted=already_voted,
            )

        if poll.requires_verification and user.verification_status != VerificationStatus.VERIFIED.value:
            return PollEligibility(
                eligible=False, reason="Verification required",
                can_view_results=False, can_vote=False, already_voted=already_voted,
            )

        address = await self.users.get_primary_address(user_id)
        user_district = address.congressional_district if address else None
        if user_district != poll.congressional_district:
            return PollEligibility(
                eligible=False, reason="Not in poll constituency",
                can_view_results=False, can_vote=False, already_voted=already_voted,
            )

        return PollEligibility(
            eligible=True,
            can_view_results=True,
            can_vote=not already_voted,
            already_voted=already_voted,
        )

    # MARK: - Vote

    async def submit_response(
        self,
        user: AuthUser,
        poll_id: UUID,
        data: SubmitPollResponseInput
    ) -> None:
        """
        Record a vote.

        Raises:
            RateLimitExceededError: More than 10 votes in the last minute
            NotFoundError: Unknown poll
            ValidationError: Poll not active or already ended
            PermissionDeniedError: Unverified or outside the poll's district
            ConflictError: User already voted
        """
        self._check_rate(user.id, "submit_vote", SUBMIT_VOTE_LIMIT, "Too many votes. Please slow down.")

        poll = await self._require_poll(poll_id)

        eligibility = await self.check_eligibility(user.id, poll)
        if not poll.is_active or poll.status != PollStatus.ACTIVE:
            raise ValidationError("Poll is not currently active")
        if not eligibility.eligible:
            raise PermissionDeniedError(eligibility.reason or "Not eligible to vote on this poll")
        if eligibility.already_voted:
            raise ConflictError("You have already voted on this poll")

        now = self._clock()
        if poll.ends_at and now > poll.ends_at:
            raise ValidationError("Poll has ended")

        profile = await self.users.get_by_id(user.id)
        address = await self.users.get_primary_address(user.id)
        demographics = {
            "age_group": age_group(profile.date_of_birth if profile else None, now.date()),
            "district": (address.congressional_district if address else None) or "unknown",
            "party_affiliation": "undeclared",
        }

        await self.polls.add_response(
            poll.id,
            user.id,
            data.response_data,
            demographics,
            compute_response_hash(str(user.id), str(poll.id), data.response_data),
            FULL_VERIFICATION_SCORE,
            data.response_time_seconds,
        )

        await self.audit.log(
            user.id,
            "poll_response_submitted",
            resource_type="poll",
            resource_id=str(poll.id),
            details={"poll_type": poll.poll_type.value},
        )

    async def get_results(self, user: AuthUser, poll_id: UUID) -> PollResults:
        """
        Aggregated results.

        Raises:
            NotFoundError: Unknown poll
            PermissionDeniedError: Caller may not see results yet
        """
        poll = await self._require_poll(poll_id)

        eligibility = await self.check_eligibility(user.id, poll)
        if not eligibility.can_view_results and not user.is_admin:
            politician = await self.users.get_politician_by_user(user.id)
            if politician is None or politician.id != poll.politician_id:
                raise PermissionDeniedError("Not authorized to view poll results")

        rows = await self.polls.list_responses(poll.id)
        responses = [response for response, _ in rows]
        demographics = [demo for _, demo in rows]

        time_remaining = None
        if poll.ends_at:
            time_remaining = max(0.0, (poll.ends_at - self._clock()).total_seconds())

        return PollResults(
            poll=poll,
            response_distribution=calculate_response_distribution(poll.poll_type, responses),
            demographic_breakdown=calculate_demographic_breakdown(demographics),
            total_responses=len(rows),
            response_rate=calculate_response_rate(poll, len(rows)),
            user_has_voted=eligibility.already_voted,
            time_remaining=time_remaining,
        )

    # MARK: - Manage

    async def update_poll(self, user: AuthUser, poll_id: UUID, data: UpdatePollInput) -> Poll:
        """
        Raises:
            NotFoundError: Unknown poll or not owned by the caller
            ValidationError: Nothing to update
        """
        poll = await self._require_owned_poll(user, poll_id)

        updates = data.model_dump(exclude_none=True)
        if not updates:
            raise ValidationError("No updates provided")
        if "status" in updates:
            updates["status"] = updates["status"].value
        if "ends_at" in updates:
            updates["ends_at"] = _as_naive_utc(updates["ends_at"])

        updated = await self.polls.update(poll.id, poll.politician_id, updates)
        if updated is None:
            raise NotFoundError("Poll not found or access denied")

        await self.audit.log(
            user.id,
            "poll_updated",
            resource_type="poll",
            resource_id=str(poll.id),
            details=data.model_dump(exclude_none=True, mode="json"),
        )
        return updated

    async def delete_poll(self, user: AuthUser, poll_id: UUID) -> None:
        """
        Raises:
            NotFoundError: Unknown poll or not owned by the caller
            ValidationError: Poll already has responses
        """
        poll = await self._require_owned_poll(user, poll_id)

        if poll.total_responses > 0:
            raise ValidationError("Cannot delete poll with responses. Archive it instead.")

        await self.polls.delete(poll.id)
        await self.audit.log(
            user.id,
            "poll_deleted",
            resource_type="poll",
            resource_id=str(poll.id),
        )
