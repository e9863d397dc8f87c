from datetime import date, datetime, timedelta
from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID, uuid4

import pytest

from src.exceptions import (
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    RateLimitExceededError,
    ValidationError,
)
from src.models.poll import (
    CreatePollInput,
    Poll,
    PollFilters,
    PollOptions,
    PollStatus,
    PollType,
    SubmitPollResponseInput,
    UpdatePollInput,
)
from src.models.user import AuthUser, UserRole, VerificationStatus
from src.services.poll_service import PollService, age_group, validate_poll_configuration
from src.utils.attempt_limiter import AttemptLimiter

NOW = datetime(2026, 3, 2, 18, 0)
DISTRICT = "CA-12"


class InMemoryPolls:
    def __init__(self):
        self.polls: Dict[UUID, Poll] = {}
        self.responses: Dict[UUID, List[Tuple[UUID, Dict[str, Any], Dict[str, Any]]]] = {}
        self.list_calls = []

    async def create(self, politician_id, data, *, congressional_district, state_code, starts_at, now) -> Poll:
        poll = Poll(
            id=uuid4(),
            politician_id=politician_id,
            title=data.title,
            poll_type=data.poll_type,
            options=data.options.model_dump(exclude_none=True) if data.options else None,
            congressional_district=congressional_district,
            state_code=state_code,
            status=PollStatus.ACTIVE if starts_at <= now else PollStatus.DRAFT,
            is_active=True,
            starts_at=starts_at,
            ends_at=data.ends_at,
            max_responses=data.max_responses,
            requires_verification=data.requires_verification,
            allows_anonymous=data.allows_anonymous,
            show_results_before_vote=data.show_results_before_vote,
            show_results_after_vote=data.show_results_after_vote,
            created_at=NOW,
            updated_at=NOW,
        )
        self.polls[poll.id] = poll
        self.responses[poll.id] = []
        return poll

    async def get_by_id(self, poll_id: UUID) -> Optional[Poll]:
        return self.polls.get(poll_id)

    async def list(self, filters: PollFilters, district=None, page=1, limit=20):
        self.list_calls.append(district)
        polls = [
            p for p in self.polls.values()
            if district is None or p.congressional_district == district
        ]
        return polls[(page - 1) * limit:page * limit], len(polls)

    async def update(self, poll_id, politician_id, updates) -> Optional[Poll]:
        poll = self.polls.get(poll_id)
        if poll is None or poll.politician_id != politician_id:
            return None
        self.polls[poll_id] = Poll.model_validate({**poll.model_dump(), **updates})
        return self.polls[poll_id]

    async def delete(self, poll_id: UUID) -> bool:
        return self.polls.pop(poll_id, None) is not None

    async def has_response(self, poll_id: UUID, user_id: UUID) -> bool:
        return any(voter == user_id for voter, _, _ in self.responses.get(poll_id, []))

    async def add_response(self, poll_id, user_id, response_data, demographics, response_hash, score, seconds):
        self.responses[poll_id].append((user_id, response_data, demographics))
        poll = self.polls[poll_id]
        self.polls[poll_id] = poll.model_copy(update={"total_responses": poll.total_responses + 1})

    async def list_responses(self, poll_id: UUID):
        return [(data, demo) for _, data, demo in self.responses[poll_id]]


class InMemoryUsers:
    def __init__(self):
        self.profiles: Dict[UUID, SimpleNamespace] = {}
        self.addresses: Dict[UUID, SimpleNamespace] = {}
        self.politicians: Dict[UUID, SimpleNamespace] = {}

    def citizen(self, district: Optional[str] = DISTRICT, verified: bool = True, born=date(1990, 6, 1)) -> AuthUser:
        status = VerificationStatus.VERIFIED if verified else VerificationStatus.PENDING
        user = AuthUser(
            id=uuid4(), email=f"{uuid4().hex}@example.com", first_name="Ada", last_name="Voter",
            role=UserRole.CITIZEN, verification_status=status,
        )
        self.profiles[user.id] = SimpleNamespace(
            id=user.id, verification_status=status.value, date_of_birth=born
        )
        if district is not None:
            self.addresses[user.id] = SimpleNamespace(congressional_district=district)
        return user

    def politician(self, verified: bool = True) -> AuthUser:
        user = AuthUser(
            id=uuid4(), email="rep@example.com", first_name="Pat", last_name="Rep",
            role=UserRole.POLITICIAN, verification_status=VerificationStatus.VERIFIED,
        )
        self.profiles[user.id] = SimpleNamespace(
            id=user.id, verification_status="verified", date_of_birth=None
        )
        self.politicians[user.id] = SimpleNamespace(
            id=uuid4(), is_verified=verified, congressional_district=DISTRICT, state_code="CA"
        )
        return user

    async def get_by_id(self, user_id: UUID):
        return self.profiles.get(user_id)

    async def get_primary_address(self, user_id: UUID):
        return self.addresses.get(user_id)

    async def get_politician_by_user(self, user_id: UUID):
        return self.politicians.get(user_id)

    async def list_verified_in_district(self, district: str):
        return []


class RecordingAudit:
    def __init__(self):
        self.actions: List[str] = []

    async def log(self, user_id, action, **details) -> None:
        self.actions.append(action)


@pytest.fixture
def polls() -> InMemoryPolls:
    return InMemoryPolls()


@pytest.fixture
def users() -> InMemoryUsers:
    return InMemoryUsers()


@pytest.fixture
def audit() -> RecordingAudit:
    return RecordingAudit()


@pytest.fixture
def service(polls, users, audit) -> PollService:
    return PollService(polls, users, audit, limiter=AttemptLimiter(clock=lambda: 1000.0), clock=lambda: NOW)


def _yes_no(**fields) -> CreatePollInput:
    return CreatePollInput(title="Fund the new library?", poll_type=PollType.YES_NO, **fields)


# MARK: - Helpers

def test_age_group_buckets() -> None:
    today = date(2026, 3, 2)

    assert age_group(None, today) == "unknown"
    assert age_group(date(2010, 1, 1), today) == "unknown"
    assert age_group(date(2008, 3, 2), today) == "18-24"
    assert age_group(date(2008, 3, 3), today) == "unknown"
    assert age_group(date(1990, 6, 1), today) == "35-44"
    assert age_group(date(1950, 1, 1), today) == "65+"


def test_poll_configuration_checks() -> None:
    one_option = CreatePollInput(
        title="Pick one", poll_type=PollType.MULTIPLE_CHOICE, options=PollOptions(options=["Only"])
    )
    no_scale = CreatePollInput(title="Rate me", poll_type=PollType.APPROVAL_RATING)
    backwards = _yes_no(starts_at=NOW, ends_at=NOW - timedelta(days=1))

    assert validate_poll_configuration(one_option) == ["Multiple choice polls require at least 2 options"]
    assert validate_poll_configuration(no_scale) == ["Approval rating polls require a scale configuration"]
    assert validate_poll_configuration(backwards) == ["End date must be after start date"]
    assert validate_poll_configuration(_yes_no()) == []


# MARK: - Create

async def test_create_poll_for_politician_district(service, users, audit) -> None:
    politician = users.politician()

    poll = await service.create_poll(politician, _yes_no())

    assert poll.status == PollStatus.ACTIVE
    assert poll.congressional_district == DISTRICT
    assert poll.starts_at == NOW
    assert audit.actions == ["poll_created"]


async def test_future_poll_starts_as_draft_by_service_clock(service, users) -> None:
    poll = await service.create_poll(users.politician(), _yes_no(starts_at=NOW + timedelta(days=1)))

    assert poll.status == PollStatus.DRAFT
    assert poll.starts_at == NOW + timedelta(days=1)


async def test_citizen_cannot_create_poll(service, users) -> None:
    with pytest.raises(PermissionDeniedError):
        await service.create_poll(users.citizen(), _yes_no())


async def test_unverified_politician_cannot_create_poll(service, users) -> None:
    with pytest.raises(PermissionDeniedError):
        await service.create_poll(users.politician(verified=False), _yes_no())


async def test_invalid_poll_rejected(service, users) -> None:
    bad = CreatePollInput(title="Pick", poll_type=PollType.MULTIPLE_CHOICE)

    with pytest.raises(ValidationError):
        await service.create_poll(users.politician(), bad)


async def test_create_poll_rate_limited(service, users) -> None:
    politician = users.politician()
    for _ in range(5):
        await service.create_poll(politician, _yes_no())

    with pytest.raises(RateLimitExceededError) as exc_info:
        await service.create_poll(politician, _yes_no())

    assert exc_info.value.retry_after > 0


# MARK: - Vote

async def test_vote_and_results(service, users, audit) -> None:
    politician = users.politician()
    poll = await service.create_poll(politician, _yes_no())

    await service.submit_response(users.citizen(), poll.id, SubmitPollResponseInput(response_data={"answer": "yes"}))
    await service.submit_response(users.citizen(), poll.id, SubmitPollResponseInput(response_data={"answer": "yes"}))
    await service.submit_response(users.citizen(), poll.id, SubmitPollResponseInput(response_data={"answer": "no"}))

    results = await service.get_results(politician, poll.id)

    assert results.total_responses == 3
    assert results.response_distribution == {"yes": 2, "no": 1}
    assert results.demographic_breakdown == {"age_groups": {"35-44": 3}, "districts": {DISTRICT: 3}}
    assert results.response_rate == pytest.approx(0.3)
    assert audit.actions.count("poll_response_submitted") == 3


async def test_second_vote_conflicts(service, users) -> None:
    poll = await service.create_poll(users.politician(), _yes_no())
    voter = users.citizen()
    vote = SubmitPollResponseInput(response_data={"answer": "yes"})

    await service.submit_response(voter, poll.id, vote)
    with pytest.raises(ConflictError):
        await service.submit_response(voter, poll.id, vote)


async def test_vote_outside_district_denied(service, users) -> None:
    poll = await service.create_poll(users.politician(), _yes_no())

    with pytest.raises(PermissionDeniedError, match="constituency"):
        await service.submit_response(
            users.citizen(district="NY-3"), poll.id, SubmitPollResponseInput(response_data={"answer": "no"})
        )


async def test_unverified_vote_denied(service, users) -> None:
    poll = await service.create_poll(users.politician(), _yes_no())

    with pytest.raises(PermissionDeniedError, match="Verification"):
        await service.submit_response(
            users.citizen(verified=False), poll.id, SubmitPollResponseInput(response_data={"answer": "no"})
        )


async def test_vote_on_ended_poll(service, users) -> None:
    poll = await service.create_poll(
        users.politician(), _yes_no(starts_at=NOW - timedelta(days=7), ends_at=NOW - timedelta(hours=1))
    )

    with pytest.raises(ValidationError, match="ended"):
        await service.submit_response(users.citizen(), poll.id, SubmitPollResponseInput(response_data={"answer": "no"}))


async def test_vote_on_closed_poll(service, polls, users) -> None:
    poll = await service.create_poll(users.politician(), _yes_no())
    polls.polls[poll.id] = poll.model_copy(update={"status": PollStatus.CLOSED})

    with pytest.raises(ValidationError, match="not currently active"):
        await service.submit_response(users.citizen(), poll.id, SubmitPollResponseInput(response_data={"answer": "no"}))


async def test_vote_on_unknown_poll(service, users) -> None:
    with pytest.raises(NotFoundError):
        await service.submit_response(users.citizen(), uuid4(), SubmitPollResponseInput(response_data={}))


async def test_results_hidden_from_other_districts(service, users) -> None:
    poll = await service.create_poll(users.politician(), _yes_no())

    with pytest.raises(PermissionDeniedError):
        await service.get_results(users.citizen(district="NY-3"), poll.id)


# MARK: - List and manage

async def test_citizen_list_scoped_to_district(service, polls, users) -> None:
    await service.list_polls(users.citizen(), PollFilters())
    await service.list_polls(users.citizen(district=None), PollFilters())
    await service.list_polls(None, PollFilters())

    assert polls.list_calls == [DISTRICT, "", None]


async def test_update_poll_requires_owner(service, users) -> None:
    poll = await service.create_poll(users.politician(), _yes_no())

    with pytest.raises(NotFoundError):
        await service.update_poll(users.politician(), poll.id, UpdatePollInput(title="Mine now"))


async def test_update_poll(service, users, audit) -> None:
    owner = users.politician()
    poll = await service.create_poll(owner, _yes_no())

    updated = await service.update_poll(owner, poll.id, UpdatePollInput(status=PollStatus.CLOSED))

    assert updated.status == PollStatus.CLOSED
    assert audit.actions[-1] == "poll_updated"

    with pytest.raises(ValidationError):
        await service.update_poll(owner, poll.id, UpdatePollInput())


async def test_delete_poll_with_responses_refused(service, polls, users) -> None:
    owner = users.politician()
    poll = await service.create_poll(owner, _yes_no())
    await service.submit_response(users.citizen(), poll.id, SubmitPollResponseInput(response_data={"answer": "yes"}))

    with pytest.raises(ValidationError, match="Archive"):
        await service.delete_poll(owner, poll.id)

    assert poll.id in polls.polls


async def test_delete_empty_poll(service, polls, users, audit) -> None:
    owner = users.politician()
    poll = await service.create_poll(owner, _yes_no())

    await service.delete_poll(owner, poll.id)

    assert poll.id not in polls.polls
    assert audit.actions[-1] == "poll_deleted"
