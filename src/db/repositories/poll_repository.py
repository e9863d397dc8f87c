"""
Repository for polls and poll responses.

Responsibility: Poll CRUD, listing with politician details, and response storage
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID
from sqlalchemy import select, desc, func, or_, update, delete
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..models import PollModel, PollResponseModel, PoliticianModel, UserModel
from ...models.poll import CreatePollInput, Poll, PollFilters

logger = logging.getLogger(__name__)


class PollRepository:
    """
    Repository for polls.

    Reads return ``Poll`` domain objects joined with the owning
    politician's name and office.

    Example:
        repo = PollRepository(session)
        polls, total = await repo.list(PollFilters(status="active"), district="NV-03")
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def _joined_select(self):
        return (
            select(
                PollModel,
                UserModel.first_name,
                UserModel.last_name,
                PoliticianModel.office_title,
                PoliticianModel.office_level,
            )
            .join(PoliticianModel, PoliticianModel.id == PollModel.politician_id)
            .join(UserModel, UserModel.id == PoliticianModel.user_id)
        )

    @staticmethod
    def _to_domain(row) -> Poll:
        model, first_name, last_name, office_title, office_level = row
        poll = Poll.model_validate(model)
        return poll.model_copy(
            update={
                "politician_first_name": first_name,
                "politician_last_name": last_name,
                "office_title": office_title,
                "office_level": office_level,
            }
        )

    async def create(
        self,
        politician_id: UUID,
        data: CreatePollInput,
        *,
        congressional_district: Optional[str],
        state_code: Optional[str],
        starts_at: datetime,
        now: datetime,
    ) -> Poll:
        """
        Insert a poll owned by a politician.

        Polls starting by ``now`` are created ``active``; future polls start as ``draft``.
        """
        status = "active" if starts_at <= now else "draft"
        model = PollModel(
            politician_id=politician_id,
            title=data.title,
            description=data.description,
            poll_type=data.poll_type.value,
            options=data.options.model_dump(exclude_none=True) if data.options else None,
            target_audience=data.target_audience.model_dump(exclude_none=True),
            congressional_district=congressional_district,
            state_code=state_code,
            status=status,
            is_active=True,
            starts_at=starts_at,
            ends_at=data.ends_at,
            max_responses=data.max_responses,
            requires_verification=data.requires_verification,
            allows_anonymous=data.allows_anonymous,
            show_results_before_vote=data.show_results_before_vote,
            show_results_after_vote=data.show_results_after_vote,
            total_responses=0,
        )
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)

        poll = await self.get_by_id(model.id)
        logger.info(f"Created poll {model.id} ({model.poll_type})")
        return poll

    async def get_by_id(self, poll_id: UUID) -> Optional[Poll]:
        result = await self.session.execute(
            self._joined_select().where(PollModel.id == poll_id)
        )
        row = result.one_or_none()
        return self._to_domain(row) if row else None

    async def list(
        self,
        filters: PollFilters,
        *,
        district: Optional[str] = None,
        page: int = 1,
        limit: int = 20
    ) -> Tuple[List[Poll], int]:
        """
        List polls with optional constituency restriction.

        Args:
            filters: politician/status/type/active/search filters
            district: Congressional district to restrict to (citizens)
            page: 1-based page
            limit: Page size

        Returns:
            (polls, total matching)
        """
        conditions = []
        if district is not None:
            conditions.append(PollModel.congressional_district == district)
        if filters.politician_id is not None:
            conditions.append(PollModel.politician_id == filters.politician_id)
        if filters.status is not None:
            conditions.append(PollModel.status == filters.status.value)
        if filters.poll_type is not None:
            conditions.append(PollModel.poll_type == filters.poll_type.value)
        if filters.is_active is not None:
            conditions.append(PollModel.is_active.is_(filters.is_active))
        if filters.search:
            pattern = f"%{filters.search}%"
            conditions.append(
                or_(PollModel.title.ilike(pattern), PollModel.description.ilike(pattern))
            )

        count_result = await self.session.execute(
            select(func.count()).select_from(PollModel).where(*conditions)
        )
        total = int(count_result.scalar_one())

        result = await self.session.execute(
            self._joined_select()
            .where(*conditions)
            .order_by(desc(PollModel.created_at))
            .limit(limit)
            .offset((page - 1) * limit)
        )
        return [self._to_domain(row) for row in result], total

    async def update(
        self,
        poll_id: UUID,
        politician_id: UUID,
        updates: Dict[str, Any]
    ) -> Optional[Poll]:
        """Apply updates to a poll owned by ``politician_id``; None if not owned."""
        result = await self.session.execute(
            update(PollModel)
            .where(PollModel.id == poll_id, PollModel.politician_id == politician_id)
            .values(**updates, updated_at=datetime.utcnow())
            .returning(PollModel.id)
        )
        if result.scalar_one_or_none() is None:
            return None
        return await self.get_by_id(poll_id)

    async def delete(self, poll_id: UUID) -> bool:
        result = await self.session.execute(
            delete(PollModel).where(PollModel.id == poll_id)
        )
        return (result.rowcount or 0) > 0

    async def has_response(self, poll_id: UUID, user_id: UUID) -> bool:
        result = await self.session.execute(
            select(PollResponseModel.id).where(
                PollResponseModel.poll_id == poll_id,
                PollResponseModel.user_id == user_id,
            )
        )
        return result.scalar_one_or_none() is not None

    async def add_response(
        self,
        poll_id: UUID,
        user_id: UUID,
        response_data: Dict[str, Any],
        demographic_data: Dict[str, Any],
        response_hash: str,
        verification_score: int,
        response_time_seconds: Optional[int],
    ) -> PollResponseModel:
        """Store a response and bump the poll's response counter."""
        response = PollResponseModel(
            poll_id=poll_id,
            user_id=user_id,
            response_data=response_data,
            demographic_data=demographic_data,
            response_hash=response_hash,
            verification_score=verification_score,
            response_time_seconds=response_time_seconds,
        )
        self.session.add(response)
        await self.session.execute(
            update(PollModel)
            .where(PollModel.id == poll_id)
            .values(total_responses=PollModel.total_responses + 1)
        )
        await self.session.flush()
        return response

    async def list_responses(self, poll_id: UUID) -> List[Tuple[Dict[str, Any], Dict[str, Any]]]:
        """(response_data, demographic_data) for every response to a poll."""
        result = await self.session.execute(
            select(PollResponseModel.response_data, PollResponseModel.demographic_data)
            .where(PollResponseModel.poll_id == poll_id)
        )
        return [(data or {}, demographics or {}) for data, demographics in result]
