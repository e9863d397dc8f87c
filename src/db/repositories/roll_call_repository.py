"""
Repository for roll call votes.

Responsibility: Upsert roll calls and replace individual legislator votes
"""

from datetime import datetime
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.dialects.postgresql import insert as pg_insert
import logging

from ..models import RollCallModel, IndividualVoteModel, LegislatorModel
from .persistence import PersistenceOutcome, inserted_flag, status_from_flag
from ...models.legislative import RollCall

logger = logging.getLogger(__name__)


class RollCallRepository:
    """
    Repository for roll calls keyed by LegiScan ``roll_call_id``.

    Example:
        repo = RollCallRepository(session)
        outcome = await repo.sync_roll_call(roll_call)
        if outcome.created:
            ...
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def sync_roll_call(self, roll_call: RollCall) -> PersistenceOutcome[RollCallModel]:
        """
        Upsert a roll call and replace its individual votes.

        Args:
            roll_call: Full roll call from LegiScan

        Returns:
            PersistenceOutcome; CREATED the first time a roll call is seen
        """
        values = {
            "roll_call_id": roll_call.roll_call_id,
            "bill_id": roll_call.bill_id,
            "date": roll_call.date,
            "description": roll_call.desc,
            "chamber": roll_call.chamber,
            "yea_count": roll_call.yea,
            "nay_count": roll_call.nay,
            "not_voting_count": roll_call.nv,
            "absent_count": roll_call.absent,
            "total_count": roll_call.total,
            "passed": roll_call.did_pass,
            "legiscan_url": roll_call.url,
            "state_url": roll_call.state_url,
        }

        stmt = pg_insert(RollCallModel).values(values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[RollCallModel.roll_call_id],
            set_={
                "date": stmt.excluded.date,
                "description": stmt.excluded.description,
                "chamber": stmt.excluded.chamber,
                "yea_count": stmt.excluded.yea_count,
                "nay_count": stmt.excluded.nay_count,
                "not_voting_count": stmt.excluded.not_voting_count,
                "absent_count": stmt.excluded.absent_count,
                "total_count": stmt.excluded.total_count,
                "passed": stmt.excluded.passed,
                "legiscan_url": stmt.excluded.legiscan_url,
                "state_url": stmt.excluded.state_url,
                "updated_at": datetime.utcnow(),
            }
        ).returning(RollCallModel, inserted_flag())

        result = await self.session.execute(stmt)
        model, inserted = result.one()

        await self.session.execute(
            delete(IndividualVoteModel).where(
                IndividualVoteModel.roll_call_id == roll_call.roll_call_id
            )
        )
        await self._insert_votes(roll_call)

        return PersistenceOutcome(model=model, status=status_from_flag(inserted))

    async def _insert_votes(self, roll_call: RollCall) -> None:
        if not roll_call.votes:
            return

        # Votes by people we have never synced are dropped
        known = await self.session.execute(
            select(LegislatorModel.people_id).where(
                LegislatorModel.people_id.in_([vote.people_id for vote in roll_call.votes])
            )
        )
        known_ids = set(known.scalars().all())

        rows = [
            {
                "roll_call_id": roll_call.roll_call_id,
                "people_id": vote.people_id,
                "vote_type": vote.vote_id,
                "vote_text": vote.vote_text,
            }
            for vote in roll_call.votes
            if vote.people_id in known_ids
        ]
        if not rows:
            return

        stmt = pg_insert(IndividualVoteModel).values(rows).on_conflict_do_nothing(
            constraint="uq_individual_vote"
        )
        await self.session.execute(stmt)

