"""
Repository for bill data operations.

Implements repository pattern for bill upserts keyed by LegiScan
``bill_id`` with change_hash based change detection.

Responsibility: Abstract database operations for bills and sponsors
"""

from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional
from sqlalchemy import select, delete
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.dialects.postgresql import insert as pg_insert
import logging

from ..models import BillModel, BillSponsorModel, LegislatorModel
from .persistence import PersistenceOutcome, PersistenceStatus
from ...models.legislative import BillDetail

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class BillState:
    """Detached snapshot of the fields sync compares between versions."""

    bill_id: int
    bill_number: str
    title: str
    status: Optional[int]
    last_action: Optional[str]
    change_hash: str


class BillRepository:
    """
    Repository for bill data persistence.

    ``upsert`` compares LegiScan's ``change_hash`` with the stored one
    and only writes when it differs.

    Example:
        repo = BillRepository(session)

        outcome = await repo.upsert(bill_detail)
        if outcome.created:
            ...

        districts = await repo.get_districts_for_bill(bill_detail.bill_id)
    """

    def __init__(self, session: AsyncSession):
        """
        Initialize repository with database session.

        Args:
            session: Active database session
        """
        self.session = session

    async def get_by_id(self, bill_id: int) -> Optional[BillModel]:
        """Get bill by LegiScan bill_id"""
        result = await self.session.execute(
            select(BillModel).where(BillModel.bill_id == bill_id)
        )
        return result.scalar_one_or_none()

    async def get_state(self, bill_id: int) -> Optional[BillState]:
        """Stored status/last action/hash for a bill, or None if unseen."""
        model = await self.get_by_id(bill_id)
        if model is None:
            return None
        return BillState(
            bill_id=model.bill_id,
            bill_number=model.bill_number,
            title=model.title,
            status=model.status,
            last_action=model.last_action,
            change_hash=model.change_hash,
        )

    async def get_by_change_hash(self, change_hash: str) -> Optional[BillModel]:
        result = await self.session.execute(
            select(BillModel).where(BillModel.change_hash == change_hash).limit(1)
        )
        return result.scalar_one_or_none()

    async def upsert(self, bill: BillDetail) -> PersistenceOutcome[BillModel]:
        """
        Insert or update a bill.

        Args:
            bill: Full bill detail from LegiScan

        Returns:
            PersistenceOutcome; UNCHANGED when the stored change_hash matches
        """
        existing = await self.get_by_id(bill.bill_id)

        if existing is not None and existing.change_hash == bill.change_hash:
            logger.debug(f"Skipped update for bill {bill.bill_number} (unchanged hash)")
            return PersistenceOutcome(model=existing, status=PersistenceStatus.UNCHANGED)

        stmt = pg_insert(BillModel).values(self._detail_to_dict(bill))
        stmt = stmt.on_conflict_do_update(
            index_elements=[BillModel.bill_id],
            set_={
                "session_id": stmt.excluded.session_id,
                "bill_number": stmt.excluded.bill_number,
                "bill_type": stmt.excluded.bill_type,
                "title": stmt.excluded.title,
                "description": stmt.excluded.description,
                "status": stmt.excluded.status,
                "status_date": stmt.excluded.status_date,
                "last_action": stmt.excluded.last_action,
                "last_action_date": stmt.excluded.last_action_date,
                "chamber": stmt.excluded.chamber,
                "current_committee_id": stmt.excluded.current_committee_id,
                "subjects": stmt.excluded.subjects,
                "change_hash": stmt.excluded.change_hash,
                "legiscan_url": stmt.excluded.legiscan_url,
                "state_url": stmt.excluded.state_url,
                "updated_at": datetime.utcnow(),
            }
        ).returning(BillModel)

        result = await self.session.execute(
            stmt,
            execution_options={"populate_existing": True}
        )
        model = result.scalar_one()

        if existing is None:
            logger.debug(f"Created bill {bill.bill_number}")
            return PersistenceOutcome(model=model, status=PersistenceStatus.CREATED)

        logger.debug(f"Updated bill {bill.bill_number}")
        return PersistenceOutcome(model=model, status=PersistenceStatus.UPDATED)

    async def sync_sponsors(self, bill: BillDetail) -> int:
        """
        Replace sponsor links for a bill.

        Legislators must already exist (see
        ``LegislatorRepository.ensure_from_sponsors``).

        Returns:
            Number of sponsor links written
        """
        await self.session.execute(
            delete(BillSponsorModel).where(BillSponsorModel.bill_id == bill.bill_id)
        )

        if not bill.sponsors:
            return 0

        rows = [
            {
                "bill_id": bill.bill_id,
                "people_id": sponsor.people_id,
                "sponsor_type": sponsor.sponsor_type_id,
                "sponsor_order": sponsor.sponsor_order,
            }
            for sponsor in bill.sponsors
        ]

        stmt = pg_insert(BillSponsorModel).values(rows).on_conflict_do_nothing(
            constraint="uq_bill_sponsor"
        )
        await self.session.execute(stmt)
        return len(rows)

    async def get_districts_for_bill(self, bill_id: int) -> List[str]:
        """
        Districts of a bill's active sponsors, used to target feed items.

        Returns:
            Sorted unique district codes (e.g. ``["HD-012", "SD-05"]``)
        """
        result = await self.session.execute(
            select(LegislatorModel.district)
            .join(BillSponsorModel, BillSponsorModel.people_id == LegislatorModel.people_id)
            .where(
                BillSponsorModel.bill_id == bill_id,
                LegislatorModel.active.is_(True),
                LegislatorModel.district.is_not(None),
            )
            .distinct()
        )
        return sorted(district for district in result.scalars().all() if district)

    @staticmethod
    def _detail_to_dict(bill: BillDetail) -> dict:
        return {
            "bill_id": bill.bill_id,
            "session_id": bill.session_id,
            "bill_number": bill.bill_number,
            "bill_type": bill.bill_type,
            "title": bill.title,
            "description": bill.description,
            "status": bill.status,
            "status_date": bill.status_date,
            "last_action": bill.last_action,
            "last_action_date": bill.last_action_date,
            "chamber": bill.chamber,
            "current_committee_id": bill.committee.committee_id if bill.committee else None,
            "subjects": list(bill.subjects),
            "change_hash": bill.change_hash,
            "legiscan_url": bill.url,
            "state_url": bill.state_url,
        }
