"""
Repository for legislative feed items.

Responsibility: Idempotent feed item inserts, personalized feed queries and retention
"""

from datetime import date, datetime, timedelta
from typing import List, Optional
from uuid import UUID
from sqlalchemy import select, desc, delete, func, or_
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.dialects.postgresql import insert as pg_insert, array
from sqlalchemy import Text
import logging

from ..models import FeedItemModel, BillModel, RollCallModel, LegislatorModel
from ...models.feed import FeedFilters, FeedItem, FeedStats, NewFeedItem

logger = logging.getLogger(__name__)


def _text_array(values: List[str]):
    return array(values, type_=Text)


class FeedItemRepository:
    """
    Repository for feed items.

    Example:
        repo = FeedItemRepository(session)

        item_id = await repo.create(new_item)   # None when already present
        items = await repo.get_user_feed(["SD-05"], ["Education"], FeedFilters())
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    async def create(self, item: NewFeedItem) -> Optional[UUID]:
        """
        Insert a feed item unless the same event was already recorded.

        Uniqueness is on (type, bill_id, roll_call_id, dedupe_key).

        Args:
            item: Feed item to insert

        Returns:
            New item id, or None if an identical event already existed
        """
        values = {
            "type": item.type.value,
            "title": item.title,
            "description": item.description,
            "bill_id": item.bill_id,
            "roll_call_id": item.roll_call_id,
            "people_id": item.people_id,
            "action_date": item.action_date,
            "subjects": list(item.subjects),
            "districts": list(item.districts),
            "metadata": item.metadata,
            "dedupe_key": item.dedupe_key,
        }

        stmt = (
            pg_insert(FeedItemModel.__table__)
            .values(values)
            .on_conflict_do_nothing(constraint="uq_feed_item_event")
            .returning(FeedItemModel.__table__.c.id)
        )
        result = await self.session.execute(stmt)
        item_id = result.scalar_one_or_none()

        if item_id is None:
            logger.debug(
                f"Feed item already present: type={item.type.value}, "
                f"bill_id={item.bill_id}, roll_call_id={item.roll_call_id}"
            )
        return item_id

    async def get_user_feed(
        self,
        districts: List[str],
        interests: List[str],
        filters: FeedFilters
    ) -> List[FeedItem]:
        """
        Personalized feed for a user.

        Items must overlap the user's districts (when any are known).
        When interests are known, items must overlap them or carry no
        subjects at all.

        Args:
            districts: District codes for the user (address + followed)
            interests: Subjects the user follows
            filters: Type/subject/date filters with paging

        Returns:
            Feed items, newest action first
        """
        query = (
            select(
                FeedItemModel,
                BillModel.bill_number,
                BillModel.title.label("bill_title"),
                RollCallModel.description.label("vote_description"),
                LegislatorModel.full_name.label("legislator_name"),
            )
            .outerjoin(BillModel, FeedItemModel.bill_id == BillModel.bill_id)
            .outerjoin(RollCallModel, FeedItemModel.roll_call_id == RollCallModel.roll_call_id)
            .outerjoin(LegislatorModel, FeedItemModel.people_id == LegislatorModel.people_id)
        )

        if districts:
            query = query.where(FeedItemModel.districts.overlap(_text_array(districts)))

        if interests:
            query = query.where(
                or_(
                    FeedItemModel.subjects.overlap(_text_array(interests)),
                    func.array_length(FeedItemModel.subjects, 1).is_(None),
                )
            )

        if filters.type:
            query = query.where(FeedItemModel.type.in_([t.value for t in filters.type]))

        if filters.subjects:
            query = query.where(FeedItemModel.subjects.overlap(_text_array(filters.subjects)))

        if filters.start_date:
            query = query.where(FeedItemModel.action_date >= filters.start_date)
        if filters.end_date:
            query = query.where(FeedItemModel.action_date <= filters.end_date)

        query = (
            query.order_by(desc(FeedItemModel.action_date), desc(FeedItemModel.created_at))
            .limit(filters.limit)
            .offset(filters.offset)
        )

        result = await self.session.execute(query)
        return [
            self._row_to_item(model, bill_number, bill_title, vote_description, legislator_name)
            for model, bill_number, bill_title, vote_description, legislator_name in result
        ]

    async def get_recent(self, limit: int = 50) -> List[FeedItem]:
        """Latest feed items regardless of user, for public syndication."""
        result = await self.session.execute(
            select(FeedItemModel, BillModel.bill_number, BillModel.title)
            .outerjoin(BillModel, FeedItemModel.bill_id == BillModel.bill_id)
            .order_by(desc(FeedItemModel.action_date), desc(FeedItemModel.created_at))
            .limit(limit)
        )
        return [
            self._row_to_item(model, bill_number, bill_title, None, None)
            for model, bill_number, bill_title in result
        ]

    async def delete_older_than(self, cutoff: date) -> int:
        """
        Delete feed items whose action date is before ``cutoff``.

        Returns:
            Number of deleted rows
        """
        result = await self.session.execute(
            delete(FeedItemModel).where(FeedItemModel.action_date < cutoff)
        )
        deleted = result.rowcount or 0
        logger.info(f"Deleted {deleted} feed items older than {cutoff.isoformat()}")
        return deleted

    async def get_stats(self) -> FeedStats:
        now = datetime.utcnow()

        total = await self.session.execute(select(func.count()).select_from(FeedItemModel))

        by_type = await self.session.execute(
            select(FeedItemModel.type, func.count()).group_by(FeedItemModel.type)
        )

        last_24h = await self.session.execute(
            select(func.count()).select_from(FeedItemModel).where(
                FeedItemModel.created_at >= now - timedelta(hours=24)
            )
        )
        last_7d = await self.session.execute(
            select(func.count()).select_from(FeedItemModel).where(
                FeedItemModel.created_at >= now - timedelta(days=7)
            )
        )

        return FeedStats(
            total_items=int(total.scalar_one()),
            items_by_type={item_type: int(count) for item_type, count in by_type},
            items_last_24h=int(last_24h.scalar_one()),
            items_last_7d=int(last_7d.scalar_one()),
        )

    @staticmethod
    def _row_to_item(
        model: FeedItemModel,
        bill_number: Optional[str],
        bill_title: Optional[str],
        vote_description: Optional[str],
        legislator_name: Optional[str],
    ) -> FeedItem:
        return FeedItem(
            id=model.id,
            type=model.type,
            title=model.title,
            description=model.description,
            bill_id=model.bill_id,
            roll_call_id=model.roll_call_id,
            people_id=model.people_id,
            action_date=model.action_date,
            subjects=list(model.subjects or []),
            districts=list(model.districts or []),
            metadata=dict(model.metadata_ or {}),
            created_at=model.created_at,
            bill_number=bill_number,
            bill_title=bill_title,
            vote_description=vote_description,
            legislator_name=legislator_name,
        )
