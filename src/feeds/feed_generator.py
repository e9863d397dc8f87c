"""
Legislative feed item generation.

Turns bill and roll call state transitions into human-readable feed
items (new bill, status change, last action change, vote result) and
keeps the feed table within its retention window.

Responsibility: Derive and persist feed items from legislative changes
"""

from datetime import date, timedelta
from typing import Any, Dict, List, Optional, Protocol, Sequence
from uuid import UUID
import logging

from ..cache.legislative_cache import LegislativeCache
from ..db.repositories.bill_repository import BillState
from ..models.feed import FeedItemType, FeedStats, NewFeedItem
from ..models.legislative import (
    BillDetail,
    RollCall,
    get_chamber_name,
    get_status_text,
)
from ..utils.hash_utils import calculate_hash

logger = logging.getLogger(__name__)


class FeedItemStore(Protocol):
    async def create(self, item: NewFeedItem) -> Optional[UUID]: ...
    async def delete_older_than(self, cutoff: date) -> int: ...
    async def get_stats(self) -> FeedStats: ...


class BillLookup(Protocol):
    async def get_by_id(self, bill_id: int) -> Any: ...
    async def get_by_change_hash(self, change_hash: str) -> Any: ...
    async def get_state(self, bill_id: int) -> Optional[BillState]: ...
    async def get_districts_for_bill(self, bill_id: int) -> List[str]: ...


def truncate_text(text: str, max_length: int) -> str:
    """Cut to ``max_length`` characters, ending with ``...`` when shortened."""
    if len(text) <= max_length:
        return text
    return text[: max_length - 3].strip() + "..."


def get_bill_relevance_score(
    bill: BillDetail,
    user_districts: Sequence[str],
    user_interests: Sequence[str]
) -> int:
    """
    Rough relevance of a bill to a user.

    1 point base, 3 per subject matching an interest (case-insensitive
    substring either way), +2 for passed/vetoed/failed bills or +1 for
    engrossed/enrolled ones.
    """
    score = 1

    interests = [interest.lower() for interest in user_interests]
    for subject in bill.subjects:
        subject_lower = subject.lower()
        if any(subject_lower in interest or interest in subject_lower for interest in interests):
            score += 3

    status = bill.status or 0
    if status >= 4:
        score += 2
    elif status >= 2:
        score += 1

    return score


class FeedItemGenerator:
    """
    Generates feed items from legislative changes.

    Inserts are idempotent: each item carries a dedupe key describing the
    transition, so replaying the same change yields no new row.

    Example:
        generator = FeedItemGenerator(FeedItemRepository(session), BillRepository(session), cache)
        created = await generator.process_bill_introduced(bill)
    """

    def __init__(
        self,
        feed_repo: FeedItemStore,
        bill_repo: BillLookup,
        cache: Optional[LegislativeCache] = None
    ):
        self.feed_repo = feed_repo
        self.bill_repo = bill_repo
        self.cache = cache

    async def create_feed_item(
        self,
        item_type: FeedItemType,
        *,
        bill: Optional[BillDetail] = None,
        roll_call: Optional[RollCall] = None,
        action_date: date,
        metadata: Optional[Dict[str, Any]] = None,
        dedupe_key: str = ""
    ) -> Optional[UUID]:
        """
        Build and store one feed item.

        Args:
            item_type: Kind of event
            bill: Bill the event concerns
            roll_call: Roll call the event concerns
            action_date: Date the event happened
            metadata: Extra JSON metadata
            dedupe_key: Distinguishes repeated events of one type on one bill

        Returns:
            New item id, or None if the same event was already recorded

        Raises:
            ValueError: If no title can be produced for this combination
        """
        title: Optional[str] = None
        description = ""
        subjects: List[str] = []
        districts: List[str] = []
        bill_id: Optional[int] = None
        roll_call_id: Optional[int] = None

        if bill is not None:
            bill_id = bill.bill_id
            subjects = list(bill.subjects)
            districts = await self.bill_repo.get_districts_for_bill(bill.bill_id)

            if item_type is FeedItemType.BILL_INTRODUCED:
                title = f"New Bill: {bill.bill_number} - {bill.title}"
                description = truncate_text(bill.description or "", 200)
            elif item_type is FeedItemType.BILL_UPDATED:
                title = f"Bill Updated: {bill.bill_number}"
                description = f"{bill.title} - {bill.last_action or ''}"
            elif item_type is FeedItemType.STATUS_CHANGE:
                title = f"{bill.bill_number} Status: {get_status_text(bill.status)}"
                description = f"{bill.title} - {bill.last_action or ''}"

        if roll_call is not None:
            roll_call_id = roll_call.roll_call_id
            bill_id = roll_call.bill_id

            stored_bill = await self.bill_repo.get_by_id(roll_call.bill_id)
            if stored_bill is not None:
                subjects = list(stored_bill.subjects or [])
                districts = await self.bill_repo.get_districts_for_bill(roll_call.bill_id)

            if item_type is FeedItemType.VOTE_SCHEDULED:
                scheduled = roll_call.date.isoformat() if roll_call.date else "TBD"
                title = f"Upcoming Vote: {roll_call.desc}"
                description = f"Scheduled for {scheduled}"
            elif item_type is FeedItemType.VOTE_RESULT:
                result_text = "PASSED" if roll_call.did_pass else "FAILED"
                title = f"Vote Result: {roll_call.desc} - {result_text}"
                description = (
                    f"{roll_call.yea} Yes, {roll_call.nay} No, "
                    f"{roll_call.nv} Not Voting, {roll_call.absent} Absent"
                )

        if not title:
            raise ValueError("Unable to generate title for feed item")

        item_id = await self.feed_repo.create(
            NewFeedItem(
                type=item_type,
                title=title,
                description=description,
                bill_id=bill_id,
                roll_call_id=roll_call_id,
                action_date=action_date,
                subjects=subjects,
                districts=districts,
                metadata=metadata or {},
                dedupe_key=dedupe_key,
            )
        )

        if item_id is not None and self.cache is not None:
            await self.cache.invalidate_user_feeds()

        return item_id

    async def process_bill_introduced(self, bill: BillDetail) -> List[UUID]:
        """One ``bill_introduced`` item for a newly seen bill."""
        item_id = await self.create_feed_item(
            FeedItemType.BILL_INTRODUCED,
            bill=bill,
            action_date=bill.status_date or date.today(),
            metadata={
                "chamber": get_chamber_name(bill.chamber),
                "sponsors": [sponsor.name for sponsor in bill.sponsors],
                "committee": bill.committee.name if bill.committee else None,
            },
        )
        return [item_id] if item_id else []

    async def process_bill_status_change(
        self,
        old: Optional[BillState],
        new: BillDetail
    ) -> List[UUID]:
        """
        Items for a changed bill.

        ``status_change`` when the status moved, ``bill_updated`` when the
        last action text changed. With no previous state both are emitted.
        """
        created: List[UUID] = []

        if old is None or old.status != new.status:
            item_id = await self.create_feed_item(
                FeedItemType.STATUS_CHANGE,
                bill=new,
                action_date=new.status_date or date.today(),
                metadata={
                    "previous_status": old.status if old else None,
                    "new_status": new.status,
                    "status_text": get_status_text(new.status),
                    "chamber": get_chamber_name(new.chamber),
                },
                dedupe_key=f"status:{new.status}:{new.status_date}",
            )
            if item_id:
                created.append(item_id)

        if old is None or old.last_action != new.last_action:
            item_id = await self.create_feed_item(
                FeedItemType.BILL_UPDATED,
                bill=new,
                action_date=new.last_action_date or date.today(),
                metadata={
                    "action_type": "last_action_change",
                    "previous_action": old.last_action if old else None,
                    "new_action": new.last_action,
                },
                dedupe_key=f"action:{calculate_hash([new.last_action_date, new.last_action])[:32]}",
            )
            if item_id:
                created.append(item_id)

        return created

    async def process_roll_call_vote(self, roll_call: RollCall) -> List[UUID]:
        """One ``vote_result`` item for a roll call."""
        item_id = await self.create_feed_item(
            FeedItemType.VOTE_RESULT,
            roll_call=roll_call,
            action_date=roll_call.date or date.today(),
            metadata={
                "chamber": get_chamber_name(roll_call.chamber),
                "vote_breakdown": {
                    "yea": roll_call.yea,
                    "nay": roll_call.nay,
                    "not_voting": roll_call.nv,
                    "absent": roll_call.absent,
                    "total": roll_call.total,
                },
                "margin": roll_call.margin,
                "passed": roll_call.did_pass,
            },
        )
        return [item_id] if item_id else []

    async def process_bill_batch(self, bills: Sequence[BillDetail]) -> List[UUID]:
        """
        Generate items for a batch of bill details.

        Bills stored with the same change hash are skipped; known bills
        go through status change detection; unknown bills are new.
        Per-bill failures are logged and skipped.
        """
        created: List[UUID] = []

        for bill in bills:
            try:
                if await self.bill_repo.get_by_change_hash(bill.change_hash) is not None:
                    continue

                previous = await self.bill_repo.get_state(bill.bill_id)
                if previous is None:
                    created.extend(await self.process_bill_introduced(bill))
                else:
                    created.extend(await self.process_bill_status_change(previous, bill))
            except Exception as e:
                logger.error(f"Error processing bill {bill.bill_id}: {e}", exc_info=True)

        return created

    async def cleanup_old_feed_items(self, days_to_keep: int = 180) -> int:
        """Delete items whose action date is older than ``days_to_keep`` days."""
        cutoff = date.today() - timedelta(days=days_to_keep)
        return await self.feed_repo.delete_older_than(cutoff)

    async def get_feed_stats(self) -> FeedStats:
        return await self.feed_repo.get_stats()
