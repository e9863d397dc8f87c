from datetime import date, timedelta

import pytest

from src.cache.legislative_cache import LegislativeCache
from src.feeds.feed_generator import FeedItemGenerator, get_bill_relevance_score, truncate_text
from src.models.feed import FeedItemType
from src.models.legislative import BillDetail, RollCall

from tests.factories import bill_payload, roll_call_payload
from tests.fakes import InMemoryBillRepository, InMemoryFeedStore


def _bill(**overrides) -> BillDetail:
    return BillDetail.model_validate(bill_payload(**overrides))


@pytest.fixture
def feed_store() -> InMemoryFeedStore:
    return InMemoryFeedStore()


@pytest.fixture
def bill_repo() -> InMemoryBillRepository:
    return InMemoryBillRepository(districts={1001: ["HD-012"]})


@pytest.fixture
def generator(feed_store, bill_repo) -> FeedItemGenerator:
    return FeedItemGenerator(feed_store, bill_repo)


def test_truncate_text() -> None:
    assert truncate_text("short", 10) == "short"
    assert truncate_text("a" * 20, 10) == "aaaaaaa..."


def test_relevance_score_counts_subjects_and_status() -> None:
    bill = _bill(status=4)

    assert get_bill_relevance_score(bill, [], ["education"]) == 1 + 3 + 2
    assert get_bill_relevance_score(_bill(status=2), [], []) == 2
    assert get_bill_relevance_score(_bill(status=1), [], ["Taxes"]) == 1


async def test_bill_introduced_item(generator, feed_store) -> None:
    bill = _bill(description="x" * 300)

    created = await generator.process_bill_introduced(bill)

    assert len(created) == 1
    item = feed_store.stored[0]
    assert item.type is FeedItemType.BILL_INTRODUCED
    assert item.title == "New Bill: AB1001 - Revises provisions relating to education."
    assert len(item.description) == 200
    assert item.districts == ["HD-012"]
    assert item.subjects == ["Education"]
    assert item.metadata["chamber"] == "House"
    assert item.metadata["sponsors"] == ["Jane Doe"]
    assert item.action_date == date(2025, 2, 3)


async def test_replaying_introduction_is_deduplicated(generator, feed_store) -> None:
    bill = _bill()

    assert await generator.process_bill_introduced(bill)
    assert await generator.process_bill_introduced(bill) == []
    assert len(feed_store.items) == 1


async def test_vote_result_item_uses_stored_bill_labels(generator, feed_store, bill_repo) -> None:
    await bill_repo.upsert(_bill())
    roll_call = RollCall.model_validate(roll_call_payload(passed=0, yea=10, nay=30))

    await generator.process_roll_call_vote(roll_call)

    item = feed_store.stored[0]
    assert item.type is FeedItemType.VOTE_RESULT
    assert item.title == "Vote Result: Third Reading - FAILED"
    assert item.description == "10 Yes, 30 No, 0 Not Voting, 0 Absent"
    assert item.subjects == ["Education"]
    assert item.roll_call_id == 9001
    assert item.metadata["margin"] == -20
    assert item.metadata["passed"] is False


async def test_status_change_and_action_change(generator, feed_store, bill_repo) -> None:
    old_bill = _bill()
    await bill_repo.upsert(old_bill)
    previous = await bill_repo.get_state(1001)

    new_bill = _bill(status=2, last_action="Passed Assembly.", change_hash="hash-2")
    created = await generator.process_bill_status_change(previous, new_bill)

    assert len(created) == 2
    by_type = {item.type: item for item in feed_store.stored}
    status_item = by_type[FeedItemType.STATUS_CHANGE]
    assert status_item.title == "AB1001 Status: Engrossed"
    assert status_item.metadata["previous_status"] == 1
    assert by_type[FeedItemType.BILL_UPDATED].metadata["new_action"] == "Passed Assembly."


async def test_returning_to_earlier_status_emits_new_item(generator, feed_store, bill_repo) -> None:
    history = [
        _bill(status=2, status_date="2025-03-01"),
        _bill(status=3, status_date="2025-04-01"),
        _bill(status=2, status_date="2025-05-01"),
    ]
    await bill_repo.upsert(_bill())

    for bill in history:
        await generator.process_bill_status_change(await bill_repo.get_state(1001), bill)
        await bill_repo.upsert(bill)

    statuses = [
        item.metadata["new_status"]
        for item in feed_store.stored
        if item.type == FeedItemType.STATUS_CHANGE
    ]
    assert statuses == [2, 3, 2]


async def test_identical_state_emits_nothing(generator, feed_store, bill_repo) -> None:
    bill = _bill()
    await bill_repo.upsert(bill)

    assert await generator.process_bill_status_change(await bill_repo.get_state(1001), bill) == []
    assert feed_store.items == {}


async def test_missing_title_is_rejected(generator) -> None:
    with pytest.raises(ValueError, match="Unable to generate title"):
        await generator.create_feed_item(FeedItemType.VOTE_RESULT, action_date=date.today())


async def test_batch_skips_known_change_hashes(generator, feed_store, bill_repo) -> None:
    known = _bill(bill_id=1001, change_hash="same")
    await bill_repo.upsert(known)
    fresh = _bill(bill_id=1002, change_hash="fresh")

    created = await generator.process_bill_batch([known, fresh])

    assert len(created) == 1
    assert feed_store.stored[0].bill_id == 1002


async def test_new_items_invalidate_user_feeds(feed_store, bill_repo, fake_redis) -> None:
    cache = LegislativeCache(client=fake_redis)
    await cache.set_user_feed("u1", "abc", [])
    generator = FeedItemGenerator(feed_store, bill_repo, cache)

    await generator.process_bill_introduced(_bill())

    assert "feed:user:u1:abc" not in fake_redis.store


async def test_cleanup_removes_items_past_retention(generator, feed_store) -> None:
    await generator.process_bill_introduced(_bill(status_date=(date.today() - timedelta(days=200)).isoformat()))
    await generator.process_bill_introduced(_bill(bill_id=1002, status_date=date.today().isoformat()))

    assert await generator.cleanup_old_feed_items(180) == 1
    assert [item.bill_id for item in feed_store.stored] == [1002]
