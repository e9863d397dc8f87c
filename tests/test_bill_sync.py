from datetime import date
from typing import List

import pytest

from src.cache.legislative_cache import LegislativeCache
from src.exceptions import SyncAlreadyRunningError
from src.models.feed import FeedItemType
from src.models.sync import SyncOptions, SyncProgress
from src.orchestration.bill_sync import BillSyncOrchestrator

from tests.factories import bill_payload, person_payload, roll_call_payload, session_payload, summary_payload
from tests.fakes import FakeDatabase, FakeLegiScan, InMemoryStore

TODAY = date.today().isoformat()


def _bill(bill_id: int = 1001, change_hash: str = "hash-1", **overrides):
    overrides.setdefault("status_date", TODAY)
    overrides.setdefault("last_action_date", TODAY)
    overrides.setdefault("votes", [{"roll_call_id": 9001, "date": TODAY, "desc": "Third Reading"}])
    return bill_payload(bill_id, change_hash, **overrides)


def _legiscan(change_hash: str = "hash-1", **bill_overrides) -> FakeLegiScan:
    return FakeLegiScan(
        sessions=[session_payload(2172), session_payload(2100, prior=1, sine_die=1)],
        summaries=[summary_payload(1001, change_hash)],
        bills={1001: _bill(1001, change_hash, **bill_overrides)},
        roll_calls={9001: roll_call_payload(9001, 1001, date=TODAY)},
        people=[person_payload(501), person_payload(502, role="Sen")],
    )


@pytest.fixture
def store() -> InMemoryStore:
    return InMemoryStore()


@pytest.fixture
def orchestrator_for(store, fake_redis):
    def build(adapter: FakeLegiScan) -> BillSyncOrchestrator:
        return BillSyncOrchestrator(
            adapter=adapter,
            database=FakeDatabase(),
            cache=LegislativeCache(client=fake_redis),
            repositories=store.factory,
        )
    return build


async def test_first_sync_stores_bill_and_creates_feed_items(store, orchestrator_for, fake_redis) -> None:
    orchestrator = orchestrator_for(_legiscan())

    results = await orchestrator.sync_bills()

    assert results.success
    assert results.errors == []
    assert results.sessions_synced == 1
    assert results.legislators_synced == 2
    assert results.bills_processed == 1
    assert results.bills_new == 1
    assert results.bills_updated == 0
    assert results.roll_calls_synced == 1
    assert results.feed_items_created == 2
    assert sorted(item.type for item in store.feed_items.stored) == [
        FeedItemType.BILL_INTRODUCED,
        FeedItemType.VOTE_RESULT,
    ]
    assert store.bills.sponsors[1001] == [501]
    assert "bill:1001" in fake_redis.store
    assert "rollcall:9001" in fake_redis.store
    assert "session:2172" in fake_redis.store


async def test_unchanged_change_hash_skips_bill_and_adds_no_feed_items(store, orchestrator_for) -> None:
    legiscan = _legiscan()
    orchestrator = orchestrator_for(legiscan)
    await orchestrator.sync_bills()
    items_before = len(store.feed_items.items)

    results = await orchestrator.sync_bills()

    assert results.success
    assert results.bills_processed == 1
    assert results.bills_new == 0
    assert results.bills_updated == 0
    assert results.feed_items_created == 0
    assert len(store.feed_items.items) == items_before
    assert legiscan.bill_requests == [1001]


async def test_forced_resync_of_identical_bill_creates_no_duplicates(store, orchestrator_for) -> None:
    legiscan = _legiscan()
    orchestrator = orchestrator_for(legiscan)
    await orchestrator.sync_bills()
    items_before = len(store.feed_items.items)

    results = await orchestrator.sync_bills(SyncOptions(force=True))

    assert results.bills_updated == 1
    assert results.feed_items_created == 0
    assert len(store.feed_items.items) == items_before
    assert legiscan.bill_requests == [1001, 1001]


async def test_changed_hash_with_new_status_emits_status_change(store, orchestrator_for) -> None:
    await orchestrator_for(_legiscan()).sync_bills()

    changed = _legiscan("hash-2", status=2, last_action="Passed Assembly.")
    results = await orchestrator_for(changed).sync_bills()

    assert results.bills_updated == 1
    assert results.feed_items_created == 2
    types = [item.type for item in store.feed_items.stored]
    assert types.count(FeedItemType.STATUS_CHANGE) == 1
    assert types.count(FeedItemType.BILL_UPDATED) == 1
    assert types.count(FeedItemType.VOTE_RESULT) == 1


async def test_concurrent_sync_is_rejected(orchestrator_for) -> None:
    orchestrator = orchestrator_for(_legiscan())
    orchestrator.is_running = True

    with pytest.raises(SyncAlreadyRunningError):
        await orchestrator.sync_bills()


async def test_running_flag_is_released_after_failure(orchestrator_for) -> None:
    legiscan = _legiscan()
    legiscan.sessions = []
    orchestrator = orchestrator_for(legiscan)

    results = await orchestrator.sync_bills()

    assert not results.success
    assert results.errors == ["Sync failed: No sessions found to sync"]
    assert not orchestrator.is_sync_running()
    assert orchestrator.last_results is results


async def test_bill_errors_are_recorded_and_sync_continues(store, orchestrator_for) -> None:
    legiscan = _legiscan()
    legiscan.summaries.insert(0, summary_payload(404, "missing"))
    orchestrator = orchestrator_for(legiscan)

    results = await orchestrator.sync_bills()

    assert results.success
    assert results.bills_processed == 2
    assert results.bills_new == 1
    assert len(results.errors) == 1
    assert results.errors[0].startswith("Bill 404:")


async def test_max_bills_caps_masterlist(store, orchestrator_for) -> None:
    legiscan = _legiscan()
    legiscan.summaries.append(summary_payload(1002, "hash-x"))
    legiscan.bills[1002] = _bill(1002, "hash-x", votes=[])
    orchestrator = orchestrator_for(legiscan)

    results = await orchestrator.sync_bills(SyncOptions(max_bills=1))

    assert results.bills_processed == 1
    assert legiscan.bill_requests == [1001]


async def test_session_filter_selects_one_session(orchestrator_for) -> None:
    orchestrator = orchestrator_for(_legiscan())

    results = await orchestrator.sync_bills(SyncOptions(session_id=2100))

    assert results.success
    assert results.sessions_synced == 1


async def test_progress_events_end_with_complete(orchestrator_for) -> None:
    events: List[SyncProgress] = []
    orchestrator = orchestrator_for(_legiscan())

    await orchestrator.sync_bills(SyncOptions(on_progress=events.append))

    phases = [event.phase for event in events]
    assert phases[0] == "sessions"
    assert {"session_sync", "bills_fetch", "bills_sync", "cleanup"} <= set(phases)
    assert phases[-1] == "complete"
    assert events[-1].message == "Sync completed successfully"


async def test_failing_progress_callback_does_not_abort_sync(orchestrator_for) -> None:
    def explode(progress: SyncProgress) -> None:
        raise RuntimeError("ui gone")

    results = await orchestrator_for(_legiscan()).sync_bills(SyncOptions(on_progress=explode))

    assert results.success


async def test_sync_status_reports_last_run(orchestrator_for) -> None:
    orchestrator = orchestrator_for(_legiscan())
    await orchestrator.sync_bills()

    status = await orchestrator.get_sync_status()

    assert status["is_running"] is False
    assert status["cache_health"] is True
    assert status["last_sync"]["bills_new"] == 1
    assert status["feed_stats"]["total_items"] == 2
