"""
Legislative bill sync orchestration.

Coordinates LegiScan fetching, relational upserts, feed item generation
and cache maintenance for one state's legislature.

Responsibility: Run (at most one at a time) legislative sync passes
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Any, Callable, Dict, List, Optional
import logging
import time

from sqlalchemy.ext.asyncio import AsyncSession

from ..adapters.legiscan_adapter import LegiScanAdapter
from ..cache.legislative_cache import LegislativeCache, legislative_cache
from ..config import settings
from ..db.repositories.bill_repository import BillRepository
from ..db.repositories.feed_repository import FeedItemRepository
from ..db.repositories.legislative_session_repository import LegislativeSessionRepository
from ..db.repositories.legislator_repository import LegislatorRepository
from ..db.repositories.roll_call_repository import RollCallRepository
from ..db.session import Database, db
from ..exceptions import SyncAlreadyRunningError
from ..feeds.feed_generator import FeedItemGenerator
from ..models.legislative import BillSummary, LegislativeSession
from ..models.sync import SyncOptions, SyncProgress, SyncResults

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class SyncRepositories:
    """Repositories bound to one database session."""

    sessions: Any
    legislators: Any
    bills: Any
    roll_calls: Any
    feed_items: Any

    @classmethod
    def for_session(cls, session: AsyncSession) -> "SyncRepositories":
        return cls(
            sessions=LegislativeSessionRepository(session),
            legislators=LegislatorRepository(session),
            bills=BillRepository(session),
            roll_calls=RollCallRepository(session),
            feed_items=FeedItemRepository(session),
        )


RepositoryFactory = Callable[[AsyncSession], SyncRepositories]


class BillSyncOrchestrator:
    """
    Orchestrates a legislative sync pass.

    Pipeline stages:
    1. Fetch the state's sessions and pick the ones to sync
    2. Upsert each session and its legislators
    3. Walk each session's masterlist; fetch and store bills whose
       change hash moved, with their sponsors and roll calls
    4. Generate feed items for new and changed bills and new votes
    5. Prune feed items past the retention window

    Failures inside a stage are recorded in ``SyncResults.errors`` and the
    pass continues. Each bill is written in its own transaction.

    Example:
        orchestrator = BillSyncOrchestrator.get_instance()
        results = await orchestrator.quick_sync()
        print(results.bills_new, results.errors)
    """

    _instance: Optional["BillSyncOrchestrator"] = None

    def __init__(
        self,
        adapter: Optional[LegiScanAdapter] = None,
        database: Optional[Database] = None,
        cache: Optional[LegislativeCache] = None,
        repositories: Optional[RepositoryFactory] = None,
    ):
        """
        Args:
            adapter: LegiScan adapter (created on first sync when omitted)
            database: Database manager (defaults to the global one)
            cache: Legislative cache (defaults to the global one)
            repositories: Builds repositories for a session
        """
        self._adapter = adapter
        self.database = database or db
        self.cache = cache or legislative_cache
        self.repositories = repositories or SyncRepositories.for_session

        self.is_running = False
        self.last_results: Optional[SyncResults] = None

    @classmethod
    def get_instance(cls) -> "BillSyncOrchestrator":
        if cls._instance is None:
            cls._instance = cls()
        return cls._instance

    @property
    def adapter(self) -> LegiScanAdapter:
        # Raises ConfigurationError without an API key
        if self._adapter is None:
            self._adapter = LegiScanAdapter()
        return self._adapter

    def _generator(self, repos: SyncRepositories) -> FeedItemGenerator:
        return FeedItemGenerator(repos.feed_items, repos.bills, self.cache)

    @staticmethod
    def _emit(options: SyncOptions, phase: str, current: int, total: int, message: str) -> None:
        if options.on_progress is None:
            return
        try:
            options.on_progress(SyncProgress(phase=phase, current=current, total=total, message=message))
        except Exception as e:
            logger.warning(f"Progress callback failed: {e}")

    # MARK: - Entry points

    async def sync_bills(self, options: Optional[SyncOptions] = None) -> SyncResults:
        """
        Run one sync pass.

        Args:
            options: Session filter, force flag, bill cap and progress callback

        Returns:
            SyncResults with counters and per-item error strings

        Raises:
            SyncAlreadyRunningError: If a pass is already running in this process
            ConfigurationError: If no LegiScan API key is configured
        """
        options = options or SyncOptions()

        if self.is_running:
            raise SyncAlreadyRunningError()

        adapter = self.adapter
        self.is_running = True

        start = time.monotonic()
        results = SyncResults(started_at=datetime.utcnow())

        try:
            logger.info(
                f"Starting legislative sync for {adapter.state}: "
                f"session_id={options.session_id}, force={options.force}, "
                f"max_bills={options.max_bills}"
            )

            if not self.database.is_initialized:
                await self.database.initialize()

            self._emit(options, "sessions", 0, 1, f"Fetching {adapter.state} legislative sessions...")
            sessions = await self._select_sessions(adapter, options)
            logger.info(f"Found {len(sessions)} sessions to sync")

            for index, session in enumerate(sessions, start=1):
                self._emit(
                    options, "session_sync", index, len(sessions),
                    f"Syncing session {session.session_name}..."
                )
                await self._sync_session_metadata(adapter, session, results)

            for index, session in enumerate(sessions, start=1):
                self._emit(
                    options, "bills_fetch", index, len(sessions),
                    f"Fetching bills for {session.session_name}..."
                )
                await self._sync_session_bills(adapter, session, options, results)

            if options.session_id is None:
                self._emit(options, "cleanup", 1, 1, "Cleaning up old feed items...")
                await self._cleanup(results)

            results.success = True
            logger.info(
                f"Legislative sync completed: sessions={results.sessions_synced}, "
                f"bills_new={results.bills_new}, bills_updated={results.bills_updated}, "
                f"legislators={results.legislators_synced}, "
                f"feed_items={results.feed_items_created}, errors={len(results.errors)}"
            )

        except Exception as e:
            logger.error(f"Legislative sync failed: {e}", exc_info=True)
            results.errors.append(f"Sync failed: {e}")
            results.success = False

        finally:
            self.is_running = False
            results.duration_ms = int((time.monotonic() - start) * 1000)
            results.completed_at = datetime.utcnow()
            self.last_results = results
            self._emit(
                options, "complete", 1, 1,
                "Sync completed successfully" if results.success else "Sync failed"
            )

        return results

    async def quick_sync(self) -> SyncResults:
        """Recent changes only: first bills of the masterlist, unchanged hashes skipped."""
        return await self.sync_bills(
            SyncOptions(max_bills=settings.sync.quick_sync_max_bills, force=False)
        )

    async def full_sync(self) -> SyncResults:
        return await self.sync_bills(SyncOptions(force=True))

    async def sync_session(self, session_id: int) -> SyncResults:
        return await self.sync_bills(SyncOptions(session_id=session_id, force=True))

    def is_sync_running(self) -> bool:
        return self.is_running

    async def get_sync_status(self) -> Dict[str, Any]:
        """
        Current sync state.

        Returns:
            Dict with ``is_running``, ``last_sync``, ``cache_health`` and
            ``feed_stats`` (None when the database is unreachable)
        """
        cache_health = await self.cache.health_check()

        feed_stats = None
        try:
            if not self.database.is_initialized:
                await self.database.initialize()
            async with self.database.session() as session:
                repos = self.repositories(session)
                feed_stats = (await self._generator(repos).get_feed_stats()).model_dump()
        except Exception as e:
            logger.error(f"Error reading feed stats: {e}")

        return {
            "is_running": self.is_running,
            "last_sync": self.last_results.to_dict() if self.last_results else None,
            "cache_health": cache_health,
            "feed_stats": feed_stats,
        }

    # MARK: - Stages

    async def _select_sessions(
        self,
        adapter: LegiScanAdapter,
        options: SyncOptions
    ) -> List[LegislativeSession]:
        all_sessions = await adapter.get_sessions()

        if options.session_id is not None:
            selected = [s for s in all_sessions if s.session_id == options.session_id]
        else:
            selected = [s for s in all_sessions if s.is_current]

        if not selected:
            raise ValueError("No sessions found to sync")
        return selected

    async def _sync_session_metadata(
        self,
        adapter: LegiScanAdapter,
        session: LegislativeSession,
        results: SyncResults
    ) -> None:
        try:
            people = await adapter.get_session_people(session.session_id)

            async with self.database.session() as db_session:
                repos = self.repositories(db_session)
                await repos.sessions.upsert(session)
                for person in people:
                    await repos.legislators.upsert(person, level="state")

            results.sessions_synced += 1
            results.legislators_synced += len(people)

            await self.cache.set_session(session.session_id, session.model_dump(mode="json"))

        except Exception as e:
            logger.error(f"Error syncing session {session.session_id}: {e}")
            results.errors.append(f"Session {session.session_id}: {e}")

    async def _sync_session_bills(
        self,
        adapter: LegiScanAdapter,
        session: LegislativeSession,
        options: SyncOptions,
        results: SyncResults
    ) -> None:
        try:
            masterlist = await adapter.get_master_list(session.session_id)
            summaries = masterlist.bills
            if options.max_bills and len(summaries) > options.max_bills:
                summaries = summaries[: options.max_bills]

            logger.info(f"Processing {len(summaries)} bills for session {session.session_name}")

            for index, summary in enumerate(summaries, start=1):
                self._emit(
                    options, "bills_sync", index, len(summaries),
                    f"Processing bill {summary.number}..."
                )
                results.bills_processed += 1
                try:
                    await self._sync_bill(adapter, summary, options, results)
                except Exception as e:
                    logger.error(f"Error processing bill {summary.bill_id}: {e}")
                    results.errors.append(f"Bill {summary.bill_id}: {e}")

        except Exception as e:
            logger.error(f"Error processing bills for session {session.session_id}: {e}")
            results.errors.append(f"Session bills {session.session_id}: {e}")

    async def _sync_bill(
        self,
        adapter: LegiScanAdapter,
        summary: BillSummary,
        options: SyncOptions,
        results: SyncResults
    ) -> None:
        async with self.database.session() as db_session:
            repos = self.repositories(db_session)
            previous = await repos.bills.get_state(summary.bill_id)

        if previous is not None and previous.change_hash == summary.change_hash and not options.force:
            logger.debug(f"Bill {summary.number} unchanged, skipping")
            return

        bill = await adapter.get_bill(summary.bill_id)

        roll_calls = []
        for vote in bill.votes:
            try:
                roll_calls.append(await adapter.get_roll_call(vote.roll_call_id))
            except Exception as e:
                logger.error(f"Error fetching roll call {vote.roll_call_id}: {e}")
                results.errors.append(f"Roll call {vote.roll_call_id}: {e}")

        feed_items = 0
        roll_calls_synced = 0

        async with self.database.session() as db_session:
            repos = self.repositories(db_session)
            generator = self._generator(repos)

            await repos.legislators.ensure_from_sponsors(bill.sponsors)
            await repos.bills.upsert(bill)
            await repos.bills.sync_sponsors(bill)

            for roll_call in roll_calls:
                try:
                    async with db_session.begin_nested():
                        outcome = await repos.roll_calls.sync_roll_call(roll_call)
                        if outcome.created:
                            feed_items += len(await generator.process_roll_call_vote(roll_call))
                    roll_calls_synced += 1
                except Exception as e:
                    logger.error(f"Error syncing roll call {roll_call.roll_call_id}: {e}")
                    results.errors.append(f"Roll call {roll_call.roll_call_id}: {e}")

            if previous is None:
                feed_items += len(await generator.process_bill_introduced(bill))
            else:
                feed_items += len(await generator.process_bill_status_change(previous, bill))

        # Counted only once the transaction committed
        if previous is None:
            results.bills_new += 1
        else:
            results.bills_updated += 1
        results.roll_calls_synced += roll_calls_synced
        results.feed_items_created += feed_items

        await self.cache.invalidate_bill_data(bill.bill_id)
        await self.cache.set_bill(bill.bill_id, bill.model_dump(mode="json"))
        for roll_call in roll_calls:
            await self.cache.set_roll_call(roll_call.roll_call_id, roll_call.model_dump(mode="json"))

    async def _cleanup(self, results: SyncResults) -> None:
        try:
            async with self.database.session() as db_session:
                repos = self.repositories(db_session)
                deleted = await self._generator(repos).cleanup_old_feed_items(
                    settings.sync.feed_retention_days
                )
            logger.info(f"Removed {deleted} feed items older than {settings.sync.feed_retention_days} days")
        except Exception as e:
            logger.error(f"Error during cleanup: {e}")
            results.errors.append(f"Cleanup: {e}")
