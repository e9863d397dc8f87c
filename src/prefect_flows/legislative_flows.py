"""
Prefect flows for Citizenly's scheduled jobs.

Defines flows for:
- Quick, full and single-session LegiScan syncs
- Draining the scheduled notification queue

Responsibility: Orchestrate periodic legislative refreshes and notification delivery
"""

from typing import Any, Dict, Optional

from prefect import flow, task, get_run_logger

from src.db.repositories.notification_repository import NotificationRepository
from src.db.repositories.user_repository import UserRepository
from src.db.session import Database
from src.models.sync import SyncOptions
from src.orchestration.bill_sync import BillSyncOrchestrator
from src.services.notification_service import NotificationService

SYNC_MODES = ("quick", "full", "session", "custom")


@task(
    name="sync_legislative_bills",
    description="Sync sessions, legislators, bills and roll calls from LegiScan",
    retries=1,
    retry_delay_seconds=300,
)
async def sync_legislative_bills_task(
    mode: str = "quick",
    session_id: Optional[int] = None,
    force: bool = False,
    max_bills: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Run one sync pass through the process-wide orchestrator.

    Args:
        mode: quick | full | session | custom
        session_id: Session to sync (required for ``session``)
        force: Refetch bills whose change hash is unchanged (``custom``)
        max_bills: Masterlist cap per session (``custom``)

    Returns:
        SyncResults as a dict
    """
    logger = get_run_logger()
    logger.info(f"Starting legislative sync: mode={mode}, session_id={session_id}")

    orchestrator = BillSyncOrchestrator.get_instance()

    if mode == "quick":
        results = await orchestrator.quick_sync()
    elif mode == "full":
        results = await orchestrator.full_sync()
    elif mode == "session":
        if session_id is None:
            raise ValueError("Session ID required for session sync")
        results = await orchestrator.sync_session(session_id)
    elif mode == "custom":
        results = await orchestrator.sync_bills(
            SyncOptions(session_id=session_id, force=force, max_bills=max_bills)
        )
    else:
        raise ValueError(f"Invalid sync type {mode!r}. Use: {', '.join(SYNC_MODES)}")

    logger.info(
        f"Sync complete: success={results.success}, bills_new={results.bills_new}, "
        f"bills_updated={results.bills_updated}, feed_items={results.feed_items_created}, "
        f"errors={len(results.errors)}"
    )
    for error in results.errors[:10]:
        logger.warning(f"Sync error: {error}")

    return results.to_dict()


@task(
    name="process_scheduled_notifications",
    description="Deliver due notifications",
    retries=2,
    retry_delay_seconds=30,
)
async def process_notifications_task() -> Dict[str, int]:
    logger = get_run_logger()

    db = Database()
    await db.initialize()

    try:
        async with db.session() as session:
            service = NotificationService(NotificationRepository(session), UserRepository(session))
            result = await service.process_scheduled_notifications()

        logger.info(f"Notifications: {result['processed']} processed, {result['errors']} errors")
        return result
    finally:
        await db.close()


@flow(
    name="legislative-sync",
    description="Sync state legislative data from LegiScan and generate feed items",
    log_prints=True,
)
async def legislative_sync_flow(
    mode: str = "quick",
    session_id: Optional[int] = None,
    force: bool = False,
    max_bills: Optional[int] = None,
) -> Dict[str, Any]:
    """
    Scheduled legislative sync.

    This flow:
    1. Fetches active sessions and their legislators
    2. Walks each masterlist, refetching bills whose change hash moved
    3. Stores roll calls and generates feed items
    4. Prunes old feed items (unless a single session was requested)
    """
    logger = get_run_logger()
    logger.info(f"Legislative sync flow (mode={mode})")

    result = await sync_legislative_bills_task(
        mode=mode,
        session_id=session_id,
        force=force,
        max_bills=max_bills,
    )

    if not result["success"]:
        logger.error(f"Legislative sync failed: {result['errors'][:10]}")

    return result


@flow(
    name="process-notifications",
    description="Deliver scheduled notifications",
    log_prints=True,
)
async def process_notifications_flow() -> Dict[str, int]:
    return await process_notifications_task()


if __name__ == "__main__":
    import asyncio

    asyncio.run(legislative_sync_flow(mode="quick"))
