"""
Legislative sync API endpoints.

Endpoints:
    - POST /api/v1/legislative/sync - Run a custom sync (bearer secret)
    - GET /api/v1/legislative/sync - Sync status, feed stats and active sessions

Responsibility: Trigger and inspect LegiScan sync runs
"""

import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, Depends, Query, status
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from src.db.repositories.feed_repository import FeedItemRepository
from src.db.repositories.legislative_session_repository import LegislativeSessionRepository
from src.db.session import get_db
from src.exceptions import SyncAlreadyRunningError
from src.models.sync import SyncOptions
from src.orchestration.bill_sync import BillSyncOrchestrator

from api.dependencies import get_orchestrator
from api.v1.schemas.legislative import SyncStatusResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/legislative/sync", tags=["legislative-sync"])


@router.post("")
async def trigger_sync(
    session_id: Optional[int] = Query(None, alias="sessionId", description="LegiScan session id"),
    force: bool = Query(False, description="Refetch bills with an unchanged change hash"),
    orchestrator: BillSyncOrchestrator = Depends(get_orchestrator),
):
    """Run a sync over one session, or every current session when none is given."""
    options = SyncOptions(session_id=session_id, force=force)

    try:
        results = await orchestrator.sync_bills(options)
    except SyncAlreadyRunningError as e:
        return JSONResponse(
            status_code=status.HTTP_409_CONFLICT,
            content={"success": False, "error": str(e)},
        )

    if not results.success:
        logger.error(f"Legislative sync failed: {results.errors[:3]}")
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "error": "Sync failed",
                "message": results.errors[-1] if results.errors else "Unknown error",
                "partial_results": results.to_dict(),
            },
        )

    return {
        "success": True,
        "message": (
            f"Synced {results.bills_processed} bills "
            f"({results.bills_new} new, {results.bills_updated} updated)"
        ),
        "results": results.to_dict(),
    }


@router.get("", response_model=SyncStatusResponse)
async def get_sync_status(
    db: AsyncSession = Depends(get_db),
    orchestrator: BillSyncOrchestrator = Depends(get_orchestrator),
) -> SyncStatusResponse:
    stats = await FeedItemRepository(db).get_stats()
    sessions = await LegislativeSessionRepository(db).get_active_sessions()

    return SyncStatusResponse(
        feed_stats=stats.model_dump(),
        active_sessions=[
            {
                "session_id": s.session_id,
                "session_name": s.session_name,
                "year_start": s.year_start,
                "year_end": s.year_end,
                "special": s.special,
            }
            for s in sessions
        ],
        is_running=orchestrator.is_sync_running(),
        last_updated=datetime.utcnow(),
    )
