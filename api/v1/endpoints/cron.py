"""
Scheduler-facing cron endpoints.

Endpoints:
    - GET /api/v1/cron/sync-bills - Quick sync (hourly scheduler)
    - POST /api/v1/cron/sync-bills - Sync of a chosen type

Both require the cron bearer secret (see BearerTokenMiddleware).

Responsibility: Map cron requests onto orchestrator entry points
"""

import logging
from typing import Optional

from fastapi import APIRouter, Body, Depends, status
from fastapi.responses import JSONResponse

from src.exceptions import SyncAlreadyRunningError
from src.models.sync import SyncOptions, SyncResults
from src.orchestration.bill_sync import BillSyncOrchestrator

from api.dependencies import get_orchestrator
from api.v1.schemas.legislative import CronSyncRequest

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/cron", tags=["cron"])

SYNC_TYPES = ("quick", "full", "session", "custom")
INVALID_TYPE_MESSAGE = "Invalid sync type. Use: quick, full, session, or custom"


def _error(status_code: int, message: str) -> JSONResponse:
    return JSONResponse(status_code=status_code, content={"success": False, "error": message})


def _results_response(sync_type: str, results: SyncResults) -> JSONResponse:
    if not results.success:
        return JSONResponse(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            content={
                "success": False,
                "type": sync_type,
                "error": "Sync failed",
                "errors": results.errors[:10],
            },
        )

    return JSONResponse(
        content={
            "success": True,
            "type": sync_type,
            "sessions_synced": results.sessions_synced,
            "bills_processed": results.bills_processed,
            "bills_new": results.bills_new,
            "bills_updated": results.bills_updated,
            "legislators_synced": results.legislators_synced,
            "roll_calls_synced": results.roll_calls_synced,
            "feed_items_created": results.feed_items_created,
            "duration_ms": results.duration_ms,
            "error_count": len(results.errors),
            "errors": results.errors[:5],
        }
    )


async def _run(orchestrator: BillSyncOrchestrator, request: CronSyncRequest) -> JSONResponse:
    if request.type not in SYNC_TYPES:
        return _error(status.HTTP_400_BAD_REQUEST, INVALID_TYPE_MESSAGE)

    if request.type == "session" and request.session_id is None:
        return _error(status.HTTP_400_BAD_REQUEST, "Session ID required for session sync")

    if orchestrator.is_sync_running():
        return JSONResponse(
            content={"success": False, "message": "Sync is already running", "skipped": True}
        )

    logger.info(f"Cron sync requested: type={request.type}, session_id={request.session_id}")

    try:
        if request.type == "quick":
            results = await orchestrator.quick_sync()
        elif request.type == "full":
            results = await orchestrator.full_sync()
        elif request.type == "session":
            results = await orchestrator.sync_session(request.session_id)
        else:
            results = await orchestrator.sync_bills(
                SyncOptions(
                    session_id=request.session_id,
                    force=request.force,
                    max_bills=request.max_bills,
                )
            )
    except SyncAlreadyRunningError:
        return JSONResponse(
            content={"success": False, "message": "Sync is already running", "skipped": True}
        )

    return _results_response(request.type, results)


@router.get("/sync-bills")
async def cron_quick_sync(orchestrator: BillSyncOrchestrator = Depends(get_orchestrator)):
    return await _run(orchestrator, CronSyncRequest(type="quick"))


@router.post("/sync-bills")
async def cron_sync(
    request: Optional[CronSyncRequest] = Body(None),
    orchestrator: BillSyncOrchestrator = Depends(get_orchestrator),
):
    """
    Run a sync of the requested type.

    Body:
        type: quick | full | session | custom (default quick)
        sessionId: Required for ``session``
        force, maxBills: Used by ``custom``
    """
    return await _run(orchestrator, request or CronSyncRequest())
