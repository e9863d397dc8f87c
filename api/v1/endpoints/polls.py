"""
Constituent poll API endpoints.

Endpoints:
    - POST /api/v1/polls - Create a poll (verified politicians)
    - GET /api/v1/polls - List polls visible to the caller
    - GET /api/v1/polls/{poll_id} - Get one poll
    - POST /api/v1/polls/{poll_id}/vote - Submit a response
    - GET /api/v1/polls/{poll_id}/results - Aggregated results
    - PUT /api/v1/polls/{poll_id} - Update (owner only)
    - DELETE /api/v1/polls/{poll_id} - Delete (owner only, no responses)

Responsibility: HTTP surface over PollService
"""

import logging
from typing import Optional
from uuid import UUID

from fastapi import APIRouter, Depends, Path, Query, status

from src.models.poll import (
    CreatePollInput,
    Poll,
    PollFilters,
    PollListResult,
    PollResults,
    PollStatus,
    PollType,
    SubmitPollResponseInput,
    UpdatePollInput,
)
from src.models.user import AuthUser
from src.services.poll_service import PollService

from api.dependencies import get_current_user, get_poll_service, require_user

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/polls", tags=["polls"])


@router.post("", response_model=Poll, status_code=status.HTTP_201_CREATED)
async def create_poll(
    data: CreatePollInput,
    user: AuthUser = Depends(require_user),
    service: PollService = Depends(get_poll_service),
) -> Poll:
    return await service.create_poll(user, data)


@router.get("", response_model=PollListResult)
async def list_polls(
    status_filter: Optional[PollStatus] = Query(None, alias="status"),
    poll_type: Optional[PollType] = Query(None),
    politician_id: Optional[UUID] = Query(None),
    search: Optional[str] = Query(None, max_length=200),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: Optional[AuthUser] = Depends(get_current_user),
    service: PollService = Depends(get_poll_service),
) -> PollListResult:
    """
    List polls with optional filters.

    Citizens only see polls for their own congressional district.
    """
    filters = PollFilters(
        status=status_filter,
        poll_type=poll_type,
        politician_id=politician_id,
        search=search,
    )
    return await service.list_polls(user, filters, page=page, limit=limit)


@router.get("/{poll_id}", response_model=Poll)
async def get_poll(
    poll_id: UUID = Path(...),
    service: PollService = Depends(get_poll_service),
) -> Poll:
    return await service.get_poll(poll_id)


@router.post("/{poll_id}/vote", status_code=status.HTTP_201_CREATED)
async def submit_vote(
    data: SubmitPollResponseInput,
    poll_id: UUID = Path(...),
    user: AuthUser = Depends(require_user),
    service: PollService = Depends(get_poll_service),
):
    """
    Errors:
        400: Poll inactive or ended
        403: Not eligible (verification or district)
        409: Already voted
        429: Too many votes in the last minute
    """
    await service.submit_response(user, poll_id, data)
    return {"success": True, "message": "Response recorded"}


@router.get("/{poll_id}/results", response_model=PollResults)
async def get_results(
    poll_id: UUID = Path(...),
    user: AuthUser = Depends(require_user),
    service: PollService = Depends(get_poll_service),
) -> PollResults:
    return await service.get_results(user, poll_id)


@router.put("/{poll_id}", response_model=Poll)
async def update_poll(
    data: UpdatePollInput,
    poll_id: UUID = Path(...),
    user: AuthUser = Depends(require_user),
    service: PollService = Depends(get_poll_service),
) -> Poll:
    return await service.update_poll(user, poll_id, data)


@router.delete("/{poll_id}")
async def delete_poll(
    poll_id: UUID = Path(...),
    user: AuthUser = Depends(require_user),
    service: PollService = Depends(get_poll_service),
):
    await service.delete_poll(user, poll_id)
    return {"success": True}
