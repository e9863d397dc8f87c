"""
Legislative feed and interests API endpoints.

Endpoints:
    - GET /api/v1/legislative/feed - Signed-in user's personalized feed
    - POST /api/v1/legislative/feed - Feed for a given user (self or admin)
    - GET /api/v1/legislative/feed.{rss|atom} - Public syndicated feed
    - GET /api/v1/legislative/interests - User's followed subjects/districts
    - PUT /api/v1/legislative/interests - Update them

Responsibility: Serve feed items and manage legislative interests
"""

import logging
from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Body, Depends, HTTPException, Path, Query, Response, status

from src.config import settings
from src.feeds.feed_builder import FeedBuilder, FeedFormat
from src.models.feed import FeedFilters, FeedItemType, LegislativeInterests
from src.models.user import AuthUser
from src.services.legislative_feed_service import LegislativeFeedService

from api.dependencies import get_feed_service, require_user, require_verified_user
from api.v1.schemas.legislative import FeedRequest, FeedResponse

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/legislative", tags=["legislative-feed"])


def _feed_response(items, page: int, limit: int) -> FeedResponse:
    return FeedResponse(items=items, total=len(items), page=page, has_more=len(items) == limit)


@router.get("/feed", response_model=FeedResponse)
async def get_feed(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    type: Optional[List[FeedItemType]] = Query(None, description="Feed item types to include"),
    user: AuthUser = Depends(require_verified_user),
    service: LegislativeFeedService = Depends(get_feed_service),
) -> FeedResponse:
    filters = FeedFilters(type=type or [], limit=limit, offset=(page - 1) * limit)
    items = await service.get_user_feed(user.id, filters)
    return _feed_response(items, page, limit)


@router.post("/feed", response_model=FeedResponse)
async def post_feed(
    request: FeedRequest,
    user: AuthUser = Depends(require_verified_user),
    service: LegislativeFeedService = Depends(get_feed_service),
) -> FeedResponse:
    """Feed for ``userId``; only admins may read another user's feed."""
    if request.user_id != user.id and not user.is_admin:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Access denied")

    filters = FeedFilters(
        type=request.filters.type,
        subjects=request.filters.subjects,
        limit=request.limit,
        offset=(request.page - 1) * request.limit,
    )
    items = await service.get_user_feed(request.user_id, filters)
    return _feed_response(items, request.page, request.limit)


@router.get("/feed.{format}")
async def get_syndicated_feed(
    format: FeedFormat = Path(..., description="Feed format: rss or atom"),
    limit: int = Query(50, ge=1, le=200),
    service: LegislativeFeedService = Depends(get_feed_service),
) -> Response:
    """Recent legislative activity as RSS 2.0 or Atom."""
    items = await service.get_public_feed(limit)

    base = settings.app.public_base_url.rstrip("/")
    builder = FeedBuilder(
        title=f"{settings.app.app_name}: {settings.legiscan.state} Legislature",
        description="New bills, status changes and vote results",
        feed_url=f"{base}/api/v1/legislative/feed.{format.value}",
    )
    builder.add_items(items)

    media_type = "application/atom+xml" if format == FeedFormat.ATOM else "application/rss+xml"
    return Response(
        content=builder.generate(format),
        media_type=f"{media_type}; charset=utf-8",
        headers={
            "Cache-Control": "public, max-age=300",
            "X-Feed-Entries": str(builder.get_entry_count()),
        },
    )


@router.get("/interests", response_model=LegislativeInterests)
async def get_interests(
    user: AuthUser = Depends(require_user),
    service: LegislativeFeedService = Depends(get_feed_service),
) -> LegislativeInterests:
    return await service.get_interests(user.id)


@router.put("/interests", response_model=LegislativeInterests)
async def update_interests(
    payload: Dict[str, Any] = Body(...),
    user: AuthUser = Depends(require_user),
    service: LegislativeFeedService = Depends(get_feed_service),
) -> LegislativeInterests:
    """
    Replace any of ``subjects``, ``follow_districts`` and ``notification_types``.

    Malformed fields are rejected with 400.
    """
    return await service.update_interests(user.id, payload)
