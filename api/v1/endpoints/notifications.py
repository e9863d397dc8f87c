"""
Notification inbox and preference endpoints.

Endpoints:
    - GET /api/v1/notifications - Paged inbox with unread count
    - POST /api/v1/notifications/read - Mark selected notifications read
    - POST /api/v1/notifications/read-all - Mark everything read
    - GET /api/v1/notifications/preferences - Channel/type preferences
    - PUT /api/v1/notifications/preferences - Update preferences
    - GET /api/v1/notifications/stats - Totals per type

Responsibility: HTTP surface over NotificationService
"""

from fastapi import APIRouter, Depends, Query

from src.models.notification import NotificationPreferences, UpdateNotificationPreferencesInput
from src.models.user import AuthUser
from src.services.notification_service import NotificationService

from api.dependencies import get_notification_service, require_user
from api.v1.schemas.notifications import MarkReadRequest, NotificationListResponse

router = APIRouter(prefix="/notifications", tags=["notifications"])


@router.get("", response_model=NotificationListResponse)
async def list_notifications(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    user: AuthUser = Depends(require_user),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationListResponse:
    result = await service.list_notifications(user.id, page=page, limit=limit)
    return NotificationListResponse(
        notifications=result.notifications,
        total=result.total,
        unread_count=result.unread_count,
    )


@router.post("/read")
async def mark_read(
    request: MarkReadRequest,
    user: AuthUser = Depends(require_user),
    service: NotificationService = Depends(get_notification_service),
):
    updated = await service.mark_as_read(user.id, request.ids)
    return {"success": True, "updated": updated}


@router.post("/read-all")
async def mark_all_read(
    user: AuthUser = Depends(require_user),
    service: NotificationService = Depends(get_notification_service),
):
    updated = await service.mark_all_as_read(user.id)
    return {"success": True, "updated": updated}


@router.get("/preferences", response_model=NotificationPreferences)
async def get_preferences(
    user: AuthUser = Depends(require_user),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationPreferences:
    return await service.get_preferences(user.id)


@router.put("/preferences", response_model=NotificationPreferences)
async def update_preferences(
    data: UpdateNotificationPreferencesInput,
    user: AuthUser = Depends(require_user),
    service: NotificationService = Depends(get_notification_service),
) -> NotificationPreferences:
    return await service.update_preferences(user.id, data)


@router.get("/stats")
async def get_stats(
    user: AuthUser = Depends(require_user),
    service: NotificationService = Depends(get_notification_service),
):
    return await service.get_stats(user.id)
