"""
Repository for notifications and notification preferences.

Responsibility: Notification queue persistence and per-user preferences
"""

from datetime import datetime
from typing import Any, Dict, List, Optional, Tuple
from uuid import UUID
from sqlalchemy import select, desc, func, or_, update
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.dialects.postgresql import insert as pg_insert
import logging

from ..models import NotificationModel, NotificationPreferenceModel
from ...models.notification import (
    CreateNotificationInput,
    Notification,
    NotificationChannel,
    NotificationPreferences,
)

logger = logging.getLogger(__name__)


class NotificationRepository:
    """
    Repository for the notification queue.

    Example:
        repo = NotificationRepository(session)
        prefs = await repo.get_or_create_preferences(user_id)
        notification = await repo.create(data, channels, scheduled_for)
    """

    def __init__(self, session: AsyncSession):
        self.session = session

    def savepoint(self):
        """Nested transaction; a failed write rolls back only its own changes."""
        return self.session.begin_nested()

    async def get_preferences(self, user_id: UUID) -> Optional[NotificationPreferences]:
        result = await self.session.execute(
            select(NotificationPreferenceModel).where(
                NotificationPreferenceModel.user_id == user_id
            )
        )
        model = result.scalar_one_or_none()
        return NotificationPreferences.model_validate(model) if model else None

    async def get_or_create_preferences(self, user_id: UUID) -> NotificationPreferences:
        """Preferences for a user, inserting defaults on first access."""
        await self.session.execute(
            pg_insert(NotificationPreferenceModel)
            .values(user_id=user_id)
            .on_conflict_do_nothing(index_elements=[NotificationPreferenceModel.user_id])
        )
        return await self.get_preferences(user_id)

    async def update_preferences(
        self,
        user_id: UUID,
        updates: Dict[str, Any]
    ) -> NotificationPreferences:
        await self.get_or_create_preferences(user_id)
        await self.session.execute(
            update(NotificationPreferenceModel)
            .where(NotificationPreferenceModel.user_id == user_id)
            .values(**updates, updated_at=datetime.utcnow())
        )
        return await self.get_preferences(user_id)

    async def create(
        self,
        data: CreateNotificationInput,
        channels: List[NotificationChannel],
        scheduled_for: Optional[datetime],
    ) -> Notification:
        model = NotificationModel(
            user_id=data.user_id,
            type=data.type.value,
            title=data.title,
            content=data.content,
            data=data.data,
            channels=[channel.value for channel in channels],
            priority=data.priority,
            scheduled_for=scheduled_for,
            expires_at=data.expires_at,
        )
        self.session.add(model)
        await self.session.flush()
        await self.session.refresh(model)
        return Notification.model_validate(model)

    async def get_by_id(self, notification_id: UUID) -> Optional[Notification]:
        result = await self.session.execute(
            select(NotificationModel).where(NotificationModel.id == notification_id)
        )
        model = result.scalar_one_or_none()
        return Notification.model_validate(model) if model else None

    async def mark_sent(
        self,
        notification_id: UUID,
        channel_statuses: Dict[str, str]
    ) -> bool:
        """
        Mark an unsent notification as sent with per-channel statuses.

        Args:
            notification_id: Notification to update
            channel_statuses: e.g. ``{"email_status": "sent", "sms_status": "failed"}``

        Returns:
            False if the notification was missing or already sent
        """
        result = await self.session.execute(
            update(NotificationModel)
            .where(
                NotificationModel.id == notification_id,
                NotificationModel.is_sent.is_(False),
            )
            .values(is_sent=True, sent_at=datetime.utcnow(), **channel_statuses)
            .returning(NotificationModel.id)
        )
        return result.scalar_one_or_none() is not None

    async def list_for_user(
        self,
        user_id: UUID,
        page: int = 1,
        limit: int = 20
    ) -> Tuple[List[Notification], int, int]:
        """
        Returns:
            (notifications newest first, total, unread count)
        """
        result = await self.session.execute(
            select(NotificationModel)
            .where(NotificationModel.user_id == user_id)
            .order_by(desc(NotificationModel.created_at))
            .limit(limit)
            .offset((page - 1) * limit)
        )
        notifications = [Notification.model_validate(m) for m in result.scalars().all()]

        counts = await self.session.execute(
            select(
                func.count(),
                func.count().filter(NotificationModel.is_read.is_(False)),
            ).where(NotificationModel.user_id == user_id)
        )
        total, unread = counts.one()
        return notifications, int(total), int(unread)

    async def mark_read(self, user_id: UUID, notification_ids: List[UUID]) -> int:
        if not notification_ids:
            return 0
        result = await self.session.execute(
            update(NotificationModel)
            .where(
                NotificationModel.user_id == user_id,
                NotificationModel.id.in_(notification_ids),
            )
            .values(is_read=True, read_at=datetime.utcnow())
        )
        return result.rowcount or 0

    async def mark_all_read(self, user_id: UUID) -> int:
        result = await self.session.execute(
            update(NotificationModel)
            .where(
                NotificationModel.user_id == user_id,
                NotificationModel.is_read.is_(False),
            )
            .values(is_read=True, read_at=datetime.utcnow())
        )
        return result.rowcount or 0

    async def get_due(self, now: datetime, limit: int = 100) -> List[Notification]:
        """Unsent, due and unexpired notifications; highest priority first."""
        result = await self.session.execute(
            select(NotificationModel)
            .where(
                NotificationModel.is_sent.is_(False),
                or_(NotificationModel.scheduled_for.is_(None), NotificationModel.scheduled_for <= now),
                or_(NotificationModel.expires_at.is_(None), NotificationModel.expires_at > now),
            )
            .order_by(desc(NotificationModel.priority), NotificationModel.created_at)
            .limit(limit)
        )
        return [Notification.model_validate(m) for m in result.scalars().all()]

    async def get_stats(self, user_id: UUID) -> Dict[str, Any]:
        result = await self.session.execute(
            select(NotificationModel.type, func.count(), func.count().filter(NotificationModel.is_read.is_(False)))
            .where(NotificationModel.user_id == user_id)
            .group_by(NotificationModel.type)
        )
        by_type: Dict[str, int] = {}
        total = 0
        unread = 0
        for notification_type, count, unread_count in result:
            by_type[notification_type] = int(count)
            total += int(count)
            unread += int(unread_count)
        return {"total": total, "unread": unread, "by_type": by_type}
