"""
Notification delivery service.

Creates notifications subject to user preferences (types, channels,
quiet hours), delivers them over the enabled channels and drains the
scheduled queue.

Responsibility: Preference-aware notification creation and delivery
"""

from datetime import datetime, time, timedelta, timezone
from typing import Any, Callable, Dict, List, Optional, Sequence
from uuid import UUID
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError
import logging

from ..db.repositories.notification_repository import NotificationRepository
from ..db.repositories.user_repository import UserRepository
from ..exceptions import ValidationError
from ..models.notification import (
    CHANNEL_PREFERENCE_FIELDS,
    DEFAULT_CHANNELS,
    TYPE_PREFERENCE_FIELDS,
    CreateNotificationInput,
    DeliveryStatus,
    DigestFrequency,
    Notification,
    NotificationChannel,
    NotificationList,
    NotificationPreferences,
    NotificationType,
    UpdateNotificationPreferencesInput,
)

logger = logging.getLogger(__name__)

BULK_BATCH_SIZE = 100
SCHEDULED_BATCH_SIZE = 100


def _utcnow() -> datetime:
    return datetime.utcnow()


def _parse_clock(value: str) -> time:
    hours, minutes = value.split(":")
    return time(int(hours), int(minutes))


def is_type_enabled(preferences: NotificationPreferences, notification_type: NotificationType) -> bool:
    field = TYPE_PREFERENCE_FIELDS.get(notification_type)
    return True if field is None else bool(getattr(preferences, field))


def filter_enabled_channels(
    channels: Sequence[NotificationChannel],
    preferences: NotificationPreferences
) -> List[NotificationChannel]:
    return [
        channel for channel in channels
        if getattr(preferences, CHANNEL_PREFERENCE_FIELDS[channel], False)
    ]


def adjust_for_quiet_hours(
    scheduled_for: datetime,
    preferences: NotificationPreferences,
    now: datetime
) -> datetime:
    """
    Push delivery past the user's quiet hours.

    Only applies to ``immediate`` digests. Quiet hours are evaluated in the
    user's IANA timezone as ``[start, end)`` and may wrap past midnight.

    Args:
        scheduled_for: Requested delivery time (naive UTC)
        preferences: User notification preferences
        now: Current time (naive UTC)

    Returns:
        Delivery time (naive UTC)
    """
    if preferences.digest_frequency != DigestFrequency.IMMEDIATE:
        return scheduled_for

    try:
        zone = ZoneInfo(preferences.timezone)
    except (ZoneInfoNotFoundError, ValueError):
        logger.warning(f"Unknown timezone {preferences.timezone!r}, skipping quiet hours")
        return scheduled_for

    local_now = now.replace(tzinfo=timezone.utc).astimezone(zone)
    quiet_start = _parse_clock(preferences.quiet_hours_start)
    quiet_end = _parse_clock(preferences.quiet_hours_end)
    current = local_now.time().replace(second=0, microsecond=0)

    if quiet_start > quiet_end:
        in_quiet_hours = current >= quiet_start or current < quiet_end
    else:
        in_quiet_hours = quiet_start <= current < quiet_end

    if not in_quiet_hours:
        return scheduled_for

    next_send = local_now.replace(
        hour=quiet_end.hour, minute=quiet_end.minute, second=0, microsecond=0
    )
    if next_send <= local_now:
        next_send = next_send + timedelta(days=1)

    return next_send.astimezone(timezone.utc).replace(tzinfo=None)


class NotificationService:
    """
    Notification creation, delivery and inbox operations.

    Example:
        service = NotificationService(NotificationRepository(session), UserRepository(session))
        await service.create_notification(CreateNotificationInput(
            user_id=user.id,
            type=NotificationType.NEW_POLL,
            title="New poll from your representative",
        ))
    """

    def __init__(
        self,
        notifications: NotificationRepository,
        users: UserRepository,
        clock: Callable[[], datetime] = _utcnow
    ):
        self.notifications = notifications
        self.users = users
        self._clock = clock

    async def create_notification(self, data: CreateNotificationInput) -> Optional[Notification]:
        """
        Create a notification for one user.

        Returns:
            The stored notification, or None when the user's preferences
            disable the type or every requested channel
        """
        preferences = await self.notifications.get_or_create_preferences(data.user_id)

        if not is_type_enabled(preferences, data.type):
            logger.debug(f"{data.type.value} disabled for {data.user_id}")
            return None

        channels = filter_enabled_channels(data.channels or DEFAULT_CHANNELS, preferences)
        if not channels:
            logger.debug(f"No enabled channels for {data.user_id}")
            return None

        now = self._clock()
        scheduled_for = adjust_for_quiet_hours(data.scheduled_for or now, preferences, now)

        notification = await self.notifications.create(data, channels, scheduled_for)

        if scheduled_for <= now:
            await self.process_notification(notification.id)
            notification = await self.notifications.get_by_id(notification.id) or notification

        return notification

    async def create_bulk_notifications(
        self,
        user_ids: Sequence[UUID],
        template: Dict[str, Any]
    ) -> int:
        """
        Create the same notification for many users in batches of 100.

        Each user is written inside a savepoint, so a failure is logged and
        rolled back without aborting the rest of the batch.

        Returns:
            Number of notifications created
        """
        created = 0
        for start in range(0, len(user_ids), BULK_BATCH_SIZE):
            for user_id in user_ids[start:start + BULK_BATCH_SIZE]:
                try:
                    data = CreateNotificationInput(user_id=user_id, **template)
                    async with self.notifications.savepoint():
                        notification = await self.create_notification(data)
                    if notification is not None:
                        created += 1
                except Exception as e:
                    logger.error(f"Error creating notification for {user_id}: {e}")
        return created

    async def process_notification(self, notification_id: UUID) -> bool:
        """
        Deliver an unsent notification over its channels.

        Email needs an address and SMS a phone number; push always
        succeeds and in-app needs no delivery.

        Returns:
            False when the notification is missing or already sent
        """
        notification = await self.notifications.get_by_id(notification_id)
        if notification is None or notification.is_sent:
            return False

        user = await self.users.get_by_id(notification.user_id)
        if user is None:
            return False

        statuses: Dict[str, str] = {}
        for channel in notification.channels:
            try:
                if channel == NotificationChannel.EMAIL:
                    statuses["email_status"] = self._deliver(channel, notification, user.email)
                elif channel == NotificationChannel.SMS:
                    statuses["sms_status"] = self._deliver(channel, notification, user.phone)
                elif channel == NotificationChannel.PUSH:
                    statuses["push_status"] = self._deliver(channel, notification, str(user.id))
            except Exception as e:
                logger.error(f"Error sending {channel.value} notification {notification_id}: {e}")
                statuses[f"{channel.value}_status"] = DeliveryStatus.FAILED.value

        return await self.notifications.mark_sent(notification_id, statuses)

    @staticmethod
    def _deliver(channel: NotificationChannel, notification: Notification, address: Optional[str]) -> str:
        if not address:
            return DeliveryStatus.FAILED.value
        # No outbound provider is wired up; delivery is recorded only
        logger.info(f"Delivering {channel.value} notification {notification.id} to {address}: {notification.title}")
        return DeliveryStatus.SENT.value

    async def process_scheduled_notifications(self) -> Dict[str, int]:
        """Deliver up to 100 due, unexpired notifications, highest priority first."""
        processed = 0
        errors = 0

        for notification in await self.notifications.get_due(self._clock(), SCHEDULED_BATCH_SIZE):
            try:
                if await self.process_notification(notification.id):
                    processed += 1
                else:
                    errors += 1
            except Exception as e:
                logger.error(f"Error processing notification {notification.id}: {e}")
                errors += 1

        logger.info(f"Processed {processed} scheduled notifications ({errors} errors)")
        return {"processed": processed, "errors": errors}

    # MARK: - Inbox

    async def list_notifications(self, user_id: UUID, page: int = 1, limit: int = 20) -> NotificationList:
        notifications, total, unread = await self.notifications.list_for_user(user_id, page, limit)
        return NotificationList(notifications=notifications, total=total, unread_count=unread)

    async def mark_as_read(self, user_id: UUID, notification_ids: List[UUID]) -> int:
        return await self.notifications.mark_read(user_id, notification_ids)

    async def mark_all_as_read(self, user_id: UUID) -> int:
        return await self.notifications.mark_all_read(user_id)

    async def get_stats(self, user_id: UUID) -> Dict[str, Any]:
        return await self.notifications.get_stats(user_id)

    # MARK: - Preferences

    async def get_preferences(self, user_id: UUID) -> NotificationPreferences:
        return await self.notifications.get_or_create_preferences(user_id)

    async def update_preferences(
        self,
        user_id: UUID,
        data: UpdateNotificationPreferencesInput
    ) -> NotificationPreferences:
        """
        Raises:
            ValidationError: When nothing to update or the timezone is unknown
        """
        updates = data.model_dump(exclude_none=True, mode="json")
        if not updates:
            raise ValidationError("No updates provided")

        if "timezone" in updates:
            try:
                ZoneInfo(updates["timezone"])
            except (ZoneInfoNotFoundError, ValueError):
                raise ValidationError(f"Unknown timezone: {updates['timezone']}", field="timezone")

        return await self.notifications.update_preferences(user_id, updates)
