from contextlib import asynccontextmanager
from datetime import datetime
from types import SimpleNamespace
from typing import Any, Dict, List, Optional, Set
from uuid import UUID, uuid4

import pytest

from src.exceptions import ValidationError
from src.models.notification import (
    CreateNotificationInput,
    DigestFrequency,
    Notification,
    NotificationChannel,
    NotificationPreferences,
    NotificationType,
    UpdateNotificationPreferencesInput,
)
from src.services.notification_service import NotificationService, adjust_for_quiet_hours

from tests.fakes import utc

# 12:00 in Los Angeles, outside the default quiet hours
NOON_PACIFIC = utc(2026, 1, 15, 20, 0)


class InMemoryNotifications:
    def __init__(self):
        self.preferences: Dict[UUID, NotificationPreferences] = {}
        self.items: Dict[UUID, Notification] = {}
        self.failing_users: Set[UUID] = set()
        self.rollbacks = 0

    @asynccontextmanager
    async def savepoint(self):
        snapshot = dict(self.items)
        try:
            yield
        except Exception:
            self.items = snapshot
            self.rollbacks += 1
            raise

    async def get_or_create_preferences(self, user_id: UUID) -> NotificationPreferences:
        return self.preferences.setdefault(user_id, NotificationPreferences(user_id=user_id))

    async def update_preferences(self, user_id: UUID, updates: Dict[str, Any]) -> NotificationPreferences:
        current = await self.get_or_create_preferences(user_id)
        self.preferences[user_id] = current.model_copy(update=updates)
        return self.preferences[user_id]

    async def create(self, data, channels, scheduled_for) -> Notification:
        if data.user_id in self.failing_users:
            raise RuntimeError("insert failed")
        notification = Notification(
            id=uuid4(),
            user_id=data.user_id,
            type=data.type,
            title=data.title,
            channels=channels,
            priority=data.priority,
            scheduled_for=scheduled_for,
            expires_at=data.expires_at,
            created_at=datetime(2026, 1, 1),
        )
        self.items[notification.id] = notification
        return notification

    async def get_by_id(self, notification_id: UUID) -> Optional[Notification]:
        return self.items.get(notification_id)

    async def mark_sent(self, notification_id: UUID, statuses: Dict[str, str]) -> bool:
        notification = self.items.get(notification_id)
        if notification is None or notification.is_sent:
            return False
        self.items[notification_id] = Notification.model_validate({**notification.model_dump(), "is_sent": True, **statuses})
        return True

    async def get_due(self, now: datetime, limit: int = 100) -> List[Notification]:
        due = [
            n for n in self.items.values()
            if not n.is_sent and (n.scheduled_for is None or n.scheduled_for <= now)
        ]
        return sorted(due, key=lambda n: -n.priority)[:limit]


class InMemoryUsers:
    def __init__(self):
        self.by_id: Dict[UUID, SimpleNamespace] = {}

    def add(self, email: Optional[str] = "voter@example.com", phone: Optional[str] = None) -> SimpleNamespace:
        user = SimpleNamespace(id=uuid4(), email=email, phone=phone)
        self.by_id[user.id] = user
        return user

    async def get_by_id(self, user_id: UUID) -> Optional[SimpleNamespace]:
        return self.by_id.get(user_id)


class Clock:
    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now


@pytest.fixture
def notifications() -> InMemoryNotifications:
    return InMemoryNotifications()


@pytest.fixture
def users() -> InMemoryUsers:
    return InMemoryUsers()


@pytest.fixture
def clock() -> Clock:
    return Clock(NOON_PACIFIC)


@pytest.fixture
def service(notifications, users, clock) -> NotificationService:
    return NotificationService(notifications, users, clock=clock)


def _poll_notice(user_id: UUID, **fields) -> CreateNotificationInput:
    return CreateNotificationInput(user_id=user_id, type=NotificationType.NEW_POLL, title="New poll", **fields)


# MARK: - Quiet hours

def test_quiet_hours_push_late_evening_to_morning() -> None:
    prefs = NotificationPreferences(user_id=uuid4())
    now = utc(2026, 1, 15, 7, 0)  # 23:00 PST

    assert adjust_for_quiet_hours(now, prefs, now) == utc(2026, 1, 15, 16, 0)


def test_quiet_hours_early_morning_same_day() -> None:
    prefs = NotificationPreferences(user_id=uuid4())
    now = utc(2026, 1, 15, 12, 0)  # 04:00 PST

    assert adjust_for_quiet_hours(now, prefs, now) == utc(2026, 1, 15, 16, 0)


def test_quiet_hours_end_is_exclusive() -> None:
    prefs = NotificationPreferences(user_id=uuid4())
    now = utc(2026, 1, 15, 16, 0)  # 08:00 PST

    assert adjust_for_quiet_hours(now, prefs, now) == now


def test_quiet_hours_same_day_window() -> None:
    prefs = NotificationPreferences(
        user_id=uuid4(), quiet_hours_start="12:00", quiet_hours_end="13:30", timezone="UTC"
    )
    now = utc(2026, 1, 15, 12, 15)

    assert adjust_for_quiet_hours(now, prefs, now) == utc(2026, 1, 15, 13, 30)


def test_quiet_hours_ignored_for_digests() -> None:
    prefs = NotificationPreferences(user_id=uuid4(), digest_frequency=DigestFrequency.DAILY)
    now = utc(2026, 1, 15, 7, 0)

    assert adjust_for_quiet_hours(now, prefs, now) == now


def test_quiet_hours_ignored_for_unknown_timezone() -> None:
    prefs = NotificationPreferences(user_id=uuid4(), timezone="Mars/Olympus_Mons")
    now = utc(2026, 1, 15, 7, 0)

    assert adjust_for_quiet_hours(now, prefs, now) == now


# MARK: - Creation

async def test_create_delivers_immediately(service, notifications, users) -> None:
    user = users.add()

    notification = await service.create_notification(_poll_notice(user.id))

    assert notification.is_sent
    assert notification.email_status.value == "sent"
    assert notification.push_status.value == "sent"
    assert notification.channels == [NotificationChannel.EMAIL, NotificationChannel.PUSH]


async def test_create_during_quiet_hours_is_scheduled(service, notifications, users, clock) -> None:
    clock.now = utc(2026, 1, 15, 7, 0)
    user = users.add()

    notification = await service.create_notification(_poll_notice(user.id))

    assert not notification.is_sent
    assert notification.scheduled_for == utc(2026, 1, 15, 16, 0)


async def test_disabled_type_creates_nothing(service, notifications, users) -> None:
    user = users.add()
    await notifications.update_preferences(user.id, {"new_poll_notifications": False})

    assert await service.create_notification(_poll_notice(user.id)) is None
    assert notifications.items == {}


async def test_disabled_channels_create_nothing(service, notifications, users) -> None:
    user = users.add()

    result = await service.create_notification(_poll_notice(user.id, channels=[NotificationChannel.SMS]))

    assert result is None
    assert notifications.items == {}


async def test_email_without_address_is_failed(service, users) -> None:
    user = users.add(email=None)

    notification = await service.create_notification(_poll_notice(user.id))

    assert notification.is_sent
    assert notification.email_status.value == "failed"
    assert notification.push_status.value == "sent"


async def test_process_twice_is_noop(service, users) -> None:
    user = users.add()
    notification = await service.create_notification(_poll_notice(user.id))

    assert await service.process_notification(notification.id) is False


async def test_process_scheduled_after_quiet_hours(service, notifications, users, clock) -> None:
    clock.now = utc(2026, 1, 15, 7, 0)
    user = users.add()
    await service.create_notification(_poll_notice(user.id))

    assert await service.process_scheduled_notifications() == {"processed": 0, "errors": 0}

    clock.now = utc(2026, 1, 15, 16, 0)
    assert await service.process_scheduled_notifications() == {"processed": 1, "errors": 0}


async def test_bulk_counts_only_created(service, notifications, users) -> None:
    enabled = users.add()
    disabled = users.add()
    await notifications.update_preferences(disabled.id, {"system_notifications": False})

    created = await service.create_bulk_notifications(
        [enabled.id, disabled.id],
        {"type": NotificationType.SYSTEM_ANNOUNCEMENT, "title": "Maintenance tonight"},
    )

    assert created == 1


async def test_bulk_rolls_back_failed_user_and_continues(service, notifications, users) -> None:
    first, broken, last = users.add(), users.add(), users.add()
    notifications.failing_users.add(broken.id)

    created = await service.create_bulk_notifications(
        [first.id, broken.id, last.id],
        {"type": NotificationType.SYSTEM_ANNOUNCEMENT, "title": "Maintenance tonight"},
    )

    assert created == 2
    assert notifications.rollbacks == 1
    assert {n.user_id for n in notifications.items.values()} == {first.id, last.id}


# MARK: - Preferences

async def test_update_preferences(service, users) -> None:
    user = users.add()

    prefs = await service.update_preferences(
        user.id, UpdateNotificationPreferencesInput(sms_enabled=True, timezone="America/New_York")
    )

    assert prefs.sms_enabled
    assert prefs.timezone == "America/New_York"


async def test_update_preferences_requires_changes(service, users) -> None:
    user = users.add()

    with pytest.raises(ValidationError):
        await service.update_preferences(user.id, UpdateNotificationPreferencesInput())


async def test_update_preferences_rejects_unknown_timezone(service, users) -> None:
    user = users.add()

    with pytest.raises(ValidationError) as exc_info:
        await service.update_preferences(user.id, UpdateNotificationPreferencesInput(timezone="Nowhere/Land"))

    assert exc_info.value.field == "timezone"
