"""
Notification domain models.

Responsibility: Notification types, channels, delivery state and preferences
"""

from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field


class NotificationType(str, Enum):
    NEW_POLL = "new_poll"
    POLL_RESULTS = "poll_results"
    POLL_ENDING = "poll_ending"
    POLL_REMINDER = "poll_reminder"
    SYSTEM_ANNOUNCEMENT = "system_announcement"


class NotificationChannel(str, Enum):
    EMAIL = "email"
    SMS = "sms"
    PUSH = "push"
    IN_APP = "in_app"


class DeliveryStatus(str, Enum):
    PENDING = "pending"
    SENT = "sent"
    DELIVERED = "delivered"
    FAILED = "failed"


class DigestFrequency(str, Enum):
    IMMEDIATE = "immediate"
    HOURLY = "hourly"
    DAILY = "daily"
    WEEKLY = "weekly"


DEFAULT_CHANNELS: List[NotificationChannel] = [NotificationChannel.EMAIL, NotificationChannel.PUSH]

# Preference column that gates each notification type
TYPE_PREFERENCE_FIELDS: Dict[NotificationType, str] = {
    NotificationType.NEW_POLL: "new_poll_notifications",
    NotificationType.POLL_RESULTS: "poll_result_notifications",
    NotificationType.POLL_REMINDER: "poll_reminder_notifications",
    NotificationType.POLL_ENDING: "poll_ending_notifications",
    NotificationType.SYSTEM_ANNOUNCEMENT: "system_notifications",
}

CHANNEL_PREFERENCE_FIELDS: Dict[NotificationChannel, str] = {
    NotificationChannel.EMAIL: "email_enabled",
    NotificationChannel.SMS: "sms_enabled",
    NotificationChannel.PUSH: "push_enabled",
    NotificationChannel.IN_APP: "in_app_enabled",
}


class CreateNotificationInput(BaseModel):
    user_id: UUID
    type: NotificationType
    title: str = Field(min_length=1, max_length=255)
    content: Optional[str] = Field(default=None, max_length=2000)
    data: Dict[str, Any] = Field(default_factory=dict)
    channels: Optional[List[NotificationChannel]] = None
    priority: int = Field(default=5, ge=1, le=10)
    scheduled_for: Optional[datetime] = None
    expires_at: Optional[datetime] = None


class Notification(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: UUID
    user_id: UUID
    type: NotificationType
    title: str
    content: Optional[str] = None
    data: Dict[str, Any] = Field(default_factory=dict)
    channels: List[NotificationChannel] = Field(default_factory=list)
    is_read: bool = False
    is_sent: bool = False
    sent_at: Optional[datetime] = None
    read_at: Optional[datetime] = None
    email_status: Optional[DeliveryStatus] = None
    sms_status: Optional[DeliveryStatus] = None
    push_status: Optional[DeliveryStatus] = None
    priority: int = 5
    scheduled_for: Optional[datetime] = None
    expires_at: Optional[datetime] = None
    created_at: datetime


class NotificationPreferences(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    user_id: UUID
    email_enabled: bool = True
    sms_enabled: bool = False
    push_enabled: bool = True
    in_app_enabled: bool = True
    new_poll_notifications: bool = True
    poll_result_notifications: bool = True
    poll_reminder_notifications: bool = True
    poll_ending_notifications: bool = True
    system_notifications: bool = True
    digest_frequency: DigestFrequency = DigestFrequency.IMMEDIATE
    quiet_hours_start: str = "22:00"
    quiet_hours_end: str = "08:00"
    timezone: str = "America/Los_Angeles"


class UpdateNotificationPreferencesInput(BaseModel):
    email_enabled: Optional[bool] = None
    sms_enabled: Optional[bool] = None
    push_enabled: Optional[bool] = None
    in_app_enabled: Optional[bool] = None
    new_poll_notifications: Optional[bool] = None
    poll_result_notifications: Optional[bool] = None
    poll_reminder_notifications: Optional[bool] = None
    poll_ending_notifications: Optional[bool] = None
    system_notifications: Optional[bool] = None
    digest_frequency: Optional[DigestFrequency] = None
    quiet_hours_start: Optional[str] = Field(default=None, pattern=r"^\d{2}:\d{2}$")
    quiet_hours_end: Optional[str] = Field(default=None, pattern=r"^\d{2}:\d{2}$")
    timezone: Optional[str] = None


class NotificationList(BaseModel):
    notifications: List[Notification]
    total: int
    unread_count: int
