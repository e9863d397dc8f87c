"""
Pydantic schemas for notification endpoints.

Responsibility: Notification inbox request/response schemas
"""

from typing import List
from uuid import UUID
from pydantic import BaseModel, ConfigDict, Field

from src.models.notification import Notification


class MarkReadRequest(BaseModel):
    ids: List[UUID] = Field(min_length=1)


class NotificationListResponse(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    notifications: List[Notification]
    total: int
    unread_count: int = Field(serialization_alias="unreadCount")
