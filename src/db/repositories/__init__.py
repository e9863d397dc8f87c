"""
Repository package for data access operations.

Implements repository pattern for abstracting database operations.
"""

from .persistence import PersistenceOutcome, PersistenceStatus
from .legislative_session_repository import LegislativeSessionRepository
from .legislator_repository import LegislatorRepository
from .bill_repository import BillRepository, BillState
from .roll_call_repository import RollCallRepository
from .feed_repository import FeedItemRepository
from .user_repository import UserRepository, UserTargeting, address_districts
from .poll_repository import PollRepository
from .notification_repository import NotificationRepository
from .audit_repository import AuditLogRepository

__all__ = [
    "PersistenceOutcome",
    "PersistenceStatus",
    "LegislativeSessionRepository",
    "LegislatorRepository",
    "BillRepository",
    "BillState",
    "RollCallRepository",
    "FeedItemRepository",
    "UserRepository",
    "UserTargeting",
    "address_districts",
    "PollRepository",
    "NotificationRepository",
    "AuditLogRepository",
]
