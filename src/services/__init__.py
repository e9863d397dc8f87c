"""Services package for business logic"""

from .auth_service import AuthService
from .legislative_feed_service import LegislativeFeedService
from .notification_service import NotificationService
from .poll_service import PollService

__all__ = [
    "AuthService",
    "LegislativeFeedService",
    "NotificationService",
    "PollService",
]
