"""
FastAPI dependencies shared by the v1 endpoints.

Resolves the session cookie to a user and wires services to the
request's database session. Tests replace these through
``app.dependency_overrides``.

Responsibility: Request-scoped auth and service construction
"""

import logging
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from src.cache.legislative_cache import LegislativeCache, legislative_cache
from src.config import settings
from src.db.repositories.audit_repository import AuditLogRepository
from src.db.repositories.feed_repository import FeedItemRepository
from src.db.repositories.notification_repository import NotificationRepository
from src.db.repositories.poll_repository import PollRepository
from src.db.repositories.user_repository import UserRepository
from src.db.session import get_db
from src.models.user import AuthUser
from src.orchestration.bill_sync import BillSyncOrchestrator
from src.services.auth_service import AuthService
from src.services.legislative_feed_service import LegislativeFeedService
from src.services.notification_service import NotificationService
from src.services.poll_service import PollService

logger = logging.getLogger(__name__)


def get_cache() -> LegislativeCache:
    return legislative_cache


def get_orchestrator() -> BillSyncOrchestrator:
    return BillSyncOrchestrator.get_instance()


def get_auth_service(db: AsyncSession = Depends(get_db)) -> AuthService:
    return AuthService(UserRepository(db))


def get_feed_service(
    db: AsyncSession = Depends(get_db),
    cache: LegislativeCache = Depends(get_cache),
) -> LegislativeFeedService:
    return LegislativeFeedService(FeedItemRepository(db), UserRepository(db), cache)


def get_notification_service(db: AsyncSession = Depends(get_db)) -> NotificationService:
    return NotificationService(NotificationRepository(db), UserRepository(db))


def get_poll_service(
    db: AsyncSession = Depends(get_db),
    notifications: NotificationService = Depends(get_notification_service),
) -> PollService:
    return PollService(
        PollRepository(db),
        UserRepository(db),
        AuditLogRepository(db),
        notifications,
    )


async def get_current_user(
    request: Request,
    auth: AuthService = Depends(get_auth_service),
) -> Optional[AuthUser]:
    """The signed-in user from the session cookie, or None."""
    token = request.cookies.get(settings.auth.cookie_name)
    return await auth.get_session_user(token)


async def require_user(user: Optional[AuthUser] = Depends(get_current_user)) -> AuthUser:
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return user


async def require_verified_user(user: AuthUser = Depends(require_user)) -> AuthUser:
    if not user.is_verified:
        raise HTTPException(status_code=status.HTTP_403_FORBIDDEN, detail="Verification required")
    return user
