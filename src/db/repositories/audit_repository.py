"""
Repository for audit log entries.

Responsibility: Append audit events for user actions
"""

from typing import Any, Dict, Optional
from uuid import UUID
from sqlalchemy.ext.asyncio import AsyncSession
import logging

from ..models import AuditLogModel

logger = logging.getLogger(__name__)


class AuditLogRepository:
    """Append-only audit log writer."""

    def __init__(self, session: AsyncSession):
        self.session = session

    async def log(
        self,
        user_id: Optional[UUID],
        action: str,
        resource_type: Optional[str] = None,
        resource_id: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> AuditLogModel:
        entry = AuditLogModel(
            user_id=user_id,
            action=action,
            resource_type=resource_type,
            resource_id=resource_id,
            details=details or {},
            ip_address=ip_address,
            user_agent=user_agent,
        )
        self.session.add(entry)
        await self.session.flush()
        logger.debug(f"Audit: {action} {resource_type}:{resource_id} by {user_id}")
        return entry
