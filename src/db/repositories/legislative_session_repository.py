"""
Repository for legislative session data.

Responsibility: Upsert and query LegiScan sessions
"""

from datetime import datetime
from typing import List, Optional
from sqlalchemy import select, desc
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.dialects.postgresql import insert as pg_insert
import logging

from ..models import LegislativeSessionModel
from .persistence import PersistenceOutcome, inserted_flag, status_from_flag
from ...config import settings
from ...models.legislative import LegislativeSession

logger = logging.getLogger(__name__)


class LegislativeSessionRepository:
    """
    Repository for legislative sessions.

    Example:
        repo = LegislativeSessionRepository(session)
        outcome = await repo.upsert(legiscan_session)
        active = await repo.get_active_sessions()
    """

    def __init__(self, session: AsyncSession, state: Optional[str] = None):
        """
        Args:
            session: Active database session
            state: Two-letter state code (defaults to ``settings.legiscan.state``)
        """
        self.session = session
        self.state = state or settings.legiscan.state

    async def get_by_id(self, session_id: int) -> Optional[LegislativeSessionModel]:
        result = await self.session.execute(
            select(LegislativeSessionModel).where(
                LegislativeSessionModel.session_id == session_id
            )
        )
        return result.scalar_one_or_none()

    async def get_active_sessions(self) -> List[LegislativeSessionModel]:
        """Active sessions for the configured state, newest first."""
        result = await self.session.execute(
            select(LegislativeSessionModel)
            .where(
                LegislativeSessionModel.state == self.state,
                LegislativeSessionModel.active.is_(True),
            )
            .order_by(desc(LegislativeSessionModel.year_start))
        )
        return list(result.scalars().all())

    async def upsert(
        self,
        legislative_session: LegislativeSession
    ) -> PersistenceOutcome[LegislativeSessionModel]:
        """
        Insert or update a session keyed by LegiScan ``session_id``.

        Args:
            legislative_session: Normalized session from LegiScan

        Returns:
            PersistenceOutcome with the stored model
        """
        values = {
            "session_id": legislative_session.session_id,
            "state_id": legislative_session.state_id,
            "state": self.state,
            "year_start": legislative_session.year_start,
            "year_end": legislative_session.year_end,
            "session_name": legislative_session.session_name,
            "session_title": legislative_session.session_title,
            "special": bool(legislative_session.special),
            "active": legislative_session.is_active,
            "dataset_hash": legislative_session.session_hash,
        }

        stmt = pg_insert(LegislativeSessionModel).values(values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[LegislativeSessionModel.session_id],
            set_={
                "session_name": stmt.excluded.session_name,
                "session_title": stmt.excluded.session_title,
                "year_start": stmt.excluded.year_start,
                "year_end": stmt.excluded.year_end,
                "special": stmt.excluded.special,
                "active": stmt.excluded.active,
                "dataset_hash": stmt.excluded.dataset_hash,
                "updated_at": datetime.utcnow(),
            }
        ).returning(LegislativeSessionModel, inserted_flag())

        result = await self.session.execute(stmt)
        model, inserted = result.one()
        logger.debug(f"Upserted session {model.session_id} ({model.session_name})")
        return PersistenceOutcome(model=model, status=status_from_flag(inserted))
