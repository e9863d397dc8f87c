"""
Repository for legislator data.

Responsibility: Upsert and query state legislators
"""

from datetime import datetime
from typing import Iterable, Optional
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.dialects.postgresql import insert as pg_insert
import logging

from ..models import LegislatorModel
from .persistence import PersistenceOutcome, inserted_flag, status_from_flag
from ...config import settings
from ...models.legislative import Legislator, Sponsor, parse_district

logger = logging.getLogger(__name__)


class LegislatorRepository:
    """
    Repository for legislators keyed by LegiScan ``people_id``.

    Example:
        repo = LegislatorRepository(session)
        outcome = await repo.upsert(person)
    """

    def __init__(self, session: AsyncSession, state: Optional[str] = None):
        self.session = session
        self.state = state or settings.legiscan.state

    async def upsert(
        self,
        person: Legislator,
        level: str = "state"
    ) -> PersistenceOutcome[LegislatorModel]:
        """
        Insert or update one legislator.

        Args:
            person: Normalized LegiScan person
            level: ``state`` or ``federal``; controls district formatting

        Returns:
            PersistenceOutcome with the stored model
        """
        values = {
            "people_id": person.people_id,
            "first_name": person.first_name,
            "last_name": person.last_name,
            "full_name": person.full_name or f"Legislator {person.people_id}",
            "party": person.party,
            "role": person.role,
            "district": parse_district(person.role, person.district, level=level, state=self.state),
            "chamber": person.chamber,
            "state": self.state,
            "level": level,
            "votesmart_id": person.votesmart_id,
            "ballotpedia": person.ballotpedia,
            "person_hash": person.person_hash,
            "active": True,
        }

        stmt = pg_insert(LegislatorModel).values(values)
        stmt = stmt.on_conflict_do_update(
            index_elements=[LegislatorModel.people_id],
            set_={
                "first_name": stmt.excluded.first_name,
                "last_name": stmt.excluded.last_name,
                "full_name": stmt.excluded.full_name,
                "party": stmt.excluded.party,
                "role": stmt.excluded.role,
                "district": stmt.excluded.district,
                "chamber": stmt.excluded.chamber,
                "level": stmt.excluded.level,
                "votesmart_id": stmt.excluded.votesmart_id,
                "ballotpedia": stmt.excluded.ballotpedia,
                "person_hash": stmt.excluded.person_hash,
                "active": stmt.excluded.active,
                "updated_at": datetime.utcnow(),
            }
        ).returning(LegislatorModel, inserted_flag())

        result = await self.session.execute(stmt)
        model, inserted = result.one()
        return PersistenceOutcome(model=model, status=status_from_flag(inserted))

    async def ensure_from_sponsors(self, sponsors: Iterable[Sponsor]) -> None:
        """
        Create placeholder rows for sponsors not yet known.

        Existing legislators are left untouched; a later people sync
        fills in the full record.
        """
        rows = [
            {
                "people_id": sponsor.people_id,
                "first_name": sponsor.first_name,
                "last_name": sponsor.last_name,
                "full_name": sponsor.name or f"Legislator {sponsor.people_id}",
                "party": sponsor.party,
                "role": sponsor.role,
                "district": parse_district(sponsor.role, sponsor.district, state=self.state),
                "chamber": "S" if sponsor.role == "Sen" else "H",
                "state": self.state,
                "level": "state",
                "active": True,
            }
            for sponsor in sponsors
        ]
        if not rows:
            return

        stmt = pg_insert(LegislatorModel).values(rows).on_conflict_do_nothing(
            index_elements=[LegislatorModel.people_id]
        )
        await self.session.execute(stmt)
