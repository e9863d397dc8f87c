"""
Shared upsert outcome types.

Responsibility: Classify the result of INSERT ... ON CONFLICT writes
"""

from dataclasses import dataclass
from enum import Enum
from typing import Generic, TypeVar
import sqlalchemy as sa

M = TypeVar("M")


class PersistenceStatus(Enum):
    """Outcome classification for persistence operations."""

    CREATED = "created"
    UPDATED = "updated"
    UNCHANGED = "unchanged"


@dataclass(slots=True)
class PersistenceOutcome(Generic[M]):
    """Represents the result of persisting a single record."""

    model: M
    status: PersistenceStatus

    @property
    def created(self) -> bool:
        return self.status is PersistenceStatus.CREATED


def inserted_flag() -> sa.ColumnElement[bool]:
    """
    RETURNING column that is true when the row was inserted.

    PostgreSQL leaves ``xmax`` at 0 for freshly inserted tuples and sets
    it when ON CONFLICT DO UPDATE rewrote an existing one.
    """
    return sa.literal_column("(xmax = 0)", sa.Boolean).label("inserted")


def status_from_flag(inserted: bool) -> PersistenceStatus:
    return PersistenceStatus.CREATED if inserted else PersistenceStatus.UPDATED
