"""Alembic migration: Citizenly base schema.

Creates legislative tables (sessions, bills, sponsors, roll calls,
individual votes, legislators, feed items) and the user-facing tables
(users, addresses, politicians, interests, polls, responses,
notifications, preferences, audit logs).
"""

from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '1_citizenly_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create every table declared in src.db.models that is missing."""
    from src.db.models import Base

    bind = op.get_bind()
    existing_tables = set(sa.inspect(bind).get_table_names())

    # feed_items dedupe relies on UNIQUE ... NULLS NOT DISTINCT
    server_version = bind.dialect.server_version_info or (0,)
    if server_version[0] < 15:
        raise RuntimeError("PostgreSQL 15 or newer is required")

    Base.metadata.create_all(bind=bind, checkfirst=True)

    created = sorted(set(Base.metadata.tables) - existing_tables)
    if created:
        print(f"Created tables: {', '.join(created)}")


def downgrade() -> None:
    """Drop all Citizenly tables."""
    from src.db.models import Base

    Base.metadata.drop_all(bind=op.get_bind(), checkfirst=True)
