"""baseline - every portal table from the SQLAlchemy models

Revision ID: 001_baseline
Revises: None
Create Date: 2026-03-02

Existing databases (tables created by the previous Node deployment):
    alembic stamp 001_baseline
Fresh databases:
    alembic upgrade head
"""
from typing import Sequence, Union

from alembic import op

revision: str = "001_baseline"
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create all tables on the migration connection (checkfirst, so re-runs are no-ops)."""
    from app.models import Base

    Base.metadata.create_all(bind=op.get_bind(), checkfirst=True)


def downgrade() -> None:
    """Drop all tables. Destroys data; dev/test only."""
    from app.models import Base

    Base.metadata.drop_all(bind=op.get_bind())
