"""Add dietary restrictions and song requests to RSVPs."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0002_dietary_and_songs"
down_revision = "0001_initial"
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Plain ADD COLUMN keeps the lower(email) expression index intact on SQLite.
    op.add_column("rsvps", sa.Column("dietary_restrictions", sa.Text(), nullable=True))
    op.add_column("rsvps", sa.Column("song_requests", sa.Text(), nullable=True))


def downgrade() -> None:
    op.drop_column("rsvps", "song_requests")
    op.drop_column("rsvps", "dietary_restrictions")
