"""Initial wedding RSVP schema."""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = "0001_initial"
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    op.create_table(
        "rsvps",
        sa.Column("id", sa.Integer(), autoincrement=True, nullable=False),
        sa.Column("name", sa.String(length=100), nullable=False),
        sa.Column("email", sa.String(length=254), nullable=False),
        sa.Column(
            "is_attending", sa.Boolean(), nullable=False, server_default=sa.text("0")
        ),
        sa.Column(
            "number_of_guests",
            sa.Integer(),
            nullable=False,
            server_default=sa.text("0"),
        ),
        sa.Column("guest_names", sa.JSON(), nullable=True),
        sa.Column("notes", sa.Text(), nullable=True),
        sa.Column("created_at", sa.DateTime(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("email"),
        sa.CheckConstraint(
            "number_of_guests >= 0", name="ck_rsvps_guests_non_negative"
        ),
    )
    op.create_index(
        "uq_rsvps_email_lower", "rsvps", [sa.text("lower(email)")], unique=True
    )
    op.create_index("ix_rsvps_created_at", "rsvps", ["created_at"])
    op.create_index("ix_rsvps_is_attending", "rsvps", ["is_attending"])

    op.create_table(
        "meta",
        sa.Column("key", sa.String(length=128), nullable=False),
        sa.Column("value", sa.Text(), nullable=False),
        sa.Column("updated_at", sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint("key"),
    )


def downgrade() -> None:
    op.drop_table("meta")
    op.drop_index("ix_rsvps_is_attending", table_name="rsvps")
    op.drop_index("ix_rsvps_created_at", table_name="rsvps")
    op.drop_index("uq_rsvps_email_lower", table_name="rsvps")
    op.drop_table("rsvps")
