"""create states, lgas, wards and polling_units tables

Revision ID: 20261019_0001
Revises:
Create Date: 2026-10-19 09:00:00
"""

from __future__ import annotations

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision = "20261019_0001"
down_revision = None
branch_labels = None
depends_on = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column("created_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
        sa.Column("updated_at", sa.DateTime(timezone=True), server_default=sa.text("now()"), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        "states",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("code", sa.String(length=16), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.UniqueConstraint("code", name="uq_states_code"),
    )

    op.create_table(
        "lgas",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("state_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=120), nullable=False),
        sa.Column("code", sa.String(length=16), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["state_id"], ["states.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("state_id", "code", name="uq_lgas_state_id_code"),
    )
    op.create_index("ix_lgas_state_id", "lgas", ["state_id"], unique=False)

    op.create_table(
        "wards",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("lga_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=160), nullable=False),
        sa.Column("code", sa.String(length=16), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["lga_id"], ["lgas.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("lga_id", "code", name="uq_wards_lga_id_code"),
    )
    op.create_index("ix_wards_lga_id", "wards", ["lga_id"], unique=False)

    op.create_table(
        "polling_units",
        sa.Column("id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("ward_id", postgresql.UUID(as_uuid=True), nullable=False),
        sa.Column("name", sa.String(length=255), nullable=False),
        sa.Column("code", sa.String(), nullable=False),
        sa.Column("delimitation", sa.String(), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint("id"),
        sa.ForeignKeyConstraint(["ward_id"], ["wards.id"], ondelete="CASCADE"),
        sa.UniqueConstraint("ward_id", "code", name="uq_polling_units_ward_id_code"),
    )
    op.create_index("ix_polling_units_ward_id", "polling_units", ["ward_id"], unique=False)
    op.create_index("ix_polling_units_delimitation", "polling_units", ["delimitation"], unique=False)


def downgrade() -> None:
    op.drop_index("ix_polling_units_delimitation", table_name="polling_units")
    op.drop_index("ix_polling_units_ward_id", table_name="polling_units")
    op.drop_table("polling_units")
    op.drop_index("ix_wards_lga_id", table_name="wards")
    op.drop_table("wards")
    op.drop_index("ix_lgas_state_id", table_name="lgas")
    op.drop_table("lgas")
    op.drop_table("states")
