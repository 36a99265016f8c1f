"""
db/models/polling_unit.py

Polling unit, the leaf of the hierarchy, written by the bulk dump import.

(ward_id, code) is the natural key the importer relies on for idempotent
writes. delimitation is kept for reconciliation against the source dump and
is not unique: two source rows may carry the same string. code and
delimitation are unbounded so an odd legacy value cannot fail a whole batch.
"""

import uuid

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class PollingUnit(Base, TimestampMixin):
    __tablename__ = "polling_units"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    ward_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("wards.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    code: Mapped[str] = mapped_column(String, nullable=False)
    delimitation: Mapped[str | None] = mapped_column(
        String,
        nullable=True,
        comment="State-LGA-Ward-PU code path from the source dump",
    )

    __table_args__ = (
        UniqueConstraint("ward_id", "code", name="uq_polling_units_ward_id_code"),
        Index("ix_polling_units_ward_id", "ward_id"),
        Index("ix_polling_units_delimitation", "delimitation"),
    )
