"""
db/models/lga.py

Local Government Area: child of a State.
"""

import uuid

from sqlalchemy import ForeignKey, Index, String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class LGA(Base, TimestampMixin):
    __tablename__ = "lgas"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    state_id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        ForeignKey("states.id", ondelete="CASCADE"),
        nullable=False,
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    code: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="Unique within the parent state only",
    )

    __table_args__ = (
        UniqueConstraint("state_id", "code", name="uq_lgas_state_id_code"),
        Index("ix_lgas_state_id", "state_id"),
    )
