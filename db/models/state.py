"""
db/models/state.py

State: top level of the administrative hierarchy.
"""

import uuid

from sqlalchemy import String, UniqueConstraint
from sqlalchemy.dialects.postgresql import UUID
from sqlalchemy.orm import Mapped, mapped_column

from db.base import Base, TimestampMixin


class State(Base, TimestampMixin):
    __tablename__ = "states"

    id: Mapped[uuid.UUID] = mapped_column(
        UUID(as_uuid=True),
        primary_key=True,
        default=uuid.uuid4,
    )
    name: Mapped[str] = mapped_column(String(120), nullable=False)
    code: Mapped[str] = mapped_column(
        String(16),
        nullable=False,
        comment="Two-digit INEC state code, first segment of a delimitation",
    )

    __table_args__ = (UniqueConstraint("code", name="uq_states_code"),)
