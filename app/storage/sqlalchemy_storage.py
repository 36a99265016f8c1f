"""
SQLAlchemy-backed sink for polling-unit batches.
"""

from __future__ import annotations

from collections.abc import Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.locations import ImportRow
from app.repositories.location_repository import LocationRepository
from app.storage.base import BatchSink
from db.repositories.errors import BatchWriteError


class SQLAlchemyPollingUnitSink(BatchSink):
    """
    Writes each batch in its own transaction so one rejected batch leaves
    earlier batches committed.
    """

    def __init__(self, *, session: Session, repository: LocationRepository | None = None) -> None:
        self._session = session
        self._repository = repository or LocationRepository(session)

    def write_batch(self, rows: Sequence[ImportRow]) -> int:
        if not rows:
            return 0

        try:
            inserted = self._repository.insert_polling_units(rows)
            self._session.commit()
            return inserted
        except SQLAlchemyError as exc:
            self._session.rollback()
            raise BatchWriteError(f"Polling unit batch rejected: {exc}") from exc
