"""
app/repositories/location_repository.py

Persistence layer for the State / LGA / Ward / PollingUnit hierarchy.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Any

from sqlalchemy import func, select
from sqlalchemy.dialects.postgresql import insert
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from app.domain.locations import ImportRow, LocationRef, LocationSnapshot
from db.models.lga import LGA
from db.models.polling_unit import PollingUnit
from db.models.state import State
from db.models.ward import Ward
from db.repositories.errors import SeedWriteError, SnapshotReadError

_DEFAULT_BATCH_SIZE = 1000
_POLLING_UNIT_KEY_CONSTRAINT = "uq_polling_units_ward_id_code"
_STATE_KEY_CONSTRAINT = "uq_states_code"
_LGA_KEY_CONSTRAINT = "uq_lgas_state_id_code"
_WARD_KEY_CONSTRAINT = "uq_wards_lga_id_code"


class LocationRepository:
    """
    Repository for snapshot reads, idempotent polling-unit inserts and
    parent-level upserts.
    """

    def __init__(self, session: Session) -> None:
        self._session = session

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def load_snapshot(self, *, include_polling_units: bool = False) -> LocationSnapshot:
        """
        Read the parent tables in full for Reference Index construction.
        """

        try:
            states = tuple(
                LocationRef(id=row.id, code=row.code)
                for row in self._session.execute(select(State.id, State.code))
            )
            lgas = tuple(
                LocationRef(id=row.id, code=row.code, parent_id=row.state_id)
                for row in self._session.execute(select(LGA.id, LGA.code, LGA.state_id))
            )
            wards = tuple(
                LocationRef(id=row.id, code=row.code, parent_id=row.lga_id)
                for row in self._session.execute(select(Ward.id, Ward.code, Ward.lga_id))
            )
            polling_units: tuple[LocationRef, ...] = ()
            if include_polling_units:
                polling_units = tuple(
                    LocationRef(id=row.id, code=row.code, parent_id=row.ward_id)
                    for row in self._session.execute(
                        select(PollingUnit.id, PollingUnit.code, PollingUnit.ward_id)
                    )
                )
        except SQLAlchemyError as exc:
            raise SnapshotReadError(f"Failed to read location snapshot: {exc}") from exc

        return LocationSnapshot(states=states, lgas=lgas, wards=wards, polling_units=polling_units)

    def fetch_delimitations(self) -> set[str]:
        """
        Distinct non-null delimitations currently persisted.
        """

        stmt = select(PollingUnit.delimitation).where(PollingUnit.delimitation.is_not(None)).distinct()
        try:
            return set(self._session.scalars(stmt).all())
        except SQLAlchemyError as exc:
            raise SnapshotReadError(f"Failed to read persisted delimitations: {exc}") from exc

    # ------------------------------------------------------------------
    # Polling units
    # ------------------------------------------------------------------

    def insert_polling_units(
        self,
        rows: Sequence[ImportRow],
        *,
        batch_size: int = _DEFAULT_BATCH_SIZE,
    ) -> int:
        """
        INSERT ... ON CONFLICT DO NOTHING on (ward_id, code).

        Returns the number of rows actually inserted. Does not commit.
        """

        if not rows:
            return 0

        payloads = self._deduplicate(
            [
                {
                    "ward_id": row.ward_id,
                    "name": row.name,
                    "code": row.code,
                    "delimitation": row.delimitation,
                }
                for row in rows
            ],
            key_columns=("ward_id", "code"),
        )
        size = max(1, batch_size)
        inserted = 0
        for start in range(0, len(payloads), size):
            chunk = payloads[start : start + size]
            stmt = (
                insert(PollingUnit)
                .values(chunk)
                .on_conflict_do_nothing(constraint=_POLLING_UNIT_KEY_CONSTRAINT)
                .returning(PollingUnit.id)
            )
            inserted += len(self._session.scalars(stmt).all())
        return inserted

    # ------------------------------------------------------------------
    # Parent upserts (seeding)
    # ------------------------------------------------------------------

    def upsert_states(self, rows: Sequence[dict[str, Any]]) -> dict[str, Any]:
        """
        Upsert {name, code} rows; returns code -> id for every row written.
        """

        returned = self._upsert(State, rows, ("code",), _STATE_KEY_CONSTRAINT)
        return {row.code: row.id for row in returned}

    def upsert_lgas(self, rows: Sequence[dict[str, Any]]) -> dict[tuple[Any, str], Any]:
        """
        Upsert {state_id, name, code} rows; returns (state_id, code) -> id.
        """

        returned = self._upsert(LGA, rows, ("state_id", "code"), _LGA_KEY_CONSTRAINT)
        return {(row.state_id, row.code): row.id for row in returned}

    def upsert_wards(self, rows: Sequence[dict[str, Any]]) -> dict[tuple[Any, str], Any]:
        """
        Upsert {lga_id, name, code} rows; returns (lga_id, code) -> id.
        """

        returned = self._upsert(Ward, rows, ("lga_id", "code"), _WARD_KEY_CONSTRAINT)
        return {(row.lga_id, row.code): row.id for row in returned}

    def _upsert(
        self,
        model: Any,
        rows: Sequence[dict[str, Any]],
        key_columns: tuple[str, ...],
        constraint: str,
        *,
        batch_size: int = _DEFAULT_BATCH_SIZE,
    ) -> list[Any]:
        if not rows:
            return []

        # ON CONFLICT DO UPDATE cannot touch the same row twice in one statement.
        payloads = self._deduplicate(list(rows), key_columns=key_columns)
        returning_columns = [model.id, *(getattr(model, column) for column in key_columns)]
        returned: list[Any] = []
        try:
            for start in range(0, len(payloads), batch_size):
                chunk = payloads[start : start + batch_size]
                stmt = insert(model).values(chunk)
                stmt = stmt.on_conflict_do_update(
                    constraint=constraint,
                    set_={"name": stmt.excluded.name, "updated_at": func.now()},
                ).returning(*returning_columns)
                returned.extend(self._session.execute(stmt).all())
        except SQLAlchemyError as exc:
            raise SeedWriteError(f"Failed to upsert {model.__tablename__}: {exc}") from exc
        return returned

    def _deduplicate(
        self,
        payloads: Sequence[dict[str, Any]],
        *,
        key_columns: tuple[str, ...],
    ) -> list[dict[str, Any]]:
        seen: set[tuple[Any, ...]] = set()
        deduped_payloads: list[dict[str, Any]] = []

        for payload in payloads:
            key = tuple(payload[column] for column in key_columns)
            if key in seen:
                continue
            seen.add(key)
            deduped_payloads.append(payload)

        return deduped_payloads
