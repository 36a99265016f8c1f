"""
tests/conftest.py

Shared fixtures: a small reference snapshot, an in-memory idempotent sink
and a polling-unit tuple factory. No database is required.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence

import pytest

from app.domain.locations import ImportRow, LocationRef, LocationSnapshot, ParsedTuple
from app.services.reference_index import ReferenceIndex
from app.storage.base import BatchSink
from db.repositories.errors import BatchWriteError


class InMemoryPollingUnitSink(BatchSink):
    """
    Keeps rows keyed by (ward_id, code); optionally rejects chosen batches.
    """

    def __init__(self, *, fail_on_batches: Sequence[int] = ()) -> None:
        self.rows: dict[tuple[object, str], ImportRow] = {}
        self.batches: list[list[ImportRow]] = []
        self._fail_on_batches = set(fail_on_batches)

    def write_batch(self, rows: Sequence[ImportRow]) -> int:
        batch_number = len(self.batches)
        self.batches.append(list(rows))
        if batch_number in self._fail_on_batches:
            raise BatchWriteError("store unavailable")

        inserted = 0
        for row in rows:
            key = (row.ward_id, row.code)
            if key in self.rows:
                continue
            self.rows[key] = row
            inserted += 1
        return inserted


@pytest.fixture()
def reference_snapshot() -> LocationSnapshot:
    """State 01 -> LGA 01 -> wards 01 and 02. State 02 is not seeded."""
    return LocationSnapshot(
        states=(LocationRef(id="S1", code="01"),),
        lgas=(LocationRef(id="L1", code="01", parent_id="S1"),),
        wards=(
            LocationRef(id="W1", code="01", parent_id="L1"),
            LocationRef(id="W2", code="02", parent_id="L1"),
        ),
    )


@pytest.fixture()
def reference_index(reference_snapshot: LocationSnapshot) -> ReferenceIndex:
    return ReferenceIndex.build(reference_snapshot)


@pytest.fixture()
def sink() -> InMemoryPollingUnitSink:
    return InMemoryPollingUnitSink()


@pytest.fixture()
def sink_factory() -> Callable[..., InMemoryPollingUnitSink]:
    return InMemoryPollingUnitSink


@pytest.fixture()
def make_pu_tuple() -> Callable[[int, str | None, str | None], ParsedTuple]:
    """Build a pu_data tuple with the fixed nine-column layout."""

    def _make(row_index: int, delimitation: str | None, unit_name: str | None) -> ParsedTuple:
        return ParsedTuple(
            row_index=row_index,
            values=(
                str(row_index + 1),
                "1",
                "1",
                "1",
                delimitation,
                "Abia",
                "Aba North",
                "Ward1",
                unit_name,
            ),
        )

    return _make
