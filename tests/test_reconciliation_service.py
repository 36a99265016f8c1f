"""
tests/test_reconciliation_service.py

Pytest unit tests for ReconciliationReporter and its set-level helpers.

Coverage
--------
- Collision detection on whitespace-variant delimitations
- Missing rows grouped by state code, largest group first
- Classification of every missing delimitation
- Parse-level rejects surfaced as malformed rows
- Level-by-level delimitation tracing
- Per-state source row spans and repeated delimitations
- Report serialization
"""

from __future__ import annotations

import pytest

from app.domain.locations import (
    LocationLevel,
    LocationRef,
    LocationSnapshot,
    ReconciliationReason,
    StateSpan,
)
from app.schemas.location_import import build_reconciliation_response, build_trace_response
from app.services.polling_unit_import_service import LocationImportService
from app.services.reconciliation_service import (
    ReconciliationReporter,
    duplicate_delimitations,
    missing_by_state,
    state_boundaries,
    state_code_of,
)
from app.services.reference_index import ReferenceIndex

PERSISTED = frozenset({"01-01-01-001", "01-01-02-001"})


@pytest.fixture()
def reporter(reference_index) -> ReconciliationReporter:
    return ReconciliationReporter(reference_index)


@pytest.fixture()
def source_tuples(make_pu_tuple):
    return [
        make_pu_tuple(0, "01-01-01-001", "PU One"),
        make_pu_tuple(1, "01-01-01-001 ", "PU One again"),
        make_pu_tuple(2, "01-01-02-001", "Other ward"),
        make_pu_tuple(3, "02-01-01-001", "Unknown state"),
        make_pu_tuple(4, "01-05-01-001", "Unknown LGA"),
        make_pu_tuple(5, "01-01-09-001", "Unknown ward"),
        make_pu_tuple(6, None, "No delimitation"),
        make_pu_tuple(7, "01-01-01-003", None),
        make_pu_tuple(8, "01-01-01-002", "Never written"),
        make_pu_tuple(9, "01-01-02-001", "Other ward repeated"),
    ]


# ---------------------------------------------------------------------------
# Set-level helpers
# ---------------------------------------------------------------------------


class TestHelpers:
    def test_state_code_of(self) -> None:
        assert state_code_of("22-17-04-006") == "22"
        assert state_code_of(" 05-01-01-001") == "05"

    def test_missing_by_state_orders_largest_first(self) -> None:
        parsed = {"22-17-04-006", "23-01-01-001", "23-01-01-002", "01-01-01-001"}

        counts = missing_by_state(parsed, {"01-01-01-001"})

        assert counts == {"23": 2, "22": 1}
        assert list(counts) == ["23", "22"]

    def test_nothing_missing(self) -> None:
        assert missing_by_state({"01-01-01-001"}, {"01-01-01-001", "09-09-09-009"}) == {}

    def test_duplicate_delimitations(self, source_tuples) -> None:
        assert duplicate_delimitations(source_tuples) == {"01-01-02-001": 2}

    def test_state_boundaries(self, make_pu_tuple) -> None:
        tuples = [
            make_pu_tuple(0, "01-01-01-001", "A"),
            make_pu_tuple(1, "01-01-01-002", "B"),
            make_pu_tuple(2, None, "C"),
            make_pu_tuple(3, "01-01-01-003", "D"),
            make_pu_tuple(4, "02-01-01-001", "E"),
        ]

        spans = state_boundaries(tuples)

        assert spans == {
            "01": StateSpan(first_row=0, last_row=3, count=3),
            "02": StateSpan(first_row=4, last_row=4, count=1),
        }


# ---------------------------------------------------------------------------
# Reporter
# ---------------------------------------------------------------------------


class TestReconcile:
    def test_whitespace_variant_is_one_collision(self, reporter, source_tuples) -> None:
        [collision] = reporter.detect_collisions(source_tuples)

        assert collision.ward_id == "W1"
        assert collision.code == "001"
        assert set(collision.delimitations) == {"01-01-01-001", "01-01-01-001 "}
        assert collision.row_indices == (0, 1)

    def test_counts_and_missing_by_state(self, reporter, source_tuples) -> None:
        report = reporter.reconcile(source_tuples, PERSISTED)

        assert report.parsed_count == 8
        assert report.persisted_count == 2
        assert report.missing_by_state == {"01": 5, "02": 1}
        assert report.duplicate_delimitations == {"01-01-02-001": 2}

    def test_every_missing_row_is_classified(self, reporter, source_tuples) -> None:
        report = reporter.reconcile(source_tuples, PERSISTED)

        assert [(entry.source_row_index, entry.reason) for entry in report.entries] == [
            (1, ReconciliationReason.DUPLICATE_KEY),
            (3, ReconciliationReason.MISSING_STATE),
            (4, ReconciliationReason.MISSING_LGA),
            (5, ReconciliationReason.MISSING_WARD),
            (6, ReconciliationReason.MALFORMED_ROW),
            (7, ReconciliationReason.MALFORMED_ROW),
            (8, ReconciliationReason.NOT_PERSISTED),
        ]
        assert report.entries[0].delimitation == "01-01-01-001 "
        assert report.entries[4].delimitation is None

    def test_parse_rejects_are_malformed_entries(self, reporter) -> None:
        tokenized = LocationImportService(batch_size=10).tokenize_polling_units(
            "INSERT INTO `pu_data` VALUES "
            "(1,1,1,1,'01-01-01-001','Abia','Aba North','Ward1','PU One'),"
            "(2,'short');\n"
        )

        report = reporter.reconcile(tokenized.tuples, {"01-01-01-001"}, parse_stats=tokenized.stats)

        assert report.missing_count == 0
        assert [(entry.source_row_index, entry.reason) for entry in report.entries] == [
            (1, ReconciliationReason.MALFORMED_ROW)
        ]

    def test_reconcile_is_repeatable(self, reporter, source_tuples) -> None:
        assert reporter.reconcile(source_tuples, PERSISTED) == reporter.reconcile(source_tuples, PERSISTED)

    def test_response_serializes_reasons(self, reporter, source_tuples) -> None:
        response = build_reconciliation_response(reporter.reconcile(source_tuples, PERSISTED), max_entries=2)

        payload = response.model_dump()
        assert payload["missing_count"] == 6
        assert payload["reasons"]["malformed_row"] == 2
        assert len(payload["entries"]) == 2
        assert payload["collisions"][0]["row_indices"] == [0, 1]


class TestTrace:
    def test_missing_state_lists_available_codes(self, reporter) -> None:
        trace = reporter.trace("02-01-01-001")

        assert trace.failed_level is LocationLevel.STATE
        assert trace.resolved == {}
        assert trace.available_codes == ("01",)

    def test_missing_lga_keeps_resolved_prefix(self, reporter) -> None:
        trace = reporter.trace("01-05-01-001")

        assert trace.failed_level is LocationLevel.LGA
        assert trace.resolved == {LocationLevel.STATE: "S1"}
        assert trace.available_codes == ("01",)

    def test_fully_resolved_without_polling_units(self, reporter) -> None:
        trace = reporter.trace("01-01-02-123")

        assert trace.failed_level is None
        assert trace.resolved == {
            LocationLevel.STATE: "S1",
            LocationLevel.LGA: "L1",
            LocationLevel.WARD: "W2",
        }

    def test_polling_unit_level_when_indexed(self, reference_snapshot: LocationSnapshot) -> None:
        snapshot = LocationSnapshot(
            states=reference_snapshot.states,
            lgas=reference_snapshot.lgas,
            wards=reference_snapshot.wards,
            polling_units=(LocationRef(id="P1", code="001", parent_id="W1"),),
        )
        reporter = ReconciliationReporter(ReferenceIndex.build(snapshot))

        assert reporter.trace("01-01-01-001").resolved[LocationLevel.POLLING_UNIT] == "P1"
        missing = reporter.trace("01-01-01-999")
        assert missing.failed_level is LocationLevel.POLLING_UNIT
        assert missing.available_codes == ("001",)

    def test_malformed_delimitation(self, reporter) -> None:
        trace = reporter.trace("01-01")

        assert trace.malformed is True
        assert build_trace_response(trace).malformed is True
