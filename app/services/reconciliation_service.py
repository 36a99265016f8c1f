"""
app/services/reconciliation_service.py

Read-only diagnostics comparing the parsed dump against the persisted store.

Two checks make up a ReconciliationReport:

- collision detection: source rows that resolve to the same (ward_id, code)
  slot while carrying different delimitation strings. The store keeps only
  one of them, so the source data is defective, not the importer.
- missing-row detection: parsed delimitations absent from the store, grouped
  by state code to show which subtree failed to seed, and each classified by
  tracing it back through the ReferenceIndex.

The report is meant for human triage. Re-seeding parents and fixing source
rows are different remediations and neither is attempted here.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence
from pathlib import Path
from typing import AbstractSet, Any

from sqlalchemy.orm import Session

from app.domain.locations import (
    DelimitationTrace,
    KeyCollision,
    LocationLevel,
    ParsedTuple,
    ParseStats,
    ReconciliationEntry,
    ReconciliationReason,
    ReconciliationReport,
    SkipReason,
    StateSpan,
    TokenizeResult,
)
from app.logging_utils import log_event
from app.repositories.location_repository import LocationRepository
from app.services.dump_source import read_dump, resolve_dump_path
from app.services.polling_unit_import_service import (
    DELIMITATION_COLUMN,
    UNIT_NAME_COLUMN,
    LocationImportService,
)
from app.services.reference_index import DELIMITATION_SEPARATOR, ReferenceIndex, split_delimitation

logger = logging.getLogger(__name__)

_REASON_BY_SKIP: dict[SkipReason, ReconciliationReason] = {
    SkipReason.MISSING_FIELDS: ReconciliationReason.MALFORMED_ROW,
    SkipReason.MALFORMED_DELIMITATION: ReconciliationReason.MALFORMED_ROW,
    SkipReason.MISSING_STATE: ReconciliationReason.MISSING_STATE,
    SkipReason.MISSING_LGA: ReconciliationReason.MISSING_LGA,
    SkipReason.MISSING_WARD: ReconciliationReason.MISSING_WARD,
}


# ---------------------------------------------------------------------------
# Set-level helpers
# ---------------------------------------------------------------------------


def _delimitation(parsed: ParsedTuple) -> str | None:
    if len(parsed.values) <= DELIMITATION_COLUMN:
        return None
    value = parsed.values[DELIMITATION_COLUMN]
    return value if value and value.strip() else None


def _has_unit_name(parsed: ParsedTuple) -> bool:
    if len(parsed.values) <= UNIT_NAME_COLUMN:
        return False
    value = parsed.values[UNIT_NAME_COLUMN]
    return bool(value and value.strip())


def state_code_of(delimitation: str) -> str:
    return delimitation.split(DELIMITATION_SEPARATOR, 1)[0].strip()


def parsed_delimitations(tuples: Iterable[ParsedTuple]) -> set[str]:
    return {delimitation for delimitation in map(_delimitation, tuples) if delimitation is not None}


def missing_by_state(parsed: AbstractSet[str], persisted: AbstractSet[str]) -> dict[str, int]:
    """
    ``parsed - persisted`` counted per state-code prefix, largest first.
    """

    counts: dict[str, int] = {}
    for delimitation in parsed - persisted:
        state_code = state_code_of(delimitation)
        counts[state_code] = counts.get(state_code, 0) + 1
    return dict(sorted(counts.items(), key=lambda item: (-item[1], item[0])))


def duplicate_delimitations(tuples: Iterable[ParsedTuple]) -> dict[str, int]:
    """
    Delimitation strings that occur on more than one source row.
    """

    seen: dict[str, int] = {}
    for parsed in tuples:
        delimitation = _delimitation(parsed)
        if delimitation is not None:
            seen[delimitation] = seen.get(delimitation, 0) + 1
    return {delimitation: count for delimitation, count in seen.items() if count > 1}


def state_boundaries(tuples: Iterable[ParsedTuple]) -> dict[str, StateSpan]:
    """
    First/last source row and row count for each state code, in dump order.
    """

    spans: dict[str, StateSpan] = {}
    for parsed in tuples:
        delimitation = _delimitation(parsed)
        if delimitation is None:
            continue
        state_code = state_code_of(delimitation)
        span = spans.get(state_code)
        if span is None:
            spans[state_code] = StateSpan(first_row=parsed.row_index, last_row=parsed.row_index, count=1)
        else:
            spans[state_code] = StateSpan(
                first_row=span.first_row,
                last_row=parsed.row_index,
                count=span.count + 1,
            )
    return spans


# ---------------------------------------------------------------------------
# Reporter
# ---------------------------------------------------------------------------


class ReconciliationReporter:
    """
    Builds ReconciliationReports against one ReferenceIndex snapshot.
    """

    def __init__(self, index: ReferenceIndex) -> None:
        self._index = index

    def detect_collisions(self, tuples: Iterable[ParsedTuple]) -> list[KeyCollision]:
        groups: dict[tuple[Any, str], dict[str, list[int]]] = {}
        for parsed in tuples:
            delimitation = _delimitation(parsed)
            if delimitation is None:
                continue
            resolved = self._index.resolve_delimitation(delimitation)
            if isinstance(resolved, SkipReason):
                continue
            slot = (resolved.ward_id, resolved.parts.unit_code)
            groups.setdefault(slot, {}).setdefault(delimitation, []).append(parsed.row_index)

        collisions: list[KeyCollision] = []
        for (ward_id, code), rows_by_delimitation in groups.items():
            if len(rows_by_delimitation) < 2:
                continue
            collisions.append(
                KeyCollision(
                    ward_id=ward_id,
                    code=code,
                    delimitations=tuple(rows_by_delimitation),
                    row_indices=tuple(
                        sorted(index for rows in rows_by_delimitation.values() for index in rows)
                    ),
                )
            )
        return collisions

    def reconcile(
        self,
        tuples: Sequence[ParsedTuple],
        persisted_delimitations: AbstractSet[str],
        *,
        parse_stats: ParseStats | None = None,
    ) -> ReconciliationReport:
        collisions = self.detect_collisions(tuples)
        colliding = {delimitation for collision in collisions for delimitation in collision.delimitations}

        first_row: dict[str, int] = {}
        complete: set[str] = set()
        entries: list[ReconciliationEntry] = []
        for parsed in tuples:
            delimitation = _delimitation(parsed)
            if delimitation is None:
                entries.append(
                    ReconciliationEntry(
                        delimitation=None,
                        reason=ReconciliationReason.MALFORMED_ROW,
                        source_row_index=parsed.row_index,
                    )
                )
                continue
            first_row.setdefault(delimitation, parsed.row_index)
            if _has_unit_name(parsed):
                complete.add(delimitation)

        parsed = set(first_row)
        for delimitation in parsed - persisted_delimitations:
            entries.append(
                ReconciliationEntry(
                    delimitation=delimitation,
                    reason=self._classify_missing(delimitation, colliding=colliding, complete=complete),
                    source_row_index=first_row[delimitation],
                )
            )

        if parse_stats is not None:
            entries.extend(self._parse_entries(parse_stats))

        entries.sort(key=lambda entry: (entry.source_row_index is None, entry.source_row_index or 0))
        report = ReconciliationReport(
            parsed_count=len(parsed),
            persisted_count=len(persisted_delimitations),
            entries=entries,
            collisions=collisions,
            missing_by_state=missing_by_state(parsed, persisted_delimitations),
            duplicate_delimitations=duplicate_delimitations(tuples),
        )
        log_event(
            logger,
            logging.INFO,
            "location_reconciliation_completed",
            parsed=report.parsed_count,
            persisted=report.persisted_count,
            missing=report.missing_count,
            collisions=len(report.collisions),
            reasons=report.count_by_reason(),
        )
        return report

    def trace(self, delimitation: str) -> DelimitationTrace:
        """
        Walk ``delimitation`` level by level and stop at the first miss.
        """

        parts = split_delimitation(delimitation)
        if parts is None:
            return DelimitationTrace(delimitation=delimitation, resolved={}, failed_level=None, malformed=True)

        resolved: dict[LocationLevel, Any] = {}
        steps = [
            (LocationLevel.STATE, parts.state_code),
            (LocationLevel.LGA, parts.lga_code),
            (LocationLevel.WARD, parts.ward_code),
        ]
        if self._index.counts[LocationLevel.POLLING_UNIT]:
            steps.append((LocationLevel.POLLING_UNIT, parts.unit_code))

        parent_id: Any = None
        for level, code in steps:
            found = self._index.resolve(level, parent_id, code)
            if found is None:
                return DelimitationTrace(
                    delimitation=delimitation,
                    resolved=resolved,
                    failed_level=level,
                    available_codes=self._index.child_codes(level, parent_id),
                )
            resolved[level] = found
            parent_id = found

        return DelimitationTrace(delimitation=delimitation, resolved=resolved, failed_level=None)

    def _classify_missing(
        self,
        delimitation: str,
        *,
        colliding: AbstractSet[str],
        complete: AbstractSet[str],
    ) -> ReconciliationReason:
        if delimitation not in complete:
            return ReconciliationReason.MALFORMED_ROW
        resolved = self._index.resolve_delimitation(delimitation)
        if isinstance(resolved, SkipReason):
            return _REASON_BY_SKIP[resolved]
        if delimitation in colliding:
            return ReconciliationReason.DUPLICATE_KEY
        return ReconciliationReason.NOT_PERSISTED

    @staticmethod
    def _parse_entries(parse_stats: ParseStats) -> list[ReconciliationEntry]:
        entries = [
            ReconciliationEntry(
                delimitation=None,
                reason=ReconciliationReason.MALFORMED_ROW,
                source_row_index=rejected.row_index,
            )
            for rejected in parse_stats.rejected
        ]
        if parse_stats.unterminated:
            entries.append(
                ReconciliationEntry(
                    delimitation=None,
                    reason=ReconciliationReason.MALFORMED_ROW,
                    source_row_index=parse_stats.tuples_seen - 1,
                )
            )
        return entries


# ---------------------------------------------------------------------------
# Store-facing entry points
# ---------------------------------------------------------------------------


def reconcile_with_store(
    *,
    db: Session,
    tokenized: TokenizeResult,
    index: ReferenceIndex,
) -> ReconciliationReport:
    """
    Reconcile already-tokenized source rows against the persisted delimitations.
    """

    persisted = LocationRepository(db).fetch_delimitations()
    return ReconciliationReporter(index).reconcile(
        tokenized.tuples,
        persisted,
        parse_stats=tokenized.stats,
    )


class ReconciliationService:
    """
    Standalone reconciliation run: reads the dump and the store, writes nothing.
    """

    def __init__(self, *, import_service: LocationImportService) -> None:
        self._import_service = import_service

    def run(self, *, db: Session, dump_path: str | Path | None = None) -> ReconciliationReport:
        sql_text = read_dump(resolve_dump_path(dump_path))
        repository = LocationRepository(db)
        index = ReferenceIndex.build(repository.load_snapshot())
        tokenized = self._import_service.tokenize_polling_units(sql_text)
        return reconcile_with_store(db=db, tokenized=tokenized, index=index)

    def trace(self, *, db: Session, delimitations: Sequence[str]) -> list[DelimitationTrace]:
        repository = LocationRepository(db)
        index = ReferenceIndex.build(repository.load_snapshot(include_polling_units=True))
        reporter = ReconciliationReporter(index)
        return [reporter.trace(delimitation) for delimitation in delimitations]
