"""
app/services/polling_unit_import_service.py

Service layer for the polling-unit dump import.

Flow for one run:

    1. read the SQL dump (fatal on failure)
    2. load the State / LGA / Ward snapshot and build the ReferenceIndex
       (fatal on failure)
    3. tokenize the pu_data VALUES block
    4. resolve each tuple's delimitation to a ward and batch the ImportRows
    5. write each batch through an idempotent sink

Everything after step 2 is recovered locally: unresolvable rows are counted
per reason, a rejected batch is logged with its row range and the run moves
on to the next batch. A run that imports nothing still returns a summary.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from functools import lru_cache
from pathlib import Path
from typing import Sequence

from sqlalchemy.orm import Session

from app.config import get_location_import_settings
from app.domain.locations import (
    BatchFailure,
    ImportRow,
    ImportSummary,
    ParsedTuple,
    SkippedRow,
    SkipReason,
    TokenizeResult,
)
from app.logging_utils import log_event
from app.parsing.sql_values import extract_table
from app.repositories.location_repository import LocationRepository
from app.services.dump_source import read_dump, resolve_dump_path
from app.services.reference_index import ReferenceIndex
from app.storage.base import BatchSink
from app.storage.sqlalchemy_storage import SQLAlchemyPollingUnitSink
from db.repositories.errors import BatchWriteError

logger = logging.getLogger(__name__)

PU_DATA_COLUMNS: tuple[str, ...] = (
    "id",
    "region_id",
    "lga_id",
    "state_id",
    "delimitation",
    "state_name",
    "lga_name",
    "ward_name",
    "unit_name",
)
POLLING_UNIT_ARITY = len(PU_DATA_COLUMNS)
DELIMITATION_COLUMN = PU_DATA_COLUMNS.index("delimitation")
UNIT_NAME_COLUMN = PU_DATA_COLUMNS.index("unit_name")


@dataclass(frozen=True)
class ImportRunResult:
    """
    Output of one full import run. tokenized and index are handed on so a
    reconciliation pass does not re-read the dump or the parent tables.
    """

    summary: ImportSummary
    tokenized: TokenizeResult
    index: ReferenceIndex


@dataclass
class _WriteTally:
    written: int = 0
    duplicate: int = 0
    failed: int = 0
    failures: list[BatchFailure] = field(default_factory=list)


class LocationImportService:
    """
    Coordinates tokenizing, resolution and batched persistence of polling units.
    """

    def __init__(
        self,
        *,
        batch_size: int,
        log_skipped_rows: bool = True,
        max_logged_issues: int = 500,
        polling_unit_table: str = "pu_data",
    ) -> None:
        self._batch_size = max(1, batch_size)
        self._log_skipped_rows = log_skipped_rows
        self._max_logged_issues = max(0, max_logged_issues)
        self._polling_unit_table = polling_unit_table

    def run(self, *, db: Session, dump_path: str | Path | None = None) -> ImportRunResult:
        """
        Import polling units from the dump into the store behind ``db``.

        Raises DumpReadError / SnapshotReadError; nothing else is fatal.
        """

        sql_text = read_dump(resolve_dump_path(dump_path))
        repository = LocationRepository(db)
        index = ReferenceIndex.build(repository.load_snapshot())
        sink = SQLAlchemyPollingUnitSink(session=db, repository=repository)

        tokenized = self.tokenize_polling_units(sql_text)
        del sql_text
        summary = self.import_tuples(tokenized=tokenized, index=index, sink=sink)
        return ImportRunResult(summary=summary, tokenized=tokenized, index=index)

    def import_dump(self, *, sql_text: str, index: ReferenceIndex, sink: BatchSink) -> ImportSummary:
        """
        Tokenize the polling-unit table of ``sql_text`` and write it through ``sink``.
        """

        tokenized = self.tokenize_polling_units(sql_text)
        return self.import_tuples(tokenized=tokenized, index=index, sink=sink)

    def import_tuples(
        self,
        *,
        tokenized: TokenizeResult,
        index: ReferenceIndex,
        sink: BatchSink,
    ) -> ImportSummary:
        summary = self.resolve_and_write(tokenized.tuples, index, sink)
        summary = replace(summary, tuples_rejected=tokenized.stats.malformed_count)
        log_event(
            logger,
            logging.INFO,
            "polling_unit_import_completed",
            tuples_seen=summary.tuples_seen,
            tuples_rejected=summary.tuples_rejected,
            rows_written=summary.rows_written,
            rows_duplicate=summary.rows_duplicate,
            rows_failed=summary.rows_failed,
            skipped=summary.skipped,
            failed_batches=len(summary.batch_failures),
        )
        return summary

    def tokenize_polling_units(self, sql_text: str) -> TokenizeResult:
        return extract_table(sql_text, self._polling_unit_table, POLLING_UNIT_ARITY)

    def resolve_and_write(
        self,
        tuples: Sequence[ParsedTuple],
        index: ReferenceIndex,
        sink: BatchSink,
    ) -> ImportSummary:
        """
        Resolve every tuple through ``index`` and write resolved rows in batches.

        Tuples are processed strictly in source order. Rows that fail to
        resolve are counted by reason; batches rejected by the sink are
        recorded and skipped.
        """

        total = len(tuples)
        skipped: dict[SkipReason, int] = {}
        skipped_rows: list[SkippedRow] = []
        tally = _WriteTally()
        batch: list[ImportRow] = []

        for parsed in tuples:
            outcome = self._resolve_row(parsed, index)
            if isinstance(outcome, SkipReason):
                skipped[outcome] = skipped.get(outcome, 0) + 1
                skipped_row = SkippedRow(
                    row_index=parsed.row_index,
                    delimitation=self._delimitation_of(parsed),
                    reason=outcome,
                )
                skipped_rows.append(skipped_row)
                self._record_skip(skipped_row, logged=len(skipped_rows) - 1)
                continue

            batch.append(outcome)
            if len(batch) >= self._batch_size:
                self._write_batch(sink=sink, batch=batch, tally=tally)
                batch = []
                logger.info(
                    "Processed polling units %s / %s",
                    tally.written + tally.duplicate + tally.failed + len(skipped_rows),
                    total,
                )

        if batch:
            self._write_batch(sink=sink, batch=batch, tally=tally)

        return ImportSummary(
            tuples_seen=total,
            rows_written=tally.written,
            rows_duplicate=tally.duplicate,
            rows_failed=tally.failed,
            skipped=skipped,
            skipped_rows=skipped_rows,
            batch_failures=tally.failures,
        )

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _resolve_row(self, parsed: ParsedTuple, index: ReferenceIndex) -> ImportRow | SkipReason:
        if len(parsed.values) != POLLING_UNIT_ARITY:
            return SkipReason.MISSING_FIELDS

        delimitation = parsed.values[DELIMITATION_COLUMN]
        unit_name = parsed.values[UNIT_NAME_COLUMN]
        if not delimitation or not delimitation.strip() or not unit_name or not unit_name.strip():
            return SkipReason.MISSING_FIELDS

        resolved = index.resolve_delimitation(delimitation)
        if isinstance(resolved, SkipReason):
            return resolved

        return ImportRow(
            ward_id=resolved.ward_id,
            name=unit_name,
            code=resolved.parts.unit_code,
            delimitation=delimitation,
            row_index=parsed.row_index,
        )

    def _write_batch(self, *, sink: BatchSink, batch: list[ImportRow], tally: _WriteTally) -> None:
        try:
            inserted = sink.write_batch(batch)
        except BatchWriteError as exc:
            failure = BatchFailure(
                first_row=batch[0].row_index,
                last_row=batch[-1].row_index,
                row_count=len(batch),
                error=str(exc),
            )
            tally.failed += len(batch)
            tally.failures.append(failure)
            log_event(
                logger,
                logging.ERROR,
                "polling_unit_batch_failed",
                first_row=failure.first_row,
                last_row=failure.last_row,
                row_count=failure.row_count,
                error=failure.error,
            )
            return

        inserted = max(0, min(inserted, len(batch)))
        tally.written += inserted
        tally.duplicate += len(batch) - inserted

    def _record_skip(self, skipped_row: SkippedRow, *, logged: int) -> None:
        if not self._log_skipped_rows or logged >= self._max_logged_issues:
            return
        logger.warning(
            "Skipped polling unit row=%s delimitation=%r reason=%s",
            skipped_row.row_index,
            skipped_row.delimitation,
            skipped_row.reason.value,
        )

    @staticmethod
    def _delimitation_of(parsed: ParsedTuple) -> str | None:
        if len(parsed.values) <= DELIMITATION_COLUMN:
            return None
        return parsed.values[DELIMITATION_COLUMN]


# ---------------------------------------------------------------------------
# Factory
# ---------------------------------------------------------------------------


@lru_cache(maxsize=1)
def get_location_import_service() -> LocationImportService:
    """
    Build and cache the import service with env-driven settings.
    """

    settings = get_location_import_settings()
    return LocationImportService(
        batch_size=settings.batch_size,
        log_skipped_rows=settings.log_skipped_rows,
        max_logged_issues=settings.max_logged_issues,
        polling_unit_table=settings.tables.polling_unit_table,
    )
