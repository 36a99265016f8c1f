"""
app/schemas/location_import.py

Serializable schemas for import summaries, seed summaries and
reconciliation reports.
"""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, Field

from app.domain.locations import (
    DelimitationTrace,
    ImportSummary,
    ReconciliationReport,
    SeedSummary,
    StateSpan,
)


class BatchFailureResponse(BaseModel):
    first_row: int = Field(..., ge=0)
    last_row: int = Field(..., ge=0)
    row_count: int = Field(..., ge=1)
    error: str


class ImportSummaryResponse(BaseModel):
    """
    Counts for one polling-unit import run.
    """

    tuples_seen: int = Field(..., ge=0)
    tuples_rejected: int = Field(..., ge=0)
    rows_written: int = Field(..., ge=0)
    rows_duplicate: int = Field(..., ge=0)
    rows_failed: int = Field(..., ge=0)
    rows_skipped: int = Field(..., ge=0)
    skipped: dict[str, int] = Field(default_factory=dict)
    batch_failures: list[BatchFailureResponse] = Field(default_factory=list)


class SeedSummaryResponse(BaseModel):
    states: int = Field(..., ge=0)
    lgas: int = Field(..., ge=0)
    wards: int = Field(..., ge=0)
    orphaned_lgas: int = Field(..., ge=0)
    orphaned_wards: int = Field(..., ge=0)
    tuples_rejected: int = Field(..., ge=0)


class ReconciliationEntryResponse(BaseModel):
    delimitation: str | None = None
    reason: str
    source_row_index: int | None = None


class KeyCollisionResponse(BaseModel):
    ward_id: str
    code: str
    delimitations: list[str]
    row_indices: list[int]


class ReconciliationReportResponse(BaseModel):
    """
    Reconciliation output for human triage.
    """

    parsed_count: int = Field(..., ge=0)
    persisted_count: int = Field(..., ge=0)
    missing_count: int = Field(..., ge=0)
    missing_by_state: dict[str, int] = Field(default_factory=dict)
    reasons: dict[str, int] = Field(default_factory=dict)
    collisions: list[KeyCollisionResponse] = Field(default_factory=list)
    duplicate_delimitations: dict[str, int] = Field(default_factory=dict)
    entries: list[ReconciliationEntryResponse] = Field(default_factory=list)


class StateSpanResponse(BaseModel):
    state_code: str
    first_row: int
    last_row: int
    count: int


class DelimitationTraceResponse(BaseModel):
    delimitation: str
    malformed: bool = False
    resolved: dict[str, str] = Field(default_factory=dict)
    failed_level: str | None = None
    available_codes: list[str] = Field(default_factory=list)


def build_import_summary_response(summary: ImportSummary) -> ImportSummaryResponse:
    return ImportSummaryResponse(
        tuples_seen=summary.tuples_seen,
        tuples_rejected=summary.tuples_rejected,
        rows_written=summary.rows_written,
        rows_duplicate=summary.rows_duplicate,
        rows_failed=summary.rows_failed,
        rows_skipped=summary.rows_skipped,
        skipped={reason.value: count for reason, count in summary.skipped.items()},
        batch_failures=[
            BatchFailureResponse(
                first_row=failure.first_row,
                last_row=failure.last_row,
                row_count=failure.row_count,
                error=failure.error,
            )
            for failure in summary.batch_failures
        ],
    )


def build_seed_summary_response(summary: SeedSummary) -> SeedSummaryResponse:
    return SeedSummaryResponse(
        states=summary.states,
        lgas=summary.lgas,
        wards=summary.wards,
        orphaned_lgas=summary.orphaned_lgas,
        orphaned_wards=summary.orphaned_wards,
        tuples_rejected=summary.tuples_rejected,
    )


def build_reconciliation_response(
    report: ReconciliationReport,
    *,
    max_entries: int | None = None,
) -> ReconciliationReportResponse:
    entries = report.entries if max_entries is None else report.entries[:max_entries]
    return ReconciliationReportResponse(
        parsed_count=report.parsed_count,
        persisted_count=report.persisted_count,
        missing_count=report.missing_count,
        missing_by_state=report.missing_by_state,
        reasons={reason.value: count for reason, count in report.count_by_reason().items()},
        collisions=[
            KeyCollisionResponse(
                ward_id=str(collision.ward_id),
                code=collision.code,
                delimitations=list(collision.delimitations),
                row_indices=list(collision.row_indices),
            )
            for collision in report.collisions
        ],
        duplicate_delimitations=report.duplicate_delimitations,
        entries=[
            ReconciliationEntryResponse(
                delimitation=entry.delimitation,
                reason=entry.reason.value,
                source_row_index=entry.source_row_index,
            )
            for entry in entries
        ],
    )


def build_state_span_responses(spans: dict[str, StateSpan]) -> list[StateSpanResponse]:
    return [
        StateSpanResponse(
            state_code=state_code,
            first_row=span.first_row,
            last_row=span.last_row,
            count=span.count,
        )
        for state_code, span in spans.items()
    ]


def build_trace_response(trace: DelimitationTrace) -> DelimitationTraceResponse:
    resolved: dict[str, Any] = {level.value: str(found) for level, found in trace.resolved.items()}
    return DelimitationTraceResponse(
        delimitation=trace.delimitation,
        malformed=trace.malformed,
        resolved=resolved,
        failed_level=trace.failed_level.value if trace.failed_level is not None else None,
        available_codes=list(trace.available_codes),
    )
