"""
app/domain/locations.py

Domain models for the location dump import and reconciliation flow.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Optional

Value = Optional[str]


class LocationLevel(str, Enum):
    STATE = "state"
    LGA = "lga"
    WARD = "ward"
    POLLING_UNIT = "polling_unit"


class SkipReason(str, Enum):
    """
    Why a parsed polling-unit row did not become an ImportRow.
    """

    MISSING_FIELDS = "missing_fields"
    MALFORMED_DELIMITATION = "malformed_delimitation"
    MISSING_STATE = "missing_state"
    MISSING_LGA = "missing_lga"
    MISSING_WARD = "missing_ward"


class ReconciliationReason(str, Enum):
    DUPLICATE_KEY = "duplicate_key"
    MISSING_STATE = "missing_state"
    MISSING_LGA = "missing_lga"
    MISSING_WARD = "missing_ward"
    MALFORMED_ROW = "malformed_row"
    NOT_PERSISTED = "not_persisted"


# ---------------------------------------------------------------------------
# Tokenizer output
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ParsedTuple:
    """
    One parenthesized row of a VALUES block.

    row_index is the ordinal of the group among every top-level group in the
    tokenized block, rejected ones included, so diagnostics can point back at
    the dump.
    """

    row_index: int
    values: tuple[Value, ...]


@dataclass(frozen=True)
class RejectedTuple:
    row_index: int
    field_count: int
    reason: str


@dataclass
class ParseStats:
    tuples_seen: int = 0
    tuples_emitted: int = 0
    tuples_rejected: int = 0
    unterminated_quote: bool = False
    unterminated_paren: bool = False
    skipped_chars: int = 0
    rejected: list[RejectedTuple] = field(default_factory=list)

    @property
    def unterminated(self) -> bool:
        return self.unterminated_quote or self.unterminated_paren

    @property
    def malformed_count(self) -> int:
        """Rejected tuples plus a trailing tuple that never closed."""
        return self.tuples_rejected + (1 if self.unterminated else 0)


@dataclass(frozen=True)
class TokenizeResult:
    tuples: list[ParsedTuple]
    stats: ParseStats


# ---------------------------------------------------------------------------
# Reference snapshot
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class LocationRef:
    """
    One persisted location row as seen by the index: opaque id, sibling-unique
    code and the id of its parent (None for states).
    """

    id: Any
    code: str
    parent_id: Any = None


@dataclass(frozen=True)
class LocationSnapshot:
    states: tuple[LocationRef, ...] = ()
    lgas: tuple[LocationRef, ...] = ()
    wards: tuple[LocationRef, ...] = ()
    polling_units: tuple[LocationRef, ...] = ()


@dataclass(frozen=True)
class DelimitationParts:
    state_code: str
    lga_code: str
    ward_code: str
    unit_code: str


@dataclass(frozen=True)
class ResolvedPath:
    parts: DelimitationParts
    state_id: Any
    lga_id: Any
    ward_id: Any


# ---------------------------------------------------------------------------
# Import
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ImportRow:
    """
    Insert-ready polling unit. row_index is not persisted.
    """

    ward_id: Any
    name: str
    code: str
    delimitation: str
    row_index: int = -1


@dataclass(frozen=True)
class SkippedRow:
    row_index: int
    delimitation: str | None
    reason: SkipReason


@dataclass(frozen=True)
class BatchFailure:
    """
    A batch the sink rejected. first_row/last_row are source row indices.
    """

    first_row: int
    last_row: int
    row_count: int
    error: str


@dataclass(frozen=True)
class ImportSummary:
    """
    End-of-run import summary.

    Every tuple handed to the resolver lands in exactly one of rows_written,
    rows_duplicate, rows_failed or skipped.
    """

    tuples_seen: int
    rows_written: int
    rows_duplicate: int = 0
    rows_failed: int = 0
    skipped: dict[SkipReason, int] = field(default_factory=dict)
    skipped_rows: list[SkippedRow] = field(default_factory=list)
    batch_failures: list[BatchFailure] = field(default_factory=list)
    tuples_rejected: int = 0

    @property
    def rows_skipped(self) -> int:
        return sum(self.skipped.values())

    @property
    def total_tuples(self) -> int:
        return self.tuples_seen + self.tuples_rejected

    def is_balanced(self) -> bool:
        accounted = self.rows_written + self.rows_duplicate + self.rows_failed + self.rows_skipped
        return accounted == self.tuples_seen


# ---------------------------------------------------------------------------
# Reconciliation
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ReconciliationEntry:
    delimitation: str | None
    reason: ReconciliationReason
    source_row_index: int | None


@dataclass(frozen=True)
class KeyCollision:
    """
    Distinct source delimitations claiming the same (ward_id, code) slot.
    """

    ward_id: Any
    code: str
    delimitations: tuple[str, ...]
    row_indices: tuple[int, ...]


@dataclass(frozen=True)
class ReconciliationReport:
    parsed_count: int
    persisted_count: int
    entries: list[ReconciliationEntry] = field(default_factory=list)
    collisions: list[KeyCollision] = field(default_factory=list)
    missing_by_state: dict[str, int] = field(default_factory=dict)
    duplicate_delimitations: dict[str, int] = field(default_factory=dict)

    @property
    def missing_count(self) -> int:
        return sum(self.missing_by_state.values())

    def count_by_reason(self) -> dict[ReconciliationReason, int]:
        counts: dict[ReconciliationReason, int] = {}
        for entry in self.entries:
            counts[entry.reason] = counts.get(entry.reason, 0) + 1
        return counts


@dataclass(frozen=True)
class DelimitationTrace:
    """
    Level-by-level walk of one delimitation through the index.

    failed_level is None when the path fully resolves. available_codes lists
    sibling codes present under the last resolved parent.
    """

    delimitation: str
    resolved: dict[LocationLevel, Any]
    failed_level: LocationLevel | None
    available_codes: tuple[str, ...] = ()
    malformed: bool = False


@dataclass(frozen=True)
class StateSpan:
    first_row: int
    last_row: int
    count: int


# ---------------------------------------------------------------------------
# Parent seeding
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SeedSummary:
    states: int
    lgas: int
    wards: int
    orphaned_lgas: int = 0
    orphaned_wards: int = 0
    tuples_rejected: int = 0
