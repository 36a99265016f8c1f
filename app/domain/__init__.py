"""
app/domain package marker.
"""

from app.domain.locations import (
    ImportRow,
    ImportSummary,
    LocationLevel,
    ParsedTuple,
    ReconciliationReason,
    ReconciliationReport,
    SeedSummary,
    SkipReason,
)

__all__ = [
    "ImportRow",
    "ImportSummary",
    "LocationLevel",
    "ParsedTuple",
    "ReconciliationReason",
    "ReconciliationReport",
    "SeedSummary",
    "SkipReason",
]
