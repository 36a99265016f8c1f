"""
app/schemas package marker.
"""

from app.schemas.location_import import (
    BatchFailureResponse,
    DelimitationTraceResponse,
    ImportSummaryResponse,
    KeyCollisionResponse,
    ReconciliationEntryResponse,
    ReconciliationReportResponse,
    SeedSummaryResponse,
    StateSpanResponse,
)

__all__ = [
    "BatchFailureResponse",
    "DelimitationTraceResponse",
    "ImportSummaryResponse",
    "KeyCollisionResponse",
    "ReconciliationEntryResponse",
    "ReconciliationReportResponse",
    "SeedSummaryResponse",
    "StateSpanResponse",
]
