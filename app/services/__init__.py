"""
app/services package marker.
"""

from app.services.dump_source import DumpReadError, LocationImportError, read_dump, resolve_dump_path
from app.services.location_seed_service import LocationSeedService, get_location_seed_service
from app.services.polling_unit_import_service import (
    ImportRunResult,
    LocationImportService,
    get_location_import_service,
)
from app.services.reconciliation_service import (
    ReconciliationReporter,
    ReconciliationService,
    reconcile_with_store,
)
from app.services.reference_index import ReferenceIndex, split_delimitation

__all__ = [
    "DumpReadError",
    "ImportRunResult",
    "LocationImportError",
    "LocationImportService",
    "LocationSeedService",
    "ReconciliationReporter",
    "ReconciliationService",
    "ReferenceIndex",
    "get_location_import_service",
    "get_location_seed_service",
    "read_dump",
    "reconcile_with_store",
    "resolve_dump_path",
    "split_delimitation",
]
