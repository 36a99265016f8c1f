"""
Import polling units from the legacy SQL dump.
"""

from __future__ import annotations

import argparse
import json
import logging

from app.config import get_location_import_settings
from app.logging_utils import configure_logging
from app.schemas.location_import import build_import_summary_response, build_reconciliation_response
from app.services.dump_source import LocationImportError
from app.services.polling_unit_import_service import LocationImportService
from app.services.reconciliation_service import reconcile_with_store
from db.repositories.errors import LocationRepositoryError
from db.session import session_scope

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Import polling units with delimitations.")
    parser.add_argument("--dump", dest="dump", default=None, help="Path to the SQL dump.")
    parser.add_argument(
        "--batch-size",
        dest="batch_size",
        type=int,
        default=None,
        help="Rows per insert batch. Defaults to LOCATION_IMPORT_BATCH_SIZE.",
    )
    parser.add_argument(
        "--reconcile",
        action="store_true",
        help="Run the reconciliation report after the import.",
    )
    parser.add_argument(
        "--max-entries",
        dest="max_entries",
        type=int,
        default=50,
        help="Reconciliation entries to print.",
    )
    args = parser.parse_args()
    configure_logging()

    settings = get_location_import_settings()
    service = LocationImportService(
        batch_size=args.batch_size or settings.batch_size,
        log_skipped_rows=settings.log_skipped_rows,
        max_logged_issues=settings.max_logged_issues,
        polling_unit_table=settings.tables.polling_unit_table,
    )

    try:
        with session_scope() as db:
            result = service.run(db=db, dump_path=args.dump or settings.dump_path)
            payload: dict[str, object] = {
                "summary": build_import_summary_response(result.summary).model_dump(),
            }
            if args.reconcile:
                report = reconcile_with_store(db=db, tokenized=result.tokenized, index=result.index)
                payload["reconciliation"] = build_reconciliation_response(
                    report,
                    max_entries=args.max_entries,
                ).model_dump()
    except (LocationImportError, LocationRepositoryError) as exc:
        logger.error("Polling unit import failed: %s", exc)
        return 1

    print(json.dumps(payload, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
