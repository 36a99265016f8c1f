"""
Compare the SQL dump against persisted polling units, or trace delimitations.
"""

from __future__ import annotations

import argparse
import json
import logging

from app.config import get_location_import_settings
from app.logging_utils import configure_logging
from app.schemas.location_import import (
    build_reconciliation_response,
    build_state_span_responses,
    build_trace_response,
)
from app.services.dump_source import LocationImportError, read_dump, resolve_dump_path
from app.services.polling_unit_import_service import get_location_import_service
from app.services.reconciliation_service import ReconciliationService, state_boundaries
from db.repositories.errors import LocationRepositoryError
from db.session import session_scope

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Reconcile polling units against the SQL dump.")
    parser.add_argument("--dump", dest="dump", default=None, help="Path to the SQL dump.")
    parser.add_argument(
        "--trace",
        dest="trace",
        action="append",
        default=[],
        metavar="DELIMITATION",
        help="Trace one delimitation through the hierarchy. Repeatable.",
    )
    parser.add_argument(
        "--state-spans",
        action="store_true",
        help="Print the source row range of each state instead of reconciling.",
    )
    parser.add_argument("--max-entries", dest="max_entries", type=int, default=50)
    args = parser.parse_args()
    configure_logging()

    try:
        return _run(args)
    except (LocationImportError, LocationRepositoryError) as exc:
        logger.error("Location reconciliation failed: %s", exc)
        return 1


def _run(args: argparse.Namespace) -> int:
    dump_path = args.dump or get_location_import_settings().dump_path
    import_service = get_location_import_service()

    if args.state_spans:
        tokenized = import_service.tokenize_polling_units(read_dump(resolve_dump_path(dump_path)))
        spans = build_state_span_responses(state_boundaries(tokenized.tuples))
        print(json.dumps([span.model_dump() for span in spans], indent=2))
        return 0

    service = ReconciliationService(import_service=import_service)
    with session_scope() as db:
        if args.trace:
            traces = service.trace(db=db, delimitations=args.trace)
            print(json.dumps([build_trace_response(trace).model_dump() for trace in traces], indent=2))
            return 0
        report = service.run(db=db, dump_path=dump_path)

    print(build_reconciliation_response(report, max_entries=args.max_entries).model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
