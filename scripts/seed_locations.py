"""
Seed states, LGAs and wards from the legacy SQL dump.
"""

from __future__ import annotations

import argparse
import logging

from app.config import get_location_import_settings
from app.logging_utils import configure_logging
from app.schemas.location_import import build_seed_summary_response
from app.services.dump_source import LocationImportError
from app.services.location_seed_service import get_location_seed_service
from db.repositories.errors import LocationRepositoryError
from db.session import session_scope

logger = logging.getLogger(__name__)


def main() -> int:
    parser = argparse.ArgumentParser(description="Seed parent location tables from a SQL dump.")
    parser.add_argument(
        "--dump",
        dest="dump",
        default=None,
        help="Path to the SQL dump. Defaults to LOCATION_DUMP_PATH or the known locations.",
    )
    args = parser.parse_args()
    configure_logging()

    dump_path = args.dump or get_location_import_settings().dump_path
    try:
        with session_scope() as db:
            summary = get_location_seed_service().run(db=db, dump_path=dump_path)
    except (LocationImportError, LocationRepositoryError) as exc:
        logger.error("Location seed failed: %s", exc)
        return 1

    print(build_seed_summary_response(summary).model_dump_json(indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
