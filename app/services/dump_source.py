"""
app/services/dump_source.py

Locating and reading the legacy location SQL dump.

A dump that cannot be found, read or decoded is the one fatal input error of
the import: nothing meaningful can run without it.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Sequence

from app.config import DEFAULT_DUMP_FILENAME
from db.config import project_root

logger = logging.getLogger(__name__)


class LocationImportError(Exception):
    """
    Base exception for fatal location import failures.
    """


class DumpReadError(LocationImportError):
    """
    Raised when the SQL dump is missing, unreadable or not UTF-8.
    """


def default_dump_candidates() -> list[Path]:
    root = project_root()
    return [
        root / DEFAULT_DUMP_FILENAME,
        root / "data" / DEFAULT_DUMP_FILENAME,
        Path("/tmp/location_data") / DEFAULT_DUMP_FILENAME,
    ]


def resolve_dump_path(
    explicit_path: str | Path | None = None,
    *,
    candidates: Sequence[Path] | None = None,
) -> Path:
    """
    Return the explicit path when given, else the first existing candidate.
    """

    if explicit_path is not None:
        path = Path(explicit_path)
        if not path.is_file():
            raise DumpReadError(f"SQL dump not found: {path}")
        return path

    tried = list(candidates) if candidates is not None else default_dump_candidates()
    for candidate in tried:
        if candidate.is_file():
            return candidate

    raise DumpReadError(
        "SQL dump not found. Tried: " + ", ".join(str(path) for path in tried)
    )


def read_dump(path: str | Path) -> str:
    """
    Read the whole dump into memory.
    """

    dump_path = Path(path)
    try:
        sql_text = dump_path.read_text(encoding="utf-8")
    except UnicodeDecodeError as exc:
        raise DumpReadError(f"SQL dump must be UTF-8 encoded: {dump_path}") from exc
    except OSError as exc:
        raise DumpReadError(f"Unable to read SQL dump {dump_path}: {exc}") from exc

    logger.info("Read SQL dump path=%s chars=%s", dump_path, len(sql_text))
    return sql_text
