"""
app/config.py

Application-level configuration helpers.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache

from db.config import load_env_files

DEFAULT_DUMP_FILENAME = "location_lookups.sql"


@lru_cache(maxsize=1)
def _load_env_once() -> None:
    """
    Ensure project `.env` files are loaded once before reading app settings.
    """

    load_env_files()


def _get_bool_env(name: str, default: bool) -> bool:
    """
    Read a boolean from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    return raw_value.strip().lower() in {"1", "true", "yes", "on"}


def _get_int_env(name: str, default: int) -> int:
    """
    Read an integer from environment variables with safe fallback.
    """

    _load_env_once()
    raw_value = os.getenv(name)
    if raw_value is None:
        return default
    try:
        return int(raw_value)
    except ValueError:
        return default


def _get_str_env(name: str, default: str) -> str:
    """
    Read a string from environment variables with fallback.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return default
    stripped = value.strip()
    return stripped if stripped else default


def _get_optional_str_env(name: str) -> str | None:
    """
    Read an optional string value from environment variables.
    """

    _load_env_once()
    value = os.getenv(name)
    if value is None:
        return None
    stripped = value.strip()
    return stripped if stripped else None


@dataclass(frozen=True)
class DumpTableSettings:
    """
    Source table names inside the legacy SQL dump.
    """

    state_table: str = "states"
    lga_table: str = "local_governments"
    ward_table: str = "registration_areas"
    polling_unit_table: str = "pu_data"


@dataclass(frozen=True)
class LocationImportSettings:
    """
    Runtime settings for the location dump import.
    """

    batch_size: int = 1000
    dump_path: str | None = None
    log_skipped_rows: bool = True
    max_logged_issues: int = 500
    tables: DumpTableSettings = field(default_factory=DumpTableSettings)


@lru_cache(maxsize=1)
def get_dump_table_settings() -> DumpTableSettings:
    """
    Return dump table names from environment variables.
    """

    return DumpTableSettings(
        state_table=_get_str_env("LOCATION_STATE_TABLE", "states"),
        lga_table=_get_str_env("LOCATION_LGA_TABLE", "local_governments"),
        ward_table=_get_str_env("LOCATION_WARD_TABLE", "registration_areas"),
        polling_unit_table=_get_str_env("LOCATION_POLLING_UNIT_TABLE", "pu_data"),
    )


@lru_cache(maxsize=1)
def get_location_import_settings() -> LocationImportSettings:
    """
    Return cached location import settings from environment variables.
    """

    return LocationImportSettings(
        batch_size=max(1, _get_int_env("LOCATION_IMPORT_BATCH_SIZE", 1000)),
        dump_path=_get_optional_str_env("LOCATION_DUMP_PATH"),
        log_skipped_rows=_get_bool_env("LOCATION_IMPORT_LOG_SKIPPED_ROWS", True),
        max_logged_issues=max(0, _get_int_env("LOCATION_IMPORT_MAX_LOGGED_ISSUES", 500)),
        tables=get_dump_table_settings(),
    )
