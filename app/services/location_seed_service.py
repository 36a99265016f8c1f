"""
app/services/location_seed_service.py

Seeds the State, LGA and Ward tables from the legacy dump.

This is the separate process the polling-unit import depends on. Each level
is upserted by its natural key, so seeding is repeatable. Legacy dump ids are
mapped to persisted ids level by level to attach children; a child whose
legacy parent id is unknown is counted as orphaned and skipped.
"""

from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Protocol, Sequence

from sqlalchemy.orm import Session

from app.config import DumpTableSettings, get_dump_table_settings
from app.domain.locations import ParsedTuple, SeedSummary
from app.logging_utils import log_event
from app.parsing.sql_values import extract_table
from app.repositories.location_repository import LocationRepository
from app.services.dump_source import read_dump, resolve_dump_path

logger = logging.getLogger(__name__)

STATE_ARITY = 3  # id, name, code
LGA_ARITY = 4  # id, state_id, name, code
WARD_ARITY = 4  # id, lga_id, name, code


class ParentStore(Protocol):
    def upsert_states(self, rows: Sequence[dict[str, Any]]) -> dict[str, Any]: ...

    def upsert_lgas(self, rows: Sequence[dict[str, Any]]) -> dict[tuple[Any, str], Any]: ...

    def upsert_wards(self, rows: Sequence[dict[str, Any]]) -> dict[tuple[Any, str], Any]: ...


def _usable(*values: str | None) -> bool:
    return all(value is not None and value.strip() for value in values)


class LocationSeedService:
    """
    Parses parent tables from the dump and upserts them level by level.
    """

    def __init__(self, *, tables: DumpTableSettings) -> None:
        self._tables = tables

    def run(self, *, db: Session, dump_path: str | Path | None = None) -> SeedSummary:
        sql_text = read_dump(resolve_dump_path(dump_path))
        summary = self.seed(sql_text=sql_text, store=LocationRepository(db))
        db.commit()
        return summary

    def seed(self, *, sql_text: str, store: ParentStore) -> SeedSummary:
        """
        Upsert states, then LGAs, then wards. Does not commit.
        """

        states = extract_table(sql_text, self._tables.state_table, STATE_ARITY)
        lgas = extract_table(sql_text, self._tables.lga_table, LGA_ARITY)
        wards = extract_table(sql_text, self._tables.ward_table, WARD_ARITY)

        state_ids = self._seed_states(states.tuples, store)
        lga_ids, orphaned_lgas = self._seed_lgas(lgas.tuples, state_ids, store)
        ward_count, orphaned_wards = self._seed_wards(wards.tuples, lga_ids, store)

        summary = SeedSummary(
            states=len(set(state_ids.values())),
            lgas=len(set(lga_ids.values())),
            wards=ward_count,
            orphaned_lgas=orphaned_lgas,
            orphaned_wards=orphaned_wards,
            tuples_rejected=(
                states.stats.malformed_count + lgas.stats.malformed_count + wards.stats.malformed_count
            ),
        )
        log_event(
            logger,
            logging.INFO,
            "location_seed_completed",
            states=summary.states,
            lgas=summary.lgas,
            wards=summary.wards,
            orphaned_lgas=summary.orphaned_lgas,
            orphaned_wards=summary.orphaned_wards,
            tuples_rejected=summary.tuples_rejected,
        )
        return summary

    def _seed_states(self, tuples: Sequence[ParsedTuple], store: ParentStore) -> dict[str, Any]:
        """
        Returns legacy state id -> persisted state id.
        """

        legacy_codes: dict[str, str] = {}
        payloads: list[dict[str, Any]] = []
        for parsed in tuples:
            legacy_id, name, code = parsed.values
            if not _usable(legacy_id, name, code):
                logger.warning("Skipping incomplete state row=%s values=%r", parsed.row_index, parsed.values)
                continue
            legacy_codes[legacy_id.strip()] = code.strip()
            payloads.append({"name": name.strip(), "code": code.strip()})

        ids_by_code = store.upsert_states(payloads)
        logger.info("Seeded states count=%s", len(ids_by_code))
        return {
            legacy_id: ids_by_code[code]
            for legacy_id, code in legacy_codes.items()
            if code in ids_by_code
        }

    def _seed_lgas(
        self,
        tuples: Sequence[ParsedTuple],
        state_ids: dict[str, Any],
        store: ParentStore,
    ) -> tuple[dict[str, Any], int]:
        """
        Returns (legacy lga id -> persisted lga id, orphan count).
        """

        legacy_keys: dict[str, tuple[Any, str]] = {}
        payloads: list[dict[str, Any]] = []
        orphaned = 0
        for parsed in tuples:
            legacy_id, legacy_state_id, name, code = parsed.values
            if not _usable(legacy_id, legacy_state_id, name, code):
                logger.warning("Skipping incomplete LGA row=%s values=%r", parsed.row_index, parsed.values)
                continue
            state_id = state_ids.get(legacy_state_id.strip())
            if state_id is None:
                orphaned += 1
                logger.warning(
                    "Orphaned LGA row=%s name=%r legacy_state_id=%s",
                    parsed.row_index,
                    name,
                    legacy_state_id,
                )
                continue
            legacy_keys[legacy_id.strip()] = (state_id, code.strip())
            payloads.append({"state_id": state_id, "name": name.strip(), "code": code.strip()})

        ids_by_key = store.upsert_lgas(payloads)
        logger.info("Seeded LGAs count=%s orphaned=%s", len(ids_by_key), orphaned)
        lga_ids = {legacy_id: ids_by_key[key] for legacy_id, key in legacy_keys.items() if key in ids_by_key}
        return lga_ids, orphaned

    def _seed_wards(
        self,
        tuples: Sequence[ParsedTuple],
        lga_ids: dict[str, Any],
        store: ParentStore,
    ) -> tuple[int, int]:
        payloads: list[dict[str, Any]] = []
        orphaned = 0
        for parsed in tuples:
            _legacy_id, legacy_lga_id, name, code = parsed.values
            if not _usable(legacy_lga_id, name, code):
                logger.warning("Skipping incomplete ward row=%s values=%r", parsed.row_index, parsed.values)
                continue
            lga_id = lga_ids.get(legacy_lga_id.strip())
            if lga_id is None:
                orphaned += 1
                logger.warning(
                    "Orphaned ward row=%s name=%r legacy_lga_id=%s",
                    parsed.row_index,
                    name,
                    legacy_lga_id,
                )
                continue
            payloads.append({"lga_id": lga_id, "name": name.strip(), "code": code.strip()})

        ids_by_key = store.upsert_wards(payloads)
        logger.info("Seeded wards count=%s orphaned=%s", len(ids_by_key), orphaned)
        return len(ids_by_key), orphaned


@lru_cache(maxsize=1)
def get_location_seed_service() -> LocationSeedService:
    return LocationSeedService(tables=get_dump_table_settings())
