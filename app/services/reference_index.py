"""
app/services/reference_index.py

In-memory code -> identifier lookup over the persisted location hierarchy.

The index is built once per run from a LocationSnapshot and never mutated.
A pipeline that inserts new parent rows must build a new index.
"""

from __future__ import annotations

import logging
from types import MappingProxyType
from typing import Any, Iterable, Mapping

from app.domain.locations import (
    DelimitationParts,
    LocationLevel,
    LocationRef,
    LocationSnapshot,
    ResolvedPath,
    SkipReason,
)

logger = logging.getLogger(__name__)

DELIMITATION_SEPARATOR = "-"


def split_delimitation(delimitation: str | None) -> DelimitationParts | None:
    """
    Split ``State-LGA-Ward-PU`` into its four codes, or None when the string
    does not have exactly four non-empty components.
    """

    if not delimitation:
        return None
    parts = [part.strip() for part in delimitation.split(DELIMITATION_SEPARATOR)]
    if len(parts) != 4 or not all(parts):
        return None
    return DelimitationParts(
        state_code=parts[0],
        lga_code=parts[1],
        ward_code=parts[2],
        unit_code=parts[3],
    )


class ReferenceIndex:
    """
    Four lookup tables keyed by (parent_id, code).

    States are keyed with a None parent so every level shares one resolve().
    """

    def __init__(self, tables: Mapping[LocationLevel, Mapping[tuple[Any, str], Any]], conflicts: int = 0) -> None:
        # Copied and read-only; callers keep no handle on the lookup tables.
        self._tables: Mapping[LocationLevel, Mapping[tuple[Any, str], Any]] = MappingProxyType(
            {level: MappingProxyType(dict(table)) for level, table in tables.items()}
        )
        self._conflicts = conflicts

    @classmethod
    def build(cls, snapshot: LocationSnapshot) -> "ReferenceIndex":
        conflicts = 0
        tables: dict[LocationLevel, dict[tuple[Any, str], Any]] = {}
        sources: tuple[tuple[LocationLevel, Iterable[LocationRef]], ...] = (
            (LocationLevel.STATE, snapshot.states),
            (LocationLevel.LGA, snapshot.lgas),
            (LocationLevel.WARD, snapshot.wards),
            (LocationLevel.POLLING_UNIT, snapshot.polling_units),
        )
        for level, refs in sources:
            table: dict[tuple[Any, str], Any] = {}
            for ref in refs:
                parent_id = None if level is LocationLevel.STATE else ref.parent_id
                key = (parent_id, ref.code.strip())
                if key in table:
                    conflicts += 1
                    logger.warning(
                        "Duplicate location code in snapshot level=%s parent_id=%s code=%s "
                        "kept_id=%s ignored_id=%s",
                        level.value,
                        parent_id,
                        ref.code,
                        table[key],
                        ref.id,
                    )
                    continue
                table[key] = ref.id
            tables[level] = table

        index = cls(tables, conflicts=conflicts)
        logger.info(
            "Reference index built states=%s lgas=%s wards=%s polling_units=%s conflicts=%s",
            *index.counts.values(),
            conflicts,
        )
        return index

    @property
    def counts(self) -> dict[LocationLevel, int]:
        return {level: len(self._tables.get(level, {})) for level in LocationLevel}

    @property
    def conflicts(self) -> int:
        return self._conflicts

    def resolve(self, level: LocationLevel, parent_id: Any, code: str) -> Any | None:
        if level is LocationLevel.STATE:
            parent_id = None
        return self._tables.get(level, {}).get((parent_id, code.strip()))

    def resolve_delimitation(self, delimitation: str | None) -> ResolvedPath | SkipReason:
        """
        Resolve a delimitation down to its ward, or return the reason it fails.
        """

        parts = split_delimitation(delimitation)
        if parts is None:
            return SkipReason.MALFORMED_DELIMITATION

        state_id = self.resolve(LocationLevel.STATE, None, parts.state_code)
        if state_id is None:
            return SkipReason.MISSING_STATE
        lga_id = self.resolve(LocationLevel.LGA, state_id, parts.lga_code)
        if lga_id is None:
            return SkipReason.MISSING_LGA
        ward_id = self.resolve(LocationLevel.WARD, lga_id, parts.ward_code)
        if ward_id is None:
            return SkipReason.MISSING_WARD

        return ResolvedPath(parts=parts, state_id=state_id, lga_id=lga_id, ward_id=ward_id)

    def child_codes(self, level: LocationLevel, parent_id: Any) -> tuple[str, ...]:
        """
        Codes present at ``level`` under ``parent_id``, sorted. Linear scan;
        meant for diagnostics only.
        """

        if level is LocationLevel.STATE:
            parent_id = None
        return tuple(
            sorted(code for (key_parent, code) in self._tables.get(level, {}) if key_parent == parent_id)
        )
