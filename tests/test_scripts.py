"""
tests/test_scripts.py

Pytest checks that the command-line scripts turn fatal input errors into a
non-zero exit code instead of a traceback. No database is opened.
"""

from __future__ import annotations

import sys
from contextlib import nullcontext
from pathlib import Path
from unittest.mock import MagicMock

import pytest

from app.repositories.location_repository import LocationRepository
from db.repositories.errors import SnapshotReadError
from scripts import import_polling_units, reconcile_locations, seed_locations


def _no_database():
    return nullcontext(MagicMock())


@pytest.fixture()
def missing_dump(tmp_path: Path) -> str:
    return str(tmp_path / "missing.sql")


@pytest.fixture()
def dump_file(tmp_path: Path) -> str:
    dump = tmp_path / "dump.sql"
    dump.write_text(
        "INSERT INTO `pu_data` VALUES (1,1,1,1,'01-01-01-001','Abia','Aba North','Ward1','PU One');\n",
        encoding="utf-8",
    )
    return str(dump)


class TestExitCodes:
    def test_seed_with_missing_dump(self, monkeypatch, missing_dump) -> None:
        monkeypatch.setattr(seed_locations, "session_scope", _no_database)
        monkeypatch.setattr(sys, "argv", ["seed_locations.py", "--dump", missing_dump])

        assert seed_locations.main() == 1

    def test_import_with_missing_dump(self, monkeypatch, missing_dump) -> None:
        monkeypatch.setattr(import_polling_units, "session_scope", _no_database)
        monkeypatch.setattr(sys, "argv", ["import_polling_units.py", "--dump", missing_dump])

        assert import_polling_units.main() == 1

    def test_import_with_unreadable_snapshot(self, monkeypatch, dump_file) -> None:
        def _fail(self, *, include_polling_units: bool = False):
            raise SnapshotReadError("parent tables unavailable")

        monkeypatch.setattr(LocationRepository, "load_snapshot", _fail)
        monkeypatch.setattr(import_polling_units, "session_scope", _no_database)
        monkeypatch.setattr(sys, "argv", ["import_polling_units.py", "--dump", dump_file])

        assert import_polling_units.main() == 1

    def test_state_spans_with_missing_dump(self, monkeypatch, missing_dump) -> None:
        monkeypatch.setattr(sys, "argv", ["reconcile_locations.py", "--dump", missing_dump, "--state-spans"])

        assert reconcile_locations.main() == 1

    def test_state_spans_success(self, monkeypatch, dump_file, capsys) -> None:
        monkeypatch.setattr(sys, "argv", ["reconcile_locations.py", "--dump", dump_file, "--state-spans"])

        assert reconcile_locations.main() == 0
        assert '"state_code": "01"' in capsys.readouterr().out
