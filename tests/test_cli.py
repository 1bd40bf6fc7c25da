from __future__ import annotations

from datetime import date

import pytest

from mentor_attendance import main as cli
from mentor_attendance.data import Database, SqliteRecordStore, StoreUnavailable
from mentor_attendance.models import SessionRecord


@pytest.fixture
def db_path(tmp_path, monkeypatch):
    monkeypatch.setenv("APP_DATA_DIR", str(tmp_path))
    return tmp_path / "attendance.db"


def run(capsys, *argv) -> tuple[int, str]:
    code = cli.main(list(argv))
    return code, capsys.readouterr().out


def test_enroll_then_next_and_gate(db_path, capsys):
    code, out = run(capsys, "--database", str(db_path), "enroll", "Jane Smith", "Alex Doe", "--type", "10")
    assert code == 0
    assert "Enrolled Alex Doe" in out

    code, out = run(capsys, "--database", str(db_path), "next", "Jane Smith", "Alex Doe")
    assert code == 0
    assert out.strip() == "1"

    code, out = run(capsys, "--database", str(db_path), "gate", "Jane Smith", "Alex Doe")
    assert code == 0
    assert out.startswith("Allowed: session 1 of 10")


def test_holes_block_the_gate(db_path, capsys):
    store = SqliteRecordStore(Database(db_path))
    store.initialize()
    store.enroll_student("Jane Smith", "Alex Doe", 10)
    for number, day in ((1, date(2025, 1, 6)), (4, date(2025, 1, 27))):
        store.append_session_record(SessionRecord("Jane Smith", "Alex Doe", day, session_number=number))

    code, out = run(capsys, "--database", str(db_path), "holes", "Jane Smith", "Alex Doe")
    assert code == 0
    assert "Session 2: 01/06/2025 to 01/27/2025" in out
    assert "Session 3: 01/06/2025 to 01/27/2025" in out

    code, out = run(capsys, "--database", str(db_path), "gate", "Jane Smith", "Alex Doe")
    assert code == 1
    assert "2, 3" in out


def test_store_failure_exits_with_code_two(db_path, capsys, monkeypatch):
    def broken_service(args):
        raise StoreUnavailable("sheet is down")

    monkeypatch.setattr(cli, "build_service", broken_service)

    code = cli.main(["--database", str(db_path), "next", "Jane Smith", "Alex Doe"])

    assert code == 2
    assert "sheet is down" in capsys.readouterr().err
