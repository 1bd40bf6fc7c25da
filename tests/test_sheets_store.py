from __future__ import annotations

from datetime import date, datetime
from pathlib import Path

import gspread
import pytest
import requests
from google.auth.exceptions import RefreshError, TransportError

from mentor_attendance.config.settings import Settings
from mentor_attendance.data import StoreUnavailable
from mentor_attendance.data.sheets_store import ATTENDANCE_ROW_WIDTH, SheetsRecordStore
from mentor_attendance.models import SessionRecord
from mentor_attendance.services import AttendanceService

ATTENDANCE_HEADER = [f"Column {index}" for index in range(ATTENDANCE_ROW_WIDTH)]


class FakeWorksheet:
    def __init__(self, rows, *, error: Exception | None = None) -> None:
        self.rows = [list(row) for row in rows]
        self.error = error
        self.appended: list[tuple[list[str], dict]] = []

    def get_all_values(self):
        if self.error is not None:
            raise self.error
        return [list(row) for row in self.rows]

    def append_row(self, row, **kwargs):
        if self.error is not None:
            raise self.error
        self.appended.append((list(row), kwargs))
        self.rows.append(list(row))


def attendance_row(mentor, student, number, day, *, absent=False) -> list[str]:
    row = [""] * ATTENDANCE_ROW_WIDTH
    row[0] = f"{day} 10:00:00"
    row[1] = mentor
    row[2] = student
    row[4] = day
    row[12] = "Yes" if absent else "No"
    if absent:
        row[16] = str(number)
    else:
        row[3] = str(number)
        row[5] = "Worked on the data cleaning step"
        row[6] = "https://docs.google.com/document/d/1"
    return row


def roster_sheet(rows) -> FakeWorksheet:
    header = ["Instructor Name", "Student Name", "Student Email"]
    header += [f"Session {number}" for number in range(1, 11)]
    header += ["Sessions Completed"]
    return FakeWorksheet([header, *rows])


def make_store(attendance_rows=(), roster_rows=(), continuing_rows=None) -> SheetsRecordStore:
    continuing = None
    if continuing_rows is not None:
        continuing = FakeWorksheet([["Instructor", "Student Name", "Sessions Continuing For"], *continuing_rows])
    return SheetsRecordStore(
        FakeWorksheet([ATTENDANCE_HEADER, *attendance_rows]),
        {10: roster_sheet(roster_rows), 25: FakeWorksheet([])},
        continuing,
    )


def test_record_to_row_places_live_session_columns():
    record = SessionRecord(
        mentor_name="Jane Smith",
        student_name="Alex Doe",
        session_date=date(2025, 2, 14),
        session_number=3,
        progress_text="Trained a first model",
        exit_ticket_url="https://docs.google.com/document/d/1",
        mentor_email="jane@example.com",
        recorded_at=datetime(2025, 2, 14, 9, 5, 3),
    )

    row = SheetsRecordStore.record_to_row(record)

    assert len(row) == ATTENDANCE_ROW_WIDTH
    assert row[0] == "2/14/2025 09:05:03"
    assert row[1:7] == [
        "Jane Smith",
        "Alex Doe",
        "3",
        "2/14/2025",
        "Trained a first model",
        "https://docs.google.com/document/d/1",
    ]
    assert row[8] == "jane@example.com"
    assert row[12] == "No"
    assert row[16] == ""


def test_record_to_row_places_absence_number_in_its_own_column():
    record = SessionRecord(
        mentor_name="Jane Smith",
        student_name="Alex Doe",
        session_date=date(2025, 2, 14),
        session_number=4,
        is_unexcused_absence=True,
        reschedule_hours="12",
        absence_context="Student did not join",
    )

    row = SheetsRecordStore.record_to_row(record)

    assert row[3] == ""
    assert row[12] == "Yes"
    assert row[13] == "12"
    assert row[14] == "Student did not join"
    assert row[16] == "4"


@pytest.mark.parametrize("number, column", [(5, 10), (12, 18)])
def test_mid_feedback_column_depends_on_session(number, column):
    record = SessionRecord(
        "Jane Smith",
        "Alex Doe",
        date(2025, 2, 14),
        session_number=number,
        special_answers={"midFeedback": "Steady progress"},
    )

    row = SheetsRecordStore.record_to_row(record)

    assert row[column] == "Steady progress"


def test_read_all_records_filters_tolerantly_and_skips_bad_rows():
    store = make_store(
        [
            attendance_row("Jane Smith", "Alex Doe", 1, "1/6/2025"),
            [""] * ATTENDANCE_ROW_WIDTH,
            attendance_row("Jane Smith", "Alex Doe", 2, "not a date"),
            attendance_row("Smith Jane", "alex doe", 3, "1/20/2025", absent=True),
            attendance_row("Jane Smith", "Sam Lee", 1, "1/7/2025"),
        ]
    )

    records = store.read_all_records("jane smith", "Alex Doe")

    assert [record.session_number for record in records] == [1, 3]
    assert records[0].session_date == date(2025, 1, 6)
    assert records[0].recorded_at == datetime(2025, 1, 6, 10, 0, 0)
    assert records[1].is_unexcused_absence
    assert len(store.read_all_records()) == 3


def test_appended_record_reads_back():
    store = make_store()
    record = SessionRecord(
        "Jane Smith",
        "Alex Doe",
        date(2025, 3, 3),
        session_number=2,
        progress_text="Picked a dataset",
        exit_ticket_url="https://docs.google.com/document/d/2",
        special_answers={"projectTopic": "Bike rentals"},
        recorded_at=datetime(2025, 3, 3, 18, 30, 0),
    )

    store.append_session_record(record)

    (stored,) = store.read_all_records("Jane Smith", "Alex Doe")
    assert stored == record
    _, options = store._attendance.appended[0]
    assert options == {"value_input_option": "USER_ENTERED", "insert_data_option": "INSERT_ROWS"}


def test_read_roster_maps_headers_and_continuing_sessions():
    cells = ["1/6/2025", "1/13/2025", "Not completed", "garbled", "-", "", "", "", "", ""]
    store = make_store(
        roster_rows=[["Jane Smith", "Alex Doe", "alex@example.com", *cells, "2"], ["", "", "", *[""] * 10, ""]],
        continuing_rows=[["Smith Jane", "Alex Doe", "3"]],
    )

    (entry,) = store.read_roster(10)

    assert entry.email == "alex@example.com"
    assert entry.stored_session_count == 2
    assert entry.extra_sessions == 3
    assert entry.session_ceiling == 13
    assert entry.timeline.slot(2).date == date(2025, 1, 13)
    assert not entry.timeline.slot(3).completed
    assert not entry.timeline.slot(4).completed
    assert entry.timeline.slot(4).raw == "garbled"
    assert entry.timeline.completed_count == 2


def test_empty_roster_sheet_reads_as_empty():
    assert make_store().read_roster(25) == []


@pytest.mark.parametrize(
    "error",
    [
        gspread.exceptions.GSpreadException("quota exceeded"),
        requests.ConnectionError("offline"),
        RefreshError("token revoked"),
        TransportError("dns"),
    ],
)
def test_backend_errors_become_store_unavailable(error):
    broken = FakeWorksheet([], error=error)
    store = SheetsRecordStore(broken, {10: broken, 25: broken})

    with pytest.raises(StoreUnavailable):
        store.read_all_records()
    with pytest.raises(StoreUnavailable):
        store.read_roster(10)
    with pytest.raises(StoreUnavailable):
        store.append_session_record(SessionRecord("Jane Smith", "Alex Doe", date(2025, 1, 6), session_number=1))


def test_from_settings_requires_credentials(tmp_path: Path):
    config = Settings(app_name="test", app_data_dir=tmp_path, database_path=tmp_path / "a.db")

    with pytest.raises(StoreUnavailable):
        SheetsRecordStore.from_settings(config)


def test_revoked_credentials_read_as_unknown_next_session():
    broken = FakeWorksheet([], error=RefreshError("token revoked"))
    service = AttendanceService(SheetsRecordStore(broken, {10: broken, 25: broken}))

    assert service.try_next_session_number("Jane Smith", "Alex Doe") is None
