from __future__ import annotations

from datetime import date, timedelta

from mentor_attendance.models import RosterEntry, SessionRecord, StudentSessionTimeline
from mentor_attendance.services.sequencer import matching_records, next_session_number

MENTOR = "Jane Smith"
STUDENT = "Alex Doe"


def record(number: int | None, *, mentor: str = MENTOR, student: str = STUDENT, absent: bool = False) -> SessionRecord:
    return SessionRecord(
        mentor_name=mentor,
        student_name=student,
        session_date=date(2025, 1, 6) + timedelta(weeks=number or 0),
        session_number=number,
        is_unexcused_absence=absent,
    )


def roster_entry(stored_count: int | None) -> RosterEntry:
    return RosterEntry(
        mentor_name=MENTOR,
        student_name=STUDENT,
        program_length=10,
        timeline=StudentSessionTimeline.blank(10),
        stored_session_count=stored_count,
    )


def test_no_records_starts_at_one():
    assert next_session_number([], MENTOR, STUDENT) == 1


def test_highest_stored_number_wins_regardless_of_order():
    records = [record(5), record(1), record(2)]

    assert next_session_number(records, MENTOR, STUDENT) == 6


def test_duplicate_rows_do_not_advance_the_counter():
    records = [record(1), record(2), record(2), record(3), record(3)]

    assert next_session_number(records, MENTOR, STUDENT) == 4


def test_unexcused_absence_consumes_a_session():
    records = [record(1), record(2), record(3, absent=True)]

    assert next_session_number(records, MENTOR, STUDENT) == 4


def test_other_students_are_ignored_and_names_match_tolerantly():
    records = [
        record(7, student="Someone Else"),
        record(8, mentor="John Roe"),
        record(2, mentor="  smith   JANE ", student=" alex doe"),
    ]

    assert next_session_number(records, MENTOR, STUDENT) == 3
    assert len(matching_records(records, MENTOR, STUDENT)) == 1


def test_student_names_are_not_token_sorted():
    records = [record(4, student="Doe Alex")]

    assert next_session_number(records, MENTOR, STUDENT) == 1


def test_falls_back_to_roster_count_without_numbered_rows():
    records = [record(None), record(None)]

    assert next_session_number(records, MENTOR, STUDENT, roster_entry=roster_entry(6)) == 7


def test_falls_back_to_row_count_without_roster_count():
    records = [record(None), record(None)]

    assert next_session_number(records, MENTOR, STUDENT, roster_entry=roster_entry(None)) == 3
    assert next_session_number(records, MENTOR, STUDENT) == 3


def test_stored_numbers_beat_roster_count():
    assert next_session_number([record(3)], MENTOR, STUDENT, roster_entry=roster_entry(9)) == 4
