"""Record store backed by the program's Google Sheets workbook.

The attendance tab is the append-only log written by the mentor form; the
"10-Session Student Info" and "25-Session Student Info" tabs hold the per-session date grid
maintained alongside it. Column positions on the attendance tab are fixed by
the form, while the roster tabs are matched on their header text.
"""

from __future__ import annotations

import json
import logging
import re
from datetime import datetime
from typing import TYPE_CHECKING, Any, Mapping, Optional, Sequence

import gspread
import requests
from google.auth.exceptions import GoogleAuthError
from google.oauth2.service_account import Credentials

from mentor_attendance.data.store import StoreUnavailable
from mentor_attendance.models import (
    RosterEntry,
    SessionRecord,
    SessionSlot,
    StudentSessionTimeline,
    coerce_program_length,
)
from mentor_attendance.utils.keys import mentor_key, same_mentor, same_student, student_key
from mentor_attendance.utils.time import (
    InvalidSessionDate,
    coerce_date,
    format_sheet_date,
    format_sheet_timestamp,
    parse_session_date,
)

if TYPE_CHECKING:
    from mentor_attendance.config.settings import Settings

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

ATTENDANCE_ROW_WIDTH = 19

COL_TIMESTAMP = 0
COL_MENTOR = 1
COL_STUDENT = 2
COL_SESSION_NUMBER = 3
COL_SESSION_DATE = 4
COL_PROGRESS = 5
COL_EXIT_TICKET = 6
COL_MENTOR_EMAIL = 8
COL_PROJECT_TOPIC = 9
COL_MID_FEEDBACK = 10
COL_FINAL_FEEDBACK = 11
COL_UNEXCUSED = 12
COL_RESCHEDULE_HOURS = 13
COL_ABSENCE_CONTEXT = 14
COL_ABSENCE_SESSION_NUMBER = 16
COL_CONFIRMED_TOPIC = 17
COL_MID_FEEDBACK_25 = 18

ROSTER_COL_SESSION_COUNT = 16

MENTOR_HEADERS = ("instructorname", "instructor", "mentorname", "mentor", "tutor")
STUDENT_HEADERS = ("studentname", "name", "student")
EMAIL_HEADERS = ("studentemail", "email")
SESSION_COUNT_HEADERS = ("sessionscompleted", "completedsessions", "sessioncount", "sessionsheld")
CONTINUING_HEADERS = ("sessionscontinuingfor",)

_HEADER_NOISE = re.compile(r"[\s#]+")

_BACKEND_ERRORS: tuple[type[BaseException], ...] = (
    gspread.exceptions.GSpreadException,
    requests.RequestException,
    GoogleAuthError,
)


def _normalize_header(value: str) -> str:
    return _HEADER_NOISE.sub("", (value or "").strip().lower())


def _cell(row: Sequence[str], index: int) -> str:
    if index < 0 or index >= len(row):
        return ""
    return str(row[index] or "").strip()


def _parse_int(value: str) -> Optional[int]:
    try:
        return int(str(value).strip())
    except ValueError:
        return None


def _find_column(header_map: Mapping[str, int], candidates: Sequence[str]) -> int:
    for candidate in candidates:
        index = header_map.get(candidate)
        if index is not None:
            return index
    return -1


def _session_column(header_map: Mapping[str, int], session_number: int) -> int:
    return _find_column(
        header_map,
        (
            str(session_number),
            f"session{session_number}",
            f"session{session_number}date",
            f"s{session_number}",
            f"s{session_number}date",
        ),
    )


class SheetsRecordStore:
    def __init__(
        self,
        attendance_worksheet: gspread.Worksheet,
        roster_worksheets: Mapping[int, gspread.Worksheet],
        continuing_worksheet: Optional[gspread.Worksheet] = None,
    ) -> None:
        self._attendance = attendance_worksheet
        self._rosters = dict(roster_worksheets)
        self._continuing = continuing_worksheet

    @classmethod
    def from_settings(cls, settings: "Settings") -> "SheetsRecordStore":
        if not settings.google_credentials_json:
            raise StoreUnavailable("GOOGLE_SHEETS_CREDENTIALS is not configured.")
        if not settings.attendance_sheet_id or not settings.roster_sheet_id:
            raise StoreUnavailable("Attendance and roster spreadsheet ids must both be configured.")

        try:
            info = json.loads(settings.google_credentials_json)
        except json.JSONDecodeError as exc:
            raise StoreUnavailable("GOOGLE_SHEETS_CREDENTIALS is not valid JSON.") from exc

        try:
            client = gspread.authorize(Credentials.from_service_account_info(info, scopes=SCOPES))
            attendance_book = client.open_by_key(settings.attendance_sheet_id)
            roster_book = client.open_by_key(settings.roster_sheet_id)
            attendance = attendance_book.worksheet(settings.attendance_tab)
            rosters = {
                10: roster_book.worksheet(settings.ten_session_tab),
                25: roster_book.worksheet(settings.twenty_five_session_tab),
            }
            continuing = roster_book.worksheet(settings.continuing_tab) if settings.continuing_tab else None
        except (*_BACKEND_ERRORS, ValueError) as exc:
            raise StoreUnavailable(f"Could not open the attendance workbook: {exc}") from exc

        logger.info("Connected to attendance workbook %s", settings.attendance_sheet_id)
        return cls(attendance, rosters, continuing)

    # ------------------------------------------------------------------
    # RecordStore API
    # ------------------------------------------------------------------
    def append_session_record(self, record: SessionRecord) -> None:
        row = self.record_to_row(record)
        try:
            self._attendance.append_row(
                row,
                value_input_option="USER_ENTERED",
                insert_data_option="INSERT_ROWS",
            )
        except _BACKEND_ERRORS as exc:
            raise StoreUnavailable(f"Could not append attendance row: {exc}") from exc

        logger.info(
            "Appended session %s for %s / %s to the attendance sheet",
            record.session_number,
            record.mentor_name,
            record.student_name,
        )

    def read_all_records(
        self,
        mentor_name: Optional[str] = None,
        student_name: Optional[str] = None,
    ) -> list[SessionRecord]:
        rows = self._values(self._attendance, "attendance")

        records: list[SessionRecord] = []
        for index, row in enumerate(rows[1:], start=2):
            if not any(str(cell).strip() for cell in row):
                continue
            if mentor_name and not same_mentor(_cell(row, COL_MENTOR), mentor_name):
                continue
            if student_name and not same_student(_cell(row, COL_STUDENT), student_name):
                continue
            record = self.row_to_record(row, row_number=index)
            if record is not None:
                records.append(record)
        return records

    def read_roster(self, program_length: int) -> list[RosterEntry]:
        length = coerce_program_length(program_length)
        worksheet = self._rosters.get(length)
        if worksheet is None:
            raise StoreUnavailable(f"No roster worksheet configured for {length}-session students.")

        rows = self._values(worksheet, f"{length}-session roster")
        if len(rows) <= 1:
            return []

        header_map = {_normalize_header(header): idx for idx, header in enumerate(rows[0]) if header}
        mentor_col = _find_column(header_map, MENTOR_HEADERS)
        if mentor_col < 0:
            mentor_col = 0
        student_col = _find_column(header_map, STUDENT_HEADERS)
        email_col = _find_column(header_map, EMAIL_HEADERS)
        count_col = _find_column(header_map, SESSION_COUNT_HEADERS)
        session_cols = [_session_column(header_map, number) for number in range(1, length + 1)]
        if count_col < 0 and ROSTER_COL_SESSION_COUNT not in session_cols:
            count_col = ROSTER_COL_SESSION_COUNT

        extras = self._continuing_sessions()

        entries: list[RosterEntry] = []
        for row in rows[1:]:
            name = _cell(row, student_col)
            if not name:
                continue
            mentor = _cell(row, mentor_col)
            entries.append(
                RosterEntry(
                    mentor_name=mentor,
                    student_name=name,
                    program_length=length,
                    timeline=self._timeline_from_cells(row, session_cols, length, name),
                    stored_session_count=_parse_int(_cell(row, count_col)) if count_col >= 0 else None,
                    extra_sessions=extras.get((mentor_key(mentor), student_key(name)), 0),
                    email=_cell(row, email_col),
                )
            )
        return entries

    # ------------------------------------------------------------------
    # Row mapping
    # ------------------------------------------------------------------
    @staticmethod
    def record_to_row(record: SessionRecord) -> list[str]:
        row = [""] * ATTENDANCE_ROW_WIDTH
        row[COL_TIMESTAMP] = format_sheet_timestamp(record.recorded_at)
        row[COL_MENTOR] = record.mentor_name
        row[COL_STUDENT] = record.student_name
        row[COL_SESSION_DATE] = format_sheet_date(record.session_date)
        row[COL_MENTOR_EMAIL] = record.mentor_email
        number = "" if record.session_number is None else str(record.session_number)

        if record.is_unexcused_absence:
            row[COL_UNEXCUSED] = "Yes"
            row[COL_ABSENCE_SESSION_NUMBER] = number
            row[COL_RESCHEDULE_HOURS] = record.reschedule_hours
            row[COL_ABSENCE_CONTEXT] = record.absence_context
        else:
            row[COL_UNEXCUSED] = "No"
            row[COL_SESSION_NUMBER] = number
            row[COL_PROGRESS] = record.progress_text
            row[COL_EXIT_TICKET] = record.exit_ticket_url

        answers = record.special_answers
        if answers.get("projectTopic"):
            row[COL_PROJECT_TOPIC] = answers["projectTopic"]
        if answers.get("confirmedTopic"):
            row[COL_CONFIRMED_TOPIC] = answers["confirmedTopic"]
        if answers.get("finalFeedback"):
            row[COL_FINAL_FEEDBACK] = answers["finalFeedback"]
        if answers.get("midFeedback"):
            # Session 12 mid feedback only exists for 25-session students and has its own column.
            column = COL_MID_FEEDBACK_25 if record.session_number == 12 else COL_MID_FEEDBACK
            row[column] = answers["midFeedback"]
        return row

    @staticmethod
    def row_to_record(row: Sequence[str], *, row_number: int = 0) -> Optional[SessionRecord]:
        raw_date = _cell(row, COL_SESSION_DATE)
        try:
            session_date = coerce_date(raw_date)
        except InvalidSessionDate:
            logger.warning("Skipping attendance row %d with unreadable date %r", row_number, raw_date)
            return None

        is_absence = _cell(row, COL_UNEXCUSED).lower() == "yes"
        number = _parse_int(_cell(row, COL_SESSION_NUMBER))
        if number is None:
            number = _parse_int(_cell(row, COL_ABSENCE_SESSION_NUMBER))

        answers: dict[str, str] = {}
        for key, column in (
            ("projectTopic", COL_PROJECT_TOPIC),
            ("confirmedTopic", COL_CONFIRMED_TOPIC),
            ("finalFeedback", COL_FINAL_FEEDBACK),
            ("midFeedback", COL_MID_FEEDBACK),
            ("midFeedback", COL_MID_FEEDBACK_25),
        ):
            value = _cell(row, column)
            if value:
                answers[key] = value

        try:
            recorded_at = datetime.strptime(_cell(row, COL_TIMESTAMP), "%m/%d/%Y %H:%M:%S")
        except ValueError:
            recorded_at = datetime.combine(session_date, datetime.min.time())

        return SessionRecord(
            mentor_name=_cell(row, COL_MENTOR),
            student_name=_cell(row, COL_STUDENT),
            session_date=session_date,
            session_number=number,
            is_unexcused_absence=is_absence,
            progress_text=_cell(row, COL_PROGRESS),
            exit_ticket_url=_cell(row, COL_EXIT_TICKET),
            special_answers=answers,
            mentor_email=_cell(row, COL_MENTOR_EMAIL),
            reschedule_hours=_cell(row, COL_RESCHEDULE_HOURS),
            absence_context=_cell(row, COL_ABSENCE_CONTEXT),
            recorded_at=recorded_at,
        )

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------
    @staticmethod
    def _values(worksheet: Any, label: str) -> list[list[str]]:
        try:
            return worksheet.get_all_values()
        except _BACKEND_ERRORS as exc:
            raise StoreUnavailable(f"Could not read the {label} worksheet: {exc}") from exc

    @staticmethod
    def _timeline_from_cells(
        row: Sequence[str],
        session_cols: Sequence[int],
        length: int,
        student_name: str,
    ) -> StudentSessionTimeline:
        slots: list[SessionSlot] = []
        for number, column in enumerate(session_cols, start=1):
            raw = _cell(row, column)
            parsed = parse_session_date(raw)
            if parsed is None and raw and raw.lower() not in ("-", "not completed"):
                logger.warning(
                    "Treating session %d for %s as not completed: unreadable date %r",
                    number,
                    student_name,
                    raw,
                )
            slots.append(SessionSlot(completed=parsed is not None, date=parsed, raw=raw or "Not completed"))
        return StudentSessionTimeline(length, tuple(slots))

    def _continuing_sessions(self) -> dict[tuple[str, str], int]:
        if self._continuing is None:
            return {}

        rows = self._values(self._continuing, "continuing students")
        if len(rows) <= 1:
            return {}

        header_map = {_normalize_header(header): idx for idx, header in enumerate(rows[0]) if header}
        mentor_col = _find_column(header_map, MENTOR_HEADERS)
        student_col = _find_column(header_map, STUDENT_HEADERS)
        extra_col = _find_column(header_map, CONTINUING_HEADERS)
        if student_col < 0 or extra_col < 0:
            return {}

        extras: dict[tuple[str, str], int] = {}
        for row in rows[1:]:
            extra = _parse_int(_cell(row, extra_col))
            if extra is None or extra <= 0:
                continue
            extras[(mentor_key(_cell(row, mentor_col)), student_key(_cell(row, student_col)))] = extra
        return extras
