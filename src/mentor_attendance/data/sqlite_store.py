from __future__ import annotations

import json
import logging
import sqlite3
from collections import defaultdict
from datetime import datetime
from typing import Optional

from mentor_attendance.data.database import Database
from mentor_attendance.data.store import StoreUnavailable
from mentor_attendance.models import (
    RosterEntry,
    SessionRecord,
    StudentSessionTimeline,
    coerce_program_length,
)
from mentor_attendance.utils.keys import mentor_key, student_key
from mentor_attendance.utils.time import InvalidSessionDate, coerce_date

logger = logging.getLogger(__name__)


class SqliteRecordStore:
    """Record store backed by a local sqlite file.

    Attendance rows are append-only. The roster grid is not stored: it is
    rebuilt from the rows every time it is read, alongside the per-student
    identity kept in the ``students`` table.
    """

    def __init__(self, database: Database) -> None:
        self._database = database

    def initialize(self) -> None:
        try:
            self._database.initialize()
        except sqlite3.Error as exc:
            raise StoreUnavailable(f"Could not prepare attendance database: {exc}") from exc

    def enroll_student(
        self,
        mentor_name: str,
        student_name: str,
        program_length: int,
        *,
        stored_session_count: int | None = None,
        extra_sessions: int = 0,
        email: str = "",
    ) -> int:
        length = coerce_program_length(program_length)
        try:
            with self._database.connect() as connection:
                try:
                    cursor = connection.execute(
                        """
                        INSERT INTO students (
                            mentor_name, student_name, mentor_key, student_key,
                            program_length, stored_session_count, extra_sessions, email
                        ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                        """,
                        (
                            mentor_name.strip(),
                            student_name.strip(),
                            mentor_key(mentor_name),
                            student_key(student_name),
                            length,
                            stored_session_count,
                            int(extra_sessions),
                            email.strip() or None,
                        ),
                    )
                except sqlite3.IntegrityError:
                    row = connection.execute(
                        "SELECT id FROM students WHERE mentor_key = ? AND student_key = ?",
                        (mentor_key(mentor_name), student_key(student_name)),
                    ).fetchone()
                    return int(row["id"]) if row else 0
                return int(cursor.lastrowid)
        except sqlite3.Error as exc:
            raise StoreUnavailable(f"Could not enroll {student_name!r}: {exc}") from exc

    def append_session_record(self, record: SessionRecord) -> None:
        try:
            with self._database.connect() as connection:
                connection.execute(
                    """
                    INSERT INTO session_records (
                        mentor_name, student_name, mentor_key, student_key,
                        session_date, session_number, is_unexcused_absence,
                        progress_text, exit_ticket_url, special_answers,
                        mentor_email, reschedule_hours, absence_context, recorded_at
                    ) VALUES (?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?, ?)
                    """,
                    (
                        record.mentor_name.strip(),
                        record.student_name.strip(),
                        mentor_key(record.mentor_name),
                        student_key(record.student_name),
                        record.session_date.isoformat(),
                        record.session_number,
                        int(record.is_unexcused_absence),
                        record.progress_text,
                        record.exit_ticket_url,
                        json.dumps(dict(record.special_answers)),
                        record.mentor_email,
                        record.reschedule_hours,
                        record.absence_context,
                        record.recorded_at.isoformat(sep=" ", timespec="seconds"),
                    ),
                )
        except sqlite3.Error as exc:
            raise StoreUnavailable(f"Could not append attendance record: {exc}") from exc

        logger.info(
            "Appended session %s for %s / %s",
            record.session_number,
            record.mentor_name,
            record.student_name,
        )

    def read_all_records(
        self,
        mentor_name: Optional[str] = None,
        student_name: Optional[str] = None,
    ) -> list[SessionRecord]:
        conditions: list[str] = []
        params: list[str] = []

        if mentor_name:
            conditions.append("mentor_key = ?")
            params.append(mentor_key(mentor_name))
        if student_name:
            conditions.append("student_key = ?")
            params.append(student_key(student_name))

        query_parts = [
            "SELECT id, mentor_name, student_name, session_date, session_number,",
            "       is_unexcused_absence, progress_text, exit_ticket_url, special_answers,",
            "       mentor_email, reschedule_hours, absence_context, recorded_at",
            "  FROM session_records",
        ]
        if conditions:
            query_parts.append(" WHERE " + " AND ".join(conditions))
        query_parts.append(" ORDER BY id ASC")

        try:
            with self._database.connect() as connection:
                rows = connection.execute("\n".join(query_parts), tuple(params)).fetchall()
        except sqlite3.Error as exc:
            raise StoreUnavailable(f"Could not read attendance records: {exc}") from exc

        records: list[SessionRecord] = []
        for row in rows:
            record = self._row_to_record(row)
            if record is not None:
                records.append(record)
        return records

    def read_roster(self, program_length: int) -> list[RosterEntry]:
        length = coerce_program_length(program_length)
        try:
            with self._database.connect() as connection:
                students = connection.execute(
                    """
                    SELECT mentor_name, student_name, mentor_key, student_key,
                           stored_session_count, extra_sessions, email
                      FROM students
                     WHERE program_length = ?
                  ORDER BY LOWER(mentor_name), LOWER(student_name)
                    """,
                    (length,),
                ).fetchall()
        except sqlite3.Error as exc:
            raise StoreUnavailable(f"Could not read the {length}-session roster: {exc}") from exc

        grouped: dict[tuple[str, str], list[SessionRecord]] = defaultdict(list)
        if students:
            for record in self.read_all_records():
                grouped[(mentor_key(record.mentor_name), student_key(record.student_name))].append(record)

        return [
            RosterEntry(
                mentor_name=row["mentor_name"],
                student_name=row["student_name"],
                program_length=length,
                timeline=StudentSessionTimeline.from_records(
                    grouped.get((row["mentor_key"], row["student_key"]), []),
                    length,
                ),
                stored_session_count=row["stored_session_count"],
                extra_sessions=int(row["extra_sessions"] or 0),
                email=row["email"] or "",
            )
            for row in students
        ]

    @staticmethod
    def _row_to_record(row: sqlite3.Row) -> SessionRecord | None:
        try:
            session_date = coerce_date(row["session_date"])
        except InvalidSessionDate:
            logger.warning("Skipping session record %s with unreadable date %r", row["id"], row["session_date"])
            return None

        try:
            answers = json.loads(row["special_answers"] or "{}")
        except json.JSONDecodeError:
            logger.warning("Ignoring malformed special answers on session record %s", row["id"])
            answers = {}

        try:
            recorded_at = datetime.fromisoformat(row["recorded_at"])
        except (TypeError, ValueError):
            recorded_at = datetime.combine(session_date, datetime.min.time())

        return SessionRecord(
            mentor_name=row["mentor_name"],
            student_name=row["student_name"],
            session_date=session_date,
            session_number=row["session_number"],
            is_unexcused_absence=bool(row["is_unexcused_absence"]),
            progress_text=row["progress_text"] or "",
            exit_ticket_url=row["exit_ticket_url"] or "",
            special_answers=answers if isinstance(answers, dict) else {},
            mentor_email=row["mentor_email"] or "",
            reschedule_hours=row["reschedule_hours"] or "",
            absence_context=row["absence_context"] or "",
            recorded_at=recorded_at,
        )
