from __future__ import annotations

import logging
from typing import Iterable, Optional

from mentor_attendance.models import RosterEntry, SessionRecord
from mentor_attendance.utils.keys import mentor_key, student_key

logger = logging.getLogger(__name__)


def matching_records(
    records: Iterable[SessionRecord],
    mentor_name: str,
    student_name: str,
) -> list[SessionRecord]:
    wanted_mentor = mentor_key(mentor_name)
    wanted_student = student_key(student_name)
    return [
        record
        for record in records
        if mentor_key(record.mentor_name) == wanted_mentor
        and student_key(record.student_name) == wanted_student
    ]


def next_session_number(
    records: Iterable[SessionRecord],
    mentor_name: str,
    student_name: str,
    *,
    roster_entry: Optional[RosterEntry] = None,
) -> int:
    """Next session number to assign for a mentor/student pair.

    The highest stored session number wins, since it survives reordered,
    duplicated and half-filled rows. Unexcused absences carry a number and
    count like any other session. When no matching row has a number at all,
    the roster's session-count column is used, and failing that the number
    of matching rows.
    """

    matches = matching_records(records, mentor_name, student_name)
    numbers = [record.session_number for record in matches if record.consumes_session]

    if numbers:
        return max(numbers) + 1

    if roster_entry is not None and roster_entry.stored_session_count is not None:
        if roster_entry.stored_session_count >= 0:
            return roster_entry.stored_session_count + 1

    if matches:
        logger.warning(
            "No numbered rows for %s / %s; counting %d rows instead",
            mentor_name,
            student_name,
            len(matches),
        )
    return len(matches) + 1
