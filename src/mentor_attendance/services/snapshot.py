from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Iterable, Optional

from mentor_attendance.data.store import RecordStore
from mentor_attendance.models import (
    PROGRAM_LENGTHS,
    RosterEntry,
    SessionRecord,
    StudentSessionTimeline,
    coerce_program_length,
)
from mentor_attendance.services.sequencer import matching_records
from mentor_attendance.utils.keys import mentor_key, student_key

logger = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class StudentSnapshot:
    """Everything the engine knows about one student, read at the start of an operation."""

    mentor_name: str
    student_name: str
    program_length: int
    records: tuple[SessionRecord, ...]
    roster_entry: Optional[RosterEntry]
    timeline: StudentSessionTimeline

    @property
    def session_ceiling(self) -> int:
        if self.roster_entry is not None:
            return self.roster_entry.session_ceiling
        return self.program_length


def find_roster_entry(
    entries: Iterable[RosterEntry],
    mentor_name: str,
    student_name: str,
) -> Optional[RosterEntry]:
    wanted = (mentor_key(mentor_name), student_key(student_name))
    for entry in entries:
        if (mentor_key(entry.mentor_name), student_key(entry.student_name)) == wanted:
            return entry
    return None


def locate_roster_entry(store: RecordStore, mentor_name: str, student_name: str) -> Optional[RosterEntry]:
    for length in PROGRAM_LENGTHS:
        entry = find_roster_entry(store.read_roster(length), mentor_name, student_name)
        if entry is not None:
            return entry
    return None


def load_snapshot(
    store: RecordStore,
    mentor_name: str,
    student_name: str,
    program_length: int,
) -> StudentSnapshot:
    length = coerce_program_length(program_length)
    records = matching_records(store.read_all_records(mentor_name, student_name), mentor_name, student_name)
    entry = find_roster_entry(store.read_roster(length), mentor_name, student_name)

    if entry is not None:
        timeline = entry.timeline
    else:
        logger.debug(
            "%s / %s is not on the %d-session roster; deriving the timeline from %d rows",
            mentor_name,
            student_name,
            length,
            len(records),
        )
        timeline = StudentSessionTimeline.from_records(records, length)

    return StudentSnapshot(
        mentor_name=mentor_name,
        student_name=student_name,
        program_length=length,
        records=tuple(records),
        roster_entry=entry,
        timeline=timeline,
    )
