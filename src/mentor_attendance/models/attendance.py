from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Iterable, Mapping, Optional

from mentor_attendance.utils.time import BEGINNING_OF_TIME, is_sentinel

PROGRAM_LENGTHS: tuple[int, ...] = (10, 25)


class InvalidProgramLength(ValueError):
    """Raised when a program length other than 10 or 25 sessions is requested."""


def coerce_program_length(value: int | str) -> int:
    try:
        length = int(str(value).strip())
    except ValueError as exc:
        raise InvalidProgramLength(f"Program length must be one of {PROGRAM_LENGTHS}, got {value!r}.") from exc

    if length not in PROGRAM_LENGTHS:
        raise InvalidProgramLength(f"Program length must be one of {PROGRAM_LENGTHS}, got {value!r}.")
    return length


@dataclass(frozen=True, slots=True)
class SessionRecord:
    mentor_name: str
    student_name: str
    session_date: date
    session_number: Optional[int] = None
    is_unexcused_absence: bool = False
    progress_text: str = ""
    exit_ticket_url: str = ""
    special_answers: Mapping[str, str] = field(default_factory=dict)
    mentor_email: str = ""
    reschedule_hours: str = ""
    absence_context: str = ""
    recorded_at: datetime = field(default_factory=datetime.utcnow)

    @property
    def consumes_session(self) -> bool:
        # Unexcused absences use up a session number like an attended session.
        return self.session_number is not None and self.session_number > 0


@dataclass(frozen=True, slots=True)
class SessionSlot:
    completed: bool
    date: Optional[date] = None
    raw: str = ""

    @classmethod
    def empty(cls) -> "SessionSlot":
        return cls(completed=False, date=None, raw="Not completed")


@dataclass(frozen=True, slots=True)
class StudentSessionTimeline:
    """Per-session completion grid for one student; slot ``i`` is session ``i + 1``."""

    program_length: int
    slots: tuple[SessionSlot, ...]

    @classmethod
    def blank(cls, program_length: int) -> "StudentSessionTimeline":
        return cls(program_length, tuple(SessionSlot.empty() for _ in range(program_length)))

    @classmethod
    def from_records(cls, records: Iterable["SessionRecord"], program_length: int) -> "StudentSessionTimeline":
        """Derive the grid from raw attendance rows.

        A slot is filled when any row carries its session number, unexcused
        absences included, because an absence uses up its session. Later rows
        for the same number win, since the store only ever appends corrections.
        """

        slots = [SessionSlot.empty() for _ in range(program_length)]
        for record in records:
            if not record.consumes_session or record.session_number > program_length:
                continue
            slots[record.session_number - 1] = SessionSlot(
                completed=True,
                date=record.session_date,
                raw=record.session_date.isoformat(),
            )
        return cls(program_length, tuple(slots))

    def slot(self, session_number: int) -> SessionSlot:
        return self.slots[session_number - 1]

    @property
    def completed_count(self) -> int:
        return sum(1 for slot in self.slots if slot.completed and slot.date is not None)


@dataclass(frozen=True, slots=True)
class RosterEntry:
    mentor_name: str
    student_name: str
    program_length: int
    timeline: StudentSessionTimeline
    stored_session_count: Optional[int] = None
    extra_sessions: int = 0
    email: str = ""

    @property
    def session_ceiling(self) -> int:
        return self.program_length + max(self.extra_sessions, 0)


@dataclass(frozen=True, slots=True)
class DateRange:
    min: date
    max: date

    @property
    def has_lower_bound(self) -> bool:
        return not is_sentinel(self.min)

    def contains(self, value: date) -> bool:
        if self.has_lower_bound and value < self.min:
            return False
        return value <= self.max


@dataclass(frozen=True, slots=True)
class Hole:
    session_number: int
    date_range: DateRange

    @classmethod
    def leading(cls, session_number: int, first_completed: date) -> "Hole":
        return cls(session_number, DateRange(BEGINNING_OF_TIME, first_completed))


@dataclass(frozen=True, slots=True)
class AttendanceHolesResult:
    holes: tuple[Hole, ...]
    next_session_number: int
    total_sessions: int

    @property
    def has_holes(self) -> bool:
        return len(self.holes) > 0

    def hole_for(self, session_number: int) -> Optional[Hole]:
        return next((hole for hole in self.holes if hole.session_number == session_number), None)


@dataclass(slots=True)
class BackfillCandidate:
    date: Optional[date]
    progress_text: str = ""
    exit_ticket_url: str = ""
    special_answers: dict[str, str] = field(default_factory=dict)


@dataclass(slots=True)
class LiveSubmission:
    mentor_name: str
    student_name: str
    program_length: int
    session_date: Optional[date]
    is_unexcused_absence: bool = False
    progress_text: str = ""
    exit_ticket_url: str = ""
    special_answers: dict[str, str] = field(default_factory=dict)
    mentor_email: str = ""
    reschedule_hours: str = ""
    absence_context: str = ""


@dataclass(frozen=True, slots=True)
class ValidationResult:
    errors: Mapping[str, str] = field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return not self.errors

    def __bool__(self) -> bool:
        return self.ok


@dataclass(frozen=True, slots=True)
class GateDecision:
    allowed: bool
    next_session_number: int
    session_ceiling: int
    blocking_holes: Optional[tuple[Hole, ...]] = None
    session_limit_reached: bool = False

    @property
    def reason(self) -> str:
        if self.session_limit_reached:
            return "session_limit"
        if self.blocking_holes:
            return "holes"
        return "ok"
