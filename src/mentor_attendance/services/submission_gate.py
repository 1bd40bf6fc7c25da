from __future__ import annotations

import logging
from typing import Sequence

from mentor_attendance.data.store import RecordStore
from mentor_attendance.models import GateDecision, Hole
from mentor_attendance.services.backfill_validator import AttendanceError
from mentor_attendance.services.hole_detector import find_holes
from mentor_attendance.services.sequencer import next_session_number
from mentor_attendance.services.snapshot import StudentSnapshot, load_snapshot

logger = logging.getLogger(__name__)


class HolesBlocking(AttendanceError):
    """Raised when earlier sessions must be backfilled before a new one is recorded."""

    def __init__(self, holes: Sequence[Hole]) -> None:
        self.holes = tuple(holes)
        numbers = ", ".join(str(hole.session_number) for hole in self.holes)
        super().__init__(f"Missing attendance for session(s) {numbers} must be submitted first.")


class SessionLimitReached(AttendanceError):
    """Raised when the student has used every session in their program."""

    def __init__(self, next_session_number: int, ceiling: int) -> None:
        self.next_session_number = next_session_number
        self.ceiling = ceiling
        super().__init__(
            f"Session {next_session_number} exceeds the {ceiling}-session limit for this student."
        )


class SubmissionGate:
    """Decides whether a live session may be recorded for a student right now."""

    def __init__(self, store: RecordStore) -> None:
        self._store = store

    def can_submit_live(self, mentor_name: str, student_name: str, program_length: int) -> GateDecision:
        snapshot = load_snapshot(self._store, mentor_name, student_name, program_length)
        return self.decide(snapshot)

    def ensure_can_submit(self, mentor_name: str, student_name: str, program_length: int) -> GateDecision:
        decision = self.can_submit_live(mentor_name, student_name, program_length)
        if decision.session_limit_reached:
            raise SessionLimitReached(decision.next_session_number, decision.session_ceiling)
        if decision.blocking_holes:
            raise HolesBlocking(decision.blocking_holes)
        return decision

    def record_appended(self) -> None:
        """Drop cached reads so the next decision sees the row that was just written."""

        invalidate = getattr(self._store, "invalidate", None)
        if callable(invalidate):
            invalidate()

    @staticmethod
    def decide(snapshot: StudentSnapshot) -> GateDecision:
        holes = find_holes(snapshot.timeline)
        sequenced = next_session_number(
            snapshot.records,
            snapshot.mentor_name,
            snapshot.student_name,
            roster_entry=snapshot.roster_entry,
        )
        upcoming = max(sequenced, holes.next_session_number)
        ceiling = snapshot.session_ceiling

        if upcoming > ceiling:
            logger.info(
                "%s / %s has reached the session limit (%d > %d)",
                snapshot.mentor_name,
                snapshot.student_name,
                upcoming,
                ceiling,
            )
            return GateDecision(
                allowed=False,
                next_session_number=upcoming,
                session_ceiling=ceiling,
                blocking_holes=holes.holes or None,
                session_limit_reached=True,
            )

        if holes.has_holes:
            logger.info(
                "%s / %s has %d unfilled session(s); live submission blocked",
                snapshot.mentor_name,
                snapshot.student_name,
                len(holes.holes),
            )
            return GateDecision(
                allowed=False,
                next_session_number=upcoming,
                session_ceiling=ceiling,
                blocking_holes=holes.holes,
            )

        return GateDecision(allowed=True, next_session_number=upcoming, session_ceiling=ceiling)
