from __future__ import annotations

import logging
from datetime import datetime
from typing import Callable, Optional

from mentor_attendance.data.store import RecordStore, StoreUnavailable
from mentor_attendance.models import (
    AttendanceHolesResult,
    BackfillCandidate,
    GateDecision,
    Hole,
    LiveSubmission,
    SessionRecord,
    ValidationResult,
    coerce_program_length,
)
from mentor_attendance.services.backfill_validator import (
    ValidationFailed,
    check_exit_ticket,
    check_progress_text,
    validate_backfill,
)
from mentor_attendance.services.hole_detector import find_holes
from mentor_attendance.services.sequencer import matching_records, next_session_number
from mentor_attendance.services.snapshot import load_snapshot, locate_roster_entry
from mentor_attendance.services.special_questions import canonical_answers, check_special_answers
from mentor_attendance.services.submission_gate import SubmissionGate
from mentor_attendance.utils.content import DEFAULT_DOCUMENT_HOST
from mentor_attendance.utils.time import coerce_date

logger = logging.getLogger(__name__)

DEFAULT_MAX_SESSIONS = 25


class AttendanceService:
    """Query and command entry points used by the mentor-facing layer.

    Every call reads a fresh snapshot from the store. Writes go through
    :meth:`submit_live` or :meth:`submit_backfill`, which append one row and
    drop cached reads before anything else is computed.
    """

    def __init__(
        self,
        store: RecordStore,
        *,
        document_host: str = DEFAULT_DOCUMENT_HOST,
        clock: Callable[[], datetime] = datetime.utcnow,
    ) -> None:
        self._store = store
        self._gate = SubmissionGate(store)
        self._document_host = document_host
        self._clock = clock

    @property
    def store(self) -> RecordStore:
        return self._store

    # ------------------------------------------------------------------
    # Queries
    # ------------------------------------------------------------------
    def compute_next_session_number(self, mentor_name: str, student_name: str) -> int:
        records = matching_records(
            self._store.read_all_records(mentor_name, student_name),
            mentor_name,
            student_name,
        )
        roster_entry = None
        if not any(record.consumes_session for record in records):
            roster_entry = locate_roster_entry(self._store, mentor_name, student_name)
        return next_session_number(records, mentor_name, student_name, roster_entry=roster_entry)

    def try_next_session_number(self, mentor_name: str, student_name: str) -> Optional[int]:
        """Like :meth:`compute_next_session_number`, but None ("unknown") when the store is down."""

        try:
            return self.compute_next_session_number(mentor_name, student_name)
        except StoreUnavailable:
            logger.exception("Could not compute next session for %s / %s", mentor_name, student_name)
            return None

    def detect_holes(self, mentor_name: str, student_name: str, student_type: int | str) -> AttendanceHolesResult:
        snapshot = load_snapshot(self._store, mentor_name, student_name, coerce_program_length(student_type))
        return find_holes(snapshot.timeline)

    def validate_backfill(self, hole: Hole, candidate: BackfillCandidate, student_type: int | str) -> ValidationResult:
        return validate_backfill(
            hole,
            candidate,
            student_type=coerce_program_length(student_type),
            document_host=self._document_host,
        )

    def gate_live_submission(self, mentor_name: str, student_name: str, program_length: int | str) -> GateDecision:
        return self._gate.can_submit_live(mentor_name, student_name, coerce_program_length(program_length))

    def max_allowed_sessions(self, mentor_name: str, student_name: str) -> int:
        entry = locate_roster_entry(self._store, mentor_name, student_name)
        if entry is None:
            logger.info("%s / %s not found on any roster; assuming %d sessions", mentor_name, student_name, DEFAULT_MAX_SESSIONS)
            return DEFAULT_MAX_SESSIONS
        return entry.session_ceiling

    def validate_live_submission(self, submission: LiveSubmission, session_number: int) -> ValidationResult:
        errors: dict[str, str] = {}

        if submission.session_date is None:
            errors["date"] = "Session date is required."

        if not submission.is_unexcused_absence:
            progress_problem = check_progress_text(submission.progress_text)
            if progress_problem:
                errors["progress_text"] = progress_problem
            ticket_problem = check_exit_ticket(submission.exit_ticket_url, host=self._document_host)
            if ticket_problem:
                errors["exit_ticket_url"] = ticket_problem
            errors.update(
                check_special_answers(submission.program_length, session_number, submission.special_answers)
            )

        return ValidationResult(errors)

    # ------------------------------------------------------------------
    # Commands
    # ------------------------------------------------------------------
    def submit_live(self, submission: LiveSubmission) -> SessionRecord:
        length = coerce_program_length(submission.program_length)
        decision = self._gate.ensure_can_submit(submission.mentor_name, submission.student_name, length)

        session_number = decision.next_session_number
        result = self.validate_live_submission(submission, session_number)
        if not result.ok:
            raise ValidationFailed(result.errors)

        record = SessionRecord(
            mentor_name=submission.mentor_name.strip(),
            student_name=submission.student_name.strip(),
            session_date=coerce_date(submission.session_date),
            session_number=session_number,
            is_unexcused_absence=submission.is_unexcused_absence,
            progress_text="" if submission.is_unexcused_absence else submission.progress_text.strip(),
            exit_ticket_url="" if submission.is_unexcused_absence else submission.exit_ticket_url.strip(),
            special_answers=canonical_answers(submission.special_answers),
            mentor_email=submission.mentor_email.strip(),
            reschedule_hours=submission.reschedule_hours.strip() if submission.is_unexcused_absence else "",
            absence_context=submission.absence_context.strip() if submission.is_unexcused_absence else "",
            recorded_at=self._clock(),
        )
        self._append(record)
        return record

    def submit_backfill(
        self,
        mentor_name: str,
        student_name: str,
        program_length: int | str,
        session_number: int,
        candidate: BackfillCandidate,
        *,
        mentor_email: str = "",
    ) -> AttendanceHolesResult:
        """Record one missing session and return the holes that remain."""

        length = coerce_program_length(program_length)
        current = self.detect_holes(mentor_name, student_name, length)
        hole = current.hole_for(session_number)
        if hole is None:
            raise ValidationFailed({"session_number": f"Session {session_number} is not a missing session."})

        result = self.validate_backfill(hole, candidate, length)
        if not result.ok:
            raise ValidationFailed(result.errors)

        record = SessionRecord(
            mentor_name=mentor_name.strip(),
            student_name=student_name.strip(),
            session_date=coerce_date(candidate.date),
            session_number=session_number,
            progress_text=candidate.progress_text.strip(),
            exit_ticket_url=candidate.exit_ticket_url.strip(),
            special_answers=canonical_answers(candidate.special_answers),
            mentor_email=mentor_email.strip(),
            recorded_at=self._clock(),
        )
        self._append(record)
        return self.detect_holes(mentor_name, student_name, length)

    def _append(self, record: SessionRecord) -> None:
        try:
            self._store.append_session_record(record)
        finally:
            self._gate.record_appended()
        logger.info(
            "Recorded session %d for %s / %s on %s",
            record.session_number,
            record.mentor_name,
            record.student_name,
            record.session_date.isoformat(),
        )
