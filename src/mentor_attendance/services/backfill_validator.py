from __future__ import annotations

from typing import Mapping, Optional

from mentor_attendance.models import BackfillCandidate, Hole, ValidationResult
from mentor_attendance.services.special_questions import check_special_answers
from mentor_attendance.utils.content import (
    DEFAULT_DOCUMENT_HOST,
    is_acceptable_doc_url,
    is_placeholder_text,
)
from mentor_attendance.utils.time import coerce_date, format_display_date


class AttendanceError(RuntimeError):
    """Base class for states that stop an attendance submission."""


class ValidationFailed(AttendanceError):
    """Raised when a submission has field-level problems the mentor can fix."""

    def __init__(self, errors: Mapping[str, str]) -> None:
        self.errors = dict(errors)
        fields = ", ".join(sorted(self.errors)) or "submission"
        super().__init__(f"Validation failed for: {fields}")


def check_progress_text(text: Optional[str]) -> Optional[str]:
    if not text or not text.strip():
        return "Progress description is required."
    if is_placeholder_text(text):
        return (
            "Please provide a meaningful description of your progress. "
            '"N/A", "None", or similar responses are not allowed.'
        )
    return None


def check_exit_ticket(url: Optional[str], *, host: str = DEFAULT_DOCUMENT_HOST) -> Optional[str]:
    if not url or not url.strip():
        return "Exit ticket is required."
    if not is_acceptable_doc_url(url, host=host):
        return f"Please enter a valid document URL (https://{host}/...)."
    return None


def validate_backfill(
    hole: Hole,
    candidate: BackfillCandidate,
    *,
    student_type: int,
    document_host: str = DEFAULT_DOCUMENT_HOST,
) -> ValidationResult:
    errors: dict[str, str] = {}
    date_range = hole.date_range

    session_date = None if candidate.date is None else coerce_date(candidate.date)

    if session_date is None:
        errors["date"] = "Session date is required."
    elif date_range.has_lower_bound and session_date < date_range.min:
        errors["date"] = f"Date must be on or after {format_display_date(date_range.min)}."
    elif session_date > date_range.max:
        errors["date"] = f"Date must be on or before {format_display_date(date_range.max)}."

    progress_problem = check_progress_text(candidate.progress_text)
    if progress_problem:
        errors["progress_text"] = progress_problem

    ticket_problem = check_exit_ticket(candidate.exit_ticket_url, host=document_host)
    if ticket_problem:
        errors["exit_ticket_url"] = ticket_problem

    errors.update(check_special_answers(student_type, hole.session_number, candidate.special_answers))

    return ValidationResult(errors)
