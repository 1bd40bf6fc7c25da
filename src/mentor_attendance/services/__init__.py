from .attendance_service import AttendanceService
from .backfill_validator import AttendanceError, ValidationFailed, validate_backfill
from .hole_detector import find_holes
from .sequencer import next_session_number
from .submission_gate import HolesBlocking, SessionLimitReached, SubmissionGate

__all__ = [
    "AttendanceService",
    "AttendanceError",
    "ValidationFailed",
    "HolesBlocking",
    "SessionLimitReached",
    "SubmissionGate",
    "find_holes",
    "next_session_number",
    "validate_backfill",
]
