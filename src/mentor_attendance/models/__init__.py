from .attendance import (
    PROGRAM_LENGTHS,
    AttendanceHolesResult,
    BackfillCandidate,
    DateRange,
    GateDecision,
    Hole,
    InvalidProgramLength,
    LiveSubmission,
    RosterEntry,
    SessionRecord,
    SessionSlot,
    StudentSessionTimeline,
    ValidationResult,
    coerce_program_length,
)

__all__ = [
    "PROGRAM_LENGTHS",
    "AttendanceHolesResult",
    "BackfillCandidate",
    "DateRange",
    "GateDecision",
    "Hole",
    "InvalidProgramLength",
    "LiveSubmission",
    "RosterEntry",
    "SessionRecord",
    "SessionSlot",
    "StudentSessionTimeline",
    "ValidationResult",
    "coerce_program_length",
]
