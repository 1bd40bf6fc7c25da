from __future__ import annotations

import logging
from datetime import date

from mentor_attendance.models import (
    AttendanceHolesResult,
    DateRange,
    Hole,
    StudentSessionTimeline,
)

logger = logging.getLogger(__name__)


def completed_sessions(timeline: StudentSessionTimeline) -> list[tuple[int, date]]:
    """Sorted ``(session_number, date)`` pairs for every slot that is completed with a usable date."""

    completed: list[tuple[int, date]] = []
    for index, slot in enumerate(timeline.slots[: timeline.program_length]):
        if not slot.completed:
            continue
        if slot.date is None:
            logger.warning(
                "Session %d is marked completed without a readable date (%r); treating it as not completed",
                index + 1,
                slot.raw,
            )
            continue
        completed.append((index + 1, slot.date))
    completed.sort(key=lambda item: item[0])
    return completed


def find_holes(timeline: StudentSessionTimeline) -> AttendanceHolesResult:
    completed = completed_sessions(timeline)
    holes: list[Hole] = []

    for (current, current_date), (following, following_date) in zip(completed, completed[1:]):
        if following - current <= 1:
            continue
        date_range = DateRange(current_date, following_date)
        holes.extend(Hole(missing, date_range) for missing in range(current + 1, following))

    if completed and completed[0][0] > 1:
        first_number, first_date = completed[0]
        holes.extend(Hole.leading(missing, first_date) for missing in range(1, first_number))

    next_number = completed[-1][0] + 1 if completed else 1

    return AttendanceHolesResult(
        holes=tuple(sorted(holes, key=lambda hole: hole.session_number)),
        next_session_number=next_number,
        total_sessions=timeline.program_length,
    )
