from __future__ import annotations

from typing import Optional, Protocol, runtime_checkable

from mentor_attendance.models import RosterEntry, SessionRecord


class StoreError(RuntimeError):
    """Base class for record store failures."""


class StoreUnavailable(StoreError):
    """Raised when the record store cannot be read from or appended to."""


@runtime_checkable
class RecordStore(Protocol):
    """Append-only source of attendance rows and roster grids.

    Server-side filtering by name may be exact-match only; callers always
    re-apply tolerant key matching to what comes back.
    """

    def append_session_record(self, record: SessionRecord) -> None: ...

    def read_all_records(
        self,
        mentor_name: Optional[str] = None,
        student_name: Optional[str] = None,
    ) -> list[SessionRecord]: ...

    def read_roster(self, program_length: int) -> list[RosterEntry]: ...
