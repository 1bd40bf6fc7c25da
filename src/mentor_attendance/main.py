from __future__ import annotations

import argparse
import logging
import sys
from typing import Optional, Sequence

from mentor_attendance.config import configure_logging
import mentor_attendance.config.settings as settings_module
from mentor_attendance.data import CachedRecordStore, Database, SqliteRecordStore, StoreUnavailable
from mentor_attendance.models import PROGRAM_LENGTHS, InvalidProgramLength
from mentor_attendance.services import AttendanceService
from mentor_attendance.utils.time import format_display_date, is_sentinel

logger = logging.getLogger(__name__)

EXIT_OK = 0
EXIT_BLOCKED = 1
EXIT_STORE_FAILURE = 2


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="mentor-attendance",
        description="Session numbering and missing-attendance checks for mentors.",
    )
    parser.add_argument("--database", help="Path to the sqlite attendance database.")
    parser.add_argument(
        "--sheets",
        action="store_true",
        help="Read and write the Google Sheets workbook instead of the local database.",
    )
    parser.add_argument("--log-level", help="Override LOG_LEVEL for this run.")

    subparsers = parser.add_subparsers(dest="command", required=True)

    def add_student_args(sub: argparse.ArgumentParser, *, with_type: bool = True) -> None:
        sub.add_argument("mentor", help="Mentor name as written on the roster.")
        sub.add_argument("student", help="Student name as written on the roster.")
        if with_type:
            sub.add_argument(
                "--type",
                dest="program_length",
                type=int,
                choices=PROGRAM_LENGTHS,
                default=10,
                help="Program length of the student (10 or 25 sessions).",
            )

    add_student_args(
        subparsers.add_parser("next", help="Print the next session number for a student."),
        with_type=False,
    )
    add_student_args(subparsers.add_parser("holes", help="List sessions that still need attendance."))
    add_student_args(subparsers.add_parser("gate", help="Check whether a new session can be recorded."))

    enroll = subparsers.add_parser("enroll", help="Add a student to the local roster.")
    add_student_args(enroll)
    enroll.add_argument("--extra-sessions", type=int, default=0, help="Extra sessions for continuing students.")
    enroll.add_argument("--email", default="", help="Student email address.")

    return parser


def build_service(args: argparse.Namespace) -> tuple[AttendanceService, Optional[SqliteRecordStore]]:
    config = settings_module.settings

    if args.sheets:
        from mentor_attendance.data.sheets_store import SheetsRecordStore

        backend = SheetsRecordStore.from_settings(config)
        local = None
    else:
        local = SqliteRecordStore(Database(args.database or config.database_path))
        local.initialize()
        backend = local

    store = CachedRecordStore(backend, ttl_seconds=config.cache_ttl_seconds)
    return AttendanceService(store, document_host=config.document_host), local


def _print_holes(result) -> None:
    if not result.has_holes:
        print(f"No missing sessions. Next session: {result.next_session_number} of {result.total_sessions}.")
        return

    print(f"Missing sessions ({len(result.holes)}):")
    for hole in result.holes:
        lower = "any date" if is_sentinel(hole.date_range.min) else format_display_date(hole.date_range.min)
        print(f"  Session {hole.session_number}: {lower} to {format_display_date(hole.date_range.max)}")
    print(f"Next session after backfill: {result.next_session_number} of {result.total_sessions}.")


def run(args: argparse.Namespace) -> int:
    service, local = build_service(args)

    if args.command == "next":
        print(service.compute_next_session_number(args.mentor, args.student))
        return EXIT_OK

    if args.command == "holes":
        _print_holes(service.detect_holes(args.mentor, args.student, args.program_length))
        return EXIT_OK

    if args.command == "gate":
        decision = service.gate_live_submission(args.mentor, args.student, args.program_length)
        if decision.allowed:
            print(f"Allowed: session {decision.next_session_number} of {decision.session_ceiling}.")
            return EXIT_OK
        if decision.reason == "session_limit":
            print(f"Blocked: all {decision.session_ceiling} sessions have been recorded.")
        else:
            numbers = ", ".join(str(hole.session_number) for hole in decision.blocking_holes or ())
            print(f"Blocked: submit missing session(s) {numbers} first.")
        return EXIT_BLOCKED

    if args.command == "enroll":
        if local is None:
            print("Enrollment is only available for the local database.", file=sys.stderr)
            return EXIT_BLOCKED
        student_id = local.enroll_student(
            args.mentor,
            args.student,
            args.program_length,
            extra_sessions=args.extra_sessions,
            email=args.email,
        )
        service.store.invalidate()
        print(f"Enrolled {args.student} with {args.mentor} (id {student_id}).")
        return EXIT_OK

    raise ValueError(f"Unknown command {args.command!r}")


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    settings_module.refresh_settings()
    configure_logging(settings_module.settings, level=args.log_level)

    try:
        return run(args)
    except StoreUnavailable as exc:
        logger.error("Attendance store unavailable: %s", exc)
        print(f"Attendance store unavailable: {exc}", file=sys.stderr)
        return EXIT_STORE_FAILURE
    except InvalidProgramLength as exc:
        print(str(exc), file=sys.stderr)
        return EXIT_BLOCKED


if __name__ == "__main__":
    sys.exit(main())
