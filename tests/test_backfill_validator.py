from __future__ import annotations

from datetime import date, datetime, timedelta

from mentor_attendance.models import BackfillCandidate, DateRange, Hole
from mentor_attendance.services.backfill_validator import validate_backfill

DOC_URL = "https://docs.google.com/document/d/1AbCdEf/edit"
RANGE = DateRange(date(2025, 2, 1), date(2025, 3, 1))


def candidate(day: date | None, **overrides) -> BackfillCandidate:
    fields = {
        "progress_text": "Worked on logistic regression and feature scaling",
        "exit_ticket_url": DOC_URL,
        "special_answers": {},
    }
    fields.update(overrides)
    return BackfillCandidate(date=day, **fields)


def test_valid_candidate_passes():
    result = validate_backfill(Hole(4, RANGE), candidate(date(2025, 2, 14)), student_type=10)

    assert result.ok
    assert result.errors == {}


def test_upper_bound_is_inclusive():
    hole = Hole(4, RANGE)

    assert validate_backfill(hole, candidate(RANGE.max), student_type=10).ok

    late = validate_backfill(hole, candidate(RANGE.max + timedelta(days=1)), student_type=10)
    assert set(late.errors) == {"date"}


def test_lower_bound_is_inclusive():
    hole = Hole(4, RANGE)

    assert validate_backfill(hole, candidate(RANGE.min), student_type=10).ok

    early = validate_backfill(hole, candidate(RANGE.min - timedelta(days=1)), student_type=10)
    assert set(early.errors) == {"date"}


def test_leading_hole_accepts_any_earlier_date():
    hole = Hole.leading(1, date(2025, 3, 1))

    assert validate_backfill(hole, candidate(date(2020, 5, 5)), student_type=10).ok


def test_missing_date_is_reported():
    result = validate_backfill(Hole(4, RANGE), candidate(None), student_type=10)

    assert result.errors["date"] == "Session date is required."


def test_final_session_requires_final_feedback():
    result = validate_backfill(Hole(10, RANGE), candidate(date(2025, 2, 10)), student_type=10)

    assert not result.ok
    assert set(result.errors) == {"finalFeedback"}


def test_final_feedback_length_is_counted_without_whitespace():
    hole = Hole(10, RANGE)
    short = "word " * 124  # 496 characters once spaces are removed
    long_enough = "x" * 500

    short_result = validate_backfill(
        hole, candidate(date(2025, 2, 10), special_answers={"finalFeedback": short}), student_type=10
    )
    assert set(short_result.errors) == {"finalFeedback"}

    ok_result = validate_backfill(
        hole, candidate(date(2025, 2, 10), special_answers={"finalFeedback": long_enough}), student_type=10
    )
    assert ok_result.ok


def test_placeholder_progress_and_bad_exit_ticket_are_rejected():
    result = validate_backfill(
        Hole(4, RANGE),
        candidate(
            date(2025, 2, 10),
            progress_text=" N/A ",
            exit_ticket_url="https://example.com/document/d/1AbCdEf",
        ),
        student_type=10,
    )

    assert set(result.errors) == {"progress_text", "exit_ticket_url"}


def test_exit_ticket_must_point_at_a_document():
    result = validate_backfill(
        Hole(4, RANGE),
        candidate(date(2025, 2, 10), exit_ticket_url="https://docs.google.com/forms/d/1AbCdEf"),
        student_type=10,
    )

    assert set(result.errors) == {"exit_ticket_url"}


def test_custom_document_host():
    result = validate_backfill(
        Hole(4, RANGE),
        candidate(date(2025, 2, 10), exit_ticket_url="https://docs.example.org/document/d/42"),
        student_type=10,
        document_host="docs.example.org",
    )

    assert result.ok


def test_twenty_five_session_topic_accepts_legacy_field_name():
    hole = Hole(2, RANGE)

    aliased = validate_backfill(
        hole,
        candidate(date(2025, 2, 10), special_answers={"projectTopic25": "Predicting bike rentals"}),
        student_type=25,
    )
    assert aliased.ok

    placeholder = validate_backfill(
        hole,
        candidate(date(2025, 2, 10), special_answers={"projectTopic": "none"}),
        student_type=25,
    )
    assert set(placeholder.errors) == {"projectTopic"}


def test_session_five_of_ten_needs_topic_and_mid_feedback():
    result = validate_backfill(Hole(5, RANGE), candidate(date(2025, 2, 10)), student_type=10)

    assert set(result.errors) == {"confirmedTopic", "midFeedback"}


def test_datetime_on_the_upper_bound_counts_as_that_day():
    hole = Hole(4, RANGE)
    upper = datetime.combine(RANGE.max, datetime.min.time()).replace(hour=9)

    assert validate_backfill(hole, candidate(upper), student_type=10).ok

    late = validate_backfill(hole, candidate(upper + timedelta(days=1)), student_type=10)
    assert set(late.errors) == {"date"}
