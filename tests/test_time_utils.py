from datetime import date, datetime

import pytest

from mentor_attendance.utils.time import (
    BEGINNING_OF_TIME,
    InvalidSessionDate,
    coerce_date,
    format_display_date,
    format_sheet_date,
    format_sheet_timestamp,
    is_sentinel,
    parse_session_date,
)


@pytest.mark.parametrize(
    "raw",
    ["2025-03-14", "3/14/2025", "03/14/2025", "3/14/2025 10:22:01", "March 14, 2025", "2025-03-14T08:00:00"],
)
def test_coerce_date_accepts_sheet_formats(raw):
    assert coerce_date(raw) == date(2025, 3, 14)


def test_coerce_date_passes_dates_through():
    assert coerce_date(datetime(2025, 3, 14, 9, 30)) == date(2025, 3, 14)
    assert coerce_date(date(2025, 3, 14)) == date(2025, 3, 14)


def test_coerce_date_rejects_garbage():
    with pytest.raises(InvalidSessionDate):
        coerce_date("next tuesday")
    with pytest.raises(InvalidSessionDate):
        coerce_date("   ")


@pytest.mark.parametrize("raw", [None, "", "-", "Not completed", "Invalid Date", "sometime in March"])
def test_parse_session_date_returns_none_for_unusable_cells(raw):
    assert parse_session_date(raw) is None


def test_sentinel_and_formatting():
    assert is_sentinel(BEGINNING_OF_TIME)
    assert not is_sentinel(date(2025, 1, 1))
    assert format_display_date(date(2025, 3, 4)) == "03/04/2025"
    assert format_sheet_date(date(2025, 3, 4)) == "3/4/2025"
    assert format_sheet_timestamp(datetime(2025, 3, 4, 9, 5, 3)) == "3/4/2025 09:05:03"
