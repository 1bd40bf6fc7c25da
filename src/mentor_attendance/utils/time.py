from __future__ import annotations

from datetime import date, datetime

BEGINNING_OF_TIME = date(1900, 1, 1)

NOT_COMPLETED_MARKERS: frozenset[str] = frozenset({"", "-", "not completed", "invalid date"})

_DATE_FORMATS: tuple[str, ...] = (
    "%Y-%m-%d",
    "%m/%d/%Y",
    "%m/%d/%y",
    "%Y/%m/%d",
    "%m-%d-%Y",
    "%B %d, %Y",
    "%b %d, %Y",
    "%d %B %Y",
)


class InvalidSessionDate(ValueError):
    pass


def coerce_date(value: date | datetime | str) -> date:
    """Turn a sheet cell, ISO string or datetime into a calendar date.

    Spreadsheet cells arrive in whatever shape the person typing them chose,
    so a handful of common layouts are tried before giving up.
    """

    if isinstance(value, datetime):
        return value.date()

    if isinstance(value, date):
        return value

    if isinstance(value, str):
        candidate = value.strip()
        if not candidate:
            raise InvalidSessionDate("Empty date value.")

        try:
            return datetime.fromisoformat(candidate.replace(" ", "T", 1)).date()
        except ValueError:
            pass

        for fmt in _DATE_FORMATS:
            try:
                return datetime.strptime(candidate, fmt).date()
            except ValueError:
                continue

        # "3/14/2025 10:22:01" as written by the attendance form timestamp
        head = candidate.split(" ", 1)[0]
        if head != candidate:
            return coerce_date(head)

    raise InvalidSessionDate(f"Unsupported date value: {value!r}")


def parse_session_date(value: date | datetime | str | None) -> date | None:
    """Return the date in a session cell, or None when the cell holds no usable date."""

    if value is None:
        return None
    if isinstance(value, str) and value.strip().lower() in NOT_COMPLETED_MARKERS:
        return None
    try:
        return coerce_date(value)
    except InvalidSessionDate:
        return None


def is_sentinel(value: date) -> bool:
    return value <= BEGINNING_OF_TIME


def format_display_date(value: date) -> str:
    return value.strftime("%m/%d/%Y")


def format_sheet_date(value: date) -> str:
    return f"{value.month}/{value.day}/{value.year}"


def format_sheet_timestamp(value: datetime) -> str:
    return f"{format_sheet_date(value.date())} {value.strftime('%H:%M:%S')}"
