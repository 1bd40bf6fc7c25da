from __future__ import annotations

import re

_WHITESPACE = re.compile(r"\s+")


def normalize_key(name: str | None, *, sort_tokens: bool = False) -> str:
    """Normalize a human-entered name into a comparison key.

    Trims, lower-cases and collapses internal whitespace. With ``sort_tokens``
    the name parts are also sorted, so "Smith Jane" and "jane  smith" agree.
    """

    if not name:
        return ""
    collapsed = _WHITESPACE.sub(" ", str(name).strip().lower())
    if sort_tokens:
        return " ".join(sorted(collapsed.split(" ")))
    return collapsed


def mentor_key(name: str | None) -> str:
    return normalize_key(name, sort_tokens=True)


def student_key(name: str | None) -> str:
    return normalize_key(name)


def same_mentor(left: str | None, right: str | None) -> bool:
    key = mentor_key(left)
    return bool(key) and key == mentor_key(right)


def same_student(left: str | None, right: str | None) -> bool:
    key = student_key(left)
    return bool(key) and key == student_key(right)
