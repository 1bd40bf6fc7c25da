from __future__ import annotations

import re
from urllib.parse import urlsplit

DEFAULT_DOCUMENT_HOST = "docs.google.com"
DOCUMENT_PATH_MARKERS: tuple[str, ...] = ("/document/", "/spreadsheets/")

PLACEHOLDER_PHRASES: frozenset[str] = frozenset(
    {
        "n/a",
        "na",
        "n.a.",
        "not applicable",
        "none",
        "no progress",
        "nothing",
        "nada",
        "zip",
        "zero",
    }
)

_NON_WHITESPACE = re.compile(r"\S")


def is_placeholder_text(text: str | None) -> bool:
    """True when the text is one of the low-effort answers mentors are not allowed to submit."""

    if text is None:
        return False
    return text.strip().lower() in PLACEHOLDER_PHRASES


def is_acceptable_doc_url(url: str | None, *, host: str = DEFAULT_DOCUMENT_HOST) -> bool:
    """True when ``url`` points at a hosted document or spreadsheet.

    Empty input is rejected here; callers report "required" separately before
    asking about the URL shape.
    """

    if not url or not url.strip():
        return False

    try:
        parts = urlsplit(url.strip())
    except ValueError:
        return False

    if parts.scheme not in ("http", "https"):
        return False
    if (parts.hostname or "").lower() != host.lower():
        return False
    return any(marker in parts.path for marker in DOCUMENT_PATH_MARKERS)


def non_whitespace_length(text: str | None) -> int:
    if not text:
        return 0
    return len(_NON_WHITESPACE.findall(text))
