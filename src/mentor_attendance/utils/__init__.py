from .content import is_acceptable_doc_url, is_placeholder_text, non_whitespace_length
from .keys import mentor_key, normalize_key, same_mentor, same_student, student_key
from .time import BEGINNING_OF_TIME, InvalidSessionDate, coerce_date, parse_session_date

__all__ = [
    "BEGINNING_OF_TIME",
    "InvalidSessionDate",
    "coerce_date",
    "parse_session_date",
    "normalize_key",
    "mentor_key",
    "student_key",
    "same_mentor",
    "same_student",
    "is_placeholder_text",
    "is_acceptable_doc_url",
    "non_whitespace_length",
]
