from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Optional

from mentor_attendance.utils.content import is_placeholder_text, non_whitespace_length


@dataclass(frozen=True, slots=True)
class SpecialQuestion:
    key: str
    label: str
    min_length: int = 0
    rejects_placeholders: bool = False

    def check(self, value: Optional[str], session_number: int) -> Optional[str]:
        text = (value or "").strip()
        if not text:
            return f"{self.label} is required for session {session_number}."
        if self.rejects_placeholders and is_placeholder_text(text):
            return f"Please provide a specific {self.label.lower()}."
        if self.min_length and non_whitespace_length(text) < self.min_length:
            return f"Minimum {self.min_length} characters required."
        return None


PROJECT_TOPIC = SpecialQuestion("projectTopic", "Project topic", rejects_placeholders=True)
CONFIRMED_TOPIC = SpecialQuestion("confirmedTopic", "Confirmed topic", rejects_placeholders=True)
MID_FEEDBACK = SpecialQuestion("midFeedback", "Mid feedback", min_length=300)
FINAL_FEEDBACK = SpecialQuestion("finalFeedback", "Final feedback", min_length=500)

SPECIAL_QUESTIONS: Mapping[tuple[int, int], tuple[SpecialQuestion, ...]] = {
    (10, 2): (PROJECT_TOPIC,),
    (10, 5): (CONFIRMED_TOPIC, MID_FEEDBACK),
    (10, 10): (FINAL_FEEDBACK,),
    (25, 2): (PROJECT_TOPIC,),
    (25, 5): (CONFIRMED_TOPIC,),
    (25, 12): (MID_FEEDBACK,),
    (25, 25): (FINAL_FEEDBACK,),
}

# The 25-session form used its own field names for two of the questions.
ANSWER_ALIASES: Mapping[str, str] = {
    "projectTopic25": "projectTopic",
    "midFeedback25": "midFeedback",
}


def required_questions(student_type: int, session_number: int) -> tuple[SpecialQuestion, ...]:
    return SPECIAL_QUESTIONS.get((int(student_type), int(session_number)), ())


def canonical_answers(answers: Optional[Mapping[str, str]]) -> dict[str, str]:
    canonical: dict[str, str] = {}
    for key, value in (answers or {}).items():
        target = ANSWER_ALIASES.get(key, key)
        if value is None:
            continue
        # An explicit canonical key beats its alias.
        if target in canonical and key != target:
            continue
        canonical[target] = str(value)
    return canonical


def check_special_answers(
    student_type: int,
    session_number: int,
    answers: Optional[Mapping[str, str]],
) -> dict[str, str]:
    """Map of answer key to problem for every required question that is not answered well enough."""

    provided = canonical_answers(answers)
    errors: dict[str, str] = {}
    for question in required_questions(student_type, session_number):
        problem = question.check(provided.get(question.key), session_number)
        if problem:
            errors[question.key] = problem
    return errors
