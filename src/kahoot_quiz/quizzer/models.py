"""Immutable records shared by the parser, the session and the reducer."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Sequence


@dataclass(frozen=True)
class Answer:
    """One answer option as extracted from a sheet."""

    text: str
    is_correct: bool


@dataclass(frozen=True)
class Question:
    """A playable question. ``id`` is the sheet it was extracted from."""

    id: str
    question_text: str
    answers: tuple[Answer, ...]
    is_weakness: bool = False

    def __post_init__(self) -> None:
        if not self.answers:
            raise ValueError(f"Question {self.id!r} has no answers")
        if not any(answer.is_correct for answer in self.answers):
            raise ValueError(f"Question {self.id!r} has no correct answer")

    @property
    def correct_count(self) -> int:
        return sum(1 for answer in self.answers if answer.is_correct)

    @property
    def is_multi_select(self) -> bool:
        return self.correct_count > 1

    @property
    def correct_answers(self) -> tuple[Answer, ...]:
        return tuple(answer for answer in self.answers if answer.is_correct)

    def with_weakness(self, flag: bool = True) -> "Question":
        return replace(self, is_weakness=flag)

    def with_answers(self, answers: Sequence[Answer]) -> "Question":
        return replace(self, answers=tuple(answers))


def is_fully_correct(question: Question, selected: Sequence[Answer]) -> bool:
    """Exact-match scoring: same size as the correct set, all selected correct.

    No partial credit is given for a strict subset or superset.
    """

    if len(selected) != question.correct_count:
        return False
    return all(answer.is_correct for answer in selected)


@dataclass(frozen=True)
class UserAnswer:
    """The answers picked for one question during one attempt."""

    question: Question
    selected_answers: tuple[Answer, ...]

    @property
    def is_fully_correct(self) -> bool:
        return is_fully_correct(self.question, self.selected_answers)


@dataclass(frozen=True)
class SessionResult:
    """Outcome of a finished playthrough."""

    correct_count: int
    incorrect_count: int
    total: int
    answers: tuple[UserAnswer, ...]
    duration_seconds: int
