"""Fold a finished session into the weakness set and summary statistics."""

from __future__ import annotations

import logging
import math
from collections.abc import Iterable
from dataclasses import dataclass
from typing import TYPE_CHECKING

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from .models import SessionResult, UserAnswer

if TYPE_CHECKING:
    from .weakness import WeaknessTracker

logger = logging.getLogger(__name__)

GRADE_THRESHOLDS: tuple[tuple[int, str], ...] = (
    (90, "A"),
    (80, "B"),
    (70, "C"),
    (60, "D"),
)


@dataclass(frozen=True)
class QuizSummary:
    """Display statistics for a finished session."""

    percentage: int
    grade: str
    correct: int
    incorrect: int
    total: int
    duration_seconds: int

    @property
    def duration_text(self) -> str:
        return format_duration(self.duration_seconds)


def update_weaknesses(
    answers: Iterable[UserAnswer], weaknesses: Iterable[str]
) -> set[str]:
    """Return a new weakness set after applying one session's answers.

    A fully correct answer clears its question text; anything else adds it.
    """

    updated = set(weaknesses)
    for answer in answers:
        text = answer.question.question_text
        if answer.is_fully_correct:
            updated.discard(text)
        else:
            updated.add(text)
    return updated


def apply_session_result(
    answers: Iterable[UserAnswer], tracker: "WeaknessTracker"
) -> set[str]:
    """Read-modify-write the persisted weakness set; last writer wins."""

    before = tracker.load()
    after = update_weaknesses(answers, before)
    tracker.save(after)
    logger.info(
        "Updated weaknesses",
        extra={
            "added": len(after - before),
            "removed": len(before - after),
            "count": len(after),
        },
    )
    return after


def percentage_for(correct: int, total: int) -> int:
    if total <= 0:
        return 0
    return max(0, min(100, round_half_up(correct / total * 100)))


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""

    return int(math.floor(value + 0.5))


def grade_for(percentage: int) -> str:
    for threshold, grade in GRADE_THRESHOLDS:
        if percentage >= threshold:
            return grade
    return "F"


def format_duration(seconds: int) -> str:
    """Format whole seconds as ``M:SS``."""

    minutes, secs = divmod(max(0, int(seconds)), 60)
    return f"{minutes}:{secs:02d}"


def summarize(result: SessionResult) -> QuizSummary:
    percentage = percentage_for(result.correct_count, result.total)
    return QuizSummary(
        percentage=percentage,
        grade=grade_for(percentage),
        correct=result.correct_count,
        incorrect=result.incorrect_count,
        total=result.total,
        duration_seconds=result.duration_seconds,
    )


_GRADE_STYLES = {
    "A": "bold green",
    "B": "bold blue",
    "C": "bold yellow",
    "D": "bold dark_orange",
    "F": "bold red",
}


def render_summary(
    console: Console, result: SessionResult, summary: QuizSummary
) -> None:
    console.print()
    console.rule(Text("Quiz Results", style="bold magenta"))

    overview = Table(show_header=False, box=box.MINIMAL_DOUBLE_HEAD)
    overview.add_column("Metric", style="bold")
    overview.add_column("Value", justify="right")
    overview.add_row("Score", f"{summary.percentage}%")
    overview.add_row(
        "Grade", Text(summary.grade, style=_GRADE_STYLES[summary.grade])
    )
    overview.add_row("Correct", str(summary.correct))
    overview.add_row("Incorrect", str(summary.incorrect))
    overview.add_row("Time", summary.duration_text)
    console.print(overview)

    review = Table(title="Review", box=box.SIMPLE, expand=True)
    review.add_column("#", justify="right")
    review.add_column("Question", overflow="fold")
    review.add_column("Your answer")
    review.add_column("Correct answer")
    review.add_column("Result", justify="center")
    for idx, answer in enumerate(result.answers, start=1):
        question = answer.question
        label = question.question_text
        if question.is_weakness:
            label += " (weak)"
        review.add_row(
            str(idx),
            label,
            ", ".join(a.text for a in answer.selected_answers) or "—",
            ", ".join(a.text for a in question.correct_answers),
            "✅" if answer.is_fully_correct else "❌",
        )
    console.print(review)
