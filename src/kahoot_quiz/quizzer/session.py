"""Quiz session state machine and its Rich console driver.

``QuizSessionState`` holds every rule of a playthrough (selection, scoring,
reveal, advance, timing) without depending on a UI toolkit. The Rich loop in
``run_quiz_session`` and the Textual app in ``view.quiz`` only translate user
input into calls on the state and render what it exposes.
"""

from __future__ import annotations

import logging
import time
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Literal

from rich import box
from rich.console import Console
from rich.table import Table
from rich.text import Text

from .models import Answer, Question, SessionResult, UserAnswer, is_fully_correct
from .results import format_duration, round_half_up

logger = logging.getLogger(__name__)

Clock = Callable[[], float]
InputProvider = Callable[[], str]
ExitAction = Literal["finished", "quit", "empty"]

ANSWER_LETTERS = "abcdefghij"


class SessionPhase(Enum):
    AWAITING_SELECTION = "awaiting_selection"
    REVEALED = "revealed"
    FINISHED = "finished"


@dataclass
class QuizSessionState:
    """One playthrough over an owned copy of ``questions``.

    Phases run ``AWAITING_SELECTION(i) -> REVEALED(i) -> AWAITING_SELECTION(i+1)
    ... -> FINISHED``. Questions cannot be skipped, revisited or re-answered.
    Answers are addressed by their index in ``current.answers``.
    """

    questions: list[Question]
    clock: Clock = time.monotonic
    index: int = 0
    phase: SessionPhase = SessionPhase.AWAITING_SELECTION
    correct_count: int = 0
    incorrect_count: int = 0
    answers: list[UserAnswer] = field(default_factory=list)
    result: SessionResult | None = None
    started_at: float = field(init=False)
    _pending: list[int] = field(default_factory=list, init=False)
    _stop_hooks: list[Callable[[], None]] = field(
        default_factory=list, init=False
    )

    def __post_init__(self) -> None:
        self.questions = list(self.questions)
        self.started_at = self.clock()
        if not self.questions:
            self._finish()

    @property
    def total_questions(self) -> int:
        return len(self.questions)

    @property
    def current(self) -> Question:
        return self.questions[self.index]

    @property
    def is_last(self) -> bool:
        return self.index + 1 >= self.total_questions

    @property
    def finished(self) -> bool:
        return self.phase is SessionPhase.FINISHED

    @property
    def pending(self) -> tuple[int, ...]:
        return tuple(sorted(self._pending))

    @property
    def last_answer(self) -> UserAnswer | None:
        if self.phase is not SessionPhase.REVEALED:
            return None
        return self.answers[-1]

    def is_selected(self, answer_index: int) -> bool:
        if self.phase is SessionPhase.REVEALED:
            chosen = self.answers[-1].selected_answers
            return any(
                self.current.answers[answer_index] is answer
                for answer in chosen
            )
        return answer_index in self._pending

    def add_stop_hook(self, hook: Callable[[], None]) -> None:
        """Register a callback run once when the session ends or is abandoned."""

        self._stop_hooks.append(hook)

    def select(self, answer_index: int) -> bool:
        """Pick (single-select) or toggle (multi-select) an answer.

        Returns False and changes nothing once the question is revealed or
        when the index is out of range.
        """

        if self.phase is not SessionPhase.AWAITING_SELECTION:
            return False
        if not 0 <= answer_index < len(self.current.answers):
            return False
        if not self.current.is_multi_select:
            self._reveal([answer_index])
            return True
        if answer_index in self._pending:
            self._pending.remove(answer_index)
        else:
            self._pending.append(answer_index)
        return True

    def submit(self) -> bool:
        """Score the pending multi-select set; needs at least one selection."""

        if self.phase is not SessionPhase.AWAITING_SELECTION:
            return False
        if not self.current.is_multi_select or not self._pending:
            return False
        self._reveal(sorted(self._pending))
        return True

    def advance(self) -> SessionResult | None:
        """Move past a revealed question; returns the result on the last one."""

        if self.phase is not SessionPhase.REVEALED:
            return None
        if self.is_last:
            return self._finish()
        self.index += 1
        self._pending = []
        self.phase = SessionPhase.AWAITING_SELECTION
        return None

    def abandon(self) -> None:
        """Leave without a result; releases timers all the same."""

        if self.finished:
            return
        logger.info(
            "Session abandoned",
            extra={"index": self.index, "total": self.total_questions},
        )
        self._run_stop_hooks()

    def elapsed_seconds(self) -> int:
        if self.result is not None:
            return self.result.duration_seconds
        return round_half_up(self.clock() - self.started_at)

    def _reveal(self, indices: Sequence[int]) -> None:
        question = self.current
        selected = tuple(question.answers[i] for i in indices)
        answer = UserAnswer(question=question, selected_answers=selected)
        self.answers.append(answer)
        if is_fully_correct(question, selected):
            self.correct_count += 1
        else:
            self.incorrect_count += 1
        self._pending = []
        self.phase = SessionPhase.REVEALED

    def _finish(self) -> SessionResult:
        self.phase = SessionPhase.FINISHED
        self.result = SessionResult(
            correct_count=self.correct_count,
            incorrect_count=self.incorrect_count,
            total=self.total_questions,
            answers=tuple(self.answers),
            duration_seconds=round_half_up(self.clock() - self.started_at),
        )
        self._run_stop_hooks()
        logger.info(
            "Session finished",
            extra={
                "correct": self.result.correct_count,
                "incorrect": self.result.incorrect_count,
                "total": self.result.total,
                "duration_seconds": self.result.duration_seconds,
            },
        )
        return self.result

    def _run_stop_hooks(self) -> None:
        hooks, self._stop_hooks = self._stop_hooks, []
        for hook in hooks:
            hook()


@dataclass(frozen=True)
class SessionCommand:
    """Normalized user command parsed from console input."""

    type: Literal["select", "submit", "next", "quit"]
    choice: int | None = None


@dataclass(frozen=True)
class QuizRunOutcome:
    """Return value from ``run_quiz_session``; ``result`` is None on quit."""

    result: SessionResult | None
    exit_action: ExitAction


def parse_session_command(raw: str | None) -> SessionCommand | None:
    """Parse raw console input.

    Answers are chosen by number (``1``..) or letter (``a``..). An empty line
    means "next".
    """

    if raw is None:
        return None
    text = raw.strip().lower()
    if text in {"", "n", "next"}:
        return SessionCommand("next")
    if text in {"s", "submit"}:
        return SessionCommand("submit")
    if text in {"q", "quit", "exit"}:
        return SessionCommand("quit")
    if text.isdigit() and int(text) > 0:
        return SessionCommand("select", int(text) - 1)
    if len(text) == 1 and text in ANSWER_LETTERS:
        return SessionCommand("select", ANSWER_LETTERS.index(text))
    return None


def run_quiz_session(
    questions: Sequence[Question],
    console: Console,
    input_provider: InputProvider,
    *,
    clock: Clock = time.monotonic,
) -> QuizRunOutcome:
    """Play ``questions`` in order on a Rich console."""

    state = QuizSessionState(list(questions), clock=clock)
    if state.finished:
        console.print("[yellow]No questions to play.[/]")
        return QuizRunOutcome(None, "empty")

    while not state.finished:
        _render_question(console, state)
        try:
            raw = input_provider()
        except (EOFError, KeyboardInterrupt, StopIteration):
            console.print("\n[bold yellow]Session interrupted.[/]")
            state.abandon()
            return QuizRunOutcome(None, "quit")
        command = parse_session_command(raw)
        if command is None:
            console.print("[red]Unrecognized command. Try again.[/]")
            continue
        if command.type == "quit":
            console.print("\n[bold yellow]Ending session without results.[/]")
            state.abandon()
            return QuizRunOutcome(None, "quit")
        _apply_command(command, state, console)

    return QuizRunOutcome(state.result, "finished")


def _apply_command(
    command: SessionCommand,
    state: QuizSessionState,
    console: Console,
) -> None:
    if command.type == "select" and command.choice is not None:
        if state.phase is SessionPhase.REVEALED:
            console.print("[dim]Already answered. Press Enter to continue.[/]")
        elif not state.select(command.choice):
            console.print(
                "[red]'%d' is not a valid answer for this question.[/red]"
                % (command.choice + 1)
            )
        elif state.phase is SessionPhase.REVEALED:
            _render_feedback(console, state)
        return
    if command.type == "submit":
        if state.submit():
            _render_feedback(console, state)
        elif state.phase is SessionPhase.AWAITING_SELECTION:
            console.print("[red]Select at least one answer before submitting.[/]")
        return
    if command.type == "next":
        if state.phase is SessionPhase.REVEALED:
            state.advance()
        else:
            console.print("[red]Answer the question first.[/]")


def _render_question(console: Console, state: QuizSessionState) -> None:
    question = state.current
    header = Text.assemble(
        (f"Question {state.index + 1}", "bold cyan"),
        (f" / {state.total_questions}", "dim"),
    )
    if question.is_weakness:
        header.append("  weak spot", style="bold yellow")
    console.print()
    console.rule(header)
    console.print(Text(question.question_text, style="bold"))
    if question.is_multi_select:
        console.print(
            Text(
                f"Select all that apply ({question.correct_count} correct).",
                style="italic",
            )
        )

    table = Table(show_header=False, box=box.SIMPLE, expand=True)
    table.add_column("Key", justify="center", style="cyan")
    table.add_column("Answer")
    revealed = state.phase is SessionPhase.REVEALED
    for idx, answer in enumerate(question.answers):
        selected = state.is_selected(idx)
        row_text = Text(("• " if selected else "  ") + answer.text)
        if revealed and answer.is_correct:
            row_text.stylize("bold green")
        elif revealed and selected:
            row_text.stylize("bold red")
        elif selected:
            row_text.stylize("bold")
        table.add_row(str(idx + 1), row_text)
    console.print(table)

    if revealed:
        hint = "Enter (next)" if not state.is_last else "Enter (show results)"
    elif question.is_multi_select:
        hint = "numbers toggle answers, s (submit), q (quit)"
    else:
        hint = "number (answer), q (quit)"
    console.print(
        Text(
            f"Correct {state.correct_count} | Incorrect {state.incorrect_count}"
            f" | Time {format_duration(state.elapsed_seconds())} | {hint}",
            style="dim",
        )
    )


def _render_feedback(console: Console, state: QuizSessionState) -> None:
    answer = state.last_answer
    if answer is None:
        return
    if answer.is_fully_correct:
        console.print("[bold green]Correct![/]")
        return
    expected = ", ".join(a.text for a in answer.question.correct_answers)
    console.print(f"[bold red]Incorrect.[/] Correct answer: {expected}")
