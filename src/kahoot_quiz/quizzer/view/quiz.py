import time
from typing import List, Optional, Sequence

from textual.app import App, ComposeResult
from textual.containers import Container, Vertical
from textual.timer import Timer
from textual.widget import Widget
from textual.widgets import Button, Static

from ..models import Question, SessionResult
from ..results import format_duration
from ..session import Clock, QuizSessionState, SessionPhase


class QuizApp(App):
    """Textual front end over ``QuizSessionState``.

    ``run()`` returns the ``SessionResult`` when the last question is
    advanced past, or None when the user quits early.
    """

    CSS_PATH = None
    CSS = """
#answers Button.selected { background: $accent; color: black; }
#answers Button.correct { background: $success; }
#answers Button.wrong { background: $error; }
#weak { color: $warning; }
"""
    BINDINGS = [
        ("1", "select(0)", "Answer 1"),
        ("2", "select(1)", "Answer 2"),
        ("3", "select(2)", "Answer 3"),
        ("4", "select(3)", "Answer 4"),
        ("s", "submit", "Submit"),
        ("n", "next", "Next"),
        ("enter", "next", "Next"),
    ]

    def __init__(
        self, questions: Sequence[Question], *, clock: Clock = time.monotonic
    ):
        super().__init__()
        self.state = QuizSessionState(list(questions), clock=clock)
        self.result: Optional[SessionResult] = None
        self._timer: Optional[Timer] = None

    def compose(self) -> ComposeResult:
        if self.state.finished:
            yield Static("No questions.", id="empty")
            return
        with Container(id="stage"):
            yield QuestionView(self.state)
        with Container(id="footer"):
            yield Button("Submit", id="submit")
            yield Button("Next", id="next")
            yield Static(self._score_text(), id="score")
            yield Static(self._clock_text(), id="clock")

    def on_mount(self) -> None:
        # The tick only refreshes the clock label; scoring uses timestamps.
        self._timer = self.set_interval(1.0, self._tick)
        self.state.add_stop_hook(self._stop_timer)

    def on_unmount(self) -> None:
        self.state.abandon()
        self._stop_timer()

    # Pure helpers (testable without running the App)
    def select_answer(self, index: int) -> bool:
        accepted = self.state.select(index)
        if accepted:
            self._update_stage()
        return accepted

    def submit_answers(self) -> bool:
        accepted = self.state.submit()
        if accepted:
            self._update_stage()
        return accepted

    def next_question(self) -> Optional[SessionResult]:
        if self.state.phase is not SessionPhase.REVEALED:
            return None
        result = self.state.advance()
        if result is not None:
            self.result = result
            self.exit(result)
            return result
        self._update_stage()
        return None

    def _stop_timer(self) -> None:
        if self._timer is not None:
            self._timer.stop()
            self._timer = None

    def _tick(self) -> None:
        try:
            self.query_one("#clock", Static).update(self._clock_text())
        except Exception:
            pass

    def _update_stage(self) -> None:
        try:
            stage = self.query_one("#stage", Container)
        except Exception:
            return
        stage.remove_children()
        stage.mount(QuestionView(self.state))
        try:
            self.query_one("#score", Static).update(self._score_text())
        except Exception:
            pass

    def _score_text(self) -> str:
        return (
            f"Question {self.state.index + 1} of {self.state.total_questions}"
            f" | Correct: {self.state.correct_count}"
            f" | Incorrect: {self.state.incorrect_count}"
        )

    def _clock_text(self) -> str:
        return f"Time: {format_duration(self.state.elapsed_seconds())}"

    def action_select(self, index: int) -> None:
        self.select_answer(index)

    def action_submit(self) -> None:
        self.submit_answers()

    def action_next(self) -> None:
        self.next_question()

    def on_button_pressed(self, event: Button.Pressed) -> None:
        bid = getattr(event.button, "id", "") or ""
        if bid.startswith("answer-"):
            self.select_answer(int(bid.split("-", 1)[1]))
        elif bid == "submit":
            self.action_submit()
        elif bid == "next":
            self.action_next()


class QuestionView(Widget):
    """Renders the current question, its answers and per-answer status."""

    def __init__(self, state: QuizSessionState) -> None:
        super().__init__()
        self.state = state
        self.question = state.current

    def answer_classes(self) -> List[List[str]]:
        """CSS classes for each answer button, in answer order."""
        revealed = self.state.phase is SessionPhase.REVEALED
        classes: List[List[str]] = []
        for idx, answer in enumerate(self.question.answers):
            names: List[str] = []
            selected = self.state.is_selected(idx)
            if selected:
                names.append("selected")
            if revealed and answer.is_correct:
                names.append("correct")
            elif revealed and selected:
                names.append("wrong")
            classes.append(names)
        return classes

    def feedback_text(self) -> str:
        answer = self.state.last_answer
        if answer is None:
            if self.question.is_multi_select:
                return (
                    f"Select all that apply ({self.question.correct_count} "
                    "correct), then Submit."
                )
            return ""
        if answer.is_fully_correct:
            return "Correct!"
        expected = ", ".join(a.text for a in self.question.correct_answers)
        return f"Incorrect. Correct answer: {expected}"

    def compose(self) -> ComposeResult:
        if self.question.is_weakness:
            yield Static("Weak spot", id="weak")
        yield Static(self.question.question_text, id="question")
        revealed = self.state.phase is SessionPhase.REVEALED
        with Vertical(id="answers"):
            for idx, (answer, names) in enumerate(
                zip(self.question.answers, self.answer_classes())
            ):
                btn = Button(
                    f"{idx + 1}) {answer.text}",
                    id=f"answer-{idx}",
                    disabled=revealed,
                )
                for name in names:
                    btn.add_class(name)
                yield btn
        yield Static(self.feedback_text(), id="feedback")
