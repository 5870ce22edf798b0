from ._main import build_arg_parser
from .errors import DecodeError, InvalidFileType, NoQuestionsFound, QuizError
from .models import Answer, Question, SessionResult, UserAnswer
from .utils import collect_workbooks, shuffle
from .manager.extract import (
    KAHOOT_LAYOUT,
    SheetLayout,
    extract_question,
    extract_workbook,
    parse_files,
    prepare_questions,
    read_workbook,
)
from .manager.compose import compose_session, reshuffle_answers
from .weakness import (
    JsonFileStore,
    KeyValueStore,
    MemoryStore,
    WeaknessTracker,
)
from .session import (
    QuizRunOutcome,
    QuizSessionState,
    SessionPhase,
    run_quiz_session,
)
from .results import (
    QuizSummary,
    apply_session_result,
    format_duration,
    grade_for,
    summarize,
)
from .view.quiz import QuizApp, QuestionView

__all__ = [
    "build_arg_parser",
    "DecodeError",
    "InvalidFileType",
    "NoQuestionsFound",
    "QuizError",
    "Answer",
    "Question",
    "SessionResult",
    "UserAnswer",
    "collect_workbooks",
    "shuffle",
    "KAHOOT_LAYOUT",
    "SheetLayout",
    "extract_question",
    "extract_workbook",
    "parse_files",
    "prepare_questions",
    "read_workbook",
    "compose_session",
    "reshuffle_answers",
    "JsonFileStore",
    "KeyValueStore",
    "MemoryStore",
    "WeaknessTracker",
    "QuizRunOutcome",
    "QuizSessionState",
    "SessionPhase",
    "run_quiz_session",
    "QuizSummary",
    "apply_session_result",
    "format_duration",
    "grade_for",
    "summarize",
    "QuizApp",
    "QuestionView",
]
