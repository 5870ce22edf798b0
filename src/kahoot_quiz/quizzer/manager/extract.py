import io
import logging
import random

from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Callable, Iterable, List, Optional, Sequence, Tuple

from openpyxl import load_workbook

from ..errors import DecodeError, NoQuestionsFound
from ..models import Answer, Question
from ..utils import collect_workbooks, shuffle

logger = logging.getLogger(__name__)

Row = Sequence[Any]
Sheet = Tuple[str, List[Row]]
WorkbookReader = Callable[[bytes], List[Sheet]]


@dataclass(frozen=True)
class SheetLayout:
    """Fixed positions of a question inside an exported results sheet.

    Answer text sits in ``answer_columns`` of the options row and the
    correctness flag for each answer sits one column to its left in the
    correctness row.
    """

    sheet_keywords: Tuple[str, ...] = ("Quiz", "True or False")
    min_rows: int = 10
    prompt_row: int = 1
    prompt_column: int = 1
    options_marker: str = "Answer options"
    correctness_marker: str = "Is answer correct?"
    answer_columns: Tuple[int, ...] = (3, 5, 7, 9)
    flag_offset: int = -1
    correct_flag: str = "✔︎"


KAHOOT_LAYOUT = SheetLayout()


def _cell(row: Optional[Row], column: int) -> Any:
    if row is None or column < 0 or column >= len(row):
        return None
    return row[column]


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    return isinstance(value, str) and value == ""


def _cell_text(value: Any) -> str:
    # openpyxl hands back floats for numeric cells; show 3.0 as "3"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def _find_marker_row(
    rows: Sequence[Row], marker: str
) -> Optional[Row]:
    for row in rows:
        if _cell(row, 0) == marker:
            return row
    return None


def _read_answers(
    options_row: Row, correctness_row: Row, layout: SheetLayout
) -> List[Answer]:
    answers: List[Answer] = []
    for column in layout.answer_columns:
        text = _cell(options_row, column)
        if _is_blank(text):
            continue
        flag = _cell(correctness_row, column + layout.flag_offset)
        answers.append(
            Answer(text=_cell_text(text), is_correct=flag == layout.correct_flag)
        )
    return answers


def _reject(sheet_name: str, reason: str) -> None:
    logger.debug(
        "Skipped sheet", extra={"sheet": sheet_name, "reason": reason}
    )


def extract_question(
    sheet_name: str,
    rows: Sequence[Row],
    *,
    rng: Optional[random.Random] = None,
    layout: SheetLayout = KAHOOT_LAYOUT,
) -> Optional[Question]:
    """Build a Question from one sheet, or return None when it is not one.

    Heuristics (all rejections are silent):
    - the sheet name must mention one of the layout keywords
    - the sheet needs at least ``min_rows`` rows
    - the prompt lives at row 1, column 1
    - both marker rows ("Answer options", "Is answer correct?") must exist;
      open-ended and feedback sheets lack them
    - at least one answer, and at least one of them flagged correct
    Accepted answers are shuffled once with ``rng``.
    """
    if not any(word in sheet_name for word in layout.sheet_keywords):
        _reject(sheet_name, "not a question sheet")
        return None
    if len(rows) < layout.min_rows:
        _reject(sheet_name, "too few rows")
        return None
    prompt = _cell(rows[layout.prompt_row], layout.prompt_column)
    if _is_blank(prompt):
        _reject(sheet_name, "missing prompt")
        return None

    options_row = _find_marker_row(rows, layout.options_marker)
    correctness_row = _find_marker_row(rows, layout.correctness_marker)
    if options_row is None or correctness_row is None:
        _reject(sheet_name, "no fixed answer set")
        return None

    answers = _read_answers(options_row, correctness_row, layout)
    if not answers or not any(a.is_correct for a in answers):
        _reject(sheet_name, "no correct answer")
        return None

    return Question(
        id=sheet_name,
        question_text=_cell_text(prompt),
        answers=tuple(shuffle(answers, rng)),
    )


def extract_workbook(
    sheets: Iterable[Sheet],
    *,
    rng: Optional[random.Random] = None,
    layout: SheetLayout = KAHOOT_LAYOUT,
) -> List[Question]:
    """Run the sheet extractor over every sheet, keeping sheet order."""
    questions: List[Question] = []
    for name, rows in sheets:
        question = extract_question(name, rows, rng=rng, layout=layout)
        if question is not None:
            questions.append(question)
    return questions


def read_workbook(data: bytes) -> List[Sheet]:
    """Decode ``.xlsx`` bytes into ``(sheet name, rows)`` pairs.

    Rows are tuples of raw cell values (str, int, float or None), 0-indexed.
    """
    workbook = load_workbook(io.BytesIO(data), read_only=True, data_only=True)
    try:
        return [
            (sheet.title, [tuple(row) for row in sheet.iter_rows(values_only=True)])
            for sheet in workbook.worksheets
        ]
    finally:
        workbook.close()


def _decode(path: Path, reader: WorkbookReader) -> List[Sheet]:
    try:
        return reader(path.read_bytes())
    except Exception as exc:
        logger.error(
            "Failed to decode workbook",
            extra={"path": str(path), "error": repr(exc)},
        )
        raise DecodeError() from exc


def parse_files(
    paths: Sequence[Path],
    *,
    rng: Optional[random.Random] = None,
    reader: WorkbookReader = read_workbook,
    max_workers: int = 4,
    layout: SheetLayout = KAHOOT_LAYOUT,
) -> List[Question]:
    """Decode all files concurrently and concatenate their questions.

    Output keeps file order, then sheet order. Any undecodable file fails the
    whole batch with ``DecodeError``; an empty result is returned as-is and
    left for the caller to report.
    """
    if not paths:
        return []
    workers = max(1, min(max_workers, len(paths)))
    with ThreadPoolExecutor(max_workers=workers) as executor:
        workbooks = list(
            executor.map(lambda path: _decode(Path(path), reader), paths)
        )

    questions: List[Question] = []
    for path, sheets in zip(paths, workbooks):
        found = extract_workbook(sheets, rng=rng, layout=layout)
        logger.info(
            "Parsed workbook",
            extra={
                "path": str(path),
                "sheet_count": len(sheets),
                "question_count": len(found),
            },
        )
        questions.extend(found)
    return questions


def prepare_questions(
    paths: Sequence[Path],
    *,
    rng: Optional[random.Random] = None,
    reader: WorkbookReader = read_workbook,
    max_workers: int = 4,
) -> List[Question]:
    """Intake, parse and validate a batch in one step.

    Raises ``InvalidFileType`` (intake), ``DecodeError`` (parse) or
    ``NoQuestionsFound`` (nothing playable); all three are recoverable.
    """
    files = collect_workbooks(paths)
    questions = parse_files(
        files, rng=rng, reader=reader, max_workers=max_workers
    )
    if not questions:
        logger.warning(
            "No questions found", extra={"file_count": len(files)}
        )
        raise NoQuestionsFound()
    return questions
