from .compose import compose_session, partition_weak, reshuffle_answers
from .extract import (
    KAHOOT_LAYOUT,
    SheetLayout,
    extract_question,
    extract_workbook,
    parse_files,
    prepare_questions,
    read_workbook,
)

__all__ = [
    "compose_session",
    "partition_weak",
    "reshuffle_answers",
    "KAHOOT_LAYOUT",
    "SheetLayout",
    "extract_question",
    "extract_workbook",
    "parse_files",
    "prepare_questions",
    "read_workbook",
]
