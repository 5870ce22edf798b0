"""Shared testing fixtures for the kahoot_quiz test suite."""

from .clock import FakeClock  # noqa: F401
from .workbooks import (  # noqa: F401
    CHECK,
    kahoot_sheet_rows,
    make_question,
    write_workbook,
)

__all__ = [
    "CHECK",
    "FakeClock",
    "kahoot_sheet_rows",
    "make_question",
    "write_workbook",
]
