"""User-facing error kinds raised while preparing a quiz."""

from __future__ import annotations

from pathlib import Path


class QuizError(RuntimeError):
    """Base class for recoverable quiz errors.

    ``message`` is the text shown to the user; the user may retry with a
    different set of files after any of these.
    """

    default_message = "Something went wrong."

    def __init__(self, message: str | None = None) -> None:
        self.message = message or self.default_message
        super().__init__(self.message)


class DecodeError(QuizError):
    """A file in the batch could not be read as a spreadsheet."""

    default_message = "Error processing files."


class NoQuestionsFound(QuizError):
    """Every file decoded, but none of the sheets held a playable question."""

    default_message = "No valid questions found in the files."


class InvalidFileType(QuizError):
    """A non-``.xlsx`` file was offered at intake."""

    default_message = "Please upload only .xlsx files."

    def __init__(self, path: Path | str | None = None) -> None:
        self.path = Path(path) if path is not None else None
        message = self.default_message
        if self.path is not None:
            message = f"{message} Rejected: {self.path.name}"
        super().__init__(message)
