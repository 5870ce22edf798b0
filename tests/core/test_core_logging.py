from __future__ import annotations

import json
import logging
import tempfile
from pathlib import Path

from kahoot_quiz.core import logging as core_logging


def _close(logger: logging.Logger) -> None:
    for handler in list(logger.handlers):
        handler.close()
        logger.removeHandler(handler)


def _console_handlers(logger: logging.Logger) -> list[logging.Handler]:
    return [
        handler
        for handler in logger.handlers
        if getattr(handler, "_kahoot_quiz_console", False)
    ]


def test_configure_logger_writes_json(tmp_path):
    logger, log_path = core_logging.configure_logger(
        "kahoot_quiz.test",
        log_dir=tmp_path / "logs",
        filename="test.log",
    )

    logger.info("Parsed workbook", extra={"path": Path("a.xlsx"), "count": 3})
    logger.debug("hidden at INFO")
    try:
        raise ValueError("boom")
    except ValueError:
        logger.exception("with error", extra={"items": {"weak", "sun"}})
    for handler in logger.handlers:
        handler.flush()

    lines = log_path.read_text(encoding="utf-8").strip().splitlines()
    assert len(lines) == 2
    first = json.loads(lines[0])
    assert first["message"] == "Parsed workbook"
    assert first["level"] == "INFO"
    assert first["extra"] == {"path": "a.xlsx", "count": 3}

    last = json.loads(lines[-1])
    assert "ValueError: boom" in last["exception"]
    assert sorted(last["extra"]["items"]) == ["sun", "weak"]

    _close(logger)


def test_configure_logger_level_is_applied(tmp_path):
    logger, log_path = core_logging.configure_logger(
        "kahoot_quiz.test_level",
        log_dir=tmp_path,
        level="warning",
        filename="level.log",
    )

    logger.info("dropped")
    logger.warning("kept")
    for handler in logger.handlers:
        handler.flush()

    messages = [
        json.loads(line)["message"]
        for line in log_path.read_text(encoding="utf-8").splitlines()
    ]
    assert messages == ["kept"]

    _close(logger)


def test_console_handler_toggle(tmp_path):
    name = "kahoot_quiz.test_toggle"

    logger, _ = core_logging.configure_logger(
        name, log_dir=tmp_path, verbose=True, filename="toggle.log"
    )
    assert len(_console_handlers(logger)) == 1

    core_logging.configure_logger(
        name, log_dir=tmp_path, verbose=True, filename="toggle.log"
    )
    assert len(_console_handlers(logger)) == 1
    assert len(logger.handlers) == 2

    core_logging.configure_logger(
        name, log_dir=tmp_path, verbose=False, filename="toggle.log"
    )
    assert _console_handlers(logger) == []

    _close(logger)


def test_rotating_handler_falls_back_on_permission(tmp_path, monkeypatch):
    calls = {"count": 0}
    fallback_dir = tmp_path / "rotate-fallback"
    original_handler = core_logging.RotatingFileHandler

    def fake_handler(path, *args, **kwargs):  # noqa: ANN001
        calls["count"] += 1
        if calls["count"] == 1:
            raise PermissionError("denied")
        return original_handler(path, *args, **kwargs)

    monkeypatch.setattr(core_logging, "RotatingFileHandler", fake_handler)
    monkeypatch.setattr(core_logging, "_fallback_log_dir", lambda: fallback_dir)

    logger, log_path = core_logging.configure_logger(
        "kahoot_quiz.test_rotating_fallback",
        log_dir=tmp_path / "primary",
        filename="rotate.log",
    )

    assert log_path.parent == fallback_dir
    assert calls["count"] == 2

    _close(logger)


def test_fallback_log_dir_uses_tempdir(tmp_path, monkeypatch):
    monkeypatch.setattr(tempfile, "gettempdir", lambda: str(tmp_path))

    assert core_logging._fallback_log_dir() == tmp_path / "kahoot-quiz-logs"
