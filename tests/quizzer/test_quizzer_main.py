from __future__ import annotations

import random
from pathlib import Path
from types import SimpleNamespace

import pytest

from fixtures import kahoot_sheet_rows, write_workbook
from kahoot_quiz.quizzer import _main
from kahoot_quiz.quizzer.weakness import JsonFileStore, WeaknessTracker

SKY = "What color is the sky?"
SUN = "Is the sun a star?"


class InOrderRandom(random.Random):
    """Makes every Fisher-Yates step a no-op so answer order is predictable."""

    def randint(self, a: int, b: int) -> int:
        return b


@pytest.fixture
def workspace(tmp_path, monkeypatch) -> Path:
    home = tmp_path / "ws"
    monkeypatch.setenv("KAHOOT_QUIZ_DATA_HOME", str(home))
    for key in ("KAHOOT_QUIZ_CONFIG", "KAHOOT_QUIZ_SEED", "KAHOOT_QUIZ_INTERFACE"):
        monkeypatch.delenv(key, raising=False)
    monkeypatch.setattr(_main, "random", SimpleNamespace(Random=InOrderRandom))
    return home


@pytest.fixture
def report(tmp_path) -> Path:
    return write_workbook(
        tmp_path / "reports" / "game.xlsx",
        {
            "Overview": [["Kahoot! summary"]],
            "1 Quiz": kahoot_sheet_rows(
                SKY, ["Blue", "Red", "Green", "Yellow"], ["Blue"], sheet_name="1 Quiz"
            ),
            "2 True or False": kahoot_sheet_rows(
                SUN, ["True", "False"], ["True"], sheet_name="2 True or False"
            ),
        },
    )


def _feed(monkeypatch, answers: list[str]) -> None:
    iterator = iter(answers)
    monkeypatch.setattr("builtins.input", lambda *_args: next(iterator))


def _run(argv: list[str]) -> int:
    with pytest.raises(SystemExit) as exc:
        _main.main(argv)
    return exc.value.code


def _weaknesses(workspace: Path) -> set[str]:
    store = JsonFileStore(workspace / "state" / "weaknesses.json")
    return WeaknessTracker(store).load()


def test_missed_question_comes_first_next_time(
    workspace, report, monkeypatch, capsys
):
    _feed(monkeypatch, ["1", "", "2", "", "n"])
    assert _run(["play", str(report)]) == 0

    first = capsys.readouterr().out
    assert "Quiz Results" in first
    assert "50%" in first
    assert _weaknesses(workspace) == {SUN}

    _feed(monkeypatch, ["1", "", "1", "", "n"])
    assert _run(["play", str(report)]) == 0

    second = capsys.readouterr().out
    assert "1 weak spot(s) first" in second
    assert second.index(SUN) < second.index(SKY)
    assert "(weak)" in second
    assert "100%" in second
    assert _weaknesses(workspace) == set()


def test_retry_replays_the_same_questions(workspace, report, monkeypatch, capsys):
    _feed(monkeypatch, ["2", "", "1", "", "y", "1", "", "1", "", "n"])

    assert _run(["play", str(report.parent)]) == 0

    out = capsys.readouterr().out
    assert out.count("Quiz Results") == 2
    assert _weaknesses(workspace) == set()


def test_quitting_keeps_weaknesses_untouched(workspace, report, monkeypatch, capsys):
    _feed(monkeypatch, ["2", "", "q"])

    assert _run(["play", str(report)]) == 0

    out = capsys.readouterr().out
    assert "Quiz Results" not in out
    assert _weaknesses(workspace) == set()


def test_non_workbook_is_rejected(workspace, tmp_path, capsys):
    notes = tmp_path / "notes.csv"
    notes.write_text("a,b\n", encoding="utf-8")

    assert _run(["play", str(notes)]) == 1
    assert "Please upload only .xlsx files." in capsys.readouterr().out


def test_undecodable_workbook_reports_processing_error(workspace, tmp_path, capsys):
    broken = tmp_path / "broken.xlsx"
    broken.write_bytes(b"not a zip archive")

    assert _run(["play", str(broken)]) == 1
    assert "Error processing files." in capsys.readouterr().out


def test_workbook_without_questions(workspace, tmp_path, capsys):
    empty = write_workbook(tmp_path / "empty.xlsx", {"Overview": [["x"]]})

    assert _run(["play", str(empty)]) == 1
    assert "No valid questions found in the files." in capsys.readouterr().out


def test_invalid_config_exits_with_usage_error(workspace, tmp_path, report, capsys):
    bad = tmp_path / "bad.toml"
    bad.write_text("[session]\nmystery = 1\n", encoding="utf-8")

    assert _run(["play", str(report), "--config", str(bad)]) == 2
    assert "Unknown configuration key" in capsys.readouterr().out


def test_weak_list_and_clear(workspace, capsys):
    tracker = WeaknessTracker(JsonFileStore(workspace / "state" / "weaknesses.json"))
    tracker.save({SKY, SUN})

    assert _run(["weak", "list"]) == 0
    listed = capsys.readouterr().out
    assert "Weak questions (2)" in listed
    assert SKY in listed

    assert _run(["weak", "clear"]) == 0
    assert "Cleared weak questions." in capsys.readouterr().out
    assert tracker.load() == set()

    assert _run(["weak", "list"]) == 0
    assert "No weak questions recorded." in capsys.readouterr().out


def test_config_init_writes_template(workspace, capsys):
    assert _run(["config", "init"]) == 0
    target = workspace / "config" / "quiz.toml"
    assert target.exists()
    assert "[session]" in target.read_text(encoding="utf-8")
    capsys.readouterr()

    assert _run(["config", "init"]) == 1
    assert "Config already exists" in capsys.readouterr().out

    assert _run(["config", "init", "--force"]) == 0


def test_parser_requires_paths_for_play():
    parser = _main.build_arg_parser()

    with pytest.raises(SystemExit):
        parser.parse_args(["play"])
    args = parser.parse_args(["play", "a.xlsx", "--seed", "3", "--interface", "textual"])
    assert args.seed == 3
    assert args.interface == "textual"
