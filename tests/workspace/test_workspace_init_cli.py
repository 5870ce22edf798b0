from __future__ import annotations

from kahoot_quiz.workspace import cli


def test_init_creates_workspace(tmp_path, capsys, monkeypatch):
    target = tmp_path / "workspace"
    monkeypatch.setenv("KAHOOT_QUIZ_DATA_HOME", str(target))

    code = cli.main([])

    captured = capsys.readouterr()
    assert code == 0
    assert "Workspace ready" in captured.out
    assert "state" in captured.out
    assert (target / "state").is_dir()


def test_init_supports_custom_path(tmp_path, capsys):
    target = tmp_path / "custom"

    code = cli.main(["--path", str(target)])

    captured = capsys.readouterr()
    assert code == 0
    assert target.is_dir()
    assert str(target.resolve()) in captured.out


def test_init_quiet_mode(tmp_path, capsys):
    code = cli.main(["--path", str(tmp_path / "quiet"), "--quiet"])

    assert code == 0
    assert capsys.readouterr().out == ""


def test_init_reports_file_in_the_way(tmp_path, capsys):
    blocker = tmp_path / "blocker"
    blocker.write_text("x", encoding="utf-8")

    code = cli.main(["--path", str(blocker)])

    assert code == 1
    assert "not a directory" in capsys.readouterr().err
