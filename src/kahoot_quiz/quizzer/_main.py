import argparse
import logging
import random
from pathlib import Path
from typing import Optional, Sequence

from rich.console import Console
from rich.prompt import Confirm
from rich.table import Table

from ..core import WorkspaceError, configure_logger, ensure_workspace
from .config import (
    CONFIG_FILENAME,
    ConfigOverrides,
    Interface,
    QuizConfig,
    QuizConfigError,
    load_config,
    write_config_template,
)
from .errors import QuizError
from .manager.compose import compose_session, reshuffle_answers
from .manager.extract import prepare_questions
from .models import Question, SessionResult
from .results import apply_session_result, render_summary, summarize
from .session import run_quiz_session
from .weakness import JsonFileStore, StoreError, WeaknessTracker

LOGGER_NAME = "kahoot_quiz"


def _load(args: argparse.Namespace, overrides: Optional[ConfigOverrides] = None):
    return load_config(
        config_path=getattr(args, "config", None),
        overrides=overrides,
        workspace_path=getattr(args, "workspace", None),
    )


def _tracker_for(config: QuizConfig) -> WeaknessTracker:
    return WeaknessTracker(JsonFileStore(config.state_file))


def _play_round(
    questions: Sequence[Question],
    config: QuizConfig,
    console: Console,
) -> Optional[SessionResult]:
    if config.interface is Interface.TEXTUAL:
        from .view.quiz import QuizApp

        return QuizApp(questions).run()
    outcome = run_quiz_session(
        questions, console, lambda: console.input("[bold]> [/]")
    )
    return outcome.result


def _cmd_play(args: argparse.Namespace) -> int:
    """Parse the workbooks, play them weak-first, then record weaknesses.

    After the results screen the user may retry the same questions with
    freshly shuffled answers; retries skip the weak/normal re-ordering.
    """
    overrides = ConfigOverrides(
        interface=Interface.from_value(args.interface) if args.interface else None,
        seed=args.seed,
        log_level=args.log_level,
    )
    try:
        loaded = _load(args, overrides)
    except (QuizConfigError, WorkspaceError) as exc:
        print(f"Error: {exc}")
        return 2
    config = loaded.config
    logger, log_path = configure_logger(
        LOGGER_NAME,
        log_dir=loaded.layout.path_for("logs"),
        level=config.log_level,
        verbose=bool(args.verbose),
    )
    logger.debug("play invoked", extra={"paths": [str(p) for p in args.paths]})

    console = Console()
    rng = random.Random(config.seed)
    tracker = _tracker_for(config)
    try:
        questions = prepare_questions(
            args.paths, rng=rng, max_workers=config.max_workers
        )
        ordered = compose_session(questions, tracker.load(), rng=rng)
    except QuizError as exc:
        console.print(f"[bold red]{exc.message}[/]")
        return 1
    except (FileNotFoundError, StoreError) as exc:
        console.print(f"[bold red]{exc}[/]")
        return 1

    console.print(
        f"Loaded {len(ordered)} question(s); "
        f"{sum(1 for q in ordered if q.is_weakness)} weak spot(s) first."
    )
    while True:
        result = _play_round(ordered, config, console)
        if result is None:
            return 0
        try:
            apply_session_result(result.answers, tracker)
        except StoreError as exc:
            logger.error("Failed to save weaknesses", extra={"error": str(exc)})
            console.print(f"[bold red]{exc}[/]")
            return 1
        render_summary(console, result, summarize(result))
        console.print(f"[dim]Log file: {log_path}[/]")
        if not _ask_retry(console):
            return 0
        ordered = reshuffle_answers(ordered, rng=rng)


def _ask_retry(console: Console) -> bool:
    try:
        return Confirm.ask("Retry this quiz?", console=console, default=False)
    except (EOFError, KeyboardInterrupt):
        return False


def _cmd_weak_list(args: argparse.Namespace) -> int:
    try:
        loaded = _load(args)
        weaknesses = sorted(_tracker_for(loaded.config).load())
    except (QuizConfigError, WorkspaceError, StoreError) as exc:
        print(f"Error: {exc}")
        return 2
    if not weaknesses:
        print("No weak questions recorded.")
        return 0
    table = Table(title=f"Weak questions ({len(weaknesses)})")
    table.add_column("#", justify="right")
    table.add_column("Question", overflow="fold")
    for idx, text in enumerate(weaknesses, start=1):
        table.add_row(str(idx), text)
    Console().print(table)
    return 0


def _cmd_weak_clear(args: argparse.Namespace) -> int:
    try:
        loaded = _load(args)
        _tracker_for(loaded.config).clear()
    except (QuizConfigError, WorkspaceError, StoreError) as exc:
        print(f"Error: {exc}")
        return 2
    logging.getLogger(__name__).info("Cleared weaknesses")
    print("Cleared weak questions.")
    return 0


def _cmd_config_init(args: argparse.Namespace) -> int:
    if args.path is not None:
        target = args.path.expanduser().absolute()
    else:
        try:
            layout = ensure_workspace(path=args.workspace)
        except WorkspaceError as exc:
            print(f"Error: {exc}")
            return 1
        target = layout.path_for("config") / CONFIG_FILENAME
    try:
        written = write_config_template(target, overwrite=args.force)
    except QuizConfigError as exc:
        print(f"Error: {exc}")
        return 1
    print(f"Wrote quiz config to {written}")
    return 0


def _add_common(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "--config",
        type=Path,
        help="Path to quiz.toml (defaults to the workspace config directory)",
    )
    parser.add_argument(
        "--workspace",
        type=Path,
        help="Override the workspace root (defaults to KAHOOT_QUIZ_DATA_HOME)",
    )


def build_arg_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="kahoot-quiz",
        description="Replay Kahoot result spreadsheets as a self-graded quiz",
        formatter_class=argparse.ArgumentDefaultsHelpFormatter,
    )
    sub = p.add_subparsers(dest="command", required=True)

    sp_play = sub.add_parser("play", help="Start a quiz from .xlsx reports")
    sp_play.add_argument(
        "paths",
        nargs="+",
        type=Path,
        help=".xlsx files or directories containing them",
    )
    _add_common(sp_play)
    sp_play.add_argument(
        "--interface", choices=[i.value for i in Interface], default=None
    )
    sp_play.add_argument(
        "--seed", type=int, help="Seed question and answer shuffling"
    )
    sp_play.add_argument("--log-level")
    sp_play.add_argument(
        "--verbose", action="store_true", help="Mirror logs to stderr"
    )

    sp_weak = sub.add_parser("weak", help="Inspect the weak-question set")
    weak_sub = sp_weak.add_subparsers(dest="action", required=True)
    sp_w_list = weak_sub.add_parser("list", help="List weak questions")
    _add_common(sp_w_list)
    sp_w_clear = weak_sub.add_parser("clear", help="Forget weak questions")
    _add_common(sp_w_clear)

    sp_cfg = sub.add_parser("config", help="Manage quiz.toml")
    cfg_sub = sp_cfg.add_subparsers(dest="action", required=True)
    sp_c_init = cfg_sub.add_parser("init", help="Write the default quiz.toml")
    sp_c_init.add_argument("--path", type=Path)
    sp_c_init.add_argument("--workspace", type=Path)
    sp_c_init.add_argument("--force", action="store_true")
    return p


def main(argv: Optional[Sequence[str]] = None) -> None:
    parser = build_arg_parser()
    args = parser.parse_args(argv)
    if args.command == "play":
        code = _cmd_play(args)
    elif args.command == "weak" and args.action == "list":
        code = _cmd_weak_list(args)
    elif args.command == "weak" and args.action == "clear":
        code = _cmd_weak_clear(args)
    elif args.command == "config" and args.action == "init":
        code = _cmd_config_init(args)
    else:  # pragma: no cover - fallback guard
        parser.print_help()
        code = 2
    raise SystemExit(code)
