"""CLI entry point for bootstrapping the kahoot-quiz workspace."""

from __future__ import annotations

import argparse
import sys
from pathlib import Path
from typing import Sequence

from kahoot_quiz.core import workspace as workspace_mod


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kahoot-quiz init",
        description=(
            "Create the kahoot-quiz workspace (config, logs and state "
            "directories)."
        ),
    )
    parser.add_argument(
        "--path",
        type=Path,
        help=(
            "Override the workspace root (defaults to KAHOOT_QUIZ_DATA_HOME "
            "or ~/.kahoot-quiz-data)."
        ),
    )
    parser.add_argument(
        "--quiet",
        action="store_true",
        help="Suppress informational output on success.",
    )
    return parser


def main(argv: Sequence[str] | None = None) -> int:
    parser = _build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)

    try:
        layout = workspace_mod.ensure_workspace(path=args.path)
    except workspace_mod.WorkspaceError as exc:
        sys.stderr.write(f"{exc}\n")
        return 1

    if args.quiet:
        return 0

    def status(key: str) -> str:
        return "created" if layout.created.get(key, False) else "exists"

    lines = [f"Workspace ready at {layout.home} ({status('home')})"]
    width = max((len(name) for name in layout.directories), default=0)
    for name, directory in layout.items():
        lines.append(f"  {name.ljust(width)}  {directory} ({status(name)})")
    sys.stdout.write("\n".join(lines) + "\n")
    return 0


if __name__ == "__main__":  # pragma: no cover - module CLI guard
    raise SystemExit(main())
