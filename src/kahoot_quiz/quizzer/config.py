"""Configuration loader for quiz sessions."""

from __future__ import annotations

import os
from dataclasses import dataclass
from enum import Enum
from importlib import resources
from pathlib import Path
from typing import Mapping, MutableMapping, Optional

from dotenv import load_dotenv

from kahoot_quiz.core import config as core_config
from kahoot_quiz.core import workspace as workspace_mod

CONFIG_FILENAME = "quiz.toml"
CONFIG_ENV = "KAHOOT_QUIZ_CONFIG"
ENV_PREFIX = "KAHOOT_QUIZ_"

_DEFAULT_INTERFACE = "rich"
_DEFAULT_STATE_FILE = "weaknesses.json"
_DEFAULT_MAX_WORKERS = 4
_DEFAULT_LOG_LEVEL = "INFO"


class QuizConfigError(RuntimeError):
    """Raised when configuration parsing or validation fails."""


class Interface(Enum):
    """Front ends able to drive a quiz session."""

    RICH = "rich"
    TEXTUAL = "textual"

    @classmethod
    def from_value(cls, value: str) -> "Interface":
        normalized = value.strip().lower()
        for member in cls:
            if member.value == normalized:
                return member
        expected = ", ".join(member.value for member in cls)
        raise QuizConfigError(
            f"Unknown interface '{value}'. Expected one of: {expected}."
        )


@dataclass(frozen=True)
class QuizConfig:
    """Fully resolved settings for one ``play`` run."""

    interface: Interface
    seed: Optional[int]
    state_file: Path
    max_workers: int
    log_level: str


@dataclass(frozen=True)
class ConfigOverrides:
    """CLI-sourced overrides applied on top of env and file options."""

    interface: Optional[Interface] = None
    seed: Optional[int] = None
    state_file: Optional[Path] = None
    log_level: Optional[str] = None


@dataclass(frozen=True)
class LoadResult:
    config: QuizConfig
    layout: workspace_mod.WorkspaceLayout
    config_path: Optional[Path]


def load_config(
    *,
    config_path: Optional[Path] = None,
    overrides: Optional[ConfigOverrides] = None,
    env: Optional[Mapping[str, str]] = None,
    workspace_path: Optional[Path] = None,
) -> LoadResult:
    """Resolve settings with precedence CLI > env > TOML > defaults.

    When ``env`` is omitted the process environment is used, after loading
    any ``.env`` file found from the working directory.
    """

    overrides = overrides or ConfigOverrides()
    if env is None:
        load_dotenv()
        env = os.environ

    layout = workspace_mod.ensure_workspace(env=env, path=workspace_path)
    requested = _resolve_config_path(
        config_path, env, layout.path_for("config") / CONFIG_FILENAME
    )

    options = _default_table()
    loaded_path: Optional[Path] = None
    if requested.exists():
        loaded_path = requested
        try:
            core_config.merge_defaults(
                options, core_config.load_toml(requested)
            )
        except core_config.TomlConfigError as exc:
            raise QuizConfigError(str(exc)) from exc
    elif config_path is not None or _env_string(env, "CONFIG"):
        raise QuizConfigError(f"Config file not found: {requested}")

    interface = overrides.interface or _resolve_interface(
        _env_string(env, "INTERFACE"), options["session"]["interface"]
    )
    seed = _pick_first(
        overrides.seed,
        _parse_int(_env_string(env, "SEED"), "KAHOOT_QUIZ_SEED"),
        _parse_int(options["session"]["seed"], "session.seed"),
    )
    state_file = _resolve_state_file(
        _pick_first(
            overrides.state_file,
            _env_path(env, "STATE_FILE"),
            options["storage"]["state_file"],
        ),
        layout,
    )
    max_workers = _parse_int(
        _pick_first(
            _env_string(env, "MAX_WORKERS"),
            options["parsing"]["max_workers"],
        ),
        "parsing.max_workers",
    )
    if max_workers is None or max_workers < 1:
        raise QuizConfigError("parsing.max_workers must be at least 1.")
    log_level = _resolve_log_level(
        _pick_first(
            overrides.log_level,
            _env_string(env, "LOG_LEVEL"),
            options["logging"]["level"],
        )
    )

    config = QuizConfig(
        interface=interface,
        seed=seed,
        state_file=state_file,
        max_workers=max_workers,
        log_level=log_level,
    )
    return LoadResult(config=config, layout=layout, config_path=loaded_path)


def _default_table() -> MutableMapping[str, MutableMapping[str, object]]:
    # ``seed`` has no TOML null; an empty string means "random each run".
    return {
        "session": {"interface": _DEFAULT_INTERFACE, "seed": ""},
        "storage": {"state_file": _DEFAULT_STATE_FILE},
        "parsing": {"max_workers": _DEFAULT_MAX_WORKERS},
        "logging": {"level": _DEFAULT_LOG_LEVEL},
    }


def _resolve_config_path(
    config_path: Optional[Path], env: Mapping[str, str], default: Path
) -> Path:
    if config_path is not None:
        return config_path.expanduser()
    from_env = _env_string(env, "CONFIG")
    if from_env:
        return Path(from_env).expanduser()
    return default


def _resolve_interface(env_value: Optional[str], file_value: object) -> Interface:
    candidate = env_value if env_value is not None else file_value
    if not isinstance(candidate, str):
        raise QuizConfigError("session.interface must be a string.")
    return Interface.from_value(candidate)


def _resolve_state_file(
    candidate: object, layout: workspace_mod.WorkspaceLayout
) -> Path:
    if isinstance(candidate, str):
        if not candidate.strip():
            raise QuizConfigError("storage.state_file must not be empty.")
        candidate = Path(candidate.strip())
    if not isinstance(candidate, Path):
        raise QuizConfigError("storage.state_file must be a string.")
    candidate = candidate.expanduser()
    if not candidate.is_absolute():
        return layout.path_for("state") / candidate
    return candidate


def _resolve_log_level(candidate: object) -> str:
    if not isinstance(candidate, str) or not candidate.strip():
        raise QuizConfigError("logging.level must be a non-empty string.")
    return candidate.strip().upper()


def _parse_int(value: object, label: str) -> Optional[int]:
    if value is None or value == "":
        return None
    if isinstance(value, bool):
        raise QuizConfigError(f"{label} must be an integer.")
    if isinstance(value, int):
        return value
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError as exc:
            raise QuizConfigError(f"{label} must be an integer.") from exc
    raise QuizConfigError(f"{label} must be an integer.")


def _env_string(env: Mapping[str, str], key: str) -> Optional[str]:
    raw = env.get(f"{ENV_PREFIX}{key}")
    if raw is None:
        return None
    value = raw.strip()
    return value or None


def _env_path(env: Mapping[str, str], key: str) -> Optional[Path]:
    raw = _env_string(env, key)
    return Path(raw) if raw is not None else None


def _pick_first(*candidates: object) -> object:
    for candidate in candidates:
        if candidate is not None:
            return candidate
    return None


def template_text() -> str:
    """Return the packaged ``quiz.toml`` template."""

    resource = resources.files(__package__).joinpath(CONFIG_FILENAME)
    return resource.read_text(encoding="utf-8")


def write_config_template(path: Path, *, overwrite: bool = False) -> Path:
    try:
        return core_config.write_toml_template(
            path, template=template_text(), overwrite=overwrite
        )
    except core_config.TomlConfigError as exc:
        raise QuizConfigError(str(exc)) from exc
