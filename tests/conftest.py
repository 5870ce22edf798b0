from __future__ import annotations

import random
import sys
from pathlib import Path

import pytest

TESTS_DIR = Path(__file__).resolve().parent
ROOT = TESTS_DIR.parent
for extra in (TESTS_DIR, ROOT / "src"):
    path_str = str(extra)
    if path_str not in sys.path:
        sys.path.insert(0, path_str)

from fixtures import FakeClock  # noqa: E402
from kahoot_quiz.quizzer.weakness import MemoryStore  # noqa: E402


@pytest.fixture
def rng() -> random.Random:
    """Seeded RNG so shuffles are reproducible."""

    return random.Random(1234)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def memory_store() -> MemoryStore:
    return MemoryStore()


@pytest.fixture
def workspace_env(tmp_path: Path) -> dict[str, str]:
    """Environment mapping pointing the workspace at a tmp directory."""

    return {"KAHOOT_QUIZ_DATA_HOME": str(tmp_path / "workspace")}
