import random

from pathlib import Path
from typing import List, Optional, Sequence, TypeVar

from .errors import InvalidFileType

T = TypeVar("T")

WORKBOOK_EXTENSIONS = ("xlsx",)


def shuffle(items: Sequence[T], rng: Optional[random.Random] = None) -> List[T]:
    """Return a uniformly shuffled copy of ``items`` (Fisher-Yates).

    Walks ``i`` from the last index down to 1 and swaps with ``j`` drawn from
    ``[0, i]``. The input is never mutated. Pass a seeded ``random.Random``
    for deterministic output.
    """
    rnd = rng or random.Random()
    out = list(items)
    for i in range(len(out) - 1, 0, -1):
        j = rnd.randint(0, i)
        out[i], out[j] = out[j], out[i]
    return out


def is_workbook(path: Path) -> bool:
    return path.suffix.lower().lstrip(".") in WORKBOOK_EXTENSIONS


def collect_workbooks(paths: Sequence[Path]) -> List[Path]:
    """Resolve intake paths into the ordered list of workbooks to parse.

    - Files must carry an ``.xlsx`` suffix, otherwise ``InvalidFileType``.
    - Directories contribute their ``.xlsx`` files (recursively), sorted by
      name; other files inside a directory are ignored.
    - Duplicates are dropped, keeping the first occurrence.
    - Missing paths raise ``FileNotFoundError``.
    """
    collected: List[Path] = []
    seen = set()
    for raw in paths:
        path = Path(raw).expanduser()
        if path.is_dir():
            found = _iter_directory_workbooks(path)
        elif path.exists():
            if not is_workbook(path):
                raise InvalidFileType(path)
            found = [path]
        else:
            raise FileNotFoundError(f"Input not found: {path}")
        for item in found:
            key = item.resolve()
            if key in seen:
                continue
            seen.add(key)
            collected.append(item)
    return collected


def _iter_directory_workbooks(base: Path) -> List[Path]:
    return sorted(
        (
            child
            for child in base.rglob("*")
            if child.is_file()
            and is_workbook(child)
            # Excel lock files share the suffix
            and not child.name.startswith("~$")
        ),
        key=lambda p: p.name.lower(),
    )
