from __future__ import annotations

import glob
import logging
import re
from pathlib import Path
from typing import Iterable

from .types import _is_glob

logger = logging.getLogger(__name__)

_DIGITS = re.compile(r"(\d+)")


def version_sort_key(text: str) -> tuple:
    """
    Sort key that orders embedded numbers numerically, like `sort -V`.

    'file2' sorts before 'file10'. Ties between numerically equal runs ('01' vs '1')
    are broken by the raw text so the order stays total.
    """
    parts = []
    for i, chunk in enumerate(_DIGITS.split(text)):
        if not chunk:
            continue
        if i % 2:
            parts.append((0, int(chunk), chunk))
        else:
            parts.append((1, 0, chunk))
    return tuple(parts)


def version_sorted(items: Iterable[str]) -> list[str]:
    return sorted(items, key=version_sort_key)


def to_posix(path: Path | str) -> str:
    # Output always uses POSIX separators
    return Path(path).as_posix()


def expand_input_globs(tokens: Iterable[str], *, root_dir: Path | str | None = None) -> list[str]:
    """
    Expand glob-looking positional inputs into concrete paths.

    Non-glob tokens pass through untouched, so a missing plain path is reported later
    by discovery. A glob that matches nothing is dropped with a warning.
    """
    expanded: list[str] = []
    for token in tokens:
        if not _is_glob(token):
            expanded.append(token)
            continue
        matches = glob.glob(token, root_dir=root_dir, recursive=True)
        if not matches:
            logger.warning("Input glob pattern matched no files: %s", token)
            continue
        expanded.extend(version_sorted(matches))
    return expanded
