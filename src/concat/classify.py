from __future__ import annotations

import logging
from functools import lru_cache
from pathlib import Path, PurePath

import pathspec
from typeguard import typechecked

from .defaults import DEFAULT_BINARY_EXTENSIONS, DEFAULT_SNIFF_SIZE
from .types import TExtension, _is_glob

logger = logging.getLogger(__name__)


@typechecked
def extension_of(name: str) -> str:
    """'a.tar.gz' -> '.gz', 'Makefile' -> '', '.bashrc' -> ''."""
    return PurePath(name).suffix


@typechecked
def normalize_extension(ext: str, *, case_sensitive: bool = False) -> TExtension:
    """Accepts 'py', '.py' or 'PY' and returns '.py' (case kept when case_sensitive)."""
    stripped = ext.strip().lstrip(".")
    if not stripped:
        msg = f"Empty extension: {ext!r}"
        raise ValueError(msg)
    normalized = "." + stripped
    return normalized if case_sensitive else normalized.lower()


def is_hidden(path: PurePath, root: PurePath | None = None) -> bool:
    """
    True if the basename, or any directory between `root` and the file, starts with '.'.

    Components above `root` do not count, so files inside an explicitly requested
    '.config' root are not hidden because of the root's own name.
    """
    parts = path.parts
    if root is not None:
        try:
            parts = path.relative_to(root).parts
        except ValueError:
            parts = (path.name,)
    return any(part.startswith(".") and part not in (".", "..") for part in parts)


def has_binary_extension(path: PurePath) -> bool:
    return path.suffix.lower() in DEFAULT_BINARY_EXTENSIONS


def _is_text_bytes(blob: bytes, *, truncated: bool) -> bool:
    if not blob:
        return True
    if b"\x00" in blob:
        return False
    try:
        blob.decode("utf-8")
        return True
    except UnicodeDecodeError as e:
        # A multi-byte character split at the end of the sniffed bytes is still text
        return truncated and e.reason == "unexpected end of data" and e.end == len(blob)


def looks_binary(path: Path, *, sniff_size: int = DEFAULT_SNIFF_SIZE, source=None) -> bool:
    """
    Return True if the file should be treated as non-text.

    Unreadable files count as non-text too; that case is logged so it can be told apart.
    """
    try:
        if source is not None:
            head = source.read_head(path, sniff_size)
        else:
            with path.open("rb") as f:
                head = f.read(sniff_size)
    except OSError as e:
        logger.warning("Cannot read %s, treating it as non-text: %s", path, e)
        return True
    return not _is_text_bytes(head, truncated=len(head) == sniff_size)


@lru_cache(maxsize=256)
def _compile(pattern: str) -> pathspec.GitIgnoreSpec:
    return pathspec.GitIgnoreSpec.from_lines([pattern])


@typechecked
def matches_glob(path: str, pattern: str, *, case_sensitive: bool = False) -> bool:
    """
    Match a POSIX path against a git-wildmatch style glob.

    '*' and '?' stay within one path component, '**' spans any number of them.
    A pattern with no '/' and no wildcard only matches when it equals the basename.
    """
    if not case_sensitive:
        path = path.lower()
        pattern = pattern.lower()
    if "/" not in pattern and not _is_glob(pattern):
        return path.rsplit("/", 1)[-1] == pattern
    return _compile(pattern).match_file(path.lstrip("/"))
