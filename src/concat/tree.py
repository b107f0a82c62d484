from __future__ import annotations

import logging
import shutil
import subprocess
from pathlib import Path
from typing import Protocol
from xml.sax.saxutils import quoteattr

from .adapters.filesystem import FileSystemSource
from .core import NodeKind, SourceAdapter
from .errors import TreeUnavailableError
from .util import version_sort_key

logger = logging.getLogger(__name__)

BRANCH = "├── "
LAST_BRANCH = "└── "
PIPE = "│   "
SPACE = "    "


class TreeRenderer(Protocol):
    def render(self, root: Path, *, xml: bool, include_hidden: bool) -> str: ...


def _plural(count: int, singular: str, plural: str) -> str:
    return f"{count} {singular if count == 1 else plural}"


class ExternalTreeRenderer(TreeRenderer):
    """Runs the `tree` utility in `root`; `-X` in XML mode, `-a` when hidden files are included."""

    def __init__(self, executable: str = "tree", *, timeout: float = 60.0) -> None:
        self.executable = executable
        self.timeout = timeout

    def render(self, root: Path, *, xml: bool, include_hidden: bool) -> str:
        resolved = shutil.which(self.executable)
        if resolved is None:
            msg = f"'{self.executable}' command not found"
            raise TreeUnavailableError(msg)
        args = [resolved, "-n"]
        if xml:
            args.append("-X")
        if include_hidden:
            args.append("-a")
        args.append(".")
        try:
            proc = subprocess.run(
                args, cwd=root, capture_output=True, text=True, timeout=self.timeout, check=False
            )
        except (OSError, subprocess.SubprocessError) as e:
            msg = f"'{self.executable}' command failed: {e}"
            raise TreeUnavailableError(msg) from e
        if proc.returncode != 0:
            msg = f"'{self.executable}' exited with {proc.returncode}: {proc.stderr.strip()}"
            raise TreeUnavailableError(msg)
        return proc.stdout


class NativeTreeRenderer(TreeRenderer):
    """
    Built-in replacement for `tree`: same box-drawing layout and summary line,
    entries in version order. In XML mode it emits a <tree> element shaped like `tree -X`.
    """

    def __init__(self, source: SourceAdapter | None = None) -> None:
        self.source = source or FileSystemSource()

    def _children(self, directory: Path, include_hidden: bool, *, is_root: bool = False):
        try:
            entries = list(self.source.list_dir(directory))
        except OSError as e:
            if is_root:
                msg = f"Cannot read directory {directory}: {e}"
                raise TreeUnavailableError(msg) from e
            logger.warning("Cannot read directory %s, leaving it out of the tree: %s", directory, e)
            return []
        entries = [
            e
            for e in entries
            if e.kind is not NodeKind.MISSING and (include_hidden or not e.name.startswith("."))
        ]
        entries.sort(key=lambda e: version_sort_key(e.name))
        return entries

    def render(self, root: Path, *, xml: bool, include_hidden: bool) -> str:
        counts = {"directories": 0, "files": 0}
        if xml:
            body = self._xml_lines(root, include_hidden, counts, depth=1, is_root=True)
            lines = [
                "<tree>",
                '  <directory name=".">',
                *body,
                "  </directory>",
                "  <report>",
                f"    <directories>{counts['directories']}</directories>",
                f"    <files>{counts['files']}</files>",
                "  </report>",
                "</tree>",
            ]
        else:
            body = self._text_lines(root, include_hidden, counts, prefix="", is_root=True)
            summary = ", ".join(
                [
                    _plural(counts["directories"], "directory", "directories"),
                    _plural(counts["files"], "file", "files"),
                ]
            )
            lines = [".", *body, "", summary]
        return "\n".join(lines) + "\n"

    def _text_lines(self, directory: Path, include_hidden: bool, counts, *, prefix: str, is_root: bool = False):
        lines: list[str] = []
        entries = self._children(directory, include_hidden, is_root=is_root)
        for i, entry in enumerate(entries):
            last = i == len(entries) - 1
            lines.append(f"{prefix}{LAST_BRANCH if last else BRANCH}{entry.name}")
            if entry.kind is NodeKind.DIRECTORY:
                counts["directories"] += 1
                lines.extend(
                    self._text_lines(
                        entry.path, include_hidden, counts, prefix=prefix + (SPACE if last else PIPE)
                    )
                )
            else:
                counts["files"] += 1
        return lines

    def _xml_lines(self, directory: Path, include_hidden: bool, counts, *, depth: int, is_root: bool = False):
        lines: list[str] = []
        indent = "  " * (depth + 1)
        for entry in self._children(directory, include_hidden, is_root=is_root):
            if entry.kind is NodeKind.DIRECTORY:
                counts["directories"] += 1
                lines.append(f"{indent}<directory name={quoteattr(entry.name)}>")
                lines.extend(self._xml_lines(entry.path, include_hidden, counts, depth=depth + 1))
                lines.append(f"{indent}</directory>")
            else:
                counts["files"] += 1
                lines.append(f"{indent}<file name={quoteattr(entry.name)}></file>")
        return lines


def default_tree_renderer() -> TreeRenderer:
    if shutil.which("tree") is not None:
        return ExternalTreeRenderer()
    logger.warning("'tree' command not found, using the built-in tree renderer.")
    return NativeTreeRenderer()
