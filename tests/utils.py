from __future__ import annotations

import shutil
from pathlib import Path

from concat.adapters.filesystem import FileSystemSource
from concat.core import Config, MatchedFile, RunResult, Serializer, StringWriter
from concat.discovery import discover
from concat.filters import FilterChain, keeps_hidden


def write_text_file(path: Path, content: str) -> None:
    """Create parents and write UTF-8 text to a file path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(content, encoding="utf-8")


def write_bytes_file(path: Path, content: bytes) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_bytes(content)


def touch_file(path: Path) -> None:
    """Create parents as needed and touch a file path."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.touch()


def copy_tree(src: Path, dst: Path) -> Path:
    shutil.copytree(src, dst)
    return dst


def match(config: Config, *, cwd: Path) -> tuple[MatchedFile, ...]:
    """Discovery plus filtering, the way the orchestrator chains them."""
    source = FileSystemSource(root_cwd=cwd)
    candidates = discover(
        config.inputs,
        recursive=config.recursive,
        keep_hidden=keeps_hidden(config),
        source=source,
    )
    return FilterChain(config, source=source).apply(candidates).matched


def matched_relpaths(config: Config, *, cwd: Path) -> list[str]:
    return [m.relative_path for m in match(config, cwd=cwd)]


def render(formatter, result: RunResult, *, cwd: Path | None = None) -> StringWriter:
    buf = StringWriter()
    Serializer(formatter, FileSystemSource(root_cwd=cwd)).run(result, buf)
    return buf
