from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable

from ..core import Entry, NodeKind, SourceAdapter


class FileSystemSource(SourceAdapter):
    def __init__(self, root_cwd: Path | None = None) -> None:
        self._cwd = Path.cwd() if root_cwd is None else Path(root_cwd)

    def resolve_root(self, root_spec: str) -> Path:
        # Symlinks are resolved, like realpath
        return (self._cwd / root_spec).resolve()

    def kind_of(self, path: Path) -> NodeKind:
        if path.is_dir():
            return NodeKind.DIRECTORY
        if path.is_file():
            return NodeKind.FILE
        if path.exists():
            return NodeKind.OTHER
        return NodeKind.MISSING

    def list_dir(self, dir_path: Path) -> Iterable[Entry]:
        entries: list[Entry] = []
        with os.scandir(dir_path) as it:
            for e in it:
                if e.is_dir(follow_symlinks=False):
                    kind = NodeKind.DIRECTORY
                elif e.is_file(follow_symlinks=False):
                    kind = NodeKind.FILE
                else:
                    kind = NodeKind.OTHER
                entries.append(Entry(path=Path(e.path), name=e.name, kind=kind))
        return entries

    def read_file_bytes(self, file_path: Path) -> bytes:
        # Errors propagate; the serializer turns them into inline markers
        with file_path.open("rb") as f:
            return f.read()

    def read_head(self, file_path: Path, size: int) -> bytes:
        with file_path.open("rb") as f:
            return f.read(size)
