from __future__ import annotations

from pathlib import Path
from typing import Iterator

import pytest

from tests.utils import touch_file, write_bytes_file, write_text_file


@pytest.fixture(scope="session")
def comprehensive_fs(tmp_path_factory: pytest.TempPathFactory) -> Iterator[Path]:
    """Create a reusable comprehensive filesystem tree for tests.

    This includes a small source tree, docs, hidden files and directories,
    binary-by-extension and binary-by-content files, numbered files for version
    ordering, and a __pycache__ directory. Created once per session; treat it as
    read-only, and copy it (see `project_copy`) for tests that run the cache purge
    or write output into it.
    """
    base = tmp_path_factory.mktemp("comprehensive_fs")

    write_text_file(base / "src" / "main.py", "print('hello')\nprint('world')\n")
    write_text_file(base / "src" / "config.json", '{\n  "a": 1,\n  "b": 2\n}\n')
    write_text_file(base / "src" / "pkg" / "module.py", "def f():\n    return 1\n\nprint(f())\n")
    write_text_file(base / "src" / "pkg" / "data.jsonl", '{"x":1}\n{"x":2}\n')
    write_text_file(base / "notes" / "file2.txt", "two\n")
    write_text_file(base / "notes" / "file10.txt", "ten\n")
    write_text_file(base / "docs" / "readme.md", "# Title\n\nSome docs.\n")
    write_text_file(base / "README.MD", "Top level readme\n")

    # Hidden entries
    write_text_file(base / ".env", "SECRET=1\n")
    write_text_file(base / ".config" / "settings.toml", "[tool]\nx = 1\n")

    # Non-text: by extension, and by content
    touch_file(base / "build" / "artifact.o")
    write_bytes_file(base / "assets" / "logo.png", b"\x89PNG\r\n\x1a\n\x00\x00\x00\rIHDR")
    write_bytes_file(base / "assets" / "raw.txt", b"abc\x00def\n")
    touch_file(base / "__pycache__" / "module.pyc")

    yield base
