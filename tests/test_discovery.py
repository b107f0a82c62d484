from __future__ import annotations

import logging
from pathlib import Path

from concat.adapters.filesystem import FileSystemSource
from concat.discovery import collect_structure, discover


def _relpaths(candidates) -> list[str]:
    return [c.relative_path for c in candidates]


def test_recursive_walk_prunes_hidden(comprehensive_fs: Path):
    candidates = discover(
        [str(comprehensive_fs)], recursive=True, keep_hidden=False, source=FileSystemSource()
    )
    rel = _relpaths(candidates)
    assert "src/pkg/module.py" in rel
    assert "docs/readme.md" in rel
    assert "__pycache__/module.pyc" in rel
    assert ".env" not in rel
    assert ".config/settings.toml" not in rel


def test_keep_hidden_descends_into_dot_directories(comprehensive_fs: Path):
    candidates = discover(
        [str(comprehensive_fs)], recursive=True, keep_hidden=True, source=FileSystemSource()
    )
    rel = _relpaths(candidates)
    assert ".env" in rel
    assert ".config/settings.toml" in rel


def test_non_recursive_lists_top_level_only(comprehensive_fs: Path):
    candidates = discover(
        [str(comprehensive_fs)], recursive=False, keep_hidden=False, source=FileSystemSource()
    )
    assert _relpaths(candidates) == ["README.MD"]


def test_candidates_are_version_sorted(comprehensive_fs: Path):
    candidates = discover(
        [str(comprehensive_fs / "notes")], recursive=True, keep_hidden=False, source=FileSystemSource()
    )
    assert _relpaths(candidates) == ["file2.txt", "file10.txt"]


def test_relative_to_cwd_inputs(comprehensive_fs: Path):
    candidates = discover(["src"], recursive=True, keep_hidden=False, source=FileSystemSource(root_cwd=comprehensive_fs))
    assert _relpaths(candidates) == ["config.json", "main.py", "pkg/data.jsonl", "pkg/module.py"]
    assert all(c.root == (comprehensive_fs / "src").resolve() for c in candidates)


def test_overlapping_inputs_are_deduplicated(comprehensive_fs: Path):
    src = comprehensive_fs / "src"
    candidates = discover(
        [str(src), str(src / "pkg"), str(src / "main.py"), str(src)],
        recursive=True,
        keep_hidden=False,
        source=FileSystemSource(),
    )
    paths = [c.path for c in candidates]
    assert len(paths) == len(set(paths)) == 4


def test_nearest_root_wins(comprehensive_fs: Path):
    src = comprehensive_fs / "src"
    candidates = discover(
        [str(src), str(src / "pkg")], recursive=True, keep_hidden=False, source=FileSystemSource()
    )
    by_name = {c.name: c for c in candidates}
    assert by_name["module.py"].root == (src / "pkg").resolve()
    assert by_name["module.py"].relative_path == "module.py"
    assert by_name["main.py"].root == src.resolve()


def test_explicit_file_inside_scanned_dir_is_marked_explicit(comprehensive_fs: Path):
    src = comprehensive_fs / "src"
    candidates = discover(
        [str(src), str(src / "main.py")], recursive=True, keep_hidden=False, source=FileSystemSource()
    )
    main = next(c for c in candidates if c.name == "main.py")
    assert main.explicit
    assert main.root == src.resolve()


def test_explicit_hidden_file_is_a_candidate(comprehensive_fs: Path):
    candidates = discover(
        [str(comprehensive_fs / ".env")], recursive=True, keep_hidden=False, source=FileSystemSource()
    )
    assert [c.name for c in candidates] == [".env"]
    assert candidates[0].explicit


def test_missing_input_is_skipped_with_warning(comprehensive_fs: Path, caplog):
    caplog.set_level(logging.WARNING)
    candidates = discover(
        ["does-not-exist", "notes"],
        recursive=True,
        keep_hidden=False,
        source=FileSystemSource(root_cwd=comprehensive_fs),
    )
    assert _relpaths(candidates) == ["file2.txt", "file10.txt"]
    assert "does-not-exist" in caplog.text


class _FlakySource(FileSystemSource):
    def __init__(self, broken: Path) -> None:
        super().__init__()
        self.broken = broken.resolve()

    def list_dir(self, dir_path: Path):
        if dir_path == self.broken:
            raise PermissionError(13, "Permission denied", str(dir_path))
        return super().list_dir(dir_path)


def test_unreadable_subtree_is_skipped(comprehensive_fs: Path, caplog):
    caplog.set_level(logging.WARNING)
    source = _FlakySource(comprehensive_fs / "src" / "pkg")
    candidates = discover([str(comprehensive_fs / "src")], recursive=True, keep_hidden=False, source=source)
    assert _relpaths(candidates) == ["config.json", "main.py"]
    assert "Cannot read directory" in caplog.text


def test_collect_structure(comprehensive_fs: Path):
    structure = collect_structure(
        (comprehensive_fs / "src").resolve(), recursive=True, keep_hidden=False, source=FileSystemSource()
    )
    assert structure == {
        "src": ("config.json", "main.py", "pkg/"),
        "src/pkg": ("data.jsonl", "module.py"),
    }


def test_collect_structure_keeps_empty_directories(tmp_path: Path):
    (tmp_path / "proj" / "empty").mkdir(parents=True)
    structure = collect_structure(tmp_path / "proj", recursive=True, keep_hidden=False, source=FileSystemSource())
    assert structure == {"proj": ("empty/",), "proj/empty": ()}
