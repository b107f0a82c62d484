from __future__ import annotations

from dataclasses import replace
from pathlib import Path
from xml.etree import ElementTree

import pytest

from concat.adapters.filesystem import FileSystemSource
from concat.core import Config, OutputFormat
from concat.errors import ConfigError, OutputWriteError, TreeUnavailableError
from concat.orchestrator import build_result, default_output_stem, resolve_output_path, run
from tests.utils import copy_tree, touch_file, write_text_file


class _StubTree:
    def __init__(self, text: str = ".\n└── a.py\n\n0 directories, 1 file\n") -> None:
        self.text = text
        self.calls: list[tuple[Path, bool, bool]] = []

    def render(self, root: Path, *, xml: bool, include_hidden: bool) -> str:
        self.calls.append((root, xml, include_hidden))
        return self.text


class _BrokenTree:
    def render(self, root: Path, *, xml: bool, include_hidden: bool) -> str:
        raise TreeUnavailableError("'tree' exited with 1")


@pytest.fixture
def project(comprehensive_fs: Path, tmp_path: Path) -> Path:
    return copy_tree(comprehensive_fs, tmp_path / "proj")


# region ---[ Output naming ]---


def test_default_output_stem(tmp_path: Path):
    (tmp_path / "pkg").mkdir()
    assert default_output_stem(Config(extensions_include=frozenset({".py"})), cwd=tmp_path) == "py"
    assert default_output_stem(Config(extensions_include=frozenset({".py", ".md"})), cwd=tmp_path) == "output"
    assert default_output_stem(Config(bare_invocation=True), cwd=tmp_path) == tmp_path.resolve().name
    assert default_output_stem(Config(inputs=("pkg",)), cwd=tmp_path) == "pkg"
    assert default_output_stem(Config(inputs=("pkg", "other")), cwd=tmp_path) == "output"


def test_resolve_output_path_derived_name(tmp_path: Path):
    (tmp_path / "pkg").mkdir()
    config = resolve_output_path(Config(inputs=("pkg",)), cwd=tmp_path)
    assert config.output_path == (tmp_path / "_concat-pkg.xml").resolve()
    text = resolve_output_path(Config(inputs=("pkg",), format=OutputFormat.TEXT), cwd=tmp_path)
    assert text.output_path == (tmp_path / "_concat-pkg.txt").resolve()


def test_resolve_output_path_forces_suffix(tmp_path: Path):
    config = resolve_output_path(Config(output="out/result.json"), cwd=tmp_path)
    assert config.output_path == (tmp_path / "out" / "result.xml").resolve()
    assert (tmp_path / "out").is_dir()


def test_resolve_output_path_in_output_dir(tmp_path: Path):
    config = resolve_output_path(Config(extensions_include=frozenset({".md"}), output_dir="dumps"), cwd=tmp_path)
    assert config.output_path == (tmp_path / "dumps" / "_concat-md.xml").resolve()


def test_output_dir_that_is_a_file_is_a_config_error(tmp_path: Path):
    touch_file(tmp_path / "blocker")
    with pytest.raises(ConfigError):
        resolve_output_path(Config(output_dir="blocker/sub"), cwd=tmp_path)


# endregion ---[ Output naming ]---


def test_run_writes_xml_document(project: Path):
    result = run(Config(inputs=("src",)), cwd=project)
    out_path = project / "_concat-src.xml"
    assert result.config.output_path == out_path.resolve()
    root = ElementTree.fromstring(out_path.read_text(encoding="utf-8"))
    names = [f.findtext("relativePath") for f in root.find("fileContents")]
    assert names == ["config.json", "main.py", "pkg/data.jsonl", "pkg/module.py"]
    listing = {d.get("path"): [e.text for e in d] for d in root.find("matchedFilesDirStructureList")}
    assert listing == {"src": ["config.json", "main.py"], "src/pkg": ["data.jsonl", "module.py"]}


def test_run_with_no_matches_still_writes(project: Path):
    result = run(Config(inputs=("src",), extensions_include=frozenset({".rs"})), cwd=project)
    assert result.files == ()
    root = ElementTree.fromstring((project / "_concat-rs.xml").read_text(encoding="utf-8"))
    assert root.find("fileContents").get("count") == "0"


def test_output_inside_scanned_tree_is_not_concatenated(project: Path):
    config = Config(inputs=(".",), extensions_include=frozenset({".txt"}), format=OutputFormat.TEXT)
    run(config, cwd=project)
    first = (project / "_concat-txt.txt").read_bytes()
    run(config, cwd=project)
    second = (project / "_concat-txt.txt").read_bytes()
    assert first == second
    assert b"# File 1/2: file2.txt" in second
    assert b"_concat-txt.txt" not in second.split(b"# File Contents", 1)[1]


def test_explicit_output_inside_scanned_tree_is_skipped(project: Path):
    config = Config(inputs=("notes",), output="notes/all.txt", format=OutputFormat.TEXT)
    result = run(config, cwd=project)
    assert [m.name for m in result.files] == ["file2.txt", "file10.txt"]


def test_stale_outputs_are_removed(project: Path):
    write_text_file(project / "_concat-src.txt", "old text output\n")
    write_text_file(project / "_concat-src.xml", "<old/>\n")
    run(Config(inputs=("src",)), cwd=project)
    assert not (project / "_concat-src.txt").exists()
    assert "<old/>" not in (project / "_concat-src.xml").read_text(encoding="utf-8")


def test_explicit_output_keeps_other_format_file(project: Path):
    write_text_file(project / "mine.txt", "keep me\n")
    run(Config(inputs=("src",), output="mine.xml"), cwd=project)
    assert (project / "mine.txt").read_text(encoding="utf-8") == "keep me\n"


def test_pycache_is_purged(project: Path):
    touch_file(project / "src" / "__pycache__" / "main.cpython-312.pyc")
    touch_file(project / "src" / "stray.pyc")
    run(Config(inputs=(".",)), cwd=project)
    assert not (project / "__pycache__").exists()
    assert not (project / "src" / "__pycache__").exists()
    assert not (project / "src" / "stray.pyc").exists()


def test_purge_can_be_disabled(project: Path):
    run(Config(inputs=(".",), purge_cache=False), cwd=project)
    assert (project / "__pycache__" / "module.pyc").exists()


def test_tree_section_uses_first_directory_input(project: Path):
    stub = _StubTree()
    config = resolve_output_path(Config(inputs=("notes/file2.txt", "src"), show_tree=True), cwd=project)
    result = build_result(config, source=FileSystemSource(root_cwd=project), tree_renderer=stub)
    assert stub.calls == [((project / "src").resolve(), True, False)]
    assert result.tree_context == "src"
    assert result.tree_text == stub.text
    assert result.structure == {"src": ("config.json", "main.py", "pkg/"), "src/pkg": ("data.jsonl", "module.py")}


def test_tree_failure_leaves_marker(project: Path):
    config = Config(inputs=("src",), show_tree=True, format=OutputFormat.TEXT)
    run(config, cwd=project, tree_renderer=_BrokenTree())
    out = (project / "_concat-src.txt").read_text(encoding="utf-8")
    assert "# Directory Tree (from src)" in out
    assert "Tree unavailable." in out


def test_write_failure_raises_and_cleans_up(project: Path, monkeypatch):
    def _fail(src, dst):
        raise OSError(28, "No space left on device")

    monkeypatch.setattr("concat.orchestrator.os.replace", _fail)
    with pytest.raises(OutputWriteError):
        run(Config(inputs=("src",)), cwd=project)
    assert not (project / "_concat-src.xml").exists()
    assert not list(project.glob("._concat-src.xml.*.tmp"))


def test_run_result_config_is_resolved(project: Path):
    config = Config(inputs=("src",))
    result = run(config, cwd=project)
    assert result.config == replace(config, output_path=(project / "_concat-src.xml").resolve())
