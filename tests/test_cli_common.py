from __future__ import annotations

from pathlib import Path

import pytest

from concat.cli_common import Context, derive_config, parse_common_args
from concat.core import OutputFormat
from concat.errors import ConfigError
from tests.utils import write_text_file


def test_parse_defaults():
    ctx = parse_common_args([])
    assert ctx.paths == []
    assert ctx.format == "xml"
    assert ctx.recursive is True
    assert ctx.hidden is False
    assert ctx.tree is False
    assert ctx.purge_pycache is True
    assert ctx.bare_invocation is True


def test_parse_grouped_short_flags():
    ctx = parse_common_args(["-nTHt", "src"])
    assert ctx.recursive is False
    assert ctx.tree is True
    assert ctx.hidden is True
    assert ctx.format == "text"
    assert ctx.bare_invocation is False


def test_parse_repeatable_filters():
    ctx = parse_common_args(["-x", "py", "--ext", ".md", "-X", "lock", "-I", "src/**", "-e", "a", "-E", "b", "--exclude", "c"])
    assert ctx.extension == ["py", ".md"]
    assert ctx.exclude_extension == ["lock"]
    assert ctx.include == ["src/**"]
    assert ctx.exclude == ["a", "b", "c"]


def test_text_and_xml_are_mutually_exclusive():
    with pytest.raises(SystemExit) as exc_info:
        parse_common_args(["--text", "--xml"])
    assert exc_info.value.code == 2


def test_last_flag_wins_for_toggles():
    assert parse_common_args(["-H", "--no-hidden"]).hidden is False
    assert parse_common_args(["-n", "-r"]).recursive is True
    assert parse_common_args(["-T", "--no-tree"]).tree is False


def test_derive_config_defaults(tmp_path: Path):
    config = derive_config(parse_common_args([]), cwd=tmp_path)
    assert config.inputs == (".",)
    assert config.format is OutputFormat.XML
    assert config.exclude_non_text is True
    assert config.bare_invocation is True
    assert config.output_path is None


def test_derive_config_normalizes_filters(tmp_path: Path):
    ctx = parse_common_args(["-x", "PY", "-X", ".Lock", "-e", "secrets.json", "-e", "*.log", "-a", "src"])
    config = derive_config(ctx, cwd=tmp_path)
    assert config.extensions_include == frozenset({".py"})
    assert config.extensions_exclude == frozenset({".lock"})
    assert config.exclude_globs == ("**/secrets.json", "*.log")
    assert config.exclude_non_text is False
    assert config.inputs == ("src",)


def test_positional_extension_tokens(tmp_path: Path):
    (tmp_path / ".config").mkdir()
    config = derive_config(parse_common_args([".py", ".config", ".md"]), cwd=tmp_path)
    assert config.extensions_include == frozenset({".py", ".md"})
    assert config.inputs == (".config",)


def test_only_extension_positionals_scan_cwd(tmp_path: Path):
    config = derive_config(parse_common_args([".py"]), cwd=tmp_path)
    assert config.inputs == (".",)


def test_positional_globs_are_expanded(tmp_path: Path):
    write_text_file(tmp_path / "b10.py", "")
    write_text_file(tmp_path / "b2.py", "")
    config = derive_config(parse_common_args(["*.py", "--input-dir", "lib"]), cwd=tmp_path)
    assert config.inputs == ("b2.py", "b10.py", "lib")


def test_output_and_output_dir_conflict(tmp_path: Path):
    ctx = parse_common_args(["-o", "out.xml", "--output-dir", "dumps"])
    with pytest.raises(ConfigError):
        derive_config(ctx, cwd=tmp_path)


def test_context_is_a_plain_dataclass():
    ctx = Context(paths=["src"], tree=True)
    assert ctx.paths == ["src"]
    assert ctx.extension == []
    with pytest.raises(AttributeError):
        ctx.unknown = 1
