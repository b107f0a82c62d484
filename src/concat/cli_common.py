from __future__ import annotations

import argparse
import textwrap
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal

from concat.core import Config, OutputFormat
from concat.defaults import (
    DEFAULT_CASE_SENSITIVE,
    DEFAULT_EXCLUDE_EXTENSIONS_FILTER,
    DEFAULT_EXCLUDE_FILTER,
    DEFAULT_EXTENSIONS_FILTER,
    DEFAULT_FORMAT,
    DEFAULT_INCLUDE_BINARY,
    DEFAULT_INCLUDE_FILTER,
    DEFAULT_INCLUDE_HIDDEN,
    DEFAULT_PURGE_PYCACHE,
    DEFAULT_RECURSIVE,
    DEFAULT_RUN_PATH,
    DEFAULT_SHOW_DIR_LIST,
    DEFAULT_SHOW_PARAMS,
    DEFAULT_SHOW_PATHS,
    DEFAULT_SHOW_TITLE,
    DEFAULT_SHOW_TREE,
    DEFAULT_TITLE,
)
from concat.errors import ConfigError


@dataclass(slots=True)
class Context:
    paths: list[str] = field(default_factory=list)
    extension: list[str] = field(default_factory=lambda: list(DEFAULT_EXTENSIONS_FILTER))
    exclude_extension: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_EXTENSIONS_FILTER))
    include: list[str] = field(default_factory=lambda: list(DEFAULT_INCLUDE_FILTER))
    exclude: list[str] = field(default_factory=lambda: list(DEFAULT_EXCLUDE_FILTER))
    input_dir: list[str] = field(default_factory=list)
    output: str | None = None
    output_dir: str | None = None
    recursive: bool = DEFAULT_RECURSIVE
    hidden: bool = DEFAULT_INCLUDE_HIDDEN
    format: Literal["xml", "text"] = DEFAULT_FORMAT
    tree: bool = DEFAULT_SHOW_TREE
    dir_list: bool = DEFAULT_SHOW_DIR_LIST
    title: bool = DEFAULT_SHOW_TITLE
    params: bool = DEFAULT_SHOW_PARAMS
    show_paths: bool = DEFAULT_SHOW_PATHS
    include_binary: bool = DEFAULT_INCLUDE_BINARY
    purge_pycache: bool = DEFAULT_PURGE_PYCACHE
    case_sensitive: bool = DEFAULT_CASE_SENSITIVE
    verbose: bool = False
    debug: bool = False
    bare_invocation: bool = False


def _build_parser() -> argparse.ArgumentParser:
    epilog = textwrap.dedent(
        """
        DEFAULTS
        Recursive, hidden files and binary files skipped, XML output written to
        ./_concat-<name>.xml, where <name> is the single --ext, the single input
        directory, or the current directory when run without arguments.

        NOTE ABOUT PATTERNS
        -I/--include and -e/--exclude take gitignore-style globs, matched against the
        full path as a suffix ('src/**/*.py', '*/tests/*'). A pattern starting with '/'
        is matched against the absolute path. A bare filename in --exclude
        ('config.json') excludes that name at any depth.
        A positional starting with '.' that does not exist on disk is read as an
        extension, so `concat .py .md` equals `concat -x py -x md`.
        """
    )

    parser = argparse.ArgumentParser(
        prog="concat",
        description="Concatenates files from directories and file paths into one text or XML document",
        add_help=True,
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=epilog,
    )

    parser.add_argument(
        "paths",
        type=str,
        nargs="*",
        help="Files, directories or globs to scan. Defaults to the current directory.",
        default=[],
    )

    # region ---[ Filters ]---
    parser.add_argument(
        "-x",
        "--ext",
        type=str,
        dest="extension",
        action="append",
        default=list(DEFAULT_EXTENSIONS_FILTER),
        help="Only include files with the given extension (repeatable, e.g. 'py' or '.py').",
    )
    parser.add_argument(
        "-X",
        "--exclude-ext",
        type=str,
        dest="exclude_extension",
        action="append",
        default=list(DEFAULT_EXCLUDE_EXTENSIONS_FILTER),
        help="Skip files with the given extension (repeatable).",
    )
    parser.add_argument(
        "-I",
        "--include",
        type=str,
        action="append",
        default=list(DEFAULT_INCLUDE_FILTER),
        help="Only include files matching the glob (repeatable). Globs naming dot-paths also admit hidden files.",
    )
    parser.add_argument(
        "-e",
        "-E",
        "--exclude",
        type=str,
        action="append",
        default=list(DEFAULT_EXCLUDE_FILTER),
        help="Skip files matching the glob (repeatable).",
    )
    parser.add_argument(
        "-H",
        "--hidden",
        action="store_true",
        dest="hidden",
        default=DEFAULT_INCLUDE_HIDDEN,
        help="Include hidden (dot-named) files and directories.",
    )
    parser.add_argument("--no-hidden", action="store_false", dest="hidden", help="Skip hidden entries (default).")
    parser.add_argument(
        "-a",
        "--include-binary",
        action="store_true",
        default=DEFAULT_INCLUDE_BINARY,
        help="Include files that do not look like text.",
    )
    parser.add_argument(
        "-c",
        "--case-sensitive",
        action="store_true",
        default=DEFAULT_CASE_SENSITIVE,
        help="Match extensions and globs case-sensitively.",
    )
    # endregion ---[ Filters ]---

    # region ---[ Inputs and Output ]---
    parser.add_argument(
        "--input-dir",
        type=str,
        action="append",
        default=[],
        help="Additional directory to scan (repeatable).",
    )
    parser.add_argument(
        "-r",
        "--recursive",
        action="store_true",
        dest="recursive",
        default=DEFAULT_RECURSIVE,
        help="Descend into subdirectories (default).",
    )
    parser.add_argument(
        "-n",
        "--no-recursive",
        action="store_false",
        dest="recursive",
        help="Only scan the top level of each input directory.",
    )
    parser.add_argument("-o", "--output", type=str, default=None, help="Output file path.")
    parser.add_argument(
        "--output-dir",
        type=str,
        default=None,
        help="Directory for the derived output file name. Cannot be combined with --output.",
    )
    parser.add_argument(
        "-P",
        "--no-purge-pycache",
        action="store_false",
        dest="purge_pycache",
        default=DEFAULT_PURGE_PYCACHE,
        help="Keep __pycache__ directories and *.pyc files in the input directories.",
    )
    # endregion ---[ Inputs and Output ]---

    # region ---[ Document ]---
    format_group = parser.add_mutually_exclusive_group()
    format_group.add_argument(
        "-t",
        "--text",
        action="store_const",
        const="text",
        dest="format",
        help="Write plain text.",
    )
    format_group.add_argument(
        "--xml",
        action="store_const",
        const="xml",
        dest="format",
        help="Write XML (default).",
    )
    parser.set_defaults(format=DEFAULT_FORMAT)
    parser.add_argument(
        "-T",
        "--tree",
        action="store_true",
        dest="tree",
        default=DEFAULT_SHOW_TREE,
        help="Add a directory tree and directory structure section.",
    )
    parser.add_argument("--no-tree", action="store_false", dest="tree", help="Leave out the directory tree (default).")
    parser.add_argument(
        "-l",
        "--no-dir-list",
        action="store_false",
        dest="dir_list",
        default=DEFAULT_SHOW_DIR_LIST,
        help="Leave out the matched files directory list.",
    )
    parser.add_argument("--no-title", action="store_false", dest="title", default=DEFAULT_SHOW_TITLE)
    parser.add_argument("--no-params", action="store_false", dest="params", default=DEFAULT_SHOW_PARAMS)
    parser.add_argument(
        "--no-paths",
        action="store_false",
        dest="show_paths",
        default=DEFAULT_SHOW_PATHS,
        help="Leave out relative and absolute paths from file headers.",
    )
    # endregion ---[ Document ]---

    parser.add_argument("-v", "--verbose", action="store_true", help="Log matched and skipped files.")
    parser.add_argument("-d", "--debug", action="store_true", help="Log everything.")
    return parser


def parse_common_args(argv: list[str] | None = None) -> Context:
    parser = _build_parser()
    args = parser.parse_args(argv)
    return Context(
        paths=list(args.paths),
        extension=list(args.extension or []),
        exclude_extension=list(args.exclude_extension or []),
        include=list(args.include or []),
        exclude=list(args.exclude or []),
        input_dir=list(args.input_dir or []),
        output=args.output,
        output_dir=args.output_dir,
        recursive=bool(args.recursive),
        hidden=bool(args.hidden),
        format=args.format,
        tree=bool(args.tree),
        dir_list=bool(args.dir_list),
        title=bool(args.title),
        params=bool(args.params),
        show_paths=bool(args.show_paths),
        include_binary=bool(args.include_binary),
        purge_pycache=bool(args.purge_pycache),
        case_sensitive=bool(args.case_sensitive),
        verbose=bool(args.verbose),
        debug=bool(args.debug),
        bare_invocation=argv is not None and len(argv) == 0,
    )


def _split_positionals(paths: list[str], *, cwd: Path) -> tuple[list[str], list[str]]:
    """Positionals like '.py' that don't exist on disk are extensions, the rest are inputs."""
    inputs: list[str] = []
    extensions: list[str] = []
    for token in paths:
        if token.startswith(".") and len(token) > 1 and "/" not in token and not (cwd / token).exists():
            extensions.append(token)
        else:
            inputs.append(token)
    return inputs, extensions


def derive_config(ctx: Context, *, cwd: Path | None = None) -> Config:
    """Normalize raw options into a Config. Raises ConfigError for contradictory options."""
    from concat.filters import resolve_exclude_globs, resolve_extensions
    from concat.util import expand_input_globs

    cwd = Path.cwd() if cwd is None else Path(cwd)
    if ctx.output and ctx.output_dir:
        msg = "--output and --output-dir cannot be used together"
        raise ConfigError(msg)

    positional, positional_extensions = _split_positionals(ctx.paths, cwd=cwd)
    inputs = expand_input_globs(positional, root_dir=cwd) + list(ctx.input_dir)
    if not positional and not ctx.input_dir:
        inputs = [DEFAULT_RUN_PATH]

    try:
        extensions_include = resolve_extensions(
            ctx.extension + positional_extensions, case_sensitive=ctx.case_sensitive
        )
        extensions_exclude = resolve_extensions(ctx.exclude_extension, case_sensitive=ctx.case_sensitive)
    except ValueError as e:
        msg = f"Invalid extension: {e}"
        raise ConfigError(msg) from e

    return Config(
        inputs=tuple(inputs),
        recursive=ctx.recursive,
        include_hidden=ctx.hidden,
        exclude_non_text=not ctx.include_binary,
        extensions_include=extensions_include,
        extensions_exclude=extensions_exclude,
        include_globs=tuple(p for p in ctx.include if p),
        exclude_globs=resolve_exclude_globs(ctx.exclude),
        case_sensitive=ctx.case_sensitive,
        format=OutputFormat(ctx.format),
        show_tree=ctx.tree,
        show_directory_list=ctx.dir_list,
        show_title=ctx.title,
        show_params=ctx.params,
        show_paths=ctx.show_paths,
        purge_cache=ctx.purge_pycache,
        title=DEFAULT_TITLE,
        output=ctx.output,
        output_dir=ctx.output_dir,
        bare_invocation=ctx.bare_invocation,
    )
