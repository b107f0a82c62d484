from __future__ import annotations

import logging
from dataclasses import dataclass, field
from enum import Enum, auto
from pathlib import Path
from typing import BinaryIO, Iterable, Mapping, Protocol

from .classify import extension_of, is_hidden
from .defaults import (
    DEFAULT_CASE_SENSITIVE,
    DEFAULT_INCLUDE_BINARY,
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
    TREE_UNAVAILABLE_MESSAGE,
)
from .util import to_posix

logger = logging.getLogger(__name__)


class NodeKind(Enum):
    DIRECTORY = auto()
    FILE = auto()
    OTHER = auto()
    MISSING = auto()


class OutputFormat(str, Enum):
    XML = "xml"
    TEXT = "text"

    @property
    def suffix(self) -> str:
        return ".xml" if self is OutputFormat.XML else ".txt"


@dataclass(frozen=True)
class Entry:
    path: Path
    name: str
    kind: NodeKind


@dataclass(frozen=True)
class Config:
    """
    Fully resolved run options. Built once by `cli_common.derive_config`.

    `output_path` stays None until `orchestrator.resolve_output_path` fills it in;
    everything downstream of discovery only ever sees a resolved Config.
    """

    inputs: tuple[str, ...] = (DEFAULT_RUN_PATH,)
    recursive: bool = DEFAULT_RECURSIVE
    include_hidden: bool = DEFAULT_INCLUDE_HIDDEN
    exclude_non_text: bool = not DEFAULT_INCLUDE_BINARY
    extensions_include: frozenset[str] = frozenset()
    extensions_exclude: frozenset[str] = frozenset()
    include_globs: tuple[str, ...] = ()
    exclude_globs: tuple[str, ...] = ()
    case_sensitive: bool = DEFAULT_CASE_SENSITIVE
    format: OutputFormat = OutputFormat.XML
    show_tree: bool = DEFAULT_SHOW_TREE
    show_directory_list: bool = DEFAULT_SHOW_DIR_LIST
    show_title: bool = DEFAULT_SHOW_TITLE
    show_params: bool = DEFAULT_SHOW_PARAMS
    show_paths: bool = DEFAULT_SHOW_PATHS
    purge_cache: bool = DEFAULT_PURGE_PYCACHE
    title: str = DEFAULT_TITLE
    output: str | None = None
    output_dir: str | None = None
    bare_invocation: bool = False
    output_path: Path | None = None


@dataclass(frozen=True)
class CandidateFile:
    path: Path
    root: Path
    explicit: bool = False

    @property
    def name(self) -> str:
        return self.path.name

    @property
    def extension(self) -> str:
        return extension_of(self.path.name)

    @property
    def hidden(self) -> bool:
        return is_hidden(self.path, self.root)

    @property
    def relative_path(self) -> str:
        try:
            return to_posix(self.path.relative_to(self.root))
        except ValueError:
            return self.path.name


@dataclass(frozen=True)
class MatchedFile:
    candidate: CandidateFile
    relative_path: str

    @classmethod
    def from_candidate(cls, candidate: CandidateFile) -> MatchedFile:
        return cls(candidate=candidate, relative_path=candidate.relative_path)

    @property
    def path(self) -> Path:
        return self.candidate.path

    @property
    def name(self) -> str:
        return self.candidate.name

    @property
    def absolute_path(self) -> str:
        return to_posix(self.candidate.path)

    @property
    def directory_label(self) -> str:
        """Parent directory, spelled from the root's own name: 'proj/sub'."""
        parent = self.relative_path.rpartition("/")[0]
        root_name = self.candidate.root.name
        if not parent:
            return root_name
        return f"{root_name}/{parent}" if root_name else parent


@dataclass(frozen=True)
class RunResult:
    config: Config
    files: tuple[MatchedFile, ...] = ()
    matched_dirs: Mapping[str, tuple[str, ...]] = field(default_factory=dict)
    tree_text: str | None = None
    tree_context: str = "."
    structure: Mapping[str, tuple[str, ...]] | None = None


class Writer(Protocol):
    def write(self, text: str) -> None: ...
    def write_bytes(self, blob: bytes) -> None: ...


class SourceAdapter(Protocol):
    def resolve_root(self, root_spec: str) -> Path: ...
    def kind_of(self, path: Path) -> NodeKind: ...
    def list_dir(self, dir_path: Path) -> Iterable[Entry]: ...
    def read_file_bytes(self, file_path: Path) -> bytes: ...
    def read_head(self, file_path: Path, size: int) -> bytes: ...


class Formatter(Protocol):
    def begin(self) -> str: ...
    def title(self, title: str) -> str: ...
    def params(self, config: Config, matched_count: int) -> str: ...
    def dir_list(self, groups: Mapping[str, tuple[str, ...]]) -> str: ...
    def tree(self, tree_text: str, *, context: str) -> str: ...
    def structure(self, groups: Mapping[str, tuple[str, ...]]) -> str: ...
    def files_begin(self, total: int) -> str: ...
    def no_files(self) -> str: ...
    def file_header(self, matched: MatchedFile, index: int, total: int, *, show_paths: bool) -> str: ...
    def body(self, blob: bytes) -> bytes: ...
    def file_error(self, matched: MatchedFile, error: OSError) -> str: ...
    def file_footer(self, matched: MatchedFile, *, show_paths: bool) -> str: ...
    def files_end(self) -> str: ...
    def end(self) -> str: ...


class FileWriter(Writer):
    """Writes UTF-8 encoded structure and raw file bytes to a binary handle."""

    def __init__(self, handle: BinaryIO) -> None:
        self._handle = handle

    def write(self, text: str) -> None:
        self._handle.write(text.encode("utf-8"))

    def write_bytes(self, blob: bytes) -> None:
        self._handle.write(blob)


class StringWriter(Writer):
    """
    Collects written output into an internal buffer for tests and callers.

    Raw bytes are kept as written; `text()` decodes the whole document as UTF-8.
    """

    def __init__(self) -> None:
        self._parts: list[bytes] = []

    def write(self, text: str) -> None:  # Writer protocol
        self._parts.append(text.encode("utf-8"))

    def write_bytes(self, blob: bytes) -> None:  # Writer protocol
        self._parts.append(blob)

    def getvalue(self) -> bytes:
        return b"".join(self._parts)

    def text(self) -> str:
        return self.getvalue().decode("utf-8", errors="replace")


class Serializer:
    """
    Renders a RunResult through a formatter, in a fixed section order.

    File contents are read one file at a time, at the moment they are emitted.
    """

    def __init__(self, formatter: Formatter, source: SourceAdapter) -> None:
        self.formatter = formatter
        self.source = source

    def run(self, result: RunResult, writer: Writer) -> None:
        fmt = self.formatter
        config = result.config
        total = len(result.files)

        writer.write(fmt.begin())
        if config.show_title:
            writer.write(fmt.title(config.title))
        if config.show_params:
            writer.write(fmt.params(config, total))
        if config.show_directory_list:
            writer.write(fmt.dir_list(result.matched_dirs))
        if config.show_tree:
            tree_text = result.tree_text if result.tree_text is not None else TREE_UNAVAILABLE_MESSAGE
            writer.write(fmt.tree(tree_text, context=result.tree_context))
            if result.structure is not None:
                writer.write(fmt.structure(result.structure))

        writer.write(fmt.files_begin(total))
        if not result.files:
            writer.write(fmt.no_files())
        for index, matched in enumerate(result.files, start=1):
            writer.write(fmt.file_header(matched, index, total, show_paths=config.show_paths))
            try:
                blob = self.source.read_file_bytes(matched.path)
            except OSError as e:
                logger.warning("Cannot read %s: %s", matched.path, e)
                writer.write(fmt.file_error(matched, e))
            else:
                writer.write_bytes(fmt.body(blob))
            writer.write(fmt.file_footer(matched, show_paths=config.show_paths))
        writer.write(fmt.files_end())
        writer.write(fmt.end())
