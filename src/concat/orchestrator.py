from __future__ import annotations

import logging
import os
import tempfile
from collections import defaultdict
from contextlib import suppress
from dataclasses import replace
from pathlib import Path

from .adapters.filesystem import FileSystemSource
from .core import Config, FileWriter, NodeKind, OutputFormat, RunResult, Serializer, SourceAdapter
from .defaults import DEFAULT_OUTPUT_DIR, DEFAULT_OUTPUT_PREFIX, DEFAULT_OUTPUT_STEM, TREE_UNAVAILABLE_MESSAGE
from .discovery import collect_structure, discover
from .errors import ConfigError, OutputWriteError, TreeUnavailableError
from .filters import FilterChain, keeps_hidden
from .formatters import TextFormatter, XmlFormatter
from .purge import purge_cache_artifacts
from .tree import TreeRenderer, default_tree_renderer
from .util import version_sorted

logger = logging.getLogger(__name__)


def default_output_stem(config: Config, *, cwd: Path) -> str:
    """
    Name used when no --output is given:
    one extension filter -> that extension; several -> 'output';
    no arguments at all -> the current directory's name;
    a single directory input -> that directory's name; anything else -> 'output'.
    """
    if config.extensions_include:
        if len(config.extensions_include) == 1:
            return next(iter(config.extensions_include)).lstrip(".")
        return DEFAULT_OUTPUT_STEM
    if config.bare_invocation:
        return cwd.resolve().name or DEFAULT_OUTPUT_STEM
    if len(config.inputs) == 1:
        single = (cwd / config.inputs[0]).resolve()
        if single.is_dir():
            return single.name or DEFAULT_OUTPUT_STEM
    return DEFAULT_OUTPUT_STEM


def resolve_output_path(config: Config, *, cwd: Path | None = None) -> Config:
    """
    Return `config` with an absolute `output_path` whose suffix matches the format.

    The output directory is created if needed; failing that is a configuration error.
    """
    cwd = Path.cwd() if cwd is None else Path(cwd)
    suffix = config.format.suffix
    if config.output:
        requested = cwd / config.output
        directory = requested.parent
        name = requested.name if requested.suffix == suffix else requested.with_suffix(suffix).name
    else:
        directory = cwd / (config.output_dir or DEFAULT_OUTPUT_DIR)
        name = f"{DEFAULT_OUTPUT_PREFIX}{default_output_stem(config, cwd=cwd)}{suffix}"

    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        msg = f'Cannot create output directory "{directory}": {e}'
        raise ConfigError(msg) from e
    if not directory.is_dir():
        msg = f'Output directory is not a directory: "{directory}"'
        raise ConfigError(msg)

    output_path = (directory / name).resolve()
    if output_path.is_dir():
        msg = f'Output path is a directory: "{output_path}"'
        raise ConfigError(msg)
    return replace(config, output_path=output_path)


def remove_stale_outputs(config: Config) -> None:
    """Remove a previous output at the target path and, for derived names, its other-format twin."""
    path = config.output_path
    if path is None:
        return
    if path.exists():
        logger.info('Removing existing output file: "%s"', path)
        try:
            path.unlink()
        except OSError as e:
            msg = f'Cannot remove existing output file "{path}": {e}'
            raise OutputWriteError(msg) from e
    if config.output:
        return
    other = OutputFormat.TEXT if config.format is OutputFormat.XML else OutputFormat.XML
    twin = path.with_suffix(other.suffix)
    if twin.is_file():
        logger.info('Removing stale output file: "%s"', twin)
        try:
            twin.unlink()
        except OSError as e:
            logger.warning('Cannot remove stale output file "%s": %s', twin, e)


def log_config_summary(config: Config) -> None:
    if not logger.isEnabledFor(logging.INFO):
        return
    rows = [
        ("Inputs", ", ".join(config.inputs)),
        ("Output file", str(config.output_path)),
        ("Format", config.format.value),
        ("Recursive", config.recursive),
        ("Include hidden", config.include_hidden),
        ("Exclude non-text", config.exclude_non_text),
        ("Case sensitive", config.case_sensitive),
        ("Show tree", config.show_tree),
        ("Show dir list", config.show_directory_list),
        ("Purge pycache", config.purge_cache),
        ("Include extensions", ", ".join(sorted(config.extensions_include)) or "All"),
        ("Exclude extensions", ", ".join(sorted(config.extensions_exclude)) or "None"),
        ("Include globs", ", ".join(config.include_globs) or "All"),
        ("Exclude globs", ", ".join(config.exclude_globs) or "None"),
    ]
    logger.info("Configuration:\n%s", "\n".join(f"{label:<23}{value}" for label, value in rows))


def _directory_inputs(config: Config, source: SourceAdapter) -> list[Path]:
    dirs = []
    for root_spec in config.inputs:
        path = source.resolve_root(root_spec)
        if source.kind_of(path) is NodeKind.DIRECTORY:
            dirs.append(path)
    return dirs


def build_result(
    config: Config,
    *,
    source: SourceAdapter,
    tree_renderer: TreeRenderer | None = None,
) -> RunResult:
    """Discovery, filtering, and (when asked for) the tree sections. Reads no file contents."""
    candidates = discover(
        config.inputs,
        recursive=config.recursive,
        keep_hidden=keeps_hidden(config),
        source=source,
    )
    outcome = FilterChain(config, source=source).apply(candidates)

    grouped: dict[str, list[str]] = defaultdict(list)
    for matched in outcome.matched:
        grouped[matched.directory_label].append(matched.name)
    matched_dirs = {label: tuple(version_sorted(grouped[label])) for label in version_sorted(grouped)}

    if not config.show_tree:
        return RunResult(config=config, files=outcome.matched, matched_dirs=matched_dirs)

    dir_inputs = _directory_inputs(config, source)
    tree_root = dir_inputs[0] if dir_inputs else source.resolve_root(".")
    renderer = tree_renderer or default_tree_renderer()
    try:
        tree_text = renderer.render(
            tree_root, xml=config.format is OutputFormat.XML, include_hidden=config.include_hidden
        )
    except TreeUnavailableError as e:
        logger.warning("Cannot generate directory tree: %s", e)
        tree_text = f"{TREE_UNAVAILABLE_MESSAGE} {e}"
    structure = collect_structure(
        tree_root,
        recursive=config.recursive,
        keep_hidden=config.include_hidden,
        source=source,
    )
    return RunResult(
        config=config,
        files=outcome.matched,
        matched_dirs=matched_dirs,
        tree_text=tree_text,
        tree_context=tree_root.name or tree_root.as_posix(),
        structure=structure,
    )


def write_document(result: RunResult, *, source: SourceAdapter) -> Path:
    """Serialize into a temporary file next to the output, then move it into place."""
    config = result.config
    path = config.output_path
    if path is None:
        msg = "Output path is not resolved"
        raise ConfigError(msg)
    formatter = XmlFormatter() if config.format is OutputFormat.XML else TextFormatter()

    logger.info('Generating output file: "%s" (format: %s)', path, config.format.value)
    try:
        fd, tmp_name = tempfile.mkstemp(prefix=f".{path.name}.", suffix=".tmp", dir=path.parent)
    except OSError as e:
        msg = f'Failed to write output file "{path}": {e}'
        raise OutputWriteError(msg) from e
    try:
        with os.fdopen(fd, "wb") as handle:
            Serializer(formatter, source).run(result, FileWriter(handle))
        umask = os.umask(0)
        os.umask(umask)
        os.chmod(tmp_name, 0o666 & ~umask)
        os.replace(tmp_name, path)
    except OSError as e:
        with suppress(FileNotFoundError):
            os.unlink(tmp_name)
        msg = f'Failed to write output file "{path}": {e}'
        raise OutputWriteError(msg) from e
    return path


def run(
    config: Config,
    *,
    cwd: Path | None = None,
    source: SourceAdapter | None = None,
    tree_renderer: TreeRenderer | None = None,
) -> RunResult:
    """
    Resolve the output path, clean up old output, purge caches, scan, and write the document.

    Raises ConfigError for an unusable output location and OutputWriteError when the
    document cannot be written. Everything else degrades into logged warnings.
    """
    cwd = Path.cwd() if cwd is None else Path(cwd)
    source = source or FileSystemSource(root_cwd=cwd)
    config = resolve_output_path(config, cwd=cwd)
    log_config_summary(config)
    remove_stale_outputs(config)

    if config.purge_cache:
        for directory in _directory_inputs(config, source):
            purge_cache_artifacts(directory)

    result = build_result(config, source=source, tree_renderer=tree_renderer)
    write_document(result, source=source)
    logger.info('Concatenation complete. Output written to "%s".', config.output_path)
    return result
