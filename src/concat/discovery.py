from __future__ import annotations

import logging
from pathlib import Path
from typing import Iterable, Iterator

from .core import CandidateFile, NodeKind, SourceAdapter
from .util import to_posix, version_sort_key, version_sorted

logger = logging.getLogger(__name__)


def discover(
    inputs: Iterable[str],
    *,
    recursive: bool,
    keep_hidden: bool,
    source: SourceAdapter,
) -> list[CandidateFile]:
    """
    Resolve inputs into a deduplicated, version-sorted list of candidate files.

    Explicit file inputs are always candidates. Directory inputs are walked, one level
    deep unless `recursive`, pruning dot-named entries unless `keep_hidden`; the walk
    root itself is never pruned. Missing inputs and unreadable subtrees are skipped
    with a warning.
    """
    found: dict[Path, CandidateFile] = {}
    dir_roots: list[Path] = []

    for root_spec in inputs:
        path = source.resolve_root(root_spec)
        kind = source.kind_of(path)
        if kind is NodeKind.MISSING:
            logger.warning('Input item not found, skipping: "%s"', root_spec)
            continue
        if kind is NodeKind.FILE:
            logger.info('Input item is file: "%s"', path)
            _add(found, CandidateFile(path=path, root=path.parent, explicit=True))
        elif kind is NodeKind.DIRECTORY:
            logger.info('Input item is directory, searching: "%s" (recursive: %s)', path, recursive)
            dir_roots.append(path)
            count = 0
            for file_path in _walk(path, recursive=recursive, keep_hidden=keep_hidden, source=source):
                _add(found, CandidateFile(path=file_path, root=path))
                count += 1
            logger.info('Found %d files in "%s"', count, path)
        else:
            logger.warning(
                'Input item is neither a file nor a directory, skipping: "%s" (resolved: "%s")',
                root_spec,
                path,
            )

    candidates = [_reroot(candidate, dir_roots) for candidate in found.values()]
    candidates.sort(key=lambda c: version_sort_key(str(c.path)))
    logger.info("Total unique candidate files found: %d", len(candidates))
    return candidates


def _add(found: dict[Path, CandidateFile], candidate: CandidateFile) -> None:
    existing = found.get(candidate.path)
    if existing is None:
        found[candidate.path] = candidate
    elif candidate.explicit and not existing.explicit:
        found[candidate.path] = CandidateFile(path=existing.path, root=existing.root, explicit=True)


def _reroot(candidate: CandidateFile, dir_roots: list[Path]) -> CandidateFile:
    # Nearest input root is the deepest directory input containing the file
    containing = [root for root in dir_roots if root in candidate.path.parents]
    if not containing:
        return candidate
    nearest = max(containing, key=lambda root: len(root.parts))
    if nearest == candidate.root:
        return candidate
    return CandidateFile(path=candidate.path, root=nearest, explicit=candidate.explicit)


def _walk(root: Path, *, recursive: bool, keep_hidden: bool, source: SourceAdapter) -> Iterator[Path]:
    stack: list[Path] = [root]
    while stack:
        current = stack.pop()
        try:
            entries = list(source.list_dir(current))
        except OSError as e:
            logger.warning('Cannot read directory "%s", skipping it: %s', current, e)
            continue
        for entry in entries:
            if not keep_hidden and entry.name.startswith("."):
                logger.debug('Pruned hidden entry: "%s"', entry.path)
                continue
            if entry.kind is NodeKind.FILE:
                yield entry.path
            elif entry.kind is NodeKind.DIRECTORY and recursive:
                stack.append(entry.path)


def collect_structure(
    root: Path,
    *,
    recursive: bool,
    keep_hidden: bool,
    source: SourceAdapter,
) -> dict[str, tuple[str, ...]]:
    """
    Map every directory under `root` to its sorted children, empty directories included.

    Keys are spelled from the root's own name ('proj', 'proj/sub'); child directories
    carry a trailing '/'.
    """
    structure: dict[str, tuple[str, ...]] = {}
    stack: list[Path] = [root]
    while stack:
        current = stack.pop()
        try:
            entries = list(source.list_dir(current))
        except OSError as e:
            logger.warning('Cannot read directory "%s", skipping it: %s', current, e)
            continue
        children: list[str] = []
        for entry in entries:
            if not keep_hidden and entry.name.startswith("."):
                continue
            if entry.kind is NodeKind.DIRECTORY:
                children.append(entry.name + "/")
                if recursive:
                    stack.append(entry.path)
            elif entry.kind is NodeKind.FILE:
                children.append(entry.name)
        structure[_label(root, current)] = tuple(version_sorted(children))
    return {key: structure[key] for key in version_sorted(structure)}


def _label(root: Path, directory: Path) -> str:
    if directory == root:
        return root.name or to_posix(root)
    return f"{root.name}/{to_posix(directory.relative_to(root))}"
