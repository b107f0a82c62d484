from __future__ import annotations

import logging
import os
import shutil
from fnmatch import fnmatch
from pathlib import Path

from .defaults import DEFAULT_PURGE_DIR_NAMES, DEFAULT_PURGE_FILE_GLOBS

logger = logging.getLogger(__name__)


def purge_cache_artifacts(
    root: Path,
    *,
    dir_names: tuple[str, ...] = DEFAULT_PURGE_DIR_NAMES,
    file_globs: tuple[str, ...] = DEFAULT_PURGE_FILE_GLOBS,
) -> int:
    """
    Delete cache directories (`__pycache__`) and cache files (`*.pyc`) under `root`.

    Returns how many directories and files were removed. Failures are logged and skipped.
    """
    removed = 0
    logger.info('Removing %s directories and %s files under "%s"', ", ".join(dir_names), ", ".join(file_globs), root)
    for current, dirs, files in os.walk(root, onerror=_log_walk_error):
        for name in list(dirs):
            if name not in dir_names:
                continue
            path = Path(current) / name
            try:
                shutil.rmtree(path)
            except OSError as e:
                logger.warning('Cannot remove "%s": %s', path, e)
                continue
            # Already gone, don't descend
            dirs.remove(name)
            removed += 1
            logger.debug('Removed "%s"', path)
        for name in files:
            if not any(fnmatch(name, pattern) for pattern in file_globs):
                continue
            path = Path(current) / name
            try:
                path.unlink()
            except OSError as e:
                logger.warning('Cannot remove "%s": %s', path, e)
                continue
            removed += 1
            logger.debug('Removed "%s"', path)
    return removed


def _log_walk_error(error: OSError) -> None:
    logger.warning("Cannot scan %s for cache artifacts: %s", error.filename, error)
