from __future__ import annotations

import logging
import sys
from pathlib import Path

from rich.logging import RichHandler

from concat.cli_common import Context, derive_config, parse_common_args
from concat.errors import ConfigError, OutputWriteError
from concat.orchestrator import run
from concat.tree import TreeRenderer

logger = logging.getLogger(__name__)


def configure_logging(*, verbose: bool = False, debug: bool = False) -> None:
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(
        level=level,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(rich_tracebacks=True, show_path=False)],
        force=True,
    )


def main(
    argv: list[str] | None = None,
    *,
    cwd: Path | None = None,
    tree_renderer: TreeRenderer | None = None,
) -> int:
    """Parse `argv`, write the document, and return the process exit code."""
    if argv is None:
        argv = sys.argv[1:]
    ctx: Context = parse_common_args(argv)
    configure_logging(verbose=ctx.verbose, debug=ctx.debug)

    try:
        config = derive_config(ctx, cwd=cwd)
        result = run(config, cwd=cwd, tree_renderer=tree_renderer)
    except ConfigError as e:
        logger.error("%s", e)
        return 2
    except OutputWriteError as e:
        logger.error("%s", e)
        return 1

    if not result.files:
        logger.warning("No files matched the criteria. Output contains only the header sections.")
    return 0


def main_cli() -> None:
    sys.exit(main())


if __name__ == "__main__":
    main_cli()
