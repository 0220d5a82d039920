"""Logging setup for the CLI.

Core modules log through `logging.getLogger(__name__)`; the CLI routes the
`sqlfind` logger tree to a Rich handler on stderr.
"""

import logging

from rich.logging import RichHandler

from sqlfind.cli.common.output import err_console

_LEVELS = {0: logging.CRITICAL, 1: logging.INFO}


def configure_logging(verbosity: int = 0) -> None:
    """Install a Rich handler on the `sqlfind` logger for the given verbosity."""
    level = _LEVELS.get(verbosity, logging.DEBUG)
    handler = RichHandler(
        console=err_console,
        show_path=False,
        rich_tracebacks=verbosity > 1,
        markup=False,
    )
    handler.setFormatter(logging.Formatter("%(name)s: %(message)s"))

    logger = logging.getLogger("sqlfind")
    logger.handlers[:] = [handler]
    logger.setLevel(level)
    logger.propagate = False
