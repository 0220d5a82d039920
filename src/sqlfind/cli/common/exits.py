"""Process exits for sqlfind commands.

Messages go to stderr through `out`, so a script printed on stdout is never
mixed with status text.
"""

from typing import NoReturn

import typer

from sqlfind.cli.common.output import out


def ok_exit(msg: str | None = None) -> NoReturn:
    """Leave with status 0, e.g. when the shell is quit."""
    if msg:
        out.success(msg)
    raise typer.Exit(0)


def die(msg: str, code: int = 1) -> NoReturn:
    """Stop on a fatal problem such as a missing profile or unknown object."""
    out.error(msg)
    raise typer.Exit(code)


def warn_exit(msg: str, code: int = 0) -> NoReturn:
    """Stop without a result (nothing found, picker cancelled)."""
    out.warn(msg)
    raise typer.Exit(code)


def exit_from_exc(exc: Exception, *, message: str, code: int = 1) -> NoReturn:
    """
    Report a bad option value or I/O failure and exit.

    The exception stays chained as the cause so `-vv` tracebacks show it.
    """
    out.error(message)
    raise typer.Exit(code) from exc
