"""Output formatting utilities for the CLI."""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from typing import Any, Iterable, Mapping

import questionary
from rich.console import Console
from rich.syntax import Syntax
from rich.table import Table
from rich.theme import Theme

from sqlfind.cli.common.tui_style import (
    QUESTIONARY_STYLE_CONFIRM,
    QUESTIONARY_STYLE_SELECT,
)
from sqlfind.cli.tui import type_label

_THEME = Theme(
    {
        "ok": "bold green",
        "warn": "yellow",
        "err": "bold red",
        "title": "bold cyan",
        "meta": "dim",
    }
)

console = Console(theme=_THEME)
err_console = Console(theme=_THEME, stderr=True)


@dataclass(frozen=True)
class Out:
    """Output formatter for CLI messages, tables and scripts."""

    def _q_try(self, fn, *args, **kwargs):
        """Call questionary prompts and drop unsupported kwargs on older versions."""
        try:
            return fn(*args, **kwargs)
        except TypeError:
            for k in ("pointer", "auto_enter", "use_search_filter", "use_jk_keys"):
                kwargs.pop(k, None)
            return fn(*args, **kwargs)

    def _q(self, message: str) -> str:
        """Prefix Questionary prompts to keep the sqlfind look consistent."""
        return f"[sqlfind] {message}"

    def info(self, msg: str) -> None:
        """Print an info message."""
        err_console.print(f"[title]›[/] {msg}")

    @contextmanager
    def status(self, msg: str):
        """Show a transient status spinner while work is in progress."""
        with err_console.status(msg, spinner="dots"):
            yield

    def success(self, msg: str) -> None:
        """Print a success message."""
        err_console.print(f"[ok]✓[/] {msg}")

    def warn(self, msg: str) -> None:
        """Print a warning message."""
        err_console.print(f"[warn]⚠[/] {msg}")

    def error(self, msg: str) -> None:
        """Print an error message."""
        err_console.print(f"[err]✗[/] {msg}")

    def header(self, title: str) -> None:
        """Print a header message."""
        err_console.print(f"[title]{title}[/]")

    def kv(self, items: Mapping[str, Any]) -> None:
        """Print key-value pairs."""
        for k, v in items.items():
            err_console.print(f"[meta]{k}[/]: {v}")

    def ask(self, message: str, *, default: str = "") -> str | None:
        """
        Prompt the user for a line of text.

        Returns:
            The entered text, or None if the prompt was cancelled (Ctrl-C).
        """
        prompt = self._q_try(
            questionary.text,
            self._q(message),
            default=default,
            style=QUESTIONARY_STYLE_SELECT,
            qmark="✦",
        )
        return prompt.ask()

    def confirm(self, message: str, *, default: bool = False) -> bool:
        """
        Ask the user for confirmation using a standardized Questionary prompt.

        Args:
            message: Confirmation question shown to the user.
            default: Default answer if the user just presses enter.

        Returns:
            True if the user confirms, False otherwise.
        """
        err_console.print("[meta]Use y/n then Enter[/]")

        prompt = self._q_try(
            questionary.confirm,
            self._q(message),
            default=default,
            style=QUESTIONARY_STYLE_CONFIRM,
            qmark="✦",
            auto_enter=False,
        )
        return bool(prompt.ask())

    def script(self, text: str, *, highlight: bool = True) -> None:
        """
        Print a generated script to stdout.

        Highlighting is skipped when stdout is not a terminal so the script
        can be piped into other tools unchanged.
        """
        if highlight and console.is_terminal:
            console.print(Syntax(text, "sql", theme="ansi_dark", word_wrap=True))
        else:
            console.print(
                text,
                end="" if text.endswith("\n") else "\n",
                markup=False,
                highlight=False,
                soft_wrap=True,
            )

    def objects_table(self, objects: Iterable[Any], title: str = "Database objects") -> None:
        """
        Render a table of database objects.

        Expects objects with .schema .name .type and optional .columns
        (like sqlfind.core.objects.DatabaseObject).
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Schema", style="meta")
        t.add_column("Name", style="ok")
        t.add_column("Type")
        t.add_column("Columns", style="meta")

        for obj in objects:
            t.add_row(
                obj.schema,
                obj.name,
                type_label(obj.type),
                getattr(obj, "columns", None) or "",
            )

        console.print(t)

    def diagnostic_table(self, results: Iterable[Any], title: str = "Scripting diagnostic") -> None:
        """
        Render scripting diagnostic results.

        Expects objects with .object_type .qualified_name .operation .ok
        .script_length and optional .error (like ScriptTestResult).
        """
        t = Table(title=title, show_lines=False)
        t.add_column("Type", style="meta")
        t.add_column("Object", style="ok")
        t.add_column("Operation")
        t.add_column("Result")
        t.add_column("Length", justify="right")

        for r in results:
            result = "[ok]OK[/]" if r.ok else f"[err]FAIL[/] {r.error or ''}"
            t.add_row(
                type_label(r.object_type),
                r.qualified_name,
                r.operation.name,
                result,
                str(r.script_length) if r.ok else "",
            )

        console.print(t)


out = Out()
