"""Progress rendering for long-running CLI operations."""

from __future__ import annotations

import threading
from typing import Sequence

from rich.progress import (
    BarColumn,
    Progress,
    SpinnerColumn,
    TaskProgressColumn,
    TextColumn,
    TimeElapsedColumn,
)

from sqlfind.cli.common.output import err_console
from sqlfind.cli.tui import truncate
from sqlfind.core.diagnostic import DiagnosticScripter, ScriptTestResult, run_diagnostic
from sqlfind.core.objects import DatabaseObject, ScriptOperation

_MAX_LABEL_WIDTH = 40


def _progress_label(label: str, done: int, total: int) -> str:
    """Render `<label> (done/total)` with the label padded to a fixed width."""
    return f"{truncate(label, _MAX_LABEL_WIDTH).ljust(_MAX_LABEL_WIDTH)} ({done}/{total})"


def run_diagnostic_with_progress(
    scripter: DiagnosticScripter,
    samples: Sequence[DatabaseObject],
    *,
    cancel: threading.Event | None = None,
) -> list[ScriptTestResult]:
    """Run the scripting diagnostic while showing a progress bar."""
    total = max(len(samples) * len(ScriptOperation), 1)

    progress = Progress(
        SpinnerColumn(),
        TextColumn("[bold]{task.description}[/]"),
        BarColumn(),
        TaskProgressColumn(),
        TimeElapsedColumn(),
        console=err_console,
        transient=True,
    )

    with progress:
        task_id = progress.add_task("Testing scripting operations", total=total)

        def _on_progress(done: int, total_calls: int, label: str) -> None:
            progress.update(
                task_id,
                completed=done,
                description=_progress_label(label, done, total_calls),
            )

        results = run_diagnostic(
            scripter, list(samples), on_progress=_on_progress, cancel=cancel
        )
        progress.update(task_id, completed=len(results))

    return results
