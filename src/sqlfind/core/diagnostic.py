"""Scripting diagnostic.

Exercises every ScriptOperation against one sample object of each type so
backend scripting support can be checked against a live database.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Iterable, Protocol

from sqlfind.core.objects import DatabaseObject, ObjectType, ScriptOperation


@dataclass(frozen=True)
class ScriptTestResult:
    """Outcome of one scripting call made by the diagnostic."""

    object_type: ObjectType
    qualified_name: str
    operation: ScriptOperation
    ok: bool
    script_length: int = 0
    error: str | None = None


class DiagnosticScripter(Protocol):
    def script_object(self, operation: ScriptOperation, obj: DatabaseObject) -> str | None:
        ...


ProgressFn = Callable[[int, int, str], None]


def pick_sample_objects(objects: Iterable[DatabaseObject]) -> list[DatabaseObject]:
    """Return the first object of each ObjectType, in ObjectType order."""
    samples: dict[ObjectType, DatabaseObject] = {}
    for obj in objects:
        samples.setdefault(obj.type, obj)
    return [samples[t] for t in ObjectType if t in samples]


def run_diagnostic(
    scripter: DiagnosticScripter,
    samples: list[DatabaseObject],
    *,
    on_progress: ProgressFn | None = None,
    cancel: threading.Event | None = None,
) -> list[ScriptTestResult]:
    """
    Call every scripting operation for every sample object.

    Args:
        scripter: Scripting backend (normally the ConnectionContext).
        samples: Objects to script.
        on_progress: Called as (completed, total, label) before each call.
        cancel: Optional event; when set, remaining calls are skipped.

    Returns:
        One result per completed call.
    """
    total = len(samples) * len(ScriptOperation)
    results: list[ScriptTestResult] = []

    for obj in samples:
        for operation in ScriptOperation:
            if cancel is not None and cancel.is_set():
                return results
            if on_progress:
                on_progress(len(results), total, f"{obj.type.value}: {operation.name}")
            results.append(_try_script(scripter, obj, operation))

    return results


def _try_script(
    scripter: DiagnosticScripter, obj: DatabaseObject, operation: ScriptOperation
) -> ScriptTestResult:
    try:
        script = scripter.script_object(operation, obj)
    except Exception as e:  # noqa: BLE001
        return ScriptTestResult(
            object_type=obj.type,
            qualified_name=obj.qualified_name,
            operation=operation,
            ok=False,
            error=str(e),
        )
    if not script:
        return ScriptTestResult(
            object_type=obj.type,
            qualified_name=obj.qualified_name,
            operation=operation,
            ok=False,
            error="no script returned",
        )
    return ScriptTestResult(
        object_type=obj.type,
        qualified_name=obj.qualified_name,
        operation=operation,
        ok=True,
        script_length=len(script),
    )
