"""Script generation for picked database objects.

Each ScriptAction maps to exactly one strategy. Strategies that call the
backend share one failure policy: an exception and an empty result are
treated the same way, logged, and replaced by a deterministic fallback
script, so the user always gets something usable.
"""

from __future__ import annotations

import logging
import re
from typing import Protocol, assert_never

from sqlfind.core.objects import DatabaseObject, ObjectType, ScriptAction, ScriptOperation

logger = logging.getLogger(__name__)

_EXISTING_TOP = re.compile(r"(SELECT\s+)TOP\s*(\(\s*\d+\s*\)|\d+)", re.IGNORECASE)
_LEADING_SELECT = re.compile(r"^(\s*SELECT\s+)", re.IGNORECASE)


class Scripter(Protocol):
    """Backend scripting call (ConnectionContext implements this)."""

    def script_object(self, operation: ScriptOperation, obj: DatabaseObject) -> str | None:
        ...


class ScriptSettings(Protocol):
    @property
    def script_row_limit(self) -> int:
        ...

    def action_for_type(self, object_type: ObjectType) -> ScriptAction:
        ...


def ensure_top_clause(script: str, row_limit: int) -> str:
    """
    Force the row limit of a SELECT script to `row_limit`.

    An existing `TOP n` or `TOP (n)` gets its limit replaced; otherwise
    `TOP <row_limit>` is injected right after the leading SELECT keyword.
    """
    if _EXISTING_TOP.search(script):
        return _EXISTING_TOP.sub(rf"\g<1>TOP {row_limit}", script, count=1)
    return _LEADING_SELECT.sub(rf"\g<1>TOP {row_limit} ", script, count=1)


def select_fallback(obj: DatabaseObject, row_limit: int) -> str:
    return f"SELECT TOP {row_limit} *\nFROM {obj.qualified_name};\n"


def create_fallback(obj: DatabaseObject) -> str:
    return f"-- Could not generate CREATE script for {obj.qualified_name}\n"


def delete_fallback(obj: DatabaseObject) -> str:
    return f"DELETE FROM {obj.qualified_name}\nWHERE\n  -- Specify condition;\n"


def execute_fallback(obj: DatabaseObject) -> str:
    return f"EXEC {obj.qualified_name};\n-- Specify parameters if required\n"


def alter_fallback(obj: DatabaseObject) -> str:
    return f"-- Could not generate ALTER script for {obj.qualified_name}\n"


class ScriptGenerator:
    """Turns a picked object and its configured action into a script."""

    def __init__(self, scripter: Scripter, settings: ScriptSettings) -> None:
        self.scripter = scripter
        self.settings = settings

    def generate_script(
        self, obj: DatabaseObject, action: ScriptAction | None = None
    ) -> str:
        """
        Generate the script for an object.

        Args:
            obj: The picked object.
            action: Explicit action; the one configured for the object's type
                is used when omitted.
        """
        action = action or self.settings.action_for_type(obj.type)
        logger.debug("Generating %s script for %s", action.value, obj.qualified_name)

        match action:
            case ScriptAction.SELECT:
                return self._select(obj)
            case ScriptAction.CREATE:
                return self._from_backend(obj, ScriptOperation.CREATE, create_fallback(obj))
            case ScriptAction.DELETE:
                return self._from_backend(obj, ScriptOperation.DELETE, delete_fallback(obj))
            case ScriptAction.EXECUTE:
                return self._from_backend(obj, ScriptOperation.EXECUTE, execute_fallback(obj))
            case ScriptAction.ALTER:
                return self._from_backend(obj, ScriptOperation.ALTER, alter_fallback(obj))
            case ScriptAction.INSERT_NAME:
                return obj.qualified_name
            case _:
                assert_never(action)

    def _select(self, obj: DatabaseObject) -> str:
        row_limit = self.settings.script_row_limit
        script = self._request(obj, ScriptOperation.SELECT)
        if script:
            return ensure_top_clause(script, row_limit)
        return select_fallback(obj, row_limit)

    def _from_backend(
        self, obj: DatabaseObject, operation: ScriptOperation, fallback: str
    ) -> str:
        return self._request(obj, operation) or fallback

    def _request(self, obj: DatabaseObject, operation: ScriptOperation) -> str | None:
        try:
            script = self.scripter.script_object(operation, obj)
        except Exception:  # noqa: BLE001
            logger.exception(
                "Failed to generate %s script for %s", operation.name, obj.qualified_name
            )
            return None
        if not script:
            logger.warning(
                "Backend returned no %s script for %s; using fallback",
                operation.name,
                obj.qualified_name,
            )
            return None
        return script
