"""Terminal UI utilities for picking database objects."""

from __future__ import annotations

from typing import Sequence

import questionary

from sqlfind.cli.common.tui_style import QUESTIONARY_STYLE_SELECT
from sqlfind.core.objects import DatabaseObject, ObjectType

_MAX_NAME_WIDTH = 64
_MAX_COLUMNS_WIDTH = 96

OBJECT_ICONS: dict[ObjectType, str] = {
    ObjectType.TABLE: "▦",
    ObjectType.VIEW: "◉",
    ObjectType.STORED_PROCEDURE: "⚙",
    ObjectType.SCALAR_FUNCTION: "ƒ",
    ObjectType.TABLE_VALUED_FUNCTION: "ƒ",
    ObjectType.SYNONYM: "↪",
}

_TYPE_LABELS: dict[ObjectType, str] = {
    ObjectType.TABLE: "Table",
    ObjectType.VIEW: "View",
    ObjectType.STORED_PROCEDURE: "Stored Procedure",
    ObjectType.SCALAR_FUNCTION: "Scalar Function",
    ObjectType.TABLE_VALUED_FUNCTION: "Table-valued Function",
    ObjectType.SYNONYM: "Synonym",
}


def truncate(text: str, max_len: int) -> str:
    """Return text capped at max_len characters using an ASCII ellipsis."""
    if max_len <= 3 or len(text) <= max_len:
        return text[:max_len]
    return f"{text[: max_len - 3]}..."


def object_icon(object_type: ObjectType) -> str:
    return OBJECT_ICONS.get(object_type, "•")


def type_label(object_type: ObjectType) -> str:
    """Human readable label for an object type."""
    return _TYPE_LABELS.get(object_type, str(object_type))


def _object_choice_title(obj: DatabaseObject, *, name_width: int) -> str:
    """Format one object as `<icon> <name>  <schema> • <type>` with aligned schema column."""
    short_name = truncate(obj.name, _MAX_NAME_WIDTH)
    return (
        f"{object_icon(obj.type)} {short_name.ljust(name_width)}"
        f"  {obj.schema} • {type_label(obj.type)}"
    )


def _object_choice_description(obj: DatabaseObject) -> str | None:
    if not obj.columns:
        return None
    return f"Columns: {truncate(obj.columns, _MAX_COLUMNS_WIDTH)}"


def select_object(objects: Sequence[DatabaseObject]) -> DatabaseObject | None:
    """Display a searchable select prompt over database objects.

    Args:
        objects: The objects to choose from, in display order.

    Returns:
        The picked object, or None if the prompt was cancelled.
    """
    if not objects:
        return None

    shown_names = [truncate(obj.name, _MAX_NAME_WIDTH) for obj in objects]
    name_width = max((len(name) for name in shown_names), default=0)

    choices = [
        questionary.Choice(
            title=_object_choice_title(obj, name_width=name_width),
            value=obj,
            description=_object_choice_description(obj),
        )
        for obj in objects
    ]

    return questionary.select(
        "Search database objects:",
        choices=choices,
        style=QUESTIONARY_STYLE_SELECT,
        qmark="✦",
        instruction="Type to filter, ↑/↓ then Enter",
        use_search_filter=True,
        use_jk_keys=False,
    ).ask()
