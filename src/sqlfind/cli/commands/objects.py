"""Commands for searching database objects and generating scripts."""

from __future__ import annotations

from pathlib import Path

import typer

from sqlfind.cli.common.context import AppContext
from sqlfind.cli.common.exits import die, exit_from_exc, ok_exit, warn_exit
from sqlfind.cli.common.options import (
    ActionOpt,
    ColumnsOpt,
    ListOpt,
    OutputOpt,
    RefreshOpt,
    RowLimitOpt,
    TypeOpt,
)
from sqlfind.cli.common.output import out
from sqlfind.cli.tui import select_object
from sqlfind.core.errors import ConfigError
from sqlfind.core.objects import (
    DatabaseObject,
    ObjectType,
    ScriptAction,
    parse_object_name,
    parse_object_type,
)


def _apply_overrides(
    appctx: AppContext, *, columns: bool | None = None, limit: int | None = None
) -> None:
    try:
        settings = appctx.settings.with_overrides(
            include_table_columns=columns, script_row_limit=limit
        )
    except ConfigError as exc:
        exit_from_exc(exc, message=str(exc), code=2)
    appctx.apply_settings(settings)


def _parse_action_or_exit(action: str | None) -> ScriptAction | None:
    if not action:
        return None
    try:
        return ScriptAction.parse(action)
    except ValueError as exc:
        exit_from_exc(exc, message=str(exc), code=2)


def _emit_script(script: str, output: Path | None) -> None:
    """Write a script to a file, or print it to stdout."""
    if output is None:
        out.script(script)
        return
    if output.exists() and not out.confirm(f"{output} exists. Overwrite?"):
        warn_exit("Script not written.")
    try:
        output.write_text(script, encoding="utf-8")
    except OSError as exc:
        exit_from_exc(exc, message=f"Could not write {output}: {exc}", code=1)
    out.success(f"Script written to {output}")


def _find_object(
    objects: tuple[DatabaseObject, ...],
    schema: str,
    name: str,
    object_type: ObjectType | None = None,
) -> DatabaseObject | None:
    for obj in objects:
        if obj.schema.lower() != schema.lower() or obj.name.lower() != name.lower():
            continue
        if object_type is not None and obj.type != object_type:
            continue
        return obj
    return None


def search(
    ctx: typer.Context,
    term: str = typer.Argument("", help="Substring matched against object name and schema"),
    refresh: bool = RefreshOpt,
    columns: bool | None = ColumnsOpt,
    list_only: bool = ListOpt,
    limit: int | None = RowLimitOpt,
    output: Path | None = OutputOpt,
):
    """
    Search database objects and generate a script for the one you pick.
    """
    appctx: AppContext = ctx.obj
    _apply_overrides(appctx, columns=columns, limit=limit)

    title = (
        "Refreshing and searching database objects..."
        if refresh
        else "Searching database objects..."
    )
    with out.status(title):
        objects = appctx.search.search(term, force_refresh=refresh)

    if not objects:
        warn_exit("No database objects found")

    if list_only:
        out.objects_table(objects, title=f"Database objects ({len(objects)})")
        raise typer.Exit(0)

    picked = select_object(objects)
    if picked is None:
        warn_exit("No object selected.")

    with out.status(f"Generating script for {picked.qualified_name}..."):
        text = appctx.scripting.generate_script(picked)
    _emit_script(text, output)


def script(
    ctx: typer.Context,
    object_name: str = typer.Argument(..., help="Object as schema.name (schema defaults to dbo)"),
    type_: str | None = TypeOpt,
    action: str | None = ActionOpt,
    limit: int | None = RowLimitOpt,
    output: Path | None = OutputOpt,
):
    """
    Generate a script for one object without the interactive picker.
    """
    appctx: AppContext = ctx.obj
    _apply_overrides(appctx, limit=limit)

    try:
        schema, name = parse_object_name(object_name)
        object_type = parse_object_type(type_) if type_ else None
    except ValueError as exc:
        exit_from_exc(exc, message=str(exc), code=2)
    wanted_action = _parse_action_or_exit(action)

    with out.status("Looking up object..."):
        candidates = appctx.search.search(name)
    obj = _find_object(candidates, schema, name, object_type)

    if obj is None:
        if object_type is None:
            die(
                f"Object [{schema}].[{name}] not found. "
                "Pass --type to script it anyway.",
                code=1,
            )
        obj = DatabaseObject(
            name=name,
            schema=schema,
            type=object_type,
            database=appctx.connection.active_database(),
        )

    with out.status(f"Generating script for {obj.qualified_name}..."):
        text = appctx.scripting.generate_script(obj, wanted_action)
    _emit_script(text, output)


_REFRESH_COMMANDS = {":r", ":refresh"}
_QUIT_COMMANDS = {":q", ":quit", ":exit"}


def shell(
    ctx: typer.Context,
    columns: bool | None = ColumnsOpt,
    limit: int | None = RowLimitOpt,
):
    """
    Search repeatedly in one session, reusing cached catalogs and connections.

    Enter a search term (blank lists everything), `:r` to refresh the caches,
    `:q` to quit.
    """
    appctx: AppContext = ctx.obj
    _apply_overrides(appctx, columns=columns, limit=limit)
    while True:
        term = out.ask("Search term (:r refresh, :q quit):")
        if term is None or term.strip() in _QUIT_COMMANDS:
            ok_exit()
        if term.strip() in _REFRESH_COMMANDS:
            appctx.search.refresh()
            out.info("Caches cleared.")
            continue

        with out.status("Searching database objects..."):
            objects = appctx.search.search(term)

        if not objects:
            out.warn("No database objects found")
            continue

        picked = select_object(objects)
        if picked is None:
            continue

        with out.status(f"Generating script for {picked.qualified_name}..."):
            text = appctx.scripting.generate_script(picked)
        out.script(text)
