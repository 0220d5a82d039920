"""Scripting diagnostic command."""

import typer

from sqlfind.cli.common.context import AppContext
from sqlfind.cli.common.exits import warn_exit
from sqlfind.cli.common.output import out
from sqlfind.cli.common.progress import run_diagnostic_with_progress
from sqlfind.core.diagnostic import pick_sample_objects


def diagnose(ctx: typer.Context):
    """
    Check which scripting operations the backend supports for each object type.

    One sample object per type is scripted with every operation.
    """
    appctx: AppContext = ctx.obj

    with out.status("Loading database objects..."):
        objects = appctx.search.search("")

    samples = pick_sample_objects(objects)
    if not samples:
        warn_exit(
            "No database objects found for testing. "
            "Make sure the profile points at a reachable database."
        )

    out.header("Scripting diagnostic")
    out.kv(
        {
            "Profile": appctx.profile.name,
            "Database": appctx.connection.active_database() or "default",
            "Samples": ", ".join(o.qualified_name for o in samples),
        }
    )

    results = run_diagnostic_with_progress(appctx.connection, samples)
    out.diagnostic_table(results)

    failed = [r for r in results if not r.ok]
    out.info(f"Calls: {len(results)} | OK: {len(results) - len(failed)} | Failed: {len(failed)}")
