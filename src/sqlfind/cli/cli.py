"""CLI application for searching SQL Server objects."""

import typer

from sqlfind.cli.commands.diagnose import diagnose
from sqlfind.cli.commands.objects import script, search, shell
from sqlfind.cli.common.context import build_app_context
from sqlfind.cli.common.logs import configure_logging
from sqlfind.cli.common.options import DatabaseOpt, ProfileOpt, VerboseOpt

app = typer.Typer(
    help="sqlfind - search SQL Server objects and generate scripts",
    no_args_is_help=True,
)


@app.callback()
def _init(
    ctx: typer.Context,
    profile: str | None = ProfileOpt,
    database: str | None = DatabaseOpt,
    verbose: int = VerboseOpt,
):
    """Load the connection profile and build the search services."""
    configure_logging(verbose)
    appctx = build_app_context(profile, database)
    ctx.obj = appctx
    ctx.call_on_close(appctx.close)


app.command("search")(search)
app.command("script")(script)
app.command("shell")(shell)
app.command("diagnose")(diagnose)


if __name__ == "__main__":
    app()
