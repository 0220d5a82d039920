"""Common CLI options for the CLI."""

import typer

ProfileOpt = typer.Option(
    None,
    "--profile",
    "-p",
    help="Connection profile (section in ~/.sqlfindcfg)",
)

DatabaseOpt = typer.Option(
    None,
    "--database",
    "-d",
    help="Database to search (defaults to the profile's database)",
)

VerboseOpt = typer.Option(
    0,
    "--verbose",
    "-v",
    count=True,
    help="Log to stderr (-v info, -vv debug)",
)

RefreshOpt = typer.Option(
    False,
    "--refresh",
    "-r",
    help="Clear cached catalogs and column data before searching",
)

ColumnsOpt = typer.Option(
    None,
    "--columns/--no-columns",
    help="Show table/view columns (overrides include_table_columns)",
    show_default=False,
)

ListOpt = typer.Option(
    False,
    "--list",
    "-l",
    help="Print matching objects as a table instead of opening the picker",
)

OutputOpt = typer.Option(
    None,
    "--output",
    "-o",
    help="Write the generated script to a file instead of stdout",
    dir_okay=False,
    writable=True,
)

ActionOpt = typer.Option(
    None,
    "--action",
    "-a",
    help="Script action (Select, Create, Delete, Execute, Alter, Insert Name)",
)

TypeOpt = typer.Option(
    None,
    "--type",
    "-t",
    help="Object type, used when the object is not in the catalog",
)

RowLimitOpt = typer.Option(
    None,
    "--limit",
    help="Row limit for SELECT scripts (overrides script_row_limit)",
    show_default=False,
)

