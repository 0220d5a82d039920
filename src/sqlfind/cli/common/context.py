"""Application context management for the CLI.

`build_app_context` is the composition root: it loads configuration and wires
one adapter, connection context, cache pair, search orchestrator and script
generator per CLI invocation.
"""

from dataclasses import dataclass

from sqlfind.cli.common.exits import die
from sqlfind.cli.common.output import out
from sqlfind.core.adapters.sqlserver import SqlServerAdapter
from sqlfind.core.catalog import ObjectCatalogCache
from sqlfind.core.columns import ColumnMetadataCache
from sqlfind.core.config import ConnectionProfile, SearchSettings, load_config
from sqlfind.core.connection import ConnectionContext
from sqlfind.core.errors import ConfigError
from sqlfind.core.scripting import ScriptGenerator
from sqlfind.core.search import SearchOrchestrator


@dataclass
class AppContext:
    """Application context holding the backend adapter and core services."""

    profile: ConnectionProfile
    settings: SearchSettings
    adapter: SqlServerAdapter
    connection: ConnectionContext
    search: SearchOrchestrator
    scripting: ScriptGenerator

    def apply_settings(self, settings: SearchSettings) -> None:
        """Swap in overridden settings for the services of this invocation."""
        self.settings = settings
        self.search.settings = settings
        self.scripting.settings = settings

    def close(self) -> None:
        self.adapter.close()


def build_app_context(profile: str | None, database: str | None) -> AppContext:
    """Build and return the application context for a connection profile.

    Args:
        profile: Optional profile name; the `[DEFAULT]` section is used when omitted.
        database: Optional database overriding the profile's database.

    Returns:
        AppContext: Context with configured adapter, caches and services.
    """
    try:
        conn_profile, settings = load_config(profile)
    except ConfigError as exc:
        die(str(exc), code=1)

    adapter = SqlServerAdapter(conn_profile, database=database)
    connection = ConnectionContext(adapter)
    search = SearchOrchestrator(
        connection,
        ObjectCatalogCache(),
        ColumnMetadataCache(),
        settings,
        notifier=out,
    )
    scripting = ScriptGenerator(connection, settings)
    return AppContext(
        profile=conn_profile,
        settings=settings,
        adapter=adapter,
        connection=connection,
        search=search,
        scripting=scripting,
    )
