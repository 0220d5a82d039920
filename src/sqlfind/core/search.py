"""Database object search.

The SearchOrchestrator answers `search(term, force_refresh)` by composing the
connection context, the catalog cache and (optionally) the column cache.
It never raises: missing connections and backend failures are reported to a
Notifier and produce an empty result.
"""

from __future__ import annotations

import logging
import threading
from typing import Protocol

from sqlfind.core.catalog import ObjectCatalogCache, catalog_cache_key
from sqlfind.core.columns import ColumnMetadataCache
from sqlfind.core.connection import ConnectionContext
from sqlfind.core.errors import (
    FetchCancelled,
    NullNotifier,
    Notifier,
    report_error,
    report_no_connection,
)
from sqlfind.core.objects import DatabaseObject
from sqlfind.core.queries import ALL_OBJECTS_QUERY, COLUMNS_QUERY

logger = logging.getLogger(__name__)


class ColumnsSetting(Protocol):
    @property
    def include_table_columns(self) -> bool:
        ...


def filter_objects(
    objects: tuple[DatabaseObject, ...], term: str
) -> tuple[DatabaseObject, ...]:
    """
    Keep objects whose name or schema contains `term` (case-insensitive).

    A blank term keeps everything; catalog order is preserved.
    """
    needle = term.strip().lower()
    if not needle:
        return objects
    return tuple(
        obj
        for obj in objects
        if needle in obj.name.lower() or needle in obj.schema.lower()
    )


class SearchOrchestrator:
    """Searches the active database's catalog through the cache layers."""

    def __init__(
        self,
        connection: ConnectionContext,
        catalog: ObjectCatalogCache,
        columns: ColumnMetadataCache,
        settings: ColumnsSetting,
        notifier: Notifier | None = None,
    ) -> None:
        self.connection = connection
        self.catalog = catalog
        self.columns = columns
        self.settings = settings
        self.notifier = notifier or NullNotifier()

    def search(
        self,
        term: str = "",
        force_refresh: bool = False,
        *,
        cancel: threading.Event | None = None,
    ) -> tuple[DatabaseObject, ...]:
        """
        Search database objects by name or schema.

        Args:
            term: Substring to match; blank returns the whole catalog.
            force_refresh: Clear the catalog cache and this session's column
                cache before searching.
            cancel: Optional event used to abandon long bulk fetches.

        Returns:
            Matching objects in catalog order; empty on any failure.
        """
        try:
            logger.debug("Starting search with term: %r, force_refresh: %s", term, force_refresh)

            session_id = self.connection.resolve_active_session()
            if not session_id:
                report_no_connection(self.notifier)
                return ()

            database = self.connection.active_database()
            cache_key = catalog_cache_key(database)
            logger.info(
                "Cache: key=%s, entries=%d, keys=%s",
                cache_key,
                len(self.catalog),
                self.catalog.keys(),
            )

            if force_refresh:
                logger.debug("Clearing caches...")
                self.catalog.clear()
                self.columns.clear_cache(session_id)

            objects = self.catalog.get_or_fetch(
                cache_key,
                self._fetch_catalog,
                database=database,
                cancel=cancel,
            )
            objects = filter_objects(objects, term)

            if self.settings.include_table_columns:
                logger.debug("Enriching with column information...")
                objects = self.columns.enrich(
                    session_id,
                    objects,
                    lambda: self.connection.execute_query(COLUMNS_QUERY, database),
                    cancel=cancel,
                )

            logger.info("Search completed: %d objects found", len(objects))
            return objects
        except FetchCancelled:
            logger.info("Search cancelled")
            return ()
        except Exception as exc:  # noqa: BLE001
            report_error(self.notifier, exc, "Search failed")
            return ()

    def refresh(self) -> None:
        """Invalidate every cache layer (catalogs, columns, sessions)."""
        self.catalog.clear()
        self.columns.clear_cache()
        self.connection.invalidate_all()
        logger.info("All caches cleared")

    def _fetch_catalog(self, database: str | None):
        return self.connection.execute_query(ALL_OBJECTS_QUERY, database)
