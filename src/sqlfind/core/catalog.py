"""Per-database object catalog cache.

The catalog for a database is fetched with one bulk query and kept until the
whole cache is cleared. An empty catalog is cached like any other result, so
an empty or restricted database is not rescanned on every search; this is
expected behavior. Partial results are never stored: a fetch that raises or
is cancelled leaves the key absent.
"""

from __future__ import annotations

import logging
import threading
from typing import Any, Callable, Iterable, Mapping

from sqlfind.core.errors import FetchCancelled
from sqlfind.core.objects import DEFAULT_SCHEMA, DatabaseObject, object_type_from_code

logger = logging.getLogger(__name__)

DEFAULT_CACHE_KEY = "default"

CatalogRow = Mapping[str, Any]
CatalogFetch = Callable[[str | None], Iterable[CatalogRow]]


def catalog_cache_key(database: str | None) -> str:
    """Return the cache key for a database (the `default` sentinel if unknown)."""
    return database or DEFAULT_CACHE_KEY


def row_to_object(row: CatalogRow, database: str | None = None) -> DatabaseObject:
    """Transform one bulk-catalog row into a DatabaseObject."""
    return DatabaseObject(
        name=str(row.get("ObjectName") or ""),
        schema=str(row.get("SchemaName") or DEFAULT_SCHEMA),
        type=object_type_from_code(row.get("ObjectType")),
        database=database,
    )


def rows_to_objects(
    rows: Iterable[CatalogRow], database: str | None = None
) -> tuple[DatabaseObject, ...]:
    return tuple(row_to_object(row, database) for row in rows)


class ObjectCatalogCache:
    """Database-keyed cache of catalog snapshots."""

    def __init__(self) -> None:
        self._entries: dict[str, tuple[DatabaseObject, ...]] = {}

    def __contains__(self, database_key: str) -> bool:
        return database_key in self._entries

    def __len__(self) -> int:
        return len(self._entries)

    def keys(self) -> list[str]:
        return list(self._entries)

    def get_or_fetch(
        self,
        database_key: str,
        fetch_fn: CatalogFetch,
        *,
        database: str | None = None,
        cancel: threading.Event | None = None,
    ) -> tuple[DatabaseObject, ...]:
        """
        Return the cached catalog for a key, fetching it on first use.

        Args:
            database_key: Cache key (database name or the `default` sentinel).
            fetch_fn: Bulk catalog query; receives `database` and returns rows
                of {SchemaName, ObjectName, ObjectType}.
            database: Database the rows belong to (recorded on each object).
            cancel: Optional event; when set, the fetch result is discarded.

        Returns:
            The stored tuple of objects, possibly empty.

        Raises:
            FetchCancelled: If `cancel` is set before the result is stored.
        """
        cached = self._entries.get(database_key)
        if cached is not None:
            logger.debug("Using cached objects for %s: %d items", database_key, len(cached))
            return cached

        _check_cancel(cancel, database_key)
        logger.debug("Fetching objects from database for key: %s", database_key)
        objects = rows_to_objects(fetch_fn(database), database)
        _check_cancel(cancel, database_key)

        if not objects:
            logger.warning("No objects returned for %s; caching empty catalog", database_key)

        self._entries[database_key] = objects
        logger.debug("Fetched and cached %d objects for key: %s", len(objects), database_key)
        return objects

    def clear(self) -> None:
        """Drop every cached catalog."""
        self._entries.clear()
        logger.debug("Catalog cache cleared")


def _check_cancel(cancel: threading.Event | None, database_key: str) -> None:
    if cancel is not None and cancel.is_set():
        logger.info("Catalog fetch for %s cancelled", database_key)
        raise FetchCancelled(f"Catalog fetch for '{database_key}' was cancelled.")
