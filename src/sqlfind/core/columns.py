"""Column metadata cache layered on top of the catalog.

Columns are fetched for a whole session with one bulk query and attached to
tables and views by copy, so cached catalog snapshots are never mutated.
Unlike the catalog cache, a failed or empty column fetch is not cached and is
retried on the next enrichment: it usually points at a transient backend or
permission problem rather than a database without tables.
"""

from __future__ import annotations

import logging
import threading
from dataclasses import replace
from typing import Any, Callable, Iterable, Mapping, Sequence

from sqlfind.core.objects import DatabaseObject

logger = logging.getLogger(__name__)

ColumnRow = Mapping[str, Any]
ColumnFetch = Callable[[], Iterable[ColumnRow]]


def build_column_map(rows: Iterable[ColumnRow]) -> dict[str, str]:
    """Build the `schema.name` -> rendered column list map from query rows."""
    column_map: dict[str, str] = {}
    for row in rows:
        key = f"{row.get('SchemaName')}.{row.get('ObjectName')}"
        column_map[key] = str(row.get("Columns") or "")
    return column_map


class ColumnMetadataCache:
    """Session-keyed cache of column lists for tables and views."""

    def __init__(self) -> None:
        self._entries: dict[str, dict[str, str]] = {}

    def __contains__(self, session_id: str) -> bool:
        return session_id in self._entries

    def enrich(
        self,
        session_id: str,
        objects: Sequence[DatabaseObject],
        fetch_fn: ColumnFetch,
        *,
        cancel: threading.Event | None = None,
    ) -> tuple[DatabaseObject, ...]:
        """
        Attach column lists to the tables and views in `objects`.

        The fetch runs at most once per session while it keeps succeeding and
        never when `objects` has no table or view. Objects without column data
        pass through unchanged.
        """
        objects = tuple(objects)
        if not any(obj.type.has_columns for obj in objects):
            return objects

        column_map = self._entries.get(session_id)
        if column_map is None:
            column_map = self._fetch(fetch_fn, cancel)
            if column_map is None:
                return objects
            self._entries[session_id] = column_map

        enriched: list[DatabaseObject] = []
        for obj in objects:
            columns = column_map.get(obj.key) if obj.type.has_columns else None
            enriched.append(replace(obj, columns=columns) if columns else obj)
        return tuple(enriched)

    def _fetch(
        self, fetch_fn: ColumnFetch, cancel: threading.Event | None
    ) -> dict[str, str] | None:
        try:
            logger.debug("Fetching column information...")
            column_map = build_column_map(fetch_fn())
        except Exception:  # noqa: BLE001
            logger.exception("Failed to fetch column information")
            return None

        if cancel is not None and cancel.is_set():
            logger.info("Column fetch cancelled; nothing cached")
            return None
        if not column_map:
            logger.warning("No column information returned from query")
            return None

        logger.debug("Fetched column information for %d objects", len(column_map))
        return column_map

    def clear_cache(self, session_id: str | None = None) -> None:
        """Drop the column map for one session, or for all sessions."""
        if session_id:
            self._entries.pop(session_id, None)
            logger.debug("Cleared column cache for %s", session_id)
        else:
            self._entries.clear()
            logger.debug("Cleared all column cache")
